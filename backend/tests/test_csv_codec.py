import pytest

from app.services.csv_codec import (
    best_effort_json,
    best_effort_json_list,
    decode_line,
    encode_line,
    escape_field,
    parse_int,
)


def test_decode_line_without_quotes_splits_on_commas() -> None:
    assert decode_line("a,b,,c") == ["a", "b", "", "c"]
    assert decode_line("a,b,,c") == "a,b,,c".split(",")


def test_decode_line_keeps_trailing_empty_field() -> None:
    assert decode_line("a,b,") == ["a", "b", ""]
    assert decode_line("") == [""]


def test_decode_line_quoted_fields_keep_commas_and_escaped_quotes() -> None:
    line = '"1","if a, then b","say ""hi""",plain'

    assert decode_line(line) == ["1", "if a, then b", 'say "hi"', "plain"]


def test_decode_line_tolerates_unterminated_quote() -> None:
    assert decode_line('a,"unterminated, still here') == ["a", "unterminated, still here"]


def test_decode_line_does_not_enforce_field_count() -> None:
    assert len(decode_line("only,three,fields")) == 3


@pytest.mark.parametrize(
    "value",
    [
        "plain",
        "with, comma",
        'with "quotes" inside',
        '{"op": "and", "args": ["a", "b"]}',
        "line one\nline two",
        "",
        '""',
    ],
)
def test_escaped_field_decodes_back_to_original(value: str) -> None:
    assert decode_line(escape_field(value)) == [value]


def test_encode_line_round_trip_with_none() -> None:
    line = encode_line([7, None, 'a "b", c'])

    assert line == '"7",,"a ""b"", c"'
    assert decode_line(line) == ["7", "", 'a "b", c']


def test_best_effort_json_unwraps_requoted_values() -> None:
    assert best_effort_json('"[""a"",""b""]"', []) == ["a", "b"]
    assert best_effort_json('["x"]', []) == ["x"]


def test_best_effort_json_returns_default_on_blank_or_invalid() -> None:
    sentinel = object()

    assert best_effort_json("", sentinel) is sentinel
    assert best_effort_json('""', sentinel) is sentinel
    assert best_effort_json("notjson", sentinel) is sentinel
    assert best_effort_json("[1, 2", sentinel) is sentinel


def test_best_effort_json_list_rejects_non_lists() -> None:
    assert best_effort_json_list('{"a": 1}') == []
    assert best_effort_json_list("[] ") == []
    assert best_effort_json_list('["bank-a"]') == ["bank-a"]


@pytest.mark.parametrize(
    ("raw", "default", "expected"),
    [
        ("42", 1, 42),
        (" 7 ", 0, 7),
        ("-3", 0, -3),
        ("12abc", 0, 12),
        ("", 1, 1),
        ("abc", 0, 0),
        ("0", 1, 0),
    ],
)
def test_parse_int(raw: str, default: int, expected: int) -> None:
    assert parse_int(raw, default) == expected


@pytest.mark.parametrize("raw", ["[NaN]", "[NaN, Infinity]", "[-Infinity]"])
def test_best_effort_json_rejects_non_standard_constants(raw: str) -> None:
    assert best_effort_json_list(raw) == []


def test_best_effort_json_returns_default_on_deep_nesting() -> None:
    assert best_effort_json_list("[" * 200_000) == []
    assert best_effort_json("[" * 5000 + "]" * 5000, "fallback") == "fallback"
