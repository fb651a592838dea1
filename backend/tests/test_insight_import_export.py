from fastapi.testclient import TestClient
from sqlalchemy import select

from app.db.session import get_db
from app.models.insight import Insight
from app.services.csv_codec import decode_line, encode_line
from app.services.insight_csv import BOM, COLUMNS

HEADER = encode_line([column.header for column in COLUMNS])
REFERENCE_ROW = ",1,Test Subject,INS-001,active,,,,,promo,,,[],,[] ,,,,,,,,1,0,,,,,,[],2099-12-31,,,"


def upload_csv(client: TestClient, headers: dict[str, str], content: bytes):
    return client.post(
        "/api/insights/import/csv",
        headers=headers,
        files={"file": ("insights.csv", content, "text/csv")},
    )


def stored_insights(client: TestClient) -> list[Insight]:
    override = client.app.dependency_overrides[get_db]
    db = next(override())
    try:
        return list(db.scalars(select(Insight).order_by(Insight.id)).all())
    finally:
        db.close()


def test_import_reference_row(client: TestClient, auth_headers: dict[str, str]) -> None:
    content = f"{HEADER}\n{REFERENCE_ROW}\n".encode("utf-8")

    response = upload_csv(client, auth_headers, content)

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "imported": 1,
        "errors": 0,
        "errorDetails": [],
    }
    [insight] = stored_insights(client)
    assert insight.subject == "Test Subject"
    assert insight.insight_id == "INS-001"
    assert insight.creation_number == 1
    assert insight.display_count == 1
    assert insight.select_count == 0
    assert insight.target_banks == []
    assert insight.maintenance_date.isoformat() == "2099-12-31"


def test_import_reports_failed_rows(client: TestClient, auth_headers: dict[str, str]) -> None:
    rows = [
        HEADER,
        REFERENCE_ROW,
        "short,row",
        REFERENCE_ROW.replace("Test Subject", ""),
        REFERENCE_ROW.replace("INS-001", "INS-004").replace(",[],,[] ,", ",notjson,,[] ,"),
    ]
    content = "\r\n".join(rows).encode("utf-8")

    response = upload_csv(client, auth_headers, content)

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["imported"] == 2
    assert payload["errors"] == 2
    assert payload["errorDetails"] == [
        {"row": 3, "error": "Insufficient columns: expected 34, got 2"},
        {"row": 4, "error": "Subject is required"},
    ]
    assert [insight.insight_id for insight in stored_insights(client)] == ["INS-001", "INS-004"]


def test_import_rejects_header_only_and_undecodable_files(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    response = upload_csv(client, auth_headers, f"{HEADER}\n".encode("utf-8"))
    assert response.status_code == 400
    assert response.json()["detail"] == "CSV file is empty or invalid"

    response = upload_csv(client, auth_headers, b"\xff\xfe\x00broken")
    assert response.status_code == 400

    response = client.post("/api/insights/import/csv", headers=auth_headers)
    assert response.status_code == 422


def test_export_csv(client: TestClient, auth_headers: dict[str, str]) -> None:
    created = client.post(
        "/api/insights",
        headers=auth_headers,
        json={
            "subject": 'Quoted "subject", with comma',
            "insightId": "INS-010",
            "targetBanks": ["bank-a"],
            "storyImages": ["/uploads/s1.png"],
        },
    ).json()

    response = client.get("/api/insights/export/csv", headers=auth_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "charset=utf-8" in response.headers["content-type"]
    assert response.headers["content-disposition"] == "attachment; filename=insights.csv"
    body = response.content.decode("utf-8")
    assert body.startswith(BOM)
    header, row = body[len(BOM):].split("\n")
    assert decode_line(header) == [column.header for column in COLUMNS]
    fields = decode_line(row)
    assert fields[0] == str(created["id"])
    assert fields[2] == 'Quoted "subject", with comma'
    assert fields[12] == '["bank-a"]'
    assert fields[29] == '["/uploads/s1.png"]'


def test_exported_file_can_be_imported_again(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    for index in range(3):
        client.post(
            "/api/insights",
            headers=auth_headers,
            json={
                "subject": f"Insight {index}",
                "insightId": f"INS-{index:03d}",
                "logicFormula": '{"field": "balance", "op": ">", "value": 10}',
                "targetTables": ["t_accounts", "t_cards"],
                "startDate": "2024-02-01",
            },
        )
    exported = client.get("/api/insights/export/csv", headers=auth_headers).content

    response = upload_csv(client, auth_headers, exported)

    assert response.json()["imported"] == 3
    insights = stored_insights(client)
    assert len(insights) == 6
    for original, copy in zip(insights[:3], insights[3:]):
        assert copy.subject == original.subject
        assert copy.logic_formula == original.logic_formula
        assert copy.target_tables == ["t_accounts", "t_cards"]
        assert copy.start_date == original.start_date


def test_import_rejects_oversized_file(
    client: TestClient, auth_headers: dict[str, str], monkeypatch
) -> None:
    from app.api.routes import insights as insights_routes

    monkeypatch.setattr(insights_routes, "MAX_UPLOAD_SIZE", 64)
    content = f"{HEADER}\n{REFERENCE_ROW}\n".encode("utf-8")

    response = upload_csv(client, auth_headers, content)

    assert response.status_code == 413
    assert stored_insights(client) == []
