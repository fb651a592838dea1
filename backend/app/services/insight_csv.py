from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.insight import MAINTENANCE_SENTINEL, Insight
from app.services.csv_codec import (
    best_effort_json_list,
    decode_line,
    encode_line,
    parse_int,
)
from app.services.insights import create_insight, list_all_insights

logger = logging.getLogger(__name__)

BOM = "\ufeff"
LONG_LINE_WARNING = 5000


class ColumnKind(str, Enum):
    ID = "id"
    TEXT = "text"
    INT = "int"
    NULLABLE = "nullable"
    JSON_LIST = "json_list"
    MAINTENANCE_DATE = "maintenance_date"


@dataclass(frozen=True)
class CsvColumn:
    attr: str
    header: str
    kind: ColumnKind = ColumnKind.TEXT
    default: int = 0

    def decode(self, raw: str) -> Any:
        if self.kind == ColumnKind.INT:
            return parse_int(raw, self.default)
        if self.kind == ColumnKind.NULLABLE:
            return None if raw == "" else raw
        if self.kind == ColumnKind.JSON_LIST:
            return best_effort_json_list(raw or "[]")
        if self.kind == ColumnKind.MAINTENANCE_DATE:
            return raw or MAINTENANCE_SENTINEL.isoformat()
        return raw

    def encode(self, insight: Insight) -> Any:
        value = getattr(insight, self.attr)
        if self.kind == ColumnKind.JSON_LIST:
            return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        return value


# Column 0 carries the record id on export and is ignored on import.
COLUMNS: tuple[CsvColumn, ...] = (
    CsvColumn("id", "ID", ColumnKind.ID),
    CsvColumn("creation_number", "作成番号", ColumnKind.INT, default=1),
    CsvColumn("subject", "インサイト件名"),
    CsvColumn("insight_id", "インサイトID"),
    CsvColumn("status", "表示ステータス"),
    CsvColumn("start_date", "配信開始日", ColumnKind.NULLABLE),
    CsvColumn("update_date", "更新日", ColumnKind.NULLABLE),
    CsvColumn("end_date", "配信停止日", ColumnKind.NULLABLE),
    CsvColumn("type", "インサイトタイプ"),
    CsvColumn("main_category", "メインカテゴリ"),
    CsvColumn("sub_category", "サブカテゴリ"),
    CsvColumn("data_category", "データカテゴリ"),
    CsvColumn("target_banks", "対象銀行", ColumnKind.JSON_LIST),
    CsvColumn("logic_formula", "表示ロジック"),
    CsvColumn("target_tables", "使用データテーブル", ColumnKind.JSON_LIST),
    CsvColumn("target_users", "対象ユーザー"),
    CsvColumn("related_insight", "関連インサイト"),
    CsvColumn("revenue_category", "収益カテゴリ"),
    CsvColumn("icon_type", "アイコンタイプ"),
    CsvColumn("score", "スコア", ColumnKind.NULLABLE),
    CsvColumn("relevance_policy", "関連性ポリシー"),
    CsvColumn("relevance_score", "関連性スコア"),
    CsvColumn("display_count", "表示回数", ColumnKind.INT, default=0),
    CsvColumn("select_count", "選択回数", ColumnKind.INT, default=0),
    CsvColumn("next_policy", "次回表示ポリシー"),
    CsvColumn("next_value", "次回表示設定値"),
    CsvColumn("app_link", "アプリ内遷移先"),
    CsvColumn("external_link", "外部遷移先"),
    CsvColumn("teaser_image", "ティーザー画像", ColumnKind.NULLABLE),
    CsvColumn("story_images", "ストーリー画像", ColumnKind.JSON_LIST),
    CsvColumn("maintenance_date", "次回メンテナンス日", ColumnKind.MAINTENANCE_DATE),
    CsvColumn("maintenance_reason", "メンテナンス理由"),
    CsvColumn("remarks", "備考"),
    CsvColumn("updated_by", "更新者"),
)

EXPECTED_COLUMNS = len(COLUMNS)


class CsvRowError(ValueError):
    pass


@dataclass
class RowFailure:
    row: int
    error: str


@dataclass
class BatchResult:
    records: list[Insight] = field(default_factory=list)
    failures: list[RowFailure] = field(default_factory=list)

    @property
    def imported(self) -> int:
        return len(self.records)

    @property
    def errors(self) -> int:
        return len(self.failures)


def map_row(fields: list[str]) -> dict[str, Any]:
    if len(fields) < EXPECTED_COLUMNS:
        raise CsvRowError(
            f"Insufficient columns: expected {EXPECTED_COLUMNS}, got {len(fields)}"
        )
    return {
        column.attr: column.decode(raw)
        for column, raw in zip(COLUMNS, fields)
        if column.kind != ColumnKind.ID
    }


def validate_row(values: dict[str, Any]) -> None:
    if not values.get("subject", "").strip():
        raise CsvRowError("Subject is required")
    if not values.get("insight_id", "").strip():
        raise CsvRowError("Insight ID is required")


def split_lines(text: str) -> list[tuple[int, str]]:
    """Return the non-blank lines of ``text`` with their 1-based line numbers."""
    numbered: list[tuple[int, str]] = []
    for number, line in enumerate(text.split("\n"), start=1):
        if line.endswith("\r"):
            line = line[:-1]
        if line.strip():
            numbered.append((number, line))
    return numbered


def _decode_row(row_number: int, line: str) -> list[str]:
    if len(line) > LONG_LINE_WARNING:
        logger.warning(
            "Row %s is very long (%s characters), parsing may be unreliable",
            row_number,
            len(line),
        )
    fields = decode_line(line)
    if len(fields) != EXPECTED_COLUMNS:
        logger.warning(
            "Row %s decoded into %s columns, expected %s",
            row_number,
            len(fields),
            EXPECTED_COLUMNS,
        )
    return fields


def _error_message(exc: Exception) -> str:
    if isinstance(exc, SQLAlchemyError) and getattr(exc, "orig", None) is not None:
        return str(exc.orig)
    return str(exc)


def import_csv(db: Session, text: str) -> BatchResult:
    lines = split_lines(text)
    if len(lines) < 2:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CSV file is empty or invalid",
        )

    result = BatchResult()
    for row_number, line in lines[1:]:
        try:
            values = map_row(_decode_row(row_number, line))
            validate_row(values)
            insight = create_insight(db, values)
        except Exception as exc:
            db.rollback()
            message = _error_message(exc)
            logger.info("Row %s rejected: %s", row_number, message)
            result.failures.append(RowFailure(row=row_number, error=message))
            continue
        result.records.append(insight)

    logger.info(
        "CSV import finished: %s imported, %s failed",
        result.imported,
        result.errors,
    )
    return result


def render_csv(insights: Iterable[Insight]) -> str:
    lines = [encode_line([column.header for column in COLUMNS])]
    for insight in insights:
        lines.append(encode_line([column.encode(insight) for column in COLUMNS]))
    return BOM + "\n".join(lines)


def export_csv(db: Session) -> str:
    return render_csv(list_all_insights(db))
