from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.insight import MAINTENANCE_SENTINEL, Insight

DATE_FIELDS = ("start_date", "update_date", "end_date")
ARRAY_FIELDS = ("target_banks", "target_tables")
INTEGER_FIELDS = ("creation_number", "display_count", "select_count")

EQUALITY_FILTERS = ("creation_number", "status", "type", "main_category", "data_category")
SUBSTRING_FILTERS = ("subject", "insight_id", "sub_category", "logic_formula", "related_insight")


def coerce_date(field: str, value: Any) -> date | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        cleaned = value.strip()
        try:
            return date.fromisoformat(cleaned)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(cleaned).date()
        except ValueError:
            pass
    raise ValueError(f"Invalid date for {field}: {value!r}")


def clean_story_images(images: Any) -> list[str]:
    if not isinstance(images, list):
        return []
    return [image for image in images if isinstance(image, str) and image.strip()]


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _normalize_field(field: str, value: Any) -> Any:
    if field in DATE_FIELDS:
        return coerce_date(field, value)
    if field == "maintenance_date":
        return coerce_date(field, value) or MAINTENANCE_SENTINEL
    if field in ARRAY_FIELDS:
        return _as_list(value)
    if field == "story_images":
        return clean_story_images(value)
    return value


def create_insight(db: Session, values: dict[str, Any]) -> Insight:
    payload = {field: _normalize_field(field, value) for field, value in values.items()}
    for field in ARRAY_FIELDS + ("story_images",):
        payload.setdefault(field, [])
    payload.setdefault("maintenance_date", MAINTENANCE_SENTINEL)

    insight = Insight(**payload)
    db.add(insight)
    db.commit()
    db.refresh(insight)
    return insight


def update_insight(db: Session, insight: Insight, changes: dict[str, Any]) -> Insight:
    for field, value in changes.items():
        if field in INTEGER_FIELDS and value is None:
            continue
        setattr(insight, field, _normalize_field(field, value))
    db.commit()
    db.refresh(insight)
    return insight


def delete_insight(db: Session, insight: Insight) -> None:
    db.delete(insight)
    db.commit()


def get_insight(db: Session, insight_id: int) -> Insight | None:
    return db.get(Insight, insight_id)


def list_all_insights(db: Session) -> list[Insight]:
    return list(db.scalars(select(Insight).order_by(Insight.id)).all())


def _matches_any(values: list[Any] | None, wanted: Iterable[str]) -> bool:
    present = values or []
    return any(item in present for item in wanted)


def list_insights(
    db: Session,
    filters: dict[str, Any],
    target_banks: list[str] | None = None,
    target_tables: list[str] | None = None,
) -> list[Insight]:
    query = select(Insight)
    for field in EQUALITY_FILTERS:
        value = filters.get(field)
        if value not in (None, ""):
            query = query.where(getattr(Insight, field) == value)
    for field in SUBSTRING_FILTERS:
        value = filters.get(field)
        if value:
            query = query.where(getattr(Insight, field).contains(value, autoescape=True))

    insights = list(db.scalars(query.order_by(Insight.id)).all())

    # Any-of membership on the JSON array columns.
    if target_banks:
        insights = [item for item in insights if _matches_any(item.target_banks, target_banks)]
    if target_tables:
        insights = [item for item in insights if _matches_any(item.target_tables, target_tables)]
    return insights
