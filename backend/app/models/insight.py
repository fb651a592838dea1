from datetime import date, datetime, timezone

from sqlalchemy import JSON, Date, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base

# "No maintenance scheduled."
MAINTENANCE_SENTINEL = date(2099, 12, 31)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Insight(Base):
    __tablename__ = "insights"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    creation_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    subject: Mapped[str] = mapped_column(Text, nullable=False)
    insight_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    update_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    type: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    main_category: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    sub_category: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    data_category: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    target_banks: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    logic_formula: Mapped[str] = mapped_column(Text, nullable=False, default="")
    target_tables: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    target_users: Mapped[str] = mapped_column(Text, nullable=False, default="")
    related_insight: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    revenue_category: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    icon_type: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    score: Mapped[str | None] = mapped_column(String(64), nullable=True)
    relevance_policy: Mapped[str] = mapped_column(Text, nullable=False, default="")
    relevance_score: Mapped[str] = mapped_column(Text, nullable=False, default="")
    display_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    select_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    next_policy: Mapped[str] = mapped_column(Text, nullable=False, default="")
    next_value: Mapped[str] = mapped_column(Text, nullable=False, default="")
    app_link: Mapped[str] = mapped_column(Text, nullable=False, default="")
    external_link: Mapped[str] = mapped_column(Text, nullable=False, default="")
    teaser_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    story_images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    maintenance_date: Mapped[date] = mapped_column(
        Date, nullable=False, default=MAINTENANCE_SENTINEL
    )
    maintenance_reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    remarks: Mapped[str] = mapped_column(Text, nullable=False, default="")
    updated_by: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )
