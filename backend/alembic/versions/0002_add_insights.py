"""add insights

Revision ID: 0002_add_insights
Revises: 0001_add_users
Create Date: 2024-05-14 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa

revision = "0002_add_insights"
down_revision = "0001_add_users"
branch_labels = None
depends_on = None


def _text(name: str) -> sa.Column:
    return sa.Column(name, sa.Text(), nullable=False, server_default="")


def _short(name: str, length: int = 255) -> sa.Column:
    return sa.Column(name, sa.String(length=length), nullable=False, server_default="")


def upgrade() -> None:
    op.create_table(
        "insights",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("creation_number", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("subject", sa.Text(), nullable=False),
        sa.Column("insight_id", sa.String(length=255), nullable=False),
        _short("status", 64),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("update_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        _short("type"),
        _short("main_category"),
        _short("sub_category"),
        _short("data_category"),
        sa.Column("target_banks", sa.JSON(), nullable=False),
        _text("logic_formula"),
        sa.Column("target_tables", sa.JSON(), nullable=False),
        _text("target_users"),
        _short("related_insight"),
        _short("revenue_category"),
        _short("icon_type"),
        sa.Column("score", sa.String(length=64), nullable=True),
        _text("relevance_policy"),
        _text("relevance_score"),
        sa.Column("display_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("select_count", sa.Integer(), nullable=False, server_default="0"),
        _text("next_policy"),
        _text("next_value"),
        _text("app_link"),
        _text("external_link"),
        sa.Column("teaser_image", sa.Text(), nullable=True),
        sa.Column("story_images", sa.JSON(), nullable=False),
        sa.Column(
            "maintenance_date",
            sa.Date(),
            nullable=False,
            server_default="2099-12-31",
        ),
        _text("maintenance_reason"),
        _text("remarks"),
        _text("updated_by"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_insights_id", "insights", ["id"])
    op.create_index("ix_insights_insight_id", "insights", ["insight_id"])


def downgrade() -> None:
    op.drop_index("ix_insights_insight_id", table_name="insights")
    op.drop_index("ix_insights_id", table_name="insights")
    op.drop_table("insights")
