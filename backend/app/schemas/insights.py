from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

TEXT_FIELDS = (
    "status",
    "type",
    "main_category",
    "sub_category",
    "data_category",
    "logic_formula",
    "target_users",
    "related_insight",
    "revenue_category",
    "icon_type",
    "relevance_policy",
    "relevance_score",
    "next_policy",
    "next_value",
    "app_link",
    "external_link",
    "maintenance_reason",
    "remarks",
    "updated_by",
)
DATE_FIELDS = ("start_date", "update_date", "end_date", "maintenance_date")
ARRAY_FIELDS = ("target_banks", "target_tables", "story_images")
COUNT_FIELDS = ("creation_number", "display_count", "select_count")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InsightWrite(CamelModel):
    @field_validator(*TEXT_FIELDS, mode="before", check_fields=False)
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator(*DATE_FIELDS, mode="before", check_fields=False)
    @classmethod
    def blank_date_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator(*ARRAY_FIELDS, mode="before", check_fields=False)
    @classmethod
    def non_list_to_empty(cls, value: Any) -> Any:
        return value if isinstance(value, list) else []

    @field_validator("score", mode="before", check_fields=False)
    @classmethod
    def score_to_text(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("subject", "insight_id", check_fields=False)
    @classmethod
    def require_text(cls, value: str, info: ValidationInfo) -> str:
        if value is None or not value.strip():
            raise ValueError(f"{to_camel(info.field_name)} is required")
        return value


class InsightCreate(InsightWrite):
    creation_number: int = 1
    subject: str
    insight_id: str
    status: str = ""
    start_date: date | None = None
    update_date: date | None = None
    end_date: date | None = None
    type: str = ""
    main_category: str = ""
    sub_category: str = ""
    data_category: str = ""
    target_banks: list[str] = Field(default_factory=list)
    logic_formula: str = ""
    target_tables: list[str] = Field(default_factory=list)
    target_users: str = ""
    related_insight: str = ""
    revenue_category: str = ""
    icon_type: str = ""
    score: str | None = None
    relevance_policy: str = ""
    relevance_score: str = ""
    display_count: int = 1
    select_count: int = 1
    next_policy: str = ""
    next_value: str = ""
    app_link: str = ""
    external_link: str = ""
    teaser_image: str | None = None
    story_images: list[str] = Field(default_factory=list)
    maintenance_date: date | None = None
    maintenance_reason: str = ""
    remarks: str = ""
    updated_by: str = ""

    @field_validator(*COUNT_FIELDS, mode="before")
    @classmethod
    def blank_count_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or value == "":
            return cls.model_fields[info.field_name].default
        return value


class InsightUpdate(InsightWrite):
    creation_number: int | None = None
    subject: str | None = None
    insight_id: str | None = None
    status: str | None = None
    start_date: date | None = None
    update_date: date | None = None
    end_date: date | None = None
    type: str | None = None
    main_category: str | None = None
    sub_category: str | None = None
    data_category: str | None = None
    target_banks: list[str] | None = None
    logic_formula: str | None = None
    target_tables: list[str] | None = None
    target_users: str | None = None
    related_insight: str | None = None
    revenue_category: str | None = None
    icon_type: str | None = None
    score: str | None = None
    relevance_policy: str | None = None
    relevance_score: str | None = None
    display_count: int | None = None
    select_count: int | None = None
    next_policy: str | None = None
    next_value: str | None = None
    app_link: str | None = None
    external_link: str | None = None
    teaser_image: str | None = None
    story_images: list[str] | None = None
    maintenance_date: date | None = None
    maintenance_reason: str | None = None
    remarks: str | None = None
    updated_by: str | None = None

    @field_validator(*COUNT_FIELDS, mode="before")
    @classmethod
    def blank_count_to_none(cls, value: Any) -> Any:
        return None if value == "" else value


class InsightPublic(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    creation_number: int
    subject: str
    insight_id: str
    status: str
    start_date: date | None = None
    update_date: date | None = None
    end_date: date | None = None
    type: str
    main_category: str
    sub_category: str
    data_category: str
    target_banks: list[Any]
    logic_formula: str
    target_tables: list[Any]
    target_users: str
    related_insight: str
    revenue_category: str
    icon_type: str
    score: str | None = None
    relevance_policy: str
    relevance_score: str
    display_count: int
    select_count: int
    next_policy: str
    next_value: str
    app_link: str
    external_link: str
    teaser_image: str | None = None
    story_images: list[Any]
    maintenance_date: date
    maintenance_reason: str
    remarks: str
    updated_by: str
    created_at: datetime
    updated_at: datetime


class DeleteResult(BaseModel):
    success: bool = True


class ImageUploadResult(BaseModel):
    url: str


class ImportErrorDetail(BaseModel):
    row: int
    error: str


class ImportResult(CamelModel):
    success: bool = True
    imported: int
    errors: int
    error_details: list[ImportErrorDetail] = Field(default_factory=list)
