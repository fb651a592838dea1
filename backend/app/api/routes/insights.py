from __future__ import annotations

import logging
from pathlib import Path
from uuid import uuid4

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.core.config import get_settings
from app.db.session import get_db
from app.models.insight import Insight
from app.schemas.insights import (
    DeleteResult,
    ImageUploadResult,
    ImportErrorDetail,
    ImportResult,
    InsightCreate,
    InsightPublic,
    InsightUpdate,
)
from app.services import insights as insights_service
from app.services.insight_csv import export_csv, import_csv

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/insights",
    tags=["insights"],
    dependencies=[Depends(get_current_user)],
)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg"}
DEFAULT_IMAGE_EXTENSION = ".jpg"
MAX_UPLOAD_SIZE = 10 * 1024 * 1024
EXPORT_FILENAME = "insights.csv"


def _get_insight_or_404(insight_id: int, db: Session) -> Insight:
    insight = insights_service.get_insight(db, insight_id)
    if not insight:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Insight not found",
        )
    return insight


@router.get("", response_model=list[InsightPublic])
def list_insights(
    db: Session = Depends(get_db),
    creation_number: int | None = Query(default=None, alias="creationNumber"),
    subject: str | None = Query(default=None),
    insight_id: str | None = Query(default=None, alias="insightId"),
    insight_status: str | None = Query(default=None, alias="status"),
    insight_type: str | None = Query(default=None, alias="type"),
    main_category: str | None = Query(default=None, alias="mainCategory"),
    sub_category: str | None = Query(default=None, alias="subCategory"),
    data_category: str | None = Query(default=None, alias="dataCategory"),
    logic_formula: str | None = Query(default=None, alias="logicFormula"),
    related_insight: str | None = Query(default=None, alias="relatedInsight"),
    target_banks: list[str] | None = Query(default=None, alias="targetBanks"),
    target_tables: list[str] | None = Query(default=None, alias="targetTables"),
) -> list[InsightPublic]:
    filters = {
        "creation_number": creation_number,
        "subject": subject,
        "insight_id": insight_id,
        "status": insight_status,
        "type": insight_type,
        "main_category": main_category,
        "sub_category": sub_category,
        "data_category": data_category,
        "logic_formula": logic_formula,
        "related_insight": related_insight,
    }
    insights = insights_service.list_insights(
        db,
        filters,
        target_banks=target_banks,
        target_tables=target_tables,
    )
    return [InsightPublic.model_validate(insight) for insight in insights]


@router.post("/upload", response_model=ImageUploadResult)
async def upload_image(file: UploadFile = File(...)) -> ImageUploadResult:
    extension = Path(file.filename or "").suffix.lower() or DEFAULT_IMAGE_EXTENSION
    if extension not in IMAGE_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only image files can be uploaded",
        )

    upload_root = Path(get_settings().upload_dir)
    upload_root.mkdir(parents=True, exist_ok=True)
    stored_name = f"{uuid4().hex}{extension}"
    stored_path = upload_root / stored_name

    total_size = 0
    try:
        with stored_path.open("wb") as target:
            while True:
                chunk = await file.read(1024 * 1024)
                if not chunk:
                    break
                total_size += len(chunk)
                if total_size > MAX_UPLOAD_SIZE:
                    raise HTTPException(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        detail="File exceeds the maximum upload size",
                    )
                target.write(chunk)
    except HTTPException:
        stored_path.unlink(missing_ok=True)
        raise
    finally:
        await file.close()

    logger.info("Stored upload %s (%s bytes)", stored_name, total_size)
    return ImageUploadResult(url=f"/uploads/{stored_name}")


@router.post("/import/csv", response_model=ImportResult)
def import_insights_csv(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
) -> ImportResult:
    try:
        content = file.file.read(MAX_UPLOAD_SIZE + 1)
        if len(content) > MAX_UPLOAD_SIZE:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail="File exceeds the maximum upload size",
            )
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to read CSV file: expected UTF-8 text",
        ) from None
    finally:
        file.file.close()

    result = import_csv(db, text)
    return ImportResult(
        imported=result.imported,
        errors=result.errors,
        error_details=[
            ImportErrorDetail(row=failure.row, error=failure.error)
            for failure in result.failures
        ],
    )


@router.get("/export/csv")
def export_insights_csv(db: Session = Depends(get_db)) -> Response:
    return Response(
        content=export_csv(db),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={EXPORT_FILENAME}"},
    )


@router.get("/{insight_id}", response_model=InsightPublic)
def get_insight(insight_id: int, db: Session = Depends(get_db)) -> InsightPublic:
    return InsightPublic.model_validate(_get_insight_or_404(insight_id, db))


@router.post("", response_model=InsightPublic, status_code=status.HTTP_201_CREATED)
def create_insight(payload: InsightCreate, db: Session = Depends(get_db)) -> InsightPublic:
    try:
        insight = insights_service.create_insight(db, payload.model_dump())
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to create insight")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Failed to create insight: {exc}",
        ) from exc
    return InsightPublic.model_validate(insight)


@router.put("/{insight_id}", response_model=InsightPublic)
def update_insight(
    insight_id: int,
    payload: InsightUpdate,
    db: Session = Depends(get_db),
) -> InsightPublic:
    insight = _get_insight_or_404(insight_id, db)
    try:
        insight = insights_service.update_insight(
            db, insight, payload.model_dump(exclude_unset=True)
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to update insight %s", insight_id)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Failed to update insight: {exc}",
        ) from exc
    return InsightPublic.model_validate(insight)


@router.delete("/{insight_id}", response_model=DeleteResult)
def delete_insight(insight_id: int, db: Session = Depends(get_db)) -> DeleteResult:
    insight = _get_insight_or_404(insight_id, db)
    insights_service.delete_insight(db, insight)
    return DeleteResult()
