from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.health import HealthResponse
from app.services import health as health_service

router = APIRouter()


@router.get("/health", response_model=HealthResponse, tags=["system"])
def health(db: Session = Depends(get_db)) -> HealthResponse:
    database_ok = health_service.check_database(db)
    return HealthResponse(
        status="ok" if database_ok else "degraded",
        database=database_ok,
        timestamp=datetime.now(timezone.utc),
        uptime=health_service.uptime_seconds(),
    )
