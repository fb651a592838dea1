from datetime import datetime

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    database: bool
    timestamp: datetime
    uptime: float
