from app.models.insight import Insight
from app.models.user import User

__all__ = [
    "Insight",
    "User",
]
