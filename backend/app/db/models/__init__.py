from app.db.base import Base
from app.db.models.user import User
from app.db.models.tracked_product import TrackedProduct
from app.db.models.price_alert import PriceAlert

__all__ = [
    "Base",
    "User",
    "TrackedProduct",
    "PriceAlert",
]
