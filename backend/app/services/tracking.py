from __future__ import annotations

from datetime import datetime, timezone
from urllib.parse import urlsplit, urlunsplit

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import PersistenceError, ValidationError
from app.db.models.tracked_product import TrackedProduct
from app.db.models.user import User
from app.notify.dispatcher import AlertKind, NotificationDispatcher
from app.services.history import history_entry

logger = structlog.get_logger(__name__)

DUPLICATE_MESSAGE = "Product is already being tracked"


def validate_product_url(url: str | None, allowed_domain: str | None = None) -> str:
    """Return the URL to store, or raise ValidationError."""
    allowed_domain = (allowed_domain or settings.ALLOWED_DOMAIN).lower()

    if not url or not url.strip():
        raise ValidationError("URL is required")

    parts = urlsplit(url.strip())
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise ValidationError("URL must be an absolute http(s) link")

    host = parts.hostname.lower()
    if host != allowed_domain and not host.endswith("." + allowed_domain):
        raise ValidationError("Only Cashify URLs are supported")

    return urlunsplit(parts._replace(fragment=""))


def find_tracked(db: Session, user_id: str, url: str) -> TrackedProduct | None:
    return (
        db.query(TrackedProduct)
        .filter(TrackedProduct.user_id == user_id, TrackedProduct.url == url)
        .first()
    )


class TrackingService:
    def __init__(self, db: Session, scraper, dispatcher: NotificationDispatcher):
        self.db = db
        self.scraper = scraper
        self.dispatcher = dispatcher

    async def track(self, user: User, raw_url: str) -> TrackedProduct:
        url = validate_product_url(raw_url)

        if find_tracked(self.db, user.id, url):
            raise ValidationError(DUPLICATE_MESSAGE)

        # FetchError / ExtractionFailed propagate; nothing is stored for them
        snapshot = await self.scraper.scrape(url)

        now = datetime.now(timezone.utc)
        product = TrackedProduct(
            user_id=user.id,
            url=url,
            price_history=[history_entry(snapshot.sale_price, now)],
            last_checked=now,
            **snapshot.to_columns(),
        )

        try:
            self.db.add(product)
            self.db.commit()
            self.db.refresh(product)
        except IntegrityError as e:
            self.db.rollback()
            logger.info("track.duplicate_race", user_id=user.id, url=url)
            raise ValidationError(DUPLICATE_MESSAGE) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("track.save_failed", user_id=user.id, url=url, error=str(e))
            raise PersistenceError("Failed to save product data") from e

        logger.info(
            "track.started",
            product_id=product.id,
            user_id=user.id,
            sale_price=product.sale_price,
            out_of_stock=product.is_out_of_stock,
        )

        await self.dispatcher.send_alert(
            AlertKind.TRACKING_STARTED, user.email, product, snapshot
        )
        return product
