import structlog
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.db.models.price_alert import PriceAlert
from app.db.models.tracked_product import TrackedProduct
from app.notify.dispatcher import AlertKind, NotificationDispatcher
from app.scraping.snapshot import ProductSnapshot

logger = structlog.get_logger(__name__)


def matching_alerts(db: Session, product_id: int, price: int) -> list[PriceAlert]:
    return (
        db.query(PriceAlert)
        .options(joinedload(PriceAlert.user))
        .filter(
            PriceAlert.product_id == product_id,
            PriceAlert.is_active.is_(True),
            PriceAlert.target_price >= price,
        )
        .order_by(PriceAlert.id)
        .all()
    )


async def notify_price_drop(
    db: Session,
    dispatcher: NotificationDispatcher,
    product: TrackedProduct,
    snapshot: ProductSnapshot,
) -> int:
    """
    Email every active alert whose target the new price meets, then switch
    those alerts off. Returns how many alerts fired.
    """
    try:
        alerts = matching_alerts(db, product.id, snapshot.sale_price)
    except SQLAlchemyError as e:
        logger.error("alert.lookup_failed", product_id=product.id, error=str(e))
        return 0

    for alert in alerts:
        recipient = alert.user.email if alert.user else None
        await dispatcher.send_alert(
            AlertKind.PRICE_DROP,
            recipient,
            product,
            snapshot,
            target_price=alert.target_price,
        )

        alert.is_active = False
        alert.updated_at = datetime.now(timezone.utc)
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("alert.deactivate_failed", alert_id=alert.id, error=str(e))
            continue

        logger.info(
            "alert.triggered",
            alert_id=alert.id,
            url=product.url,
            price=snapshot.sale_price,
            target=alert.target_price,
        )

    return len(alerts)
