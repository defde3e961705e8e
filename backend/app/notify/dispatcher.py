from __future__ import annotations

from enum import Enum

import structlog

from app.core.config import settings
from app.core.errors import NotificationError
from app.notify import templates
from app.notify.email import EmailMessage, EmailSender
from app.scraping.snapshot import ProductSnapshot

logger = structlog.get_logger(__name__)


class AlertKind(str, Enum):
    TRACKING_STARTED = "tracking_started"
    PRICE_DROP = "price_drop"
    RESTOCK = "restock"


class NotificationDispatcher:
    """
    Renders and sends product emails.

    Sending is best effort: provider and transport failures are logged and
    reported through the return value, never raised, so a failed email can't
    undo a database write that already happened.
    """

    def __init__(self, sender: EmailSender, from_address: str | None = None):
        self.sender = sender
        self.from_address = from_address or settings.EMAIL_FROM

    def render(
        self,
        kind: AlertKind,
        recipient: str,
        product,
        snapshot: ProductSnapshot,
        target_price: int | None = None,
    ) -> tuple[str, str]:
        if kind == AlertKind.TRACKING_STARTED:
            return templates.tracking_started(recipient, product.url, snapshot)
        if kind == AlertKind.PRICE_DROP:
            if target_price is None:
                raise ValueError("price_drop emails need a target price")
            return templates.price_drop(
                product.url, snapshot.title, snapshot.sale_price, target_price
            )
        if kind == AlertKind.RESTOCK:
            return templates.restock(product.url, snapshot)
        raise ValueError(f"Unknown alert kind: {kind}")

    async def send_alert(
        self,
        kind: AlertKind,
        recipient: str | None,
        product,
        snapshot: ProductSnapshot,
        *,
        target_price: int | None = None,
    ) -> bool:
        log = logger.bind(kind=AlertKind(kind).value, product_id=getattr(product, "id", None))

        if not recipient:
            log.warning("notify.no_recipient")
            return False

        try:
            subject, html = self.render(
                AlertKind(kind), recipient, product, snapshot, target_price
            )
            await self.sender.send(
                EmailMessage(
                    from_address=self.from_address,
                    to=recipient,
                    subject=subject,
                    html=html,
                )
            )
        except NotificationError as exc:
            log.error("notify.failed", to=recipient, error=exc.message)
            return False
        except Exception as exc:
            log.error("notify.unexpected_error", to=recipient, error=str(exc), exc_info=True)
            return False

        log.info("notify.sent", to=recipient)
        return True
