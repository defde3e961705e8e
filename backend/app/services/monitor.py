from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.models import TrackedProduct
from app.notify.dispatcher import AlertKind, NotificationDispatcher
from app.scraping.snapshot import ProductSnapshot
from app.services.alerts import notify_price_drop
from app.services.history import Reconciliation, reconcile

logger = structlog.get_logger(__name__)


@dataclass
class UpdateSummary:
    message: str
    updated: int
    total: int | None = None
    errors: list[str] | None = None

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


class PriceMonitor:
    """
    Re-scrapes tracked products one at a time.

    A failure on one product is recorded and the loop moves on; batch runs
    wait `delay` seconds between products so the site isn't hammered.
    """

    def __init__(
        self,
        db: Session,
        scraper,
        dispatcher: NotificationDispatcher,
        delay: float | None = None,
        stale_after: timedelta | None = None,
        sleep=asyncio.sleep,
    ):
        self.db = db
        self.scraper = scraper
        self.dispatcher = dispatcher
        self.delay = settings.BATCH_DELAY_SECONDS if delay is None else delay
        self.stale_after = stale_after or timedelta(hours=settings.STALE_AFTER_HOURS)
        self._sleep = sleep

    def select_products(
        self, product_id: int | None = None, user_id: str | None = None
    ) -> list[TrackedProduct]:
        query = self.db.query(TrackedProduct)
        if user_id is not None:
            query = query.filter(TrackedProduct.user_id == user_id)

        if product_id is not None:
            product = query.filter(TrackedProduct.id == product_id).first()
            return [product] if product else []

        cutoff = datetime.now(timezone.utc) - self.stale_after
        return (
            query.filter(
                or_(
                    TrackedProduct.last_checked.is_(None),
                    TrackedProduct.last_checked < cutoff,
                )
            )
            .order_by(TrackedProduct.id)
            .all()
        )

    def apply(
        self, product: TrackedProduct, snapshot: ProductSnapshot, result: Reconciliation
    ) -> None:
        now = datetime.now(timezone.utc)
        for column, value in snapshot.to_columns().items():
            setattr(product, column, value)
        product.price_history = result.history
        product.last_checked = now
        product.updated_at = now

    async def monitor_one(
        self, product: TrackedProduct
    ) -> tuple[ProductSnapshot, Reconciliation]:
        """Scrape, reconcile and persist one product.

        Scrape errors and database errors propagate to the caller.
        """
        snapshot = await self.scraper.scrape(product.url)
        result = reconcile(product, snapshot)

        self.apply(product, snapshot, result)
        self.db.commit()

        logger.info(
            "monitor.updated",
            product_id=product.id,
            sale_price=snapshot.sale_price,
            out_of_stock=snapshot.is_out_of_stock,
            price_dropped=result.price_dropped,
            restocked=result.restocked,
        )
        return snapshot, result

    async def notify(
        self, product: TrackedProduct, snapshot: ProductSnapshot, result: Reconciliation
    ) -> None:
        try:
            if result.price_dropped:
                await notify_price_drop(self.db, self.dispatcher, product, snapshot)

            if result.restocked:
                owner = product.user
                await self.dispatcher.send_alert(
                    AlertKind.RESTOCK, owner.email if owner else None, product, snapshot
                )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("monitor.notify_failed", product_id=product.id, error=str(e))

    async def run(
        self, product_id: int | None = None, user_id: str | None = None
    ) -> UpdateSummary:
        products = self.select_products(product_id=product_id, user_id=user_id)

        if not products:
            message = (
                "Product not found or does not need updating"
                if product_id is not None
                else "No products need updating"
            )
            return UpdateSummary(message=message, updated=0)

        batch = product_id is None
        updated = 0
        errors: list[str] = []

        for index, product in enumerate(products):
            if batch and index > 0 and self.delay > 0:
                await self._sleep(self.delay)

            pid = product.id
            try:
                snapshot, result = await self.monitor_one(product)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error("monitor.save_failed", product_id=pid, error=str(e))
                errors.append(f"Failed to update product {pid}: {e}")
                continue
            except Exception as e:
                # keep cycle alive
                self.db.rollback()
                logger.warning("monitor.scrape_failed", product_id=pid, error=str(e))
                errors.append(f"Failed to scrape product {pid}: {e}")
                continue

            updated += 1
            await self.notify(product, snapshot, result)

        if batch:
            message = f"Updated {updated} products"
        elif updated:
            message = "Updated product successfully"
        else:
            message = "Failed to update product"

        return UpdateSummary(
            message=message,
            updated=updated,
            total=len(products),
            errors=errors or None,
        )


async def run_monitor_cycle(
    db: Session, scraper, dispatcher: NotificationDispatcher
) -> UpdateSummary:
    summary = await PriceMonitor(db, scraper, dispatcher).run()
    logger.info(
        "monitor.cycle_done",
        updated=summary.updated,
        total=summary.total or 0,
        errors=len(summary.errors or []),
    )
    return summary
