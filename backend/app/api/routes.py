from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.api.deps import get_dispatcher, get_scraper
from app.api.v1.schemas import (
    ProductOut,
    TrackRequest,
    TrackResponse,
    UpdatePricesRequest,
    UpdatePricesResponse,
)
from app.core.auth import get_current_user
from app.core.errors import PriceTrackerError
from app.db.models.tracked_product import TrackedProduct
from app.db.models.user import User
from app.db.session import get_db
from app.notify.dispatcher import NotificationDispatcher
from app.scraping.fetcher import CashifyScraper
from app.services.monitor import PriceMonitor
from app.services.tracking import TrackingService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


def _owned_product(db: Session, product_id: int, user_id: str) -> TrackedProduct:
    product = (
        db.query(TrackedProduct)
        .filter(TrackedProduct.id == product_id, TrackedProduct.user_id == user_id)
        .first()
    )
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.post("/track", response_model=TrackResponse)
async def track_product(
    payload: TrackRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    scraper: CashifyScraper = Depends(get_scraper),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    try:
        product = await TrackingService(db, scraper, dispatcher).track(
            user, payload.url
        )
    except PriceTrackerError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        db.rollback()
        logger.error("track.unexpected_error", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Failed to track product: {str(e)}"
        )

    return TrackResponse(
        success=True,
        product=ProductOut.model_validate(product),
        message="Product tracking started successfully! Check your email for confirmation.",
    )


@router.get("", response_model=list[ProductOut])
def list_products(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        return (
            db.query(TrackedProduct)
            .filter(TrackedProduct.user_id == user.id)
            .order_by(desc(TrackedProduct.created_at), desc(TrackedProduct.id))
            .all()
        )
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Failed to load products: {str(e)}"
        )


@router.get("/{product_id}", response_model=ProductOut)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return _owned_product(db, product_id, user.id)


@router.delete("/{product_id}")
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        product = _owned_product(db, product_id, user.id)
        db.delete(product)
        db.commit()

        logger.info("product.deleted", product_id=product_id, user_id=user.id)
        return {"status": "success", "id": product_id}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=500, detail=f"Failed to remove product: {str(e)}"
        )


@router.post(
    "/update-prices",
    response_model=UpdatePricesResponse,
    response_model_exclude_none=True,
)
async def update_prices(
    payload: UpdatePricesRequest | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    scraper: CashifyScraper = Depends(get_scraper),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    product_id = payload.product_id if payload else None

    try:
        monitor = PriceMonitor(db, scraper, dispatcher)
        summary = await monitor.run(product_id=product_id, user_id=user.id)
    except Exception as e:
        db.rollback()
        logger.error("update_prices.failed", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    return summary.to_dict()
