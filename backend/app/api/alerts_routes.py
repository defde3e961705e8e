from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.api.v1.schemas import AlertCreate, AlertOut
from app.core.auth import get_current_user
from app.db.models.price_alert import PriceAlert
from app.db.models.tracked_product import TrackedProduct
from app.db.models.user import User
from app.db.session import get_db

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.post("", response_model=AlertOut)
def create_alert(
    payload: AlertCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    product = (
        db.query(TrackedProduct)
        .filter(
            TrackedProduct.id == payload.product_id,
            TrackedProduct.user_id == user.id,
        )
        .first()
    )
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    try:
        alert = PriceAlert(
            user_id=user.id,
            product_id=product.id,
            target_price=payload.target_price,
            is_active=True,
        )
        db.add(alert)
        db.commit()
        db.refresh(alert)
        return alert
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=500, detail=f"Failed to create alert: {str(e)}"
        )


@router.get("", response_model=list[AlertOut])
def list_alerts(
    active_only: bool = False,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = db.query(PriceAlert).filter(PriceAlert.user_id == user.id)
    if active_only:
        query = query.filter(PriceAlert.is_active.is_(True))
    return query.order_by(desc(PriceAlert.created_at), desc(PriceAlert.id)).all()


@router.delete("/{alert_id}")
def delete_alert(
    alert_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    alert = (
        db.query(PriceAlert)
        .filter(PriceAlert.id == alert_id, PriceAlert.user_id == user.id)
        .first()
    )
    if not alert:
        raise HTTPException(status_code=404, detail="Alert not found")

    db.delete(alert)
    db.commit()

    return {"ok": True}
