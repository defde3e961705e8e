from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from app.scraping.snapshot import ProductSnapshot


@dataclass
class Reconciliation:
    history: list[dict] = field(default_factory=list)
    price_dropped: bool = False
    restocked: bool = False


def history_entry(price: int, checked_at: datetime | None = None) -> dict:
    checked_at = checked_at or datetime.now(timezone.utc)
    return {"price": price, "checked_at": checked_at.isoformat()}


def last_known_price(history: list[dict] | None) -> int:
    if not history:
        return 0
    return history[-1].get("price") or 0


def reconcile(
    previous, fresh: ProductSnapshot, now: datetime | None = None
) -> Reconciliation:
    """
    Compare a stored product against a fresh snapshot.

    `previous` is anything carrying `price_history` and `is_out_of_stock`
    (normally a TrackedProduct). Out-of-stock reads never touch the history
    because their prices are placeholders.
    """
    history = list(previous.price_history or [])
    last_price = last_known_price(history)

    in_stock = not fresh.is_out_of_stock

    if in_stock and fresh.sale_price != last_price:
        history.append(history_entry(fresh.sale_price, now))

    return Reconciliation(
        history=history,
        price_dropped=in_stock and last_price > fresh.sale_price,
        restocked=bool(previous.is_out_of_stock) and in_stock,
    )
