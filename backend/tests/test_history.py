from datetime import datetime, timezone
from types import SimpleNamespace

from app.services.history import history_entry, last_known_price, reconcile
from helpers import make_snapshot

NOW = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


def stored(prices, out_of_stock=False):
    return SimpleNamespace(
        price_history=[
            {"price": p, "checked_at": "2026-10-01T08:00:00+00:00"} for p in prices
        ],
        is_out_of_stock=out_of_stock,
    )


def test_history_entry_is_iso_timestamped():
    assert history_entry(40000, NOW) == {
        "price": 40000,
        "checked_at": "2026-10-19T09:00:00+00:00",
    }


def test_last_known_price():
    assert last_known_price([]) == 0
    assert last_known_price(None) == 0
    assert last_known_price([{"price": 1}, {"price": 2}]) == 2


def test_unchanged_price_leaves_history_alone():
    previous = stored([42000])

    result = reconcile(previous, make_snapshot(sale_price=42000), NOW)

    assert result.history == previous.price_history
    assert result.price_dropped is False
    assert result.restocked is False


def test_lower_price_appends_and_flags_drop():
    result = reconcile(stored([45000, 42000]), make_snapshot(sale_price=40000), NOW)

    assert [e["price"] for e in result.history] == [45000, 42000, 40000]
    assert result.history[-1]["checked_at"] == NOW.isoformat()
    assert result.price_dropped is True


def test_higher_price_appends_without_drop():
    result = reconcile(stored([40000]), make_snapshot(sale_price=41000), NOW)

    assert [e["price"] for e in result.history] == [40000, 41000]
    assert result.price_dropped is False


def test_reconcile_is_idempotent_for_same_snapshot():
    previous = stored([42000])
    snapshot = make_snapshot(sale_price=40000)

    first = reconcile(previous, snapshot, NOW)
    again = reconcile(
        SimpleNamespace(price_history=first.history, is_out_of_stock=False),
        snapshot,
        NOW,
    )

    assert again.history == first.history
    assert again.price_dropped is False


def test_out_of_stock_read_never_touches_history():
    previous = stored([42000])

    result = reconcile(
        previous,
        make_snapshot(is_out_of_stock=True, mrp=50000, sale_price=45000),
        NOW,
    )

    assert result.history == previous.price_history
    assert result.price_dropped is False
    assert result.restocked is False


def test_restock_detected_when_back_in_stock():
    result = reconcile(stored([42000], out_of_stock=True), make_snapshot(sale_price=42000), NOW)

    assert result.restocked is True
    assert result.price_dropped is False
    assert len(result.history) == 1


def test_first_read_with_empty_history_appends():
    result = reconcile(stored([]), make_snapshot(sale_price=40000), NOW)

    assert [e["price"] for e in result.history] == [40000]
    # nothing to drop from
    assert result.price_dropped is False


def test_previous_history_is_not_mutated():
    previous = stored([42000])

    reconcile(previous, make_snapshot(sale_price=40000), NOW)

    assert len(previous.price_history) == 1
