"""Shared fixtures: in-memory SQLite, fake scraper, captured email outbox."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_JWT_SECRET"] = "test-secret"
os.environ["BATCH_DELAY_SECONDS"] = "0"
os.environ.pop("RESEND_API_KEY", None)

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_dispatcher, get_scraper
from app.db.models import Base, PriceAlert, TrackedProduct, User
from app.db.session import SessionLocal, engine, get_db
from app.main import app
from app.notify.dispatcher import NotificationDispatcher
from app.notify.email import LoggingEmailSender
from helpers import FakeScraper


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def outbox() -> LoggingEmailSender:
    return LoggingEmailSender()


@pytest.fixture
def dispatcher(outbox) -> NotificationDispatcher:
    return NotificationDispatcher(outbox, from_address="PriceTracker <alerts@test.local>")


@pytest.fixture
def scraper() -> FakeScraper:
    return FakeScraper()


@pytest.fixture
def client(db_session, scraper, dispatcher):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_scraper] = lambda: scraper
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    def _make(user_id: str = "user-1", email: str | None = "buyer@example.com") -> User:
        user = User(id=user_id, email=email)
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def make_product(db_session):
    def _make(user: User, url: str, **overrides) -> TrackedProduct:
        data = dict(
            user_id=user.id,
            url=url,
            title="Apple iPhone 12 - Refurbished",
            mrp=50000,
            sale_price=42000,
            discount="16%",
            condition="Good",
            storage="4 GB / 128 GB",
            ram="4 GB",
            color="Black",
            is_out_of_stock=False,
            price_history=[{"price": 42000, "checked_at": "2026-10-01T08:00:00+00:00"}],
            last_checked=datetime.now(timezone.utc) - timedelta(hours=2),
        )
        data.update(overrides)
        product = TrackedProduct(**data)
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture
def make_alert(db_session):
    def _make(user: User, product: TrackedProduct, target_price: int, is_active: bool = True) -> PriceAlert:
        alert = PriceAlert(
            user_id=user.id,
            product_id=product.id,
            target_price=target_price,
            is_active=is_active,
        )
        db_session.add(alert)
        db_session.commit()
        return alert

    return _make
