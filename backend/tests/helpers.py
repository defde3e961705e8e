from datetime import datetime, timedelta, timezone

import jwt

from app.scraping.snapshot import ProductSnapshot

TEST_SECRET = "test-secret"


class FakeScraper:
    """Returns canned snapshots per URL; an Exception value is raised instead."""

    def __init__(self, results: dict | None = None):
        self.results = results or {}
        self.calls: list[str] = []

    async def scrape(self, url: str) -> ProductSnapshot:
        self.calls.append(url)
        result = self.results[url]
        if isinstance(result, Exception):
            raise result
        return result


def make_snapshot(**overrides) -> ProductSnapshot:
    data = dict(
        title="Apple iPhone 12 - Refurbished",
        mrp=50000,
        sale_price=40000,
        discount="20%",
        condition="Good",
        storage="4 GB / 128 GB",
        ram="4 GB",
        color="Black",
        image_url="https://www.cashify.in/images/product-iphone-12.jpg",
        is_out_of_stock=False,
    )
    data.update(overrides)
    return ProductSnapshot(**data)


def make_token(user_id: str = "user-1", email: str | None = "buyer@example.com", **claims) -> str:
    payload = {
        "sub": user_id,
        "email": email,
        "aud": "authenticated",
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    payload.update(claims)
    return jwt.encode(payload, TEST_SECRET, algorithm="HS256")


def auth_header(user_id: str = "user-1", email: str | None = "buyer@example.com") -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, email)}"}
