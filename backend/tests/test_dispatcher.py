import json
from types import SimpleNamespace

import httpx
import pytest

from app.core.errors import NotificationError
from app.notify import templates
from app.notify.dispatcher import AlertKind, NotificationDispatcher
from app.notify.email import (
    RESEND_API_URL,
    EmailMessage,
    LoggingEmailSender,
    ResendEmailSender,
)
from helpers import make_snapshot

PRODUCT = SimpleNamespace(id=7, url="https://www.cashify.in/buy-refurbished/iphone-12")


class ExplodingSender:
    def __init__(self, exc):
        self.exc = exc
        self.attempts = 0

    async def send(self, message):
        self.attempts += 1
        raise self.exc


def resend_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def test_tracking_started_email_reaches_outbox(dispatcher, outbox):
    sent = await dispatcher.send_alert(
        AlertKind.TRACKING_STARTED, "buyer@example.com", PRODUCT, make_snapshot()
    )

    assert sent is True
    message = outbox.outbox[0]
    assert message.to == "buyer@example.com"
    assert message.subject == "Now Tracking: Apple iPhone 12 - Refurbished"
    assert "₹40,000" in message.html
    assert PRODUCT.url in message.html


async def test_price_drop_email_mentions_target(dispatcher, outbox):
    await dispatcher.send_alert(
        AlertKind.PRICE_DROP,
        "buyer@example.com",
        PRODUCT,
        make_snapshot(sale_price=38000),
        target_price=39000,
    )

    message = outbox.outbox[0]
    assert message.subject == "Price Alert: Apple iPhone 12 - Refurbished is now ₹38,000!"
    assert "₹39,000" in message.html
    assert "₹1,000 below your target!" in message.text


async def test_restock_email(dispatcher, outbox):
    await dispatcher.send_alert(AlertKind.RESTOCK, "buyer@example.com", PRODUCT, make_snapshot())

    assert outbox.outbox[0].subject == "Back in Stock: Apple iPhone 12 - Refurbished"


async def test_missing_recipient_is_not_sent(dispatcher, outbox):
    sent = await dispatcher.send_alert(AlertKind.RESTOCK, None, PRODUCT, make_snapshot())

    assert sent is False
    assert outbox.outbox == []


@pytest.mark.parametrize(
    "exc",
    [NotificationError("Resend API error: 500"), RuntimeError("socket closed")],
)
async def test_sender_failures_are_swallowed(exc):
    sender = ExplodingSender(exc)
    dispatcher = NotificationDispatcher(sender, from_address="alerts@test.local")

    sent = await dispatcher.send_alert(
        AlertKind.TRACKING_STARTED, "buyer@example.com", PRODUCT, make_snapshot()
    )

    assert sent is False
    assert sender.attempts == 1


async def test_price_drop_without_target_is_reported_not_raised(dispatcher, outbox):
    sent = await dispatcher.send_alert(
        AlertKind.PRICE_DROP, "buyer@example.com", PRODUCT, make_snapshot()
    )

    assert sent is False
    assert outbox.outbox == []


def test_out_of_stock_welcome_hides_prices():
    subject, html = templates.tracking_started(
        "buyer@example.com",
        PRODUCT.url,
        make_snapshot(is_out_of_stock=True, mrp=50000, sale_price=45000),
    )

    assert "Out of Stock" in html
    assert "Current Price" not in html
    assert "notify you when it becomes available" in html


def test_welcome_shows_savings():
    _, html = templates.tracking_started("buyer@example.com", PRODUCT.url, make_snapshot())

    assert "₹10,000 from the original price" in html


def test_templates_escape_scraped_text():
    _, html = templates.restock(PRODUCT.url, make_snapshot(title="<script>x</script>"))

    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_plain_text_alternative_strips_markup():
    message = EmailMessage(
        from_address="a@test.local",
        to="b@test.local",
        subject="hi",
        html="<div><h2>Hello</h2><p>World</p></div>",
    )

    assert message.text == "Hello\nWorld"


async def test_resend_sender_posts_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "email_123"})

    async with resend_client(handler) as client:
        sender = ResendEmailSender("re_test", client=client)
        await sender.send(
            EmailMessage(
                from_address="PriceTracker <alerts@test.local>",
                to="buyer@example.com",
                subject="Now Tracking: Pixel 7",
                html="<p>Tracking</p>",
            )
        )

    assert seen["url"] == RESEND_API_URL
    assert seen["auth"] == "Bearer re_test"
    assert seen["body"]["to"] == ["buyer@example.com"]
    assert seen["body"]["subject"] == "Now Tracking: Pixel 7"
    assert seen["body"]["text"] == "Tracking"


async def test_resend_sender_raises_on_provider_error():
    def handler(request):
        return httpx.Response(500, text="upstream down")

    async with resend_client(handler) as client:
        sender = ResendEmailSender("re_test", client=client)
        with pytest.raises(NotificationError, match="500"):
            await sender.send(
                EmailMessage("a@test.local", "b@test.local", "s", "<p>x</p>")
            )


async def test_resend_sender_wraps_transport_errors():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with resend_client(handler) as client:
        sender = ResendEmailSender("re_test", client=client)
        with pytest.raises(NotificationError, match="Resend request failed"):
            await sender.send(
                EmailMessage("a@test.local", "b@test.local", "s", "<p>x</p>")
            )


async def test_dispatcher_over_failing_resend_returns_false():
    def handler(request):
        return httpx.Response(422, json={"message": "invalid from"})

    async with resend_client(handler) as client:
        dispatcher = NotificationDispatcher(
            ResendEmailSender("re_test", client=client), from_address="bad"
        )
        sent = await dispatcher.send_alert(
            AlertKind.RESTOCK, "buyer@example.com", PRODUCT, make_snapshot()
        )

    assert sent is False


async def test_logging_sender_records_messages():
    sender = LoggingEmailSender()
    await sender.send(EmailMessage("a@test.local", "b@test.local", "s", "<p>x</p>"))

    assert [m.to for m in sender.outbox] == ["b@test.local"]
