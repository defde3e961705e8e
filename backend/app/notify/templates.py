from __future__ import annotations

from html import escape

from app.scraping.snapshot import ProductSnapshot

_ROW = (
    '<tr><td style="color:#64748b;padding:6px 0;">{label}</td>'
    '<td style="color:{color};font-weight:600;text-align:right;">{value}</td></tr>'
)


def rupees(amount: int | float) -> str:
    return f"₹{amount:,.0f}"


def _row(label: str, value: str, color: str = "#1e293b") -> str:
    return _ROW.format(label=escape(label), value=escape(value), color=color)


def _layout(heading: str, accent: str, intro: str, body: str, url: str, cta: str, footer: str) -> str:
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: {accent};">{escape(heading)}</h2>
  <p>{escape(intro)}</p>
  <div style="background-color: #f3f4f6; padding: 20px; border-radius: 8px; margin: 20px 0;">
    {body}
  </div>
  <a href="{escape(url, quote=True)}"
     style="display: inline-block; background-color: {accent}; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px;">
    {escape(cta)}
  </a>
  <p style="color: #6b7280; font-size: 12px; margin-top: 30px;">{escape(footer)}</p>
</div>
""".strip()


def tracking_started(recipient: str, url: str, snapshot: ProductSnapshot) -> tuple[str, str]:
    stock = "Out of Stock" if snapshot.is_out_of_stock else "In Stock"
    rows = [_row("Stock Status", stock, "#dc2626" if snapshot.is_out_of_stock else "#059669")]

    if not snapshot.is_out_of_stock:
        rows.append(_row("Current Price", rupees(snapshot.sale_price), "#059669"))
        rows.append(_row("Original Price", rupees(snapshot.mrp), "#64748b"))
        rows.append(_row("Discount", snapshot.discount, "#dc2626"))

    rows.append(_row("Condition", snapshot.condition))
    if snapshot.storage:
        rows.append(_row("Storage", snapshot.storage))
    if snapshot.color:
        rows.append(_row("Color", snapshot.color))

    body = f"<h3>{escape(snapshot.title)}</h3><table style=\"width:100%;\">{''.join(rows)}</table>"

    savings = snapshot.mrp - snapshot.sale_price
    if snapshot.is_out_of_stock:
        body += (
            "<p style=\"color:#dc2626;font-weight:600;\">This product is currently out of stock. "
            "We'll notify you when it becomes available!</p>"
        )
    elif savings > 0:
        body += (
            f"<p style=\"color:#166534;font-weight:600;\">You're already saving "
            f"{rupees(savings)} from the original price!</p>"
        )

    body += (
        "<ul><li>We'll check this product's price and stock status every hour</li>"
        "<li>You'll receive email alerts when prices drop or stock becomes available</li></ul>"
        f"<p>Alerts will be sent to <strong>{escape(recipient)}</strong></p>"
    )

    html = _layout(
        heading="Tracking Started Successfully!",
        accent="#2563eb",
        intro="We're now monitoring this product for price changes and stock availability.",
        body=body,
        url=url,
        cta="View on Cashify",
        footer="You received this email because you started tracking a product on PriceTracker.",
    )
    return f"Now Tracking: {snapshot.title}", html


def price_drop(url: str, title: str, new_price: int, target_price: int) -> tuple[str, str]:
    body = (
        f"<h3>{escape(title)}</h3><table style=\"width:100%;\">"
        + _row("New Price", rupees(new_price), "#059669")
        + _row("Your Target", rupees(target_price))
        + _row("You Save", f"{rupees(target_price - new_price)} below your target!")
        + "</table>"
    )
    html = _layout(
        heading="Price Alert Triggered!",
        accent="#2563eb",
        intro="Great news! The price for your tracked product has dropped below your target price.",
        body=body,
        url=url,
        cta="View Product on Cashify",
        footer=(
            "This alert has been automatically deactivated. You can set up a new alert "
            "if you'd like to continue tracking this product."
        ),
    )
    return f"Price Alert: {title} is now {rupees(new_price)}!", html


def restock(url: str, snapshot: ProductSnapshot) -> tuple[str, str]:
    body = (
        f"<h3>{escape(snapshot.title)}</h3><table style=\"width:100%;\">"
        + _row("Current Price", rupees(snapshot.sale_price))
        + _row("Status", "In Stock", "#059669")
        + _row("Condition", snapshot.condition)
        + "</table>"
    )
    html = _layout(
        heading="Great News! Product is Back in Stock!",
        accent="#059669",
        intro="The product you've been tracking is now available for purchase.",
        body=body,
        url=url,
        cta="Buy Now on Cashify",
        footer="Don't wait too long - popular items can go out of stock quickly!",
    )
    return f"Back in Stock: {snapshot.title}", html
