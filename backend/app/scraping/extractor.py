from __future__ import annotations

import html as html_lib
import math
import re
from urllib.parse import urljoin

import structlog

from app.core.errors import ExtractionFailed
from app.scraping import rules
from app.scraping.snapshot import Condition, ProductSnapshot

logger = structlog.get_logger(__name__)

TITLE_MAX_LENGTH = 100
UNKNOWN_TITLE = "Unknown Product"
FALLBACK_TITLE = "Cashify Product"
DEFAULT_STORAGE = "128GB"

# Stand-ins so an out-of-stock listing with hidden prices is still displayable.
PLACEHOLDER_MRP = 50000
PLACEHOLDER_SALE_PRICE = 45000
PLACEHOLDER_MRP_MARKUP = 5000

_WHITESPACE = re.compile(r"\s+")


def _collapse(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def is_out_of_stock(html: str) -> bool:
    return rules.OUT_OF_STOCK.search(html) is not None


def extract_title(html: str) -> str:
    hit = rules.first_match(rules.TITLE_RULES, html)
    title = html_lib.unescape(hit[1]) if hit else UNKNOWN_TITLE
    return clean_title(title)


def clean_title(title: str) -> str:
    title = _collapse(title)
    title = rules.TITLE_SITE_SUFFIX.sub("", title).strip()
    if len(title) > TITLE_MAX_LENGTH:
        title = title[:TITLE_MAX_LENGTH] + "..."
    return title or FALLBACK_TITLE


def extract_mrp(html: str) -> int:
    return rules.first_price(rules.MRP_RULES, html)


def extract_sale_price(html: str) -> int:
    return rules.first_price(rules.SALE_PRICE_RULES, html)


def compute_discount(mrp: int, sale_price: int) -> str | None:
    if mrp > 0 and sale_price > 0 and mrp > sale_price:
        # half-up, not banker's rounding
        percent = math.floor((mrp - sale_price) / mrp * 100 + 0.5)
        return f"{percent}%"
    return None


def extract_discount(html: str, mrp: int, sale_price: int) -> str:
    hit = rules.first_match(rules.DISCOUNT_RULES, html)
    if hit:
        return f"{hit[1]}%"
    return compute_discount(mrp, sale_price) or "0%"


def parse_descriptor(html: str) -> dict:
    """
    Split the "Warranty, <condition>, <ram> / <storage>, <color>" line.

    Every key is None when its position is missing or unparseable so the
    caller can fall back field by field.
    """
    found = {"condition": None, "ram": None, "storage": None, "color": None}

    line = rules.DESCRIPTOR.search(html)
    if not line:
        return found

    parts = [part.strip() for part in html_lib.unescape(line).split(",")]

    if len(parts) >= 2:
        grade = Condition.normalize(parts[1])
        if grade:
            found["condition"] = grade.value

    if len(parts) >= 3:
        both = rules.RAM_AND_STORAGE.search(parts[2])
        if both:
            found["ram"] = both.group(1).strip()
            found["storage"] = both.group(2).strip()
        else:
            single = rules.STORAGE_TOKEN.search(parts[2])
            if single:
                found["storage"] = single.group(1).strip()

    if len(parts) >= 4 and parts[3]:
        found["color"] = parts[3]

    return found


def extract_condition(html: str) -> str:
    hit = rules.first_match(rules.CONDITION_RULES, html)
    if not hit:
        return Condition.GOOD.value
    grade = Condition.normalize(hit[1])
    return grade.value if grade else Condition.GOOD.value


def extract_storage(html: str, title: str) -> str | None:
    hit = rules.first_match(rules.STORAGE_RULES, title)
    if hit:
        return hit[1]

    for candidate in rules.STORAGE_RULES:
        for value in candidate.find_all(html):
            if len(value) < rules.MAX_STORAGE_TOKEN_LENGTH:
                return value
    return None


def extract_image_url(html: str, source_url: str) -> str | None:
    hit = rules.first_match(rules.IMAGE_RULES, html)
    if not hit:
        return None
    src = html_lib.unescape(hit[1])
    if not src.startswith("http"):
        src = urljoin(source_url, src)
    return src


def combine_storage(ram: str | None, storage: str | None) -> str:
    if ram and storage:
        return f"{ram} / {storage}"
    return storage or ram or DEFAULT_STORAGE


def backfill_out_of_stock_prices(mrp: int, sale_price: int) -> tuple[int, int]:
    if not mrp and not sale_price:
        return PLACEHOLDER_MRP, PLACEHOLDER_SALE_PRICE
    if not sale_price:
        return mrp, mrp
    if not mrp:
        return sale_price + PLACEHOLDER_MRP_MARKUP, sale_price
    return mrp, sale_price


def extract(html: str, source_url: str) -> ProductSnapshot:
    """
    Parse a Cashify product page into a ProductSnapshot.

    Raises ExtractionFailed when neither price can be derived.
    """
    out_of_stock = is_out_of_stock(html)
    title = extract_title(html)
    mrp = extract_mrp(html)

    sale_price = 0
    discount = "0%"
    if not out_of_stock:
        sale_price = extract_sale_price(html)
        discount = extract_discount(html, mrp, sale_price)

    descriptor = parse_descriptor(html)
    condition = descriptor["condition"] or extract_condition(html)
    storage = descriptor["storage"] or extract_storage(html, title)
    ram = descriptor["ram"]
    color = descriptor["color"]

    image_url = extract_image_url(html, source_url)

    if out_of_stock:
        mrp, sale_price = backfill_out_of_stock_prices(mrp, sale_price)

    if not mrp and not sale_price:
        logger.warning("extract.no_price", url=source_url, title=title)
        raise ExtractionFailed("Could not extract price information from the page")

    snapshot = ProductSnapshot(
        title=title,
        mrp=mrp or sale_price,
        sale_price=sale_price or mrp,
        discount=discount,
        condition=condition,
        storage=combine_storage(ram, storage),
        ram=ram,
        color=color,
        image_url=image_url,
        is_out_of_stock=out_of_stock,
    )

    logger.debug(
        "extract.done",
        url=source_url,
        out_of_stock=out_of_stock,
        mrp=snapshot.mrp,
        sale_price=snapshot.sale_price,
    )
    return snapshot
