"""
Ordered extraction rules for Cashify product pages.

Each tuple below is tried top to bottom and the first hit wins, so the
specific, class-anchored patterns must stay ahead of the generic ones that
would happily match any rupee figure on the page.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator

MIN_PRICE = 0
MAX_PRICE = 2_000_000


@dataclass(frozen=True)
class PatternRule:
    name: str
    pattern: re.Pattern

    def search(self, text: str) -> str | None:
        match = self.pattern.search(text)
        if not match:
            return None
        return match.group(1).strip()

    def find_all(self, text: str) -> Iterator[str]:
        for match in self.pattern.finditer(text):
            yield match.group(1).strip()


def rule(name: str, pattern: str, flags: int = re.IGNORECASE) -> PatternRule:
    return PatternRule(name=name, pattern=re.compile(pattern, flags))


def parse_rupees(raw: str | None) -> int:
    if not raw:
        return 0
    digits = raw.replace(",", "").strip()
    return int(digits) if digits.isdigit() else 0


def first_match(
    rules: Iterable[PatternRule],
    text: str,
    accept: Callable[[str], bool] | None = None,
) -> tuple[PatternRule, str] | None:
    """Return the first rule (and its captured text) that matches `text`.

    A rule whose capture fails `accept` is skipped and the next rule is tried.
    """
    for candidate in rules:
        value = candidate.search(text)
        if value is None:
            continue
        if accept is not None and not accept(value):
            continue
        return candidate, value
    return None


def first_price(rules: Iterable[PatternRule], text: str) -> int:
    hit = first_match(
        rules,
        text,
        accept=lambda raw: MIN_PRICE < parse_rupees(raw) < MAX_PRICE,
    )
    return parse_rupees(hit[1]) if hit else 0


# -------------------------
# Stock
# -------------------------

OUT_OF_STOCK = rule(
    "out_of_stock_badge",
    r'<h6[^>]*class="[^"]*subtitle1[^"]*text-center[^"]*py-2[^"]*px-1[^"]*'
    r'sm:py-3[^"]*w-full[^"]*bg-primary/70[^"]*text-primary-text-contrast[^"]*"'
    r"[^>]*>(Out of Stock)</h6>",
)

# -------------------------
# Title
# -------------------------

TITLE_RULES = (
    rule("h1", r"<h1[^>]*>([^<]+)</h1>"),
    rule("title_tag", r"<title[^>]*>([^<]+)</title>"),
)

TITLE_SITE_SUFFIX = re.compile(r"\s*-\s*Cashify.*$", re.IGNORECASE)

# -------------------------
# Prices
# -------------------------

MRP_RULES = (
    rule(
        "mrp_strike_h6_styled",
        r'<h6[^>]*class="[^"]*subtitle1[^"]*line-through[^"]*text-surface-text[^"]*"'
        r"[^>]*>₹([0-9,]+)</h6>",
    ),
    rule("mrp_strike_h6", r"<h6[^>]*line-through[^>]*>₹([0-9,]+)</h6>"),
    rule("mrp_strike_any", r"<[^>]*line-through[^>]*>₹([0-9,]+)</[^>]*>"),
    rule("mrp_del", r"₹([0-9,]+)[^0-9]*</del>"),
    rule("mrp_s", r"₹([0-9,]+)[^0-9]*</s>"),
)

SALE_PRICE_RULES = (
    rule(
        "sale_itemprop_h1",
        r'<span[^>]*class="[^"]*h1[^"]*"[^>]*itemprop="price"[^>]*>₹([0-9,]+)</span>',
    ),
    rule("sale_itemprop", r'<span[^>]*itemprop="price"[^>]*>₹([0-9,]+)</span>'),
    rule("sale_h1_span", r'<span[^>]*class="[^"]*h1[^"]*"[^>]*>₹([0-9,]+)</span>'),
    rule("sale_json_price", r'"price"[^:]*:\s*"?₹?\s*([0-9,]+)"?'),
    rule("sale_price_class", r'class="[^"]*price[^"]*"[^>]*>₹\s*([0-9,]+)'),
)

# -------------------------
# Discount
# -------------------------

DISCOUNT_RULES = (
    rule(
        "discount_badge_styled",
        r'<div[^>]*class="[^"]*h1[^"]*text-error[^"]*"[^>]*>-<!--\s*-->([0-9]+)'
        r"<!--\s*-->%</div>",
    ),
    rule("discount_badge", r"<div[^>]*text-error[^>]*>-[^0-9]*([0-9]+)[^0-9]*%</div>"),
    rule("percent_off", r"([0-9]+)%\s*OFF"),
    rule("minus_percent", r"-([0-9]+)%"),
)

# -------------------------
# Descriptor line: "Cashify Warranty, Fair, 6 GB / 128 GB, Pacific Blue"
# -------------------------

DESCRIPTOR = rule(
    "descriptor_line",
    r'<div[^>]*class="[^"]*body2[^"]*mb-2[^"]*text-surface-text[^"]*"[^>]*>([^<]+)</div>',
)

RAM_AND_STORAGE = re.compile(r"(\d+\s*GB)\s*/\s*(\d+\s*[GT]B)", re.IGNORECASE)
STORAGE_TOKEN = re.compile(r"(\d+\s*[GT]B)", re.IGNORECASE)

CONDITION_RULES = (
    rule("condition_warranty_line", r"Cashify Warranty[^,]*,\s*([^,]+)"),
    rule("condition_json", r'"condition"[^:]*:\s*"([^"]+)"'),
    rule("condition_keyword", r"(Fair|Good|Excellent|Superb)"),
    rule("condition_label", r"Condition[^>]*>([^<]+)<"),
    rule("grade_label", r"Grade[^>]*>([^<]+)<"),
)

STORAGE_RULES = (
    rule("storage_gb", r"(\d+\s*GB)"),
    rule("storage_tb", r"(\d+\s*TB)"),
    rule("storage_label", r"Storage[^>]*>([^<]*\d+[^<]*[GT]B[^<]*)<"),
    rule("memory_label", r"Memory[^>]*>([^<]*\d+[^<]*[GT]B[^<]*)<"),
)

# page-wide storage hits longer than this are prose, not a capacity
MAX_STORAGE_TOKEN_LENGTH = 20

# -------------------------
# Image
# -------------------------

_IMG_EXT = r"\.(?:jpg|jpeg|png|webp)"

IMAGE_RULES = (
    rule("img_product", r"<img[^>]+src=[\"']([^\"']*product[^\"']*" + _IMG_EXT + r")[^\"']*[\"']"),
    rule("img_mobile", r"<img[^>]+src=[\"']([^\"']*mobile[^\"']*" + _IMG_EXT + r")[^\"']*[\"']"),
    rule("img_phone", r"<img[^>]+src=[\"']([^\"']*phone[^\"']*" + _IMG_EXT + r")[^\"']*[\"']"),
    rule("img_iphone", r"<img[^>]+src=[\"']([^\"']*iphone[^\"']*" + _IMG_EXT + r")[^\"']*[\"']"),
    rule(
        "img_alt_product",
        r"<img[^>]+src=[\"']([^\"']*" + _IMG_EXT + r")[^\"']*[\"'][^>]*alt=\"[^\"]*product[^\"]*\"",
    ),
)
