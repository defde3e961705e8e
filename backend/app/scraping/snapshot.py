from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum


class Condition(str, Enum):
    FAIR = "Fair"
    GOOD = "Good"
    EXCELLENT = "Excellent"
    SUPERB = "Superb"

    @classmethod
    def normalize(cls, text: str | None) -> "Condition | None":
        """Map free text such as "Very Good" or "superb " onto a grade."""
        if not text:
            return None
        lowered = text.lower()
        for grade in cls:
            if grade.value.lower() in lowered:
                return grade
        return None


@dataclass(frozen=True)
class ProductSnapshot:
    """One point-in-time read of a product listing."""

    title: str
    mrp: int
    sale_price: int
    discount: str
    condition: str
    storage: str
    ram: str | None = None
    color: str | None = None
    image_url: str | None = None
    is_out_of_stock: bool = False

    def to_columns(self) -> dict:
        """Flatten into TrackedProduct column values."""
        data = asdict(self)
        data["ram"] = self.ram or ""
        data["color"] = self.color or ""
        return data
