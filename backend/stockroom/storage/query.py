# Overview: Product listing parameters and the stock-status partition.

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from ..validation import ValidationError

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

OUT_OF_STOCK = "out_of_stock"
LOW_STOCK = "low_stock"
IN_STOCK = "in_stock"
STOCK_STATUSES = (IN_STOCK, LOW_STOCK, OUT_OF_STOCK)

UNKNOWN_CATEGORY = {"_id": "", "id": "", "name": "Unknown", "description": ""}


def classify_stock_status(stock_quantity: int, min_stock_level: int) -> str:
    """
    Partition used by the status filter:
    - out_of_stock: quantity == 0
    - low_stock:    0 < quantity <= min_stock_level
    - in_stock:     quantity > min_stock_level
    """
    if stock_quantity <= 0:
        return OUT_OF_STOCK
    if stock_quantity <= min_stock_level:
        return LOW_STOCK
    return IN_STOCK


def is_low_stock(stock_quantity: int, min_stock_level: int) -> bool:
    """Dashboard low-stock rule. Zero stock counts as low stock here."""
    return stock_quantity <= min_stock_level


def matches_search(product: Mapping, term: str) -> bool:
    """Case-insensitive substring match over name, SKU and description."""
    if not term:
        return True
    needle = term.lower()
    for key in ("name", "sku", "description"):
        value = product.get(key)
        if value and needle in value.lower():
            return True
    return False


def _positive_int(raw, default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class ProductQuery:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    search: str = ""
    category_id: str = ""
    status: str = ""

    def __post_init__(self):
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.limit < 1:
            raise ValueError("limit must be >= 1")
        if self.status and self.status not in STOCK_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(STOCK_STATUSES)}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_args(cls, args: Mapping) -> "ProductQuery":
        """
        Build a query from HTTP query-string arguments.

        Missing, non-numeric or non-positive page/limit fall back to the
        defaults; limit is capped at MAX_LIMIT. Unknown status is a 400.
        """
        status = (args.get("status") or "").strip()
        if status and status not in STOCK_STATUSES:
            raise ValidationError(errors=[{
                "field": "status",
                "message": f"must be one of: {', '.join(STOCK_STATUSES)}",
            }])
        return cls(
            page=_positive_int(args.get("page"), DEFAULT_PAGE),
            limit=min(_positive_int(args.get("limit"), DEFAULT_LIMIT), MAX_LIMIT),
            search=(args.get("search") or "").strip(),
            category_id=(args.get("category_id") or args.get("categoryId") or "").strip(),
            status=status,
        )
