# Overview: Helpers shared by both backends for dashboard aggregates.

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

RECENT_ACTIVITY_LIMIT = 10

UNKNOWN_PRODUCT_NAME = "Unknown Product"
UNKNOWN_PRODUCT_SKU = "Unknown"
UNKNOWN_USER_NAME = "Unknown User"

_CENTS = Decimal("0.01")


def format_money(value) -> str:
    """Fixed two-decimal string, e.g. 17499.75 -> "17499.75", None -> "0.00"."""
    if value is None:
        value = 0
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return str(value.quantize(_CENTS, rounding=ROUND_HALF_UP))


def dashboard_stats(*, total_products: int, low_stock_items: int, total_value, total_categories: int) -> dict:
    return {
        "total_products": int(total_products),
        "low_stock_items": int(low_stock_items),
        "total_value": format_money(total_value),
        "total_categories": int(total_categories),
    }


def activity_entry(movement: dict, product: dict | None, user: dict | None) -> dict:
    """One recent-activity row; unresolved references become placeholders."""
    return {
        "id": movement["id"],
        "type": movement["type"],
        "product_id": movement["product_id"],
        "product_name": product["name"] if product else UNKNOWN_PRODUCT_NAME,
        "product_sku": product["sku"] if product else UNKNOWN_PRODUCT_SKU,
        "quantity": movement["quantity"],
        "reason": movement.get("reason"),
        "user_name": user["name"] if user else UNKNOWN_USER_NAME,
        "created_at": movement["created_at"],
    }
