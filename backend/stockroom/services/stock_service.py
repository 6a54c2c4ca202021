# Overview: Service-layer operations for stock movements and the movements implied by product writes.

"""
Stock movement policy

The store never generates movements on its own. This module decides when a
product write implies a movement:

- product created with a non-zero stock_quantity -> one "in" movement,
  reason "Initial stock"
- product updated to a different stock_quantity -> "in" (increase) or
  "out" (decrease) for the absolute difference, reason "Stock adjustment"

Recording a movement directly (POST /api/stock-movements) appends to the
history only; it does not change the product's stock_quantity.
"""

from __future__ import annotations

from ..models import StockMovement
from ..storage import InventoryStore, current_store
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_stock_movement,
    reference_column,
    validate_payload,
)

INITIAL_STOCK_REASON = "Initial stock"
ADJUSTMENT_REASON = "Stock adjustment"

MOVEMENT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"product_id", "type", "quantity", "reason"}),
    required_on_create=frozenset({"product_id", "type", "quantity"}),
    # user_id is always the caller
    ignored_fields=frozenset({"id", "_id", "created_at", "user_id"}),
)
MOVEMENT_COLUMN_OVERRIDES = {"product_id": reference_column("product_id")}


def record_initial_stock(product: dict, user_id: str, *, store: InventoryStore) -> dict | None:
    quantity = product.get("stock_quantity") or 0
    if quantity == 0:
        return None
    return store.create_stock_movement({
        "product_id": product["id"],
        "user_id": user_id,
        "type": "in",
        "quantity": quantity,
        "reason": INITIAL_STOCK_REASON,
    })


def record_stock_change(
    product_id: str,
    previous_quantity: int,
    new_quantity: int,
    user_id: str,
    *,
    store: InventoryStore,
) -> dict | None:
    delta = new_quantity - previous_quantity
    if delta == 0:
        return None
    return store.create_stock_movement({
        "product_id": product_id,
        "user_id": user_id,
        "type": "in" if delta > 0 else "out",
        "quantity": abs(delta),
        "reason": ADJUSTMENT_REASON,
    })


def create_movement(payload: dict, *, user_id: str, store: InventoryStore | None = None) -> dict:
    """
    Record a manual movement attributed to user_id.

    Raises:
        ValidationError: bad fields, or the product does not resolve
    """
    store = store or current_store()
    patch = validate_payload(
        model=StockMovement,
        payload=payload,
        policy=MOVEMENT_POLICY,
        partial=False,
        column_overrides=MOVEMENT_COLUMN_OVERRIDES,
    )
    enforce_rules_stock_movement(patch)

    if store.get_product(patch["product_id"]) is None:
        raise ValidationError(errors=[{"field": "product_id", "message": "Product not found"}])

    patch["user_id"] = user_id
    return store.create_stock_movement(patch)


def list_movements(product_id: str, *, store: InventoryStore | None = None) -> list[dict]:
    store = store or current_store()
    return store.get_stock_movements(product_id)
