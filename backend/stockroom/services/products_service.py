# Overview: Service-layer operations for products; encapsulates business logic and store work.

"""
Products Service

Product writes go through the active store; any change to stock_quantity
is mirrored into the movement history by stock_service, attributed to the
acting user.
"""
from __future__ import annotations

from ..models import Product
from ..storage import InventoryStore, ProductQuery, current_store
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_product,
    reference_column,
    validate_payload,
)
from . import stock_service

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "sku", "name", "description", "price", "stock_quantity",
        "min_stock_level", "category_id", "image_url",
    }),
    required_on_create=frozenset({"sku", "name", "price", "category_id"}),
    ignored_fields=frozenset({"id", "_id", "created_at", "updated_at", "category"}),
)
PRODUCT_COLUMN_OVERRIDES = {"category_id": reference_column("category_id")}


def _clean(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(
        model=Product,
        payload=payload,
        policy=PRODUCT_POLICY,
        partial=partial,
        column_overrides=PRODUCT_COLUMN_OVERRIDES,
    )
    enforce_rules_product(patch)
    return patch


def _require_category(category_id: str, store: InventoryStore) -> None:
    if store.get_category(category_id) is None:
        raise ValidationError(errors=[{"field": "category_id", "message": "Category not found"}])


def list_products(query: ProductQuery | None = None, *, store: InventoryStore | None = None) -> dict:
    """
    Filtered, paginated listing.

    Returns:
        {"items": [...product with nested category...], "total": int}
    """
    store = store or current_store()
    return store.get_products(query or ProductQuery())


def get_product(product_id: str, *, store: InventoryStore | None = None) -> dict | None:
    store = store or current_store()
    return store.get_product(product_id)


def create_product(payload: dict, *, user_id: str, store: InventoryStore | None = None) -> dict:
    """
    Create a product and record its opening stock.

    Raises:
        ValidationError: invalid fields or unknown category
        ConflictError: SKU already exists
    """
    store = store or current_store()
    patch = _clean(payload, partial=False)
    _require_category(patch["category_id"], store)

    product = store.create_product(patch)
    stock_service.record_initial_stock(product, user_id, store=store)
    return store.get_product(product["id"])


def update_product(
    product_id: str,
    payload: dict,
    *,
    user_id: str,
    store: InventoryStore | None = None,
) -> dict | None:
    """
    Partial update. Returns None if the product does not exist.

    A changed stock_quantity produces an in/out movement for the difference.
    """
    store = store or current_store()
    patch = _clean(payload, partial=True)
    if not patch:
        raise ValidationError(errors=[{"field": "_body", "message": "no updatable fields provided"}])

    existing = store.get_product(product_id)
    if existing is None:
        return None

    if "category_id" in patch and patch["category_id"] != existing.get("category_id"):
        _require_category(patch["category_id"], store)

    updated = store.update_product(product_id, patch)
    if updated is None:
        return None

    if "stock_quantity" in patch:
        stock_service.record_stock_change(
            existing["id"],
            existing.get("stock_quantity") or 0,
            updated.get("stock_quantity") or 0,
            user_id,
            store=store,
        )
    return store.get_product(product_id)


def delete_product(product_id: str, *, store: InventoryStore | None = None) -> bool:
    """Movement history for the product is kept; activity rows fall back to placeholders."""
    store = store or current_store()
    return store.delete_product(product_id)
