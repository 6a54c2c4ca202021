# Overview: Service-layer operations for categories.

from __future__ import annotations

from ..models import Category
from ..storage import InventoryStore, current_store
from ..validation import ModelValidationPolicy, ValidationError, validate_payload

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "description"}),
    required_on_create=frozenset({"name"}),
)


def list_categories(*, store: InventoryStore | None = None) -> list[dict]:
    store = store or current_store()
    return store.get_categories()


def get_category(category_id: str, *, store: InventoryStore | None = None) -> dict | None:
    store = store or current_store()
    return store.get_category(category_id)


def create_category(payload: dict, *, store: InventoryStore | None = None) -> dict:
    """
    Raises:
        ValidationError: missing/blank name, unknown fields
        ConflictError: name already used
    """
    store = store or current_store()
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    return store.create_category(patch)


def update_category(category_id: str, payload: dict, *, store: InventoryStore | None = None) -> dict | None:
    store = store or current_store()
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
    if not patch:
        raise ValidationError(errors=[{"field": "_body", "message": "no updatable fields provided"}])
    return store.update_category(category_id, patch)


def delete_category(category_id: str, *, store: InventoryStore | None = None) -> bool:
    """Products referencing the category are left in place and resolve to "Unknown"."""
    store = store or current_store()
    return store.delete_category(category_id)
