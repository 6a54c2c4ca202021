# Overview: In-memory InventoryStore used while the persistent store is unreachable.

"""
Process-local fallback store.

Records live in plain dicts keyed by "mem_<n>" ids. A single re-entrant
lock serialises every read and write, so concurrent requests never lose an
update or observe a half-written record. Uniqueness (email, category name,
SKU) is checked under the same lock before each write, matching the unique
constraints of the persistent schema.

Nothing here survives a restart.
"""
from __future__ import annotations

import threading
from datetime import datetime
from decimal import Decimal
from itertools import count

from ..time_utils import to_utc_z, utcnow
from ..validation import ConflictError
from .aggregation import RECENT_ACTIVITY_LIMIT, activity_entry, dashboard_stats
from .base import InventoryStore
from .query import UNKNOWN_CATEGORY, ProductQuery, classify_stock_status, is_low_stock, matches_search

USER_DEFAULTS = {
    "email": None,
    "password_hash": None,
    "name": None,
    "role": "user",
    "external_id": None,
    "provider": "local",
}
CATEGORY_DEFAULTS = {"name": None, "description": None}
PRODUCT_DEFAULTS = {
    "sku": None,
    "name": None,
    "description": None,
    "price": None,
    "stock_quantity": 0,
    "min_stock_level": 0,
    "category_id": None,
    "image_url": None,
}
MOVEMENT_DEFAULTS = {"product_id": None, "user_id": None, "type": None, "quantity": None, "reason": None}
REFERENCE_FIELDS = {"category_id", "product_id", "user_id"}


def _normalize(key: str, value):
    if value is None:
        return None
    if key in REFERENCE_FIELDS:
        return str(value)
    if key == "price":
        return value if isinstance(value, Decimal) else Decimal(str(value))
    return value


def _public(record: dict) -> dict:
    """Copy of a stored record in the shape SqlAlchemyStore returns."""
    out = {}
    for key, value in record.items():
        if key == "_seq":
            continue
        if isinstance(value, datetime):
            value = to_utc_z(value)
        elif isinstance(value, Decimal):
            value = float(value)
        out[key] = value
    return out


class MemoryStore(InventoryStore):
    name = "memory"

    def __init__(self, *, seed: bool = False):
        self._lock = threading.RLock()
        self._ids = count(1)
        self._users: dict[str, dict] = {}
        self._categories: dict[str, dict] = {}
        self._products: dict[str, dict] = {}
        self._movements: dict[str, dict] = {}
        if seed:
            from .seed import seed_demo_catalog

            seed_demo_catalog(self)

    def _new_record(self, defaults: dict, data: dict, *, timestamps=("created_at", "updated_at")) -> dict:
        seq = next(self._ids)
        record_id = f"mem_{seq}"
        record = {"_id": record_id, "id": record_id}
        for key, default in defaults.items():
            value = data.get(key)
            record[key] = _normalize(key, default if value is None else value)
        now = utcnow()
        for key in timestamps:
            record[key] = now
        record["_seq"] = seq
        return record

    @staticmethod
    def _merge(record: dict, patch: dict, defaults: dict) -> None:
        for key, value in patch.items():
            if key in defaults:
                record[key] = _normalize(key, value)
        record["updated_at"] = utcnow()

    @staticmethod
    def _find(table: dict, field: str, value, *, exclude: str | None = None) -> dict | None:
        for record in table.values():
            if record["id"] != exclude and record.get(field) == value:
                return record
        return None

    @staticmethod
    def _newest_first(records):
        return sorted(records, key=lambda r: (r["created_at"], r["_seq"]), reverse=True)

    # Users

    def get_user(self, user_id):
        with self._lock:
            record = self._users.get(str(user_id))
            return _public(record) if record else None

    def get_user_by_email(self, email):
        with self._lock:
            record = self._find(self._users, "email", email)
            return _public(record) if record else None

    def get_user_by_external_id(self, external_id):
        if not external_id:
            return None
        with self._lock:
            record = self._find(self._users, "external_id", external_id)
            return _public(record) if record else None

    def list_users(self):
        with self._lock:
            users = sorted(self._users.values(), key=lambda r: (r["created_at"], r["_seq"]))
            return [_public(u) for u in users]

    def create_user(self, data):
        with self._lock:
            if self._find(self._users, "email", data.get("email")):
                raise ConflictError("Email already registered.")
            record = self._new_record(USER_DEFAULTS, data)
            self._users[record["id"]] = record
            return _public(record)

    def update_user(self, user_id, patch):
        with self._lock:
            record = self._users.get(str(user_id))
            if not record:
                return None
            if "email" in patch and self._find(self._users, "email", patch["email"], exclude=record["id"]):
                raise ConflictError("Email already registered.")
            self._merge(record, patch, USER_DEFAULTS)
            return _public(record)

    # Categories

    def get_categories(self):
        with self._lock:
            categories = sorted(self._categories.values(), key=lambda r: (r["name"], r["_seq"]))
            return [_public(c) for c in categories]

    def get_category(self, category_id):
        with self._lock:
            record = self._categories.get(str(category_id))
            return _public(record) if record else None

    def create_category(self, data):
        with self._lock:
            if self._find(self._categories, "name", data.get("name")):
                raise ConflictError("Category name already exists.")
            record = self._new_record(CATEGORY_DEFAULTS, data)
            self._categories[record["id"]] = record
            return _public(record)

    def update_category(self, category_id, patch):
        with self._lock:
            record = self._categories.get(str(category_id))
            if not record:
                return None
            if "name" in patch and self._find(self._categories, "name", patch["name"], exclude=record["id"]):
                raise ConflictError("Category name already exists.")
            self._merge(record, patch, CATEGORY_DEFAULTS)
            return _public(record)

    def delete_category(self, category_id):
        with self._lock:
            return self._categories.pop(str(category_id), None) is not None

    # Products

    def _with_category(self, product: dict) -> dict:
        data = _public(product)
        category = self._categories.get(product["category_id"])
        data["category"] = _public(category) if category else dict(UNKNOWN_CATEGORY)
        return data

    def _matches(self, product: dict, query: ProductQuery) -> bool:
        if not matches_search(product, query.search):
            return False
        if query.category_id and product["category_id"] != query.category_id:
            return False
        if query.status:
            status = classify_stock_status(product["stock_quantity"], product["min_stock_level"])
            if status != query.status:
                return False
        return True

    def get_products(self, query=None):
        query = query or ProductQuery()
        with self._lock:
            filtered = [p for p in self._products.values() if self._matches(p, query)]
            page = self._newest_first(filtered)[query.offset:query.offset + query.limit]
            return {
                "items": [self._with_category(p) for p in page],
                "total": len(filtered),
            }

    def get_product(self, product_id):
        with self._lock:
            record = self._products.get(str(product_id))
            return self._with_category(record) if record else None

    def create_product(self, data):
        with self._lock:
            if self._find(self._products, "sku", data.get("sku")):
                raise ConflictError("SKU already exists.")
            record = self._new_record(PRODUCT_DEFAULTS, data)
            self._products[record["id"]] = record
            return _public(record)

    def update_product(self, product_id, patch):
        with self._lock:
            record = self._products.get(str(product_id))
            if not record:
                return None
            if "sku" in patch and self._find(self._products, "sku", patch["sku"], exclude=record["id"]):
                raise ConflictError("SKU already exists.")
            self._merge(record, patch, PRODUCT_DEFAULTS)
            return _public(record)

    def delete_product(self, product_id):
        with self._lock:
            return self._products.pop(str(product_id), None) is not None

    # Stock movements

    def create_stock_movement(self, data):
        with self._lock:
            record = self._new_record(MOVEMENT_DEFAULTS, data, timestamps=("created_at",))
            self._movements[record["id"]] = record
            return _public(record)

    def get_stock_movements(self, product_id):
        with self._lock:
            matching = [m for m in self._movements.values() if m["product_id"] == str(product_id)]
            return [_public(m) for m in self._newest_first(matching)]

    # Aggregates

    def get_dashboard_stats(self):
        with self._lock:
            products = list(self._products.values())
            return dashboard_stats(
                total_products=len(products),
                low_stock_items=sum(
                    1 for p in products if is_low_stock(p["stock_quantity"], p["min_stock_level"])
                ),
                total_value=sum((p["price"] * p["stock_quantity"] for p in products), Decimal("0")),
                total_categories=len(self._categories),
            )

    def get_recent_activity(self, limit=RECENT_ACTIVITY_LIMIT):
        with self._lock:
            movements = self._newest_first(self._movements.values())[:limit]
            return [
                activity_entry(
                    _public(m),
                    self._products.get(m["product_id"]),
                    self._users.get(m["user_id"]),
                )
                for m in movements
            ]
