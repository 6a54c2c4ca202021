# Overview: Storage contract shared by the persistent and in-memory backends.

"""
InventoryStore: the single persistence interface used by every service.

Contract (both backends):
- Records are plain dicts carrying "_id" (backend-native id) and "id"
  (always str). Reference fields (category_id, product_id, user_id) are str.
- Lookups return None for a missing record or an id the backend cannot
  parse. They never raise for "not found".
- Duplicate email / category name / SKU raises ConflictError.
- Connectivity faults propagate untouched; the caller decides what to do.
- Stores persist what they are given. Stock-movement side effects of
  product writes belong to the calling layer (services.stock_service).
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from .query import ProductQuery


class InventoryStore(ABC):
    name: str = "abstract"

    # Users

    @abstractmethod
    def get_user(self, user_id: str) -> dict | None: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> dict | None: ...

    @abstractmethod
    def get_user_by_external_id(self, external_id: str) -> dict | None: ...

    @abstractmethod
    def list_users(self) -> list[dict]: ...

    @abstractmethod
    def create_user(self, data: dict) -> dict: ...

    @abstractmethod
    def update_user(self, user_id: str, patch: dict) -> dict | None: ...

    # Categories

    @abstractmethod
    def get_categories(self) -> list[dict]: ...

    @abstractmethod
    def get_category(self, category_id: str) -> dict | None: ...

    @abstractmethod
    def create_category(self, data: dict) -> dict: ...

    @abstractmethod
    def update_category(self, category_id: str, patch: dict) -> dict | None: ...

    @abstractmethod
    def delete_category(self, category_id: str) -> bool: ...

    # Products

    @abstractmethod
    def get_products(self, query: ProductQuery | None = None) -> dict:
        """Return {"items": [product + "category"], "total": filtered count}."""

    @abstractmethod
    def get_product(self, product_id: str) -> dict | None: ...

    @abstractmethod
    def create_product(self, data: dict) -> dict: ...

    @abstractmethod
    def update_product(self, product_id: str, patch: dict) -> dict | None: ...

    @abstractmethod
    def delete_product(self, product_id: str) -> bool: ...

    # Stock movements

    @abstractmethod
    def create_stock_movement(self, data: dict) -> dict: ...

    @abstractmethod
    def get_stock_movements(self, product_id: str) -> list[dict]:
        """All movements for a product, newest first."""

    # Aggregates

    @abstractmethod
    def get_dashboard_stats(self) -> dict: ...

    @abstractmethod
    def get_recent_activity(self, limit: int = 10) -> list[dict]: ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
