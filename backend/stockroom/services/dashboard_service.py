# Overview: Service-layer read models for the dashboard.

from __future__ import annotations

from ..storage import InventoryStore, current_store
from ..storage.aggregation import RECENT_ACTIVITY_LIMIT


def get_stats(*, store: InventoryStore | None = None) -> dict:
    store = store or current_store()
    return store.get_dashboard_stats()


def get_activity(limit: int = RECENT_ACTIVITY_LIMIT, *, store: InventoryStore | None = None) -> list[dict]:
    store = store or current_store()
    return store.get_recent_activity(limit)
