"""
Dual-backend storage layer.

create_app() calls init_storage(app), which owns the lifecycle:
- builds the persistent SqlAlchemyStore and the in-memory MemoryStore
- probes the database once at start-up
- re-probes from a before_request hook (STORE_PROBE_INTERVAL_SECONDS)

Services call current_store() per operation and never cache the result.
"""
from __future__ import annotations

from flask import Flask, current_app
from sqlalchemy.exc import OperationalError

from ..extensions import db
from .base import InventoryStore
from .memory_store import MemoryStore
from .query import ProductQuery, STOCK_STATUSES, classify_stock_status
from .selector import BackendSelector, Connectivity
from .sql_store import SqlAlchemyStore, install_sqlite_functions

EXTENSION_KEY = "stockroom.storage"


def init_storage(app: Flask) -> BackendSelector:
    persistent = SqlAlchemyStore()
    fallback = MemoryStore(seed=app.config.get("FALLBACK_SEED_ENABLED", False))
    connectivity = Connectivity(
        persistent.ping,
        interval_seconds=app.config.get("STORE_PROBE_INTERVAL_SECONDS", 30.0),
    )
    selector = BackendSelector(persistent, fallback, connectivity)
    app.extensions[EXTENSION_KEY] = selector

    with app.app_context():
        install_sqlite_functions(db.engine)
        if not connectivity.probe():
            app.logger.warning("Database unavailable at start-up; using in-memory storage")

    @app.before_request
    def _refresh_store_connectivity():
        connectivity.refresh_if_stale()

    return selector


def get_selector() -> BackendSelector:
    return current_app.extensions[EXTENSION_KEY]


def current_store() -> InventoryStore:
    return get_selector().current_store()


def report_store_failure(exc: BaseException) -> None:
    """Mark the persistent store unreachable when a connectivity error escaped a query."""
    if isinstance(exc, OperationalError):
        get_selector().connectivity.mark_unreachable(exc.__class__.__name__)


__all__ = [
    "InventoryStore",
    "MemoryStore",
    "SqlAlchemyStore",
    "BackendSelector",
    "Connectivity",
    "ProductQuery",
    "STOCK_STATUSES",
    "classify_stock_status",
    "init_storage",
    "get_selector",
    "current_store",
    "report_store_failure",
]
