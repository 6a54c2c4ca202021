# Overview: Connectivity handle and per-call backend selection.

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from .base import InventoryStore

logger = logging.getLogger(__name__)


class Connectivity:
    """
    Owned "is the persistent store reachable" signal.

    - probe(): run the probe callable now and record the outcome
    - refresh_if_stale(): probe only if the last probe is older than interval_seconds
      (interval_seconds <= 0 disables automatic re-probing)
    - mark_connected() / mark_unreachable(): record an outcome observed elsewhere,
      e.g. an OperationalError surfacing from an in-flight query
    """

    def __init__(
        self,
        probe: Callable[[], None] | None = None,
        *,
        interval_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._probe = probe
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._connected = False
        self._last_checked_at: float | None = None

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def last_checked_at(self) -> float | None:
        return self._last_checked_at

    def _record(self, connected: bool, reason: str | None = None) -> None:
        with self._lock:
            was_connected = self._connected
            self._connected = connected
            self._last_checked_at = self._clock()

        if connected and not was_connected:
            logger.info("Persistent store reachable; serving requests from it")
        elif was_connected and not connected:
            logger.warning(
                "Persistent store unreachable (%s); falling back to in-memory storage",
                reason or "unknown",
            )

    def mark_connected(self) -> None:
        self._record(True)

    def mark_unreachable(self, reason: str | None = None) -> None:
        self._record(False, reason)

    def probe(self) -> bool:
        if self._probe is None:
            self.mark_unreachable("no probe configured")
            return False
        try:
            self._probe()
        except Exception as exc:
            # Any failure to answer means "not reachable"; the cause is logged, not raised.
            logger.warning("Persistent store probe failed: %s", exc.__class__.__name__)
            self.mark_unreachable(exc.__class__.__name__)
            return False
        self.mark_connected()
        return True

    def refresh_if_stale(self) -> bool:
        if self.interval_seconds <= 0:
            return self._connected
        last = self._last_checked_at
        if last is not None and self._clock() - last < self.interval_seconds:
            return self._connected
        return self.probe()


class BackendSelector:
    """
    Chooses the store for each operation.

    current_store() reads the connectivity handle on every call, so a
    reconnect switches subsequent operations back to the persistent store
    without a restart.
    """

    def __init__(self, persistent: InventoryStore, fallback: InventoryStore, connectivity: Connectivity):
        self.persistent = persistent
        self.fallback = fallback
        self.connectivity = connectivity

    def current_store(self) -> InventoryStore:
        if self.connectivity.is_connected:
            return self.persistent
        return self.fallback

    def status(self) -> dict:
        active = self.current_store()
        return {
            "store": active.name,
            "persistent_connected": self.connectivity.is_connected,
        }
