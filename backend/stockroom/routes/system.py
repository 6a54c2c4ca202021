# Overview: Health and version endpoints.

"""
System health and version endpoints.

/api/health re-probes the database on every call, so it also serves as a
manual "reconnect now" trigger. Running on the in-memory store is reported
as "degraded": requests are still served, but writes are not durable.
"""

import sys
import time
from flask import Blueprint, current_app

from ..storage import get_selector
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__, url_prefix="/api")

API_VERSION = "1.0.0"


def check_database_health() -> dict:
    """Probe the persistent store and report latency."""
    start_time = time.time()
    connected = get_selector().connectivity.probe()
    elapsed_ms = (time.time() - start_time) * 1000

    if connected:
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    return {
        "status": "unhealthy",
        "latency_ms": round(elapsed_ms, 2),
        "error": "Database unreachable",
    }


@system_bp.get("/health")
def health():
    """
    Returns:
    - status: healthy | degraded
    - store: persistent | memory (backend serving requests right now)
    - database: probe result
    """
    database_health = check_database_health()
    selector = get_selector()
    status = selector.status()

    return {
        "status": "healthy" if status["persistent_connected"] else "degraded",
        "store": status["store"],
        "timestamp": to_utc_z(utcnow()),
        "database": database_health,
    }, 200


@system_bp.get("/version")
def version():
    """Non-sensitive deployment information."""
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": API_VERSION,
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }
