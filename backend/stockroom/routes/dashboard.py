# Overview: Flask API routes for dashboard read models.

from flask import Blueprint, jsonify

from ..services import dashboard_service
from ..decorators import require_auth
from ._helpers import server_error

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/stats")
@require_auth
def stats_route():
    try:
        return jsonify(dashboard_service.get_stats()), 200
    except Exception as e:
        return server_error("load dashboard stats", e)


@dashboard_bp.get("/activity")
@require_auth
def activity_route():
    try:
        return jsonify(dashboard_service.get_activity()), 200
    except Exception as e:
        return server_error("load recent activity", e)
