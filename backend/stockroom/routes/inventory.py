# Overview: Flask API routes for stock movements; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..services import stock_service
from ..validation import ValidationError
from ..decorators import require_auth, require_admin
from ._helpers import invalid_input, server_error

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/stock-movements")


@inventory_bp.post("")
@require_auth
@require_admin
def create_movement_route():
    """
    Record a manual stock movement.

    Body: {"product_id", "type": in|out|adjustment, "quantity", "reason"?}
    Any user_id in the body is ignored; the movement belongs to the caller.
    """
    payload = request.get_json(silent=True) or {}

    try:
        movement = stock_service.create_movement(payload, user_id=g.current_user["id"])
    except ValidationError as e:
        return invalid_input(e)
    except Exception as e:
        return server_error("create stock movement", e)

    return jsonify(movement), 201


@inventory_bp.get("/<product_id>")
@require_auth
def list_movements_route(product_id: str):
    """Movement history for one product, newest first."""
    try:
        return jsonify(stock_service.list_movements(product_id)), 200
    except Exception as e:
        return server_error("list stock movements", e)
