# Overview: Flask API routes for category operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..services import categories_service
from ..validation import ValidationError, ConflictError
from ..decorators import require_auth, require_admin
from ._helpers import invalid_input, not_found, server_error

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
def list_categories_route():
    try:
        return jsonify(categories_service.list_categories()), 200
    except Exception as e:
        return server_error("list categories", e)


@categories_bp.post("")
@require_auth
@require_admin
def create_category_route():
    payload = request.get_json(silent=True) or {}
    try:
        created = categories_service.create_category(payload)
    except ValidationError as e:
        return invalid_input(e)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        return server_error("create category", e)
    return jsonify(created), 201


@categories_bp.put("/<category_id>")
@require_auth
@require_admin
def update_category_route(category_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        updated = categories_service.update_category(category_id, payload)
    except ValidationError as e:
        return invalid_input(e)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        return server_error("update category", e)

    if updated is None:
        return not_found("Category")
    return jsonify(updated), 200


@categories_bp.delete("/<category_id>")
@require_auth
@require_admin
def delete_category_route(category_id: str):
    try:
        deleted = categories_service.delete_category(category_id)
    except Exception as e:
        return server_error("delete category", e)

    if not deleted:
        return not_found("Category")
    return jsonify({"message": "Category deleted"}), 200
