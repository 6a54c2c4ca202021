# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product management routes.

SECURITY: All routes require authentication.
- Read operations are open to every authenticated user
- Write operations require the admin role

Stock changes made through create/update are recorded as stock movements
attributed to the caller.
"""
from flask import Blueprint, request, jsonify, g

from ..services import products_service
from ..storage import ProductQuery
from ..validation import ValidationError, ConflictError
from ..decorators import require_auth, require_admin
from ._helpers import invalid_input, not_found, server_error

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products_route():
    """
    List products with filters and pagination.

    Query params:
    - page: int (default 1)
    - limit: int (default 10, max 100)
    - search: substring of name, SKU or description (case-insensitive)
    - category_id: exact category match
    - status: in_stock | low_stock | out_of_stock
    """
    try:
        query = ProductQuery.from_args(request.args)
    except ValidationError as e:
        return invalid_input(e)

    try:
        result = products_service.list_products(query)
    except Exception as e:
        return server_error("list products", e)

    return jsonify({"products": result["items"], "total": result["total"]}), 200


@products_bp.get("/<product_id>")
@require_auth
def get_product_route(product_id: str):
    try:
        product = products_service.get_product(product_id)
    except Exception as e:
        return server_error("get product", e)

    if product is None:
        return not_found("Product")
    return jsonify(product), 200


@products_bp.post("")
@require_auth
@require_admin
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        created = products_service.create_product(payload, user_id=g.current_user["id"])
    except ValidationError as e:
        return invalid_input(e)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        return server_error("create product", e)

    return jsonify(created), 201


@products_bp.put("/<product_id>")
@require_auth
@require_admin
def update_product_route(product_id: str):
    """Partial update; only the fields sent are changed."""
    payload = request.get_json(silent=True) or {}

    try:
        updated = products_service.update_product(
            product_id, payload, user_id=g.current_user["id"]
        )
    except ValidationError as e:
        return invalid_input(e)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception as e:
        return server_error("update product", e)

    if updated is None:
        return not_found("Product")
    return jsonify(updated), 200


@products_bp.delete("/<product_id>")
@require_auth
@require_admin
def delete_product_route(product_id: str):
    try:
        deleted = products_service.delete_product(product_id)
    except Exception as e:
        return server_error("delete product", e)

    if not deleted:
        return not_found("Product")
    return jsonify({"message": "Product deleted"}), 200
