# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .services import session_service
from .storage import report_store_failure


def require_auth(f):
    """
    Require a valid bearer token.

    Sets:
    - g.current_user: the authenticated user record (dict)
    - g.session_context: the full SessionContext

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid or expired token
    - The token's user does not resolve in the active store
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]

        try:
            context = session_service.validate_session(token)
        except Exception as exc:
            current_app.logger.exception("Failed to validate session")
            report_store_failure(exc)
            return jsonify({"error": "Internal server error"}), 500

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """Require role == "admin". Must be stacked under @require_auth."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = getattr(g, "current_user", None)
        if user is None:
            return jsonify({"error": "Authentication required"}), 401
        if user.get("role") != "admin":
            return jsonify({"error": "Admin access required"}), 403
        return f(*args, **kwargs)

    return decorated_function
