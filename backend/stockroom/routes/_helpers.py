# Overview: Shared JSON error responses for API routes.

from flask import current_app, jsonify

from ..storage import report_store_failure
from ..validation import ValidationError


def invalid_input(exc: ValidationError):
    errors = exc.errors or [{"field": "_body", "message": str(exc)}]
    return jsonify({"error": "Invalid input", "errors": errors}), 400


def not_found(what: str):
    return jsonify({"error": f"{what} not found"}), 404


def server_error(action: str, exc: BaseException):
    """Log with traceback, flag a lost database connection, hide details from the client."""
    current_app.logger.exception("Failed to %s", action)
    report_store_failure(exc)
    return jsonify({"error": "Internal server error"}), 500
