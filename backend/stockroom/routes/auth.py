# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- POST /register: local account, returns user + bearer token
- POST /login: email/password, returns user + bearer token
- POST /google: federated login (disabled unless FEDERATED_LOGIN_ENABLED)
- GET  /me: the caller
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..validation import ValidationError, ConflictError
from ..decorators import require_auth
from ._helpers import invalid_input, server_error


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_payload(user: dict, status: int, message: str):
    token = session_service.create_token(user)
    return jsonify({
        "user": auth_service.public_user(user),
        "token": token,
        "message": message,
    }), status


@auth_bp.post("/register")
def register_route():
    data = request.get_json(silent=True) or {}

    try:
        user = auth_service.register_user(
            email=data.get("email"),
            password=data.get("password"),
            name=data.get("name"),
        )
        return _session_payload(user, 201, "Registration successful")
    except ValidationError as e:
        return invalid_input(e)
    except ConflictError:
        return jsonify({"error": "User already exists"}), 409
    except Exception as e:
        return server_error("register user", e)


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and issue a bearer token.

    Token must be sent as "Authorization: Bearer <token>" on protected routes.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    try:
        auth_service.check_string_fields({"email": email, "password": password})
    except ValidationError as e:
        return invalid_input(e)

    if not email or not password:
        return invalid_input(ValidationError(errors=[
            {"field": name, "message": "is required"}
            for name, value in (("email", email), ("password", password))
            if not value
        ]))

    try:
        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401
        return _session_payload(user, 200, "Login successful")
    except Exception as e:
        return server_error("login user", e)


@auth_bp.post("/google")
def google_login_route():
    """
    Federated login.

    The identity provider's id_token is not verified here, so the route is
    only served when FEDERATED_LOGIN_ENABLED is set.
    """
    if not current_app.config.get("FEDERATED_LOGIN_ENABLED"):
        return jsonify({"error": "Federated login is disabled"}), 403

    data = request.get_json(silent=True) or {}
    try:
        auth_service.check_string_fields(
            {name: data.get(name) for name in ("id_token", "email", "name", "uid")}
        )
    except ValidationError as e:
        return invalid_input(e)

    missing = [name for name in ("id_token", "email", "name") if not data.get(name)]
    if missing:
        return invalid_input(ValidationError(errors=[
            {"field": name, "message": "is required"} for name in missing
        ]))

    email = auth_service.normalize_email(data["email"])
    external_id = data.get("uid") or f"google:{email}"

    try:
        user = auth_service.login_with_external_identity(
            email=email,
            name=data["name"],
            external_id=external_id,
        )
        return _session_payload(user, 200, "Google login successful")
    except ValidationError as e:
        return invalid_input(e)
    except ConflictError:
        return jsonify({"error": "User already exists"}), 409
    except Exception as e:
        return server_error("login user with Google", e)


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": auth_service.public_user(g.current_user)}), 200
