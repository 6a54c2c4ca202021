# Overview: Service-layer operations for auth; encapsulates business logic and store work.

"""
Authentication Service

Every stock movement is attributed to a user. Local accounts
carry a bcrypt password hash; federated accounts carry an external_id and
no password.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12 unless BCRYPT_ROUNDS says otherwise)
- Emails are normalized (trimmed, lower-cased) before lookup and storage
- Bearer tokens are issued separately (see session_service.py)
"""

import bcrypt
from flask import current_app

from ..storage import InventoryStore, current_store
from ..validation import ConflictError, ValidationError, enforce_rules_user

PUBLIC_USER_FIELDS = ("id", "email", "name", "role", "provider", "created_at")


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt (cost factor from BCRYPT_ROUNDS, default 12).
    """
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Verify password against bcrypt hash.

    Federated accounts have no hash and can never log in with a password.
    """
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in storage
        return False


def check_string_fields(fields: dict) -> None:
    """Reject non-string credentials before they reach normalisation or bcrypt."""
    errors = [
        {"field": name, "message": "must be a string"}
        for name, value in fields.items()
        if value is not None and not isinstance(value, str)
    ]
    if errors:
        raise ValidationError(errors=errors)


def public_user(user: dict) -> dict:
    """User fields safe to return to clients (never the password hash)."""
    return {k: user.get(k) for k in PUBLIC_USER_FIELDS}


def register_user(
    *,
    email: str,
    password: str,
    name: str,
    role: str = "user",
    store: InventoryStore | None = None,
) -> dict:
    """
    Create a local account.

    Raises:
        ValidationError: bad email / short password / blank name
        ConflictError: email already registered
    """
    store = store or current_store()
    check_string_fields({"email": email, "password": password, "name": name})
    email = normalize_email(email)
    name = (name or "").strip()

    errors = []
    if not email:
        errors.append({"field": "email", "message": "is required"})
    if not name:
        errors.append({"field": "name", "message": "is required"})
    if password is None:
        errors.append({"field": "password", "message": "is required"})
    if errors:
        raise ValidationError(errors=errors)

    enforce_rules_user(
        {"email": email, "role": role},
        password=password,
        min_password_length=current_app.config.get("PASSWORD_MIN_LENGTH", 6),
    )

    if store.get_user_by_email(email):
        raise ConflictError("User already exists")

    return store.create_user({
        "email": email,
        "password_hash": hash_password(password),
        "name": name,
        "role": role,
        "provider": "local",
    })


def authenticate(email: str, password: str, *, store: InventoryStore | None = None) -> dict | None:
    """Return the user record if credentials match, otherwise None."""
    store = store or current_store()
    user = store.get_user_by_email(normalize_email(email))
    if not user or not verify_password(password or "", user.get("password_hash")):
        return None
    return user


def login_with_external_identity(
    *,
    email: str,
    name: str,
    external_id: str,
    provider: str = "google",
    store: InventoryStore | None = None,
) -> dict:
    """
    Resolve (or create) the account for an external identity.

    Order: existing link by external_id, then an account with the same email
    (the external_id is attached to it), then a new password-less account.
    """
    store = store or current_store()
    email = normalize_email(email)

    user = store.get_user_by_external_id(external_id)
    if user:
        return user

    user = store.get_user_by_email(email)
    if user is None:
        return store.create_user({
            "email": email,
            "name": (name or "").strip() or email,
            "role": "user",
            "external_id": external_id,
            "provider": provider,
        })

    if not user.get("external_id"):
        user = store.update_user(user["id"], {"external_id": external_id, "provider": provider})
    return user


def set_role(email: str, role: str, *, store: InventoryStore | None = None) -> dict | None:
    store = store or current_store()
    enforce_rules_user({"role": role})
    user = store.get_user_by_email(normalize_email(email))
    if not user:
        return None
    return store.update_user(user["id"], {"role": role})
