# Overview: Service-layer operations for sessions; issues and validates bearer tokens.

"""
Session Token Service

Tokens are signed JWTs (HS256, SECRET_KEY) rather than rows in the
database: the persistent store may be unreachable, and a token has to be
checkable whichever backend is serving the request.

Claims:
- sub:   user id (string, as returned by the store)
- role:  role at issue time (informational; authorization re-reads the user)
- store: backend that issued the user record ("persistent" / "memory")
- iat / exp
"""

from dataclasses import dataclass
from datetime import timedelta, timezone

from flask import current_app
from jose import JWTError, jwt

from ..storage import InventoryStore, current_store
from ..time_utils import utcnow


@dataclass
class SessionContext:
    """Resolved caller identity for one request."""
    user: dict
    claims: dict

    @property
    def user_id(self) -> str:
        return self.user["id"]

    @property
    def is_admin(self) -> bool:
        return self.user.get("role") == "admin"


def create_token(user: dict, *, store: InventoryStore | None = None) -> str:
    store = store or current_store()
    now = utcnow().replace(tzinfo=timezone.utc)
    ttl = timedelta(hours=current_app.config.get("TOKEN_TTL_HOURS", 24))
    claims = {
        "sub": user["id"],
        "role": user.get("role"),
        "store": store.name,
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(
        claims,
        current_app.config["SECRET_KEY"],
        algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
    )


def decode_token(token: str) -> dict | None:
    """Return verified claims, or None for a bad signature / expired token."""
    try:
        return jwt.decode(
            token,
            current_app.config["SECRET_KEY"],
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
        )
    except JWTError:
        return None


def validate_session(token: str, *, store: InventoryStore | None = None) -> SessionContext | None:
    """
    Validate token and load the user it names.

    Returns None if the token is invalid/expired or the user no longer
    resolves in the active store.
    """
    claims = decode_token(token)
    if not claims or not claims.get("sub"):
        return None

    store = store or current_store()
    user = store.get_user(claims["sub"])
    if not user:
        return None
    return SessionContext(user=user, claims=claims)
