# backend/stockroom/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def engine_options_for(uri: str) -> dict:
    """
    Connection/response timeouts for the persistent store.

    SQLite only understands a busy timeout; networked databases get a pool
    checkout timeout and a driver connect timeout.
    """
    timeout = int(os.environ.get("DATABASE_TIMEOUT_SECONDS", "5"))
    if uri.startswith("sqlite"):
        return {"pool_pre_ping": True, "connect_args": {"timeout": timeout}}
    return {
        "pool_pre_ping": True,
        "pool_timeout": timeout,
        "connect_args": {"connect_timeout": timeout},
    }


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockroom.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///stockroom.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = engine_options_for(SQLALCHEMY_DATABASE_URI)

    # Bearer tokens
    JWT_ALGORITHM = "HS256"
    TOKEN_TTL_HOURS = int(os.environ.get("TOKEN_TTL_HOURS", "24"))
    PASSWORD_MIN_LENGTH = 6
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # How often (seconds) a request may re-probe the persistent store
    STORE_PROBE_INTERVAL_SECONDS = float(os.environ.get("STORE_PROBE_INTERVAL_SECONDS", "30"))

    # Demo catalog loaded into the in-memory fallback store
    FALLBACK_SEED_ENABLED = _env_flag("FALLBACK_SEED_ENABLED", True)

    # External identity provider login (POST /api/auth/google)
    FEDERATED_LOGIN_ENABLED = _env_flag("FEDERATED_LOGIN_ENABLED", False)

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    }

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
