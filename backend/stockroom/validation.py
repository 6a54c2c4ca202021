from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Column, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .models.inventory import MOVEMENT_TYPES


# Maximum price: 9,999,999,999.99 (Numeric(12, 2))
MAX_PRICE = Decimal("9999999999.99")


class ValidationError(ValueError):
    """
    400-level input problem.

    errors holds itemized {"field", "message"} entries; str(e) joins them.
    """

    def __init__(self, message: str | None = None, errors: list[dict] | None = None):
        self.errors = list(errors or [])
        if message is None:
            message = "; ".join(f"{e['field']}: {e['message']}" for e in self.errors) or "Invalid input"
        super().__init__(message)


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - ignored_fields: keys silently dropped (e.g. server-owned ids echoed back by clients)
    """
    writable_fields: frozenset
    required_on_create: frozenset = field(default_factory=frozenset)
    ignored_fields: frozenset = field(default_factory=lambda: frozenset({"id", "_id", "created_at", "updated_at"}))


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Numeric (money) before Integer: accepts ints, floats and numeric strings
    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a number")
        if isinstance(value, (int, float, Decimal)):
            raw = str(value)
        elif isinstance(value, str) and value.strip():
            raw = value.strip()
        else:
            raise ValidationError(f"{col.key} must be a number")
        try:
            number = Decimal(raw)
        except InvalidOperation:
            raise ValidationError(f"{col.key} must be a number")
        if not number.is_finite():
            raise ValidationError(f"{col.key} must be a finite number")
        return number

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        # String input - must be plain digits (with optional leading minus)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        # Whole floats come from JSON clients that send 5.0
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
    column_overrides: dict[str, Any] | None = None,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    Every problem is collected; a single ValidationError carries them all.

    column_overrides maps a field to the column used for coercion, for fields
    whose API type differs from storage (reference ids are strings on the wire).
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload", [{"field": "_body", "message": "must be a JSON object"}])

    errors: list[dict] = []
    cols = _columns_by_key(model)
    overrides = column_overrides or {}

    if not partial:
        for name in sorted(policy.required_on_create):
            if name not in payload:
                errors.append({"field": name, "message": "is required"})

    patch: dict = {}

    for k, raw in payload.items():
        if k in policy.ignored_fields:
            continue
        if k not in policy.writable_fields or k not in cols:
            errors.append({"field": k, "message": "is not allowed"})
            continue

        col = overrides.get(k, cols[k])

        # NULL handling
        if raw is None:
            if not cols[k].nullable:
                errors.append({"field": k, "message": "cannot be null"})
                continue
            patch[k] = None
            continue

        try:
            val = _coerce_value(col, raw)
        except ValidationError as e:
            errors.append({"field": k, "message": str(e).removeprefix(f"{k} ")})
            continue

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not cols[k].nullable:
            if isinstance(val, str) and val == "":
                errors.append({"field": k, "message": "cannot be blank"})
                continue

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                errors.append({"field": k, "message": f"exceeds max length {col.type.length}"})
                continue

        patch[k] = val

    if errors:
        raise ValidationError(errors=errors)
    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    errors = []
    if "price" in patch and patch["price"] is not None:
        price = patch["price"]
        if price <= 0:
            errors.append({"field": "price", "message": "must be greater than 0"})
        elif price > MAX_PRICE:
            errors.append({"field": "price", "message": f"cannot exceed {MAX_PRICE}"})
        elif price != price.quantize(Decimal("0.01")):
            errors.append({"field": "price", "message": "must have at most 2 decimal places"})
    for name in ("stock_quantity", "min_stock_level"):
        if name in patch and patch[name] is not None and patch[name] < 0:
            errors.append({"field": name, "message": "must be >= 0"})
    if errors:
        raise ValidationError(errors=errors)


def enforce_rules_stock_movement(patch: dict) -> None:
    errors = []
    if patch.get("type") not in MOVEMENT_TYPES:
        errors.append({"field": "type", "message": f"must be one of: {', '.join(MOVEMENT_TYPES)}"})
    quantity = patch.get("quantity")
    if quantity == 0:
        errors.append({"field": "quantity", "message": "must be non-zero"})
    elif quantity is not None and patch.get("type") in ("in", "out") and quantity < 0:
        errors.append({"field": "quantity", "message": "must be > 0 for in/out movements"})
    if errors:
        raise ValidationError(errors=errors)


def enforce_rules_user(patch: dict, *, password: str | None = None, min_password_length: int = 6) -> None:
    errors = []
    email = patch.get("email")
    if email is not None and ("@" not in email or email.startswith("@") or email.endswith("@")):
        errors.append({"field": "email", "message": "must be a valid email address"})
    if "role" in patch and patch["role"] not in ("user", "admin"):
        errors.append({"field": "role", "message": "must be one of: user, admin"})
    if password is not None and len(password) < min_password_length:
        errors.append({"field": "password", "message": f"must be at least {min_password_length} characters"})
    if errors:
        raise ValidationError(errors=errors)


def reference_column(name: str) -> Column:
    """Unbound column used to coerce a reference id, which is a string on the wire."""
    return Column(name, String(64))
