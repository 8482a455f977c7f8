# Overview: Payload validation against model column metadata plus business rules.

"""
Request payload validation.

Two layers:
1. validate_payload() checks a JSON body against a model's columns and a
   ModelValidationPolicy (which keys a client may set, which are needed on
   create). Types, nullability and String lengths come from the columns.
2. enforce_rules_*() add what the columns cannot express (money ranges,
   non-negative stock counts, positive debts).

Both raise ValidationError; routes turn it into a 400.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .services.stock_service import STOCK_FIELDS


# 9,999,999.99 in cents
MAX_AMOUNT_CENTS = 999_999_999


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


class NotFoundError(LookupError):
    """404-level missing record."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    writable_fields: keys a client may send at all
    required_on_create: keys that must be present when partial=False
    """
    writable_fields: set[str]
    required_on_create: set[str] | None = None


def _parse_int(key: str, value: Any) -> int:
    # bool is an int subclass; JSON true/false are not counts
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a whole number")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return int(text)
    raise ValidationError(f"{key} must be a whole number")


def _coerce(col, value: Any) -> Any:
    if isinstance(col.type, Integer):
        return _parse_int(col.key, value)

    if isinstance(col.type, Boolean):
        if not isinstance(value, bool):
            raise ValidationError(f"{col.key} must be true or false")
        return value

    if isinstance(col.type, (String, Text)):
        text = str(value).strip()
        if not text and not col.nullable:
            raise ValidationError(f"{col.key} cannot be blank")
        if isinstance(col.type, String) and col.type.length and len(text) > col.type.length:
            raise ValidationError(f"{col.key} exceeds max length {col.type.length}")
        return text

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Return a cleaned patch holding only writable, type-checked fields.

    partial=False is create semantics (required_on_create enforced);
    partial=True validates only the keys provided.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted((policy.required_on_create or set()) - payload.keys())
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {c.key: c for c in model.__mapper__.columns}

    patch: dict = {}
    for key, raw in payload.items():
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        col = columns.get(key)
        if col is None:
            raise ValidationError(f"Unknown field: {key}")

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{key} cannot be null")
            patch[key] = None
        else:
            patch[key] = _coerce(col, raw)

    return patch


def _check_cents(patch: dict, field: str) -> None:
    value = patch.get(field)
    if value is None:
        return
    if value < 0:
        raise ValidationError(f"{field} must be >= 0")
    if value > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT_CENTS / 100:,.2f}")


def enforce_rules_product(patch: dict) -> None:
    """
    Prices within range, stock counts and reorder level non-negative.

    prev < sold is allowed: direct edits may leave availability negative,
    only transfers are guarded.
    """
    _check_cents(patch, "purchase_price_cents")
    _check_cents(patch, "selling_price_cents")

    for field in (*STOCK_FIELDS, "reorder_level"):
        if patch.get(field) is not None and patch[field] < 0:
            raise ValidationError(f"{field} must be >= 0")


def enforce_rules_debtor(patch: dict) -> None:
    _check_cents(patch, "amount_cents")
    if patch.get("amount_cents") == 0:
        raise ValidationError("amount_cents must be greater than 0")


def json_object(payload: Any) -> dict:
    """Request body as a dict; a missing body reads as {}."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload
