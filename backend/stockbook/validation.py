from __future__ import annotations
from datetime import datetime
from stockbook.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any, Iterable


# Maximum amount: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_AMOUNT_CENTS = 999_999_999
MAX_QUANTITY = 1_000_000


class ValidationError(ValueError):
    """400-level input problem."""


@dataclass(frozen=True)
class LineInput:
    """One requested line on a sale, purchase, quotation or purchase order."""
    item_id: int
    quantity: int
    price_cents: int | None = None


def coerce_int(value: Any, field: str) -> int:
    # Strict: reject floats, bools and scientific notation
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def require_id(payload: dict, field: str) -> int:
    if payload.get(field) is None:
        raise ValidationError(f"{field} is required")
    value = coerce_int(payload[field], field)
    if value <= 0:
        raise ValidationError(f"{field} must be a positive id")
    return value


def optional_id(payload: dict, field: str) -> int | None:
    if payload.get(field) in (None, ""):
        return None
    return require_id(payload, field)


def positive_quantity(value: Any, field: str = "quantity") -> int:
    qty = coerce_int(value, field)
    if qty <= 0:
        raise ValidationError(f"{field} must be a positive number")
    if qty > MAX_QUANTITY:
        raise ValidationError(f"{field} cannot exceed {MAX_QUANTITY}")
    return qty


def amount_cents(value: Any, field: str, *, allow_zero: bool = True) -> int:
    cents = coerce_int(value, field)
    if cents < 0 or (cents == 0 and not allow_zero):
        raise ValidationError(f"{field} must be a {'non-negative' if allow_zero else 'positive'} amount")
    if cents > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT_CENTS}")
    return cents


def optional_amount_cents(payload: dict, field: str) -> int | None:
    if payload.get(field) is None:
        return None
    return amount_cents(payload[field], field)


def require_choice(value: Any, field: str, choices: Iterable[str]) -> str:
    allowed = list(choices)
    if not isinstance(value, str) or value.strip().upper() not in allowed:
        raise ValidationError(f"{field} must be one of: {', '.join(allowed)}")
    return value.strip().upper()


def require_text(value: Any, field: str, *, max_length: int = 255) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    text = value.strip()
    if len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text


def optional_text(value: Any, field: str, *, max_length: int = 255) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    text = value.strip()
    if len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text or None


def optional_datetime(value: Any, field: str) -> datetime | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be an ISO-8601 datetime")
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 datetime")


def parse_lines(raw: Any, *, price_field: str = "price_cents") -> list[LineInput]:
    """
    Validate the `items` array of a document payload.

    Each entry: {"item_id": int, "quantity": int > 0, <price_field>: int >= 0 (optional)}.
    Duplicate item ids are rejected so per-item stock arithmetic stays one row per item.
    """
    if not isinstance(raw, list) or not raw:
        raise ValidationError("At least one item is required")

    lines: list[LineInput] = []
    seen: set[int] = set()
    for index, entry in enumerate(raw, start=1):
        if not isinstance(entry, dict):
            raise ValidationError(f"items[{index}] must be an object")
        try:
            item_id = require_id(entry, "item_id")
            quantity = positive_quantity(entry.get("quantity"))
            price = optional_amount_cents(entry, price_field)
        except ValidationError as exc:
            raise ValidationError(f"items[{index}]: {exc}")
        if item_id in seen:
            raise ValidationError(f"items[{index}]: item {item_id} listed more than once")
        seen.add(item_id)
        lines.append(LineInput(item_id=item_id, quantity=quantity, price_cents=price))
    return lines


def json_object(payload: Any) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload
