"""Request payload validation helpers.

Each helper raises ``ValidationError`` with a field-level entry so the
route can return the offending field to the caller.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Optional

from ..errors import ValidationError

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _fail(field: str, message: str):
    raise ValidationError("Validation failed", errors=[{"field": field, "message": message}])


def require_object(payload: Any, field: str) -> Dict:
    if not isinstance(payload, dict):
        _fail(field, f"{field} must be an object")
    return payload


def require_str(payload: Dict, field: str, *, label: Optional[str] = None) -> str:
    value = payload.get(field)
    if not isinstance(value, str) or not value.strip():
        _fail(label or field, f"{label or field} is required")
    return value.strip()


def optional_str(payload: Dict, field: str, default: Optional[str] = "") -> Optional[str]:
    value = payload.get(field)
    if value is None:
        return default
    if not isinstance(value, str):
        _fail(field, f"{field} must be a string")
    return value.strip()


def require_email(payload: Dict, field: str, *, label: Optional[str] = None) -> str:
    value = require_str(payload, field, label=label)
    if not EMAIL_RE.match(value):
        _fail(label or field, f"{label or field} must be a valid email")
    return value.lower()


def require_choice(payload: Dict, field: str, choices: Iterable[str]) -> str:
    value = payload.get(field)
    allowed = sorted(choices)
    if value not in allowed:
        _fail(field, f"{field} must be one of {', '.join(allowed)}")
    return value


def optional_choice(payload: Dict, field: str, choices: Iterable[str]) -> Optional[str]:
    if payload.get(field) in (None, ""):
        return None
    return require_choice(payload, field, choices)


def ensure_int(value: Any, field: str, *, minimum: Optional[int] = None, maximum: Optional[int] = None) -> int:
    if isinstance(value, bool):
        _fail(field, f"{field} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        _fail(field, f"{field} must be an integer")
    if isinstance(value, float) and not value.is_integer():
        _fail(field, f"{field} must be an integer")
    if minimum is not None and number < minimum:
        _fail(field, f"{field} must be >= {minimum}")
    if maximum is not None and number > maximum:
        _fail(field, f"{field} must be <= {maximum}")
    return number


def ensure_decimal(value: Any, field: str, *, minimum: Optional[Decimal] = None) -> Decimal:
    if isinstance(value, bool) or value is None:
        _fail(field, f"{field} must be a number")
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        _fail(field, f"{field} must be a number")
    if not number.is_finite():
        _fail(field, f"{field} must be a number")
    if minimum is not None and number < minimum:
        _fail(field, f"{field} must be >= {minimum}")
    return number


def optional_bool(payload: Dict, field: str) -> Optional[bool]:
    value = payload.get(field)
    if value is None:
        return None
    if not isinstance(value, bool):
        _fail(field, f"{field} must be a boolean")
    return value


def parse_bool_arg(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")
