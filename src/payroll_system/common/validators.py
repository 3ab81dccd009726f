from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from ..core.constants import MONEY_QUANT
from ..core.exceptions import ValidationError


def require_non_empty(value: str | None, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required", field=field_name)
    return value.strip()


def require_amount(value: Any, field_name: str = "amount") -> Decimal:
    """Parse a strictly positive money amount rounded to 2 places."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(f"{field_name} must be greater than 0", field=field_name)
    return amount.quantize(MONEY_QUANT)


def require_range(value: Any, field_name: str, *, minimum: float, maximum: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    if number < minimum or number > maximum:
        raise ValidationError(f"{field_name} must be between {minimum:g} and {maximum:g}", field=field_name)
    return number
