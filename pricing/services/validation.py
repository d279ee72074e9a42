"""
Input guards shared by the pricing calculators.

Every calculator checks its arguments here before computing anything, so a call
either fails up front or runs to completion.
"""
import math
from decimal import Decimal


class ValidationError(Exception):
    """Raised when caller input is malformed; message is safe to show to staff."""

    def __init__(self, message: str, field: str = None):
        self.message = message
        self.field = field
        super().__init__(message)


def _is_number(value) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, Decimal):
        return value.is_finite()
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    return False


def require_amount(value, field: str):
    """Finite, non-negative number (prices, discount values, caps)."""
    if not _is_number(value):
        raise ValidationError(f"{field} must be a finite number.", field)
    if value < 0:
        raise ValidationError(f"{field} must not be negative.", field)
    return value


def require_positive(value, field: str):
    if not _is_number(value):
        raise ValidationError(f"{field} must be a finite number.", field)
    if value <= 0:
        raise ValidationError(f"{field} must be greater than 0.", field)
    return value


def require_count(value, field: str) -> int:
    """Non-negative whole number (session counts, validity days)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be a whole number.", field)
    if value < 0:
        raise ValidationError(f"{field} must not be negative.", field)
    return value


def require_percentage(value, field: str):
    require_amount(value, field)
    if value > 100:
        raise ValidationError(f"{field} must be between 0 and 100.", field)
    return value


def require_material_levels(levels, field: str = "material_levels") -> list:
    if levels is None or isinstance(levels, (str, bytes)):
        raise ValidationError(f"{field} must be a list of levels.", field)
    try:
        levels = list(levels)
    except TypeError:
        raise ValidationError(f"{field} must be a list of levels.", field)
    for level in levels:
        if isinstance(level, bool) or not isinstance(level, int):
            raise ValidationError(f"{field} must contain whole numbers.", field)
        if level < 1:
            raise ValidationError(f"{field} must contain levels of 1 or higher.", field)
    return levels
