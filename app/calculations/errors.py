"""
Input validation for the calculation engine.

Every public calculation validates its arguments up front and raises
InvalidInputError before doing any arithmetic.
"""

import math
from numbers import Integral, Real
from typing import Iterable, List, Optional

MIN_YEARS = 1
MAX_YEARS = 30


class InvalidInputError(ValueError):
    """Raised when a calculation input is missing or out of range."""


def require_finite(value: Optional[float], name: str) -> float:
    """Ensure a value is present and a finite real number."""
    if value is None:
        raise InvalidInputError(f"{name} is required")
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidInputError(f"{name} must be a number")
    value = float(value)
    if not math.isfinite(value):
        raise InvalidInputError(f"{name} must be a finite number")
    return value


def require_rate(value: Optional[float], name: str = "discount_rate") -> float:
    """Ensure a rate lies within [0, 1]."""
    value = require_finite(value, name)
    if value < 0 or value > 1:
        raise InvalidInputError(f"{name} must be between 0 and 1, got {value}")
    return value


def require_non_negative(value: Optional[float], name: str) -> float:
    """Ensure a monetary amount is present and not negative."""
    value = require_finite(value, name)
    if value < 0:
        raise InvalidInputError(f"{name} must not be negative, got {value}")
    return value


def require_series(values: Optional[Iterable[float]], name: str = "cash_flows") -> List[float]:
    """
    Ensure a sequence is non-empty and contains only finite numbers.

    Returns:
        The values as a list of floats
    """
    if values is None:
        raise InvalidInputError(f"{name} is required")
    series = [require_finite(v, f"{name}[{i}]") for i, v in enumerate(values)]
    if not series:
        raise InvalidInputError(f"{name} must contain at least one value")
    return series


def require_years(value: Optional[int], name: str = "years") -> int:
    """Ensure a horizon is a whole number of years within [1, 30]."""
    if value is None:
        raise InvalidInputError(f"{name} is required")
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise InvalidInputError(f"{name} must be an integer")
    if value < MIN_YEARS or value > MAX_YEARS:
        raise InvalidInputError(
            f"{name} must be between {MIN_YEARS} and {MAX_YEARS}, got {value}"
        )
    return int(value)
