"""
Building Ratios

Operating ratios derived from a building's annual financial snapshot.
Percentages are returned on a 0-100 scale. Ratios whose denominator is
missing or zero are None.
"""

from typing import Optional

from app.calculations.errors import InvalidInputError

PERIODS = ("annual", "monthly")


def require_period(period: str) -> str:
    if period not in PERIODS:
        raise InvalidInputError(f"period must be one of {', '.join(PERIODS)}")
    return period


def to_period(value: Optional[float], period: str = "annual") -> Optional[float]:
    """Convert an annual amount to the requested period."""
    require_period(period)
    if value is None:
        return None
    return value / 12 if period == "monthly" else value


def gross_revenue(gross_income: float, other_income: Optional[float] = None) -> float:
    """Gross revenue including other income."""
    return gross_income + (other_income or 0.0)


def calculate_noi(
    gross_income: float, total_opex: float, other_income: Optional[float] = None
) -> float:
    """
    Calculate NOI (Net Operating Income).

    NOI = gross revenue + other revenue - total OPEX
    """
    return gross_revenue(gross_income, other_income) - total_opex


def calculate_cap_rate(noi: float, market_value: Optional[float]) -> Optional[float]:
    """Cap Rate = NOI / market value * 100."""
    if not market_value:
        return None
    return (noi / market_value) * 100


def calculate_operating_roi(noi: float, market_value: Optional[float]) -> Optional[float]:
    """Operating ROI, defined on the same basis as the cap rate."""
    return calculate_cap_rate(noi, market_value)


def calculate_opex_ratio(
    total_opex: float, gross_income: float, other_income: Optional[float] = None
) -> Optional[float]:
    """OPEX Ratio = total OPEX / gross revenue * 100."""
    revenue = gross_revenue(gross_income, other_income)
    if not revenue:
        return None
    return (total_opex / revenue) * 100


def calculate_value_gap(
    market_value: Optional[float], estimated_value: Optional[float]
) -> Optional[float]:
    """Value Gap = (estimated value - market value) / market value * 100."""
    if not market_value:
        return None
    return (((estimated_value or 0.0) - market_value) / market_value) * 100


def calculate_dscr(noi: float, annual_debt_service: Optional[float]) -> Optional[float]:
    """DSCR = NOI / annual debt service."""
    if not annual_debt_service:
        return None
    return noi / annual_debt_service


def apply_uplift(market_value: Optional[float], uplift_pct: Optional[float]) -> float:
    """Value after a percentage price uplift."""
    return (market_value or 0.0) * (1 + (uplift_pct or 0.0) / 100)
