"""
IRR and NPV Calculations

NPV follows the convention used throughout the building metrics:
the initial investment is an outlay at period 0 and cash flows start at
period 1. IRR is found by bisection over a fixed bracket so the result is
deterministic and bounded, and is reported as undefined rather than raised
when no root exists.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

from app.calculations.errors import (
    InvalidInputError,
    require_non_negative,
    require_rate,
    require_series,
)

MAX_ITERATIONS = 1000
TOLERANCE = 1e-6
LOWER_BOUND = -0.99
UPPER_BOUND = 10.0


@dataclass(frozen=True)
class IRRResult:
    """Outcome of an IRR search. A rate of None means the IRR is undefined."""

    rate: Optional[float]
    iterations: int = 0
    reason: Optional[str] = None

    @property
    def is_defined(self) -> bool:
        return self.rate is not None


def present_value(cash_flows: Sequence[float], rate: float) -> float:
    """
    Discount a full cash flow series where index 0 is the present period.

    No validation is done here; the rate may be any value above -1.

    Args:
        cash_flows: Array of cash flows (negative = outflow, positive = inflow)
        rate: Per-period discount rate (e.g., 0.10 for 10%)

    Returns:
        Sum of discounted cash flows
    """
    pv = 0.0
    for period, cf in enumerate(cash_flows):
        pv += cf / ((1 + rate) ** period)
    return pv


def calculate_npv(
    discount_rate: float, initial_investment: float, cash_flows: Sequence[float]
) -> float:
    """
    Calculate NPV (Net Present Value).

    NPV = -initial_investment + sum(cash_flows[t] / (1 + rate)^t), t = 1..N

    Args:
        discount_rate: Per-period discount rate between 0 and 1
        initial_investment: Capital outlay at period 0 (non-negative)
        cash_flows: Net cash flows for periods 1..N

    Returns:
        NPV value (may be negative)

    Raises:
        InvalidInputError: If any input is missing or out of range, or the
            result is not a finite number
    """
    rate = require_rate(discount_rate)
    investment = require_non_negative(initial_investment, "initial_investment")
    flows = require_series(cash_flows)

    return discount_cash_flows(rate, investment, flows)


def discount_cash_flows(
    rate: float, initial_investment: float, cash_flows: Sequence[float]
) -> float:
    """
    NPV of an outlay at period 0 followed by cash flows from period 1.

    Inputs are taken as already validated; the rate only has to be above -1.
    The result is always a finite number.
    """
    if rate <= -1:
        raise InvalidInputError(f"Discount rate must be greater than -1, got {rate}")

    npv = -initial_investment
    try:
        for period, cf in enumerate(cash_flows, start=1):
            npv += cf / ((1 + rate) ** period)
    except (OverflowError, ZeroDivisionError):
        npv = math.inf

    if not math.isfinite(npv):
        raise InvalidInputError("NPV is not a finite number, cash flows are too large")
    return npv


def _try_present_value(cash_flows: Sequence[float], rate: float) -> Optional[float]:
    # Long series overflow (or underflow to zero) near the bracket edges.
    try:
        return present_value(cash_flows, rate)
    except (OverflowError, ZeroDivisionError):
        return None


def calculate_irr(
    initial_investment: float,
    cash_flows: Sequence[float],
    tolerance: float = TOLERANCE,
    max_iterations: int = MAX_ITERATIONS,
    lower_bound: float = LOWER_BOUND,
    upper_bound: float = UPPER_BOUND,
) -> IRRResult:
    """
    Calculate IRR (Internal Rate of Return) by bisection.

    The series searched is [-initial_investment, *cash_flows]. The search
    stops once |NPV(rate)| < tolerance or after max_iterations halvings. Once
    a sign change is bracketed, a bracket that can no longer be split in
    floating point returns its midpoint: the root is known to machine
    precision even when rounding keeps |NPV| above the tolerance.

    Args:
        initial_investment: Capital outlay at period 0 (non-negative)
        cash_flows: Net cash flows for periods 1..N
        tolerance: Acceptable absolute NPV at the returned rate
        max_iterations: Maximum number of bisection steps
        lower_bound: Lowest rate searched (must be above -1)
        upper_bound: Highest rate searched

    Returns:
        IRRResult with the rate, or with rate=None and a reason when the IRR
        is undefined

    Raises:
        InvalidInputError: If the inputs or search settings are invalid
    """
    investment = require_non_negative(initial_investment, "initial_investment")
    flows = require_series(cash_flows)

    if tolerance <= 0:
        raise InvalidInputError("tolerance must be positive")
    if max_iterations < 1:
        raise InvalidInputError("max_iterations must be at least 1")
    if lower_bound <= -1 or upper_bound <= lower_bound:
        raise InvalidInputError(
            "IRR bracket must satisfy -1 < lower_bound < upper_bound"
        )

    series = full_series(investment, flows)

    has_positive = any(cf > 0 for cf in series)
    has_negative = any(cf < 0 for cf in series)
    if not has_positive or not has_negative:
        return IRRResult(
            rate=None,
            reason="Cash flows must contain both positive and negative values",
        )

    low, high = lower_bound, upper_bound
    npv_low = _try_present_value(series, low)
    npv_high = _try_present_value(series, high)

    if npv_low is None or npv_high is None:
        return IRRResult(
            rate=None, reason="NPV cannot be evaluated at the bracket bounds"
        )
    if abs(npv_low) < tolerance:
        return IRRResult(rate=low)
    if abs(npv_high) < tolerance:
        return IRRResult(rate=high)
    if (npv_low > 0) == (npv_high > 0):
        return IRRResult(
            rate=None,
            reason=f"NPV does not change sign between {low} and {high}",
        )

    iterations = 0
    while iterations < max_iterations:
        iterations += 1
        mid = (low + high) / 2
        npv_mid = present_value(series, mid)

        if abs(npv_mid) < tolerance:
            return IRRResult(rate=mid, iterations=iterations)

        # Bracket cannot be split further; rounding in NPV is above tolerance.
        if mid == low or mid == high:
            return IRRResult(rate=mid, iterations=iterations)

        if (npv_mid > 0) == (npv_low > 0):
            low, npv_low = mid, npv_mid
        else:
            high = mid

    return IRRResult(
        rate=None,
        iterations=iterations,
        reason="IRR calculation did not converge",
    )


def calculate_multiple(cash_flows: Sequence[float]) -> Optional[float]:
    """
    Calculate equity multiple.

    Args:
        cash_flows: Array of cash flows (investments are negative)

    Returns:
        Multiple (e.g., 2.0 = 2.0x return), or None without any outflow
    """
    total_inflows = sum(cf for cf in cash_flows if cf > 0)
    total_outflows = abs(sum(cf for cf in cash_flows if cf < 0))

    if total_outflows == 0:
        return None

    return total_inflows / total_outflows


def calculate_profit(cash_flows: Sequence[float]) -> float:
    """Calculate profit (total inflows minus total outflows)."""
    return sum(cash_flows)


def full_series(initial_investment: float, cash_flows: Sequence[float]) -> List[float]:
    """Prepend the initial outlay to a period 1..N cash flow series."""
    return [-initial_investment] + list(cash_flows)
