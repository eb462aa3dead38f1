"""
Rehabilitation Simulation

Payback, ROI and NPV of a rehabilitation investment funded up front and
recovered through incremental annual income (energy savings, higher rents)
plus any recurring subsidies.
"""

from dataclasses import dataclass
from typing import Literal, Optional, Union

from app.calculations.errors import (
    require_finite,
    require_non_negative,
    require_rate,
    require_years,
)
from app.calculations.irr import calculate_npv

NOT_RECOVERABLE = "not-recoverable"
DEFAULT_HORIZON_YEARS = 10

PaybackPeriod = Union[float, Literal["not-recoverable"]]


@dataclass(frozen=True)
class RehabSimulation:
    """Result of a rehabilitation simulation."""

    rehab_cost: float
    annual_benefit: float
    horizon_years: int
    payback_period: PaybackPeriod
    payback_months: Optional[float]
    roi: float
    horizon_roi: Optional[float]
    npv: Optional[float] = None

    @property
    def is_recoverable(self) -> bool:
        return self.payback_period != NOT_RECOVERABLE


def calculate_payback_period(cost: float, annual_benefit: float) -> PaybackPeriod:
    """
    Calculate simple payback in years.

    Returns NOT_RECOVERABLE when the benefit never repays the cost.
    """
    if annual_benefit <= 0:
        return NOT_RECOVERABLE
    return cost / annual_benefit


def simulate_rehab(
    rehab_cost: float,
    incremental_income: float,
    horizon_years: int = DEFAULT_HORIZON_YEARS,
    discount_rate: Optional[float] = None,
    annual_subsidies: float = 0.0,
) -> RehabSimulation:
    """
    Simulate a rehabilitation investment.

    Args:
        rehab_cost: Up-front rehabilitation cost (non-negative)
        incremental_income: Additional net income per year after the works
        horizon_years: Years over which ROI and NPV are measured, 1 to 30
        discount_rate: Optional discount rate; NPV is only computed when given
        annual_subsidies: Recurring subsidies added to the annual benefit

    Returns:
        RehabSimulation. ROI is 0 when the works cost nothing.

    Raises:
        InvalidInputError: If any input is missing or out of range
    """
    cost = require_non_negative(rehab_cost, "rehab_cost")
    income = require_finite(incremental_income, "incremental_income")
    subsidies = require_non_negative(annual_subsidies, "annual_subsidies")
    horizon = require_years(horizon_years, "horizon_years")
    rate = require_rate(discount_rate) if discount_rate is not None else None

    annual_benefit = income + subsidies

    payback = calculate_payback_period(cost, annual_benefit)
    payback_months = payback * 12 if payback != NOT_RECOVERABLE else None

    if cost > 0:
        roi = annual_benefit / cost
        horizon_roi = (annual_benefit * horizon - cost) / cost
    else:
        roi = 0.0
        horizon_roi = None

    npv = None
    if rate is not None:
        npv = calculate_npv(rate, cost, [annual_benefit] * horizon)

    return RehabSimulation(
        rehab_cost=cost,
        annual_benefit=annual_benefit,
        horizon_years=horizon,
        payback_period=payback,
        payback_months=payback_months,
        roi=roi,
        horizon_roi=horizon_roi,
        npv=npv,
    )
