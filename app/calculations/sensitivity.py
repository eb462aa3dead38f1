"""
Sensitivity Analysis

Recomputes NPV over a grid of shifted discount rates and scaled cash flows.
"""

from dataclasses import dataclass
from typing import List, Sequence

from app.calculations.errors import (
    InvalidInputError,
    require_non_negative,
    require_rate,
    require_series,
)
from app.calculations.irr import calculate_npv, discount_cash_flows

DEFAULT_RATE_OFFSETS = (-0.02, -0.01, 0.0, 0.01, 0.02)
DEFAULT_CASH_FLOW_MULTIPLIERS = (0.9, 1.0, 1.1)


@dataclass(frozen=True)
class SensitivityGrid:
    """
    NPV grid.

    grid[i][j] is the NPV at rates[i] (base rate + rate_offsets[i]) with every
    cash flow multiplied by cash_flow_multipliers[j].
    """

    base_discount_rate: float
    base_npv: float
    rates: List[float]
    rate_offsets: List[float]
    cash_flow_multipliers: List[float]
    grid: List[List[float]]


def calculate_sensitivity(
    base_discount_rate: float,
    base_cash_flows: Sequence[float],
    initial_investment: float,
    rate_offsets: Sequence[float] = DEFAULT_RATE_OFFSETS,
    cash_flow_multipliers: Sequence[float] = DEFAULT_CASH_FLOW_MULTIPLIERS,
) -> SensitivityGrid:
    """
    Build an NPV sensitivity grid.

    Only the base rate is held to [0, 1]. Shifted rates are evaluated as they
    fall, so a base rate of 0 yields rows at -2% and -1%; an offset that
    moves the rate to -100% or below is rejected.

    Raises:
        InvalidInputError: If any input is missing or out of range
    """
    base_rate = require_rate(base_discount_rate, "base_discount_rate")
    flows = require_series(base_cash_flows, "base_cash_flows")
    investment = require_non_negative(initial_investment, "initial_investment")
    offsets = require_series(rate_offsets, "rate_offsets")
    multipliers = require_series(cash_flow_multipliers, "cash_flow_multipliers")

    rates = []
    for offset in offsets:
        rate = base_rate + offset
        if rate <= -1:
            raise InvalidInputError(
                f"Rate offset {offset} moves the discount rate to {rate}, at or below -1"
            )
        rates.append(rate)

    base_npv = calculate_npv(base_rate, investment, flows)

    grid = []
    for rate in rates:
        row = []
        for multiplier in multipliers:
            scaled = [cf * multiplier for cf in flows]
            row.append(discount_cash_flows(rate, investment, scaled))
        grid.append(row)

    return SensitivityGrid(
        base_discount_rate=base_rate,
        base_npv=base_npv,
        rates=rates,
        rate_offsets=offsets,
        cash_flow_multipliers=multipliers,
        grid=grid,
    )
