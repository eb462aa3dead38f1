"""
Cash Flow Projections

Generates annual net cash flow projections for a building from base income
and operating expense figures.
"""

import enum
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

import numpy as np
from dateutil.relativedelta import relativedelta

from app.calculations.errors import (
    InvalidInputError,
    require_finite,
    require_non_negative,
    require_rate,
    require_years,
)
from app.calculations.irr import calculate_npv


class EscalationPolicy(str, enum.Enum):
    """How growth rates are applied from one year to the next."""

    compound = "compound"
    simple = "simple"
    flat = "flat"


@dataclass
class IncomeAssumptions:
    """Annual income base figures for year 1 and their growth."""

    gross_income: float
    other_income: float = 0.0
    growth_rate: float = 0.0
    vacancy_rate: float = 0.0


@dataclass
class ExpenseAssumptions:
    """Annual operating expense base figure for year 1 and its growth."""

    operating_expenses: float
    growth_rate: float = 0.0


@dataclass(frozen=True)
class ProjectionYear:
    """A single projected year."""

    year: int
    period_start: Optional[date]
    income: float
    expenses: float
    net_cash_flow: float


@dataclass(frozen=True)
class CashflowProjection:
    """Projected series and its NPV."""

    years: List[ProjectionYear]
    series: List[float]
    npv: float
    discount_rate: float
    initial_investment: float
    escalation: EscalationPolicy


def _require_growth(value: float, name: str) -> float:
    value = require_finite(value, name)
    if value <= -1:
        raise InvalidInputError(f"{name} must be greater than -1, got {value}")
    return value


def escalation_factors(
    growth_rate: float, years: int, policy: EscalationPolicy = EscalationPolicy.compound
) -> np.ndarray:
    """
    Calculate escalation factors for years 1..N.

    Year 1 always has a factor of 1.0.

    Args:
        growth_rate: Annual growth rate as decimal
        years: Number of years
        policy: 'compound' ((1+g)^(t-1)), 'simple' (1 + g*(t-1)) or 'flat' (1)
    """
    elapsed = np.arange(years, dtype=float)
    policy = EscalationPolicy(policy)

    if policy == EscalationPolicy.compound:
        return np.power(1 + growth_rate, elapsed)
    if policy == EscalationPolicy.simple:
        return 1 + growth_rate * elapsed
    return np.ones(years)


def run_cashflow_projection(
    years: int,
    discount_rate: float,
    income: IncomeAssumptions,
    expenses: ExpenseAssumptions,
    escalation: EscalationPolicy = EscalationPolicy.compound,
    initial_investment: float = 0.0,
    start_date: Optional[date] = None,
) -> CashflowProjection:
    """
    Project annual net cash flows and discount them.

    For each year t = 1..years:
        income(t)   = (gross + other) * factor_income(t) * (1 - vacancy)
        expenses(t) = operating_expenses * factor_expense(t)
        net(t)      = income(t) - expenses(t)

    Args:
        years: Projection horizon, 1 to 30
        discount_rate: Annual discount rate between 0 and 1
        income: Income base figures and growth
        expenses: Expense base figures and growth
        escalation: Escalation policy applied to both income and expenses
        initial_investment: Outlay at period 0 used for the NPV
        start_date: Optional first day of year 1, used to date each row

    Raises:
        InvalidInputError: If any input is missing or out of range
    """
    years = require_years(years)
    rate = require_rate(discount_rate)
    try:
        escalation = EscalationPolicy(escalation)
    except ValueError:
        raise InvalidInputError(f"Unknown escalation policy: {escalation}")

    gross = require_non_negative(income.gross_income, "gross_income")
    other = require_non_negative(income.other_income, "other_income")
    vacancy = require_rate(income.vacancy_rate, "vacancy_rate")
    income_growth = _require_growth(income.growth_rate, "income_growth_rate")
    opex = require_non_negative(expenses.operating_expenses, "operating_expenses")
    expense_growth = _require_growth(expenses.growth_rate, "expense_growth_rate")

    income_series = (gross + other) * (1 - vacancy) * escalation_factors(
        income_growth, years, escalation
    )
    expense_series = opex * escalation_factors(expense_growth, years, escalation)
    net_series = income_series - expense_series

    rows = []
    for i in range(years):
        period_start = start_date + relativedelta(years=i) if start_date else None
        rows.append(
            ProjectionYear(
                year=i + 1,
                period_start=period_start,
                income=float(income_series[i]),
                expenses=float(expense_series[i]),
                net_cash_flow=float(net_series[i]),
            )
        )

    series = net_series.tolist()
    npv = calculate_npv(rate, initial_investment, series)

    return CashflowProjection(
        years=rows,
        series=series,
        npv=npv,
        discount_rate=rate,
        initial_investment=float(initial_investment),
        escalation=escalation,
    )


def sum_cash_flows(
    projection: CashflowProjection, field: str, start_year: int = 1, end_year: Optional[int] = None
) -> float:
    """Sum a specific field across projected years for a range of years."""
    if end_year is None:
        end_year = len(projection.years)

    return sum(
        getattr(row, field)
        for row in projection.years
        if start_year <= row.year <= end_year
    )
