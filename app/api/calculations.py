"""
Financial calculation API endpoints.

These endpoints run the calculation engine on caller-supplied numbers and
touch no stored data.
"""

from fastapi import APIRouter
from pydantic import BaseModel
from typing import List, Literal, Optional, Union
from datetime import date

from app.api.responses import DataResponse
from app.calculations import cashflow, irr, rehab
from app.calculations.sensitivity import SensitivityGrid
from app.config import get_settings
from app.services.financial_metrics import run_irr, run_sensitivity

router = APIRouter()
settings = get_settings()


# ============================================================================
# NPV
# ============================================================================


class NPVInput(BaseModel):
    """Input for NPV calculation."""

    discount_rate: float
    initial_investment: float
    cash_flows: List[float]


class NPVResponse(BaseModel):
    """Response with NPV calculation."""

    npv: float
    discount_rate: float
    initial_investment: float
    periods: int


@router.post("/npv", response_model=DataResponse[NPVResponse])
async def calculate_npv_endpoint(inputs: NPVInput):
    """Calculate NPV for an initial investment and periodic cash flows."""
    npv = irr.calculate_npv(inputs.discount_rate, inputs.initial_investment, inputs.cash_flows)

    return DataResponse(
        data=NPVResponse(
            npv=npv,
            discount_rate=inputs.discount_rate,
            initial_investment=inputs.initial_investment,
            periods=len(inputs.cash_flows),
        )
    )


# ============================================================================
# IRR
# ============================================================================


class IRRInput(BaseModel):
    """Input for IRR calculation."""

    initial_investment: float
    cash_flows: List[float]
    tolerance: Optional[float] = None
    max_iterations: Optional[int] = None


class IRRResponse(BaseModel):
    """Response with IRR calculation. irr is "undefined" when no root exists."""

    irr: Union[float, Literal["undefined"]]
    iterations: int
    reason: Optional[str] = None
    multiple: Optional[float] = None
    profit: float
    default_discount_rate: float
    npv_at_default_rate: float


def irr_to_response(
    result: irr.IRRResult, initial_investment: float, cash_flows: List[float]
) -> IRRResponse:
    """Convert an IRR result to response schema."""
    series = irr.full_series(initial_investment, cash_flows)
    rate = settings.default_discount_rate

    return IRRResponse(
        irr=result.rate if result.is_defined else "undefined",
        iterations=result.iterations,
        reason=result.reason,
        multiple=irr.calculate_multiple(series),
        profit=irr.calculate_profit(series),
        default_discount_rate=rate,
        npv_at_default_rate=irr.calculate_npv(rate, initial_investment, cash_flows),
    )


@router.post("/irr", response_model=DataResponse[IRRResponse])
async def calculate_irr_endpoint(inputs: IRRInput):
    """Calculate IRR for an initial investment and periodic cash flows."""
    result = run_irr(
        inputs.initial_investment,
        inputs.cash_flows,
        settings,
        tolerance=inputs.tolerance,
        max_iterations=inputs.max_iterations,
    )

    return DataResponse(
        data=irr_to_response(result, inputs.initial_investment, inputs.cash_flows)
    )


# ============================================================================
# Cash flow projection
# ============================================================================


class CashflowInput(BaseModel):
    """Input for a cash flow projection."""

    years: Optional[int] = None
    discount_rate: Optional[float] = None
    escalation: Optional[str] = None

    # Income (annual, year 1)
    gross_income: float
    other_income: float = 0.0
    income_growth: float = 0.0
    vacancy_rate: float = 0.0

    # Expenses (annual, year 1)
    operating_expenses: float
    expense_growth: float = 0.0

    initial_investment: float = 0.0
    start_date: Optional[date] = None


class ProjectionYearResponse(BaseModel):
    """A single projected year."""

    year: int
    period_start: Optional[date] = None
    income: float
    expenses: float
    net_cash_flow: float


class CashflowResponse(BaseModel):
    """Response with projected cash flows and their NPV."""

    series: List[float]
    npv: float
    discount_rate: float
    initial_investment: float
    escalation: str
    total_net_cash_flow: float
    years: List[ProjectionYearResponse]


def projection_to_response(projection: cashflow.CashflowProjection) -> CashflowResponse:
    """Convert a projection to response schema."""
    return CashflowResponse(
        series=projection.series,
        npv=projection.npv,
        discount_rate=projection.discount_rate,
        initial_investment=projection.initial_investment,
        escalation=projection.escalation.value,
        total_net_cash_flow=cashflow.sum_cash_flows(projection, "net_cash_flow"),
        years=[
            ProjectionYearResponse(
                year=row.year,
                period_start=row.period_start,
                income=row.income,
                expenses=row.expenses,
                net_cash_flow=row.net_cash_flow,
            )
            for row in projection.years
        ],
    )


@router.post("/cashflow", response_model=DataResponse[CashflowResponse])
async def calculate_cashflow(inputs: CashflowInput):
    """Project annual cash flows and their NPV."""
    projection = cashflow.run_cashflow_projection(
        years=inputs.years if inputs.years is not None else settings.default_projection_years,
        discount_rate=(
            inputs.discount_rate
            if inputs.discount_rate is not None
            else settings.default_discount_rate
        ),
        income=cashflow.IncomeAssumptions(
            gross_income=inputs.gross_income,
            other_income=inputs.other_income,
            growth_rate=inputs.income_growth,
            vacancy_rate=inputs.vacancy_rate,
        ),
        expenses=cashflow.ExpenseAssumptions(
            operating_expenses=inputs.operating_expenses,
            growth_rate=inputs.expense_growth,
        ),
        escalation=inputs.escalation or settings.default_escalation,
        initial_investment=inputs.initial_investment,
        start_date=inputs.start_date,
    )

    return DataResponse(data=projection_to_response(projection))


# ============================================================================
# Rehabilitation
# ============================================================================


class RehabInput(BaseModel):
    """Input for a rehabilitation simulation."""

    rehab_cost: float
    incremental_income: float
    annual_subsidies: float = 0.0
    horizon_years: Optional[int] = None
    discount_rate: Optional[float] = None


class RehabResponse(BaseModel):
    """Rehabilitation payback, ROI and NPV."""

    rehab_cost: float
    annual_benefit: float
    horizon_years: int
    payback_period: Union[float, Literal["not-recoverable"]]
    payback_months: Optional[float] = None
    roi: float
    horizon_roi: Optional[float] = None
    npv: Optional[float] = None


def rehab_to_response(simulation: rehab.RehabSimulation) -> RehabResponse:
    """Convert a rehabilitation simulation to response schema."""
    return RehabResponse(
        rehab_cost=simulation.rehab_cost,
        annual_benefit=simulation.annual_benefit,
        horizon_years=simulation.horizon_years,
        payback_period=simulation.payback_period,
        payback_months=simulation.payback_months,
        roi=simulation.roi,
        horizon_roi=simulation.horizon_roi,
        npv=simulation.npv,
    )


@router.post("/rehab", response_model=DataResponse[RehabResponse])
async def calculate_rehab(inputs: RehabInput):
    """Simulate payback and ROI of a rehabilitation."""
    simulation = rehab.simulate_rehab(
        inputs.rehab_cost,
        inputs.incremental_income,
        horizon_years=(
            inputs.horizon_years
            if inputs.horizon_years is not None
            else settings.rehab_horizon_years
        ),
        discount_rate=inputs.discount_rate,
        annual_subsidies=inputs.annual_subsidies,
    )

    return DataResponse(data=rehab_to_response(simulation))


# ============================================================================
# Sensitivity
# ============================================================================


class SensitivityInput(BaseModel):
    """Input for an NPV sensitivity grid."""

    base_discount_rate: float
    base_cash_flows: List[float]
    initial_investment: float
    rate_offsets: Optional[List[float]] = None
    cash_flow_multipliers: Optional[List[float]] = None


class SensitivityResponse(BaseModel):
    """NPV grid: rows follow rates, columns follow cash flow multipliers."""

    base_discount_rate: float
    base_npv: float
    rates: List[float]
    rate_offsets: List[float]
    cash_flow_multipliers: List[float]
    grid: List[List[float]]


def sensitivity_to_response(result: SensitivityGrid) -> SensitivityResponse:
    """Convert a sensitivity grid to response schema."""
    return SensitivityResponse(
        base_discount_rate=result.base_discount_rate,
        base_npv=result.base_npv,
        rates=result.rates,
        rate_offsets=result.rate_offsets,
        cash_flow_multipliers=result.cash_flow_multipliers,
        grid=result.grid,
    )


@router.post("/sensitivity", response_model=DataResponse[SensitivityResponse])
async def calculate_sensitivity_endpoint(inputs: SensitivityInput):
    """Recompute NPV over shifted discount rates and scaled cash flows."""
    result = run_sensitivity(
        inputs.base_discount_rate,
        inputs.base_cash_flows,
        inputs.initial_investment,
        settings,
        rate_offsets=inputs.rate_offsets,
        cash_flow_multipliers=inputs.cash_flow_multipliers,
    )

    return DataResponse(data=sensitivity_to_response(result))
