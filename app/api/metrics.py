"""
Building metrics and scenario API endpoints.

Metrics are derived from the building's latest financial snapshot; scenario
endpoints run the calculation engine scoped to an existing building.
"""

from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.calculations import (
    CashflowResponse,
    IRRResponse,
    NPVResponse,
    RehabResponse,
    SensitivityResponse,
    irr_to_response,
    projection_to_response,
    rehab_to_response,
    sensitivity_to_response,
)
from app.api.responses import DataResponse
from app.db.database import get_db
from app.services.financial_metrics import FinancialMetricsService

router = APIRouter()

Period = Literal["annual", "monthly"]


def get_metrics_service(db: Session = Depends(get_db)) -> FinancialMetricsService:
    """Dependency for the building metrics service."""
    return FinancialMetricsService(db)


# ============================================================================
# Metrics
# ============================================================================


class BuildingMetricsResponse(BaseModel):
    """Consolidated building metrics."""

    building_id: str
    period: str
    currency: str
    noi: Optional[float] = None
    gross_revenue: Optional[float] = None
    total_opex: Optional[float] = None
    cap_rate_pct: Optional[float] = None
    operating_roi_pct: Optional[float] = None
    dscr: Optional[float] = None
    annual_debt_service: Optional[float] = None
    opex_ratio_pct: Optional[float] = None
    market_value: Optional[float] = None
    estimated_value: Optional[float] = None
    value_gap_pct: Optional[float] = None


@router.get("/{building_id}/metrics", response_model=DataResponse[BuildingMetricsResponse])
async def get_building_metrics(
    building_id: str,
    period: Period = "annual",
    service: FinancialMetricsService = Depends(get_metrics_service),
):
    """Get all metrics for a building."""
    return DataResponse(
        data=BuildingMetricsResponse(**service.building_metrics(building_id, period))
    )


@router.get("/{building_id}/roi")
async def get_building_roi(
    building_id: str,
    period: Period = "annual",
    service: FinancialMetricsService = Depends(get_metrics_service),
):
    """Get the operating ROI of a building."""
    return {"data": service.roi(building_id, period)}


@router.get("/{building_id}/cap-rate")
async def get_building_cap_rate(
    building_id: str,
    period: Period = "annual",
    service: FinancialMetricsService = Depends(get_metrics_service),
):
    """Get the cap rate of a building."""
    return {"data": service.cap_rate(building_id, period)}


@router.get("/{building_id}/noi")
async def get_building_noi(
    building_id: str,
    period: Period = "annual",
    service: FinancialMetricsService = Depends(get_metrics_service),
):
    """Get the NOI of a building."""
    return {"data": service.noi(building_id, period)}


@router.get("/{building_id}/dscr")
async def get_building_dscr(
    building_id: str,
    period: Period = "annual",
    service: FinancialMetricsService = Depends(get_metrics_service),
):
    """Get the DSCR of a building."""
    return {"data": service.dscr(building_id, period)}


@router.get("/{building_id}/opex-ratio")
async def get_building_opex_ratio(
    building_id: str,
    period: Period = "annual",
    service: FinancialMetricsService = Depends(get_metrics_service),
):
    """Get the OPEX ratio of a building."""
    return {"data": service.opex_ratio(building_id, period)}


@router.get("/{building_id}/value-gap")
async def get_building_value_gap(
    building_id: str,
    service: FinancialMetricsService = Depends(get_metrics_service),
):
    """Get the gap between estimated and market value."""
    return {"data": service.value_gap(building_id)}


# ============================================================================
# Scenarios
# ============================================================================


class BuildingRehabInput(BaseModel):
    """Rehabilitation scenario for a building."""

    rehab_cost: float
    incremental_income: Optional[float] = None
    annual_subsidies: float = 0.0
    horizon_years: Optional[int] = None
    discount_rate: Optional[float] = None
    period: Period = "annual"
    scenario_id: Optional[str] = None
    method: str = "heuristic"


class BuildingRehabResponse(RehabResponse):
    """Rehabilitation result with the building's valuation effect."""

    building_id: str
    scenario_id: str
    incremental_income: float
    period: str
    period_benefit: float
    estimated_value: float
    value_gap_pct: Optional[float] = None
    price_uplift_pct: float
    method: str
    notes: str


@router.post(
    "/{building_id}/scenarios/rehab/simulate",
    response_model=DataResponse[BuildingRehabResponse],
)
async def simulate_building_rehab(
    building_id: str,
    inputs: BuildingRehabInput,
    service: FinancialMetricsService = Depends(get_metrics_service),
):
    """Simulate a rehabilitation and calculate payback and ROI."""
    result = service.simulate_rehab(
        building_id,
        inputs.rehab_cost,
        incremental_income=inputs.incremental_income,
        annual_subsidies=inputs.annual_subsidies,
        horizon_years=inputs.horizon_years,
        discount_rate=inputs.discount_rate,
        period=inputs.period,
        scenario_id=inputs.scenario_id,
        method=inputs.method,
    )

    return DataResponse(
        data=BuildingRehabResponse(
            **rehab_to_response(result["simulation"]).model_dump(),
            building_id=building_id,
            scenario_id=result["scenario_id"],
            incremental_income=result["incremental_income"],
            period=result["period"],
            period_benefit=result["period_benefit"],
            estimated_value=result["estimated_value"],
            value_gap_pct=result["value_gap_pct"],
            price_uplift_pct=result["price_uplift_pct"],
            method=result["method"],
            notes=result["notes"],
        )
    )


class BuildingCashflowInput(BaseModel):
    """Cash flow run for a building."""

    years: Optional[int] = None
    discount_rate: Optional[float] = None
    escalation: Optional[str] = None
    income_growth: float = 0.0
    expense_growth: float = 0.0
    vacancy_rate: float = 0.0
    start_date: Optional[date] = None
    period: Period = "annual"
    scenario_id: Optional[str] = None


class BuildingCashflowResponse(CashflowResponse):
    """Annual projection plus each year's net cash flow per requested period."""

    building_id: str
    scenario_id: str
    period: str
    period_series: List[float]


@router.post(
    "/{building_id}/scenarios/cashflow/run",
    response_model=DataResponse[BuildingCashflowResponse],
)
async def run_building_cashflow(
    building_id: str,
    inputs: BuildingCashflowInput,
    service: FinancialMetricsService = Depends(get_metrics_service),
):
    """Project a building's cash flows from its latest snapshot."""
    result = service.run_cashflow(
        building_id,
        years=inputs.years,
        discount_rate=inputs.discount_rate,
        escalation=inputs.escalation,
        income_growth=inputs.income_growth,
        expense_growth=inputs.expense_growth,
        vacancy_rate=inputs.vacancy_rate,
        start_date=inputs.start_date,
        period=inputs.period,
        scenario_id=inputs.scenario_id,
    )

    return DataResponse(
        data=BuildingCashflowResponse(
            **projection_to_response(result["projection"]).model_dump(),
            building_id=building_id,
            scenario_id=result["scenario_id"],
            period=result["period"],
            period_series=result["period_series"],
        )
    )


class BuildingNPVInput(BaseModel):
    discount_rate: float
    initial_investment: float
    cash_flows: List[float]
    scenario_id: Optional[str] = None


class BuildingNPVResponse(NPVResponse):
    building_id: str
    scenario_id: Optional[str] = None


@router.post(
    "/{building_id}/scenarios/npv",
    response_model=DataResponse[BuildingNPVResponse],
)
async def calculate_building_npv(
    building_id: str,
    inputs: BuildingNPVInput,
    service: FinancialMetricsService = Depends(get_metrics_service),
):
    """Calculate NPV for a building scenario."""
    npv = service.npv(
        building_id, inputs.discount_rate, inputs.initial_investment, inputs.cash_flows
    )

    return DataResponse(
        data=BuildingNPVResponse(
            building_id=building_id,
            scenario_id=inputs.scenario_id,
            npv=npv,
            discount_rate=inputs.discount_rate,
            initial_investment=inputs.initial_investment,
            periods=len(inputs.cash_flows),
        )
    )


class BuildingIRRInput(BaseModel):
    initial_investment: float
    cash_flows: List[float]
    scenario_id: Optional[str] = None
    tolerance: Optional[float] = None
    max_iterations: Optional[int] = None


class BuildingIRRResponse(IRRResponse):
    building_id: str
    scenario_id: Optional[str] = None


@router.post(
    "/{building_id}/scenarios/irr",
    response_model=DataResponse[BuildingIRRResponse],
)
async def calculate_building_irr(
    building_id: str,
    inputs: BuildingIRRInput,
    service: FinancialMetricsService = Depends(get_metrics_service),
):
    """Calculate IRR for a building scenario."""
    result = service.irr(
        building_id,
        inputs.initial_investment,
        inputs.cash_flows,
        tolerance=inputs.tolerance,
        max_iterations=inputs.max_iterations,
    )

    return DataResponse(
        data=BuildingIRRResponse(
            **irr_to_response(result, inputs.initial_investment, inputs.cash_flows).model_dump(),
            building_id=building_id,
            scenario_id=inputs.scenario_id,
        )
    )


class BuildingSensitivityInput(BaseModel):
    base_discount_rate: float
    base_cash_flows: List[float]
    initial_investment: float
    rate_offsets: Optional[List[float]] = None
    cash_flow_multipliers: Optional[List[float]] = None
    scenario_id: Optional[str] = None


class BuildingSensitivityResponse(SensitivityResponse):
    building_id: str
    scenario_id: Optional[str] = None


@router.post(
    "/{building_id}/scenarios/sensitivity",
    response_model=DataResponse[BuildingSensitivityResponse],
)
async def calculate_building_sensitivity(
    building_id: str,
    inputs: BuildingSensitivityInput,
    service: FinancialMetricsService = Depends(get_metrics_service),
):
    """Build an NPV sensitivity grid for a building scenario."""
    result = service.sensitivity(
        building_id,
        inputs.base_discount_rate,
        inputs.base_cash_flows,
        inputs.initial_investment,
        rate_offsets=inputs.rate_offsets,
        cash_flow_multipliers=inputs.cash_flow_multipliers,
    )

    return DataResponse(
        data=BuildingSensitivityResponse(
            **sensitivity_to_response(result).model_dump(),
            building_id=building_id,
            scenario_id=inputs.scenario_id,
        )
    )
