"""
Financial metrics service.

Loads a building and its latest financial snapshot and feeds them to the
calculation engine. All arithmetic lives in app.calculations; this module only
handles lookups, defaults and shaping the results.
"""

import logging
import time
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.calculations import metrics
from app.calculations.cashflow import (
    ExpenseAssumptions,
    IncomeAssumptions,
    run_cashflow_projection,
)
from app.calculations.irr import IRRResult, calculate_irr, calculate_npv
from app.calculations.rehab import simulate_rehab
from app.calculations.sensitivity import SensitivityGrid, calculate_sensitivity
from app.config import Settings, get_settings
from app.db.models import Building, FinancialSnapshot

logger = logging.getLogger(__name__)


def new_scenario_id() -> str:
    return f"scenario_{int(time.time() * 1000)}"


class ResourceNotFoundError(Exception):
    """Raised when a requested record does not exist."""


class BuildingNotFoundError(ResourceNotFoundError):
    def __init__(self, building_id: str):
        super().__init__(f"Building not found: {building_id}")
        self.building_id = building_id


class SnapshotNotFoundError(ResourceNotFoundError):
    def __init__(self, building_id: str):
        super().__init__(
            f"No financial snapshot available for building {building_id}"
        )
        self.building_id = building_id


def run_irr(
    initial_investment: float,
    cash_flows: List[float],
    settings: Settings,
    tolerance: Optional[float] = None,
    max_iterations: Optional[int] = None,
) -> IRRResult:
    """Run the IRR search with the configured bracket and defaults."""
    return calculate_irr(
        initial_investment,
        cash_flows,
        tolerance=tolerance if tolerance is not None else settings.irr_tolerance,
        max_iterations=(
            max_iterations if max_iterations is not None else settings.irr_max_iterations
        ),
        lower_bound=settings.irr_lower_bound,
        upper_bound=settings.irr_upper_bound,
    )


def run_sensitivity(
    base_discount_rate: float,
    base_cash_flows: List[float],
    initial_investment: float,
    settings: Settings,
    rate_offsets: Optional[List[float]] = None,
    cash_flow_multipliers: Optional[List[float]] = None,
) -> SensitivityGrid:
    """Run the sensitivity grid with the configured axes as defaults."""
    return calculate_sensitivity(
        base_discount_rate,
        base_cash_flows,
        initial_investment,
        rate_offsets=(
            rate_offsets
            if rate_offsets is not None
            else settings.sensitivity_rate_offsets
        ),
        cash_flow_multipliers=(
            cash_flow_multipliers
            if cash_flow_multipliers is not None
            else settings.sensitivity_cash_flow_multipliers
        ),
    )


class FinancialMetricsService:
    """Building-scoped financial metrics and scenarios."""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_building(self, building_id: str) -> Building:
        building = (
            self.db.query(Building)
            .filter(Building.id == building_id, Building.is_deleted == False)
            .first()
        )
        if not building:
            raise BuildingNotFoundError(building_id)
        return building

    def get_latest_snapshot(self, building_id: str) -> Optional[FinancialSnapshot]:
        """Most recent snapshot by period end, newest first on ties."""
        return (
            self.db.query(FinancialSnapshot)
            .filter(
                FinancialSnapshot.building_id == building_id,
                FinancialSnapshot.is_deleted == False,
            )
            .order_by(
                FinancialSnapshot.period_end.desc(),
                FinancialSnapshot.created_at.desc(),
            )
            .first()
        )

    def _require_snapshot(self, building_id: str) -> FinancialSnapshot:
        snapshot = self.get_latest_snapshot(building_id)
        if not snapshot:
            logger.warning(f"No financial snapshot for building {building_id}")
            raise SnapshotNotFoundError(building_id)
        return snapshot

    # ------------------------------------------------------------------
    # Consolidated metrics
    # ------------------------------------------------------------------

    def building_metrics(self, building_id: str, period: str = "annual") -> Dict[str, Any]:
        """
        Compute every operating ratio for a building.

        Without a snapshot, only the valuation figures are reported and every
        ratio is None.
        """
        metrics.require_period(period)

        building = self.get_building(building_id)
        market_value = building.market_value or None
        estimated_value = building.estimated_value or None

        result = {
            "building_id": building_id,
            "period": period,
            "currency": "EUR",
            "noi": None,
            "gross_revenue": None,
            "total_opex": None,
            "cap_rate_pct": None,
            "operating_roi_pct": None,
            "dscr": None,
            "annual_debt_service": None,
            "opex_ratio_pct": None,
            "market_value": market_value,
            "estimated_value": estimated_value,
            "value_gap_pct": None,
        }

        snapshot = self.get_latest_snapshot(building_id)
        if not snapshot:
            return result

        noi_annual = metrics.calculate_noi(
            snapshot.gross_annual_revenue,
            snapshot.total_annual_opex,
            snapshot.other_annual_revenue,
        )
        dscr = snapshot.dscr
        if dscr is None:
            dscr = metrics.calculate_dscr(noi_annual, snapshot.annual_debt_service)

        result.update(
            {
                "currency": snapshot.currency,
                "noi": metrics.to_period(noi_annual, period),
                "gross_revenue": metrics.to_period(
                    metrics.gross_revenue(
                        snapshot.gross_annual_revenue, snapshot.other_annual_revenue
                    ),
                    period,
                ),
                "total_opex": metrics.to_period(snapshot.total_annual_opex, period),
                "cap_rate_pct": metrics.calculate_cap_rate(noi_annual, market_value),
                "operating_roi_pct": metrics.calculate_operating_roi(
                    noi_annual, market_value
                ),
                "dscr": dscr,
                "annual_debt_service": metrics.to_period(
                    snapshot.annual_debt_service, period
                ),
                "opex_ratio_pct": metrics.calculate_opex_ratio(
                    snapshot.total_annual_opex,
                    snapshot.gross_annual_revenue,
                    snapshot.other_annual_revenue,
                ),
                "value_gap_pct": metrics.calculate_value_gap(
                    market_value, estimated_value
                ),
            }
        )
        return result

    def _select(self, building_id: str, period: str, fields: List[str]) -> Dict[str, Any]:
        full = self.building_metrics(building_id, period)
        selected = {"building_id": building_id}
        for field in fields:
            selected[field] = full[field]
        return selected

    def roi(self, building_id: str, period: str = "annual") -> Dict[str, Any]:
        return self._select(
            building_id,
            period,
            ["operating_roi_pct", "noi", "market_value", "period", "currency"],
        )

    def cap_rate(self, building_id: str, period: str = "annual") -> Dict[str, Any]:
        return self._select(
            building_id,
            period,
            ["cap_rate_pct", "noi", "market_value", "period", "currency"],
        )

    def noi(self, building_id: str, period: str = "annual") -> Dict[str, Any]:
        return self._select(
            building_id,
            period,
            ["noi", "gross_revenue", "total_opex", "period", "currency"],
        )

    def dscr(self, building_id: str, period: str = "annual") -> Dict[str, Any]:
        return self._select(
            building_id,
            period,
            ["dscr", "noi", "annual_debt_service", "period", "currency"],
        )

    def opex_ratio(self, building_id: str, period: str = "annual") -> Dict[str, Any]:
        return self._select(
            building_id,
            period,
            ["opex_ratio_pct", "total_opex", "gross_revenue", "period", "currency"],
        )

    def value_gap(self, building_id: str) -> Dict[str, Any]:
        building = self.get_building(building_id)
        market_value = building.market_value or None
        estimated_value = building.estimated_value or None
        return {
            "building_id": building_id,
            "value_gap_pct": metrics.calculate_value_gap(market_value, estimated_value),
            "market_value": market_value,
            "estimated_value": estimated_value,
            "currency": "EUR",
        }

    # ------------------------------------------------------------------
    # Scenarios
    # ------------------------------------------------------------------

    def simulate_rehab(
        self,
        building_id: str,
        rehab_cost: float,
        incremental_income: Optional[float] = None,
        annual_subsidies: float = 0.0,
        horizon_years: Optional[int] = None,
        discount_rate: Optional[float] = None,
        period: str = "annual",
        scenario_id: Optional[str] = None,
        method: str = "heuristic",
    ) -> Dict[str, Any]:
        """
        Simulate a rehabilitation of a building.

        When no incremental income is given, the snapshot's estimated energy
        savings are used: energy OPEX * savings % / 100. The annual benefit is
        also reported per requested period.
        """
        metrics.require_period(period)

        building = self.get_building(building_id)
        snapshot = self._require_snapshot(building_id)

        if incremental_income is None:
            incremental_income = (
                (snapshot.annual_energy_opex or 0.0)
                * (snapshot.estimated_energy_savings_pct or 0.0)
                / 100
            )

        simulation = simulate_rehab(
            rehab_cost,
            incremental_income,
            horizon_years=(
                horizon_years
                if horizon_years is not None
                else self.settings.rehab_horizon_years
            ),
            discount_rate=discount_rate,
            annual_subsidies=annual_subsidies,
        )

        market_value = building.market_value or 0.0
        uplift_pct = snapshot.estimated_price_uplift_pct or 0.0
        estimated_value = metrics.apply_uplift(market_value, uplift_pct)

        notes = (
            f"Simulation using the {method} method. "
            f"Estimated energy savings: {incremental_income:.2f} {snapshot.currency}/year. "
            f"Estimated price uplift: {uplift_pct:.2f}%."
        )

        logger.info(
            f"Rehab simulation for building {building_id}: cost={simulation.rehab_cost}, "
            f"annual_benefit={simulation.annual_benefit}, payback={simulation.payback_period}"
        )

        return {
            "building_id": building_id,
            "scenario_id": scenario_id or new_scenario_id(),
            "simulation": simulation,
            "incremental_income": incremental_income,
            "period": period,
            "period_benefit": metrics.to_period(simulation.annual_benefit, period),
            "estimated_value": estimated_value,
            "value_gap_pct": metrics.calculate_value_gap(market_value, estimated_value),
            "price_uplift_pct": uplift_pct,
            "method": method,
            "notes": notes,
        }

    def run_cashflow(
        self,
        building_id: str,
        years: Optional[int] = None,
        discount_rate: Optional[float] = None,
        escalation: Optional[str] = None,
        income_growth: float = 0.0,
        expense_growth: float = 0.0,
        vacancy_rate: float = 0.0,
        start_date: Optional[date] = None,
        period: str = "annual",
        scenario_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Project a building's cash flows from its latest snapshot.

        The initial investment is the building's rehabilitation cost. The
        projection and its NPV are annual; period_series restates each
        year's net cash flow per requested period (monthly = annual / 12).
        """
        metrics.require_period(period)

        building = self.get_building(building_id)
        snapshot = self._require_snapshot(building_id)

        projection = run_cashflow_projection(
            years=years if years is not None else self.settings.default_projection_years,
            discount_rate=(
                discount_rate
                if discount_rate is not None
                else self.settings.default_discount_rate
            ),
            income=IncomeAssumptions(
                gross_income=snapshot.gross_annual_revenue,
                other_income=snapshot.other_annual_revenue or 0.0,
                growth_rate=income_growth,
                vacancy_rate=vacancy_rate,
            ),
            expenses=ExpenseAssumptions(
                operating_expenses=snapshot.total_annual_opex,
                growth_rate=expense_growth,
            ),
            escalation=escalation or self.settings.default_escalation,
            initial_investment=building.rehabilitation_cost or 0.0,
            start_date=start_date,
        )

        logger.info(
            f"Cash flow run for building {building_id}: {len(projection.series)} years, "
            f"npv={projection.npv:.2f}"
        )
        return {
            "building_id": building_id,
            "scenario_id": scenario_id or new_scenario_id(),
            "projection": projection,
            "period": period,
            "period_series": [metrics.to_period(value, period) for value in projection.series],
        }

    def npv(
        self,
        building_id: str,
        discount_rate: float,
        initial_investment: float,
        cash_flows: List[float],
    ) -> float:
        self.get_building(building_id)
        return calculate_npv(discount_rate, initial_investment, cash_flows)

    def irr(
        self,
        building_id: str,
        initial_investment: float,
        cash_flows: List[float],
        tolerance: Optional[float] = None,
        max_iterations: Optional[int] = None,
    ) -> IRRResult:
        self.get_building(building_id)
        result = run_irr(
            initial_investment,
            cash_flows,
            self.settings,
            tolerance=tolerance,
            max_iterations=max_iterations,
        )
        if not result.is_defined:
            logger.info(f"IRR undefined for building {building_id}: {result.reason}")
        return result

    def sensitivity(
        self,
        building_id: str,
        base_discount_rate: float,
        base_cash_flows: List[float],
        initial_investment: float,
        rate_offsets: Optional[List[float]] = None,
        cash_flow_multipliers: Optional[List[float]] = None,
    ) -> SensitivityGrid:
        self.get_building(building_id)
        return run_sensitivity(
            base_discount_rate,
            base_cash_flows,
            initial_investment,
            self.settings,
            rate_offsets=rate_offsets,
            cash_flow_multipliers=cash_flow_multipliers,
        )
