"""
Tests for financial calculation engine.
"""

import pytest
from datetime import date

from app.calculations.errors import InvalidInputError
from app.calculations.irr import (
    calculate_irr,
    calculate_multiple,
    calculate_npv,
    calculate_profit,
    discount_cash_flows,
    full_series,
    present_value,
)
from app.calculations.cashflow import (
    EscalationPolicy,
    ExpenseAssumptions,
    IncomeAssumptions,
    escalation_factors,
    run_cashflow_projection,
    sum_cash_flows,
)
from app.calculations.rehab import NOT_RECOVERABLE, simulate_rehab
from app.calculations.sensitivity import calculate_sensitivity
from app.calculations import metrics


class TestNPVCalculations:
    """Test NPV calculation."""

    def test_calculate_npv_reference_scenario(self):
        """Test NPV with a three-year series at 10%."""
        npv = calculate_npv(0.10, 10000, [3000, 4000, 5000])
        expected = 3000 / 1.1 + 4000 / 1.21 + 5000 / 1.331 - 10000
        assert npv == pytest.approx(expected, abs=1e-6)
        assert npv == pytest.approx(-210.37, abs=0.01)

    def test_zero_rate_is_plain_sum(self):
        """Test NPV at 0% is the undiscounted sum minus the investment."""
        npv = calculate_npv(0, 1000, [300, 400, 500])
        assert npv == pytest.approx(200)

    def test_positive_npv(self):
        """Test NPV is positive when returns exceed cost."""
        npv = calculate_npv(0.10, 100, [50, 50, 50])
        assert npv > 0

    def test_full_rate_range_accepted(self):
        """Test both ends of the rate range are valid."""
        assert calculate_npv(1.0, 0, [200]) == pytest.approx(100)
        assert calculate_npv(0.0, 0, [200]) == pytest.approx(200)

    @pytest.mark.parametrize("rate", [-0.01, 1.01, 1.5])
    def test_rate_out_of_range(self, rate):
        with pytest.raises(InvalidInputError):
            calculate_npv(rate, 100, [50])

    def test_empty_cash_flows(self):
        with pytest.raises(InvalidInputError):
            calculate_npv(0.1, 100, [])

    def test_negative_investment(self):
        with pytest.raises(InvalidInputError):
            calculate_npv(0.1, -1, [50])

    def test_missing_investment(self):
        with pytest.raises(InvalidInputError):
            calculate_npv(0.1, None, [50])

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_cash_flow(self, bad):
        with pytest.raises(InvalidInputError):
            calculate_npv(0.1, 100, [50, bad])

    def test_invalid_input_is_value_error(self):
        """Test callers catching ValueError still see validation failures."""
        with pytest.raises(ValueError):
            calculate_npv(2, 100, [50])

    def test_present_value_period_zero_undiscounted(self):
        assert present_value([-100, 110], 0.10) == pytest.approx(0)

    def test_overflowing_sum_rejected(self):
        """Test finite inputs whose sum overflows never return infinity."""
        with pytest.raises(InvalidInputError):
            calculate_npv(0.0, 0, [1e308, 1e308])

    def test_discount_below_zero_rate(self):
        assert discount_cash_flows(-0.5, 100, [50]) == pytest.approx(0)
        with pytest.raises(InvalidInputError):
            discount_cash_flows(-1.0, 100, [50])


class TestIRRCalculations:
    """Test IRR calculation functions."""

    def test_calculate_irr_simple(self):
        """Test IRR calculation with simple cash flows."""
        # Investment of 100, returns of 110 after 1 year = 10% return
        result = calculate_irr(100, [110])
        assert result.is_defined
        assert result.rate == pytest.approx(0.10, abs=1e-6)

    def test_calculate_irr_multi_period(self):
        """Test IRR with multiple periods."""
        # Investment of 100, annual returns of 20, sale of 100 at end
        result = calculate_irr(100, [20, 20, 20, 20, 120])
        assert result.rate == pytest.approx(0.20, abs=1e-6)

    def test_irr_zeroes_npv(self):
        result = calculate_irr(10000, [3000, 4000, 5000, 2000])
        series = full_series(10000, [3000, 4000, 5000, 2000])
        assert abs(present_value(series, result.rate)) < 1e-6

    def test_irr_negative_returns(self):
        """Test IRR with negative return scenario."""
        result = calculate_irr(100, [40, 40, 10])  # Total return < investment
        assert result.rate < 0  # Should be negative IRR

    def test_irr_is_deterministic(self):
        first = calculate_irr(2500, [400, 700, 900, 1200])
        second = calculate_irr(2500, [400, 700, 900, 1200])
        assert first == second

    def test_all_non_negative_is_undefined(self):
        """Test no outlay means no IRR, never a numeric root."""
        result = calculate_irr(0, [100, 200, 300])
        assert not result.is_defined
        assert result.rate is None
        assert result.reason

    def test_all_non_positive_is_undefined(self):
        result = calculate_irr(100, [-10, 0, -5])
        assert result.rate is None

    def test_root_outside_bracket_is_undefined(self):
        """Test an IRR below -99% is reported as undefined."""
        result = calculate_irr(100, [0.5])
        assert result.rate is None
        assert "change sign" in result.reason

    def test_iteration_cap(self):
        result = calculate_irr(100, [110], max_iterations=1)
        assert result.rate is None
        assert result.iterations == 1

    def test_custom_bracket(self):
        result = calculate_irr(100, [110], lower_bound=0.0, upper_bound=1.0)
        assert result.rate == pytest.approx(0.10, abs=1e-6)

    @pytest.mark.parametrize("scale", [1e10, 1e11, 1e12])
    def test_large_amounts_converge(self, scale):
        """Test rounding in NPV at large scales does not hide a bracketed root."""
        flows = [0.37 * scale, 0.41 * scale, 0.29 * scale, 0.33 * scale]
        result = calculate_irr(scale, flows)
        assert result.is_defined
        assert result.rate == pytest.approx(0.155687, abs=1e-5)
        series = full_series(scale, flows)
        assert abs(present_value(series, result.rate)) < 1e-9 * scale

    def test_invalid_bracket(self):
        with pytest.raises(InvalidInputError):
            calculate_irr(100, [110], lower_bound=-1.0)
        with pytest.raises(InvalidInputError):
            calculate_irr(100, [110], lower_bound=0.5, upper_bound=0.5)

    def test_invalid_inputs(self):
        with pytest.raises(InvalidInputError):
            calculate_irr(-100, [110])
        with pytest.raises(InvalidInputError):
            calculate_irr(100, [])

    def test_multiple_and_profit(self):
        series = full_series(100, [50, 60])
        assert calculate_multiple(series) == pytest.approx(1.1)
        assert calculate_profit(series) == pytest.approx(10)
        assert calculate_multiple([10, 20]) is None


class TestCashflowProjection:
    """Test cash flow projection."""

    def _run(self, years=5, discount_rate=0.08, escalation=EscalationPolicy.compound, **kwargs):
        income = IncomeAssumptions(
            gross_income=kwargs.pop("gross_income", 100000),
            other_income=kwargs.pop("other_income", 0),
            growth_rate=kwargs.pop("income_growth", 0),
            vacancy_rate=kwargs.pop("vacancy_rate", 0),
        )
        expenses = ExpenseAssumptions(
            operating_expenses=kwargs.pop("operating_expenses", 40000),
            growth_rate=kwargs.pop("expense_growth", 0),
        )
        return run_cashflow_projection(
            years, discount_rate, income, expenses, escalation=escalation, **kwargs
        )

    def test_escalation_factor_compound(self):
        factors = escalation_factors(0.03, 3, EscalationPolicy.compound)
        assert factors.tolist() == pytest.approx([1.0, 1.03, 1.0609])

    def test_escalation_factor_simple(self):
        factors = escalation_factors(0.03, 3, "simple")
        assert factors.tolist() == pytest.approx([1.0, 1.03, 1.06])

    def test_escalation_factor_flat(self):
        assert escalation_factors(0.03, 4, EscalationPolicy.flat).tolist() == [1.0] * 4

    @pytest.mark.parametrize("years", [1, 5, 30])
    def test_series_length(self, years):
        projection = self._run(years=years)
        assert len(projection.series) == years
        assert [row.year for row in projection.years] == list(range(1, years + 1))

    @pytest.mark.parametrize("years", [0, 31, -1])
    def test_rejects_years_out_of_range(self, years):
        with pytest.raises(InvalidInputError):
            self._run(years=years)

    def test_rejects_fractional_years(self):
        with pytest.raises(InvalidInputError):
            self._run(years=2.5)

    def test_rejects_discount_rate_out_of_range(self):
        with pytest.raises(InvalidInputError):
            self._run(discount_rate=1.5)

    def test_flat_escalation_constant_series(self):
        projection = self._run(
            escalation=EscalationPolicy.flat, income_growth=0.05, expense_growth=0.03
        )
        assert projection.series == pytest.approx([60000] * 5)

    def test_compound_growth(self):
        projection = self._run(income_growth=0.02, operating_expenses=0)
        expected = [100000 * 1.02 ** t for t in range(5)]
        assert projection.series == pytest.approx(expected)

    def test_simple_growth(self):
        projection = self._run(
            escalation=EscalationPolicy.simple, income_growth=0.02, operating_expenses=0
        )
        assert projection.series[2] == pytest.approx(104000)

    def test_vacancy_and_other_income(self):
        projection = self._run(other_income=20000, vacancy_rate=0.1, operating_expenses=0)
        assert projection.years[0].income == pytest.approx(108000)

    def test_npv_matches_series(self):
        projection = self._run(initial_investment=150000, income_growth=0.02)
        assert projection.npv == calculate_npv(0.08, 150000, projection.series)

    def test_period_start_dates(self):
        projection = self._run(start_date=date(2025, 1, 1))
        assert projection.years[0].period_start == date(2025, 1, 1)
        assert projection.years[2].period_start == date(2027, 1, 1)

    def test_no_dates_without_start(self):
        projection = self._run()
        assert all(row.period_start is None for row in projection.years)

    def test_unknown_escalation(self):
        with pytest.raises(InvalidInputError):
            self._run(escalation="quarterly")

    def test_negative_income_rejected(self):
        with pytest.raises(InvalidInputError):
            self._run(gross_income=-1)

    def test_growth_rate_must_exceed_minus_one(self):
        with pytest.raises(InvalidInputError):
            self._run(income_growth=-1)

    def test_sum_cash_flows(self):
        projection = self._run(escalation=EscalationPolicy.flat)
        assert sum_cash_flows(projection, "net_cash_flow") == pytest.approx(300000)
        assert sum_cash_flows(projection, "income", 2, 3) == pytest.approx(200000)


class TestRehabSimulation:
    """Test rehabilitation simulation."""

    def test_payback_period(self):
        simulation = simulate_rehab(100000, 20000)
        assert simulation.payback_period == 5
        assert simulation.payback_months == 60
        assert simulation.roi == pytest.approx(0.2)
        assert simulation.is_recoverable

    def test_horizon_roi(self):
        simulation = simulate_rehab(100000, 20000, horizon_years=10)
        assert simulation.horizon_roi == pytest.approx(1.0)

    def test_negative_income_not_recoverable(self):
        simulation = simulate_rehab(100000, -500)
        assert simulation.payback_period == NOT_RECOVERABLE
        assert simulation.payback_period == "not-recoverable"
        assert simulation.payback_months is None
        assert not simulation.is_recoverable

    def test_zero_income_not_recoverable(self):
        assert simulate_rehab(100000, 0).payback_period == NOT_RECOVERABLE

    def test_subsidies_add_to_benefit(self):
        simulation = simulate_rehab(100000, 15000, annual_subsidies=5000)
        assert simulation.annual_benefit == 20000
        assert simulation.payback_period == 5

    def test_npv_only_with_discount_rate(self):
        assert simulate_rehab(100000, 20000).npv is None

        simulation = simulate_rehab(100000, 20000, horizon_years=5, discount_rate=0.05)
        assert simulation.npv == calculate_npv(0.05, 100000, [20000] * 5)

    def test_free_rehab(self):
        simulation = simulate_rehab(0, 1000)
        assert simulation.payback_period == 0
        assert simulation.roi == 0
        assert simulation.horizon_roi is None

    def test_invalid_inputs(self):
        with pytest.raises(InvalidInputError):
            simulate_rehab(-1, 1000)
        with pytest.raises(InvalidInputError):
            simulate_rehab(1000, 100, horizon_years=0)
        with pytest.raises(InvalidInputError):
            simulate_rehab(1000, 100, discount_rate=1.2)


class TestSensitivity:
    """Test sensitivity grid."""

    FLOWS = [30000, 32000, 34000, 36000, 38000]

    def test_center_cell_equals_base_npv(self):
        result = calculate_sensitivity(0.10, self.FLOWS, 120000)
        assert result.grid[2][1] == result.base_npv

    def test_grid_shape_and_axes(self):
        result = calculate_sensitivity(0.10, self.FLOWS, 120000)
        assert len(result.grid) == 5
        assert all(len(row) == 3 for row in result.grid)
        assert result.rates == pytest.approx([0.08, 0.09, 0.10, 0.11, 0.12])
        assert result.cash_flow_multipliers == [0.9, 1.0, 1.1]

    def test_each_cell_recomputes_npv(self):
        result = calculate_sensitivity(
            0.06, self.FLOWS, 100000, rate_offsets=[-0.01, 0.01], cash_flow_multipliers=[0.5, 2.0]
        )
        for i, rate in enumerate(result.rates):
            for j, multiplier in enumerate(result.cash_flow_multipliers):
                scaled = [cf * multiplier for cf in self.FLOWS]
                assert result.grid[i][j] == calculate_npv(rate, 100000, scaled)

    def test_npv_falls_as_rate_rises(self):
        result = calculate_sensitivity(0.10, self.FLOWS, 120000)
        column = [row[1] for row in result.grid]
        assert column == sorted(column, reverse=True)

    def test_zero_investment_allowed(self):
        result = calculate_sensitivity(0.10, self.FLOWS, 0)
        assert result.base_npv > 0

    def test_zero_base_rate_keeps_negative_rows(self):
        result = calculate_sensitivity(0.0, [3000, 4000, 5000], 10000)
        assert result.rates == pytest.approx([-0.02, -0.01, 0.0, 0.01, 0.02])
        assert result.base_npv == pytest.approx(2000)
        assert result.grid[2][1] == result.base_npv
        # Discounting at a negative rate inflates the flows
        assert result.grid[0][1] > result.base_npv

    @pytest.mark.parametrize("base_rate", [0.01, 0.99, 1.0])
    def test_base_rates_near_range_edges(self, base_rate):
        result = calculate_sensitivity(base_rate, [3000, 4000, 5000], 10000)
        assert result.grid[2][1] == result.base_npv

    def test_offset_to_minus_one_rejected(self):
        with pytest.raises(InvalidInputError):
            calculate_sensitivity(0.05, self.FLOWS, 1000, rate_offsets=[-1.05, 0.0])

    def test_invalid_inputs(self):
        with pytest.raises(InvalidInputError):
            calculate_sensitivity(1.5, self.FLOWS, 1000)
        with pytest.raises(InvalidInputError):
            calculate_sensitivity(0.1, [], 1000)
        with pytest.raises(InvalidInputError):
            calculate_sensitivity(0.1, self.FLOWS, None)
        with pytest.raises(InvalidInputError):
            calculate_sensitivity(0.1, self.FLOWS, 1000, cash_flow_multipliers=[])


class TestBuildingMetrics:
    """Test building ratio calculations."""

    def test_noi(self):
        assert metrics.calculate_noi(180000, 60000, 20000) == 140000
        assert metrics.calculate_noi(180000, 60000) == 120000

    def test_cap_rate_and_roi(self):
        assert metrics.calculate_cap_rate(140000, 2000000) == pytest.approx(7.0)
        assert metrics.calculate_operating_roi(140000, 2000000) == pytest.approx(7.0)
        assert metrics.calculate_cap_rate(140000, 0) is None
        assert metrics.calculate_cap_rate(140000, None) is None

    def test_opex_ratio(self):
        assert metrics.calculate_opex_ratio(60000, 180000, 20000) == pytest.approx(30.0)
        assert metrics.calculate_opex_ratio(60000, 0) is None

    def test_value_gap(self):
        assert metrics.calculate_value_gap(2000000, 2300000) == pytest.approx(15.0)
        assert metrics.calculate_value_gap(0, 2300000) is None

    def test_dscr(self):
        assert metrics.calculate_dscr(140000, 70000) == pytest.approx(2.0)
        assert metrics.calculate_dscr(140000, None) is None

    def test_to_period(self):
        assert metrics.to_period(120000, "monthly") == pytest.approx(10000)
        assert metrics.to_period(120000, "annual") == 120000
        assert metrics.to_period(None, "monthly") is None
        with pytest.raises(InvalidInputError):
            metrics.to_period(120000, "weekly")

    def test_apply_uplift(self):
        assert metrics.apply_uplift(2000000, 10) == pytest.approx(2200000)
        assert metrics.apply_uplift(None, 10) == 0
