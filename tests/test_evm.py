"""Tests for ppm/services/evm.py — formulas, zero-guards, input validation."""

import math
from decimal import Decimal

import pytest

from ppm.core.exceptions import InvalidNumericInputError
from ppm.services.evm import (
    compute_evm,
    cost_performance,
    round2,
    schedule_performance,
    validate_amounts,
)


class TestFormulas:
    def test_reference_project(self):
        """BAC 8.5M, AC 3.2M, PV 3.4M, EV 3.2M."""
        m = compute_evm(pv=3_400_000, ev=3_200_000, ac=3_200_000, bac=8_500_000)
        assert m.cpi == 1.0
        assert m.spi == 0.94
        assert m.eac == 8_500_000
        assert m.etc == 5_300_000
        assert m.vac == 0
        assert m.sv == -200_000
        assert m.cv == 0
        assert m.schedule_performance == "SLIGHTLY_BEHIND"
        assert m.cost_performance == "UNDER_BUDGET"

    def test_on_plan_project_is_balanced(self):
        m = compute_evm(pv=100, ev=100, ac=100, bac=100)
        assert (m.cpi, m.spi) == (1.0, 1.0)
        assert m.eac == 100
        assert (m.etc, m.vac, m.sv, m.cv) == (0, 0, 0, 0)
        assert m.schedule_performance == "ON_TRACK"
        assert m.cost_performance == "UNDER_BUDGET"

    def test_identities_hold(self):
        m = compute_evm(pv=1200, ev=900, ac=1000, bac=5000)
        assert m.sv == round2(m.earned_value - m.planned_value)
        assert m.cv == round2(m.earned_value - m.actual_cost)
        assert m.etc == pytest.approx(m.eac - m.actual_cost, abs=0.01)
        assert m.vac == pytest.approx(m.bac - m.eac, abs=0.01)

    def test_over_budget_and_behind(self):
        m = compute_evm(pv=1000, ev=500, ac=1000, bac=2000)
        assert m.cpi == 0.5
        assert m.spi == 0.5
        assert m.eac == 4000
        assert m.vac == -2000
        assert m.schedule_performance == "BEHIND"
        assert m.cost_performance == "OVER_BUDGET"

    def test_echoes_inputs(self):
        m = compute_evm(pv=10, ev=20, ac=30, bac=40)
        d = m.to_dict()
        assert (d["planned_value"], d["earned_value"], d["actual_cost"], d["bac"]) == (10, 20, 30, 40)

    def test_accepts_decimal_from_numeric_columns(self):
        m = compute_evm(Decimal("100.00"), Decimal("50.00"), Decimal("25.00"), Decimal("200.00"))
        assert m.cpi == 2.0
        assert m.spi == 0.5


class TestZeroGuards:
    def test_no_cost_and_no_plan_yields_neutral_indices(self):
        m = compute_evm(pv=0, ev=0, ac=0, bac=0)
        assert m.cpi == 1
        assert m.spi == 1
        assert m.eac == 0
        for value in m.to_dict().values():
            if isinstance(value, float):
                assert math.isfinite(value)

    def test_unstarted_project_keeps_budget_as_estimate(self):
        m = compute_evm(pv=0, ev=0, ac=0, bac=500_000)
        assert m.spi == 1
        assert m.cpi == 1
        assert m.eac == 500_000

    def test_zero_actual_cost_gives_cpi_one(self):
        m = compute_evm(pv=100, ev=50, ac=0, bac=1000)
        assert m.cpi == 1
        assert m.eac == 1000

    def test_zero_planned_value_gives_spi_one(self):
        m = compute_evm(pv=0, ev=50, ac=25, bac=1000)
        assert m.spi == 1

    def test_zero_earned_value_with_cost_falls_back_to_bac(self):
        m = compute_evm(pv=100, ev=0, ac=50, bac=1000)
        assert m.cpi == 0
        assert m.eac == 1000

    def test_none_counts_as_zero(self):
        m = compute_evm(pv=None, ev=None, ac=None, bac=None)
        assert m.cpi == 1
        assert m.spi == 1


class TestInvalidInput:
    @pytest.mark.parametrize("bad", [-1, float("nan"), float("inf"), "100", True, [1]])
    def test_rejected_before_computation(self, bad):
        with pytest.raises(InvalidNumericInputError) as exc_info:
            compute_evm(pv=100, ev=100, ac=bad, bac=100)
        assert exc_info.value.field == "actual_cost"

    def test_validate_amounts_only_checks_present_fields(self):
        assert validate_amounts({"name": "x"}, ("total_budget",)) == {"name": "x"}
        with pytest.raises(InvalidNumericInputError):
            validate_amounts({"total_budget": -5}, ("total_budget",))


class TestClassification:
    def test_thresholds(self):
        assert schedule_performance(1.0) == "ON_TRACK"
        assert schedule_performance(0.9) == "SLIGHTLY_BEHIND"
        assert schedule_performance(0.89) == "BEHIND"
        assert cost_performance(1.2) == "UNDER_BUDGET"
        assert cost_performance(0.95) == "SLIGHTLY_OVER"
        assert cost_performance(0.5) == "OVER_BUDGET"

    def test_round_half_up(self):
        assert round2(0.125) == 0.13
        assert round2(2.675) == 2.68
