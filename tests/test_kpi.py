"""
Tests for portfolio KPI utilities.
"""

from dataclasses import replace
from datetime import date

import pytest
from depositlab.core.models import InvestmentStatus, PaymentRecord
from depositlab.kpi import (
    CHART_COLUMNS,
    chart_series,
    is_history,
    maturity_ladder,
    portfolio_summary,
    source_allocation,
    split_active_history,
    total_collected_interest,
    weighted_annual_rate,
)

TODAY = date(2025, 4, 10)


class TestWeightedRate:
    def test_uniform_rate(self, abc_investment):
        assert weighted_annual_rate([abc_investment]) == pytest.approx(14.4)

    def test_principal_weighting(self, abc_investment):
        small = replace(abc_investment, amount=100_000, rate=1.0)
        large = replace(abc_investment, amount=300_000, rate=2.0)
        assert weighted_annual_rate([small, large]) == pytest.approx(21.0)

    def test_empty_and_zero_principal(self, abc_investment):
        assert weighted_annual_rate([]) == 0.0
        assert weighted_annual_rate([replace(abc_investment, amount=0)]) == 0.0


class TestAllocation:
    def test_grouped_sum(self, abc_investment, pooled_investment):
        extra = replace(abc_investment, id="abc2", amount=100_000)
        assert source_allocation([abc_investment, pooled_investment, extra]) == {
            "ABC": 600_000,
            "XYZ": 500_000,
        }

    def test_empty(self):
        assert source_allocation([]) == {}


class TestChartSeries:
    def test_window(self, abc_investment):
        frame = chart_series([abc_investment], TODAY)

        assert list(frame.columns) == CHART_COLUMNS
        assert len(frame) == 19
        row = frame.set_index("month_key").loc["2025-07"]
        assert row["active_capital"] == 500_000
        assert row["returned_capital"] == 500_000
        assert row["interest"] == 6_000
        assert row["label"] == "114/07"

    def test_empty_collection(self):
        frame = chart_series([], TODAY, months_back=0, months_forward=0)
        assert list(frame["month_key"]) == ["2025-04"]
        assert frame["active_capital"].sum() == 0


class TestMaturityLadder:
    def test_next_twelve_months(self, abc_investment, pooled_investment):
        ladder = maturity_ladder([abc_investment, pooled_investment], TODAY)

        assert list(ladder["month_key"])[:2] == ["2025-04", "2025-05"]
        assert len(ladder) == 12
        by_month = ladder.set_index("month_key")["amount"]
        assert by_month["2025-07"] == 500_000
        assert by_month["2026-03"] == 500_000
        assert by_month.sum() == 1_000_000

    def test_only_running_statuses(self, abc_investment):
        renewed = replace(abc_investment, status=InvestmentStatus.RENEWED)
        returned = replace(abc_investment, id="r", status=InvestmentStatus.RETURNED)
        ladder = maturity_ladder([renewed, returned], TODAY, months=6)

        assert len(ladder) == 6
        assert ladder["amount"].sum() == 500_000


class TestHistory:
    def test_matured_is_history(self, abc_investment):
        assert not is_history(abc_investment, date(2025, 7, 15))
        assert is_history(abc_investment, date(2025, 7, 16))

    def test_closed_statuses(self, abc_investment):
        assert is_history(replace(abc_investment, status=InvestmentStatus.RETURNED), TODAY)
        assert is_history(replace(abc_investment, status=InvestmentStatus.DEFAULTED), TODAY)
        assert not is_history(replace(abc_investment, status=InvestmentStatus.REINVESTED), TODAY)

    def test_split(self, abc_investment, pooled_investment):
        active, history = split_active_history(
            [abc_investment, pooled_investment], date(2025, 8, 1)
        )
        assert [inv.id for inv in active] == ["xyz"]
        assert [inv.id for inv in history] == ["abc"]


class TestSummary:
    def test_portfolio_summary(self, abc_investment, pooled_investment):
        paid = replace(
            abc_investment,
            payment_history={1: PaymentRecord(is_paid=True), 2: PaymentRecord(is_paid=True)},
        )
        closed = replace(
            abc_investment,
            id="old",
            status=InvestmentStatus.RETURNED,
            payment_history={p: PaymentRecord(is_paid=True) for p in range(1, 7)},
        )
        summary = portfolio_summary([paid, pooled_investment, closed], TODAY)

        assert summary["active_principal"] == 1_000_000
        assert summary["monthly_income"] == 6_000 + 5_000
        assert summary["weighted_annual_rate"] == pytest.approx(13.2)
        assert summary["collected_interest"] == 12_000 + 36_000
        assert summary["active_count"] == 2
        assert summary["history_count"] == 1
        assert summary["intro_fees_pending"] == 2_500 + 5_000
        assert summary["source_allocation"] == {"ABC": 500_000, "XYZ": 500_000}

    def test_total_collected_interest(self, abc_investment):
        paid = replace(abc_investment, payment_history={3: PaymentRecord(is_paid=True)})
        assert total_collected_interest([paid, abc_investment]) == 6_000
