"""
Tests for monthly ledger aggregation and the chart window.
"""

from dataclasses import replace
from datetime import date

import pytest
from depositlab.core.ledger import (
    monthly_report,
    report_for_month,
    report_frame,
    windowed_report,
)
from depositlab.core.models import Investment, PaymentRecord
from depositlab.core.schedule import monthly_interest
from hypothesis import given, settings
from hypothesis import strategies as st


def _paid(*periods: int) -> dict[int, PaymentRecord]:
    return {p: PaymentRecord(is_paid=True, paid_date=date(2025, 2, 16)) for p in periods}


class TestMonthlyReport:
    def test_scenario_buckets(self, abc_investment):
        report = monthly_report([abc_investment])

        assert [item.month_key for item in report] == [
            "2025-01",
            "2025-02",
            "2025-03",
            "2025-04",
            "2025-05",
            "2025-06",
            "2025-07",
        ]
        january, july = report[0], report[-1]
        assert january.new_capital == 500_000
        assert january.interest_expected == 0
        assert january.roc_month == "114/01"
        assert july.returned_capital == 500_000
        assert july.interest_expected == 6_000
        assert all(item.interest_expected == 6_000 for item in report[1:])

    def test_actual_counts_paid_periods_only(self, abc_investment):
        inv = replace(abc_investment, payment_history=_paid(1, 2))
        report = {item.month_key: item for item in monthly_report([inv])}

        assert report["2025-02"].interest_actual == 6_000
        assert report["2025-03"].interest_actual == 6_000
        assert report["2025-04"].interest_actual == 0
        assert report["2025-04"].outstanding_interest == 6_000
        assert sum(item.interest_actual for item in report.values()) == 12_000

    def test_details_reference_investment(self, abc_investment):
        inv = replace(abc_investment, payment_history=_paid(1))
        february = report_for_month([inv], "2025-02")

        (row,) = february.interest_details
        assert row.inv_id == "abc"
        assert row.period == 1
        assert row.due_date == date(2025, 2, 15)
        assert row.is_paid and row.paid_date == date(2025, 2, 16)
        assert february.capital_in_details == []

    def test_zero_duration_starts_and_returns_same_month(self, abc_investment):
        inv = replace(abc_investment, duration=0, end_date=None)
        assert inv.end_date == inv.start_date
        (item,) = monthly_report([inv])
        assert item.new_capital == item.returned_capital == 500_000
        assert item.net_capital == 0
        assert item.interest_expected == 0

    def test_order_independent(self, abc_investment, pooled_investment):
        forward = monthly_report([abc_investment, pooled_investment])
        backward = monthly_report([pooled_investment, abc_investment])

        def totals(report):
            return [
                (i.month_key, i.new_capital, i.returned_capital, i.interest_expected)
                for i in report
            ]

        assert totals(forward) == totals(backward)

    @settings(max_examples=50)
    @given(
        specs=st.lists(
            st.tuples(
                st.integers(min_value=0, max_value=2_000_000),
                st.sampled_from([0.5, 0.8, 1.0, 1.2, 1.5, 2.0]),
                st.dates(min_value=date(2020, 1, 1), max_value=date(2030, 12, 31)),
                st.integers(min_value=0, max_value=24),
            ),
            max_size=8,
        )
    )
    def test_expected_interest_sums_to_schedule(self, specs):
        investments = [
            Investment(
                id=str(i), source="S", amount=a, rate=r, start_date=d, duration=n
            )
            for i, (a, r, d, n) in enumerate(specs)
        ]
        report = monthly_report(investments)

        assert sum(i.interest_expected for i in report) == sum(
            monthly_interest(inv.amount, inv.rate) * inv.duration for inv in investments
        )
        assert sum(i.new_capital for i in report) == sum(inv.amount for inv in investments)
        assert sum(i.returned_capital for i in report) == sum(
            inv.amount for inv in investments
        )
        assert [i.month_key for i in report] == sorted({i.month_key for i in report})


class TestReportForMonth:
    def test_quiet_month_is_empty(self, abc_investment):
        item = report_for_month([abc_investment], "2030-01")
        assert item.roc_month == "119/01"
        assert item.interest_expected == 0
        assert item.interest_details == []

    def test_invalid_key(self, abc_investment):
        with pytest.raises(ValueError):
            report_for_month([abc_investment], "2025-13")


class TestReportFrame:
    def test_columns_and_index(self, abc_investment):
        frame = report_frame(monthly_report([abc_investment]))

        assert frame.index.name == "month_key"
        assert list(frame.columns) == [
            "roc_month",
            "new_capital",
            "returned_capital",
            "interest_expected",
            "interest_actual",
            "interest_outstanding",
        ]
        assert frame.loc["2025-07", "returned_capital"] == 500_000
        assert frame["interest_expected"].sum() == 36_000

    def test_empty(self):
        frame = report_frame([])
        assert frame.empty
        assert frame.index.name == "month_key"


class TestWindowedReport:
    def test_window_shape(self, abc_investment):
        window = windowed_report([abc_investment], today=date(2025, 4, 10))

        assert len(window) == 19
        assert window[0].month_key == "2024-10"
        assert window[-1].month_key == "2026-04"
        assert window[6].month_key == "2025-04"

    def test_active_capital_overlap(self, abc_investment):
        window = {
            m.month_key: m
            for m in windowed_report([abc_investment], today=date(2025, 4, 10))
        }

        assert window["2024-12"].active_capital == 0
        assert window["2025-01"].active_capital == 500_000
        assert window["2025-07"].active_capital == 500_000
        assert window["2025-08"].active_capital == 0
        assert window["2025-07"].returned_capital == 500_000
        assert window["2025-02"].interest == 6_000
        assert window["2025-01"].interest == 0

    def test_custom_horizon(self, abc_investment):
        window = windowed_report(
            [abc_investment], today=date(2025, 4, 10), months_back=1, months_forward=2
        )
        assert [m.month_key for m in window] == ["2025-03", "2025-04", "2025-05", "2025-06"]
        assert window[0].label == "114/03"
