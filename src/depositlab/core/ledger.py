"""
Monthly ledger aggregation across investments.

The ledger folds every investment into month buckets keyed ``YYYY-MM``:

- the start month receives the principal as *new capital*,
- the end month receives the principal as *returned capital*,
- each period's flat interest lands in the month of its due date, counted as
  *expected* always and as *actual* when the period is marked paid.

Each investment contributes independently and all totals are sums, so the
report does not depend on the order of the input collection.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

import pandas as pd

from .models import Investment
from .roc_dates import roc_month_label
from .schedule import due_date, monthly_interest
from .utils import horizon_keys, month_bounds, month_key


@dataclass(frozen=True)
class CapitalDetail:
    """Drill-down row for capital moving in or out."""

    inv_id: str
    source: str
    ticket_number: str
    amount: int
    date: date


@dataclass(frozen=True)
class InterestDetail:
    """Drill-down row for one period of one investment."""

    inv_id: str
    source: str
    ticket_number: str
    rate: float
    amount: int
    period: int
    due_date: date
    is_paid: bool
    paid_date: date | None = None


@dataclass
class MonthlyReportItem:
    """
    Aggregated activity of one calendar month.

    Attributes:
        month_key: ``YYYY-MM``
        roc_month: ``YYY/MM`` display label
        new_capital: Principal of investments starting this month
        returned_capital: Principal of investments maturing this month
        interest_expected: Interest falling due this month
        interest_actual: Part of ``interest_expected`` already received
    """

    month_key: str
    roc_month: str
    new_capital: int = 0
    returned_capital: int = 0
    interest_expected: int = 0
    interest_actual: int = 0
    capital_in_details: list[CapitalDetail] = field(default_factory=list)
    capital_out_details: list[CapitalDetail] = field(default_factory=list)
    interest_details: list[InterestDetail] = field(default_factory=list)

    @property
    def outstanding_interest(self) -> int:
        return self.interest_expected - self.interest_actual

    @property
    def net_capital(self) -> int:
        return self.new_capital - self.returned_capital


def _bucket(report: dict[str, MonthlyReportItem], key: str) -> MonthlyReportItem:
    item = report.get(key)
    if item is None:
        item = MonthlyReportItem(month_key=key, roc_month=roc_month_label(key))
        report[key] = item
    return item


def monthly_report(investments: Iterable[Investment]) -> list[MonthlyReportItem]:
    """
    Build the month-indexed ledger of a collection of investments.

    Args:
        investments: Any iterable of investments (order does not matter)

    Returns:
        One item per month with activity, sorted ascending by month key

    **Example:**
        ```python
        from datetime import date
        from depositlab.core.ledger import monthly_report
        from depositlab.core.models import Investment

        inv = Investment(id="a", source="ABC", amount=500_000, rate=1.2,
                         start_date=date(2025, 1, 15), duration=6)
        report = monthly_report([inv])
        report[0].month_key, report[0].new_capital   # ('2025-01', 500000)
        report[-1].returned_capital                  # 500000 in 2025-07
        ```
    """
    report: dict[str, MonthlyReportItem] = {}

    for inv in investments:
        interest = monthly_interest(inv.amount, inv.rate)

        start_item = _bucket(report, month_key(inv.start_date))
        start_item.new_capital += inv.amount
        start_item.capital_in_details.append(
            CapitalDetail(inv.id, inv.source, inv.ticket_number, inv.amount, inv.start_date)
        )

        end_item = _bucket(report, month_key(inv.end_date))
        end_item.returned_capital += inv.amount
        end_item.capital_out_details.append(
            CapitalDetail(inv.id, inv.source, inv.ticket_number, inv.amount, inv.end_date)
        )

        for period in range(1, inv.duration + 1):
            due = due_date(inv.start_date, period)
            item = _bucket(report, month_key(due))
            record = inv.payment_history.get(period)
            is_paid = bool(record and record.is_paid)

            item.interest_expected += interest
            if is_paid:
                item.interest_actual += interest
            item.interest_details.append(
                InterestDetail(
                    inv_id=inv.id,
                    source=inv.source,
                    ticket_number=inv.ticket_number,
                    rate=inv.rate,
                    amount=interest,
                    period=period,
                    due_date=due,
                    is_paid=is_paid,
                    paid_date=record.paid_date if record else None,
                )
            )

    return [report[k] for k in sorted(report)]


def report_for_month(
    investments: Iterable[Investment], key: str
) -> MonthlyReportItem:
    """Ledger item of a single month; an empty item when nothing happens."""
    for item in monthly_report(investments):
        if item.month_key == key:
            return item
    month_bounds(key)  # validates the key
    return MonthlyReportItem(month_key=key, roc_month=roc_month_label(key))


def report_frame(items: list[MonthlyReportItem]) -> pd.DataFrame:
    """Totals of a report as a DataFrame indexed by month key."""
    columns = [
        "roc_month",
        "new_capital",
        "returned_capital",
        "interest_expected",
        "interest_actual",
        "interest_outstanding",
    ]
    rows = [
        {
            "month_key": it.month_key,
            "roc_month": it.roc_month,
            "new_capital": it.new_capital,
            "returned_capital": it.returned_capital,
            "interest_expected": it.interest_expected,
            "interest_actual": it.interest_actual,
            "interest_outstanding": it.outstanding_interest,
        }
        for it in items
    ]
    if not rows:
        return pd.DataFrame(columns=columns, index=pd.Index([], name="month_key"))
    return pd.DataFrame(rows).set_index("month_key")[columns]


@dataclass
class WindowMonth:
    """One month of the charting window."""

    month_key: str
    label: str
    active_capital: int = 0
    returned_capital: int = 0
    interest: int = 0


def windowed_report(
    investments: Iterable[Investment],
    today: date | None = None,
    months_back: int = 6,
    months_forward: int = 12,
) -> list[WindowMonth]:
    """
    Fixed-horizon monthly view used for charting.

    The window runs from ``months_back`` months before the month of ``today``
    to ``months_forward`` months after it. Per month:

    - ``active_capital``: principal of every investment whose interval
      ``[start_date, end_date)`` overlaps the month
      (``start <= month_end and end > month_start``)
    - ``returned_capital``: principal maturing in the month
    - ``interest``: expected interest falling due in the month

    Returns:
        One entry per month of the window, ascending
    """
    anchor = today or date.today()
    window = {
        key: WindowMonth(month_key=key, label=roc_month_label(key))
        for key in horizon_keys(anchor, months_back, months_forward)
    }
    bounds = {key: month_bounds(key) for key in window}

    for inv in investments:
        for key, (month_start, month_end) in bounds.items():
            if inv.start_date <= month_end and inv.end_date > month_start:
                window[key].active_capital += inv.amount

        end_key = month_key(inv.end_date)
        if end_key in window:
            window[end_key].returned_capital += inv.amount

        interest = monthly_interest(inv.amount, inv.rate)
        for period in range(1, inv.duration + 1):
            key = month_key(due_date(inv.start_date, period))
            if key in window:
                window[key].interest += interest

    return [window[k] for k in sorted(window)]
