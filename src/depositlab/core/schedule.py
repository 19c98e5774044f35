"""
Schedule engine: period arithmetic and the per-investment interest schedule.

Interest is simple and flat: every period pays ``round(principal * rate / 100)``
where ``rate`` is the monthly percentage. Period ``i`` (1-based) falls due
exactly ``i`` calendar months after the start date.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from dateutil.relativedelta import relativedelta

from .currency import percent_of

if TYPE_CHECKING:
    from .models import Investment


def end_date(start: date, months: int) -> date:
    """
    Add ``months`` calendar months to ``start``.

    The day of month is clamped to the length of the target month, so
    ``end_date(date(2025, 1, 31), 1) == date(2025, 2, 28)``.

    Raises:
        ValueError: If ``months`` is negative
    """
    if months < 0:
        raise ValueError(f"months must be >= 0, got {months}")
    return start + relativedelta(months=months)


def due_date(start: date, period: int) -> date:
    """Due date of 1-based ``period``: ``start + period`` months."""
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")
    return start + relativedelta(months=period)


def due_dates(start: date, duration: int) -> list[date]:
    """All due dates of a ``duration``-month investment, strictly increasing."""
    return [due_date(start, i) for i in range(1, duration + 1)]


def monthly_interest(principal: int | float, rate_pct: float) -> int:
    """
    Flat monthly interest in whole currency units.

    ``round(principal * rate_pct / 100)``, half away from zero. Every report and
    statistic uses this function so row amounts and totals agree.
    """
    return percent_of(principal, rate_pct)


def intro_fee_amount(principal: int | float, fee_rate_pct: float) -> int:
    """One-off intro (bonus) fee amount, same rounding as interest."""
    return percent_of(principal, fee_rate_pct)


def current_period_index(start: date, today: date | None = None) -> int:
    """
    Period the investment is currently in, by calendar month difference.

    A position started this month (or in the future) is in period 1.
    """
    now = today or date.today()
    months = (now.year - start.year) * 12 + (now.month - start.month)
    return max(months + 1, 1)


def default_intro_fee_rate(duration: int) -> float | None:
    """House rule: 6-month terms pay 0.5 %, 12-month terms 1.0 %."""
    return {6: 0.5, 12: 1.0}.get(duration)


@dataclass(frozen=True)
class PeriodEntry:
    """One row of an investment's interest schedule."""

    period: int
    due_date: date
    amount: int
    is_paid: bool
    paid_date: date | None = None
    note: str = ""


def schedule_for(inv: Investment) -> list[PeriodEntry]:
    """
    Build the interest schedule of a single investment.

    Args:
        inv: Investment to expand

    Returns:
        ``inv.duration`` entries, one per period, with receipt status merged in
    """
    amount = monthly_interest(inv.amount, inv.rate)
    rows = []
    for period, due in enumerate(due_dates(inv.start_date, inv.duration), start=1):
        record = inv.payment_history.get(period)
        rows.append(
            PeriodEntry(
                period=period,
                due_date=due,
                amount=amount,
                is_paid=bool(record and record.is_paid),
                paid_date=record.paid_date if record else None,
                note=record.note if record else "",
            )
        )
    return rows
