"""
KPI calculation utilities for investment collections.

Functions here are filter-agnostic: they operate on whatever subset of
investments they are given. Callers choose the status filter (the dashboard
uses Active positions for principal and yield, the full collection for
collected interest and the chart window).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from typing import Any

import numpy as np
import pandas as pd

from .core.ledger import windowed_report
from .core.models import Investment, InvestmentStatus
from .core.roc_dates import roc_month_label
from .core.schedule import monthly_interest
from .core.utils import month_key, month_range

CHART_COLUMNS = ["month_key", "label", "active_capital", "returned_capital", "interest"]


def weighted_annual_rate(investments: Sequence[Investment]) -> float:
    """
    Principal-weighted annualized yield in percent.

    ``(sum(amount * rate) / sum(amount)) * 12`` where ``rate`` is the monthly
    percentage. Returns 0.0 for an empty set or zero total principal.

    Args:
        investments: Positions to average over

    Returns:
        Annual rate in percent, e.g. 14.4 for a uniform 1.2 % per month
    """
    if not investments:
        return 0.0
    amounts = np.array([inv.amount for inv in investments], dtype=float)
    rates = np.array([inv.rate for inv in investments], dtype=float)
    total = amounts.sum()
    if total == 0:
        return 0.0
    return float((amounts * rates).sum() / total * 12)


def source_allocation(investments: Iterable[Investment]) -> dict[str, int]:
    """Principal grouped by source, in first-seen order."""
    allocation: dict[str, int] = {}
    for inv in investments:
        allocation[inv.source] = allocation.get(inv.source, 0) + inv.amount
    return allocation


def chart_series(
    investments: Iterable[Investment],
    today: date | None = None,
    months_back: int = 6,
    months_forward: int = 12,
) -> pd.DataFrame:
    """
    Rolling window of active capital, returned capital and interest per month.

    See :func:`~depositlab.core.ledger.windowed_report` for the rules.

    Returns:
        DataFrame with columns ``month_key, label, active_capital,
        returned_capital, interest``; one row per month, ascending
    """
    window = windowed_report(investments, today, months_back, months_forward)
    return pd.DataFrame(
        [
            {
                "month_key": m.month_key,
                "label": m.label,
                "active_capital": m.active_capital,
                "returned_capital": m.returned_capital,
                "interest": m.interest,
            }
            for m in window
        ],
        columns=CHART_COLUMNS,
    )


def maturity_ladder(
    investments: Iterable[Investment],
    today: date | None = None,
    months: int = 12,
) -> pd.DataFrame:
    """
    Principal of Active and Renewed positions maturing in each of the next
    ``months`` months, the current month included.

    Returns:
        DataFrame with columns ``month_key, label, amount``
    """
    anchor = today or date.today()
    keys = [str(m) for m in month_range(anchor, months)]
    ladder = dict.fromkeys(keys, 0)
    for inv in investments:
        if inv.status not in (InvestmentStatus.ACTIVE, InvestmentStatus.RENEWED):
            continue
        key = month_key(inv.end_date)
        if key in ladder:
            ladder[key] += inv.amount
    return pd.DataFrame(
        {
            "month_key": keys,
            "label": [roc_month_label(k) for k in keys],
            "amount": [ladder[k] for k in keys],
        }
    )


def total_collected_interest(investments: Iterable[Investment]) -> int:
    """Interest received so far: monthly interest times paid periods, summed."""
    return sum(inv.collected_interest for inv in investments)


def is_history(inv: Investment, today: date | None = None) -> bool:
    """A position belongs to history once matured, returned or defaulted."""
    now = today or date.today()
    return inv.end_date < now or inv.status in (
        InvestmentStatus.RETURNED,
        InvestmentStatus.DEFAULTED,
    )


def split_active_history(
    investments: Iterable[Investment], today: date | None = None
) -> tuple[list[Investment], list[Investment]]:
    """Partition into (active, history) preserving input order."""
    active, history = [], []
    for inv in investments:
        (history if is_history(inv, today) else active).append(inv)
    return active, history


def portfolio_summary(
    investments: Sequence[Investment], today: date | None = None
) -> dict[str, Any]:
    """
    Headline figures of the dashboard.

    Principal, income, yield and allocation cover non-history positions with
    status Active; collected interest covers the whole collection.
    """
    active, history = split_active_history(investments, today)
    running = [inv for inv in active if inv.status is InvestmentStatus.ACTIVE]
    return {
        "active_principal": sum(inv.amount for inv in running),
        "monthly_income": sum(monthly_interest(inv.amount, inv.rate) for inv in running),
        "weighted_annual_rate": round(weighted_annual_rate(running), 4),
        "collected_interest": total_collected_interest(investments),
        "active_count": len(running),
        "history_count": len(history),
        "intro_fees_pending": sum(
            inv.intro_fee_amount for inv in running if not inv.intro_fee_paid
        ),
        "source_allocation": source_allocation(running),
    }
