"""
Utility functions for DepositLab.
"""

from __future__ import annotations

import calendar
import uuid
from datetime import date

import numpy as np


def generate_id() -> str:
    """Return a fresh opaque identifier for an investment or funder."""
    return str(uuid.uuid4())


def month_key(d: date) -> str:
    """``date(2025, 7, 15) -> '2025-07'``."""
    return f"{d.year:04d}-{d.month:02d}"


def parse_month_key(key: str) -> tuple[int, int]:
    """
    Split a ``YYYY-MM`` key into ``(year, month)``.

    Raises:
        ValueError: If the key is not a valid year-month
    """
    try:
        year_str, month_str = key.strip().split("-")[:2]
        year, month = int(year_str), int(month_str)
    except (AttributeError, ValueError) as e:
        raise ValueError(f"Invalid month key {key!r}, expected YYYY-MM") from e
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month key {key!r}, month must be 1-12")
    return year, month


def month_bounds(key: str) -> tuple[date, date]:
    """First and last calendar day of the month ``key``."""
    year, month = parse_month_key(key)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def month_range(start: date, months: int) -> np.ndarray:
    """
    Generate a range of monthly dates starting from a given date.

    **Args:**
        start: The starting date for the range
        months: Number of months to generate

    **Returns:**
        A numpy array of datetime64[M] values

    **Example:**
        ```python
        from datetime import date
        from depositlab.core.utils import month_range

        month_range(date(2026, 1, 15), 3)
        # array(['2026-01', '2026-02', '2026-03'], dtype='datetime64[M]')
        ```
    """
    s = np.datetime64(start, "M")
    return s + np.arange(months).astype("timedelta64[M]")


def horizon_keys(anchor: date, months_back: int, months_forward: int) -> list[str]:
    """
    Month keys from ``months_back`` before ``anchor`` to ``months_forward`` after it.

    Both ends are inclusive, so the default 6/12 window yields 19 months.
    """
    if months_back < 0 or months_forward < 0:
        raise ValueError("months_back and months_forward must be >= 0")
    first = np.datetime64(anchor, "M") - np.timedelta64(months_back, "M")
    grid = first + np.arange(months_back + months_forward + 1).astype("timedelta64[M]")
    return [str(m) for m in grid]
