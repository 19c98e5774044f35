"""
Conversion between Gregorian dates and the ROC (Minguo) era calendar.

The ROC calendar numbers years from 1912, so ``era_year = gregorian_year - 1911``.
Month and day are unchanged.

Two parsers are provided with deliberately different failure policies:

- :func:`roc_input_to_date` is strict: any malformed or impossible value returns
  ``None`` so the caller can reject the edit.
- :func:`parse_loose_roc_date` is tolerant: it is used for bulk import and falls
  back to today's date when a value cannot be understood.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime

from .utils import parse_month_key

logger = logging.getLogger(__name__)

ROC_OFFSET = 1911

_NON_DIGITS = re.compile(r"\D")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_LOOSE_SEPARATORS = re.compile(r"[~/.\-]")


def _era_year(d: date) -> int:
    return d.year - ROC_OFFSET


def to_roc_date(d: date | None) -> str:
    """``date(2025, 7, 16) -> '114/07/16'`` (display form)."""
    if d is None:
        return ""
    return f"{_era_year(d)}/{d.month:02d}/{d.day:02d}"


def to_roc_simple(d: date | None) -> str:
    """``date(2026, 2, 15) -> '1150215'`` (ticket fragment)."""
    if d is None:
        return ""
    return f"{_era_year(d)}{d.month:02d}{d.day:02d}"


def to_roc_input(d: date | None) -> str:
    """
    Fixed-width input form accepted by :func:`roc_input_to_date`.

    The era year is padded to two digits so that years 1912-1920 still produce
    a six-digit string.
    """
    if d is None:
        return ""
    return f"{_era_year(d):02d}{d.month:02d}{d.day:02d}"


def roc_input_to_date(raw: str | None) -> date | None:
    """
    Parse a six or seven digit ROC input string.

    ``'1141207' -> date(2025, 12, 7)``, ``'990101' -> date(2010, 1, 1)``.
    Non-digit characters are ignored. Returns ``None`` for anything that does
    not describe a real calendar date.
    """
    if raw is None:
        return None
    clean = _NON_DIGITS.sub("", str(raw))
    if len(clean) == 7:
        year_str, month_str, day_str = clean[:3], clean[3:5], clean[5:7]
    elif len(clean) == 6:
        year_str, month_str, day_str = clean[:2], clean[2:4], clean[4:6]
    else:
        return None

    year = int(year_str) + ROC_OFFSET
    month = int(month_str)
    day = int(day_str)
    if not 1 <= month <= 12:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_loose_roc_date(raw: object, today: date | None = None) -> date:
    """
    Best-effort parse of free-text dates such as ``'114/07/16'`` or ``'2025.7.16'``.

    Args:
        raw: Cell value from an import row
        today: Fallback date (defaults to ``date.today()``)

    Returns:
        The parsed date, or ``today`` when the value is empty or unparseable

    Note:
        A leading component >= 1911 is treated as a Gregorian year, anything
        smaller as an ROC era year.
    """
    fallback = today or date.today()
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if raw is None:
        return fallback
    text = str(raw).strip()
    if not text:
        return fallback

    if _ISO_DATE.match(text):
        try:
            return date.fromisoformat(text)
        except ValueError:
            logger.warning("Unparseable date %r, using %s", text, fallback)
            return fallback

    parts = _LOOSE_SEPARATORS.split(text)
    if len(parts) < 3:
        logger.warning("Unparseable date %r, using %s", text, fallback)
        return fallback
    try:
        year, month, day = (int(p.strip()) for p in parts[:3])
        if year < ROC_OFFSET:
            year += ROC_OFFSET
        return date(year, month, day)
    except ValueError:
        logger.warning("Unparseable date %r, using %s", text, fallback)
        return fallback


def roc_month_label(key: str) -> str:
    """``'2025-07' -> '114/07'``."""
    year, month = parse_month_key(key)
    return f"{year - ROC_OFFSET}/{month:02d}"
