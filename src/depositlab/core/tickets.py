"""
Ticket strings: human-readable position identifiers.

A ticket reads ``<ROC maturity date>-<name><amount in 萬>(<rate>%)``, e.g.
``1140715-ABC50(1.2%)`` for 500,000 at 1.2 % maturing 2025-07-15. Tickets are
a display convention; the system identifier stays the opaque ``id``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import replace
from datetime import date
from string import ascii_uppercase

from .currency import format_number, to_wan
from .models import Funder, Investment
from .roc_dates import to_roc_simple
from .schedule import end_date as compute_end_date

_TICKET_RE = re.compile(
    r"^(?P<date>\d{5,7})-(?P<name>.*?)(?P<wan>\d+)\((?P<rate>[\d.]+)%\)(?P<suffix>[A-Z]*)$"
)


def ticket_string(end: date | None, name: str, amount: int | float, rate: float) -> str:
    """
    Build the base ticket for a maturity date, holder name, amount and rate.

    Returns an empty string when the end date or the name is missing.
    """
    if end is None or not name:
        return ""
    return f"{to_roc_simple(end)}-{name}{to_wan(amount)}({format_number(rate)}%)"


def _suffixes() -> Iterator[str]:
    """A, B, ..., Z, AA, AB, ... without end."""
    width = 1
    while True:
        for n in range(len(ascii_uppercase) ** width):
            letters = []
            for _ in range(width):
                n, r = divmod(n, len(ascii_uppercase))
                letters.append(ascii_uppercase[r])
            yield "".join(reversed(letters))
        width += 1


def unique_ticket(
    base: str, existing: Iterable[Investment], exclude_id: str | None = None
) -> str:
    """
    Make ``base`` unique among the tickets of ``existing``.

    Records whose id equals ``exclude_id`` (the record being edited) are
    ignored. On collision, suffixes A, B, C ... are appended until a free
    ticket is found.

    Args:
        base: Candidate ticket
        existing: Finite collection to check against
        exclude_id: Id of the record the ticket is for

    Returns:
        ``base`` or ``base`` plus the first free suffix
    """
    taken = {inv.ticket_number for inv in existing if inv.id != exclude_id}
    if base not in taken:
        return base
    for suffix in _suffixes():
        candidate = f"{base}{suffix}"
        if candidate not in taken:
            return candidate
    raise AssertionError("unreachable")  # pragma: no cover


def refresh_tickets(inv: Investment, existing: Iterable[Investment]) -> Investment:
    """
    Recompute funder tickets and the master ticket of ``inv``.

    Must be called whenever start date, duration, source, amount, rate or the
    funder list changes. Funder tickets are not deduplicated; the master
    ticket is unique across ``existing`` (excluding ``inv`` itself).

    Returns:
        A new investment; ``inv`` is not modified
    """
    end = compute_end_date(inv.start_date, inv.duration)
    funders = [
        replace(f, ticket_number=ticket_string(end, f.name or "?", f.amount, inv.rate))
        for f in inv.funders
    ]
    base = ticket_string(end, inv.source, inv.amount, inv.rate)
    master = unique_ticket(base, existing, exclude_id=inv.id) if base else ""
    return replace(inv, funders=funders, ticket_number=master)


def funder_ticket(f: Funder, end: date, rate: float) -> str:
    """Ticket of one funder, regenerated when the stored one is blank."""
    return f.ticket_number or ticket_string(end, f.name or "?", f.amount, rate)


def parse_ticket(ticket: str) -> dict[str, object] | None:
    """
    Best-effort reverse parse of a ticket string.

    Returns:
        ``{"roc_date", "name", "amount_wan", "rate", "suffix"}`` or ``None``
    """
    match = _TICKET_RE.match((ticket or "").strip())
    if not match:
        return None
    return {
        "roc_date": match["date"],
        "name": match["name"],
        "amount_wan": int(match["wan"]),
        "rate": float(match["rate"]),
        "suffix": match["suffix"],
    }
