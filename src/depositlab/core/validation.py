"""
Validation and reporting utilities for DepositLab.

Provides a structured report of consistency problems in a stored collection.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from .models import Investment
from .schedule import end_date as compute_end_date


@dataclass
class ValidationReport:
    """
    Structured validation report for an investment collection.

    Provides machine-readable validation results with clear error/warning
    categorization for CI use and user feedback.
    """

    duplicate_ids: list[str] = None
    funder_mismatches: dict[str, dict[str, int]] = None
    bad_periods: dict[str, list[int]] = None
    end_date_drift: dict[str, dict[str, str]] = None
    duplicate_tickets: dict[str, list[str]] = None

    def __post_init__(self):
        """Initialize default empty lists/dicts."""
        if self.duplicate_ids is None:
            self.duplicate_ids = []
        if self.funder_mismatches is None:
            self.funder_mismatches = {}
        if self.bad_periods is None:
            self.bad_periods = {}
        if self.end_date_drift is None:
            self.end_date_drift = {}
        if self.duplicate_tickets is None:
            self.duplicate_tickets = {}

    def has_errors(self) -> bool:
        """Check if there are any hard errors (ids, amounts, periods, dates)."""
        return bool(
            self.duplicate_ids
            or self.funder_mismatches
            or self.bad_periods
            or self.end_date_drift
        )

    def has_warnings(self) -> bool:
        """Check if there are any warnings (shared tickets)."""
        return bool(self.duplicate_tickets)

    def is_valid(self) -> bool:
        """Check if validation passed (no errors, warnings are OK)."""
        return not self.has_errors()

    def get_exit_code(self) -> int:
        """
        Get appropriate CLI exit code.

        Returns:
            0: Valid (no errors)
            1: Errors present
            2: Warnings only
        """
        if self.has_errors():
            return 1
        elif self.has_warnings():
            return 2
        else:
            return 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "duplicate_ids": self.duplicate_ids,
            "funder_mismatches": self.funder_mismatches,
            "bad_periods": self.bad_periods,
            "end_date_drift": self.end_date_drift,
            "duplicate_tickets": self.duplicate_tickets,
            "has_errors": self.has_errors(),
            "has_warnings": self.has_warnings(),
            "is_valid": self.is_valid(),
            "exit_code": self.get_exit_code(),
        }

    def __str__(self) -> str:
        """Human-readable string representation."""
        lines = []

        if self.is_valid():
            lines.append("✅ Validation passed")
        else:
            lines.append("❌ Validation failed")

        if self.duplicate_ids:
            lines.append(f"Duplicate IDs: {', '.join(self.duplicate_ids)}")

        for inv_id, amounts in self.funder_mismatches.items():
            lines.append(
                f"Investment '{inv_id}': amount {amounts['amount']} "
                f"!= funder total {amounts['funders']}"
            )

        for inv_id, periods in self.bad_periods.items():
            lines.append(
                f"Investment '{inv_id}': payment periods out of range: "
                f"{', '.join(str(p) for p in periods)}"
            )

        for inv_id, dates in self.end_date_drift.items():
            lines.append(
                f"Investment '{inv_id}': end date {dates['stored']} "
                f"expected {dates['expected']}"
            )

        for ticket, ids in self.duplicate_tickets.items():
            lines.append(f"Ticket '{ticket}' shared by: {', '.join(ids)}")

        return "\n".join(lines)


def validate_investments(investments: Sequence[Investment]) -> ValidationReport:
    """
    Check a collection against the invariants enforced on save.

    Args:
        investments: Collection as loaded from a snapshot or import

    Returns:
        ValidationReport; duplicate tickets are warnings, the rest errors
    """
    report = ValidationReport()

    counts = Counter(inv.id for inv in investments)
    report.duplicate_ids = sorted(inv_id for inv_id, n in counts.items() if n > 1)

    tickets: dict[str, list[str]] = {}
    for inv in investments:
        if inv.funders:
            total = sum(f.amount for f in inv.funders)
            if total != inv.amount:
                report.funder_mismatches[inv.id] = {"amount": inv.amount, "funders": total}

        bad = sorted(p for p in inv.payment_history if not 1 <= p <= inv.duration)
        if bad:
            report.bad_periods[inv.id] = bad

        expected = compute_end_date(inv.start_date, inv.duration)
        if inv.end_date != expected:
            report.end_date_drift[inv.id] = {
                "stored": inv.end_date.isoformat() if inv.end_date else "",
                "expected": expected.isoformat(),
            }

        if inv.ticket_number:
            tickets.setdefault(inv.ticket_number, []).append(inv.id)

    report.duplicate_tickets = {t: ids for t, ids in tickets.items() if len(ids) > 1}
    return report
