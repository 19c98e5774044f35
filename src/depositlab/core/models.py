"""
Domain records for DepositLab.

Records are plain dataclasses. Engine functions never mutate them in place;
updates go through :func:`dataclasses.replace` and return new objects.

Serialization uses the camelCase keys of the persisted snapshot so that files
written by earlier versions of the tracker load unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from .roc_dates import parse_loose_roc_date
from .schedule import end_date as compute_end_date
from .schedule import intro_fee_amount, monthly_interest
from .utils import generate_id

logger = logging.getLogger(__name__)


class InvestmentStatus(str, Enum):
    """Lifecycle status of an investment."""

    ACTIVE = "Active"
    RENEWED = "Renewed"
    RETURNED = "Returned"
    REINVESTED = "Reinvested"
    DEFAULTED = "Defaulted"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]

    @classmethod
    def parse(cls, value: object) -> InvestmentStatus:
        """Accept a status value or its display label; unknown values are Active."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip()
        for status in cls:
            if text in (status.value, STATUS_LABELS[status]):
                return status
        if text:
            logger.warning("Unknown status %r, defaulting to Active", text)
        return cls.ACTIVE


STATUS_LABELS: dict[InvestmentStatus, str] = {
    InvestmentStatus.ACTIVE: "進行中",
    InvestmentStatus.RENEWED: "續約",
    InvestmentStatus.RETURNED: "已回金",
    InvestmentStatus.REINVESTED: "轉投",
    InvestmentStatus.DEFAULTED: "違約/異常",
}


def _iso(d: date | None) -> str | None:
    return d.isoformat() if d else None


def _opt_date(value: Any) -> date | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        logger.warning("Dropping unparseable date %r", value)
        return None


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(round(float(value)))
    except (TypeError, ValueError):
        return default


def _float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _mapping(value: Any, name: str) -> dict[Any, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.warning("Ignoring malformed %s of type %s", name, type(value).__name__)
        return {}
    return value


@dataclass
class PaymentRecord:
    """Receipt status of one interest period."""

    is_paid: bool = False
    paid_date: date | None = None
    note: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"isPaid": self.is_paid}
        if self.paid_date:
            out["paidDate"] = _iso(self.paid_date)
        if self.note:
            out["note"] = self.note
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PaymentRecord:
        return cls(
            is_paid=bool(data.get("isPaid", False)),
            paid_date=_opt_date(data.get("paidDate")),
            note=str(data.get("note") or ""),
        )


@dataclass
class Funder:
    """An individual contributor to an investment's principal."""

    id: str
    name: str
    amount: int
    ticket_number: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "amount": self.amount,
            "ticketNumber": self.ticket_number,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Funder:
        return cls(
            id=str(data.get("id") or generate_id()),
            name=str(data.get("name") or ""),
            amount=_int(data.get("amount")),
            ticket_number=str(data.get("ticketNumber") or ""),
        )


@dataclass
class Investment:
    """
    A single fixed-term deposit or lending position.

    Attributes:
        id: Opaque unique identifier, immutable after creation
        source: Institution / project / group name
        amount: Total principal in whole currency units
        rate: Monthly interest rate in percent (1.2 means 1.2 % per month)
        intro_fee_rate: One-off intro (bonus) fee rate in percent
        start_date: First day of the term
        duration: Term length in whole months
        end_date: ``start_date + duration`` months, recomputed on save
        ticket_number: Master ticket, auto-derived or manually overridden
        status: Lifecycle status
        payment_history: Period index (1..duration) -> receipt record
        funders: Optional contributors; their amounts sum to ``amount``
        order: Manual sort position
        note: Free text
    """

    id: str
    source: str
    amount: int
    rate: float
    start_date: date
    duration: int
    end_date: date | None = None
    intro_fee_rate: float = 0.5
    intro_fee_paid: bool = False
    intro_fee_paid_date: date | None = None
    ticket_number: str = ""
    status: InvestmentStatus = InvestmentStatus.ACTIVE
    payment_history: dict[int, PaymentRecord] = field(default_factory=dict)
    funders: list[Funder] = field(default_factory=list)
    order: int = 0
    note: str = ""

    def __post_init__(self):
        if self.end_date is None:
            self.end_date = compute_end_date(self.start_date, self.duration)

    @property
    def monthly_interest(self) -> int:
        return monthly_interest(self.amount, self.rate)

    @property
    def intro_fee_amount(self) -> int:
        return intro_fee_amount(self.amount, self.intro_fee_rate)

    @property
    def paid_periods(self) -> int:
        return sum(1 for rec in self.payment_history.values() if rec.is_paid)

    @property
    def collected_interest(self) -> int:
        return self.monthly_interest * self.paid_periods

    def display_tickets(self) -> str:
        """Per-funder tickets joined by commas, or the master ticket."""
        if self.funders:
            return ", ".join(f.ticket_number for f in self.funders)
        return self.ticket_number

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted snapshot shape."""
        return {
            "id": self.id,
            "source": self.source,
            "funders": [f.to_dict() for f in self.funders],
            "amount": self.amount,
            "rate": self.rate,
            "introFeeRate": self.intro_fee_rate,
            "introFeePaid": self.intro_fee_paid,
            "introFeePaidDate": _iso(self.intro_fee_paid_date),
            "startDate": _iso(self.start_date),
            "endDate": _iso(self.end_date),
            "duration": self.duration,
            "ticketNumber": self.ticket_number,
            "note": self.note,
            "status": self.status.value,
            "paymentHistory": {
                str(k): rec.to_dict() for k, rec in sorted(self.payment_history.items())
            },
            "order": self.order,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Investment:
        """
        Build an investment from a snapshot element.

        Missing numeric fields fall back to zero/defaults; a missing end date is
        derived from start date and duration.
        """
        history: dict[int, PaymentRecord] = {}
        for key, rec in _mapping(data.get("paymentHistory"), "paymentHistory").items():
            try:
                period = int(key)
            except (TypeError, ValueError):
                logger.warning("Dropping payment record with key %r", key)
                continue
            if isinstance(rec, dict):
                history[period] = PaymentRecord.from_dict(rec)

        start = parse_loose_roc_date(data.get("startDate"))
        duration = max(_int(data.get("duration"), 0), 0)
        return cls(
            id=str(data.get("id") or generate_id()),
            source=str(data.get("source") or ""),
            amount=_int(data.get("amount")),
            rate=_float(data.get("rate"), 0.0),
            intro_fee_rate=_float(data.get("introFeeRate"), 0.5),
            intro_fee_paid=bool(data.get("introFeePaid", False)),
            intro_fee_paid_date=_opt_date(data.get("introFeePaidDate")),
            start_date=start,
            duration=duration,
            end_date=_opt_date(data.get("endDate")),
            ticket_number=str(data.get("ticketNumber") or ""),
            note=str(data.get("note") or ""),
            status=InvestmentStatus.parse(data.get("status")),
            payment_history=history,
            funders=[
                Funder.from_dict(f) for f in (data.get("funders") or []) if isinstance(f, dict)
            ],
            order=_int(data.get("order"), 0),
        )


@dataclass
class AppSettings:
    """
    Durable user settings.

    ``rate_color_map`` maps a rate's text form (``"1.2"``) to a colour tag; the
    engine only stores it, rendering is up to the caller.
    """

    saved_sources: list[str] = field(default_factory=list)
    saved_funders: list[str] = field(default_factory=list)
    theme: str = "system"
    rate_color_map: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "savedSources": list(self.saved_sources),
            "savedFunders": list(self.saved_funders),
            "theme": self.theme,
            "rateColorMap": dict(self.rate_color_map),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> AppSettings:
        data = data or {}
        return cls(
            saved_sources=[str(s) for s in data.get("savedSources") or []],
            saved_funders=[str(s) for s in data.get("savedFunders") or []],
            theme=str(data.get("theme") or "system"),
            rate_color_map={
                str(k): str(v)
                for k, v in _mapping(data.get("rateColorMap"), "rateColorMap").items()
            },
        )
