"""
Lifecycle actions over an investment collection.

Every function takes the current collection (a sequence of
:class:`~depositlab.core.models.Investment`) plus parameters and returns a new
list; inputs are never modified. Callers own persistence and may simply
recompute reports from the returned collection.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace
from datetime import date
from enum import Enum

from .errors import InvestmentValidationError, UnknownInvestmentError
from .merge import max_order
from .models import Funder, Investment, InvestmentStatus, PaymentRecord
from .schedule import default_intro_fee_rate, due_date
from .schedule import end_date as compute_end_date
from .tickets import refresh_tickets
from .utils import generate_id, month_bounds

logger = logging.getLogger(__name__)

BULK_PAID_MARKER = "一鍵入帳"


class NotePolicy(str, Enum):
    """
    What :func:`mark_month_paid` does with an existing period note.

    - ``overwrite``: replace it with the bulk marker
    - ``keep``: leave a non-empty note alone, use the marker otherwise
    - ``append``: keep the note and append the marker
    """

    OVERWRITE = "overwrite"
    KEEP = "keep"
    APPEND = "append"


def _find(investments: Sequence[Investment], inv_id: str) -> Investment:
    for inv in investments:
        if inv.id == inv_id:
            return inv
    raise UnknownInvestmentError(inv_id)


def _swap(investments: Sequence[Investment], updated: Investment) -> list[Investment]:
    return [updated if inv.id == updated.id else inv for inv in investments]


def finalize_investment(
    inv: Investment,
    existing: Sequence[Investment] = (),
    auto_ticket: bool = True,
) -> Investment:
    """
    Enforce write-time invariants before an investment is saved.

    - ``amount`` becomes the sum of funder amounts when funders exist
    - ``end_date`` is recomputed from ``start_date`` and ``duration``
    - payment-history keys must lie in ``[1, duration]``
    - tickets are regenerated when ``auto_ticket`` is set

    Raises:
        InvestmentValidationError: On a negative duration or out-of-range
            payment periods
    """
    if inv.duration < 0:
        raise InvestmentValidationError(inv.id, f"duration must be >= 0, got {inv.duration}")
    bad = sorted(k for k in inv.payment_history if not 1 <= k <= inv.duration)
    if bad:
        raise InvestmentValidationError(
            inv.id, f"payment periods {bad} outside 1..{inv.duration}"
        )

    amount = sum(f.amount for f in inv.funders) if inv.funders else inv.amount
    out = replace(
        inv,
        amount=amount,
        end_date=compute_end_date(inv.start_date, inv.duration),
    )
    if auto_ticket:
        out = refresh_tickets(out, existing)
    return out


def new_investment(
    source: str,
    start_date: date | None = None,
    *,
    amount: int = 500_000,
    rate: float = 1.2,
    duration: int = 6,
    intro_fee_rate: float | None = None,
    funders: Sequence[Funder] = (),
    note: str = "",
    today: date | None = None,
) -> Investment:
    """
    Create a fresh investment with the entry-form defaults.

    The intro fee rate follows the duration rule (6 -> 0.5, 12 -> 1.0) unless
    given, and a position whose term has already ended is created as Returned.
    The result is not yet finalized or placed in a collection; pass it to
    :func:`upsert_investment`.
    """
    now = today or date.today()
    start = start_date or now
    if intro_fee_rate is None:
        intro_fee_rate = default_intro_fee_rate(duration) or 0.5
    end = compute_end_date(start, duration)
    status = InvestmentStatus.RETURNED if end < now else InvestmentStatus.ACTIVE
    return Investment(
        id=generate_id(),
        source=source,
        amount=amount,
        rate=rate,
        start_date=start,
        duration=duration,
        end_date=end,
        intro_fee_rate=intro_fee_rate,
        status=status,
        funders=list(funders),
        note=note,
    )


def upsert_investment(
    investments: Sequence[Investment],
    inv: Investment,
    auto_ticket: bool = True,
) -> list[Investment]:
    """
    Save ``inv``: edit in place when its id exists, append otherwise.

    Edits keep the existing ``order``; new records get ``max(order) + 1``.
    """
    others = [i for i in investments if i.id != inv.id]
    saved = finalize_investment(inv, others, auto_ticket=auto_ticket)
    if len(others) != len(investments):
        current = _find(investments, inv.id)
        return _swap(investments, replace(saved, order=current.order))
    return list(investments) + [replace(saved, order=max_order(investments) + 1)]


def delete_investment(investments: Sequence[Investment], inv_id: str) -> list[Investment]:
    """Remove the record with ``inv_id``; unknown ids leave the list unchanged."""
    return [inv for inv in investments if inv.id != inv_id]


def copy_investment(
    inv: Investment,
    investments: Sequence[Investment],
    keep_receipts: bool = False,
) -> Investment:
    """
    Duplicate the terms of ``inv`` as a new position.

    The copy gets a new id, new funder ids, regenerated tickets and
    ``order = max + 1``. Interest receipts and the intro-fee receipt belong to
    the source position and are cleared unless ``keep_receipts`` is set.
    The copy is returned, not inserted.
    """
    copied = replace(
        inv,
        id=generate_id(),
        funders=[replace(f, id=generate_id(), ticket_number="") for f in inv.funders],
        ticket_number="",
        order=max_order(investments) + 1,
    )
    if not keep_receipts:
        copied = replace(
            copied,
            payment_history={},
            intro_fee_paid=False,
            intro_fee_paid_date=None,
        )
    else:
        copied = replace(copied, payment_history=dict(inv.payment_history))
    return finalize_investment(copied, investments)


def renew_investment(
    inv: Investment,
    investments: Sequence[Investment],
    start_date: date | None = None,
) -> Investment:
    """
    Roll ``inv`` over into a new term.

    The renewal starts on ``start_date`` (today by default), is Active, has an
    empty payment history and an unpaid intro fee, new ids for itself and its
    funders, regenerated tickets and ``order = max + 1``.
    """
    renewed = replace(
        inv,
        id=generate_id(),
        status=InvestmentStatus.ACTIVE,
        start_date=start_date or date.today(),
        payment_history={},
        intro_fee_paid=False,
        intro_fee_paid_date=None,
        ticket_number="",
        funders=[replace(f, id=generate_id(), ticket_number="") for f in inv.funders],
        order=max_order(investments) + 1,
    )
    return finalize_investment(renewed, investments)


def update_payment(
    investments: Sequence[Investment],
    inv_id: str,
    period: int,
    *,
    is_paid: bool | None = None,
    paid_date: date | None = None,
    note: str | None = None,
    today: date | None = None,
) -> list[Investment]:
    """
    Update the receipt record of one period.

    When the period flips to paid and neither the stored record nor the call
    supplies a date, the paid date is set to ``today``.

    Raises:
        UnknownInvestmentError: If ``inv_id`` is not in the collection
        InvestmentValidationError: If ``period`` is outside ``1..duration``
    """
    inv = _find(investments, inv_id)
    if not 1 <= period <= inv.duration:
        raise InvestmentValidationError(
            inv_id, f"period {period} outside 1..{inv.duration}"
        )

    current = inv.payment_history.get(period, PaymentRecord())
    updated = replace(current)
    if is_paid is not None:
        updated.is_paid = is_paid
    if paid_date is not None:
        updated.paid_date = paid_date
    if note is not None:
        updated.note = note
    if is_paid is True and current.paid_date is None and paid_date is None:
        updated.paid_date = today or date.today()

    history = dict(inv.payment_history)
    history[period] = updated
    return _swap(investments, replace(inv, payment_history=history))


def update_intro_fee(
    investments: Sequence[Investment],
    inv_id: str,
    paid: bool,
    today: date | None = None,
) -> list[Investment]:
    """Mark the intro fee received (stamped today) or not received."""
    inv = _find(investments, inv_id)
    return _swap(
        investments,
        replace(
            inv,
            intro_fee_paid=paid,
            intro_fee_paid_date=(today or date.today()) if paid else None,
        ),
    )


def _bulk_note(existing: str, policy: NotePolicy, marker: str) -> str:
    if policy is NotePolicy.OVERWRITE or not existing:
        return marker
    if policy is NotePolicy.APPEND:
        return existing if marker in existing else f"{existing} / {marker}"
    return existing


def mark_month_paid(
    investments: Sequence[Investment],
    key: str,
    *,
    today: date | None = None,
    policy: NotePolicy | str = NotePolicy.KEEP,
    marker: str = BULK_PAID_MARKER,
) -> list[Investment]:
    """
    Mark every unpaid period falling due in month ``key`` as paid.

    Each investment is updated independently; records with nothing due are
    returned unchanged (same object).

    Args:
        investments: Current collection
        key: Target month ``YYYY-MM``
        today: Paid date to stamp (defaults to today)
        policy: Treatment of an existing period note
        marker: Note text identifying bulk receipts
    """
    policy = NotePolicy(policy)
    month_start, month_end = month_bounds(key)
    stamp = today or date.today()

    result = []
    changed = 0
    for inv in investments:
        history = dict(inv.payment_history)
        touched = False
        for period in range(1, inv.duration + 1):
            due = due_date(inv.start_date, period)
            if not month_start <= due <= month_end:
                continue
            current = history.get(period)
            if current is not None and current.is_paid:
                continue
            history[period] = PaymentRecord(
                is_paid=True,
                paid_date=stamp,
                note=_bulk_note(current.note if current else "", policy, marker),
            )
            touched = True
        if touched:
            changed += 1
            result.append(replace(inv, payment_history=history))
        else:
            result.append(inv)

    logger.info("Bulk receipt for %s updated %d investments", key, changed)
    return result


def apply_reordering(
    investments: Sequence[Investment], ordered_ids: Sequence[str]
) -> list[Investment]:
    """
    Assign contiguous orders ``0..n-1`` to ``ordered_ids`` in the given order.

    Records not named in ``ordered_ids`` keep their order.

    Raises:
        UnknownInvestmentError: If an id is not in the collection
    """
    known = {inv.id for inv in investments}
    for inv_id in ordered_ids:
        if inv_id not in known:
            raise UnknownInvestmentError(inv_id)
    position = {inv_id: idx for idx, inv_id in enumerate(ordered_ids)}
    return [
        replace(inv, order=position[inv.id]) if inv.id in position else inv
        for inv in investments
    ]


def move_within_source(
    investments: Sequence[Investment], active_id: str, over_id: str
) -> list[Investment]:
    """
    Move ``active_id`` to the slot of ``over_id`` inside their shared source group.

    The group is renumbered ``0..n-1``; moves across groups are ignored.
    """
    active = _find(investments, active_id)
    over = _find(investments, over_id)
    if active.source != over.source or active_id == over_id:
        return list(investments)

    group = sorted(
        (inv for inv in investments if inv.source == active.source),
        key=lambda inv: inv.order,
    )
    ids = [inv.id for inv in group]
    old_index, new_index = ids.index(active_id), ids.index(over_id)
    ids.insert(new_index, ids.pop(old_index))
    return apply_reordering(investments, ids)
