"""
Import merge: reconcile an existing collection with incoming candidates.

A candidate conflicts with an existing record iff their ids are equal. Three
strategies are supported:

- ``skip``: keep existing records as they are, append only non-conflicting
  candidates.
- ``overwrite``: replace the content of conflicting records but keep their
  ``order``; append non-conflicting candidates.
- ``clone``: give every candidate (and its funders) a fresh id and append all
  of them; nothing existing is touched.

Appended records receive ``order = max(existing orders) + 1 + position`` so
sort positions are strictly increasing and never collide with existing ones.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from enum import Enum

from .models import Investment
from .utils import generate_id

logger = logging.getLogger(__name__)


class MergeStrategy(str, Enum):
    """How conflicting ids are resolved during import."""

    SKIP = "skip"
    OVERWRITE = "overwrite"
    CLONE = "clone"

    @classmethod
    def parse(cls, value: str | MergeStrategy) -> MergeStrategy:
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if text == "new":  # legacy import dialog name
            return cls.CLONE
        try:
            return cls(text)
        except ValueError:
            raise ValueError(
                f"Unknown merge strategy {value!r}; expected skip, overwrite or clone"
            ) from None


@dataclass
class MergeResult:
    """
    Outcome of :func:`merge_investments`.

    Attributes:
        investments: The merged collection (existing records first)
        added: Ids appended to the collection
        overwritten: Ids whose content was replaced
        skipped: Incoming ids dropped because they conflicted
    """

    investments: list[Investment]
    added: list[str] = field(default_factory=list)
    overwritten: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def max_order(investments: Sequence[Investment]) -> int:
    """Largest ``order`` in the collection, 0 when it is empty."""
    return max((inv.order for inv in investments), default=0)


def find_conflicts(
    existing: Sequence[Investment], incoming: Sequence[Investment]
) -> list[Investment]:
    """Incoming records whose id already exists."""
    existing_ids = {inv.id for inv in existing}
    return [inv for inv in incoming if inv.id in existing_ids]


def _with_fresh_ids(inv: Investment) -> Investment:
    return replace(
        inv,
        id=generate_id(),
        funders=[replace(f, id=generate_id()) for f in inv.funders],
    )


def _append(
    base: list[Investment], items: Sequence[Investment]
) -> tuple[list[Investment], list[str]]:
    start = max_order(base) + 1
    appended = [replace(inv, order=start + pos) for pos, inv in enumerate(items)]
    return base + appended, [inv.id for inv in appended]


def merge_investments(
    existing: Sequence[Investment],
    incoming: Sequence[Investment],
    strategy: MergeStrategy | str = MergeStrategy.SKIP,
) -> MergeResult:
    """
    Merge ``incoming`` candidates into ``existing`` under ``strategy``.

    Neither input is modified.

    Args:
        existing: Current collection
        incoming: Candidates from an import
        strategy: ``skip``, ``overwrite`` or ``clone`` (``new`` is accepted)

    Returns:
        :class:`MergeResult` with the new collection and per-id bookkeeping
    """
    strategy = MergeStrategy.parse(strategy)
    existing = list(existing)

    if strategy is MergeStrategy.CLONE:
        merged, added = _append(existing, [_with_fresh_ids(inv) for inv in incoming])
        logger.info("Cloned %d imported investments", len(added))
        return MergeResult(investments=merged, added=added)

    existing_ids = {inv.id for inv in existing}
    conflicts = [inv for inv in incoming if inv.id in existing_ids]
    fresh = [inv for inv in incoming if inv.id not in existing_ids]

    result = list(existing)
    overwritten: list[str] = []
    skipped: list[str] = []
    if strategy is MergeStrategy.OVERWRITE:
        replacements = {inv.id: inv for inv in conflicts}
        result = []
        for inv in existing:
            if inv.id in replacements:
                result.append(replace(replacements[inv.id], order=inv.order))
                overwritten.append(inv.id)
            else:
                result.append(inv)
    else:
        skipped = [inv.id for inv in conflicts]

    merged, added = _append(result, fresh)
    logger.info(
        "Merged import (%s): %d added, %d overwritten, %d skipped",
        strategy.value,
        len(added),
        len(overwritten),
        len(skipped),
    )
    return MergeResult(
        investments=merged, added=added, overwritten=overwritten, skipped=skipped
    )
