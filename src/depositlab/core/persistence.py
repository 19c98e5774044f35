"""
Snapshot persistence port.

The engine never touches storage itself. Callers hand it serialized blobs
(JSON text) read from any key-value store and write back what it returns.
Two blobs exist: the investment collection and the settings.

Stored state is treated as a cache: a blob that fails to parse resets the
corresponding collection to empty (or settings to defaults) with a logged
warning instead of raising.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from .models import AppSettings, Investment

logger = logging.getLogger(__name__)

INVESTMENTS_KEY = "investments_data"
SETTINGS_KEY = "investments_settings"
EXPORT_VERSION = 2


class SnapshotStore(Protocol):
    """Key-value transport for serialized blobs."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """Dictionary-backed store, handy for tests and embedding."""

    def __init__(self, data: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(data or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonDirectoryStore:
    """One ``<key>.json`` file per blob inside ``root``."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(value, encoding="utf-8")


@dataclass
class LedgerState:
    """Everything the engine needs for one invocation."""

    investments: list[Investment] = field(default_factory=list)
    settings: AppSettings = field(default_factory=AppSettings)


def investments_from_records(records: Sequence[Any]) -> list[Investment]:
    """
    Build investments from decoded snapshot elements.

    Elements without a numeric ``order`` get their position in the sequence
    (migration rule for snapshots written before manual ordering existed).
    Non-dict elements are dropped.
    """
    out = []
    for idx, rec in enumerate(records):
        if not isinstance(rec, dict):
            logger.warning("Skipping non-object investment record at index %d", idx)
            continue
        inv = Investment.from_dict(rec)
        order = rec.get("order")
        if isinstance(order, bool) or not isinstance(order, (int, float)):
            inv.order = idx
        out.append(inv)
    return out


def load_investments(blob: str | None) -> list[Investment]:
    """Decode the investment blob; empty on missing or malformed data."""
    if not blob:
        return []
    try:
        parsed = json.loads(blob)
    except json.JSONDecodeError as e:
        logger.warning("Corrupt investment snapshot, starting empty: %s", e)
        return []
    if not isinstance(parsed, list):
        logger.warning("Investment snapshot is not a list, starting empty")
        return []
    return investments_from_records(parsed)


def load_settings(blob: str | None) -> AppSettings:
    """Decode the settings blob; defaults on missing or malformed data."""
    if not blob:
        return AppSettings()
    try:
        parsed = json.loads(blob)
    except json.JSONDecodeError as e:
        logger.warning("Corrupt settings snapshot, using defaults: %s", e)
        return AppSettings()
    if not isinstance(parsed, dict):
        return AppSettings()
    return AppSettings.from_dict(parsed)


def dump_investments(investments: Sequence[Investment]) -> str:
    return json.dumps([inv.to_dict() for inv in investments], ensure_ascii=False)


def dump_settings(settings: AppSettings) -> str:
    return json.dumps(settings.to_dict(), ensure_ascii=False)


def load_state(store: SnapshotStore) -> LedgerState:
    return LedgerState(
        investments=load_investments(store.get(INVESTMENTS_KEY)),
        settings=load_settings(store.get(SETTINGS_KEY)),
    )


def save_state(store: SnapshotStore, state: LedgerState) -> None:
    store.set(INVESTMENTS_KEY, dump_investments(state.investments))
    store.set(SETTINGS_KEY, dump_settings(state.settings))


def export_document(state: LedgerState) -> dict[str, Any]:
    """Lossless JSON export: ``{version, settings, investments}``."""
    return {
        "version": EXPORT_VERSION,
        "settings": state.settings.to_dict(),
        "investments": [inv.to_dict() for inv in state.investments],
    }


def export_json(state: LedgerState, indent: int | None = 2) -> str:
    return json.dumps(export_document(state), ensure_ascii=False, indent=indent)
