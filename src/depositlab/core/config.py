"""Engine configuration loaded from YAML/JSON files or mappings."""

from __future__ import annotations

import json
from copy import deepcopy
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .actions import BULK_PAID_MARKER, NotePolicy
from .errors import ConfigError

__all__ = ["LedgerConfig", "load_config"]


@dataclass(slots=True)
class LedgerConfig:
    """
    Tunable knobs of the ledger engine.

    Attributes:
        months_back: Months before today shown in the chart window
        months_forward: Months after today shown in the chart window
        ladder_months: Look-ahead of the maturity ladder
        note_policy: Treatment of existing notes by bulk receipts
        bulk_paid_marker: Note stamped on bulk receipts
        import_default_rate: Monthly rate for import rows without one
        import_default_fee_rate: Intro fee rate for import rows without one
        import_default_duration: Duration for import rows without one
        import_default_source: Source name for import rows without one
    """

    months_back: int = 6
    months_forward: int = 12
    ladder_months: int = 12
    note_policy: NotePolicy = NotePolicy.KEEP
    bulk_paid_marker: str = BULK_PAID_MARKER
    import_default_rate: float = 1.2
    import_default_fee_rate: float = 0.5
    import_default_duration: int = 12
    import_default_source: str = "匯入資料"


_INT_FIELDS = {"months_back", "months_forward", "ladder_months", "import_default_duration"}
_FLOAT_FIELDS = {"import_default_rate", "import_default_fee_rate"}
_STR_FIELDS = {"bulk_paid_marker", "import_default_source"}


def load_config(source: str | Path | dict[str, Any] | None = None) -> LedgerConfig:
    """
    Build a :class:`LedgerConfig` from a mapping or a YAML/JSON file.

    Missing keys keep their defaults; unknown keys and badly typed values
    raise :class:`~depositlab.core.errors.ConfigError`.
    """
    if source is None:
        return LedgerConfig()
    mapping, label = _read_source(source)
    known = {f.name for f in fields(LedgerConfig)}
    unknown = sorted(set(mapping) - known)
    if unknown:
        raise ConfigError(f"{label}: unknown config keys {unknown}")

    values: dict[str, Any] = {}
    for key, value in mapping.items():
        ctx = f"{label}::{key}"
        if key in _INT_FIELDS:
            values[key] = _coerce_int(value, ctx)
        elif key in _FLOAT_FIELDS:
            values[key] = _coerce_float(value, ctx)
        elif key in _STR_FIELDS:
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"{ctx}: expected non-empty string")
            values[key] = value
        elif key == "note_policy":
            try:
                values[key] = NotePolicy(str(value).lower())
            except ValueError as exc:
                choices = ", ".join(p.value for p in NotePolicy)
                raise ConfigError(f"{ctx}: expected one of {choices}") from exc
    return LedgerConfig(**values)


def _read_source(source: str | Path | dict[str, Any]) -> tuple[dict[str, Any], str]:
    if isinstance(source, dict):
        return deepcopy(source), "<mapping>"

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(path)

    fmt = path.suffix.lstrip(".").lower()
    text = path.read_text(encoding="utf-8")
    if fmt in {"yaml", "yml", ""}:
        data = yaml.safe_load(text)
    elif fmt == "json":
        data = json.loads(text)
    else:
        raise ConfigError(f"Unsupported config format '{fmt}' for {path}")

    if data is None:
        return {}, str(path)
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping (source={path})")
    return data, str(path)


def _coerce_int(value: Any, ctx: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{ctx}: expected an integer")
    if value < 0:
        raise ConfigError(f"{ctx}: must be >= 0")
    return value


def _coerce_float(value: Any, ctx: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{ctx}: expected a number")
    return float(value)
