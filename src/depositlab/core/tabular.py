"""
Flat-table export and import of investment collections.

The table has one row per investment with the column headers used by the
tracker's spreadsheet exports (see :data:`EXPORT_COLUMNS`). Payment history
does not survive the flat form: imported rows always start with an empty
history, and their end date is recomputed from start date and duration.

CSV is written as UTF-8 with a BOM so spreadsheet programs pick the right
encoding. XLSX needs the optional ``openpyxl`` package.
"""

from __future__ import annotations

import json
import logging
import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

import pandas as pd

from .config import LedgerConfig
from .currency import TWD, format_number, to_decimal
from .errors import ExternalDependencyMissing, ImportFormatError
from .models import AppSettings, Funder, Investment, InvestmentStatus
from .persistence import LedgerState, export_json, investments_from_records
from .roc_dates import parse_loose_roc_date, to_roc_date
from .schedule import current_period_index
from .tickets import funder_ticket
from .utils import generate_id

try:
    import openpyxl  # noqa: F401

    OPENPYXL_AVAILABLE = True
except ImportError:
    OPENPYXL_AVAILABLE = False

logger = logging.getLogger(__name__)

EXPORT_COLUMNS: list[str] = [
    "排序",
    "系統ID",
    "機構/專案",
    "存單編號",
    "共同出資人",
    "總本金",
    "月利率(%)",
    "每月利息",
    "額外獎勵(%)",
    "獎勵金額",
    "獎勵已領",
    "開始日期",
    "到期日期",
    "合約期數",
    "目前期數",
    "已收期數",
    "累積已收利息",
    "狀態",
    "備註",
]

# Headers written by older versions, tried after the current one
LEGACY_ALIASES: dict[str, tuple[str, ...]] = {
    "共同出資人": ("金主明細",),
    "機構/專案": ("掛名人/群組",),
    "額外獎勵(%)": ("介紹費(%)",),
    "獎勵已領": ("介紹費已收",),
    "存單編號": ("單號",),
}

YES = "是"
NO = "否"

_FUNDER_RE = re.compile(r"([^(]+)\((\d+(?:\.\d+)?)萬\)")
_FUNDER_SPLIT = re.compile(r"[,，]")


def _check_openpyxl() -> None:
    if not OPENPYXL_AVAILABLE:
        raise ExternalDependencyMissing("openpyxl", "xlsx", "XLSX import/export")


# =============================================================================
# Export
# =============================================================================


def funders_summary(funders: Iterable[Funder]) -> str:
    """``[Funder(name='王', amount=150000)] -> '王(15萬)'``."""
    return ", ".join(
        f"{f.name}({format_number(to_decimal(f.amount) / Decimal(10000))}萬)"
        for f in funders
    )


def _tickets_cell(inv: Investment) -> str:
    if not inv.funders:
        return inv.ticket_number
    return ", ".join(
        f.ticket_number or funder_ticket(f, inv.end_date, inv.rate) for f in inv.funders
    )


def export_rows(
    investments: Sequence[Investment], today: date | None = None
) -> list[dict[str, Any]]:
    """One flat row per investment, sorted by ``order``."""
    rows = []
    for inv in sorted(investments, key=lambda i: i.order):
        rows.append(
            {
                "排序": inv.order,
                "系統ID": inv.id,
                "機構/專案": inv.source,
                "存單編號": _tickets_cell(inv),
                "共同出資人": funders_summary(inv.funders),
                "總本金": inv.amount,
                "月利率(%)": inv.rate,
                "每月利息": inv.monthly_interest,
                "額外獎勵(%)": inv.intro_fee_rate,
                "獎勵金額": inv.intro_fee_amount,
                "獎勵已領": YES if inv.intro_fee_paid else NO,
                "開始日期": to_roc_date(inv.start_date),
                "到期日期": to_roc_date(inv.end_date),
                "合約期數": inv.duration,
                "目前期數": current_period_index(inv.start_date, today),
                "已收期數": inv.paid_periods,
                "累積已收利息": inv.collected_interest,
                "狀態": inv.status.value,
                "備註": inv.note,
            }
        )
    return rows


def export_frame(investments: Sequence[Investment], today: date | None = None) -> pd.DataFrame:
    """Export rows as a DataFrame with columns in :data:`EXPORT_COLUMNS` order."""
    return pd.DataFrame(export_rows(investments, today), columns=EXPORT_COLUMNS)


def write_csv(frame: pd.DataFrame, path: str | Path) -> Path:
    path = Path(path)
    frame.to_csv(path, index=False, encoding="utf-8-sig")
    return path


def write_xlsx(frame: pd.DataFrame, path: str | Path, sheet_name: str = "Investments") -> Path:
    """
    Write ``frame`` to a single-sheet workbook.

    Raises:
        ExternalDependencyMissing: If openpyxl is not installed
    """
    _check_openpyxl()
    path = Path(path)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name=sheet_name, index=False)
    return path


def export_file(state: LedgerState, path: str | Path, today: date | None = None) -> Path:
    """
    Export ``state`` to ``path``; the format follows the suffix.

    ``.json`` is the lossless ``{version, settings, investments}`` document,
    ``.csv`` and ``.xlsx`` are the flat table.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".json":
        path.write_text(export_json(state), encoding="utf-8")
        return path
    if suffix == ".csv":
        return write_csv(export_frame(state.investments, today), path)
    if suffix == ".xlsx":
        return write_xlsx(export_frame(state.investments, today), path)
    raise ValueError(f"Unsupported export format '{suffix}' (use .json, .csv or .xlsx)")


# =============================================================================
# Import
# =============================================================================


class ImportOutcome(str, Enum):
    """Overall result of decoding an import source."""

    OK = "ok"
    NO_VALID_DATA = "no_valid_data"
    EMPTY_INPUT = "empty_input"


@dataclass
class ImportResult:
    """
    Candidates decoded from an import source, ready for
    :func:`~depositlab.core.merge.merge_investments`.

    ``settings`` is only set by JSON documents that carry them.
    """

    outcome: ImportOutcome
    candidates: list[Investment] = field(default_factory=list)
    settings: AppSettings | None = None


def _missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _cell(row: dict[str, Any], column: str) -> str | None:
    for name in (column, *LEGACY_ALIASES.get(column, ())):
        value = row.get(name)
        if not _missing(value):
            return str(value).strip()
    return None


def _number(value: str | None, default: float) -> float:
    """Numeric cell; empty, unparseable and zero values take ``default``."""
    if value is None:
        return default
    try:
        number = float(value.replace(",", ""))
    except ValueError:
        return default
    if math.isnan(number) or number == 0:
        return default
    return number


def parse_funders_string(text: str | None) -> list[Funder]:
    """
    Reverse of :func:`funders_summary`: ``'王(15萬), 李(5.5萬)'`` -> funders.

    Fragments that do not match ``name(amount萬)`` are dropped.
    """
    if not text:
        return []
    funders = []
    for part in _FUNDER_SPLIT.split(text):
        match = _FUNDER_RE.search(part)
        if not match:
            if part.strip():
                logger.warning("Ignoring funder fragment %r", part.strip())
            continue
        funders.append(
            Funder(
                id=generate_id(),
                name=match.group(1).strip(),
                amount=TWD.whole(to_decimal(match.group(2)) * 10000),
            )
        )
    return funders


def row_to_investment(
    row: dict[str, Any],
    config: LedgerConfig | None = None,
    today: date | None = None,
) -> Investment | None:
    """
    Map one flat row to an investment candidate.

    Missing or zero numbers take the configured import defaults, a missing
    ``系統ID`` gets a fresh id and unparseable dates fall back to ``today``.
    Returns ``None`` for rows without any value.
    """
    if all(_missing(v) for v in row.values()):
        return None
    cfg = config or LedgerConfig()

    funders = parse_funders_string(_cell(row, "共同出資人"))
    amount = int(_number(_cell(row, "總本金"), 0))
    if funders:
        amount = sum(f.amount for f in funders)

    duration = int(_number(_cell(row, "合約期數"), cfg.import_default_duration))
    if duration < 0:
        duration = cfg.import_default_duration

    return Investment(
        id=_cell(row, "系統ID") or generate_id(),
        source=_cell(row, "機構/專案") or cfg.import_default_source,
        funders=funders,
        amount=amount,
        rate=_number(_cell(row, "月利率(%)"), cfg.import_default_rate),
        intro_fee_rate=_number(_cell(row, "額外獎勵(%)"), cfg.import_default_fee_rate),
        intro_fee_paid=_cell(row, "獎勵已領") == YES,
        start_date=parse_loose_roc_date(_cell(row, "開始日期"), today),
        duration=duration,
        ticket_number=_cell(row, "存單編號") or "",
        note=_cell(row, "備註") or "",
        status=InvestmentStatus.parse(_cell(row, "狀態")),
        payment_history={},
        order=int(_number(_cell(row, "排序"), 0)),
    )


def parse_rows(
    rows: Sequence[dict[str, Any]],
    config: LedgerConfig | None = None,
    today: date | None = None,
) -> ImportResult:
    """Decode flat rows into an :class:`ImportResult`."""
    if not rows:
        return ImportResult(ImportOutcome.EMPTY_INPUT)
    candidates = []
    for idx, row in enumerate(rows):
        inv = row_to_investment(row, config, today)
        if inv is None:
            logger.warning("Skipping empty import row %d", idx + 1)
            continue
        candidates.append(inv)
    if not candidates:
        return ImportResult(ImportOutcome.NO_VALID_DATA)
    return ImportResult(ImportOutcome.OK, candidates)


def read_tabular(path: str | Path) -> list[dict[str, Any]]:
    """
    Read a CSV or XLSX file into row dictionaries with every cell as text.

    Raises:
        ExternalDependencyMissing: For ``.xlsx``/``.xls`` without openpyxl
        ImportFormatError: For other suffixes
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        frame = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8-sig")
    elif suffix in (".xlsx", ".xls"):
        _check_openpyxl()
        frame = pd.read_excel(path, dtype=str)
    else:
        raise ImportFormatError(f"Unsupported import format '{suffix}' for {path}")
    return frame.to_dict(orient="records")


def parse_json_import(text: str) -> ImportResult:
    """
    Decode a JSON import: a bare list of investments or an export document
    ``{investments, settings?}``.

    Raises:
        ImportFormatError: If the text is not JSON or has neither shape
    """
    if not text.strip():
        return ImportResult(ImportOutcome.EMPTY_INPUT)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ImportFormatError(f"Invalid JSON import: {e}") from e

    settings = None
    if isinstance(data, list):
        records = data
    elif isinstance(data, dict) and isinstance(data.get("investments"), list):
        records = data["investments"]
        if isinstance(data.get("settings"), dict):
            settings = AppSettings.from_dict(data["settings"])
    else:
        raise ImportFormatError("JSON import must be a list or contain an 'investments' list")

    if not records:
        return ImportResult(ImportOutcome.EMPTY_INPUT, settings=settings)
    candidates = investments_from_records(records)
    if not candidates:
        return ImportResult(ImportOutcome.NO_VALID_DATA, settings=settings)
    return ImportResult(ImportOutcome.OK, candidates, settings)


def import_file(
    path: str | Path,
    config: LedgerConfig | None = None,
    today: date | None = None,
) -> ImportResult:
    """Decode an import file; ``.json`` keeps full history, tables do not."""
    path = Path(path)
    if path.suffix.lower() == ".json":
        return parse_json_import(path.read_text(encoding="utf-8"))
    return parse_rows(read_tabular(path), config, today)
