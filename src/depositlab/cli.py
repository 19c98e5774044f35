"""
Command-line interface for DepositLab.

Every command works on a ledger file: the JSON export document
``{version, settings, investments}``. Commands that change the ledger write
the updated document back (to ``-o`` or, by default, the input file).
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from datetime import date
from enum import Enum
from pathlib import Path

from depositlab import __version__
from depositlab.core.actions import mark_month_paid, new_investment, upsert_investment
from depositlab.core.config import LedgerConfig, load_config
from depositlab.core.ledger import monthly_report, report_for_month, report_frame
from depositlab.core.merge import MergeStrategy, merge_investments
from depositlab.core.models import AppSettings, Funder
from depositlab.core.persistence import LedgerState, export_document, export_json
from depositlab.core.roc_dates import to_roc_date
from depositlab.core.tabular import ImportOutcome, export_file, import_file, parse_json_import
from depositlab.core.utils import generate_id
from depositlab.core.validation import validate_investments
from depositlab.kpi import chart_series, maturity_ladder, portfolio_summary


class LedgerEncoder(json.JSONEncoder):
    """JSON encoder that handles dates, enums, dataclasses and pandas objects."""

    def default(self, obj):
        import numpy as np
        import pandas as pd

        if isinstance(obj, date):
            return obj.isoformat()
        elif isinstance(obj, Enum):
            return obj.value
        elif isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, pd.DataFrame):
            return obj.to_dict("records")
        elif dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return dataclasses.asdict(obj)
        return super().default(obj)


def _dump(data) -> None:
    json.dump(data, sys.stdout, indent=2, ensure_ascii=False, cls=LedgerEncoder)
    sys.stdout.write("\n")


def _load_state(path: str) -> LedgerState:
    """Read a ledger file; a missing file is an empty ledger."""
    file = Path(path)
    if not file.exists():
        return LedgerState()
    result = parse_json_import(file.read_text(encoding="utf-8"))
    return LedgerState(
        investments=result.candidates, settings=result.settings or AppSettings()
    )


def _save_state(path: str, state: LedgerState) -> None:
    Path(path).write_text(export_json(state), encoding="utf-8")


def _config(args) -> LedgerConfig:
    return load_config(args.config) if args.config else LedgerConfig()


def _today(args) -> date | None:
    return date.fromisoformat(args.today) if getattr(args, "today", None) else None


def example_state() -> LedgerState:
    """Small demo ledger: one single-holder deposit and one pooled loan."""
    investments = upsert_investment(
        [],
        new_investment(
            "ABC",
            date(2025, 1, 15),
            amount=500_000,
            rate=1.2,
            duration=6,
            today=date(2025, 1, 15),
        ),
    )
    pooled = new_investment(
        "XYZ",
        date(2025, 3, 1),
        rate=1.0,
        duration=12,
        funders=[
            Funder(id=generate_id(), name="王", amount=300_000),
            Funder(id=generate_id(), name="李", amount=200_000),
        ],
        note="pooled",
        today=date(2025, 3, 1),
    )
    investments = upsert_investment(investments, pooled)
    return LedgerState(investments=investments, settings=AppSettings(saved_sources=["ABC", "XYZ"]))


def cmd_example(_) -> int:
    """Print a small example ledger document."""
    _dump(export_document(example_state()))
    return 0


def cmd_report(args) -> int:
    """Print the monthly ledger, or one month with its detail rows."""
    try:
        state = _load_state(args.input)

        if args.month:
            item = report_for_month(state.investments, args.month)
            if args.json:
                _dump(item)
                return 0
            print(f"{item.roc_month} ({item.month_key})")
            print(f"  New capital:       {item.new_capital:>12,}")
            print(f"  Returned capital:  {item.returned_capital:>12,}")
            print(f"  Interest expected: {item.interest_expected:>12,}")
            print(f"  Interest received: {item.interest_actual:>12,}")
            for row in item.interest_details:
                mark = "✅" if row.is_paid else "⏳"
                print(
                    f"  {mark} {to_roc_date(row.due_date)} {row.source} "
                    f"#{row.period} {row.amount:,}"
                )
            return 0

        items = monthly_report(state.investments)
        if args.json:
            _dump(items)
        elif not items:
            print("No activity")
        else:
            print(report_frame(items).to_string())
        return 0

    except Exception as e:
        print(f"Error building report: {e}", file=sys.stderr)
        return 1


def cmd_stats(args) -> int:
    """Print portfolio figures, the chart window and the maturity ladder."""
    try:
        cfg = _config(args)
        state = _load_state(args.input)
        today = _today(args)

        summary = portfolio_summary(state.investments, today)
        series = chart_series(state.investments, today, cfg.months_back, cfg.months_forward)
        ladder = maturity_ladder(state.investments, today, cfg.ladder_months)

        if args.json:
            _dump({"summary": summary, "chart": series, "ladder": ladder})
            return 0

        print(f"Active principal:     {summary['active_principal']:,}")
        print(f"Monthly income:       {summary['monthly_income']:,}")
        print(f"Weighted annual rate: {summary['weighted_annual_rate']:.2f}%")
        print(f"Collected interest:   {summary['collected_interest']:,}")
        print(f"Active / history:     {summary['active_count']} / {summary['history_count']}")
        for source, amount in summary["source_allocation"].items():
            print(f"  {source}: {amount:,}")
        print()
        print(series.set_index("month_key").to_string())
        print()
        print(ladder.set_index("month_key").to_string())
        return 0

    except Exception as e:
        print(f"Error computing stats: {e}", file=sys.stderr)
        return 1


def cmd_validate(args) -> int:
    """Validate a ledger file."""
    try:
        state = _load_state(args.input)
        report = validate_investments(state.investments)

        if args.format == "json":
            _dump(report.to_dict())
        else:
            print(str(report))

        return report.get_exit_code()

    except Exception as e:
        if args.format == "json":
            _dump(
                {
                    "has_errors": True,
                    "has_warnings": False,
                    "is_valid": False,
                    "exit_code": 1,
                    "error": str(e),
                }
            )
        else:
            print(f"❌ Validation failed: {e}")
        return 1


def cmd_export(args) -> int:
    """Export the ledger to JSON, CSV or XLSX (by output suffix)."""
    try:
        state = _load_state(args.input)
        path = export_file(state, args.output, _today(args))
        print(f"Exported {len(state.investments)} investments to {path}")
        return 0

    except Exception as e:
        print(f"Error exporting: {e}", file=sys.stderr)
        return 1


def cmd_import(args) -> int:
    """Merge an import file into the ledger."""
    try:
        cfg = _config(args)
        state = _load_state(args.input)
        result = import_file(args.source, cfg, _today(args))

        if result.outcome is ImportOutcome.EMPTY_INPUT:
            print(f"Nothing to import in {args.source}", file=sys.stderr)
            return 1
        if result.outcome is ImportOutcome.NO_VALID_DATA:
            print(f"No valid data in {args.source}", file=sys.stderr)
            return 1

        merged = merge_investments(state.investments, result.candidates, args.strategy)
        state = LedgerState(
            investments=merged.investments, settings=result.settings or state.settings
        )
        _save_state(args.output or args.input, state)
        print(
            f"Imported {len(merged.added)} new, {len(merged.overwritten)} overwritten, "
            f"{len(merged.skipped)} skipped"
        )
        return 0

    except Exception as e:
        print(f"Error importing: {e}", file=sys.stderr)
        return 1


def cmd_mark_paid(args) -> int:
    """Mark every unpaid period due in a month as received."""
    try:
        cfg = _config(args)
        state = _load_state(args.input)
        investments = mark_month_paid(
            state.investments,
            args.month,
            today=_today(args),
            policy=args.policy or cfg.note_policy,
            marker=cfg.bulk_paid_marker,
        )
        _save_state(args.output or args.input, LedgerState(investments, state.settings))
        changed = sum(1 for old, new in zip(state.investments, investments) if old is not new)
        print(f"Marked {args.month} paid on {changed} investments")
        return 0

    except Exception as e:
        print(f"Error marking paid: {e}", file=sys.stderr)
        return 1


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="depositlab", description="DepositLab - Fixed-term deposit ledger"
    )

    # Version argument
    parser.add_argument("--version", action="version", version=f"DepositLab {__version__}")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", help="Ledger config file (YAML or JSON)")

    ledger = argparse.ArgumentParser(add_help=False, parents=[common])
    ledger.add_argument("-i", "--input", required=True, help="Ledger JSON file")

    subparsers = parser.add_subparsers(
        dest="cmd", required=True, help="Available commands"
    )

    # Example command
    example_parser = subparsers.add_parser(
        "example", help="Print a small example ledger"
    )
    example_parser.set_defaults(func=cmd_example)

    # Report command
    report_parser = subparsers.add_parser(
        "report", parents=[ledger], help="Print the monthly ledger"
    )
    report_parser.add_argument("--month", help="Single month (format: YYYY-MM)")
    report_parser.add_argument("--json", action="store_true", help="Output in JSON format")
    report_parser.set_defaults(func=cmd_report)

    # Stats command
    stats_parser = subparsers.add_parser(
        "stats", parents=[ledger], help="Print portfolio statistics"
    )
    stats_parser.add_argument("--today", help="Reference date (YYYY-MM-DD)")
    stats_parser.add_argument("--json", action="store_true", help="Output in JSON format")
    stats_parser.set_defaults(func=cmd_stats)

    # Validate command
    validate_parser = subparsers.add_parser(
        "validate", parents=[ledger], help="Validate a ledger file"
    )
    validate_parser.add_argument(
        "--format", choices=["human", "json"], default="human", help="Output format"
    )
    validate_parser.set_defaults(func=cmd_validate)

    # Export command
    export_parser = subparsers.add_parser(
        "export", parents=[ledger], help="Export to .json, .csv or .xlsx"
    )
    export_parser.add_argument("-o", "--output", required=True, help="Output file")
    export_parser.add_argument("--today", help="Reference date (YYYY-MM-DD)")
    export_parser.set_defaults(func=cmd_export)

    # Import command
    import_parser = subparsers.add_parser(
        "import", parents=[ledger], help="Merge a .json, .csv or .xlsx file"
    )
    import_parser.add_argument(
        "--from", dest="source", required=True, help="File to import"
    )
    import_parser.add_argument(
        "--strategy",
        choices=[s.value for s in MergeStrategy],
        default=MergeStrategy.SKIP.value,
        help="Conflict resolution for existing ids (default: skip)",
    )
    import_parser.add_argument("-o", "--output", help="Output ledger (default: input)")
    import_parser.add_argument("--today", help="Fallback date for unparseable cells")
    import_parser.set_defaults(func=cmd_import)

    # Mark-paid command
    mark_parser = subparsers.add_parser(
        "mark-paid", parents=[ledger], help="Mark all periods due in a month as paid"
    )
    mark_parser.add_argument("--month", required=True, help="Month (format: YYYY-MM)")
    mark_parser.add_argument("--today", help="Paid date to stamp (YYYY-MM-DD)")
    mark_parser.add_argument(
        "--policy",
        choices=["overwrite", "keep", "append"],
        help="Treatment of existing notes (default: from config)",
    )
    mark_parser.add_argument("-o", "--output", help="Output ledger (default: input)")
    mark_parser.set_defaults(func=cmd_mark_paid)

    # Parse arguments and execute
    args = parser.parse_args(argv)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
