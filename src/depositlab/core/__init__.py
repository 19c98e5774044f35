"""
Core module for DepositLab.

This module contains the ledger engine: domain records, calendar and schedule
arithmetic, ticket generation, aggregation, merging and lifecycle actions.
"""

from .actions import (
    BULK_PAID_MARKER,
    NotePolicy,
    apply_reordering,
    copy_investment,
    delete_investment,
    finalize_investment,
    mark_month_paid,
    move_within_source,
    new_investment,
    renew_investment,
    update_intro_fee,
    update_payment,
    upsert_investment,
)
from .config import LedgerConfig, load_config
from .errors import (
    ConfigError,
    DepositLabError,
    ExternalDependencyMissing,
    ImportFormatError,
    InvestmentValidationError,
    UnknownInvestmentError,
)
from .ledger import (
    MonthlyReportItem,
    monthly_report,
    report_for_month,
    report_frame,
    windowed_report,
)
from .merge import MergeResult, MergeStrategy, find_conflicts, merge_investments
from .models import AppSettings, Funder, Investment, InvestmentStatus, PaymentRecord
from .persistence import (
    JsonDirectoryStore,
    LedgerState,
    MemoryStore,
    export_document,
    load_state,
    save_state,
)
from .roc_dates import (
    parse_loose_roc_date,
    roc_input_to_date,
    to_roc_date,
    to_roc_input,
    to_roc_simple,
)
from .schedule import (
    current_period_index,
    due_date,
    end_date,
    monthly_interest,
    schedule_for,
)
from .tabular import ImportOutcome, ImportResult, export_file, import_file
from .tickets import refresh_tickets, ticket_string, unique_ticket
from .utils import month_key, month_range
from .validation import ValidationReport, validate_investments

__all__ = [
    # Errors
    "DepositLabError",
    "ConfigError",
    "ExternalDependencyMissing",
    "ImportFormatError",
    "InvestmentValidationError",
    "UnknownInvestmentError",
    # Models
    "AppSettings",
    "Funder",
    "Investment",
    "InvestmentStatus",
    "PaymentRecord",
    # Calendar
    "to_roc_date",
    "to_roc_simple",
    "to_roc_input",
    "roc_input_to_date",
    "parse_loose_roc_date",
    # Schedule
    "end_date",
    "due_date",
    "monthly_interest",
    "current_period_index",
    "schedule_for",
    # Tickets
    "ticket_string",
    "unique_ticket",
    "refresh_tickets",
    # Ledger
    "MonthlyReportItem",
    "monthly_report",
    "report_for_month",
    "report_frame",
    "windowed_report",
    # Merge
    "MergeStrategy",
    "MergeResult",
    "find_conflicts",
    "merge_investments",
    # Actions
    "BULK_PAID_MARKER",
    "NotePolicy",
    "finalize_investment",
    "new_investment",
    "upsert_investment",
    "delete_investment",
    "copy_investment",
    "renew_investment",
    "update_payment",
    "update_intro_fee",
    "mark_month_paid",
    "apply_reordering",
    "move_within_source",
    # Persistence and exchange
    "LedgerState",
    "MemoryStore",
    "JsonDirectoryStore",
    "load_state",
    "save_state",
    "export_document",
    "export_file",
    "import_file",
    "ImportOutcome",
    "ImportResult",
    # Config and validation
    "LedgerConfig",
    "load_config",
    "ValidationReport",
    "validate_investments",
    # Utils
    "month_key",
    "month_range",
]
