"""
DepositLab - Ledger Engine for Fixed-Term Deposits and Private Lending

DepositLab tracks fixed-term deposit and private-lending positions that pay a
flat monthly interest and return their principal at maturity. It turns a
collection of positions into monthly cash-flow reports, portfolio statistics
and human-readable ticket identifiers, with dates shown in the ROC (Minguo)
calendar.

Key Features:
- **Schedule Engine**: Calendar-correct month arithmetic and flat interest
- **Monthly Ledger**: New capital, returned capital, expected and received interest
- **Tickets**: ``1140715-ABC50(1.2%)`` identifiers, unique across the collection
- **Lifecycle Actions**: Create, edit, copy, renew, receipt and bulk receipt
- **Import/Export**: JSON documents and flat CSV/XLSX tables with merge strategies
- **Statistics**: Weighted annual yield, allocation, chart window, maturity ladder

Quick Start:
    ```python
    from datetime import date
    from depositlab import monthly_report, new_investment, upsert_investment

    investments = upsert_investment(
        [], new_investment("ABC", date(2025, 1, 15), amount=500_000, rate=1.2, duration=6)
    )
    investments[0].ticket_number      # '1140715-ABC50(1.2%)'
    for item in monthly_report(investments):
        print(item.roc_month, item.new_capital, item.interest_expected)
    ```

Every engine function takes the current collection and returns a new one;
persistence is left to the caller (see :mod:`depositlab.core.persistence`).
"""

# Version information
__version__ = "0.1.0"
__author__ = "DepositLab Team"
__description__ = "Ledger engine for fixed-term deposits and private lending"

from .core import (
    AppSettings,
    ConfigError,
    DepositLabError,
    ExternalDependencyMissing,
    Funder,
    ImportFormatError,
    Investment,
    InvestmentStatus,
    InvestmentValidationError,
    LedgerConfig,
    LedgerState,
    MergeStrategy,
    MonthlyReportItem,
    NotePolicy,
    PaymentRecord,
    UnknownInvestmentError,
    ValidationReport,
    copy_investment,
    delete_investment,
    export_file,
    import_file,
    load_config,
    mark_month_paid,
    merge_investments,
    monthly_report,
    new_investment,
    renew_investment,
    update_payment,
    upsert_investment,
    validate_investments,
)

# Import KPI utilities
from .kpi import (
    chart_series,
    maturity_ladder,
    portfolio_summary,
    source_allocation,
    split_active_history,
    weighted_annual_rate,
)

# Chart functions need plotly at call time only
from .charts import PLOTLY_AVAILABLE as CHARTS_AVAILABLE

# Define what gets imported with "from depositlab import *"
__all__ = [
    # Models
    "AppSettings",
    "Funder",
    "Investment",
    "InvestmentStatus",
    "PaymentRecord",
    "LedgerState",
    "LedgerConfig",
    "load_config",
    # Errors
    "DepositLabError",
    "ConfigError",
    "ExternalDependencyMissing",
    "ImportFormatError",
    "InvestmentValidationError",
    "UnknownInvestmentError",
    # Engine
    "MonthlyReportItem",
    "monthly_report",
    "MergeStrategy",
    "merge_investments",
    "NotePolicy",
    "new_investment",
    "upsert_investment",
    "delete_investment",
    "copy_investment",
    "renew_investment",
    "update_payment",
    "mark_month_paid",
    "export_file",
    "import_file",
    "ValidationReport",
    "validate_investments",
    # KPI utilities
    "chart_series",
    "maturity_ladder",
    "portfolio_summary",
    "source_allocation",
    "split_active_history",
    "weighted_annual_rate",
    "CHARTS_AVAILABLE",
    # Version info
    "__version__",
    "__author__",
    "__description__",
]
