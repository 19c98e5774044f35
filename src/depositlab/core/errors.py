"""
Error classes for DepositLab.

This module defines the exceptions raised by the ledger engine. Parse failures in
date conversion are *not* exceptions: the strict parser returns ``None`` and the
tolerant parser falls back to today's date.
"""


class DepositLabError(Exception):
    """Base class for all DepositLab errors."""


class ConfigError(DepositLabError):
    """
    Configuration error while loading ledger settings.

    **Common Causes:**
    - Unknown keys in a YAML/JSON config file
    - Values of the wrong type (e.g. ``months_back: "six"``)
    - An unsupported note policy name

    **Example Usage:**
        ```python
        from depositlab.core.config import load_config
        from depositlab.core.errors import ConfigError

        try:
            cfg = load_config({"months_bakc": 6})
        except ConfigError as e:
            print(f"Configuration error: {e}")
        ```
    """


class InvestmentValidationError(DepositLabError, ValueError):
    """
    Raised when an investment violates a write-time invariant.

    Examples are payment-history keys outside ``[1, duration]``, a negative
    duration, or an update addressed to a period the investment does not have.
    """

    def __init__(self, inv_id: str, message: str):
        self.inv_id = inv_id
        super().__init__(f"[Investment {inv_id}] {message}")


class UnknownInvestmentError(DepositLabError, KeyError):
    """Raised when an action addresses an id that is not in the collection."""

    def __init__(self, inv_id: str):
        self.inv_id = inv_id
        super().__init__(inv_id)

    def __str__(self) -> str:
        return f"Unknown investment id: {self.inv_id}"


class ExternalDependencyMissing(DepositLabError, ImportError):
    """
    Raised when an optional third-party package needed for one call is absent.

    Only the current export/chart call is aborted; the caller's in-memory
    state is untouched.

    Attributes:
        package: Distribution name to install
        extra: Matching optional-dependency group of this project
    """

    def __init__(self, package: str, extra: str, purpose: str):
        self.package = package
        self.extra = extra
        super().__init__(
            f"{package} is required for {purpose}. Install with:\n"
            f"pip install {package}\n"
            "or\n"
            f"pip install 'depositlab[{extra}]'"
        )


class ImportFormatError(DepositLabError, ValueError):
    """Raised when an import file cannot be decoded at all (bad JSON, unknown suffix)."""
