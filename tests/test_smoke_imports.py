"""
Smoke tests to verify basic imports and functionality.
"""

from datetime import date

import pytest


def test_import_depositlab():
    """Test that we can import the main package."""
    import depositlab

    assert hasattr(depositlab, "__version__")
    assert depositlab.__version__ == "0.1.0"


def test_import_core_components():
    """Test that core components can be imported."""
    from depositlab import (
        Investment,
        LedgerConfig,
        MergeStrategy,
        monthly_report,
        new_investment,
        upsert_investment,
    )

    assert Investment is not None
    assert LedgerConfig is not None
    assert MergeStrategy is not None
    assert monthly_report is not None
    assert new_investment is not None
    assert upsert_investment is not None


def test_quick_start():
    """The package docstring example works as written."""
    from depositlab import monthly_report, new_investment, upsert_investment

    investments = upsert_investment(
        [], new_investment("ABC", date(2025, 1, 15), amount=500_000, rate=1.2, duration=6)
    )
    assert investments[0].ticket_number == "1140715-ABC50(1.2%)"
    report = monthly_report(investments)
    assert report[0].new_capital == 500_000
    assert report[-1].returned_capital == 500_000


def test_charts_flag():
    """Chart functions raise a helpful error when plotly is missing."""
    import depositlab
    from depositlab.charts import capital_interest_chart
    from depositlab.core.errors import ExternalDependencyMissing
    from depositlab.kpi import chart_series

    series = chart_series([], date(2025, 1, 1))
    if depositlab.CHARTS_AVAILABLE:
        fig, data = capital_interest_chart(series)
        assert len(fig.data) == 3
        assert data is series
    else:
        with pytest.raises(ExternalDependencyMissing, match="pip install plotly"):
            capital_interest_chart(series)
