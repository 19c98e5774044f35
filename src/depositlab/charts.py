"""
Chart functions for visualizing an investment portfolio.

Charts consume the DataFrames produced by :mod:`depositlab.kpi` and return
``(figure, tidy_dataframe_used)`` for consistency. Plotly is an optional
dependency (``pip install 'depositlab[viz]'``).
"""

from __future__ import annotations

import pandas as pd

from .core.errors import ExternalDependencyMissing

# Plotly imports with graceful fallback
try:
    import plotly.express as px
    import plotly.graph_objects as go
    from plotly.subplots import make_subplots

    PLOTLY_AVAILABLE = True
except ImportError:
    PLOTLY_AVAILABLE = False


def _check_plotly() -> None:
    """Check if Plotly is available and raise helpful error if not."""
    if not PLOTLY_AVAILABLE:
        raise ExternalDependencyMissing("plotly", "viz", "chart functions")


def capital_interest_chart(series: pd.DataFrame) -> tuple[go.Figure, pd.DataFrame]:
    """
    Dual-axis monthly chart: capital as bars, interest as a line.

    **Args:**
        series: DataFrame from :func:`depositlab.kpi.chart_series`

    **Returns:**
        Tuple of (plotly_figure, tidy_dataframe_used)

    **Example:**
        ```python
        from depositlab.kpi import chart_series
        from depositlab.charts import capital_interest_chart

        fig, data = capital_interest_chart(chart_series(investments))
        fig.show()
        ```
    """
    _check_plotly()

    fig = make_subplots(specs=[[{"secondary_y": True}]])
    fig.add_trace(
        go.Bar(x=series["label"], y=series["active_capital"], name="在投本金"),
        secondary_y=False,
    )
    fig.add_trace(
        go.Bar(x=series["label"], y=series["returned_capital"], name="到期回金"),
        secondary_y=False,
    )
    fig.add_trace(
        go.Scatter(
            x=series["label"], y=series["interest"], name="預計利息", mode="lines+markers"
        ),
        secondary_y=True,
    )

    fig.update_layout(
        title="Capital and Interest by Month",
        barmode="group",
        hovermode="x unified",
    )
    fig.update_yaxes(title_text="Capital", secondary_y=False)
    fig.update_yaxes(title_text="Interest", secondary_y=True)

    return fig, series


def source_allocation_pie(allocation: dict[str, int]) -> tuple[go.Figure, pd.DataFrame]:
    """
    Pie chart of principal per source.

    Args:
        allocation: Mapping from :func:`depositlab.kpi.source_allocation`

    Returns:
        Tuple of (plotly_figure, tidy_dataframe_used)
    """
    _check_plotly()

    tidy = pd.DataFrame(
        {"source": list(allocation), "amount": list(allocation.values())}
    )
    fig = px.pie(tidy, names="source", values="amount", title="Allocation by Source")
    fig.update_traces(textinfo="percent+label")

    return fig, tidy


def maturity_ladder_chart(ladder: pd.DataFrame) -> tuple[go.Figure, pd.DataFrame]:
    """
    Bar chart of principal maturing per month.

    Args:
        ladder: DataFrame from :func:`depositlab.kpi.maturity_ladder`

    Returns:
        Tuple of (plotly_figure, tidy_dataframe_used)
    """
    _check_plotly()

    fig = px.bar(
        ladder,
        x="label",
        y="amount",
        title="Maturity Ladder",
        labels={"label": "Month", "amount": "Maturing Principal"},
    )

    return fig, ladder
