"""Plotly visualisation helpers for the goal planner.

Each function accepts one of the DataFrames built in :mod:`reporting` (or
a strategy result) and returns a `plotly.graph_objects.Figure` that
Streamlit can render via ``st.plotly_chart``.  Empty inputs produce a
blank figure titled "No data to display".
"""

from __future__ import annotations

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .models import Bucket, StrategyResult

BUCKET_COLORS = {
    Bucket.CONSERVATIVE.label: "#10b981",
    Bucket.MODERATE.label: "#eab308",
    Bucket.AGGRESSIVE.label: "#ef4444",
}


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def create_bucket_chart(buckets: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Stacked bar of allocated versus remaining capacity per bucket.

    Parameters
    ----------
    buckets : pandas.DataFrame
        Output of :func:`reporting.buckets_to_frame`.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Stacked bar chart.
    """
    if buckets.empty or buckets["Total"].sum() <= 0:
        return _empty_figure()
    fig = go.Figure()
    fig.add_trace(go.Bar(name="Allocated", x=buckets["Bucket"], y=buckets["Allocated"]))
    fig.add_trace(go.Bar(name="Remaining", x=buckets["Bucket"], y=buckets["Remaining"]))
    fig.update_layout(
        barmode="stack",
        title=title or "Monthly capacity by risk bucket",
        xaxis_title="Bucket",
        yaxis_title="Monthly amount",
    )
    return fig


def create_goal_funding_chart(plan_frame: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Grouped bars comparing each goal's required and funded monthly amounts.

    Parameters
    ----------
    plan_frame : pandas.DataFrame
        Output of :func:`reporting.plan_to_frame`.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Grouped bar chart.
    """
    if plan_frame.empty:
        return _empty_figure()
    df = plan_frame.melt(
        id_vars=["Goal"],
        value_vars=["Required Monthly", "Funded Monthly"],
        var_name="Measure",
        value_name="Amount",
    )
    fig = px.bar(df, x="Goal", y="Amount", color="Measure", barmode="group")
    fig.update_layout(
        title=title or "Required vs funded monthly amount",
        xaxis_title="Goal",
        yaxis_title="Monthly amount",
    )
    return fig


def create_allocation_chart(strategy: StrategyResult | None, title: str | None = None) -> go.Figure:
    """Pie chart of a strategy's suggested asset mix."""
    if strategy is None:
        return _empty_figure()
    df = pd.DataFrame(
        [
            {"Bucket": bucket.label, "Percent": strategy.suggested_allocation.percent(bucket)}
            for bucket in Bucket
            if strategy.suggested_allocation.percent(bucket) > 0
        ]
    )
    if df.empty:
        return _empty_figure()
    fig = px.pie(
        df,
        names="Bucket",
        values="Percent",
        color="Bucket",
        color_discrete_map=BUCKET_COLORS,
    )
    fig.update_layout(title=title or "Suggested allocation")
    return fig
