"""Plotly visualisation helpers for the bucket planner.

Each function accepts an object produced by the calculation modules
(:class:`~bucket_planner.buckets.BucketSummary`,
:class:`~bucket_planner.distribution.DistributionResult`) and returns a
``plotly.graph_objects.Figure`` that Streamlit can render via
``st.plotly_chart``.
"""

from __future__ import annotations

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .buckets import BucketSummary
from .distribution import DistributionResult
from .summary import bucket_frame

DISTRIBUTION_LABELS = {
    'savings': 'Savings',
    'core': 'Crypto core',
    'shit': 'Shit money',
    'fun': 'Leisure',
    'buffer': 'Buffer',
}


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def bucket_progress_chart(summary: BucketSummary, title: str | None = None) -> go.Figure:
    """Grouped bar chart of plan against actual per bucket.

    Parameters
    ----------
    summary : BucketSummary
        Output of :func:`bucket_planner.buckets.build_buckets`.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Grouped bar chart, or an empty figure when nothing is planned or spent.
    """
    df = bucket_frame(summary)
    if df.empty or not (df['Plan'].abs().sum() or df['Actual'].abs().sum()):
        return _empty_figure()
    long_df = df.melt(id_vars='Bucket', value_vars=['Plan', 'Actual'], var_name='Series', value_name='Amount')
    fig = px.bar(long_df, x='Bucket', y='Amount', color='Series', barmode='group')
    fig.update_layout(
        title=title or "Plan vs actual by bucket",
        xaxis_title="Bucket",
        yaxis_title="Amount",
    )
    return fig


def distribution_chart(distribution: DistributionResult, title: str | None = None) -> go.Figure:
    """Stacked bar of base and subsidy targets per bucket.

    Parameters
    ----------
    distribution : DistributionResult
        Output of :func:`bucket_planner.distribution.compute_distribution`.
    title : str, optional
        Chart title.
    """
    rows = []
    for key, label in DISTRIBUTION_LABELS.items():
        rows.append({'Bucket': label, 'Source': 'Monthly', 'Amount': distribution.base_targets.get(key, 0.0)})
        if distribution.subsidy_applied:
            rows.append({'Bucket': label, 'Source': 'Subsidy', 'Amount': distribution.subsidy_targets.get(key, 0.0)})
    df = pd.DataFrame(rows)
    if df.empty or not df['Amount'].sum():
        return _empty_figure()
    fig = px.bar(df, x='Bucket', y='Amount', color='Source', barmode='stack')
    fig.update_layout(
        title=title or "Planned distribution",
        xaxis_title="Bucket",
        yaxis_title="Amount",
    )
    return fig
