"""Supply completion charts for the results page, rendered in Streamlit with Plotly."""
from typing import Dict, List, Sequence

import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from core import columns
from core.dates import format_date
from core.prioritization import Partition


def generate_color_map(partitions: Sequence[Partition]) -> Dict[str, str]:
    """Stable color per partition label."""
    palette = px.colors.qualitative.Set2
    return {p.label: palette[i % len(palette)] for i, p in enumerate(partitions)}


def build_supply_timeline(partition: Partition, color: str = "#2563eb") -> go.Figure:
    """
    Scatter of supply completion date by rank for one partition.

    Rows without a supply date are listed in the subtitle rather than plotted.
    """
    dated = [r for r in partition.rows if r.supply_date is not None]
    missing = len(partition.rows) - len(dated)

    hover: List[str] = []
    for r in dated:
        remaining = columns.get_remaining(r.record)
        priority = columns.get_priority_number(r.record)
        hover.append(
            f"#{r.rank}<br>"
            f"Supply: {format_date(r.supply_date)}<br>"
            f"Remaining: {'' if remaining is None else f'{remaining:g}'}<br>"
            f"Priority: {'' if priority is None else priority}"
        )

    fig = go.Figure()
    fig.add_scatter(
        x=[r.rank for r in dated],
        y=[r.supply_date for r in dated],
        mode="markers+lines",
        marker=dict(color=color, size=9, line=dict(color="#1b1b1b", width=0.6)),
        line=dict(color=color, width=1),
        hovertext=hover,
        hoverinfo="text",
        showlegend=False,
    )

    subtitle = f"{len(dated)} rows with a supply date"
    if missing:
        subtitle += f", {missing} without"
    fig.update_layout(
        title_text=f"{partition.label}: {subtitle}",
        xaxis=dict(title="Rank", dtick=1 if len(partition.rows) <= 30 else None),
        yaxis=dict(title="Supply completion date", tickformat="%d.%m.%Y"),
        margin=dict(l=70, r=40, t=70, b=60),
        height=380,
        plot_bgcolor="#f8f9fb",
        paper_bgcolor="#ffffff",
    )
    return fig


def build_partition_sizes(partitions: Sequence[Partition]) -> go.Figure:
    """Bar chart of rows per partition."""
    cmap = generate_color_map(partitions)
    fig = go.Figure()
    fig.add_bar(
        x=[p.label for p in partitions],
        y=[len(p.rows) for p in partitions],
        marker=dict(color=[cmap[p.label] for p in partitions]),
        text=[len(p.rows) for p in partitions],
        textposition="outside",
        showlegend=False,
    )
    fig.update_layout(
        title_text="Rows per work center",
        xaxis=dict(title="Work center"),
        yaxis=dict(title="Rows"),
        margin=dict(l=60, r=30, t=60, b=60),
        height=320,
    )
    return fig


def render_supply_timeline(partition: Partition, partitions: Sequence[Partition]):
    """Render both charts into the active Streamlit app."""
    if partition is None or not partition.rows:
        st.info("Nothing to chart.")
        return
    cmap = generate_color_map(partitions)
    st.plotly_chart(build_supply_timeline(partition, cmap.get(partition.label, "#2563eb")), use_container_width=True)
    if len(partitions) > 1:
        st.plotly_chart(build_partition_sizes(partitions), use_container_width=True)
    if not any(r.supply_date for r in partition.rows):
        st.caption("No row in this tab has an expected completion date.")
