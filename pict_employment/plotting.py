from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

import plotly.graph_objects as go

from .config import DIVERGING_TOP_N
from .models import (
    AgeBreakdownRecord,
    CompositionRecord,
    GenderTrendRecord,
    RatioTrendRecord,
    TimeSeriesRecord,
)


# ============================================================
# Configuration / constants
# ============================================================

FULL_TIME_COLOR = "#1e40af"
PART_TIME_COLOR = "#f59e0b"
MALE_COLOR = "#3b82f6"
FEMALE_COLOR = "#ec4899"

SERIES_COLORS: List[str] = [
    "#3b82f6",
    "#ef4444",
    "#10b981",
    "#f59e0b",
    "#8b5cf6",
    "#06b6d4",
    "#f97316",
    "#84cc16",
    "#ec4899",
    "#6366f1",
]

HOVER_TEMPLATE_COUNT = "%{y}<br>%{fullData.name}: %{x:,.0f}<extra></extra>"

HOVER_TEMPLATE_SHARE = (
    "%{y}<br>%{fullData.name}: %{customdata[0]:.1f}%"
    " (%{customdata[1]:,.0f})<extra></extra>"
)

HOVER_TEMPLATE_TREND = (
    "%{fullData.name}<br>Year: %{x}<br>Employed: %{y:,.0f}<extra></extra>"
)

HOVER_TEMPLATE_RATIO = (
    "Year: %{x}<br>%{fullData.name}: %{y:.1f}%<br>"
    "Count: %{customdata[0]:,.0f}<br>FT:PT ratio: %{customdata[1]}<extra></extra>"
)

BASE_LAYOUT = dict(
    plot_bgcolor="#f5f7fb",
    margin=dict(t=80, l=60, r=40, b=50),
    legend=dict(
        orientation="h",
        x=0.5,
        y=1.02,
        xanchor="center",
        yanchor="bottom",
        bgcolor="#f9f9f9",
        bordercolor="#c7c7c7",
        borderwidth=1,
        font=dict(size=12),
    ),
)


# ============================================================
# Helper functions
# ============================================================


def empty_figure(message: str = "No data available for this selection") -> go.Figure:
    """Blank figure carrying a centred message instead of axes."""
    fig = go.Figure()
    fig.add_annotation(
        text=message,
        x=0.5,
        y=0.5,
        xref="paper",
        yref="paper",
        showarrow=False,
        font=dict(size=14, color="#475569"),
    )
    fig.update_xaxes(visible=False)
    fig.update_yaxes(visible=False)
    fig.update_layout(plot_bgcolor="white")
    return fig


def _color(i: int) -> str:
    return SERIES_COLORS[i % len(SERIES_COLORS)]


def _format_ratio(ratio: Optional[float]) -> str:
    return "n/a (no part-time)" if ratio is None else f"{ratio:.2f}"


# ============================================================
# Composition views
# ============================================================


def create_composition_bar(records: Sequence[CompositionRecord]) -> go.Figure:
    """Stacked horizontal bars of full-time and part-time counts per country."""
    if not records:
        return empty_figure()

    names = [f"{r.country_name} ({r.year})" for r in records]
    fig = go.Figure()
    for label, values, color in (
        ("Full-time", [r.full_time for r in records], FULL_TIME_COLOR),
        ("Part-time", [r.part_time for r in records], PART_TIME_COLOR),
    ):
        fig.add_trace(
            go.Bar(
                y=names,
                x=values,
                name=label,
                orientation="h",
                marker_color=color,
                hovertemplate=HOVER_TEMPLATE_COUNT,
            )
        )

    fig.update_layout(
        **BASE_LAYOUT,
        barmode="stack",
        title="<b>Employment composition by country (latest year)</b>",
        height=max(400, 32 * len(records) + 150),
    )
    fig.update_yaxes(autorange="reversed")
    fig.update_xaxes(title_text="Employed persons", tickformat="~s")
    return fig


def create_composition_diverging(
    records: Sequence[CompositionRecord], top_n: int = DIVERGING_TOP_N
) -> go.Figure:
    """Full-time share to the left, part-time share to the right of zero.

    Only the ``top_n`` largest countries by total employment are shown.
    """
    shown = sorted(records, key=lambda r: -r.total_employed)[:top_n]
    if not shown:
        return empty_figure()

    names = [r.country_name for r in shown]
    fig = go.Figure()
    fig.add_trace(
        go.Bar(
            y=names,
            x=[-r.full_time_pct for r in shown],
            name="Full-time",
            orientation="h",
            marker_color=FULL_TIME_COLOR,
            customdata=[[r.full_time_pct, r.full_time] for r in shown],
            hovertemplate=HOVER_TEMPLATE_SHARE,
        )
    )
    fig.add_trace(
        go.Bar(
            y=names,
            x=[r.part_time_pct for r in shown],
            name="Part-time",
            orientation="h",
            marker_color=PART_TIME_COLOR,
            customdata=[[r.part_time_pct, r.part_time] for r in shown],
            hovertemplate=HOVER_TEMPLATE_SHARE,
        )
    )

    max_pct = max(max(r.full_time_pct, r.part_time_pct) for r in shown)
    scale_max = max(10, -(-int(max_pct) // 10) * 10)
    ticks = list(range(-scale_max, scale_max + 1, 10 if scale_max <= 50 else 20))

    fig.update_layout(
        **BASE_LAYOUT,
        barmode="relative",
        title="<b>Full-time vs part-time share of employment</b>",
        height=max(400, 36 * len(shown) + 150),
    )
    fig.update_xaxes(
        range=[-scale_max, scale_max],
        tickvals=ticks,
        ticktext=[f"{abs(t)}%" for t in ticks],
        zeroline=True,
        zerolinecolor="#334155",
    )
    fig.update_yaxes(autorange="reversed")
    return fig


# ============================================================
# Trend views
# ============================================================


def create_trend_lines(
    records: Iterable[TimeSeriesRecord],
    selected_codes: Optional[Sequence[str]] = None,
) -> go.Figure:
    """One line of total employment per country.

    ``selected_codes`` restricts the lines drawn; ``None`` draws all.
    """
    chosen = [
        r
        for r in records
        if r.points and (selected_codes is None or r.country_code in selected_codes)
    ]
    if not chosen:
        return empty_figure()

    fig = go.Figure()
    for i, record in enumerate(chosen):
        color = _color(i)
        fig.add_trace(
            go.Scatter(
                x=[p.year for p in record.points],
                y=[p.value for p in record.points],
                mode="lines+markers",
                name=record.country_name,
                line=dict(width=3, color=color),
                marker=dict(size=8, color=color),
                hovertemplate=HOVER_TEMPLATE_TREND,
            )
        )

    fig.update_layout(**BASE_LAYOUT, title="<b>Employment over time</b>", height=500)
    fig.update_xaxes(title_text="Year", tickmode="linear", dtick=1)
    fig.update_yaxes(title_text="Employed persons", tickformat="~s", rangemode="tozero")
    return fig


def create_age_bar(record: Optional[AgeBreakdownRecord]) -> go.Figure:
    """Grouped full-time/part-time bars per age bracket."""
    if record is None:
        return empty_figure("No data for this country")
    if not record.brackets:
        return empty_figure(f"No age breakdown available for {record.country_name}")

    labels = [b.age_group for b in record.brackets]
    fig = go.Figure()
    fig.add_trace(
        go.Bar(
            x=labels,
            y=[b.full_time for b in record.brackets],
            name="Full-time",
            marker_color=FULL_TIME_COLOR,
        )
    )
    fig.add_trace(
        go.Bar(
            x=labels,
            y=[b.part_time for b in record.brackets],
            name="Part-time",
            marker_color=PART_TIME_COLOR,
        )
    )
    fig.update_layout(
        **BASE_LAYOUT,
        barmode="group",
        title=f"<b>Employment by age, {record.country_name} ({record.year})</b>",
        height=450,
    )
    fig.update_yaxes(title_text="Employed persons", tickformat="~s")
    return fig


def create_gender_lines(record: Optional[GenderTrendRecord]) -> go.Figure:
    """Male and female employment lines for one country."""
    if record is None:
        return empty_figure("No data for this country")
    if not record.points:
        return empty_figure(f"No gender breakdown available for {record.country_name}")

    years = [p.year for p in record.points]
    fig = go.Figure()
    for label, values, color in (
        ("Male", [p.male for p in record.points], MALE_COLOR),
        ("Female", [p.female for p in record.points], FEMALE_COLOR),
    ):
        fig.add_trace(
            go.Scatter(
                x=years,
                y=values,
                mode="lines+markers",
                name=label,
                line=dict(width=3, color=color),
                marker=dict(size=8, color=color),
                hovertemplate=HOVER_TEMPLATE_TREND,
            )
        )

    fig.update_layout(
        **BASE_LAYOUT,
        title=f"<b>Employment by sex, {record.country_name}</b>",
        height=450,
    )
    fig.update_xaxes(title_text="Year", tickmode="linear", dtick=1)
    fig.update_yaxes(title_text="Employed persons", tickformat="~s", rangemode="tozero")
    return fig


def create_ratio_chart(record: Optional[RatioTrendRecord]) -> go.Figure:
    """Stacked full-time/part-time percentage areas over time."""
    if record is None:
        return empty_figure("No data for this country")
    if not record.points:
        return empty_figure(f"No employment ratio data for {record.country_name}")

    years = [p.year for p in record.points]
    ratios = [_format_ratio(p.ratio) for p in record.points]
    fig = go.Figure()
    for label, shares, counts, color in (
        (
            "Full-time",
            [p.full_time_pct for p in record.points],
            [p.full_time_count for p in record.points],
            FULL_TIME_COLOR,
        ),
        (
            "Part-time",
            [p.part_time_pct for p in record.points],
            [p.part_time_count for p in record.points],
            PART_TIME_COLOR,
        ),
    ):
        fig.add_trace(
            go.Scatter(
                x=years,
                y=shares,
                name=label,
                mode="lines+markers",
                stackgroup="share",
                line=dict(color=color),
                customdata=list(zip(counts, ratios)),
                hovertemplate=HOVER_TEMPLATE_RATIO,
            )
        )

    fig.update_layout(
        **BASE_LAYOUT,
        title=f"<b>Full-time vs part-time share, {record.country_name}</b>",
        height=450,
    )
    fig.update_xaxes(title_text="Year", tickmode="linear", dtick=1)
    fig.update_yaxes(title_text="Share of employed (%)", range=[0, 100], ticksuffix="%")
    return fig
