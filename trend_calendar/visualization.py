"""
Chart builders for the trend dashboard.

Keyword colours are fixed by selection index so a keyword keeps the same
colour in the chart, the insight cards and the tooltips.
"""

from typing import Dict, List, Mapping, Optional

import plotly.express as px
import plotly.graph_objects as go

from .data_processing import age_group_frame
from .models import KeywordSeries
from .trend_calculator import trend_window

COLOR_PALETTE = ["#8B7FD8", "#FF8C42", "#7ED957"]


def get_keyword_color(index: int) -> str:
    """Colour for the keyword at a selection index; out-of-range uses the ends."""
    if index < 0:
        return COLOR_PALETTE[0]
    return COLOR_PALETTE[min(index, len(COLOR_PALETTE) - 1)]


def with_alpha(hex_color: str, alpha: float) -> str:
    normalized = hex_color.lstrip("#")
    if len(normalized) != 6:
        return hex_color
    r, g, b = (int(normalized[i:i + 2], 16) for i in (0, 2, 4))
    return f"rgba({r}, {g}, {b}, {alpha})"


def create_trend_chart(dataset: Mapping[str, KeywordSeries], keywords: List[str],
                       year: int, month: int, months: int = 12) -> go.Figure:
    """
    Area chart of monthly search volume for the selected keywords

    Args:
        dataset: Mapping of keyword to series
        keywords: Selected keywords in selection order
        year: Last year shown
        month: Last month shown
        months: Window length in months

    Returns:
        Plotly figure
    """
    rows = trend_window(dataset, keywords, year, month, months)
    labels = [row["month"] for row in rows]

    fig = go.Figure()
    for idx, keyword in enumerate(keywords):
        color = get_keyword_color(idx)
        fig.add_trace(go.Scatter(
            x=labels,
            y=[row["volumes"][keyword] for row in rows],
            name=keyword,
            mode="lines",
            line=dict(color=color, width=2.5, shape="spline"),
            fill="tozeroy",
            fillcolor=with_alpha(color, 0.15),
            hovertemplate="%{x}<br>" + keyword + ": %{y:,}<extra></extra>",
        ))

    fig.update_layout(
        xaxis_title=None,
        yaxis_title=None,
        hovermode="x unified",
        plot_bgcolor="white",
        margin=dict(t=30, r=30, l=0, b=0),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="left", x=0),
    )
    fig.update_xaxes(tickangle=-45, showgrid=False)
    fig.update_yaxes(tickformat="~s", gridcolor="#f0f0f0")
    return fig


def create_age_distribution_chart(dataset: Mapping[str, KeywordSeries], keywords: List[str]) -> Optional[go.Figure]:
    """
    Grouped bar chart of age-bracket shares per keyword

    Returns:
        Plotly figure, or None when no selected keyword has age data
    """
    df = age_group_frame(dataset, keywords)
    if df.empty:
        return None

    color_map: Dict[str, str] = {keyword: get_keyword_color(idx) for idx, keyword in enumerate(keywords)}
    fig = px.bar(
        df,
        x="age_group",
        y="percent",
        color="keyword",
        barmode="group",
        color_discrete_map=color_map,
        labels={"age_group": "연령대", "percent": "비율 (%)", "keyword": "키워드"},
    )
    fig.update_layout(plot_bgcolor="white", margin=dict(t=30, r=10, l=0, b=0))
    fig.update_yaxes(ticksuffix="%", gridcolor="#f0f0f0")
    return fig
