from typing import Dict, Sequence

import plotly.graph_objects as go
import streamlit as st

from app.config import CalculatorSettings
from app.services.chart_series import PercentileCurve, TwinTrajectory


def set_page():
    st.set_page_config(
        page_title="Twin Growth Percentile Calculator",
        page_icon="🩺",
        layout="wide",
        initial_sidebar_state="collapsed",
    )

    st.markdown(
        """
        <style>
        .block-container { padding-top: 1.0rem; padding-bottom: 2rem; }
        div[data-testid="stMetric"] { background: rgba(255,255,255,0.04); border: 1px solid rgba(255,255,255,0.06); padding: 10px 12px 6px 12px; border-radius: 14px; }
        div[data-testid="stMetricValue"] { font-size: 24px; }
        .muted { opacity: 0.75; }
        </style>
        """,
        unsafe_allow_html=True,
    )


def curve_color(settings: CalculatorSettings, index: int) -> str:
    colors = settings.curve_colors
    return colors[index % len(colors)]


def growth_figure(
    curves: Sequence[PercentileCurve],
    trajectories: Dict[int, TwinTrajectory],
    settings: CalculatorSettings,
) -> go.Figure:
    """Percentile curves as plain lines, twins as marker lines drawn on top."""
    fig = go.Figure()

    for i, c in enumerate(curves):
        color = curve_color(settings, i)
        fig.add_trace(
            go.Scatter(
                x=list(c.weeks),
                y=list(c.values),
                mode="lines",
                name=c.label,
                line=dict(color=color, width=2),
                hovertemplate=f"{c.label}: %{{y:.0f}} g<extra></extra>",
            )
        )

    for twin, t in trajectories.items():
        color = settings.twin_colors.get(twin, "#000000")
        fig.add_trace(
            go.Scatter(
                x=list(t.weeks),
                y=list(t.efw_g),
                mode="markers+lines",
                name=f"Twin {twin}",
                marker=dict(size=10, color=color, line=dict(color="#ffffff", width=1)),
                line=dict(color=color, width=2),
                hovertemplate=f"Twin {twin}: %{{y:.0f}} g<extra></extra>",
            )
        )

    fig.update_layout(
        xaxis_title=settings.x_title,
        yaxis_title=settings.y_title,
        legend=dict(orientation="h", yanchor="bottom", y=1.02, x=0),
        margin=dict(l=10, r=10, t=40, b=10),
        height=520,
    )
    fig.update_xaxes(range=[settings.min_weeks, settings.max_weeks], dtick=1)
    return fig
