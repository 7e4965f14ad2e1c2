"""
Table, chart and insight text builders for the dashboard.

Kept free of Streamlit calls so they can be built and checked outside a
running app.
"""

from typing import List, Sequence

import pandas as pd
import plotly.graph_objects as go

from analysis import ChartRow, Insights, SubjectTotal
from config import SERIES_COLORS


# ==================== TABLE ====================

def subject_totals_frame(subject_totals: Sequence[SubjectTotal]) -> pd.DataFrame:
    """
    Per-subject table: Subject, On Level (%), Below Level (%), Students.

    Ranked by on-level % (best first); ties keep subject order.
    """
    columns = ['Subject', 'On Level (%)', 'Below Level (%)', 'Students']
    if not subject_totals:
        return pd.DataFrame(columns=columns)

    ranked = sorted(subject_totals, key=lambda s: s.on_level_percentage, reverse=True)

    return pd.DataFrame([
        {
            'Subject': s.subject,
            'On Level (%)': s.on_level_percentage,
            'Below Level (%)': s.below_level_percentage,
            'Students': s.total
        }
        for s in ranked
    ], columns=columns)


# ==================== CHART ====================

def create_level_chart(chart_rows: Sequence[ChartRow]) -> go.Figure:
    """Create horizontal grouped bar chart of on/below level % per subject and grade."""
    labels = [r.label for r in chart_rows]
    on_level = [r.on_level_percentage for r in chart_rows]
    below_level = [r.below_level_percentage for r in chart_rows]

    fig = go.Figure()

    fig.add_trace(go.Bar(
        x=on_level,
        y=labels,
        orientation='h',
        name='On Level (%)',
        marker_color=SERIES_COLORS['on_level'],
        hovertemplate='%{y}: %{x:.1f}%<extra>On Level</extra>'
    ))

    fig.add_trace(go.Bar(
        x=below_level,
        y=labels,
        orientation='h',
        name='Below Level (%)',
        marker_color=SERIES_COLORS['below_level'],
        hovertemplate='%{y}: %{x:.1f}%<extra>Below Level</extra>'
    ))

    fig.update_layout(
        barmode='group',
        bargap=0.2,
        xaxis=dict(range=[0, 100], ticksuffix='%'),
        # First row at the top, like reading the table
        yaxis=dict(autorange='reversed', categoryorder='array', categoryarray=labels),
        height=max(400, len(chart_rows) * 50),
        margin=dict(l=150, t=20),
        legend=dict(orientation='h', yanchor='bottom', y=1.02)
    )

    return fig


# ==================== INSIGHT TEXT ====================

def format_subject_list(subject_totals: Sequence[SubjectTotal]) -> str:
    """E.g. "Math (80.0%), Science (75.0%)"."""
    return ', '.join(f"{s.subject} ({s.on_level_percentage:.1f}%)" for s in subject_totals)


def grade_performance_lines(insights: Insights) -> List[str]:
    return [
        f"{g.grade}: {g.standing} at {g.on_level_percentage:.1f}% on level"
        for g in insights.grade_performance
    ]


def priority_class_lines(insights: Insights) -> List[str]:
    return [
        f"{p.label} ({p.on_level_percentage:.1f}% on level)"
        for p in insights.priority_classes
    ]
