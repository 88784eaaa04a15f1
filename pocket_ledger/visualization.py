"""Plotly visualisation helpers for the ledger dashboard.

Each function takes the plain records produced by the calculators and
report aggregator and returns a `plotly.graph_objects.Figure` that
Streamlit can render via ``st.plotly_chart``. Empty input always
yields an empty figure titled "No data to display".
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .budgets import BudgetStatus
from .goals import GoalStatus

ALERT_COLORS = {
    "safe": "#2e7d32",
    "caution": "#f9a825",
    "warning": "#ef6c00",
    "exceeded": "#c62828",
}


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def create_budget_usage_chart(statuses: Sequence[BudgetStatus], title: str | None = None) -> go.Figure:
    """Horizontal bars of budget usage, coloured by alert level.

    Parameters
    ----------
    statuses : sequence of BudgetStatus
        Evaluated budgets, e.g. from ``BudgetService.list_budgets``.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Bar chart with a dashed marker at 100%.
    """
    if not statuses:
        return _empty_figure()
    df = pd.DataFrame([
        {
            "Category": s.category_name,
            "Usage": s.usage.percentage,
            "Level": s.alert_level,
            "Spent": s.usage.spent,
            "Limit": s.usage.limit,
        }
        for s in statuses
    ])
    fig = px.bar(
        df, x="Usage", y="Category", orientation="h", color="Level",
        color_discrete_map=ALERT_COLORS, hover_data=["Spent", "Limit"],
    )
    fig.add_vline(x=100, line_dash="dash", line_color="#424242")
    fig.update_layout(title=title or "Budget usage", xaxis_title="% of limit used", yaxis_title="")
    return fig


def create_goal_progress_chart(goal_statuses: Sequence[GoalStatus], title: str | None = None) -> go.Figure:
    """Saved vs remaining amount per goal as stacked bars."""
    if not goal_statuses:
        return _empty_figure()
    names = [g.goal.name for g in goal_statuses]
    fig = go.Figure()
    fig.add_bar(name="Saved", x=names, y=[g.progress.current for g in goal_statuses], marker_color="#2e7d32")
    fig.add_bar(name="Remaining", x=names, y=[g.progress.remaining for g in goal_statuses], marker_color="#bdbdbd")
    fig.update_layout(barmode="stack", title=title or "Goal progress", xaxis_title="Goal", yaxis_title="Amount")
    return fig


def create_evolution_chart(monthly_data: List[Dict[str, Any]], title: str | None = None) -> go.Figure:
    """Income and expense bars per month with the balance as a line."""
    if not monthly_data:
        return _empty_figure()
    df = pd.DataFrame(monthly_data)
    fig = go.Figure()
    fig.add_bar(name="Income", x=df["month"], y=df["income"], marker_color="#2e7d32")
    fig.add_bar(name="Expense", x=df["month"], y=df["expense"], marker_color="#c62828")
    fig.add_scatter(name="Balance", x=df["month"], y=df["balance"], mode="lines+markers")
    fig.update_layout(barmode="group", title=title or "Monthly evolution", xaxis_title="Month", yaxis_title="Amount")
    return fig


def create_accumulated_chart(accumulated: List[Dict[str, Any]], title: str | None = None) -> go.Figure:
    if not accumulated:
        return _empty_figure()
    df = pd.DataFrame(accumulated)
    fig = px.line(df, x="month", y="accumulated", markers=True)
    fig.update_layout(title=title or "Accumulated balance", xaxis_title="Month", yaxis_title="Accumulated")
    return fig


def create_category_distribution_chart(distribution: List[Dict[str, Any]], title: str | None = None) -> go.Figure:
    """Pie chart of expense totals per category."""
    if not distribution:
        return _empty_figure()
    df = pd.DataFrame(distribution)
    fig = px.pie(df, names="category_name", values="total")
    fig.update_layout(title=title or "Expenses by category")
    return fig


def create_weekday_chart(days: List[Dict[str, Any]], title: str | None = None) -> go.Figure:
    """Expense totals by day of the week."""
    if not days or not any(d["count"] for d in days):
        return _empty_figure()
    df = pd.DataFrame(days)
    fig = px.bar(df, x="day_name", y="total_expense")
    fig.update_layout(title=title or "Spending by weekday", xaxis_title="Day", yaxis_title="Expenses")
    return fig


def create_category_comparison_chart(rows: List[Dict[str, Any]], title: str | None = None) -> go.Figure:
    if not rows:
        return _empty_figure()
    df = pd.DataFrame(rows)
    fig = go.Figure()
    fig.add_bar(name="Period 1", x=df["category_name"], y=df["period1_total"])
    fig.add_bar(name="Period 2", x=df["category_name"], y=df["period2_total"])
    fig.update_layout(barmode="group", title=title or "Category comparison", xaxis_title="Category",
                      yaxis_title="Expenses")
    return fig
