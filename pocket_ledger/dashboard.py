"""Streamlit app for Pocket Ledger.

The dashboard is a thin presentation layer over
:mod:`pocket_ledger.services`: every action goes through a service
method and failures are shown from the ``errors`` list of the result.
Sidebar sections cover the overview, transactions, budgets, goals and
reports.

To run the dashboard from the command line::

    streamlit run pocket_ledger/dashboard.py

or use ``run_dashboard.py`` at the repository root.
"""

from __future__ import annotations

import os
import sys
from datetime import date
from typing import Any, Dict, List, Sequence

import pandas as pd
import streamlit as st

# Support both ``streamlit run pocket_ledger/dashboard.py`` and package
# execution.
if __package__:
    from . import visualization as viz
    from .budgets import ALERT_ICONS, ALERT_LABELS, BudgetStatus
    from .config import DEFAULT_LOCALE, DEFAULT_USER, configure_logging
    from .db import LedgerStore
    from .formatting import format_currency, format_date, format_percentage
    from .goals import GoalStatus
    from .services import BudgetService, CategoryService, GoalService, ReportService, TransactionService
else:
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from pocket_ledger import visualization as viz  # type: ignore
    from pocket_ledger.budgets import ALERT_ICONS, ALERT_LABELS, BudgetStatus  # type: ignore
    from pocket_ledger.config import DEFAULT_LOCALE, DEFAULT_USER, configure_logging  # type: ignore
    from pocket_ledger.db import LedgerStore  # type: ignore
    from pocket_ledger.formatting import format_currency, format_date, format_percentage  # type: ignore
    from pocket_ledger.goals import GoalStatus  # type: ignore
    from pocket_ledger.services import (  # type: ignore
        BudgetService, CategoryService, GoalService, ReportService, TransactionService,
    )

SECTIONS = ["Overview", "Transactions", "Budgets", "Goals", "Reports"]
REPORT_TYPES = {
    "Monthly": "monthly",
    "Evolution": "evolution",
    "Comparative": "comparative",
    "Patterns": "pattern",
    "Top transactions": "top",
    "Category": "category",
}


def budget_rows(statuses: Sequence[BudgetStatus], locale: str = DEFAULT_LOCALE) -> pd.DataFrame:
    """Table of evaluated budgets for display."""
    rows = []
    for s in statuses:
        rows.append({
            "": ALERT_ICONS[s.alert_level],
            "Category": s.category_name,
            "Period": f"{format_date(s.budget.start_date, locale)} - {format_date(s.budget.end_date, locale)}",
            "Limit": format_currency(s.usage.limit, locale=locale),
            "Spent": format_currency(s.usage.spent, locale=locale),
            "Remaining": format_currency(s.usage.remaining, locale=locale),
            "Used": format_percentage(s.usage.percentage, locale=locale),
            "Status": ALERT_LABELS[s.alert_level],
            "Projected": format_currency(s.projection.projected_total, locale=locale),
        })
    return pd.DataFrame(rows)


def goal_rows(goal_statuses: Sequence[GoalStatus], locale: str = DEFAULT_LOCALE) -> pd.DataFrame:
    rows = []
    for g in goal_statuses:
        days = g.days_remaining
        if days is None:
            deadline = "No deadline"
        elif days.is_overdue:
            deadline = f"Overdue by {-days.days} days"
        else:
            deadline = f"{days.days} days left" + (" (urgent)" if days.is_urgent else "")
        estimate = g.estimate
        rows.append({
            "Goal": g.goal.name,
            "Status": g.goal.status,
            "Saved": format_currency(g.progress.current, locale=locale),
            "Target": format_currency(g.progress.target, locale=locale),
            "Progress": format_percentage(g.progress.percentage, locale=locale),
            "Deadline": deadline,
            "Estimate": format_date(estimate.date, locale) if estimate else "-",
            "On track": ("Yes" if estimate.is_on_track else "No") if estimate else "-",
        })
    return pd.DataFrame(rows)


def show_errors(result: Dict[str, Any]) -> bool:
    """Render a failed result; returns True when the result succeeded."""
    if result.get("success"):
        return True
    for message in result.get("errors", []):
        st.error(message)
    return False


def _ensure_state() -> None:
    defaults = {"user_id": DEFAULT_USER, "locale": DEFAULT_LOCALE, "last_report": None}
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


@st.cache_resource
def get_store() -> LedgerStore:
    store = LedgerStore()
    store.init_db()
    return store


def _category_options(categories: List[Any]) -> Dict[str, int]:
    return {f"{c.icon or ''} {c.name}".strip(): c.id for c in categories}


def render_overview(reports: ReportService, user_id: str, locale: str) -> None:
    result = reports.dashboard_overview(user_id)
    if not show_errors(result):
        return
    report = result["report"]
    current = report.data["current_month"]
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Income", format_currency(current["total_income"], locale=locale),
                format_percentage(report.data["income_variation"], locale=locale))
    col2.metric("Expenses", format_currency(current["total_expense"], locale=locale),
                format_percentage(report.data["expense_variation"], locale=locale), delta_color="inverse")
    col3.metric("Month balance", format_currency(report.summary["month_balance"], locale=locale))
    col4.metric("Overall balance", format_currency(report.summary["balance"], locale=locale))
    st.plotly_chart(viz.create_evolution_chart(report.data["monthly_trend"], "Last six months"),
                    use_container_width=True)
    st.subheader("Top expense categories")
    st.plotly_chart(viz.create_category_distribution_chart(report.data["top_expense_categories"]),
                    use_container_width=True)


def render_transactions(store: LedgerStore, user_id: str, locale: str) -> None:
    service = TransactionService(store)
    categories = CategoryService(store).list_categories(user_id)
    with st.expander("Add transaction", expanded=False):
        with st.form("add_transaction"):
            kind = st.radio("Type", ["expense", "income"], horizontal=True)
            options = _category_options([c for c in categories.get("categories", []) if c.type == kind])
            label = st.selectbox("Category", list(options))
            amount = st.text_input("Amount", value="")
            when = st.date_input("Date", value=date.today())
            description = st.text_input("Description", max_chars=200)
            if st.form_submit_button("Save"):
                result = service.create_transaction(user_id, kind, options.get(label), amount, when, description)
                if show_errors(result):
                    st.success("Transaction saved")

    result = service.list_transactions(user_id, limit=200)
    if show_errors(result):
        df = result["transactions"]
        if df.empty:
            st.info("No transactions yet.")
        else:
            view = df[["date", "type", "category_name", "description", "amount"]].copy()
            view["date"] = view["date"].map(lambda d: format_date(d, locale))
            view["amount"] = view["amount"].map(lambda a: format_currency(a, locale=locale))
            st.dataframe(view, use_container_width=True)


def render_budgets(store: LedgerStore, user_id: str, locale: str) -> None:
    service = BudgetService(store)
    alerts = service.get_alerts(user_id)
    if show_errors(alerts) and alerts["stats"]["total_alerts"]:
        for tier, notify in (("exceeded", st.error), ("warning", st.warning), ("caution", st.info)):
            for status in alerts[tier]:
                notify(f"{status.alert_icon} {status.category_name}: "
                       f"{format_percentage(status.usage.percentage, locale=locale)} of "
                       f"{format_currency(status.usage.limit, locale=locale)} used")

    result = service.list_budgets(user_id)
    if show_errors(result):
        statuses = result["budgets"]
        if statuses:
            st.plotly_chart(viz.create_budget_usage_chart(statuses), use_container_width=True)
            st.dataframe(budget_rows(statuses, locale), use_container_width=True)
        else:
            st.info("No budgets yet.")

    categories = CategoryService(store).list_categories(user_id, "expense")
    with st.expander("New budget", expanded=False):
        with st.form("add_budget"):
            options = _category_options(categories.get("categories", []))
            label = st.selectbox("Category", list(options))
            amount = st.text_input("Limit")
            period = st.selectbox("Period", ["monthly", "annual", "custom"])
            start = st.date_input("Start", value=date.today().replace(day=1))
            end = st.date_input("End (custom only)", value=None)
            if st.form_submit_button("Create"):
                created = service.create_budget(user_id, options.get(label), amount, period, start,
                                                end if period == "custom" else None)
                if show_errors(created):
                    st.success("Budget created")

    if st.button("Suggest budgets from history"):
        suggestions = service.suggest_budgets(user_id)
        if show_errors(suggestions):
            rows = pd.DataFrame(suggestions["suggestions"])
            if rows.empty:
                st.info("Not enough spending history for suggestions.")
            else:
                st.dataframe(rows[["category_name", "average_spending", "suggested_amount",
                                   "existing_budget", "message"]], use_container_width=True)


def render_goals(store: LedgerStore, user_id: str, locale: str) -> None:
    service = GoalService(store)
    stats = service.get_stats(user_id)
    if show_errors(stats):
        s = stats["stats"]
        col1, col2, col3 = st.columns(3)
        col1.metric("Active goals", s["active"])
        col2.metric("Saved", format_currency(s["total_saved"], locale=locale))
        col3.metric("Success rate", f"{s['success_rate']}%")

    result = service.list_goals(user_id)
    if not show_errors(result):
        return
    goal_statuses = result["goals"]
    if goal_statuses:
        st.plotly_chart(viz.create_goal_progress_chart(goal_statuses), use_container_width=True)
        st.dataframe(goal_rows(goal_statuses, locale), use_container_width=True)

    active = {g.goal.name: g.goal.id for g in goal_statuses if g.goal.status == "active"}
    if active:
        with st.form("contribute"):
            name = st.selectbox("Goal", list(active))
            amount = st.text_input("Amount (negative to withdraw)")
            if st.form_submit_button("Add contribution"):
                added = service.add_contribution(user_id, active[name], amount)
                if show_errors(added):
                    if added["completed"]:
                        st.balloons()
                        st.success(f"Goal '{name}' completed!")
                    else:
                        st.success("Contribution saved")

    with st.expander("New goal", expanded=False):
        with st.form("add_goal"):
            name = st.text_input("Name")
            target = st.text_input("Target amount")
            monthly = st.text_input("Monthly contribution (optional)")
            deadline = st.date_input("Deadline (optional)", value=None)
            if st.form_submit_button("Create"):
                created = service.create_goal(user_id, name, target, monthly or None, deadline)
                if show_errors(created):
                    st.success("Goal created")


def render_reports(store: LedgerStore, user_id: str, locale: str) -> None:
    service = ReportService(store)
    label = st.selectbox("Report", list(REPORT_TYPES))
    kind = REPORT_TYPES[label]
    today = date.today()

    if kind == "monthly":
        col1, col2 = st.columns(2)
        year = col1.number_input("Year", 2000, 2100, today.year)
        month = col2.number_input("Month", 1, 12, today.month)
        result = service.monthly_report(user_id, int(year), int(month))
    elif kind == "evolution":
        result = service.evolution_report(user_id, st.slider("Months", 3, 24, 12))
    elif kind == "comparative":
        col1, col2 = st.columns(2)
        first = col1.date_input("First month", value=(pd.Timestamp(today) - pd.DateOffset(months=1)).date())
        second = col2.date_input("Second month", value=today)
        result = service.comparative_report(user_id, first.year, first.month, second.year, second.month)
    elif kind == "pattern":
        result = service.pattern_report(user_id, st.slider("Months", 1, 24, 6))
    elif kind == "top":
        period = st.selectbox("Period", ["month", "week", "today", "year"])
        result = service.top_report(user_id, period, st.slider("How many", 1, 50, 10))
    else:
        categories = CategoryService(store).list_categories(user_id).get("categories", [])
        options = _category_options(categories)
        chosen = st.selectbox("Category", list(options))
        result = service.category_report(user_id, options.get(chosen), st.slider("Months", 1, 24, 6))

    if not show_errors(result):
        return
    report = result["report"]
    st.session_state["last_report"] = report
    st.subheader(report.title)
    if kind == "monthly":
        st.plotly_chart(viz.create_category_distribution_chart(report.data["category_distribution"]),
                        use_container_width=True)
    elif kind == "evolution":
        st.plotly_chart(viz.create_evolution_chart(report.data["monthly_data"]), use_container_width=True)
        st.plotly_chart(viz.create_accumulated_chart(report.data["trend"]["accumulated_data"]),
                        use_container_width=True)
        st.write(f"Trend: **{report.data['trend']['type']}**")
    elif kind == "comparative":
        for insight in report.data["insights"]:
            (st.success if insight["severity"] == "positive" else st.warning)(insight["message"])
        st.plotly_chart(viz.create_category_comparison_chart(report.data["category_comparison"]),
                        use_container_width=True)
    elif kind == "pattern":
        st.plotly_chart(viz.create_weekday_chart(report.data["day_of_week_pattern"]["days"]),
                        use_container_width=True)
    st.json(report.summary)

    col1, col2 = st.columns(2)
    for fmt, col in (("json", col1), ("csv", col2)):
        if col.button(f"Export {fmt.upper()}"):
            exported = service.export(report, fmt)
            if show_errors(exported):
                st.success(f"Saved to {exported['path']}")


def main() -> None:
    """Entry point for the Streamlit app."""
    configure_logging()
    st.set_page_config(page_title="Pocket Ledger", layout="wide", initial_sidebar_state="expanded")
    _ensure_state()
    store = get_store()

    st.sidebar.title("Pocket Ledger")
    st.session_state["user_id"] = st.sidebar.text_input("User", value=st.session_state["user_id"])
    st.session_state["locale"] = st.sidebar.selectbox(
        "Locale", ["en_US", "pt_BR"], index=0 if st.session_state["locale"] == "en_US" else 1
    )
    section = st.sidebar.radio("Section", SECTIONS)
    user_id = st.session_state["user_id"]
    locale = st.session_state["locale"]

    st.title(section)
    if section == "Overview":
        render_overview(ReportService(store), user_id, locale)
    elif section == "Transactions":
        render_transactions(store, user_id, locale)
    elif section == "Budgets":
        render_budgets(store, user_id, locale)
    elif section == "Goals":
        render_goals(store, user_id, locale)
    else:
        render_reports(store, user_id, locale)


if __name__ == "__main__":
    main()
