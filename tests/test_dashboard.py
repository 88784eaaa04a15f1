import types
from datetime import date, datetime

import pytest

from pocket_ledger import dashboard
from pocket_ledger.budgets import evaluate_budget
from pocket_ledger.db import LedgerStore
from pocket_ledger.goals import evaluate_goal
from pocket_ledger.models import Budget, BudgetWithSpending, Category, Goal
from pocket_ledger.services import ReportService

NOW = date(2024, 3, 15)


class FakeColumn:
    def __init__(self, calls):
        self.calls = calls

    def metric(self, label, value, delta=None, **kwargs):
        self.calls.append(("metric", label, value, delta))


class FakeStreamlit:
    def __init__(self):
        self.calls = []
        self.session_state = {}

    def error(self, message):
        self.calls.append(("error", message))

    def columns(self, count):
        return [FakeColumn(self.calls) for _ in range(count)]

    def plotly_chart(self, fig, **kwargs):
        self.calls.append(("chart", fig.layout.title.text))

    def subheader(self, text):
        self.calls.append(("subheader", text))


def test_budget_rows_formats_values():
    view = BudgetWithSpending(Budget("u1", 1, 500, "monthly", date(2024, 3, 1), id=1), 450, "Food")
    rows = dashboard.budget_rows([evaluate_budget(view, NOW)], "en_US")
    row = rows.iloc[0]
    assert row["Category"] == "Food"
    assert row["Period"] == "03/01/2024 - 03/31/2024"
    assert row["Spent"] == "$450.00"
    assert row["Used"] == "90.0%"
    assert row["Status"] == "Warning"


def test_goal_rows_describe_deadlines():
    statuses = [
        evaluate_goal(Goal("u1", "Vacation", 1000, current_amount=250, monthly_contribution=250,
                           deadline=date(2024, 3, 1)), NOW),
        evaluate_goal(Goal("u1", "Emergency fund", 5000), NOW),
    ]
    rows = dashboard.goal_rows(statuses, "pt_BR")
    assert rows.iloc[0]["Deadline"] == "Overdue by 14 days"
    assert rows.iloc[0]["On track"] == "No"
    assert rows.iloc[0]["Saved"] == "R$ 250,00"
    assert rows.iloc[1]["Deadline"] == "No deadline"
    assert rows.iloc[1]["Estimate"] == "-"


def test_show_errors_reports_failures(monkeypatch):
    fake = FakeStreamlit()
    monkeypatch.setattr(dashboard, "st", fake)
    assert dashboard.show_errors({"success": True}) is True
    assert dashboard.show_errors({"success": False, "errors": ["Category not found"]}) is False
    assert fake.calls == [("error", "Category not found")]


def test_state_initialization_keeps_existing_values(monkeypatch):
    state = {"user_id": "alice"}
    monkeypatch.setattr(dashboard, "st", types.SimpleNamespace(session_state=state))
    dashboard._ensure_state()
    assert state["user_id"] == "alice"
    assert state["locale"] == dashboard.DEFAULT_LOCALE
    assert state["last_report"] is None


def test_category_options_label_with_icon():
    options = dashboard._category_options([
        Category(name="Food", type="expense", icon="🍽️", id=6),
        Category(name="Pets", type="expense", id=20),
    ])
    assert options == {"🍽️ Food": 6, "Pets": 20}


def test_render_overview_uses_report_service(monkeypatch, tmp_path):
    store = LedgerStore(tmp_path / "ledger.db")
    store.init_db()
    fake = FakeStreamlit()
    monkeypatch.setattr(dashboard, "st", fake)
    dashboard.render_overview(ReportService(store, lambda: datetime(2024, 3, 15)), "u1", "en_US")

    metrics = {call[1]: call[2] for call in fake.calls if call[0] == "metric"}
    assert metrics["Income"] == "$0.00"
    assert metrics["Overall balance"] == "$0.00"
    charts = [call[1] for call in fake.calls if call[0] == "chart"]
    assert charts == ["Last six months", "No data to display"]


@pytest.mark.parametrize("section", dashboard.SECTIONS)
def test_sections_have_renderers(section):
    assert hasattr(dashboard, f"render_{section.lower()}")
