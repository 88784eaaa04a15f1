from datetime import date

from pocket_ledger import visualization as viz
from pocket_ledger.budgets import evaluate_budget
from pocket_ledger.goals import evaluate_goal
from pocket_ledger.models import Budget, BudgetWithSpending, Goal

NOW = date(2024, 3, 15)


def test_empty_inputs_give_placeholder_figure():
    for fig in (
        viz.create_budget_usage_chart([]),
        viz.create_goal_progress_chart([]),
        viz.create_evolution_chart([]),
        viz.create_accumulated_chart([]),
        viz.create_category_distribution_chart([]),
        viz.create_category_comparison_chart([]),
        viz.create_weekday_chart([{"day_name": "Sunday", "count": 0, "total_expense": 0.0}]),
    ):
        assert fig.layout.title.text == "No data to display"
        assert len(fig.data) == 0


def test_budget_usage_chart_marks_limit():
    views = [
        BudgetWithSpending(Budget("u1", 1, 500, "monthly", date(2024, 3, 1), id=1), 450, "Food"),
        BudgetWithSpending(Budget("u1", 2, 200, "monthly", date(2024, 3, 1), id=2), 20, "Leisure"),
    ]
    fig = viz.create_budget_usage_chart([evaluate_budget(v, NOW) for v in views])
    assert fig.layout.title.text == "Budget usage"
    assert {trace.name for trace in fig.data} == {"warning", "safe"}
    assert fig.layout.shapes[0].x0 == 100


def test_goal_progress_chart_stacks_saved_and_remaining():
    status = evaluate_goal(Goal("u1", "Vacation", 1000, current_amount=250), NOW)
    fig = viz.create_goal_progress_chart([status])
    assert fig.layout.barmode == "stack"
    assert [trace.name for trace in fig.data] == ["Saved", "Remaining"]
    assert list(fig.data[1].y) == [750]


def test_evolution_chart_traces():
    months = [
        {"month": "2024-01", "income": 3000.0, "expense": 1200.0, "balance": 1800.0},
        {"month": "2024-02", "income": 3000.0, "expense": 1500.0, "balance": 1500.0},
    ]
    fig = viz.create_evolution_chart(months, title="Last 2 months")
    assert fig.layout.title.text == "Last 2 months"
    assert [trace.name for trace in fig.data] == ["Income", "Expense", "Balance"]


def test_category_distribution_chart():
    fig = viz.create_category_distribution_chart([
        {"category_name": "Rent", "total": 1000.0},
        {"category_name": "Food", "total": 500.0},
    ])
    assert fig.data[0].type == "pie"
    assert list(fig.data[0].labels) == ["Rent", "Food"]
