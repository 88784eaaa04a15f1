from datetime import date

import pytest

from pocket_ledger.budgets import (
    ALERT_ICONS,
    calculate_projection,
    calculate_usage,
    derive_end_date,
    evaluate_budget,
    get_alert_level,
    periods_overlap,
)
from pocket_ledger.exceptions import InvalidArgumentError
from pocket_ledger.models import Budget, BudgetWithSpending


def test_usage_warning_scenario():
    usage = calculate_usage(850, 1000)
    assert usage.percentage == 85.0
    assert usage.remaining == 150
    assert usage.exceeded is False
    assert get_alert_level(usage.percentage) == "warning"


def test_usage_exceeded_scenario():
    usage = calculate_usage(600, 500)
    assert usage.exceeded is True
    assert usage.remaining == -100
    assert get_alert_level(usage.percentage) == "exceeded"


def test_usage_at_limit_is_not_exceeded():
    usage = calculate_usage(500, 500)
    assert usage.exceeded is False
    assert get_alert_level(usage.percentage) == "exceeded"


def test_usage_is_pure():
    assert calculate_usage(123.45, 1000) == calculate_usage(123.45, 1000)


@pytest.mark.parametrize("limit", [0, -10])
def test_usage_rejects_non_positive_limit(limit):
    with pytest.raises(InvalidArgumentError):
        calculate_usage(10, limit)


@pytest.mark.parametrize(
    "percentage, level",
    [(0, "safe"), (49.99, "safe"), (50, "caution"), (79.9, "caution"),
     (80, "warning"), (99.99, "warning"), (100, "exceeded"), (250, "exceeded")],
)
def test_alert_level_boundaries(percentage, level):
    assert get_alert_level(percentage) == level


def test_projection_linear_extrapolation():
    proj = calculate_projection(date(2024, 1, 10), date(2024, 1, 1), date(2024, 1, 31), 500, 1000)
    assert proj.total_days == 31
    assert proj.days_passed == 10
    assert proj.days_remaining == 21
    assert proj.daily_average == 50
    assert proj.projected_total == 1550
    assert proj.will_exceed is True
    assert proj.exceed_date == date(2024, 1, 21)
    assert proj.projected_excess == 550


def test_projection_before_window_start_does_not_divide():
    proj = calculate_projection(date(2023, 12, 25), date(2024, 1, 1), date(2024, 1, 31), 500, 1000)
    assert proj.days_passed <= 0
    assert proj.daily_average == 0
    assert proj.projected_total == 0
    assert proj.will_exceed is False
    assert proj.exceed_date is None
    assert proj.projected_excess == 0


def test_projection_under_limit():
    proj = calculate_projection("2024-01-16", "2024-01-01", "2024-01-31", 160, 1000)
    assert proj.will_exceed is False
    assert proj.exceed_date is None


def test_derive_end_date():
    assert derive_end_date("monthly", date(2024, 2, 10)) == date(2024, 2, 29)
    assert derive_end_date("annual", date(2024, 2, 10)) == date(2024, 12, 31)
    assert derive_end_date("custom", date(2024, 2, 10), date(2024, 3, 1)) == date(2024, 3, 1)
    with pytest.raises(InvalidArgumentError):
        derive_end_date("custom", date(2024, 2, 10))


def test_budget_validation_and_activity():
    budget = Budget(user_id="u1", category_id=5, amount=300, period="monthly", start_date=date(2024, 1, 1))
    assert budget.end_date == date(2024, 1, 31)
    assert budget.validate() == []
    assert budget.is_active(date(2024, 1, 31))
    assert not budget.is_active(date(2024, 2, 1))

    bad = Budget(user_id="u1", category_id=5, amount=0, period="custom",
                 start_date=date(2024, 1, 10), end_date=date(2024, 1, 10))
    errors = bad.validate()
    assert "Amount must be greater than zero" in errors
    assert "End date must be after start date" in errors


def test_periods_overlap():
    assert periods_overlap(date(2024, 1, 1), date(2024, 1, 31), date(2024, 1, 31), date(2024, 2, 28))
    assert not periods_overlap(date(2024, 1, 1), date(2024, 1, 31), date(2024, 2, 1), date(2024, 2, 28))


def test_evaluate_budget_combines_results():
    view = BudgetWithSpending(
        budget=Budget(user_id="u1", category_id=5, amount=1000, period="monthly", start_date=date(2024, 1, 1), id=1),
        spent=850,
        category_name="Food",
    )
    status = evaluate_budget(view, date(2024, 1, 15))
    assert status.alert_level == "warning"
    assert status.usage.remaining == 150
    assert status.projection.days_passed == 15
    assert status.alert_icon == ALERT_ICONS["warning"]
    assert status.to_dict()["category_name"] == "Food"
