from datetime import date, datetime

import pandas as pd
import pytest

from pocket_ledger.exceptions import InvalidArgumentError, InvalidStateError
from pocket_ledger.goals import (
    apply_contribution,
    calculate_progress,
    change_status,
    estimate_completion_date,
    evaluate_goal,
    get_days_remaining,
    sort_goals,
    summarize_goals,
)
from pocket_ledger.models import Goal

NOW = datetime(2024, 3, 15, 9, 30)


def make_goal(**overrides):
    values = dict(user_id="u1", name="Emergency fund", target_amount=1000.0, current_amount=0.0, id=1)
    values.update(overrides)
    return Goal(**values)


def test_progress_and_overfunding():
    progress = calculate_progress(5000, 15000)
    assert progress.remaining == 10000
    assert progress.percentage == pytest.approx(33.333, rel=1e-3)
    over = calculate_progress(16000, 15000)
    assert over.percentage > 100
    assert over.remaining == 0
    assert over.is_completed


def test_progress_is_pure():
    assert calculate_progress(10, 40) == calculate_progress(10, 40)


def test_estimate_months_needed_scenario():
    estimate = estimate_completion_date(5000, 15000, 1500, now=date(2024, 1, 15))
    assert estimate.months_needed == 7
    assert estimate.date == date(2024, 8, 15)
    assert estimate.is_on_track is True


def test_estimate_on_track_against_deadline():
    assert estimate_completion_date(5000, 15000, 1500, date(2024, 8, 15), date(2024, 1, 15)).is_on_track
    assert not estimate_completion_date(5000, 15000, 1500, date(2024, 6, 30), date(2024, 1, 15)).is_on_track


@pytest.mark.parametrize("monthly", [None, 0, -10])
def test_estimate_requires_positive_contribution(monthly):
    assert estimate_completion_date(100, 1000, monthly, now=date(2024, 1, 15)) is None


def test_estimate_for_met_goal_is_now():
    estimate = estimate_completion_date(15000, 10000, 100, now=date(2024, 1, 15))
    assert estimate.months_needed == 0
    assert estimate.date == date(2024, 1, 15)


def test_estimate_clamps_to_month_end():
    estimate = estimate_completion_date(0, 100, 100, now=date(2024, 1, 31))
    assert estimate.date == date(2024, 2, 29)


def test_days_remaining():
    assert get_days_remaining(None, NOW) is None
    soon = get_days_remaining(date(2024, 3, 20), NOW)
    assert (soon.days, soon.is_overdue, soon.is_urgent) == (5, False, True)
    late = get_days_remaining("2024-03-10", NOW)
    assert (late.days, late.is_overdue, late.is_urgent) == (-5, True, False)
    today = get_days_remaining(date(2024, 3, 15), NOW)
    assert (today.days, today.is_overdue, today.is_urgent) == (0, False, False)
    assert get_days_remaining(date(2024, 6, 1), NOW).is_urgent is False


def test_contribution_completes_goal_once():
    goal = make_goal(current_amount=900.0)
    done, completed = apply_contribution(goal, 100, NOW)
    assert completed is True
    assert done.status == "completed"
    assert done.current_amount == 1000
    assert done.completed_at == NOW

    with pytest.raises(InvalidStateError):
        apply_contribution(done, 50, datetime(2024, 4, 1))
    assert done.completed_at == NOW


def test_withdrawal_keeps_goal_active():
    goal = make_goal(current_amount=500.0)
    updated, completed = apply_contribution(goal, -100, NOW)
    assert completed is False
    assert updated.current_amount == 400
    assert updated.status == "active"
    assert goal.current_amount == 500


def test_withdrawal_cannot_exceed_balance():
    goal = make_goal(current_amount=100.0)
    with pytest.raises(InvalidArgumentError):
        apply_contribution(goal, -500, NOW)
    emptied, _ = apply_contribution(goal, -100, NOW)
    assert emptied.current_amount == 0
    assert goal.current_amount == 100


def test_zero_contribution_rejected():
    with pytest.raises(InvalidArgumentError):
        apply_contribution(make_goal(), 0, NOW)


def test_contribution_to_cancelled_goal_rejected():
    with pytest.raises(InvalidStateError):
        apply_contribution(make_goal(status="cancelled"), 10, NOW)


def test_status_transitions():
    goal = make_goal()
    cancelled = change_status(goal, "cancelled", NOW)
    assert cancelled.status == "cancelled"

    reactivated = change_status(cancelled, "active", NOW)
    assert reactivated.status == "active"

    completed = change_status(goal, "completed", NOW)
    assert completed.completed_at == NOW
    reopened = change_status(completed, "active", NOW)
    assert reopened.status == "active"
    assert reopened.completed_at is None


def test_invalid_status_transitions():
    with pytest.raises(InvalidStateError):
        change_status(make_goal(), "active", NOW)
    with pytest.raises(InvalidStateError):
        change_status(make_goal(status="cancelled"), "completed", NOW)
    with pytest.raises(InvalidArgumentError):
        change_status(make_goal(), "paused", NOW)


def test_goal_validation():
    assert make_goal().validate(date(2024, 3, 15)) == []
    errors = make_goal(name="ab", target_amount=0, deadline=date(2024, 3, 15)).validate(date(2024, 3, 15))
    assert "Name must have at least 3 characters" in errors
    assert "Target amount must be greater than zero" in errors
    assert "Deadline must be in the future" in errors
    past = make_goal(deadline=date(2024, 1, 1))
    assert past.validate(date(2024, 3, 15), check_deadline=False) == []


def test_sort_goals_order():
    overdue = make_goal(id=1, name="Overdue", current_amount=100, deadline=date(2024, 1, 1),
                        created_at=datetime(2024, 1, 1))
    nearly = make_goal(id=2, name="Nearly", current_amount=850, created_at=datetime(2024, 1, 2))
    dated = make_goal(id=3, name="Dated", current_amount=100, deadline=date(2024, 6, 1),
                      created_at=datetime(2024, 1, 3))
    newer = make_goal(id=4, name="Newer", current_amount=100, created_at=datetime(2024, 2, 1))
    older = make_goal(id=5, name="Older", current_amount=100, created_at=datetime(2023, 12, 1))
    ordered = sort_goals([older, dated, newer, nearly, overdue], NOW)
    assert [g.name for g in ordered] == ["Overdue", "Nearly", "Dated", "Newer", "Older"]


def test_summarize_goals():
    goals = [
        make_goal(id=1, name="Car", current_amount=800, target_amount=1000),
        make_goal(id=2, name="Trip", current_amount=100, target_amount=1000),
        make_goal(id=3, name="Laptop", current_amount=500, target_amount=500, status="completed"),
    ]
    contributions = pd.DataFrame({
        "goal_id": [1, 1, 2, 2],
        "amount": [100.0, 50.0, 300.0, 999.0],
        "contribution_date": ["2024-03-02", "2024-03-10", "2024-02-05", "2023-08-01"],
    })
    stats = summarize_goals(goals, contributions, NOW)
    assert stats["total"] == 3
    assert stats["active"] == 2
    assert stats["completed"] == 1
    assert stats["cancelled"] == 0
    assert stats["total_saved"] == 900
    assert stats["total_remaining"] == 1100
    assert stats["success_rate"] == 33
    assert stats["this_month_contributions"] == 150
    assert stats["average_monthly_contribution"] == 225
    assert stats["closest_goal"]["name"] == "Car"


def test_summarize_without_goals():
    stats = summarize_goals([], None, NOW)
    assert stats["success_rate"] == 0
    assert stats["closest_goal"] is None


def test_evaluate_goal_bundle():
    status = evaluate_goal(make_goal(current_amount=250, monthly_contribution=250, deadline=date(2024, 5, 1)), NOW)
    assert status.progress.percentage == 25
    assert status.estimate.months_needed == 3
    assert status.estimate.is_on_track is False
    assert status.days_remaining.days == 47
