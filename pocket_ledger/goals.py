"""Savings goal progress and lifecycle.

Progress, completion estimates and days-remaining are pure
calculations. :func:`apply_contribution` and :func:`change_status`
implement the goal state machine::

    active --(contribution reaches target / manual)--> completed
    active --(manual)--> cancelled
    completed, cancelled --(manual reactivation)--> active

The store persists the result of a contribution atomically; see
:meth:`pocket_ledger.db.LedgerStore.add_contribution`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from .exceptions import InvalidArgumentError, InvalidStateError
from .formatting import DateLike, parse_date
from .models import GOAL_STATUSES, Goal

logger = logging.getLogger(__name__)

URGENT_DAYS = 30
NEAR_COMPLETION_PERCENT = 80.0


@dataclass
class GoalProgress:
    percentage: float
    remaining: float
    current: float
    target: float
    is_completed: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CompletionEstimate:
    date: date
    months_needed: int
    is_on_track: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DaysRemaining:
    days: int
    is_overdue: bool
    is_urgent: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class GoalStatus:
    goal: Goal
    progress: GoalProgress
    estimate: Optional[CompletionEstimate]
    days_remaining: Optional[DaysRemaining]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def calculate_progress(current: float, target: float) -> GoalProgress:
    """Percentage funded and amount still missing.

    The percentage is not capped, so an overfunded goal reports more
    than 100.
    """
    if target is None or target <= 0:
        raise InvalidArgumentError("Target amount must be greater than zero")
    current = float(current or 0.0)
    target = float(target)
    return GoalProgress(
        percentage=current / target * 100,
        remaining=max(target - current, 0.0),
        current=current,
        target=target,
        is_completed=current >= target,
    )


def estimate_completion_date(
    current: float,
    target: float,
    monthly_contribution: Optional[float],
    deadline: Optional[DateLike] = None,
    now: Optional[DateLike] = None,
) -> Optional[CompletionEstimate]:
    """Estimate when a goal is reached at its planned monthly pace.

    Returns ``None`` when no positive monthly contribution is set.
    """
    if monthly_contribution is None or monthly_contribution <= 0:
        return None
    today = parse_date(now) if now is not None else date.today()
    missing = max(Decimal(str(target)) - Decimal(str(current or 0)), Decimal(0))
    months_needed = math.ceil(missing / Decimal(str(monthly_contribution)))
    finish = (pd.Timestamp(today) + pd.DateOffset(months=months_needed)).date()
    on_track = deadline is None or finish <= parse_date(deadline)
    return CompletionEstimate(date=finish, months_needed=months_needed, is_on_track=on_track)


def get_days_remaining(
    deadline: Optional[DateLike],
    now: Optional[DateLike] = None,
) -> Optional[DaysRemaining]:
    if deadline is None:
        return None
    today = parse_date(now) if now is not None else date.today()
    days = (parse_date(deadline) - today).days
    return DaysRemaining(days=days, is_overdue=days < 0, is_urgent=0 < days <= URGENT_DAYS)


def evaluate_goal(goal: Goal, now: Optional[DateLike] = None) -> GoalStatus:
    return GoalStatus(
        goal=goal,
        progress=calculate_progress(goal.current_amount, goal.target_amount),
        estimate=estimate_completion_date(
            goal.current_amount, goal.target_amount, goal.monthly_contribution, goal.deadline, now
        ),
        days_remaining=get_days_remaining(goal.deadline, now),
    )


def apply_contribution(goal: Goal, amount: float, now: Optional[datetime] = None) -> Tuple[Goal, bool]:
    """Return the goal after a signed contribution and whether it just completed.

    Raises:
        InvalidArgumentError: for a zero amount or a withdrawal larger than the balance
        InvalidStateError: if the goal is not active
    """
    if amount is None or amount == 0:
        raise InvalidArgumentError("Contribution amount cannot be zero")
    if goal.status != "active":
        raise InvalidStateError(f"Cannot contribute to a {goal.status} goal")
    now = now or datetime.now()
    new_amount = round(goal.current_amount + amount, 2)
    if new_amount < 0:
        raise InvalidArgumentError("Withdrawal cannot exceed the amount saved")
    if new_amount >= goal.target_amount:
        logger.info("Goal %s reached its target", goal.id)
        updated = replace(
            goal,
            current_amount=new_amount,
            status="completed",
            completed_at=goal.completed_at or now,
            updated_at=now,
        )
        return updated, True
    return replace(goal, current_amount=new_amount, updated_at=now), False


def change_status(goal: Goal, new_status: str, now: Optional[datetime] = None) -> Goal:
    if new_status not in GOAL_STATUSES:
        raise InvalidArgumentError(f"Invalid status: {new_status}")
    now = now or datetime.now()
    if new_status == "active":
        if goal.status == "active":
            raise InvalidStateError("Goal is already active")
        return replace(goal, status="active", completed_at=None, updated_at=now)
    if goal.status != "active":
        raise InvalidStateError(f"Cannot change a {goal.status} goal to {new_status}; reactivate it first")
    if new_status == "completed":
        return replace(goal, status="completed", completed_at=goal.completed_at or now, updated_at=now)
    return replace(goal, status="cancelled", updated_at=now)


def _sort_group(goal: Goal, today: date) -> int:
    if goal.status == "active" and goal.deadline is not None and goal.deadline < today:
        return 0
    if goal.target_amount and goal.current_amount / goal.target_amount * 100 >= NEAR_COMPLETION_PERCENT:
        return 1
    return 2


def sort_goals(goals: Sequence[Goal], now: Optional[DateLike] = None) -> List[Goal]:
    """Order goals for display.

    Overdue active goals come first, then goals at 80% or more, then
    the rest. Within a group: nearest deadline first (no deadline
    last), newest first.
    """
    today = parse_date(now) if now is not None else date.today()
    newest_first = sorted(goals, key=lambda g: g.created_at or datetime.min, reverse=True)
    return sorted(
        newest_first,
        key=lambda g: (_sort_group(g, today), g.deadline is None, g.deadline or date.max),
    )


def summarize_goals(
    goals: Sequence[Goal],
    contributions: Optional[pd.DataFrame] = None,
    now: Optional[DateLike] = None,
) -> Dict[str, Any]:
    """Aggregate statistics over a user's goals.

    Args:
        goals: All goals of one user
        contributions: DataFrame with ``amount`` and ``contribution_date``
            columns covering those goals
        now: Reference date for "this month" and the six-month window

    Returns:
        Dictionary of counts, totals, success rate and the active goal
        closest to completion.
    """
    today = parse_date(now) if now is not None else date.today()
    counts = {status: sum(1 for g in goals if g.status == status) for status in GOAL_STATUSES}
    active = [g for g in goals if g.status == "active"]
    total = len(goals)

    closest = None
    if active:
        best = max(active, key=lambda g: g.current_amount / g.target_amount)
        closest = {
            "id": best.id,
            "name": best.name,
            "percentage": calculate_progress(best.current_amount, best.target_amount).percentage,
        }

    this_month = 0.0
    monthly_average = 0.0
    if contributions is not None and not contributions.empty:
        df = contributions.copy()
        df["contribution_date"] = pd.to_datetime(df["contribution_date"])
        period = df["contribution_date"].dt.to_period("M")
        current = pd.Timestamp(today).to_period("M")
        this_month = float(df.loc[period == current, "amount"].sum())
        window = df[(period > current - 6) & (period <= current)]
        if not window.empty:
            by_month = window.groupby(window["contribution_date"].dt.to_period("M"))["amount"].sum()
            monthly_average = float(by_month.mean())

    return {
        "total": total,
        "active": counts["active"],
        "completed": counts["completed"],
        "cancelled": counts["cancelled"],
        "total_saved": float(sum(g.current_amount for g in active)),
        "total_remaining": float(sum(max(g.target_amount - g.current_amount, 0.0) for g in active)),
        "this_month_contributions": this_month,
        "average_monthly_contribution": monthly_average,
        "success_rate": round(counts["completed"] / total * 100) if total else 0,
        "closest_goal": closest,
    }
