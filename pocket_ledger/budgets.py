"""Budget usage calculations.

Pure functions over already-loaded numbers: usage percentage, alert
level and a linear projection of end-of-period spending. None of them
touch storage.

The projection is a straight-line extrapolation of the daily average
so far, with no smoothing or seasonality.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any, Dict, Optional

from .exceptions import InvalidArgumentError
from .formatting import DateLike, parse_date
from .models import Budget, BudgetWithSpending, derive_end_date

logger = logging.getLogger(__name__)

# Evaluated highest first; each bound is inclusive.
ALERT_THRESHOLDS = (
    (100.0, "exceeded"),
    (80.0, "warning"),
    (50.0, "caution"),
)

ALERT_ICONS = {"safe": "✅", "caution": "🟡", "warning": "⚠️", "exceeded": "🔴"}
ALERT_LABELS = {"safe": "OK", "caution": "Caution", "warning": "Warning", "exceeded": "Exceeded"}

__all__ = [
    "ALERT_ICONS",
    "ALERT_LABELS",
    "BudgetProjection",
    "BudgetStatus",
    "BudgetUsage",
    "calculate_projection",
    "calculate_usage",
    "derive_end_date",
    "evaluate_budget",
    "get_alert_level",
    "is_budget_active",
    "periods_overlap",
]


@dataclass
class BudgetUsage:
    spent: float
    limit: float
    remaining: float
    percentage: float
    exceeded: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BudgetProjection:
    total_days: int
    days_passed: int
    days_remaining: int
    daily_average: float
    projected_total: float
    will_exceed: bool
    exceed_date: Optional[date]
    projected_excess: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BudgetStatus:
    """Everything the presentation layer shows for one budget."""

    budget: Budget
    category_name: str
    usage: BudgetUsage
    alert_level: str
    projection: BudgetProjection
    category_icon: Optional[str] = None
    category_color: Optional[str] = None

    @property
    def alert_icon(self) -> str:
        return ALERT_ICONS[self.alert_level]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["alert_icon"] = self.alert_icon
        return data


def calculate_usage(spent: float, limit: float) -> BudgetUsage:
    """Compute how much of a budget limit has been consumed.

    Args:
        spent: Amount spent inside the budget window
        limit: Budget limit; must be positive

    Returns:
        BudgetUsage with ``percentage = spent / limit * 100`` and a
        ``remaining`` value that goes negative once the limit is passed.

    Raises:
        InvalidArgumentError: if ``limit`` is zero or negative

    Example:
        >>> calculate_usage(850, 1000).percentage
        85.0
    """
    if limit is None or limit <= 0:
        raise InvalidArgumentError("Budget limit must be greater than zero")
    spent = float(spent or 0.0)
    limit = float(limit)
    return BudgetUsage(
        spent=spent,
        limit=limit,
        remaining=limit - spent,
        percentage=spent / limit * 100,
        exceeded=spent > limit,
    )


def get_alert_level(percentage: float) -> str:
    """Classify a usage percentage into ``safe``/``caution``/``warning``/``exceeded``."""
    for bound, level in ALERT_THRESHOLDS:
        if percentage >= bound:
            return level
    return "safe"


def calculate_projection(
    now: DateLike,
    start_date: DateLike,
    end_date: DateLike,
    spent: float,
    limit: float,
) -> BudgetProjection:
    """Project end-of-period spending from the pace so far.

    Day counts are inclusive: the start date is day 1. When ``now``
    falls before the window the daily average is 0 rather than an
    error.
    """
    now_d = parse_date(now)
    start = parse_date(start_date)
    end = parse_date(end_date)
    spent = float(spent or 0.0)
    limit = float(limit)

    total_days = (end - start).days + 1
    days_passed = (now_d - start).days + 1
    days_remaining = total_days - days_passed

    daily_average = spent / days_passed if days_passed > 0 else 0.0
    projected_total = daily_average * total_days
    will_exceed = projected_total > limit

    exceed_date = None
    if will_exceed and daily_average > 0:
        exceed_date = start + timedelta(days=limit / daily_average)

    return BudgetProjection(
        total_days=total_days,
        days_passed=days_passed,
        days_remaining=days_remaining,
        daily_average=daily_average,
        projected_total=projected_total,
        will_exceed=will_exceed,
        exceed_date=exceed_date,
        projected_excess=projected_total - limit if will_exceed else 0.0,
    )


def is_budget_active(budget: Budget, on_date: Optional[DateLike] = None) -> bool:
    day = parse_date(on_date) if on_date is not None else date.today()
    return budget.is_active(day)


def periods_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    return start_a <= end_b and start_b <= end_a


def evaluate_budget(view: BudgetWithSpending, now: Optional[DateLike] = None) -> BudgetStatus:
    """Combine usage, alert level and projection for one budget."""
    budget = view.budget
    now_d = parse_date(now) if now is not None else date.today()
    usage = calculate_usage(view.spent, budget.amount)
    projection = calculate_projection(now_d, budget.start_date, budget.end_date, view.spent, budget.amount)
    level = get_alert_level(usage.percentage)
    logger.debug(
        "Budget %s at %.1f%% (%s), projected %.2f",
        budget.id, usage.percentage, level, projection.projected_total,
    )
    return BudgetStatus(
        budget=budget,
        category_name=view.category_name,
        usage=usage,
        alert_level=level,
        projection=projection,
        category_icon=view.category_icon,
        category_color=view.category_color,
    )
