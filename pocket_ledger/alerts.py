"""Budget alerts and budget suggestions.

Alerts group active budgets into three tiers by usage. Budgets below
the caution threshold are left out of the result entirely.

Suggestions turn average monthly spending per category into a budget
amount with a safety margin, and compare it with the budget the user
already has for that category.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .budgets import BudgetStatus, evaluate_budget
from .config import ALERT_THRESHOLD, SUGGESTION_MARGIN
from .formatting import DateLike, parse_date
from .models import BudgetWithSpending

logger = logging.getLogger(__name__)

ALERT_TIERS = ("exceeded", "warning", "caution")

# |percent change| below this is considered adequate
ADEQUATE_BAND = 5.0

RECOMMENDATION_TEXT = {
    "create": "Create a budget for this category",
    "adequate": "Current budget is adequate",
    "increase": "Consider increasing the budget",
    "reduce": "Consider reducing the budget",
}


def find_budgets_in_alert(
    views: Iterable[BudgetWithSpending],
    now: Optional[DateLike] = None,
    threshold: float = ALERT_THRESHOLD,
) -> List[BudgetStatus]:
    """Active budgets whose usage reached ``threshold`` percent, most used first."""
    day = parse_date(now) if now is not None else date.today()
    statuses = []
    for view in views:
        if not view.budget.is_active(day):
            continue
        status = evaluate_budget(view, day)
        if status.usage.percentage >= threshold:
            statuses.append(status)
    statuses.sort(key=lambda s: s.usage.percentage, reverse=True)
    return statuses


def categorize_alerts(
    views: Iterable[BudgetWithSpending],
    now: Optional[DateLike] = None,
) -> Dict[str, Any]:
    """Partition budgets in alert into exceeded/warning/caution tiers."""
    in_alert = find_budgets_in_alert(views, now)
    tiers: Dict[str, List[BudgetStatus]] = {tier: [] for tier in ALERT_TIERS}
    for status in in_alert:
        tiers[status.alert_level].append(status)
    stats = {f"{tier}_count": len(items) for tier, items in tiers.items()}
    stats["total_alerts"] = len(in_alert)
    # safe budgets never reach this point
    stats["safe_count"] = 0
    if in_alert:
        logger.info("%d budget(s) in alert", len(in_alert))
    return {**tiers, "stats": stats}


def suggest_budget_amount(average: float, margin_factor: float = SUGGESTION_MARGIN) -> int:
    """Round ``average * margin_factor`` up to a whole unit.

    Computed in decimal so that ``300 * 1.1`` yields 330, not 331.

    >>> suggest_budget_amount(300)
    330
    """
    return math.ceil(Decimal(str(average)) * Decimal(str(margin_factor)))


def classify_suggestion(suggested: float, existing: Optional[float]) -> Dict[str, Any]:
    if existing is None:
        return {"recommendation": "create", "difference": None, "percent_change": None}
    difference = suggested - existing
    percent_change = difference / existing * 100 if existing else 0.0
    if abs(percent_change) < ADEQUATE_BAND:
        recommendation = "adequate"
    elif percent_change > 0:
        recommendation = "increase"
    else:
        recommendation = "reduce"
    return {
        "recommendation": recommendation,
        "difference": difference,
        "percent_change": percent_change,
    }


def suggest_budgets(
    averages: Mapping[int, float],
    existing: Optional[Mapping[int, float]] = None,
    category_names: Optional[Mapping[int, str]] = None,
    margin_factor: float = SUGGESTION_MARGIN,
    all_categories: Optional[Iterable[int]] = None,
) -> Dict[str, Any]:
    """Derive suggested budget amounts from average monthly spending.

    Args:
        averages: Mapping of category id to average monthly spending
        existing: Mapping of category id to the current budget amount
        category_names: Optional display names keyed by category id
        margin_factor: Safety margin multiplied into the average
        all_categories: Every expense category considered, used to count
            categories without history

    Returns:
        Dictionary with ``suggestions`` (largest first) and ``summary``.
    """
    existing = existing or {}
    category_names = category_names or {}
    suggestions: List[Dict[str, Any]] = []
    for category_id, average in averages.items():
        if not average or average <= 0:
            continue
        suggested = suggest_budget_amount(average, margin_factor)
        current = existing.get(category_id)
        entry = {
            "category_id": category_id,
            "category_name": category_names.get(category_id, str(category_id)),
            "average_spending": float(average),
            "suggested_amount": suggested,
            "existing_budget": current,
        }
        entry.update(classify_suggestion(suggested, current))
        entry["message"] = RECOMMENDATION_TEXT[entry["recommendation"]]
        suggestions.append(entry)

    suggestions.sort(key=lambda s: s["suggested_amount"], reverse=True)
    considered = set(all_categories) if all_categories is not None else set(averages)
    with_history = len(suggestions)
    return {
        "suggestions": suggestions,
        "summary": {
            "total_categories": len(considered),
            "with_history": with_history,
            "without_history": max(len(considered) - with_history, 0),
            "total_suggested": sum(s["suggested_amount"] for s in suggestions),
        },
    }
