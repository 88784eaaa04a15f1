"""Use cases for the ledger.

Each public method returns a result dictionary. On success it holds
``{"success": True, ...}`` plus the payload; when a
:class:`~pocket_ledger.exceptions.LedgerError` is raised the method
returns ``{"success": False, "errors": [...], "error_kind": ...}``
instead. Any other exception (a broken database, say) propagates.

Services receive a :class:`~pocket_ledger.db.LedgerStore` explicitly
and pass plain values to the pure calculators.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import pandas as pd

from . import alerts, budgets, goals
from .config import SUGGESTION_MARGIN, SUGGESTION_MONTHS
from .db import LedgerStore
from .exceptions import (
    ConflictError,
    InvalidArgumentError,
    LedgerError,
    NotFoundError,
    PermissionDeniedError,
)
from .exporting import export_report
from .formatting import parse_currency, parse_date
from .models import Budget, Category, Goal, Transaction
from .reports import ReportAggregator

logger = logging.getLogger(__name__)

Result = Dict[str, Any]


def use_case(func: Callable[..., Result]) -> Callable[..., Result]:
    """Turn ledger errors raised by ``func`` into failure results."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Result:
        try:
            return func(*args, **kwargs)
        except LedgerError as exc:
            logger.warning("%s rejected (%s): %s", func.__name__, exc.kind, "; ".join(exc.errors))
            return {"success": False, "errors": exc.errors, "error_kind": exc.kind}

    return wrapper


def _require_valid(errors: List[str]) -> None:
    if errors:
        raise InvalidArgumentError(errors[0], errors)


def _owned(entity, user_id: str, label: str):
    if entity is None:
        raise NotFoundError(f"{label} not found")
    if entity.user_id != user_id:
        raise PermissionDeniedError(f"{label} does not belong to this user")
    return entity


def _amount(value: Union[str, float, int, None]) -> Optional[float]:
    return None if value is None else parse_currency(value)


class _Service:
    def __init__(self, store: LedgerStore, clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self.clock = clock

    def today(self) -> date:
        return self.clock().date()

    def _accessible_category(self, category_id: int, user_id: str) -> Category:
        category = self.store.get_category(category_id)
        if category is None:
            raise NotFoundError("Category not found")
        if not category.is_global and category.user_id != user_id:
            raise PermissionDeniedError("Category does not belong to this user")
        return category


class CategoryService(_Service):
    @use_case
    def create_category(
        self,
        user_id: str,
        name: str,
        type: str,
        parent_id: Optional[int] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Result:
        category = Category(name=name, type=type, user_id=user_id, parent_id=parent_id, icon=icon, color=color)
        _require_valid(category.validate())
        if parent_id is not None:
            parent = self._accessible_category(parent_id, user_id)
            if parent.parent_id is not None:
                raise InvalidArgumentError("Subcategories cannot have subcategories")
            if parent.type != type:
                raise InvalidArgumentError("Subcategory type must match its parent")
        return {"success": True, "category": self.store.create_category(category, now=self.clock())}

    @use_case
    def list_categories(self, user_id: str, type: Optional[str] = None) -> Result:
        categories = self.store.list_categories(user_id, type)
        roots = [c for c in categories if c.parent_id is None]
        tree = [
            {"category": root, "children": [c for c in categories if c.parent_id == root.id]}
            for root in roots
        ]
        return {"success": True, "categories": categories, "tree": tree}

    def _editable(self, user_id: str, category_id: int) -> Category:
        category = self.store.get_category(category_id)
        if category is None:
            raise NotFoundError("Category not found")
        if category.is_default or category.is_global:
            raise PermissionDeniedError("Default categories cannot be changed")
        return _owned(category, user_id, "Category")

    @use_case
    def update_category(self, user_id: str, category_id: int, **changes: Any) -> Result:
        category = self._editable(user_id, category_id)
        unknown = set(changes) - {"name", "icon", "color"}
        if unknown:
            raise InvalidArgumentError(f"Cannot change: {', '.join(sorted(unknown))}")
        updated = replace(category, **changes)
        _require_valid(updated.validate())
        return {"success": True, "category": self.store.update_category(updated)}

    @use_case
    def delete_category(self, user_id: str, category_id: int) -> Result:
        self._editable(user_id, category_id)
        if self.store.count_category_transactions(category_id):
            raise ConflictError("Category has transactions")
        self.store.delete_category(category_id)
        return {"success": True}


class TransactionService(_Service):
    def _check_category(self, user_id: str, category_id: int, type: str) -> None:
        category = self._accessible_category(category_id, user_id)
        if category.type != type:
            raise InvalidArgumentError(f"Category '{category.name}' is not an {type} category")

    @use_case
    def create_transaction(
        self,
        user_id: str,
        type: str,
        category_id: int,
        amount: Union[str, float],
        date: Union[str, date, None] = None,
        description: Optional[str] = None,
    ) -> Result:
        txn = Transaction(
            user_id=user_id,
            type=type,
            category_id=category_id,
            amount=_amount(amount),
            date=parse_date(date) if date is not None else self.today(),
            description=description.strip() if description else None,
        )
        _require_valid(txn.validate(self.today()))
        self._check_category(user_id, category_id, type)
        return {"success": True, "transaction": self.store.create_transaction(txn, now=self.clock())}

    @use_case
    def get_transaction(self, user_id: str, transaction_id: int) -> Result:
        txn = _owned(self.store.get_transaction(transaction_id), user_id, "Transaction")
        return {"success": True, "transaction": txn}

    @use_case
    def list_transactions(
        self,
        user_id: str,
        start: Union[str, date, None] = None,
        end: Union[str, date, None] = None,
        type: Optional[str] = None,
        category_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Result:
        df = self.store.fetch_transactions(user_id, start, end, type, category_id, limit)
        return {"success": True, "transactions": df, "count": len(df)}

    @use_case
    def update_transaction(self, user_id: str, transaction_id: int, **changes: Any) -> Result:
        txn = _owned(self.store.get_transaction(transaction_id), user_id, "Transaction")
        unknown = set(changes) - {"type", "category_id", "amount", "date", "description"}
        if unknown:
            raise InvalidArgumentError(f"Cannot change: {', '.join(sorted(unknown))}")
        if "amount" in changes:
            changes["amount"] = _amount(changes["amount"])
        if "date" in changes:
            changes["date"] = parse_date(changes["date"])
        updated = replace(txn, **changes)
        _require_valid(updated.validate(self.today()))
        self._check_category(user_id, updated.category_id, updated.type)
        return {"success": True, "transaction": self.store.update_transaction(updated, now=self.clock())}

    @use_case
    def delete_transaction(self, user_id: str, transaction_id: int) -> Result:
        _owned(self.store.get_transaction(transaction_id), user_id, "Transaction")
        self.store.delete_transaction(transaction_id)
        return {"success": True}


class BudgetService(_Service):
    def _check_category(self, user_id: str, category_id: int) -> Category:
        category = self._accessible_category(category_id, user_id)
        if category.type != "expense":
            raise InvalidArgumentError("Budgets can only track expense categories")
        return category

    def _check_overlap(self, budget: Budget, exclude_id: Optional[int] = None) -> None:
        if self.store.budget_overlaps(budget.user_id, budget.category_id, budget.start_date, budget.end_date,
                                      exclude_id=exclude_id):
            raise ConflictError("A budget for this category already covers part of this period")

    @use_case
    def create_budget(
        self,
        user_id: str,
        category_id: int,
        amount: Union[str, float],
        period: str = "monthly",
        start_date: Union[str, date, None] = None,
        end_date: Union[str, date, None] = None,
        rollover: bool = False,
    ) -> Result:
        start = parse_date(start_date) if start_date is not None else self.today().replace(day=1)
        budget = Budget(
            user_id=user_id,
            category_id=category_id,
            amount=_amount(amount),
            period=period,
            start_date=start,
            end_date=parse_date(end_date) if end_date is not None else None,
            rollover=rollover,
        )
        _require_valid(budget.validate())
        self._check_category(user_id, category_id)
        self._check_overlap(budget)
        created = self.store.create_budget(budget, now=self.clock())
        logger.info("Created %s budget %s for category %s", period, created.id, category_id)
        return {"success": True, "budget": created}

    @use_case
    def update_budget(self, user_id: str, budget_id: int, **changes: Any) -> Result:
        budget = _owned(self.store.get_budget(budget_id), user_id, "Budget")
        unknown = set(changes) - {"category_id", "amount", "period", "start_date", "end_date", "rollover"}
        if unknown:
            raise InvalidArgumentError(f"Cannot change: {', '.join(sorted(unknown))}")
        if "amount" in changes:
            changes["amount"] = _amount(changes["amount"])
        for key in ("start_date", "end_date"):
            if changes.get(key) is not None:
                changes[key] = parse_date(changes[key])
        # monthly and annual end dates are re-derived on construction
        updated = replace(budget, **changes)
        _require_valid(updated.validate())
        if updated.category_id != budget.category_id:
            self._check_category(user_id, updated.category_id)
        if (updated.start_date, updated.end_date, updated.category_id) != (
            budget.start_date, budget.end_date, budget.category_id
        ):
            self._check_overlap(updated, exclude_id=budget.id)
        return {"success": True, "budget": self.store.update_budget(updated, now=self.clock())}

    @use_case
    def delete_budget(self, user_id: str, budget_id: int) -> Result:
        _owned(self.store.get_budget(budget_id), user_id, "Budget")
        self.store.delete_budget(budget_id)
        return {"success": True}

    @use_case
    def list_budgets(self, user_id: str, active_only: bool = False) -> Result:
        today = self.today()
        views = self.store.list_budgets(user_id, active_on=today if active_only else None)
        statuses = [budgets.evaluate_budget(view, today) for view in views]
        return {"success": True, "budgets": statuses}

    @use_case
    def get_alerts(self, user_id: str) -> Result:
        today = self.today()
        views = self.store.list_budgets(user_id, active_on=today)
        return {"success": True, **alerts.categorize_alerts(views, today)}

    @use_case
    def suggest_budgets(
        self,
        user_id: str,
        months: int = SUGGESTION_MONTHS,
        margin_factor: float = SUGGESTION_MARGIN,
        period: str = "monthly",
    ) -> Result:
        """Suggest budgets from the average of the last ``months`` complete months."""
        if not 1 <= int(months) <= 24:
            raise InvalidArgumentError("months must be between 1 and 24")
        today = self.today()
        current = pd.Timestamp(today).to_period("M")
        window_start = (current - int(months)).start_time.date()
        window_end = (current - 1).end_time.date()

        history = self.store.average_monthly_spending(user_id, window_start, window_end)
        expense_categories = self.store.list_categories(user_id, "expense")
        names = {c.id: c.name for c in expense_categories}
        names.update({cid: name for cid, (name, _) in history.items()})
        result = alerts.suggest_budgets(
            {cid: avg for cid, (_, avg) in history.items()},
            existing=self.store.budget_amounts(user_id, period, today),
            category_names=names,
            margin_factor=margin_factor,
            all_categories=[c.id for c in expense_categories],
        )
        result["period"] = {"start": window_start.isoformat(), "end": window_end.isoformat(), "months": int(months)}
        return {"success": True, **result}


class GoalService(_Service):
    @use_case
    def create_goal(
        self,
        user_id: str,
        name: str,
        target_amount: Union[str, float],
        monthly_contribution: Union[str, float, None] = None,
        deadline: Union[str, date, None] = None,
    ) -> Result:
        goal = Goal(
            user_id=user_id,
            name=(name or "").strip(),
            target_amount=_amount(target_amount),
            monthly_contribution=_amount(monthly_contribution),
            deadline=parse_date(deadline) if deadline is not None else None,
        )
        _require_valid(goal.validate(self.today()))
        return {"success": True, "goal": self.store.create_goal(goal, now=self.clock())}

    @use_case
    def update_goal(self, user_id: str, goal_id: int, **changes: Any) -> Result:
        goal = _owned(self.store.get_goal(goal_id), user_id, "Goal")
        unknown = set(changes) - {"name", "target_amount", "monthly_contribution", "deadline"}
        if unknown:
            raise InvalidArgumentError(f"Cannot change: {', '.join(sorted(unknown))}")
        for key in ("target_amount", "monthly_contribution"):
            if key in changes:
                changes[key] = _amount(changes[key])
        if changes.get("deadline") is not None:
            changes["deadline"] = parse_date(changes["deadline"])
        updated = replace(goal, **changes)
        _require_valid(updated.validate(self.today(), check_deadline="deadline" in changes))
        return {"success": True, "goal": self.store.update_goal(updated, now=self.clock())}

    @use_case
    def delete_goal(self, user_id: str, goal_id: int) -> Result:
        _owned(self.store.get_goal(goal_id), user_id, "Goal")
        self.store.delete_goal(goal_id)
        return {"success": True}

    @use_case
    def list_goals(self, user_id: str, status: Optional[str] = None) -> Result:
        today = self.today()
        ordered = goals.sort_goals(self.store.list_goals(user_id, status), today)
        return {"success": True, "goals": [goals.evaluate_goal(g, today) for g in ordered]}

    @use_case
    def add_contribution(
        self,
        user_id: str,
        goal_id: int,
        amount: Union[str, float],
        contribution_date: Union[str, date, None] = None,
        description: Optional[str] = None,
    ) -> Result:
        _owned(self.store.get_goal(goal_id), user_id, "Goal")
        value = _amount(amount)
        if not value:
            raise InvalidArgumentError("Contribution amount cannot be zero")
        day = parse_date(contribution_date) if contribution_date is not None else None
        contribution, goal, completed = self.store.add_contribution(
            goal_id, value, day, description, now=self.clock()
        )
        return {
            "success": True,
            "contribution": contribution,
            "goal": goal,
            "completed": completed,
            "progress": goals.calculate_progress(goal.current_amount, goal.target_amount),
        }

    @use_case
    def change_status(self, user_id: str, goal_id: int, status: str) -> Result:
        goal = _owned(self.store.get_goal(goal_id), user_id, "Goal")
        now = self.clock()
        updated = goals.change_status(goal, status, now)
        return {"success": True, "goal": self.store.update_goal(updated, now=now)}

    @use_case
    def get_stats(self, user_id: str) -> Result:
        all_goals = self.store.list_goals(user_id)
        contributions = self.store.list_contributions(user_id=user_id)
        return {"success": True, "stats": goals.summarize_goals(all_goals, contributions, self.today())}

    @use_case
    def list_contributions(self, user_id: str, goal_id: int) -> Result:
        _owned(self.store.get_goal(goal_id), user_id, "Goal")
        return {"success": True, "contributions": self.store.list_contributions(goal_id=goal_id)}


class ReportService(_Service):
    def _aggregator(self, user_id: str) -> ReportAggregator:
        return ReportAggregator(self.store.fetch_transactions(user_id), user_id=user_id, now=self.today())

    @use_case
    def monthly_report(self, user_id: str, year: int, month: int) -> Result:
        return {"success": True, "report": self._aggregator(user_id).monthly_report(year, month)}

    @use_case
    def category_report(self, user_id: str, category_id: int, months_back: int = 6) -> Result:
        self._accessible_category(category_id, user_id)
        return {"success": True, "report": self._aggregator(user_id).category_report(category_id, months_back)}

    @use_case
    def evolution_report(self, user_id: str, months_back: int = 12) -> Result:
        return {"success": True, "report": self._aggregator(user_id).evolution_report(months_back)}

    @use_case
    def comparative_report(self, user_id: str, year1: int, month1: int, year2: int, month2: int) -> Result:
        report = self._aggregator(user_id).comparative_report(year1, month1, year2, month2)
        return {"success": True, "report": report}

    @use_case
    def pattern_report(self, user_id: str, months_back: int = 6) -> Result:
        return {"success": True, "report": self._aggregator(user_id).pattern_report(months_back)}

    @use_case
    def top_report(
        self,
        user_id: str,
        period: str = "month",
        limit: int = 10,
        start: Union[str, date, None] = None,
        end: Union[str, date, None] = None,
    ) -> Result:
        return {"success": True, "report": self._aggregator(user_id).top_report(period, limit, start, end)}

    @use_case
    def dashboard_overview(self, user_id: str) -> Result:
        return {"success": True, "report": self._aggregator(user_id).dashboard_overview()}

    @use_case
    def export(self, report, fmt: str = "json", directory: Optional[Path] = None) -> Result:
        path = export_report(report, fmt, directory)
        return {"success": True, "path": path}
