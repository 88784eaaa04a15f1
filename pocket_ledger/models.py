"""Entity dataclasses for the ledger.

Each entity knows how to validate its own fields; cross-entity rules
(ownership, category type, overlapping budgets) are checked by
:mod:`pocket_ledger.services` against the store.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from .exceptions import InvalidArgumentError

TRANSACTION_TYPES = ("income", "expense")
BUDGET_PERIODS = ("monthly", "annual", "custom")
GOAL_STATUSES = ("active", "completed", "cancelled")

_COLOR_RE = re.compile(r"^(#[0-9a-fA-F]{3}|#[0-9a-fA-F]{6}|[a-zA-Z]+)$")


def _has_cents_only(amount: float) -> bool:
    return abs(round(amount, 2) - amount) < 1e-9


def derive_end_date(period: str, start_date: date, end_date: Optional[date] = None) -> date:
    """Return the end date implied by a budget period.

    Monthly budgets end on the last day of the start month and annual
    budgets on December 31st; custom budgets must supply ``end_date``.
    """
    if period == "monthly":
        last_day = calendar.monthrange(start_date.year, start_date.month)[1]
        return start_date.replace(day=last_day)
    if period == "annual":
        return date(start_date.year, 12, 31)
    if period == "custom":
        if end_date is None:
            raise InvalidArgumentError("End date is required for custom periods")
        return end_date
    raise InvalidArgumentError(f"Invalid period: {period}")


@dataclass
class Category:
    name: str
    type: str
    user_id: Optional[str] = None
    parent_id: Optional[int] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    is_default: bool = False
    id: Optional[int] = None

    @property
    def is_global(self) -> bool:
        return self.user_id is None

    def validate(self) -> List[str]:
        errors: List[str] = []
        name = (self.name or "").strip()
        if not 2 <= len(name) <= 100:
            errors.append("Name must be between 2 and 100 characters")
        if self.type not in TRANSACTION_TYPES:
            errors.append("Type must be 'income' or 'expense'")
        if self.icon and len(self.icon) > 10:
            errors.append("Icon must have at most 10 characters")
        if self.color and not _COLOR_RE.match(self.color):
            errors.append("Color must be a hex code or a color name")
        return errors


@dataclass
class Transaction:
    user_id: str
    type: str
    category_id: int
    amount: float
    date: date
    description: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def validate(self, today: Optional[date] = None) -> List[str]:
        errors: List[str] = []
        if not self.user_id:
            errors.append("User is required")
        if self.type not in TRANSACTION_TYPES:
            errors.append("Type must be 'income' or 'expense'")
        if not self.category_id:
            errors.append("Category is required")
        if self.amount is None or self.amount <= 0:
            errors.append("Amount must be greater than zero")
        elif not _has_cents_only(self.amount):
            errors.append("Amount must have at most two decimal places")
        if self.description and len(self.description) > 200:
            errors.append("Description must have at most 200 characters")
        today = today or date.today()
        if self.date is None:
            errors.append("Date is required")
        elif self.date > today + timedelta(days=1):
            errors.append("Date cannot be in the future")
        return errors


@dataclass
class TransactionWithCategory:
    """A transaction joined with its category's display fields.

    Reports consume DataFrames whose columns are exactly ``COLUMNS``.
    """

    id: int
    user_id: str
    type: str
    category_id: int
    amount: float
    date: date
    description: Optional[str]
    category_name: str
    category_type: str
    category_icon: Optional[str] = None
    category_color: Optional[str] = None

    COLUMNS = [
        "id", "user_id", "type", "category_id", "amount", "date", "description",
        "category_name", "category_type", "category_icon", "category_color",
    ]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Budget:
    user_id: str
    category_id: int
    amount: float
    period: str
    start_date: date
    end_date: Optional[date] = None
    # Stored for compatibility; carrying unused amounts forward is not implemented.
    rollover: bool = False
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.period in ("monthly", "annual") and self.start_date:
            self.end_date = derive_end_date(self.period, self.start_date)

    def validate(self) -> List[str]:
        errors: List[str] = []
        if not self.user_id:
            errors.append("User is required")
        if not self.category_id:
            errors.append("Category is required")
        if self.amount is None or self.amount <= 0:
            errors.append("Amount must be greater than zero")
        if self.period not in BUDGET_PERIODS:
            errors.append("Period must be 'monthly', 'annual' or 'custom'")
        if self.start_date is None:
            errors.append("Start date is required")
        elif self.end_date is None:
            errors.append("End date is required for custom periods")
        elif self.end_date <= self.start_date:
            errors.append("End date must be after start date")
        return errors

    def is_active(self, on_date: Optional[date] = None) -> bool:
        on_date = on_date or date.today()
        return self.start_date <= on_date <= self.end_date


@dataclass
class BudgetWithSpending:
    budget: Budget
    spent: float
    category_name: str
    category_icon: Optional[str] = None
    category_color: Optional[str] = None


@dataclass
class Goal:
    user_id: str
    name: str
    target_amount: float
    current_amount: float = 0.0
    monthly_contribution: Optional[float] = None
    deadline: Optional[date] = None
    status: str = "active"
    completed_at: Optional[datetime] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def validate(self, today: Optional[date] = None, check_deadline: bool = True) -> List[str]:
        errors: List[str] = []
        if not self.user_id:
            errors.append("User is required")
        if len((self.name or "").strip()) < 3:
            errors.append("Name must have at least 3 characters")
        if self.target_amount is None or self.target_amount <= 0:
            errors.append("Target amount must be greater than zero")
        if self.current_amount is not None and self.current_amount < 0:
            errors.append("Current amount cannot be negative")
        if self.monthly_contribution is not None and self.monthly_contribution < 0:
            errors.append("Monthly contribution cannot be negative")
        if self.status not in GOAL_STATUSES:
            errors.append("Invalid status")
        if check_deadline and self.deadline is not None:
            if self.deadline <= (today or date.today()):
                errors.append("Deadline must be in the future")
        return errors


@dataclass
class GoalContribution:
    goal_id: int
    amount: float
    contribution_date: date
    description: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None


REPORT_TITLES = {
    "monthly": ("Monthly report", "Income, expenses and categories for one month"),
    "category": ("Category report", "Spending history of a single category"),
    "evolution": ("Evolution report", "Monthly income and expense trend"),
    "comparative": ("Comparative report", "Side-by-side comparison of two months"),
    "pattern": ("Spending patterns", "Weekday, category and time-of-month habits"),
    "top": ("Top transactions", "Largest transactions in a period"),
    "overview": ("Dashboard overview", "Current month at a glance"),
}


@dataclass(frozen=True)
class Report:
    """Immutable report bundle handed to presentation and export."""

    type: str
    period: Dict[str, Any]
    data: Dict[str, Any]
    summary: Dict[str, Any]
    user_id: Optional[str] = None
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def title(self) -> str:
        return REPORT_TITLES.get(self.type, (self.type.title(), ""))[0]

    @property
    def description(self) -> str:
        return REPORT_TITLES.get(self.type, ("", ""))[1]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "period": self.period,
            "data": self.data,
            "summary": self.summary,
            "userId": self.user_id,
            "generatedAt": self.generated_at.isoformat(),
        }
