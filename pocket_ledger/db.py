from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import pandas as pd

from .config import DB_PATH, ensure_data_directories
from .exceptions import InvalidStateError, NotFoundError
from .goals import apply_contribution
from .models import (
    Budget,
    BudgetWithSpending,
    Category,
    Goal,
    GoalContribution,
    Transaction,
    TransactionWithCategory,
)

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT,
    parent_id INTEGER REFERENCES categories(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    type TEXT NOT NULL CHECK (type IN ('income', 'expense')),
    icon TEXT,
    color TEXT,
    is_default INTEGER NOT NULL DEFAULT 0,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    type TEXT NOT NULL CHECK (type IN ('income', 'expense')),
    category_id INTEGER NOT NULL REFERENCES categories(id),
    amount REAL NOT NULL CHECK (amount > 0),
    description TEXT,
    date TEXT NOT NULL,
    created_at TEXT,
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS ix_txn_user_date ON transactions (user_id, date);
CREATE INDEX IF NOT EXISTS ix_txn_category ON transactions (category_id);
CREATE INDEX IF NOT EXISTS ix_txn_user_type ON transactions (user_id, type);

CREATE TABLE IF NOT EXISTS budgets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    category_id INTEGER NOT NULL REFERENCES categories(id) ON DELETE CASCADE,
    amount REAL NOT NULL CHECK (amount > 0),
    period TEXT NOT NULL CHECK (period IN ('monthly', 'annual', 'custom')),
    start_date TEXT NOT NULL,
    end_date TEXT NOT NULL,
    rollover INTEGER NOT NULL DEFAULT 0,
    created_at TEXT,
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS ix_budget_user_category ON budgets (user_id, category_id);

CREATE TABLE IF NOT EXISTS goals (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    target_amount REAL NOT NULL CHECK (target_amount > 0),
    current_amount REAL NOT NULL DEFAULT 0 CHECK (current_amount >= 0),
    monthly_contribution REAL,
    deadline TEXT,
    status TEXT NOT NULL DEFAULT 'active' CHECK (status IN ('active', 'completed', 'cancelled')),
    completed_at TEXT,
    created_at TEXT,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS goal_contributions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    goal_id INTEGER NOT NULL REFERENCES goals(id) ON DELETE CASCADE,
    amount REAL NOT NULL CHECK (amount <> 0),
    description TEXT,
    contribution_date TEXT NOT NULL,
    created_at TEXT
);

CREATE INDEX IF NOT EXISTS ix_contrib_goal ON goal_contributions (goal_id);
"""

# (name, type, icon, color, parent name)
DEFAULT_CATEGORIES: List[Tuple[str, str, str, str, Optional[str]]] = [
    ("Salary", "income", "💼", "#2e7d32", None),
    ("Freelance", "income", "💻", "#388e3c", None),
    ("Investments", "income", "📈", "#43a047", None),
    ("Other Income", "income", "💰", "#66bb6a", None),
    ("Housing", "expense", "🏠", "#c62828", None),
    ("Food", "expense", "🍽️", "#ef6c00", None),
    ("Transportation", "expense", "🚗", "#1565c0", None),
    ("Health", "expense", "⚕️", "#ad1457", None),
    ("Education", "expense", "📚", "#6a1b9a", None),
    ("Leisure", "expense", "🎮", "#00838f", None),
    ("Shopping", "expense", "🛍️", "#4e342e", None),
    ("Bills", "expense", "🧾", "#455a64", None),
    ("Other Expenses", "expense", "📦", "#757575", None),
    ("Groceries", "expense", "🛒", "#f57c00", "Food"),
    ("Restaurants", "expense", "🍔", "#fb8c00", "Food"),
    ("Fuel", "expense", "⛽", "#1976d2", "Transportation"),
    ("Public Transit", "expense", "🚌", "#1e88e5", "Transportation"),
    ("Rent", "expense", "🔑", "#d32f2f", "Housing"),
    ("Utilities", "expense", "💡", "#e53935", "Housing"),
]

DateValue = Union[date, datetime, str, None]


def _iso(value: DateValue) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _to_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value[:10]) if value else None


def _to_datetime(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _category_from_row(row: sqlite3.Row) -> Category:
    return Category(
        id=row["id"],
        user_id=row["user_id"],
        parent_id=row["parent_id"],
        name=row["name"],
        type=row["type"],
        icon=row["icon"],
        color=row["color"],
        is_default=bool(row["is_default"]),
    )


def _transaction_from_row(row: sqlite3.Row) -> Transaction:
    return Transaction(
        id=row["id"],
        user_id=row["user_id"],
        type=row["type"],
        category_id=row["category_id"],
        amount=row["amount"],
        description=row["description"],
        date=_to_date(row["date"]),
        created_at=_to_datetime(row["created_at"]),
        updated_at=_to_datetime(row["updated_at"]),
    )


def _budget_from_row(row: sqlite3.Row) -> Budget:
    return Budget(
        id=row["id"],
        user_id=row["user_id"],
        category_id=row["category_id"],
        amount=row["amount"],
        period=row["period"],
        start_date=_to_date(row["start_date"]),
        end_date=_to_date(row["end_date"]),
        rollover=bool(row["rollover"]),
        created_at=_to_datetime(row["created_at"]),
        updated_at=_to_datetime(row["updated_at"]),
    )


def _goal_from_row(row: sqlite3.Row) -> Goal:
    return Goal(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        target_amount=row["target_amount"],
        current_amount=row["current_amount"],
        monthly_contribution=row["monthly_contribution"],
        deadline=_to_date(row["deadline"]),
        status=row["status"],
        completed_at=_to_datetime(row["completed_at"]),
        created_at=_to_datetime(row["created_at"]),
        updated_at=_to_datetime(row["updated_at"]),
    )


class LedgerStore:
    """SQLite persistence for categories, transactions, budgets and goals.

    The store is the only place that issues SQL. One instance is created
    per database file and handed to the services explicitly.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.db_path = Path(db_path) if db_path else DB_PATH

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        if self.db_path == DB_PATH:
            ensure_data_directories()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        try:
            yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        with self.connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()
        self.seed_default_categories()

    def seed_default_categories(self) -> int:
        """Create the global default categories once; returns how many were added."""
        with self.connect() as conn:
            existing = conn.execute("SELECT COUNT(*) FROM categories WHERE user_id IS NULL").fetchone()[0]
            if existing:
                return 0
            now = datetime.now().isoformat()
            ids: Dict[str, int] = {}
            # parents sort before children since parent is None
            for name, kind, icon, color, parent in sorted(DEFAULT_CATEGORIES, key=lambda c: c[4] is not None):
                cur = conn.execute(
                    "INSERT INTO categories (user_id, parent_id, name, type, icon, color, is_default, created_at) "
                    "VALUES (NULL, ?, ?, ?, ?, ?, 1, ?)",
                    (ids.get(parent) if parent else None, name, kind, icon, color, now),
                )
                ids[name] = cur.lastrowid
            conn.commit()
        logger.info("Seeded %d default categories", len(ids))
        return len(ids)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------
    def create_category(self, category: Category, now: Optional[datetime] = None) -> Category:
        now = now or datetime.now()
        with self.connect() as conn:
            cur = conn.execute(
                "INSERT INTO categories (user_id, parent_id, name, type, icon, color, is_default, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (category.user_id, category.parent_id, category.name.strip(), category.type,
                 category.icon, category.color, int(category.is_default), now.isoformat()),
            )
            conn.commit()
            category.id = cur.lastrowid
        return category

    def get_category(self, category_id: int) -> Optional[Category]:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM categories WHERE id = ?", (category_id,)).fetchone()
        return _category_from_row(row) if row else None

    def list_categories(self, user_id: Optional[str], type: Optional[str] = None) -> List[Category]:
        """Global categories plus those owned by ``user_id``, parents first."""
        sql = "SELECT * FROM categories WHERE (user_id IS NULL OR user_id = ?)"
        params: List[Any] = [user_id]
        if type:
            sql += " AND type = ?"
            params.append(type)
        sql += " ORDER BY type, COALESCE(parent_id, id), parent_id IS NOT NULL, name"
        with self.connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_category_from_row(r) for r in rows]

    def update_category(self, category: Category) -> Category:
        with self.connect() as conn:
            conn.execute(
                "UPDATE categories SET parent_id = ?, name = ?, icon = ?, color = ? WHERE id = ?",
                (category.parent_id, category.name.strip(), category.icon, category.color, category.id),
            )
            conn.commit()
        return category

    def delete_category(self, category_id: int) -> None:
        with self.connect() as conn:
            conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
            conn.commit()

    def category_has_children(self, category_id: int) -> bool:
        with self.connect() as conn:
            row = conn.execute("SELECT 1 FROM categories WHERE parent_id = ? LIMIT 1", (category_id,)).fetchone()
        return row is not None

    def count_category_transactions(self, category_id: int) -> int:
        """Transactions filed under the category or any of its subcategories."""
        with self.connect() as conn:
            return conn.execute(
                "SELECT COUNT(*) FROM transactions WHERE category_id = ? "
                "OR category_id IN (SELECT id FROM categories WHERE parent_id = ?)",
                (category_id, category_id),
            ).fetchone()[0]

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    def create_transaction(self, txn: Transaction, now: Optional[datetime] = None) -> Transaction:
        now = now or datetime.now()
        with self.connect() as conn:
            cur = conn.execute(
                "INSERT INTO transactions (user_id, type, category_id, amount, description, date, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (txn.user_id, txn.type, txn.category_id, round(txn.amount, 2), txn.description,
                 _iso(txn.date), now.isoformat(), now.isoformat()),
            )
            conn.commit()
            txn.id = cur.lastrowid
        txn.created_at = txn.updated_at = now
        return txn

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM transactions WHERE id = ?", (transaction_id,)).fetchone()
        return _transaction_from_row(row) if row else None

    def update_transaction(self, txn: Transaction, now: Optional[datetime] = None) -> Transaction:
        txn.updated_at = now or datetime.now()
        with self.connect() as conn:
            conn.execute(
                "UPDATE transactions SET type = ?, category_id = ?, amount = ?, description = ?, date = ?, "
                "updated_at = ? WHERE id = ?",
                (txn.type, txn.category_id, round(txn.amount, 2), txn.description, _iso(txn.date),
                 txn.updated_at.isoformat(), txn.id),
            )
            conn.commit()
        return txn

    def delete_transaction(self, transaction_id: int) -> None:
        with self.connect() as conn:
            conn.execute("DELETE FROM transactions WHERE id = ?", (transaction_id,))
            conn.commit()

    def fetch_transactions(
        self,
        user_id: str,
        start: DateValue = None,
        end: DateValue = None,
        type: Optional[str] = None,
        category_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> pd.DataFrame:
        """Transactions joined with their category, newest first.

        Returns a DataFrame with the ``TransactionWithCategory`` columns.
        """
        sql = (
            "SELECT t.id, t.user_id, t.type, t.category_id, t.amount, t.date, t.description, "
            "c.name AS category_name, c.type AS category_type, c.icon AS category_icon, "
            "c.color AS category_color "
            "FROM transactions t JOIN categories c ON c.id = t.category_id WHERE t.user_id = ?"
        )
        params: List[Any] = [user_id]
        if start is not None:
            sql += " AND t.date >= ?"
            params.append(_iso(start)[:10])
        if end is not None:
            sql += " AND t.date <= ?"
            params.append(_iso(end)[:10])
        if type:
            sql += " AND t.type = ?"
            params.append(type)
        if category_id is not None:
            sql += " AND t.category_id = ?"
            params.append(category_id)
        sql += " ORDER BY t.date DESC, t.id DESC"
        if limit:
            sql += " LIMIT ?"
            params.append(int(limit))
        with self.connect() as conn:
            df = pd.read_sql_query(sql, conn, params=params)
        df["date"] = pd.to_datetime(df["date"])
        return df[TransactionWithCategory.COLUMNS]

    # ------------------------------------------------------------------
    # Budgets
    # ------------------------------------------------------------------
    def create_budget(self, budget: Budget, now: Optional[datetime] = None) -> Budget:
        now = now or datetime.now()
        with self.connect() as conn:
            cur = conn.execute(
                "INSERT INTO budgets (user_id, category_id, amount, period, start_date, end_date, rollover, "
                "created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (budget.user_id, budget.category_id, budget.amount, budget.period, _iso(budget.start_date),
                 _iso(budget.end_date), int(budget.rollover), now.isoformat(), now.isoformat()),
            )
            conn.commit()
            budget.id = cur.lastrowid
        budget.created_at = budget.updated_at = now
        return budget

    def get_budget(self, budget_id: int) -> Optional[Budget]:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM budgets WHERE id = ?", (budget_id,)).fetchone()
        return _budget_from_row(row) if row else None

    def update_budget(self, budget: Budget, now: Optional[datetime] = None) -> Budget:
        budget.updated_at = now or datetime.now()
        with self.connect() as conn:
            conn.execute(
                "UPDATE budgets SET category_id = ?, amount = ?, period = ?, start_date = ?, end_date = ?, "
                "rollover = ?, updated_at = ? WHERE id = ?",
                (budget.category_id, budget.amount, budget.period, _iso(budget.start_date), _iso(budget.end_date),
                 int(budget.rollover), budget.updated_at.isoformat(), budget.id),
            )
            conn.commit()
        return budget

    def delete_budget(self, budget_id: int) -> None:
        with self.connect() as conn:
            conn.execute("DELETE FROM budgets WHERE id = ?", (budget_id,))
            conn.commit()

    def list_budgets(self, user_id: str, active_on: DateValue = None) -> List[BudgetWithSpending]:
        """Budgets with category display fields and the amount spent in their window."""
        sql = (
            "SELECT b.*, c.name AS category_name, c.icon AS category_icon, c.color AS category_color, "
            "(SELECT COALESCE(SUM(t.amount), 0) FROM transactions t "
            " WHERE t.user_id = b.user_id AND t.category_id = b.category_id AND t.type = 'expense' "
            " AND t.date >= b.start_date AND t.date <= b.end_date) AS spent "
            "FROM budgets b JOIN categories c ON c.id = b.category_id WHERE b.user_id = ?"
        )
        params: List[Any] = [user_id]
        if active_on is not None:
            sql += " AND b.start_date <= ? AND b.end_date >= ?"
            day = _iso(active_on)[:10]
            params.extend([day, day])
        sql += " ORDER BY b.start_date DESC, c.name"
        with self.connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [
            BudgetWithSpending(
                budget=_budget_from_row(r),
                spent=float(r["spent"]),
                category_name=r["category_name"],
                category_icon=r["category_icon"],
                category_color=r["category_color"],
            )
            for r in rows
        ]

    def get_spent(self, user_id: str, category_id: int, start: DateValue, end: DateValue) -> float:
        with self.connect() as conn:
            value = conn.execute(
                "SELECT COALESCE(SUM(amount), 0) FROM transactions WHERE user_id = ? AND category_id = ? "
                "AND type = 'expense' AND date >= ? AND date <= ?",
                (user_id, category_id, _iso(start)[:10], _iso(end)[:10]),
            ).fetchone()[0]
        return float(value)

    def budget_overlaps(
        self,
        user_id: str,
        category_id: int,
        start: DateValue,
        end: DateValue,
        exclude_id: Optional[int] = None,
    ) -> bool:
        """Whether another budget of the same category overlaps ``[start, end]``."""
        sql = (
            "SELECT 1 FROM budgets WHERE user_id = ? AND category_id = ? "
            "AND start_date <= ? AND end_date >= ?"
        )
        params: List[Any] = [user_id, category_id, _iso(end)[:10], _iso(start)[:10]]
        if exclude_id is not None:
            sql += " AND id <> ?"
            params.append(exclude_id)
        with self.connect() as conn:
            return conn.execute(sql + " LIMIT 1", params).fetchone() is not None

    def average_monthly_spending(self, user_id: str, start: DateValue, end: DateValue) -> Dict[int, Tuple[str, float]]:
        """Mean of monthly expense totals per category between two dates.

        Only months with spending count towards a category's mean.
        """
        df = self.fetch_transactions(user_id, start=start, end=end, type="expense")
        if df.empty:
            return {}
        df = df.assign(month=df["date"].dt.to_period("M"))
        monthly = df.groupby(["category_id", "category_name", "month"])["amount"].sum().reset_index()
        averages = monthly.groupby(["category_id", "category_name"])["amount"].mean()
        return {int(cid): (name, float(avg)) for (cid, name), avg in averages.items()}

    def budget_amounts(self, user_id: str, period: str, on_date: DateValue) -> Dict[int, float]:
        """Current budget amount per category for budgets of ``period`` active on a date."""
        day = _iso(on_date)[:10]
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT category_id, amount FROM budgets WHERE user_id = ? AND period = ? "
                "AND start_date <= ? AND end_date >= ?",
                (user_id, period, day, day),
            ).fetchall()
        return {r["category_id"]: float(r["amount"]) for r in rows}

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------
    def create_goal(self, goal: Goal, now: Optional[datetime] = None) -> Goal:
        now = now or datetime.now()
        with self.connect() as conn:
            cur = conn.execute(
                "INSERT INTO goals (user_id, name, target_amount, current_amount, monthly_contribution, deadline, "
                "status, completed_at, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (goal.user_id, goal.name.strip(), goal.target_amount, goal.current_amount, goal.monthly_contribution,
                 _iso(goal.deadline), goal.status, _iso(goal.completed_at), now.isoformat(), now.isoformat()),
            )
            conn.commit()
            goal.id = cur.lastrowid
        goal.created_at = goal.updated_at = now
        return goal

    def get_goal(self, goal_id: int) -> Optional[Goal]:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM goals WHERE id = ?", (goal_id,)).fetchone()
        return _goal_from_row(row) if row else None

    def update_goal(self, goal: Goal, now: Optional[datetime] = None) -> Goal:
        """Persist editable fields and status. The balance only changes through contributions."""
        goal.updated_at = now or datetime.now()
        with self.connect() as conn:
            conn.execute(
                "UPDATE goals SET name = ?, target_amount = ?, monthly_contribution = ?, deadline = ?, status = ?, "
                "completed_at = ?, updated_at = ? WHERE id = ?",
                (goal.name.strip(), goal.target_amount, goal.monthly_contribution, _iso(goal.deadline), goal.status,
                 _iso(goal.completed_at), goal.updated_at.isoformat(), goal.id),
            )
            conn.commit()
        return goal

    def delete_goal(self, goal_id: int) -> None:
        with self.connect() as conn:
            conn.execute("DELETE FROM goals WHERE id = ?", (goal_id,))
            conn.commit()

    def list_goals(self, user_id: str, status: Optional[str] = None) -> List[Goal]:
        sql = "SELECT * FROM goals WHERE user_id = ?"
        params: List[Any] = [user_id]
        if status:
            sql += " AND status = ?"
            params.append(status)
        with self.connect() as conn:
            rows = conn.execute(sql + " ORDER BY created_at DESC", params).fetchall()
        return [_goal_from_row(r) for r in rows]

    def add_contribution(
        self,
        goal_id: int,
        amount: float,
        contribution_date: DateValue = None,
        description: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[GoalContribution, Goal, bool]:
        """Record a contribution and update the goal in one transaction.

        Returns the stored contribution, the updated goal and whether this
        contribution completed it. Nothing is written if any step fails.
        """
        now = now or datetime.now()
        contribution_day = contribution_date or now.date()
        with self.connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                row = conn.execute("SELECT * FROM goals WHERE id = ?", (goal_id,)).fetchone()
                if row is None:
                    raise NotFoundError(f"Goal {goal_id} not found")
                updated, completed_now = apply_contribution(_goal_from_row(row), amount, now)
                cur = conn.execute(
                    "INSERT INTO goal_contributions (goal_id, amount, description, contribution_date, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (goal_id, amount, description, _iso(contribution_day), now.isoformat()),
                )
                changed = conn.execute(
                    "UPDATE goals SET current_amount = ?, status = ?, completed_at = ?, updated_at = ? "
                    "WHERE id = ? AND status = 'active'",
                    (updated.current_amount, updated.status, _iso(updated.completed_at), now.isoformat(), goal_id),
                ).rowcount
                if changed != 1:
                    raise InvalidStateError(f"Goal {goal_id} changed while contributing")
                conn.commit()
            except Exception:
                conn.rollback()
                logger.warning("Contribution to goal %s rolled back", goal_id)
                raise
        contribution = GoalContribution(
            id=cur.lastrowid,
            goal_id=goal_id,
            amount=amount,
            description=description,
            contribution_date=contribution_day if isinstance(contribution_day, date) else _to_date(contribution_day),
            created_at=now,
        )
        return contribution, updated, completed_now

    def list_contributions(self, goal_id: Optional[int] = None, user_id: Optional[str] = None) -> pd.DataFrame:
        """Contributions of one goal, or of all goals of a user, newest first."""
        sql = (
            "SELECT gc.id, gc.goal_id, g.name AS goal_name, gc.amount, gc.description, gc.contribution_date "
            "FROM goal_contributions gc JOIN goals g ON g.id = gc.goal_id WHERE 1 = 1"
        )
        params: List[Any] = []
        if goal_id is not None:
            sql += " AND gc.goal_id = ?"
            params.append(goal_id)
        if user_id is not None:
            sql += " AND g.user_id = ?"
            params.append(user_id)
        sql += " ORDER BY gc.contribution_date DESC, gc.id DESC"
        with self.connect() as conn:
            df = pd.read_sql_query(sql, conn, params=params)
        df["contribution_date"] = pd.to_datetime(df["contribution_date"])
        return df
