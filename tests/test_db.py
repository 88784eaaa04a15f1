import sqlite3
from datetime import date, datetime

import pytest

import pocket_ledger.db as db_module
from pocket_ledger.db import DEFAULT_CATEGORIES, LedgerStore
from pocket_ledger.exceptions import InvalidArgumentError, InvalidStateError, NotFoundError
from pocket_ledger.models import Budget, Category, Goal, Transaction, TransactionWithCategory

NOW = datetime(2024, 3, 15, 12, 0)


@pytest.fixture
def store(tmp_path):
    store = LedgerStore(tmp_path / "ledger.db")
    store.init_db()
    return store


def category_id(store, name):
    return next(c.id for c in store.list_categories("u1") if c.name == name)


def add_expense(store, name, amount, day, user_id="u1"):
    return store.create_transaction(Transaction(
        user_id=user_id, type="expense", category_id=category_id(store, name), amount=amount, date=day,
    ))


def test_seed_default_categories_only_once(store):
    categories = store.list_categories(None)
    assert len(categories) == len(DEFAULT_CATEGORIES)
    assert all(c.is_default and c.is_global for c in categories)
    assert store.seed_default_categories() == 0

    groceries = next(c for c in categories if c.name == "Groceries")
    assert groceries.parent_id == category_id(store, "Food")


def test_list_categories_includes_user_owned(store):
    store.create_category(Category(name="Pets", type="expense", user_id="u1"))
    names = {c.name for c in store.list_categories("u1", type="expense")}
    assert "Pets" in names
    assert "Salary" not in names
    assert "Pets" not in {c.name for c in store.list_categories("u2")}


def test_fetch_transactions_columns_and_filters(store):
    add_expense(store, "Food", 25.5, date(2024, 3, 2))
    add_expense(store, "Food", 10, date(2024, 2, 28))
    add_expense(store, "Food", 99, date(2024, 3, 3), user_id="u2")

    df = store.fetch_transactions("u1")
    assert list(df.columns) == TransactionWithCategory.COLUMNS
    assert df["amount"].tolist() == [25.5, 10.0]
    assert df.iloc[0]["category_name"] == "Food"

    march = store.fetch_transactions("u1", start=date(2024, 3, 1), end=date(2024, 3, 31))
    assert len(march) == 1
    assert store.fetch_transactions("u1", type="income").empty


def test_list_budgets_sums_spending_inside_window(store):
    food = category_id(store, "Food")
    store.create_budget(Budget(user_id="u1", category_id=food, amount=500, period="monthly",
                               start_date=date(2024, 3, 1)))
    add_expense(store, "Food", 120, date(2024, 3, 1))
    add_expense(store, "Food", 80, date(2024, 3, 31))
    add_expense(store, "Food", 300, date(2024, 4, 1))
    add_expense(store, "Leisure", 50, date(2024, 3, 10))

    views = store.list_budgets("u1", active_on=date(2024, 3, 15))
    assert len(views) == 1
    assert views[0].spent == 200
    assert views[0].budget.end_date == date(2024, 3, 31)
    assert views[0].category_name == "Food"
    assert store.list_budgets("u1", active_on=date(2024, 5, 1)) == []
    assert store.get_spent("u1", food, date(2024, 3, 1), date(2024, 4, 30)) == 500


def test_budget_overlaps_respects_exclusion(store):
    food = category_id(store, "Food")
    budget = store.create_budget(Budget(user_id="u1", category_id=food, amount=500, period="monthly",
                                        start_date=date(2024, 3, 1)))
    assert store.budget_overlaps("u1", food, date(2024, 3, 20), date(2024, 4, 19))
    assert not store.budget_overlaps("u1", food, date(2024, 4, 1), date(2024, 4, 30))
    assert not store.budget_overlaps("u1", food, date(2024, 3, 1), date(2024, 3, 31), exclude_id=budget.id)
    assert not store.budget_overlaps("u2", food, date(2024, 3, 1), date(2024, 3, 31))


def test_average_monthly_spending_counts_months_with_spending(store):
    food = category_id(store, "Food")
    add_expense(store, "Food", 100, date(2024, 1, 5))
    add_expense(store, "Food", 200, date(2024, 1, 20))
    add_expense(store, "Food", 500, date(2024, 3, 2))
    averages = store.average_monthly_spending("u1", date(2024, 1, 1), date(2024, 3, 31))
    assert averages == {food: ("Food", 400.0)}


def test_add_contribution_completes_goal(store):
    goal = store.create_goal(Goal(user_id="u1", name="Trip", target_amount=1000, current_amount=900))
    contribution, updated, completed = store.add_contribution(goal.id, 150, now=NOW)

    assert completed is True
    assert contribution.contribution_date == NOW.date()
    assert updated.status == "completed"
    stored = store.get_goal(goal.id)
    assert stored.current_amount == 1050
    assert stored.status == "completed"
    assert stored.completed_at == NOW

    with pytest.raises(InvalidStateError):
        store.add_contribution(goal.id, 10, now=NOW)
    assert len(store.list_contributions(goal.id)) == 1


def test_add_contribution_errors(store):
    goal = store.create_goal(Goal(user_id="u1", name="Trip", target_amount=1000))
    with pytest.raises(InvalidArgumentError):
        store.add_contribution(goal.id, 0, now=NOW)
    with pytest.raises(NotFoundError):
        store.add_contribution(9999, 10, now=NOW)
    assert store.list_contributions(goal.id).empty


def test_overdrawn_withdrawal_leaves_no_ledger_row(store):
    goal = store.create_goal(Goal(user_id="u1", name="Trip", target_amount=1000, current_amount=100))
    with pytest.raises(InvalidArgumentError):
        store.add_contribution(goal.id, -500, now=NOW)
    assert store.list_contributions(goal.id).empty
    assert store.get_goal(goal.id).current_amount == 100


def test_negative_balance_rejected_by_schema(store):
    goal = store.create_goal(Goal(user_id="u1", name="Trip", target_amount=1000))
    with pytest.raises(sqlite3.IntegrityError):
        with store.connect() as conn:
            conn.execute("UPDATE goals SET current_amount = -1 WHERE id = ?", (goal.id,))


def test_create_uses_given_timestamp(store):
    goal = store.create_goal(Goal(user_id="u1", name="Trip", target_amount=1000), now=NOW)
    assert goal.created_at == NOW
    assert store.get_goal(goal.id).created_at == NOW


def test_add_contribution_rolls_back_on_failure(store, monkeypatch):
    goal = store.create_goal(Goal(user_id="u1", name="Trip", target_amount=1000, current_amount=100))

    def broken(goal, amount, now=None):
        goal.current_amount += amount
        goal.status = "bogus"
        return goal, False

    monkeypatch.setattr(db_module, "apply_contribution", broken)
    with pytest.raises(sqlite3.IntegrityError):
        store.add_contribution(goal.id, 50, now=NOW)

    assert store.list_contributions(goal.id).empty
    assert store.get_goal(goal.id).current_amount == 100


def test_balance_matches_contribution_history(store):
    goal = store.create_goal(Goal(user_id="u1", name="Emergency fund", target_amount=5000))
    for amount in (200, 350.5, -50):
        store.add_contribution(goal.id, amount, date(2024, 3, 1), now=NOW)
    history = store.list_contributions(user_id="u1")
    assert history["amount"].sum() == pytest.approx(500.5)
    assert store.get_goal(goal.id).current_amount == pytest.approx(500.5)
    assert history.iloc[0]["goal_name"] == "Emergency fund"


def test_deleting_goal_removes_contributions(store):
    goal = store.create_goal(Goal(user_id="u1", name="Trip", target_amount=1000))
    store.add_contribution(goal.id, 10, now=NOW)
    store.delete_goal(goal.id)
    assert store.get_goal(goal.id) is None
    assert store.list_contributions().empty


def test_category_transaction_count_includes_subcategories(store):
    food = category_id(store, "Food")
    add_expense(store, "Groceries", 30, date(2024, 3, 1))
    add_expense(store, "Food", 20, date(2024, 3, 2))
    assert store.count_category_transactions(food) == 2
    assert store.category_has_children(food)
    assert not store.category_has_children(category_id(store, "Groceries"))
