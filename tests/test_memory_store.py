"""Tests for the in-memory store."""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from src.models.expense import DEFAULT_CATEGORIES, Category, NewExpense
from src.services.storage import NotFoundError, PermissionDeniedError, StorageError


def new_expense(amount="12.50", category="Casa"):
    return NewExpense(
        amount=Decimal(amount),
        description="Lunch",
        category=category,
        date=datetime(2024, 3, 10, 12, tzinfo=timezone.utc),
    )


class TestInMemoryExpenseStore:
    """Tests for InMemoryExpenseStore."""

    def test_listen_delivers_initial_snapshot(self, store):
        snapshots = []
        store.listen_expenses("u1", snapshots.append, pytest.fail)
        assert snapshots == [[]]

    def test_add_expense_notifies_listeners(self, store):
        snapshots = []
        store.listen_expenses("u1", snapshots.append, pytest.fail)
        expense_id = store.add_expense("u1", new_expense())
        assert len(snapshots) == 2
        (stored,) = snapshots[-1]
        assert stored.id == expense_id
        assert stored.amount == Decimal("12.50")

    def test_users_are_isolated(self, store):
        snapshots = []
        store.listen_expenses("u2", snapshots.append, pytest.fail)
        store.add_expense("u1", new_expense())
        assert snapshots == [[]]

    def test_update_expense(self, store):
        expense_id = store.add_expense("u1", new_expense())
        store.update_expense("u1", expense_id, new_expense(amount="99"))
        snapshots = []
        store.listen_expenses("u1", snapshots.append, pytest.fail)
        assert snapshots[0][0].amount == Decimal("99")

    def test_update_missing_expense(self, store):
        with pytest.raises(NotFoundError):
            store.update_expense("u1", "missing", new_expense())

    def test_delete_expense(self, store):
        expense_id = store.add_expense("u1", new_expense())
        assert store.delete_expense("u1", expense_id) is True
        assert store.delete_expense("u1", expense_id) is False

    def test_delete_category_keeps_expenses(self, store):
        store.add_category("u1", Category(name="Casa"))
        store.add_expense("u1", new_expense(category="Casa"))
        assert store.delete_category("u1", "Casa") == 1

        expenses, categories = [], []
        store.listen_expenses("u1", expenses.append, pytest.fail)
        store.listen_categories("u1", categories.append, pytest.fail)
        assert len(expenses[0]) == 1
        assert categories[0] == []

    def test_seed_default_categories(self, store):
        snapshots = []
        store.listen_categories("u1", snapshots.append, pytest.fail)
        store.seed_default_categories("u1", DEFAULT_CATEGORIES)
        assert [c.name for c in snapshots[-1]] == [c.name for c in DEFAULT_CATEGORIES]
        assert all(c.id for c in snapshots[-1])

    def test_settings_snapshot(self, store):
        snapshots = []
        store.listen_settings("u1", snapshots.append, pytest.fail)
        store.set_monthly_budget("u1", Decimal("1500"))
        assert snapshots[0] is None
        assert snapshots[-1].monthly_budget == Decimal("1500")

    def test_unsubscribe_stops_delivery(self, store):
        snapshots = []
        handle = store.listen_expenses("u1", snapshots.append, pytest.fail)
        handle.unsubscribe()
        store.add_expense("u1", new_expense())
        assert len(snapshots) == 1
        assert store.listener_count("u1") == 0

    def test_injected_listen_error(self, store):
        errors = []
        store.fail_listen("expenses", PermissionDeniedError("denied"))
        store.listen_expenses("u1", pytest.fail, errors.append)
        assert isinstance(errors[0], PermissionDeniedError)

    def test_injected_write_error(self, store):
        store.fail_writes(StorageError("offline"))
        with pytest.raises(StorageError):
            store.add_expense("u1", new_expense())
        store.fail_writes(None)
        assert store.add_expense("u1", new_expense())
