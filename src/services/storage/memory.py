"""
In-Memory Storage Implementation

Behaves like the document store for a single process: each listener gets
the current contents immediately on attach and again after every write
that touches its collection. Used for tests and for running the app
without Firebase credentials.
"""

import threading
from decimal import Decimal
from typing import Callable, Optional, Sequence
from uuid import uuid4

from src.models.expense import BudgetSettings, Category, Expense, NewExpense
from src.services.storage.interface import (
    CATEGORIES_COLLECTION,
    EXPENSES_COLLECTION,
    SETTINGS_COLLECTION,
    CategoriesCallback,
    ErrorCallback,
    ExpenseStoreInterface,
    ExpensesCallback,
    NotFoundError,
    SettingsCallback,
    StorageError,
)


class _UserData:
    def __init__(self):
        self.expenses: dict[str, Expense] = {}
        self.categories: dict[str, Category] = {}
        self.settings: Optional[BudgetSettings] = None


class MemoryListenerHandle:
    """Detaches one listener from an ``InMemoryExpenseStore``."""

    def __init__(self, detach: Callable[[], None]):
        self._detach = detach
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._detach()


class InMemoryExpenseStore(ExpenseStoreInterface):
    """
    Dict-backed store with synchronous snapshot delivery.

    ``fail_listen`` and ``fail_writes`` inject errors so tests can exercise
    the failure paths without a backend.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._users: dict[str, _UserData] = {}
        # (user_id, collection) -> list of (on_snapshot, on_error)
        self._listeners: dict[tuple[str, str], list[tuple[Callable, ErrorCallback]]] = {}
        self._listen_errors: dict[str, Exception] = {}
        self._write_error: Optional[Exception] = None

    # ------------------------------------------------------------------
    # Error injection
    # ------------------------------------------------------------------

    def fail_listen(self, collection: str, error: Exception) -> None:
        """Next listener attached to ``collection`` gets ``error`` instead of data."""
        self._listen_errors[collection] = error

    def fail_writes(self, error: Optional[Exception]) -> None:
        """Make every write raise ``error`` until called again with None."""
        self._write_error = error

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _user(self, user_id: str) -> _UserData:
        if not user_id:
            raise StorageError("user_id is required")
        return self._users.setdefault(user_id, _UserData())

    def _check_writable(self) -> None:
        if self._write_error is not None:
            raise self._write_error

    def _snapshot(self, user_id: str, collection: str):
        data = self._user(user_id)
        if collection == EXPENSES_COLLECTION:
            return list(data.expenses.values())
        if collection == CATEGORIES_COLLECTION:
            return list(data.categories.values())
        return data.settings

    def _notify(self, user_id: str, collection: str) -> None:
        with self._lock:
            listeners = list(self._listeners.get((user_id, collection), []))
            snapshot = self._snapshot(user_id, collection)
        for on_snapshot, _ in listeners:
            on_snapshot(snapshot)

    def _listen(
        self,
        user_id: str,
        collection: str,
        on_snapshot: Callable,
        on_error: ErrorCallback,
    ) -> MemoryListenerHandle:
        error = self._listen_errors.pop(collection, None)
        if error is not None:
            on_error(error)
            return MemoryListenerHandle(lambda: None)

        entry = (on_snapshot, on_error)
        with self._lock:
            self._listeners.setdefault((user_id, collection), []).append(entry)
            snapshot = self._snapshot(user_id, collection)

        def detach():
            with self._lock:
                registered = self._listeners.get((user_id, collection), [])
                if entry in registered:
                    registered.remove(entry)

        on_snapshot(snapshot)
        return MemoryListenerHandle(detach)

    def listener_count(self, user_id: str) -> int:
        """Active listeners for a user, across all collections."""
        with self._lock:
            return sum(
                len(entries) for (uid, _), entries in self._listeners.items()
                if uid == user_id
            )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_expense(self, user_id: str, expense: NewExpense) -> str:
        self._check_writable()
        expense_id = uuid4().hex
        with self._lock:
            self._user(user_id).expenses[expense_id] = Expense(
                id=expense_id, **expense.model_dump()
            )
        self._notify(user_id, EXPENSES_COLLECTION)
        return expense_id

    def update_expense(self, user_id: str, expense_id: str, expense: NewExpense) -> None:
        self._check_writable()
        with self._lock:
            expenses = self._user(user_id).expenses
            if expense_id not in expenses:
                raise NotFoundError(f"Expense not found: {expense_id}")
            expenses[expense_id] = Expense(id=expense_id, **expense.model_dump())
        self._notify(user_id, EXPENSES_COLLECTION)

    def delete_expense(self, user_id: str, expense_id: str) -> bool:
        self._check_writable()
        with self._lock:
            removed = self._user(user_id).expenses.pop(expense_id, None)
        if removed is None:
            return False
        self._notify(user_id, EXPENSES_COLLECTION)
        return True

    def add_category(self, user_id: str, category: Category) -> str:
        self._check_writable()
        category_id = uuid4().hex
        with self._lock:
            self._user(user_id).categories[category_id] = category.model_copy(
                update={"id": category_id}
            )
        self._notify(user_id, CATEGORIES_COLLECTION)
        return category_id

    def delete_category(self, user_id: str, name: str) -> int:
        self._check_writable()
        with self._lock:
            categories = self._user(user_id).categories
            doomed = [cid for cid, c in categories.items() if c.name == name]
            for cid in doomed:
                del categories[cid]
        if doomed:
            self._notify(user_id, CATEGORIES_COLLECTION)
        return len(doomed)

    def seed_default_categories(self, user_id: str, categories: Sequence[Category]) -> None:
        self._check_writable()
        with self._lock:
            stored = self._user(user_id).categories
            for category in categories:
                category_id = uuid4().hex
                stored[category_id] = category.model_copy(update={"id": category_id})
        self._notify(user_id, CATEGORIES_COLLECTION)

    def set_monthly_budget(self, user_id: str, amount: Decimal) -> None:
        self._check_writable()
        with self._lock:
            self._user(user_id).settings = BudgetSettings(monthly_budget=amount)
        self._notify(user_id, SETTINGS_COLLECTION)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def listen_expenses(
        self,
        user_id: str,
        on_snapshot: ExpensesCallback,
        on_error: ErrorCallback,
    ) -> MemoryListenerHandle:
        return self._listen(user_id, EXPENSES_COLLECTION, on_snapshot, on_error)

    def listen_categories(
        self,
        user_id: str,
        on_snapshot: CategoriesCallback,
        on_error: ErrorCallback,
    ) -> MemoryListenerHandle:
        return self._listen(user_id, CATEGORIES_COLLECTION, on_snapshot, on_error)

    def listen_settings(
        self,
        user_id: str,
        on_snapshot: SettingsCallback,
        on_error: ErrorCallback,
    ) -> MemoryListenerHandle:
        return self._listen(user_id, SETTINGS_COLLECTION, on_snapshot, on_error)
