"""
Abstract Storage Interface

Storage operations are defined against an abstract interface so that:
1. The Firestore backend can be swapped for another document store
2. Tests and offline runs use in-memory storage
3. Business logic never imports a backend SDK

Every user's data lives under one namespace:
``artifacts/{app_id}/users/{user_id}/{expenses|categories|settings}``.
Reads happen only through live listeners; there are no one-off queries.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Callable, Protocol, Sequence

from src.models.expense import BudgetSettings, Category, Expense, NewExpense


EXPENSES_COLLECTION = "expenses"
CATEGORIES_COLLECTION = "categories"
SETTINGS_COLLECTION = "settings"
SETTINGS_DOCUMENT = "general"


def user_collection_path(app_id: str, user_id: str, collection: str) -> tuple[str, ...]:
    """Path segments of a per-user collection."""
    if not user_id:
        raise ValueError("user_id is required")
    return ("artifacts", app_id, "users", user_id, collection)


# Listener callbacks receive the full, parsed contents of the collection
ExpensesCallback = Callable[[list[Expense]], None]
CategoriesCallback = Callable[[list[Category]], None]
# None when the settings document does not exist yet
SettingsCallback = Callable[[BudgetSettings | None], None]
ErrorCallback = Callable[[Exception], None]


class ListenerHandle(Protocol):
    """Returned by every ``listen_*`` call."""

    def unsubscribe(self) -> None:
        ...


class ExpenseStoreInterface(ABC):
    """
    Abstract interface for expense storage.

    Any storage implementation must implement these methods.
    Writes raise ``StorageError`` (or a subclass) on failure.
    """

    @abstractmethod
    def add_expense(self, user_id: str, expense: NewExpense) -> str:
        """
        Save a new expense.

        Returns:
            The new document ID
        """

    @abstractmethod
    def update_expense(self, user_id: str, expense_id: str, expense: NewExpense) -> None:
        """
        Replace an existing expense.

        Raises:
            NotFoundError: If the expense doesn't exist
        """

    @abstractmethod
    def delete_expense(self, user_id: str, expense_id: str) -> bool:
        """
        Delete an expense.

        Returns:
            True if a document was deleted
        """

    @abstractmethod
    def add_category(self, user_id: str, category: Category) -> str:
        """Save a new category. Returns the new document ID."""

    @abstractmethod
    def delete_category(self, user_id: str, name: str) -> int:
        """
        Delete every category document with this name.

        Expenses referencing the name are left untouched.

        Returns:
            Number of category documents deleted
        """

    @abstractmethod
    def seed_default_categories(self, user_id: str, categories: Sequence[Category]) -> None:
        """Write the default categories in a single batch."""

    @abstractmethod
    def set_monthly_budget(self, user_id: str, amount: Decimal) -> None:
        """Merge ``monthlyBudget`` into the settings document."""

    @abstractmethod
    def listen_expenses(
        self,
        user_id: str,
        on_snapshot: ExpensesCallback,
        on_error: ErrorCallback,
    ) -> ListenerHandle:
        """Attach a live listener to the user's expenses."""

    @abstractmethod
    def listen_categories(
        self,
        user_id: str,
        on_snapshot: CategoriesCallback,
        on_error: ErrorCallback,
    ) -> ListenerHandle:
        """Attach a live listener to the user's categories."""

    @abstractmethod
    def listen_settings(
        self,
        user_id: str,
        on_snapshot: SettingsCallback,
        on_error: ErrorCallback,
    ) -> ListenerHandle:
        """Attach a live listener to the user's settings document."""


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class PermissionDeniedError(StorageError):
    """The backend's security rules rejected the operation."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
