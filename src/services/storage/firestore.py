"""
Firestore Storage Implementation

Cloud Firestore is the system of record. The client authenticates with a
service account, which bypasses Firestore security rules, so per-user
isolation comes only from scoping every path to
``artifacts/{app_id}/users/{user_id}/``.

TRADEOFFS:
- No transactions except the batched category seeding
- Conflicts between devices resolve last-write-wins on the server
- Category deletes match by name, since expenses store the name, not the ID

Snapshot callbacks arrive on the SDK's watch thread; documents that fail
to parse are skipped rather than failing the whole snapshot.
"""

from decimal import Decimal
from typing import Any, Callable, Optional, Sequence

import firebase_admin
import structlog
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1.base_query import FieldFilter
from tenacity import retry, stop_after_attempt, wait_exponential

from src.config import FirebaseSettings, get_settings
from src.models.expense import BudgetSettings, Category, Expense, NewExpense
from src.services.storage.interface import (
    CATEGORIES_COLLECTION,
    EXPENSES_COLLECTION,
    SETTINGS_COLLECTION,
    SETTINGS_DOCUMENT,
    CategoriesCallback,
    ConnectionError,
    ErrorCallback,
    ExpenseStoreInterface,
    ExpensesCallback,
    NotFoundError,
    PermissionDeniedError,
    SettingsCallback,
    StorageError,
    user_collection_path,
)


logger = structlog.get_logger(__name__)


def _storage_error(action: str, error: Exception) -> StorageError:
    """Map a google-api-core error onto the storage exception hierarchy."""
    if isinstance(error, StorageError):
        return error
    if isinstance(error, google_exceptions.PermissionDenied):
        return PermissionDeniedError(f"Permission denied while trying to {action}: {error}")
    if isinstance(error, google_exceptions.NotFound):
        return NotFoundError(f"Not found while trying to {action}: {error}")
    if isinstance(error, (google_exceptions.ServiceUnavailable, google_exceptions.DeadlineExceeded)):
        return ConnectionError(f"Firestore unavailable while trying to {action}: {error}")
    return StorageError(f"Failed to {action}: {error}")


class FirestoreClient:
    """
    Low-level Firestore client wrapper.

    Handles firebase_admin app initialization and builds the per-user
    collection references.
    """

    def __init__(self, settings: Optional[FirebaseSettings] = None):
        self._settings = settings or get_settings().firebase
        self._db = None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self):
        """
        Initialize the Firebase app (once per process) and return a Firestore client.

        Uses service account credentials for authentication.
        """
        if self._db is None:
            try:
                try:
                    app = firebase_admin.get_app()
                except ValueError:
                    cred = credentials.Certificate(self._settings.credentials_path)
                    options = {}
                    if self._settings.project_id:
                        options["projectId"] = self._settings.project_id
                    app = firebase_admin.initialize_app(cred, options or None)
                self._db = firestore.client(app)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Firebase credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Firestore: {e}")

        return self._db

    def collection(self, user_id: str, name: str):
        """Reference to one of the user's collections."""
        path = user_collection_path(self._settings.app_id, user_id, name)
        return self.connect().collection(*path)

    def settings_document(self, user_id: str):
        return self.collection(user_id, SETTINGS_COLLECTION).document(SETTINGS_DOCUMENT)

    def batch(self):
        return self.connect().batch()


class FirestoreExpenseStore(ExpenseStoreInterface):
    """
    Firestore implementation of expense storage.

    Expenses and categories are one document each; the budget lives in the
    ``settings/general`` singleton.
    """

    def __init__(self, client: Optional[FirestoreClient] = None):
        self._client = client or FirestoreClient()

    # ------------------------------------------------------------------
    # Document conversion
    # ------------------------------------------------------------------

    def _docs_to_expenses(self, docs) -> list[Expense]:
        expenses = []
        for doc in docs:
            try:
                expenses.append(Expense.from_document(doc.id, doc.to_dict() or {}))
            except ValueError as e:
                # Skip malformed documents
                logger.warning("skipped_malformed_document", collection=EXPENSES_COLLECTION,
                               document_id=doc.id, error=str(e))
        return expenses

    def _docs_to_categories(self, docs) -> list[Category]:
        categories = []
        for doc in docs:
            try:
                categories.append(Category.from_document(doc.id, doc.to_dict() or {}))
            except ValueError as e:
                logger.warning("skipped_malformed_document", collection=CATEGORIES_COLLECTION,
                               document_id=doc.id, error=str(e))
        return categories

    def _docs_to_settings(self, docs) -> Optional[BudgetSettings]:
        for doc in docs:
            if not doc.exists:
                return None
            try:
                return BudgetSettings.model_validate(doc.to_dict() or {})
            except ValueError as e:
                logger.warning("skipped_malformed_document", collection=SETTINGS_COLLECTION,
                               document_id=doc.id, error=str(e))
        return None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_expense(self, user_id: str, expense: NewExpense) -> str:
        try:
            _, ref = self._client.collection(user_id, EXPENSES_COLLECTION).add(
                expense.to_document()
            )
            return ref.id
        except Exception as e:
            raise _storage_error("add expense", e)

    def update_expense(self, user_id: str, expense_id: str, expense: NewExpense) -> None:
        try:
            ref = self._client.collection(user_id, EXPENSES_COLLECTION).document(expense_id)
            ref.update(expense.to_document())
        except google_exceptions.NotFound:
            raise NotFoundError(f"Expense not found: {expense_id}")
        except Exception as e:
            raise _storage_error("update expense", e)

    def delete_expense(self, user_id: str, expense_id: str) -> bool:
        try:
            ref = self._client.collection(user_id, EXPENSES_COLLECTION).document(expense_id)
            if not ref.get().exists:
                return False
            ref.delete()
            return True
        except Exception as e:
            raise _storage_error("delete expense", e)

    def add_category(self, user_id: str, category: Category) -> str:
        try:
            _, ref = self._client.collection(user_id, CATEGORIES_COLLECTION).add(
                category.to_document()
            )
            return ref.id
        except Exception as e:
            raise _storage_error("add category", e)

    def delete_category(self, user_id: str, name: str) -> int:
        try:
            query = self._client.collection(user_id, CATEGORIES_COLLECTION).where(
                filter=FieldFilter("name", "==", name)
            )
            docs = list(query.stream())
            if not docs:
                return 0
            batch = self._client.batch()
            for doc in docs:
                batch.delete(doc.reference)
            batch.commit()
            return len(docs)
        except Exception as e:
            raise _storage_error("delete category", e)

    def seed_default_categories(self, user_id: str, categories: Sequence[Category]) -> None:
        try:
            collection = self._client.collection(user_id, CATEGORIES_COLLECTION)
            batch = self._client.batch()
            for category in categories:
                batch.set(collection.document(), category.to_document())
            batch.commit()
        except Exception as e:
            raise _storage_error("seed default categories", e)

    def set_monthly_budget(self, user_id: str, amount: Decimal) -> None:
        try:
            self._client.settings_document(user_id).set(
                BudgetSettings(monthly_budget=amount).to_document(),
                merge=True,
            )
        except Exception as e:
            raise _storage_error("set monthly budget", e)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def _watch(
        self,
        reference,
        convert: Callable[[Any], Any],
        on_snapshot: Callable,
        on_error: ErrorCallback,
        action: str,
    ):
        def callback(docs, changes, read_time):
            try:
                on_snapshot(convert(docs))
            except Exception as e:
                on_error(_storage_error(action, e))

        try:
            return reference.on_snapshot(callback)
        except Exception as e:
            raise _storage_error(action, e)

    def listen_expenses(
        self,
        user_id: str,
        on_snapshot: ExpensesCallback,
        on_error: ErrorCallback,
    ):
        return self._watch(
            self._client.collection(user_id, EXPENSES_COLLECTION),
            self._docs_to_expenses,
            on_snapshot,
            on_error,
            "listen to expenses",
        )

    def listen_categories(
        self,
        user_id: str,
        on_snapshot: CategoriesCallback,
        on_error: ErrorCallback,
    ):
        return self._watch(
            self._client.collection(user_id, CATEGORIES_COLLECTION),
            self._docs_to_categories,
            on_snapshot,
            on_error,
            "listen to categories",
        )

    def listen_settings(
        self,
        user_id: str,
        on_snapshot: SettingsCallback,
        on_error: ErrorCallback,
    ):
        return self._watch(
            self._client.settings_document(user_id),
            self._docs_to_settings,
            on_snapshot,
            on_error,
            "listen to settings",
        )
