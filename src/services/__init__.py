"""Services package."""

from src.services.auth import (
    AuthError,
    FirebaseAuthClient,
    LocalAuthClient,
    Session,
    SessionManager,
)
from src.services.storage import (
    ConnectionError,
    ExpenseStoreInterface,
    FirestoreClient,
    FirestoreExpenseStore,
    InMemoryExpenseStore,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
)

__all__ = [
    # Auth services
    "AuthError",
    "FirebaseAuthClient",
    "LocalAuthClient",
    "Session",
    "SessionManager",
    # Storage services
    "ConnectionError",
    "ExpenseStoreInterface",
    "FirestoreClient",
    "FirestoreExpenseStore",
    "InMemoryExpenseStore",
    "NotFoundError",
    "PermissionDeniedError",
    "StorageError",
]
