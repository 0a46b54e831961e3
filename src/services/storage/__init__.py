"""
Storage Services Package

Provides the abstract store interface and its implementations.
Firestore is the production backend; the in-memory store serves tests
and runs without Firebase credentials.
"""

from src.services.storage.interface import (
    ConnectionError,
    ExpenseStoreInterface,
    ListenerHandle,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
)
from src.services.storage.firestore import (
    FirestoreClient,
    FirestoreExpenseStore,
)
from src.services.storage.memory import InMemoryExpenseStore

__all__ = [
    # Interfaces
    "ExpenseStoreInterface",
    "ListenerHandle",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "PermissionDeniedError",
    "StorageError",
    # Implementations
    "FirestoreClient",
    "FirestoreExpenseStore",
    "InMemoryExpenseStore",
]
