"""
Snapshot Sync

Keeps a local, read-only mirror of one user's expenses, categories and
budget by attaching live listeners to the store. The UI never queries the
store directly; it renders whatever ``SyncState`` was last published.

GUARANTEES:
- At most one subscription is active per ``SnapshotSync``
- Expenses in the state are always sorted newest first
- Errors never clear data: the state keeps the last good snapshot and
  records the error in ``last_error``
"""

import threading
from decimal import Decimal
from typing import Callable, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from src.activity import ActivityLogger
from src.analytics.aggregator import sort_newest_first
from src.models.expense import DEFAULT_CATEGORIES, BudgetSettings, Category, Expense
from src.services.auth import Session
from src.services.storage.interface import (
    CATEGORIES_COLLECTION,
    EXPENSES_COLLECTION,
    SETTINGS_COLLECTION,
    ExpenseStoreInterface,
    ListenerHandle,
    StorageError,
)


class SyncState(BaseModel):
    """Immutable view of the user's data at one point in time."""
    model_config = ConfigDict(frozen=True)

    expenses: tuple[Expense, ...] = ()
    categories: tuple[Category, ...] = ()
    monthly_budget: Decimal = Decimal("0")
    # Flips to True on the first expenses snapshot (or expenses error)
    loaded: bool = False
    last_error: Optional[str] = None


StateListener = Callable[[SyncState], None]


class SyncSubscription:
    """
    Live listeners for one user.

    Created by ``SnapshotSync.subscribe``; call ``unsubscribe`` to detach.
    """

    def __init__(
        self,
        store: ExpenseStoreInterface,
        session: Session,
        activity_logger: ActivityLogger,
        default_categories: Sequence[Category] = DEFAULT_CATEGORIES,
    ):
        self._store = store
        self._session = session
        self._activity = activity_logger
        self._default_categories = tuple(default_categories)

        self._lock = threading.Lock()
        self._state = SyncState()
        self._listeners: list[StateListener] = []
        self._handles: list[ListenerHandle] = []
        self._seed_attempted = False
        self._active = False

    @property
    def user_id(self) -> str:
        return self._session.user_id

    @property
    def session(self) -> Session:
        return self._session

    @property
    def state(self) -> SyncState:
        with self._lock:
            return self._state

    @property
    def active(self) -> bool:
        return self._active

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a callback for state changes; it is called once immediately.

        Returns a function that removes the callback.
        """
        with self._lock:
            self._listeners.append(listener)
            state = self._state
        listener(state)

        def remove():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)
        return remove

    def _publish(self, **changes) -> None:
        with self._lock:
            if not self._active:
                return
            self._state = self._state.model_copy(update=changes)
            state = self._state
            listeners = list(self._listeners)
        for listener in listeners:
            listener(state)

    # ------------------------------------------------------------------
    # Snapshot handlers
    # ------------------------------------------------------------------

    def _on_expenses(self, expenses: list[Expense]) -> None:
        self._activity.log_snapshot(self.user_id, EXPENSES_COLLECTION, len(expenses))
        self._publish(expenses=tuple(sort_newest_first(expenses)), loaded=True)

    def _on_categories(self, categories: list[Category]) -> None:
        self._activity.log_snapshot(self.user_id, CATEGORIES_COLLECTION, len(categories))
        if not categories and not self._seed_attempted:
            # New account: seed once, and let the follow-up snapshot fill the state
            self._seed_defaults()
            return
        self._publish(categories=tuple(categories))

    def _on_settings(self, settings: Optional[BudgetSettings]) -> None:
        self._activity.log_snapshot(self.user_id, SETTINGS_COLLECTION, 0 if settings is None else 1)
        if settings is None:
            return
        self._publish(monthly_budget=settings.monthly_budget)

    def _error_handler(self, collection: str) -> Callable[[Exception], None]:
        def on_error(error: Exception) -> None:
            self._activity.log_subscription_error(self.user_id, collection, str(error))
            changes = {"last_error": str(error)}
            if collection == EXPENSES_COLLECTION:
                changes["loaded"] = True
            self._publish(**changes)
        return on_error

    def _seed_defaults(self) -> None:
        if self._seed_attempted or not self._active:
            return
        self._seed_attempted = True
        try:
            self._store.seed_default_categories(self.user_id, self._default_categories)
        except StorageError as e:
            self._error_handler(CATEGORIES_COLLECTION)(e)
            return
        self._activity.log_categories_seeded(self.user_id, len(self._default_categories))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._active:
            return
        self._active = True
        self._activity.log_subscription_started(
            self.user_id,
            [EXPENSES_COLLECTION, CATEGORIES_COLLECTION, SETTINGS_COLLECTION],
        )
        attach = (
            (EXPENSES_COLLECTION, self._store.listen_expenses, self._on_expenses),
            (CATEGORIES_COLLECTION, self._store.listen_categories, self._on_categories),
            (SETTINGS_COLLECTION, self._store.listen_settings, self._on_settings),
        )
        for collection, listen, handler in attach:
            on_error = self._error_handler(collection)
            try:
                self._handles.append(listen(self.user_id, handler, on_error))
            except StorageError as e:
                on_error(e)

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        handles, self._handles = self._handles, []
        for handle in handles:
            handle.unsubscribe()
        with self._lock:
            self._listeners.clear()
        self._activity.log_subscription_stopped(self.user_id)


class SnapshotSync:
    """Owns the single top-level subscription."""

    def __init__(
        self,
        store: ExpenseStoreInterface,
        activity_logger: Optional[ActivityLogger] = None,
        default_categories: Sequence[Category] = DEFAULT_CATEGORIES,
    ):
        self._store = store
        self._activity = activity_logger or ActivityLogger()
        self._default_categories = tuple(default_categories)
        self._current: Optional[SyncSubscription] = None

    @property
    def current(self) -> Optional[SyncSubscription]:
        return self._current

    def subscribe(self, session: Session) -> SyncSubscription:
        """Start listening for ``session``'s user, tearing down any previous subscription."""
        self.unsubscribe()
        subscription = SyncSubscription(
            self._store,
            session,
            self._activity,
            self._default_categories,
        )
        self._current = subscription
        subscription.start()
        return subscription

    def unsubscribe(self) -> None:
        if self._current is not None:
            self._current.unsubscribe()
            self._current = None
