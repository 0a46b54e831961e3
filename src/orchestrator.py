"""
Main Orchestrator for Expense Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Writes (form → validate → store → snapshot → view)
2. Dashboard (synced state → aggregate → chart geometry)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No write reaches the store without passing validation
- The UI only ever renders the synced snapshot, never a local guess
- Every write and failure is logged

Failures are never fatal: a failed write returns an ActionResult with a
message for the user, and a failed subscription leaves the last view.
"""

import warnings
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.activity import ActivityLogger
from src.analytics import (
    bar_geometry,
    budget_status,
    count_expenses_in_category,
    donut_slices,
    period_label,
    progress_bars,
    resolve_category,
    summarize_period,
    total_amount,
    weekly_series,
)
from src.config import AppSettings, get_settings
from src.models.expense import (
    CategoryForm,
    ExpenseForm,
    Period,
    ValidationIssue,
    ValidationResult,
)
from src.models.summary import DashboardView, TransactionRow
from src.services.auth import (
    AuthClientInterface,
    FirebaseAuthClient,
    LocalAuthClient,
    Session,
    SessionManager,
)
from src.services.storage import (
    ExpenseStoreInterface,
    FirestoreClient,
    FirestoreExpenseStore,
    InMemoryExpenseStore,
    NotFoundError,
    StorageError,
)
from src.sync import SnapshotSync, SyncState
from src.validation import (
    BudgetValidator,
    CategoryValidator,
    ExpenseValidator,
    user_friendly_summary,
)


WRITE_FAILED_MESSAGE = "Could not save your changes. Check your connection or permissions."
NOT_SIGNED_IN_MESSAGE = "Please sign in first."


class ActionResult(BaseModel):
    """Outcome of a user action, ready to show in the UI."""

    success: bool
    message: str = ""
    details: str = Field(
        default="",
        description="Multi-line summary of validation errors and warnings"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="Inline field errors and warnings"
    )
    entity_id: Optional[str] = None
    dangling_expenses: int = Field(
        default=0,
        ge=0,
        description="Expenses still referencing a deleted category"
    )

    def errors_for(self, field: str) -> list[str]:
        return [i.message for i in self.issues if i.field == field and i.severity == "error"]


class ExpenseTracker:
    """
    Orchestrates writes and the dashboard for the signed-in user.

    Writes go straight to the store; the UI picks up the result from the
    next snapshot, so nothing here mutates local state.
    """

    def __init__(
        self,
        store: ExpenseStoreInterface,
        sync: Optional[SnapshotSync] = None,
        expense_validator: Optional[ExpenseValidator] = None,
        category_validator: Optional[CategoryValidator] = None,
        budget_validator: Optional[BudgetValidator] = None,
        activity_logger: Optional[ActivityLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._settings = settings or get_settings().app
        self._store = store
        self._activity = activity_logger or ActivityLogger()
        self._sync = sync or SnapshotSync(store, self._activity)
        self._expense_validator = expense_validator or ExpenseValidator(self._settings)
        self._category_validator = category_validator or CategoryValidator()
        self._budget_validator = budget_validator or BudgetValidator()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, session: Session) -> None:
        """Subscribe to the session user's data (replacing any previous user)."""
        self._sync.subscribe(session)

    def stop(self) -> None:
        self._sync.unsubscribe()

    @property
    def session(self) -> Optional[Session]:
        subscription = self._sync.current
        return subscription.session if subscription else None

    @property
    def state(self) -> SyncState:
        subscription = self._sync.current
        return subscription.state if subscription else SyncState()

    @property
    def settings(self) -> AppSettings:
        return self._settings

    def _user_id(self) -> Optional[str]:
        session = self.session
        return session.user_id if session else None

    def _write_failed(self, user_id: str, entity_type: str, operation: str, error: Exception) -> ActionResult:
        self._activity.log_write_failed(user_id, entity_type, operation, str(error))
        return ActionResult(success=False, message=WRITE_FAILED_MESSAGE)

    def _invalid(self, user_id: Optional[str], form: str, result: ValidationResult) -> ActionResult:
        issues = result.issues
        self._activity.log_validation_failed(user_id, form, [i.model_dump() for i in issues])
        errors = [i.message for i in issues if i.severity == "error"]
        return ActionResult(
            success=False,
            message=errors[0] if errors else "Please check the form",
            details=user_friendly_summary(result),
            issues=issues,
        )

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    def add_expense(self, form: ExpenseForm) -> ActionResult:
        user_id = self._user_id()
        if user_id is None:
            return ActionResult(success=False, message=NOT_SIGNED_IN_MESSAGE)

        categories = self.state.categories or None
        result = self._expense_validator.validate(form, categories=categories)
        if not result.is_valid:
            return self._invalid(user_id, "expense", result)

        expense = result.expense
        try:
            expense_id = self._store.add_expense(user_id, expense)
        except StorageError as e:
            return self._write_failed(user_id, "expense", "add", e)

        self._activity.log_expense_added(user_id, expense_id, str(expense.amount), expense.category)
        return ActionResult(
            success=True,
            message="Expense added",
            details=user_friendly_summary(result) if result.warnings else "",
            issues=result.issues,
            entity_id=expense_id,
        )

    def update_expense(self, expense_id: str, form: ExpenseForm) -> ActionResult:
        user_id = self._user_id()
        if user_id is None:
            return ActionResult(success=False, message=NOT_SIGNED_IN_MESSAGE)

        categories = self.state.categories or None
        result = self._expense_validator.validate(form, categories=categories)
        if not result.is_valid:
            return self._invalid(user_id, "expense", result)

        expense = result.expense
        try:
            self._store.update_expense(user_id, expense_id, expense)
        except NotFoundError:
            return ActionResult(success=False, message="This expense no longer exists.")
        except StorageError as e:
            return self._write_failed(user_id, "expense", "update", e)

        self._activity.log_expense_updated(user_id, expense_id, str(expense.amount), expense.category)
        return ActionResult(
            success=True,
            message="Expense updated",
            details=user_friendly_summary(result) if result.warnings else "",
            issues=result.issues,
            entity_id=expense_id,
        )

    def delete_expense(self, expense_id: str) -> ActionResult:
        user_id = self._user_id()
        if user_id is None:
            return ActionResult(success=False, message=NOT_SIGNED_IN_MESSAGE)

        try:
            deleted = self._store.delete_expense(user_id, expense_id)
        except StorageError as e:
            return self._write_failed(user_id, "expense", "delete", e)

        if not deleted:
            return ActionResult(success=False, message="This expense no longer exists.")

        self._activity.log_expense_deleted(user_id, expense_id)
        return ActionResult(success=True, message="Expense deleted", entity_id=expense_id)

    # ------------------------------------------------------------------
    # Categories and budget
    # ------------------------------------------------------------------

    def add_category(self, form: CategoryForm) -> ActionResult:
        user_id = self._user_id()
        if user_id is None:
            return ActionResult(success=False, message=NOT_SIGNED_IN_MESSAGE)

        result = self._category_validator.validate(form, existing=self.state.categories)
        if not result.is_valid:
            return self._invalid(user_id, "category", result)

        try:
            category_id = self._store.add_category(user_id, result.category)
        except StorageError as e:
            return self._write_failed(user_id, "category", "add", e)

        self._activity.log_category_added(user_id, category_id, result.category.name)
        return ActionResult(
            success=True,
            message=f"Category '{result.category.name}' created",
            entity_id=category_id,
        )

    def delete_category(self, name: str) -> ActionResult:
        """
        Delete a category by name.

        Expenses that use it are kept; the result reports how many, and they
        keep rendering with fallback styling.
        """
        user_id = self._user_id()
        if user_id is None:
            return ActionResult(success=False, message=NOT_SIGNED_IN_MESSAGE)

        dangling = count_expenses_in_category(self.state.expenses, name)
        try:
            deleted = self._store.delete_category(user_id, name)
        except StorageError as e:
            return self._write_failed(user_id, "category", "delete", e)

        self._activity.log_category_deleted(user_id, name, deleted, dangling)

        if deleted == 0:
            return ActionResult(success=False, message=f"Category '{name}' not found")

        message = f"Category '{name}' deleted"
        if dangling:
            message += (
                f". {dangling} expense(s) still use it and will be shown with default styling."
            )
        return ActionResult(success=True, message=message, dangling_expenses=dangling)

    def set_budget(self, text: str) -> ActionResult:
        user_id = self._user_id()
        if user_id is None:
            return ActionResult(success=False, message=NOT_SIGNED_IN_MESSAGE)

        result = self._budget_validator.validate(text)
        if not result.is_valid:
            return self._invalid(user_id, "budget", result)

        try:
            self._store.set_monthly_budget(user_id, result.monthly_budget)
        except StorageError as e:
            return self._write_failed(user_id, "settings", "set_budget", e)

        self._activity.log_budget_updated(user_id, str(result.monthly_budget))
        return ActionResult(success=True, message="Budget updated")

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def today(self) -> date:
        return datetime.now(self._settings.tzinfo).date()

    def dashboard(
        self,
        view_mode: Period = Period.WEEK,
        reference: Optional[date] = None,
        today: Optional[date] = None,
    ) -> DashboardView:
        """
        Build the main screen from the current snapshot.

        Args:
            view_mode: WEEK shows the rolling 7 days and every transaction;
                       MONTH and YEAR show the window containing ``reference``
            reference: Day selecting the month/year (defaults to today)
            today: Override of the clock, for tests
        """
        state = self.state
        tz = self._settings.tzinfo
        today = today or self.today()
        reference = reference or today

        weekly = weekly_series(state.expenses, today, tz)
        month = summarize_period(state.expenses, state.categories, reference, Period.MONTH, tz)
        budget = budget_status(state.monthly_budget, month.total)

        if view_mode == Period.WEEK:
            summary = None
            shown = state.expenses
            title = "Current status"
        elif view_mode == Period.MONTH:
            summary = month
            shown = month.expenses
            title = period_label(reference, Period.MONTH)
        else:
            summary = summarize_period(state.expenses, state.categories, reference, view_mode, tz)
            shown = summary.expenses
            title = period_label(reference, view_mode)

        transactions = [
            TransactionRow(expense=e, category=resolve_category(state.categories, e.category))
            for e in shown
        ]

        session = self.session
        return DashboardView(
            view_mode=view_mode,
            reference=reference,
            greeting=f"Hello, {session.display_name if session else 'User'}",
            title=title,
            budget=budget,
            weekly=weekly,
            bars=bar_geometry(weekly),
            summary=summary,
            slices=donut_slices(summary.breakdown) if summary else [],
            progress=progress_bars(summary.breakdown) if summary else [],
            transactions=transactions,
            all_time_total=total_amount(state.expenses),
            loaded=state.loaded,
            last_error=state.last_error,
        )


def create_app_components(
    use_firestore: bool = True,
) -> tuple[ExpenseTracker, SessionManager, ExpenseStoreInterface]:
    """
    Factory function to create all application components.

    Args:
        use_firestore: Whether to use Firestore and Firebase Auth.
                       Set to False for testing without a backend.

    Returns:
        (tracker, session_manager, store)
    """
    activity_logger = ActivityLogger()
    store: ExpenseStoreInterface
    auth_client: AuthClientInterface

    if use_firestore:
        try:
            firebase_settings = get_settings().firebase
            client = FirestoreClient(firebase_settings)
            client.connect()
            store = FirestoreExpenseStore(client)
            auth_client = FirebaseAuthClient(firebase_settings)
        except Exception as e:
            # Firebase not configured - continue with local storage
            warnings.warn(f"Firebase not configured, using in-memory storage: {e}")
            store = InMemoryExpenseStore()
            auth_client = LocalAuthClient()
    else:
        store = InMemoryExpenseStore()
        auth_client = LocalAuthClient()

    tracker = ExpenseTracker(store, activity_logger=activity_logger)
    session_manager = SessionManager(auth_client, tracker, activity_logger)

    return tracker, session_manager, store
