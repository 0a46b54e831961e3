"""
Activity Event Models

Every significant client action emits one structured event:
sign-in/out, subscription lifecycle, snapshots, writes and failures.

Events are written to the local structured log only. Nothing here is
persisted to the backend; expenses have no stored history.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ActivityEventType(str, Enum):
    """Types of events we log."""
    # Session
    USER_SIGNED_IN = "user_signed_in"
    USER_SIGNED_OUT = "user_signed_out"
    AUTH_FAILED = "auth_failed"

    # Subscription lifecycle
    SUBSCRIPTION_STARTED = "subscription_started"
    SUBSCRIPTION_STOPPED = "subscription_stopped"
    SNAPSHOT_RECEIVED = "snapshot_received"
    SUBSCRIPTION_ERROR = "subscription_error"
    CATEGORIES_SEEDED = "categories_seeded"

    # Writes
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    CATEGORY_ADDED = "category_added"
    CATEGORY_DELETED = "category_deleted"
    BUDGET_UPDATED = "budget_updated"
    WRITE_FAILED = "write_failed"

    # Forms
    VALIDATION_FAILED = "validation_failed"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single activity event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    user_id: Optional[str] = Field(
        default=None,
        description="Authenticated user the event belongs to"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'category', 'settings')"
    )
    entity_id: Optional[str] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None
    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.expense_added(user_id, expense_id, amount, category)
        event = ActivityEventBuilder.write_failed(user_id, "expense", "add", error)
    """

    @staticmethod
    def user_signed_in(user_id: str, is_anonymous: bool) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.USER_SIGNED_IN,
            user_id=user_id,
            description="User signed in" + (" anonymously" if is_anonymous else ""),
            details={"is_anonymous": is_anonymous},
            is_user_action=True,
        )

    @staticmethod
    def user_signed_out(user_id: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.USER_SIGNED_OUT,
            user_id=user_id,
            description="User signed out",
            is_user_action=True,
        )

    @staticmethod
    def auth_failed(method: str, error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.AUTH_FAILED,
            severity=ActivitySeverity.WARNING,
            description=f"Authentication failed ({method})",
            details={"method": method},
            error_message=error_message,
        )

    @staticmethod
    def subscription_started(user_id: str, collections: list[str]) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SUBSCRIPTION_STARTED,
            user_id=user_id,
            description="Live subscription started",
            details={"collections": collections},
        )

    @staticmethod
    def subscription_stopped(user_id: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SUBSCRIPTION_STOPPED,
            user_id=user_id,
            description="Live subscription stopped",
        )

    @staticmethod
    def snapshot_received(user_id: str, collection: str, document_count: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SNAPSHOT_RECEIVED,
            severity=ActivitySeverity.DEBUG,
            user_id=user_id,
            entity_type=collection,
            description=f"Snapshot received for {collection}",
            details={"document_count": document_count},
        )

    @staticmethod
    def subscription_error(user_id: str, collection: str, error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SUBSCRIPTION_ERROR,
            severity=ActivitySeverity.ERROR,
            user_id=user_id,
            entity_type=collection,
            description=f"{collection.capitalize()} listener failed; keeping last snapshot",
            error_message=error_message,
        )

    @staticmethod
    def categories_seeded(user_id: str, count: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.CATEGORIES_SEEDED,
            user_id=user_id,
            entity_type="category",
            description=f"Seeded {count} default categories",
            details={"count": count},
        )

    @staticmethod
    def expense_added(user_id: str, expense_id: str, amount: str, category: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.EXPENSE_ADDED,
            user_id=user_id,
            entity_type="expense",
            entity_id=expense_id,
            description=f"Expense added: {amount} in {category}",
            details={"amount": amount, "category": category},
            is_user_action=True,
        )

    @staticmethod
    def expense_updated(user_id: str, expense_id: str, amount: str, category: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.EXPENSE_UPDATED,
            user_id=user_id,
            entity_type="expense",
            entity_id=expense_id,
            description=f"Expense updated: {amount} in {category}",
            details={"amount": amount, "category": category},
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(user_id: str, expense_id: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.EXPENSE_DELETED,
            user_id=user_id,
            entity_type="expense",
            entity_id=expense_id,
            description="Expense deleted",
            is_user_action=True,
        )

    @staticmethod
    def category_added(user_id: str, category_id: str, name: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.CATEGORY_ADDED,
            user_id=user_id,
            entity_type="category",
            entity_id=category_id,
            description=f"Category added: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def category_deleted(
        user_id: str,
        name: str,
        deleted_count: int,
        dangling_expenses: int,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.CATEGORY_DELETED,
            severity=ActivitySeverity.WARNING if dangling_expenses else ActivitySeverity.INFO,
            user_id=user_id,
            entity_type="category",
            description=f"Category deleted: {name}",
            details={
                "name": name,
                "deleted_documents": deleted_count,
                "dangling_expenses": dangling_expenses,
            },
            is_user_action=True,
        )

    @staticmethod
    def budget_updated(user_id: str, monthly_budget: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.BUDGET_UPDATED,
            user_id=user_id,
            entity_type="settings",
            entity_id="general",
            description=f"Monthly budget set to {monthly_budget}",
            details={"monthly_budget": monthly_budget},
            is_user_action=True,
        )

    @staticmethod
    def write_failed(
        user_id: Optional[str],
        entity_type: str,
        operation: str,
        error_message: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.WRITE_FAILED,
            severity=ActivitySeverity.ERROR,
            user_id=user_id,
            entity_type=entity_type,
            description=f"Failed to {operation} {entity_type}",
            details={"operation": operation},
            error_message=error_message,
        )

    @staticmethod
    def validation_failed(
        user_id: Optional[str],
        form: str,
        issues: list[dict],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.VALIDATION_FAILED,
            severity=ActivitySeverity.DEBUG,
            user_id=user_id,
            entity_type=form,
            description=f"{form.capitalize()} form rejected",
            details={"issues": issues},
            is_user_action=True,
        )
