"""
Activity Logger

Every significant client action is logged as a structured event.
This provides:
1. Traceability of writes and subscription lifecycle
2. Debugging capability when a listener goes silent
3. A record of why a view shows stale data

The activity logger:
- Writes to the local structured log only (no backend persistence)
- Never raises; logging must not break a user action
"""

import logging
from typing import Optional

import structlog

from src.models.activity import ActivityEvent, ActivityEventBuilder, ActivitySeverity


def configure_logging(level: str = "INFO") -> None:
    """
    Configure stdlib logging and structlog for JSON output.

    Safe to call more than once (Streamlit reruns the script on every
    interaction).
    """
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class ActivityLogger:
    """Central activity logging service."""

    def __init__(self, logger_name: str = "expense_tracker"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: ActivityEvent) -> None:
        """Log an activity event at the level matching its severity."""
        log_dict = event.to_log_dict()

        if event.severity == ActivitySeverity.ERROR:
            self._logger.error("activity_event", **log_dict)
        elif event.severity == ActivitySeverity.WARNING:
            self._logger.warning("activity_event", **log_dict)
        elif event.severity == ActivitySeverity.DEBUG:
            self._logger.debug("activity_event", **log_dict)
        else:
            self._logger.info("activity_event", **log_dict)

    def log_signed_in(self, user_id: str, is_anonymous: bool) -> None:
        self.log(ActivityEventBuilder.user_signed_in(user_id, is_anonymous))

    def log_signed_out(self, user_id: str) -> None:
        self.log(ActivityEventBuilder.user_signed_out(user_id))

    def log_auth_failed(self, method: str, error_message: str) -> None:
        self.log(ActivityEventBuilder.auth_failed(method, error_message))

    def log_subscription_started(self, user_id: str, collections: list[str]) -> None:
        self.log(ActivityEventBuilder.subscription_started(user_id, collections))

    def log_subscription_stopped(self, user_id: str) -> None:
        self.log(ActivityEventBuilder.subscription_stopped(user_id))

    def log_snapshot(self, user_id: str, collection: str, document_count: int) -> None:
        self.log(ActivityEventBuilder.snapshot_received(user_id, collection, document_count))

    def log_subscription_error(self, user_id: str, collection: str, error_message: str) -> None:
        self.log(ActivityEventBuilder.subscription_error(user_id, collection, error_message))

    def log_categories_seeded(self, user_id: str, count: int) -> None:
        self.log(ActivityEventBuilder.categories_seeded(user_id, count))

    def log_expense_added(self, user_id: str, expense_id: str, amount: str, category: str) -> None:
        self.log(ActivityEventBuilder.expense_added(user_id, expense_id, amount, category))

    def log_expense_updated(self, user_id: str, expense_id: str, amount: str, category: str) -> None:
        self.log(ActivityEventBuilder.expense_updated(user_id, expense_id, amount, category))

    def log_expense_deleted(self, user_id: str, expense_id: str) -> None:
        self.log(ActivityEventBuilder.expense_deleted(user_id, expense_id))

    def log_category_added(self, user_id: str, category_id: str, name: str) -> None:
        self.log(ActivityEventBuilder.category_added(user_id, category_id, name))

    def log_category_deleted(
        self,
        user_id: str,
        name: str,
        deleted_count: int,
        dangling_expenses: int,
    ) -> None:
        self.log(ActivityEventBuilder.category_deleted(
            user_id, name, deleted_count, dangling_expenses,
        ))

    def log_budget_updated(self, user_id: str, monthly_budget: str) -> None:
        self.log(ActivityEventBuilder.budget_updated(user_id, monthly_budget))

    def log_write_failed(
        self,
        user_id: Optional[str],
        entity_type: str,
        operation: str,
        error_message: str,
    ) -> None:
        self.log(ActivityEventBuilder.write_failed(user_id, entity_type, operation, error_message))

    def log_validation_failed(self, user_id: Optional[str], form: str, issues: list[dict]) -> None:
        self.log(ActivityEventBuilder.validation_failed(user_id, form, issues))
