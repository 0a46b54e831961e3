"""Tests for the activity logger."""

from structlog.testing import capture_logs

from src.activity import ActivityLogger


class TestActivityLogger:
    """Tests for structured activity logging."""

    def test_write_failure_logged_as_error(self):
        with capture_logs() as logs:
            ActivityLogger().log_write_failed("u1", "expense", "add", "permission denied")
        (entry,) = logs
        assert entry["log_level"] == "error"
        assert entry["event_type"] == "write_failed"
        assert entry["error_message"] == "permission denied"
        assert entry["user_id"] == "u1"

    def test_snapshot_logged_at_debug(self):
        with capture_logs() as logs:
            ActivityLogger().log_snapshot("u1", "expenses", 4)
        assert logs[0]["log_level"] == "debug"
        assert logs[0]["details"] == {"document_count": 4}

    def test_dangling_category_delete_is_warning(self):
        with capture_logs() as logs:
            ActivityLogger().log_category_deleted("u1", "Casa", 1, 2)
        assert logs[0]["log_level"] == "warning"
        assert logs[0]["details"]["dangling_expenses"] == 2

    def test_expense_added_is_info(self):
        with capture_logs() as logs:
            ActivityLogger().log_expense_added("u1", "e1", "12.50", "Casa")
        assert logs[0]["log_level"] == "info"
        assert logs[0]["entity_id"] == "e1"
        assert logs[0]["is_user_action"] is True
