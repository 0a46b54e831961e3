"""
Tests for Expense Tracker

Test strategy:
1. Unit tests for individual components (models, validators, aggregation)
2. Integration tests for flows (with the in-memory store)
3. No real API calls in tests (use mocks)
"""

import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from src.models.expense import (
    DEFAULT_CATEGORIES,
    FALLBACK_CATEGORY_COLOR,
    FALLBACK_CATEGORY_ICON,
    BudgetSettings,
    Category,
    Expense,
    NewExpense,
    ValidationIssue,
    ValidationResult,
)
from src.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)


class TestCategoryModel:
    """Tests for the Category model."""

    def test_category_creation_with_wire_names(self):
        """Test that stored field names populate the model."""
        category = Category.model_validate({"name": "Casa", "hex": "#4F46E5", "iconName": "home"})
        assert category.name == "Casa"
        assert category.color == "#4f46e5"
        assert category.icon_name == "home"

    def test_category_strips_whitespace(self):
        """Test that whitespace is stripped from the name."""
        category = Category(name="  Salud  ")
        assert category.name == "Salud"

    def test_category_rejects_bad_color(self):
        """Test that non-hex colors are rejected."""
        with pytest.raises(ValueError):
            Category(name="Test", color="blue")

    def test_category_rejects_empty_name(self):
        """Test that empty names are rejected."""
        with pytest.raises(ValueError):
            Category(name="   ")

    def test_to_document_uses_wire_names(self):
        """Test the stored document shape."""
        category = Category(name="Casa", color="#4f46e5", icon_name="home")
        assert category.to_document() == {"name": "Casa", "hex": "#4f46e5", "iconName": "home"}

    def test_from_document_tolerates_bad_styling(self):
        """Test that malformed color/icon fall back to defaults."""
        category = Category.from_document("abc", {"name": "Old", "hex": "red"})
        assert category.id == "abc"
        assert category.color == FALLBACK_CATEGORY_COLOR
        assert category.icon_name == FALLBACK_CATEGORY_ICON

    def test_fallback_category(self):
        """Test the stand-in used for deleted categories."""
        category = Category.fallback("Gone")
        assert category.name == "Gone"
        assert category.is_fallback is True
        assert category.color == FALLBACK_CATEGORY_COLOR
        assert "is_fallback" not in category.model_dump()

    def test_default_categories(self):
        """Test the seeded default categories."""
        assert len(DEFAULT_CATEGORIES) == 10
        names = [c.name for c in DEFAULT_CATEGORIES]
        assert len(set(names)) == len(names)
        assert names[0] == "Alimentación"
        assert names[-1] == "Otros"


class TestExpenseModels:
    """Tests for expense models."""

    def test_new_expense_coerces_float_amount(self):
        """Test that float amounts become exact decimals."""
        expense = NewExpense(
            amount=12.5,
            description="Lunch",
            category="Salidas",
            date=datetime(2024, 3, 10, 12, tzinfo=timezone.utc),
        )
        assert expense.amount == Decimal("12.5")

    def test_new_expense_rejects_zero_amount(self):
        """Test that zero amounts are rejected."""
        with pytest.raises(ValueError):
            NewExpense(
                amount=Decimal("0"),
                category="Otros",
                date=datetime(2024, 3, 10, tzinfo=timezone.utc),
            )

    def test_new_expense_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            NewExpense(
                amount=Decimal("-5"),
                category="Otros",
                date=datetime(2024, 3, 10, tzinfo=timezone.utc),
            )

    def test_naive_date_is_utc(self):
        """Test that naive datetimes are taken as UTC."""
        expense = NewExpense(amount=1, category="Otros", date=datetime(2024, 3, 10, 23, 30))
        assert expense.date.tzinfo is not None
        assert expense.date.utcoffset() == timedelta(0)

    def test_local_date_uses_timezone(self):
        """Test that the calendar day depends on the display timezone."""
        expense = NewExpense(
            amount=1,
            category="Otros",
            date=datetime(2024, 3, 10, 23, 30, tzinfo=timezone.utc),
        )
        assert expense.local_date() == date(2024, 3, 10)
        assert expense.local_date(timezone(timedelta(hours=2))) == date(2024, 3, 11)

    def test_to_document(self):
        """Test the normalized stored record."""
        expense = NewExpense(
            amount=Decimal("12.50"),
            description="Lunch",
            category="Salidas",
            date=datetime(2024, 3, 10, 12, tzinfo=timezone.utc),
        )
        doc = expense.to_document()
        assert doc["amount"] == 12.5
        assert doc["category"] == "Salidas"
        assert doc["date"] == "2024-03-10T12:00:00+00:00"

    def test_expense_from_document(self):
        """Test reading a stored expense back."""
        expense = Expense.from_document("e1", {
            "amount": 12.5,
            "description": "Lunch",
            "category": "Salidas",
            "date": "2024-03-10T12:00:00+00:00",
        })
        assert expense.id == "e1"
        assert expense.amount == Decimal("12.5")
        assert expense.date == datetime(2024, 3, 10, 12, tzinfo=timezone.utc)

    def test_expense_from_document_rejects_garbage_amount(self):
        """Test that malformed documents raise instead of producing bad data."""
        with pytest.raises(ValueError):
            Expense.from_document("e1", {
                "amount": "lots",
                "category": "Otros",
                "date": "2024-03-10T12:00:00+00:00",
            })


class TestBudgetSettings:
    """Tests for the settings singleton."""

    def test_budget_from_wire_name(self):
        settings = BudgetSettings.model_validate({"monthlyBudget": 1500})
        assert settings.monthly_budget == Decimal("1500")

    def test_missing_budget_is_zero(self):
        assert BudgetSettings.model_validate({"monthlyBudget": None}).monthly_budget == 0
        assert BudgetSettings().monthly_budget == 0

    def test_negative_budget_rejected(self):
        with pytest.raises(ValueError):
            BudgetSettings(monthly_budget=Decimal("-1"))


class TestValidationModels:
    """Tests for validation-related models."""

    def test_validation_issue_creation(self):
        """Test ValidationIssue model creation."""
        issue = ValidationIssue(
            field="amount",
            issue_type="missing",
            message="Please enter an amount.",
            severity="error",
        )
        assert issue.field == "amount"
        assert issue.severity == "error"

    def test_validation_issue_rejects_bad_severity(self):
        """Test that only known severities are accepted."""
        with pytest.raises(ValueError):
            ValidationIssue(field="amount", issue_type="x", message="x", severity="fatal")

    def test_validation_result_error_helpers(self):
        """Test error counting and per-field lookup."""
        result = ValidationResult(
            is_valid=False,
            issues=[
                ValidationIssue(field="amount", issue_type="missing", message="Need amount", severity="error"),
                ValidationIssue(field="date", issue_type="future_date", message="Future", severity="warning"),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1
        assert result.errors_for("amount") == ["Need amount"]
        assert result.errors_for("date") == []


class TestActivityModels:
    """Tests for activity-related models."""

    def test_activity_event_creation(self):
        """Test ActivityEvent model creation."""
        event = ActivityEvent(
            event_type=ActivityEventType.EXPENSE_ADDED,
            description="Test event",
        )
        assert event.event_type == ActivityEventType.EXPENSE_ADDED
        assert event.severity == ActivitySeverity.INFO

    def test_activity_event_builder_expense_added(self):
        """Test ActivityEventBuilder for expense_added."""
        event = ActivityEventBuilder.expense_added("u1", "e1", "12.50", "Salidas")
        assert event.event_type == ActivityEventType.EXPENSE_ADDED
        assert event.user_id == "u1"
        assert event.entity_id == "e1"
        assert event.is_user_action is True

    def test_category_deleted_warns_when_dangling(self):
        """Test that dangling references raise the severity."""
        event = ActivityEventBuilder.category_deleted("u1", "Casa", 1, 3)
        assert event.severity == ActivitySeverity.WARNING

    def test_activity_event_to_log_dict(self):
        """Test converting event to log dictionary."""
        event = ActivityEventBuilder.subscription_error("u1", "expenses", "permission denied")
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "subscription_error"
        assert log_dict["severity"] == "error"
        assert log_dict["user_id"] == "u1"
