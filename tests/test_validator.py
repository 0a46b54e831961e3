"""Tests for form validation."""

import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from src.models.expense import CategoryForm, ExpenseForm
from src.validation import (
    BudgetValidator,
    CategoryValidator,
    ExpenseValidator,
    InvalidAmountError,
    format_form_date,
    parse_amount,
    parse_form_date,
    quick_date,
    user_friendly_summary,
)


class TestParseAmount:
    """Tests for amount sanitization."""

    @pytest.mark.parametrize("text, expected", [
        ("12.50", Decimal("12.50")),
        ("12,50", Decimal("12.50")),
        ("$ 7", Decimal("7")),
        ("  3.25€ ", Decimal("3.25")),
        ("0.01", Decimal("0.01")),
    ])
    def test_accepts(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text, issue_type", [
        ("1.2.3", "multiple_separators"),
        ("1,000.50", "multiple_separators"),
        ("-5", "non_positive"),
        ("0", "non_positive"),
        ("0,00", "non_positive"),
        ("", "missing"),
        ("abc", "invalid_format"),
    ])
    def test_rejects(self, text, issue_type):
        with pytest.raises(InvalidAmountError) as exc_info:
            parse_amount(text)
        assert exc_info.value.issue_type == issue_type

    def test_zero_allowed_for_budgets(self):
        assert parse_amount("0", allow_zero=True) == Decimal("0")

    def test_none_is_missing(self):
        with pytest.raises(InvalidAmountError):
            parse_amount(None)


class TestDates:
    """Tests for date helpers."""

    def test_quick_dates(self):
        today = date(2024, 3, 10)
        assert quick_date(0, today) == "10-03-2024"
        assert quick_date(1, today) == "09-03-2024"

    def test_format_form_date(self):
        assert format_form_date(date(2024, 1, 5)) == "05-01-2024"

    @pytest.mark.parametrize("text", ["10-03-2024", "10/03/2024", "2024-03-10"])
    def test_parse_form_date_formats(self, text):
        parsed = parse_form_date(text, timezone.utc)
        assert parsed.date() == date(2024, 3, 10)
        assert parsed.hour == 12

    def test_parse_form_date_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_form_date("next tuesday", timezone.utc)

    def test_parse_form_date_rejects_impossible_day(self):
        with pytest.raises(ValueError):
            parse_form_date("31-02-2024", timezone.utc)


class TestExpenseValidator:
    """Tests for the two-stage expense validator."""

    def test_valid_form(self, app_settings, categories):
        """Test that a complete form yields a normalized expense."""
        validator = ExpenseValidator(app_settings)
        result = validator.validate(
            ExpenseForm(amount="12,50", description=" Lunch ", category="Casa", date="10-03-2024"),
            categories=categories,
            today=date(2024, 3, 10),
        )
        assert result.is_valid
        assert result.expense.amount == Decimal("12.50")
        assert result.expense.description == "Lunch"
        assert result.expense.category == "Casa"
        assert result.expense.local_date() == date(2024, 3, 10)
        assert result.warnings == []

    def test_missing_fields(self, app_settings):
        """Test that every missing field gets its own inline error."""
        validator = ExpenseValidator(app_settings)
        result = validator.validate(ExpenseForm())
        assert not result.is_valid
        assert result.expense is None
        fields = {issue.field for issue in result.issues}
        assert fields == {"amount", "description", "category"}

    def test_description_optional_when_configured(self, app_settings):
        settings = app_settings.model_copy(update={"require_description": False})
        validator = ExpenseValidator(settings)
        result = validator.validate(ExpenseForm(amount="5", category="Casa"))
        assert result.is_valid

    def test_missing_date_means_today(self, app_settings):
        validator = ExpenseValidator(app_settings)
        result = validator.validate(ExpenseForm(amount="5", description="x", category="Casa"))
        assert result.is_valid
        assert result.expense.local_date() == datetime.now(timezone.utc).date()

    def test_invalid_date(self, app_settings):
        validator = ExpenseValidator(app_settings)
        result = validator.validate(
            ExpenseForm(amount="5", description="x", category="Casa", date="yesterday-ish")
        )
        assert not result.is_valid
        assert result.errors_for("date")

    def test_amount_error_has_suggested_fix(self, app_settings):
        validator = ExpenseValidator(app_settings)
        result = validator.validate(ExpenseForm(amount="1.2.3", description="x", category="Casa"))
        issue = result.issues[0]
        assert issue.field == "amount"
        assert issue.issue_type == "multiple_separators"
        assert issue.suggested_fix

    def test_high_amount_is_warning_only(self, app_settings):
        validator = ExpenseValidator(app_settings)
        result = validator.validate(
            ExpenseForm(amount="50000", description="Car", category="Casa", date="10-03-2024"),
            today=date(2024, 3, 10),
        )
        assert result.is_valid
        assert any(i.issue_type == "suspicious_value" for i in result.issues)
        assert result.warnings

    def test_future_date_is_warning_only(self, app_settings):
        validator = ExpenseValidator(app_settings)
        today = date(2024, 3, 10)
        future = format_form_date(today + timedelta(days=5))
        result = validator.validate(
            ExpenseForm(amount="5", description="x", category="Casa", date=future),
            today=today,
        )
        assert result.is_valid
        assert any(i.issue_type == "future_date" for i in result.issues)

    def test_unknown_category_warning(self, app_settings, categories):
        validator = ExpenseValidator(app_settings)
        result = validator.validate(
            ExpenseForm(amount="5", description="x", category="Viajes", date="10-03-2024"),
            categories=categories,
            today=date(2024, 3, 10),
        )
        assert result.is_valid
        assert any(i.issue_type == "unknown_category" for i in result.issues)

    def test_accepts_date_objects(self, app_settings):
        validator = ExpenseValidator(app_settings)
        result = validator.validate(
            ExpenseForm(amount="5", description="x", category="Casa", date=date(2024, 3, 9)),
            today=date(2024, 3, 10),
        )
        assert result.is_valid
        assert result.expense.local_date() == date(2024, 3, 9)

    def test_user_friendly_summary(self, app_settings):
        validator = ExpenseValidator(app_settings)
        result = validator.validate(ExpenseForm(amount="-5", description="x", category="Casa"))
        summary = user_friendly_summary(result)
        assert "Please fix the following" in summary


class TestCategoryValidator:
    """Tests for the category creator."""

    def test_valid_category(self, categories):
        result = CategoryValidator().validate(
            CategoryForm(name="Viajes", color="#2563EB", icon_name="airplane"),
            existing=categories,
        )
        assert result.is_valid
        assert result.category.name == "Viajes"
        assert result.category.color == "#2563eb"

    def test_empty_name(self):
        result = CategoryValidator().validate(CategoryForm(name="  "))
        assert not result.is_valid
        assert result.errors_for("name")

    def test_duplicate_name_is_case_insensitive(self, categories):
        result = CategoryValidator().validate(CategoryForm(name="casa"), existing=categories)
        assert not result.is_valid
        assert result.issues[0].issue_type == "duplicate"

    def test_bad_color(self):
        result = CategoryValidator().validate(CategoryForm(name="X", color="orange"))
        assert not result.is_valid
        assert result.errors_for("color")


class TestBudgetValidator:
    """Tests for the monthly budget prompt."""

    def test_valid_budget(self):
        result = BudgetValidator().validate("1500,50")
        assert result.is_valid
        assert result.monthly_budget == Decimal("1500.50")

    def test_zero_budget_accepted(self):
        result = BudgetValidator().validate("0")
        assert result.is_valid
        assert result.monthly_budget == Decimal("0")

    def test_negative_budget_rejected(self):
        result = BudgetValidator().validate("-10")
        assert not result.is_valid
        assert result.issues[0].field == "monthly_budget"
