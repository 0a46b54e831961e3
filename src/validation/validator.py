"""
Form Validation

Validation of user input happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Amount sanitization and parsing
- Required field presence
- Date format
- Errors here block the write

STAGE 2 - SEMANTIC VALIDATION:
- Unusually large amounts
- Dates in the future
- Categories that no longer exist
- These are warnings only; the user may still save

Stage 2 only runs when stage 1 passes.

IMPORTANT: Validation never silently fixes issues beyond stripping
characters that cannot be part of a number.
"""

import re
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from src.config import AppSettings, get_settings
from src.models.expense import (
    BudgetValidationResult,
    Category,
    CategoryForm,
    CategoryValidationResult,
    DateInput,
    ExpenseForm,
    ExpenseValidationResult,
    HEX_COLOR_RE,
    NewExpense,
    ValidationIssue,
    ValidationResult,
)


FORM_DATE_FORMAT = "%d-%m-%Y"

# Everything except digits, both decimal separators and the minus sign
_NON_NUMERIC_RE = re.compile(r"[^0-9.,\-]")


class InvalidAmountError(ValueError):
    """Amount text could not be turned into a usable amount."""

    def __init__(self, message: str, issue_type: str = "invalid_format"):
        super().__init__(message)
        self.message = message
        self.issue_type = issue_type


def parse_amount(text: Optional[str], allow_zero: bool = False) -> Decimal:
    """
    Parse raw amount text into a Decimal.

    Either ``.`` or ``,`` is accepted as the decimal separator
    (``"12,50"`` and ``"12.50"`` both give 12.5). Currency symbols, spaces
    and other non-numeric characters are stripped. Thousands separators are
    not supported: more than one separator is rejected.

    Raises:
        InvalidAmountError: empty, malformed, negative, or (unless
            ``allow_zero``) zero amounts.
    """
    raw = (text or "").strip()
    cleaned = _NON_NUMERIC_RE.sub("", raw)

    if not cleaned or not any(c.isdigit() for c in cleaned):
        if raw:
            raise InvalidAmountError("Amount must be a number.", "invalid_format")
        raise InvalidAmountError("Please enter an amount.", "missing")

    if "-" in cleaned:
        raise InvalidAmountError(
            "Please enter a valid amount greater than 0.",
            "non_positive",
        )

    if cleaned.count(".") + cleaned.count(",") > 1:
        raise InvalidAmountError(
            "Amount can only have one decimal separator.",
            "multiple_separators",
        )

    try:
        value = Decimal(cleaned.replace(",", "."))
    except InvalidOperation:
        raise InvalidAmountError("Amount must be a number.", "invalid_format")

    if value < 0 or (value == 0 and not allow_zero):
        raise InvalidAmountError(
            "Please enter a valid amount greater than 0.",
            "non_positive",
        )

    return value


def format_form_date(value: date) -> str:
    """Format a date the way the expense form shows it (DD-MM-YYYY)."""
    return value.strftime(FORM_DATE_FORMAT)


def quick_date(days_ago: int, today: Optional[date] = None) -> str:
    """Form text for 'today' (0) or 'yesterday' (1)."""
    today = today or date.today()
    return format_form_date(today - timedelta(days=days_ago))


def parse_form_date(value: DateInput, tz: ZoneInfo) -> datetime:
    """
    Turn form date input into a timezone-aware instant.

    Plain days are pinned to midday in the display timezone so the instant
    stays on the same calendar day when shown in nearby timezones.

    Raises:
        ValueError: unrecognised text.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=tz)

    if isinstance(value, date):
        return datetime.combine(value, time(12, 0), tzinfo=tz)

    text = str(value).strip()
    for fmt in (FORM_DATE_FORMAT, "%d/%m/%Y", "%Y-%m-%d"):
        try:
            day = datetime.strptime(text, fmt).date()
        except ValueError:
            continue
        return datetime.combine(day, time(12, 0), tzinfo=tz)

    raise ValueError(f"Unrecognised date: {text!r}")


class ExpenseValidator:
    """
    Validates expense form input through a two-stage pipeline.

    Stage 1: Schema validation (amount, description, category, date)
    Stage 2: Semantic validation (warnings only)
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        form: ExpenseForm,
    ) -> tuple[Optional[Decimal], Optional[datetime], list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (amount, date, list_of_issues)
        """
        issues = []

        amount = None
        try:
            amount = parse_amount(form.amount)
        except InvalidAmountError as e:
            issues.append(ValidationIssue(
                field="amount",
                issue_type=e.issue_type,
                message=e.message,
                severity="error",
                suggested_fix="Enter a number like 12.50 or 12,50",
            ))

        if self._settings.require_description and not form.description.strip():
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Please add a description",
                severity="error",
            ))

        if not form.category.strip():
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Please choose a category",
                severity="error",
            ))

        when = None
        tz = self._settings.tzinfo
        if form.date is None or form.date == "":
            when = datetime.combine(datetime.now(tz).date(), time(12, 0), tzinfo=tz)
        else:
            try:
                when = parse_form_date(form.date, tz)
            except ValueError:
                issues.append(ValidationIssue(
                    field="date",
                    issue_type="invalid_format",
                    message=f"Date '{form.date}' is not valid",
                    severity="error",
                    suggested_fix="Use the format DD-MM-YYYY",
                ))

        return amount, when, issues

    def _validate_semantic(
        self,
        amount: Decimal,
        when: datetime,
        category: str,
        categories: Optional[Sequence[Category]],
        today: Optional[date] = None,
    ) -> list[ValidationIssue]:
        """Stage 2: Semantic validation. Returns warnings only."""
        issues = []
        tz = self._settings.tzinfo
        today = today or datetime.now(tz).date()

        max_amount = Decimal(str(self._settings.max_expense_amount))
        if amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        latest = today + timedelta(days=self._settings.future_date_tolerance_days)
        if when.astimezone(tz).date() > latest:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({format_form_date(when.astimezone(tz).date())}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        if categories is not None and not any(c.name == category for c in categories):
            issues.append(ValidationIssue(
                field="category",
                issue_type="unknown_category",
                message=f"Category '{category}' does not exist; it will be shown with default styling",
                severity="warning",
            ))

        return issues

    def validate(
        self,
        form: ExpenseForm,
        categories: Optional[Sequence[Category]] = None,
        today: Optional[date] = None,
    ) -> ExpenseValidationResult:
        """
        Run the full validation pipeline.

        Args:
            form: Raw form input
            categories: Known categories, for the unknown-category warning.
                        If None, that check is skipped.
            today: Reference day for the future-date check

        Returns:
            ExpenseValidationResult; ``expense`` is set only when valid
        """
        amount, when, issues = self._validate_schema(form)

        if any(issue.severity == "error" for issue in issues):
            return ExpenseValidationResult(
                is_valid=False,
                issues=issues,
            )

        category = form.category.strip()
        issues.extend(self._validate_semantic(amount, when, category, categories, today))

        try:
            expense = NewExpense(
                amount=amount,
                description=form.description.strip(),
                category=category,
                date=when,
            )
        except ValidationError as e:
            issues.extend(_issues_from_pydantic(e))
            return ExpenseValidationResult(is_valid=False, issues=issues)

        return ExpenseValidationResult(
            is_valid=True,
            issues=issues,
            warnings=[i.message for i in issues if i.severity == "warning"],
            expense=expense,
        )


class CategoryValidator:
    """Validates the category creator form."""

    def validate(
        self,
        form: CategoryForm,
        existing: Sequence[Category] = (),
    ) -> CategoryValidationResult:
        issues = []
        name = form.name.strip()

        if not name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Please enter a category name",
                severity="error",
            ))
        elif any(c.name.casefold() == name.casefold() for c in existing):
            issues.append(ValidationIssue(
                field="name",
                issue_type="duplicate",
                message=f"A category named '{name}' already exists",
                severity="error",
            ))

        if not HEX_COLOR_RE.match(form.color or ""):
            issues.append(ValidationIssue(
                field="color",
                issue_type="invalid_format",
                message="Please pick a color",
                severity="error",
            ))

        if not form.icon_name.strip():
            issues.append(ValidationIssue(
                field="icon_name",
                issue_type="missing",
                message="Please pick an icon",
                severity="error",
            ))

        if issues:
            return CategoryValidationResult(is_valid=False, issues=issues)

        try:
            category = Category(name=name, color=form.color, icon_name=form.icon_name.strip())
        except ValidationError as e:
            return CategoryValidationResult(is_valid=False, issues=_issues_from_pydantic(e))

        return CategoryValidationResult(is_valid=True, category=category)


class BudgetValidator:
    """Validates the monthly budget prompt. Zero is accepted."""

    def validate(self, text: Optional[str]) -> BudgetValidationResult:
        try:
            value = parse_amount(text, allow_zero=True)
        except InvalidAmountError as e:
            return BudgetValidationResult(
                is_valid=False,
                issues=[ValidationIssue(
                    field="monthly_budget",
                    issue_type=e.issue_type,
                    message="Budget must be a number of 0 or more" if e.issue_type == "non_positive" else e.message,
                    severity="error",
                )],
            )
        return BudgetValidationResult(is_valid=True, monthly_budget=value)


def _issues_from_pydantic(error: ValidationError) -> list[ValidationIssue]:
    return [
        ValidationIssue(
            field=".".join(str(part) for part in err["loc"]) or "form",
            issue_type=err["type"],
            message=err["msg"],
            severity="error",
        )
        for err in error.errors()
    ]


def user_friendly_summary(result: ValidationResult) -> str:
    """Short text for an alert box."""
    if result.is_valid and not result.warnings:
        return "✅ Looks good."

    lines = []
    errors = [i for i in result.issues if i.severity == "error"]
    if errors:
        lines.append("❌ Please fix the following:")
        for issue in errors:
            lines.append(f"   • {issue.message}")
            if issue.suggested_fix:
                lines.append(f"     💡 {issue.suggested_fix}")

    if result.warnings:
        if lines:
            lines.append("")
        lines.append("⚠️ Please verify the following:")
        for warning in result.warnings:
            lines.append(f"   • {warning}")

    return "\n".join(lines)
