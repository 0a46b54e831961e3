"""
Core Data Models for Expense Tracker

These models define the schemas for every record that flows between the
document database, the validators and the UI. They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Map cleanly onto the backend's document field names
4. Tolerate loosely-typed documents written by older clients

Python attributes are snake_case; wire names (``hex``, ``iconName``,
``monthlyBudget``) are pydantic aliases.
"""

import re
from datetime import date, datetime, timezone, tzinfo
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# CONSTANTS
# =============================================================================

# Used when an expense references a category that no longer exists
FALLBACK_CATEGORY_ICON = "pricetag"
FALLBACK_CATEGORY_COLOR = "#2563eb"

HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")

# Anything a date field on a form may hold
DateInput = Union[datetime, date, str]


class Period(str, Enum):
    """
    Calendar window used to filter and aggregate expenses.

    WEEK is a rolling window of 7 days ending on the reference day.
    """
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


# =============================================================================
# CATEGORY
# =============================================================================

class Category(BaseModel):
    """
    A user-defined spending category.

    Expenses reference categories by ``name`` (denormalized), so deleting a
    category never touches the expenses that use it.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        frozen=True,
    )

    id: Optional[str] = Field(
        default=None,
        description="Document ID (None until persisted)"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=60,
        description="Category name, unique per user"
    )
    color: str = Field(
        default=FALLBACK_CATEGORY_COLOR,
        alias="hex",
        description="Display color as #rrggbb"
    )
    icon_name: str = Field(
        default=FALLBACK_CATEGORY_ICON,
        alias="iconName",
        min_length=1,
        max_length=40,
        description="Symbolic icon name"
    )
    is_fallback: bool = Field(
        default=False,
        exclude=True,
        description="True for stand-ins built for dangling category names"
    )

    @field_validator('color')
    @classmethod
    def validate_color(cls, v: str) -> str:
        if not HEX_COLOR_RE.match(v):
            raise ValueError(f"Color must be a hex string like #1a2b3c, got {v!r}")
        return v.lower()

    @classmethod
    def fallback(cls, name: str) -> "Category":
        """Stand-in for an expense category that matches no stored category."""
        return cls(
            name=name or "Uncategorized",
            color=FALLBACK_CATEGORY_COLOR,
            icon_name=FALLBACK_CATEGORY_ICON,
            is_fallback=True,
        )

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "Category":
        """
        Build a category from a stored document.

        Missing or malformed styling falls back to the defaults instead of
        failing the whole snapshot.
        """
        color = data.get("hex")
        if not isinstance(color, str) or not HEX_COLOR_RE.match(color):
            color = FALLBACK_CATEGORY_COLOR
        icon = data.get("iconName") or FALLBACK_CATEGORY_ICON
        return cls(
            id=doc_id,
            name=str(data.get("name", "")).strip() or "Uncategorized",
            color=color,
            icon_name=str(icon),
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "hex": self.color,
            "iconName": self.icon_name,
        }


# Seeded into an empty category collection on first sign-in
DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(name="Alimentación", color="#ea580c", icon_name="fast-food"),
    Category(name="Supermercado", color="#10b981", icon_name="cart"),
    Category(name="Casa", color="#4f46e5", icon_name="home"),
    Category(name="Salud", color="#dc2626", icon_name="medical"),
    Category(name="Juno", color="#172c3d", icon_name="paw"),
    Category(name="Salidas", color="#9333ea", icon_name="pizza"),
    Category(name="Gastos fijos", color="#ebcf34", icon_name="receipt"),
    Category(name="Vacaciones", color="#9bc7b5", icon_name="airplane"),
    Category(name="Transporte", color="#472247", icon_name="car"),
    Category(name="Otros", color="#4b5563", icon_name="cash"),
)

# Choices offered by the category creator
AVAILABLE_COLORS: dict[str, str] = {
    "Orange": "#ea580c",
    "Emerald": "#10b981",
    "Indigo": "#4f46e5",
    "Red": "#dc2626",
    "Pink": "#db2777",
    "Purple": "#9333ea",
    "Gray": "#4b5563",
    "Blue": "#2563eb",
}

AVAILABLE_ICONS: tuple[str, ...] = (
    "fast-food", "cart", "home", "medical", "paw", "beer", "cash", "cafe",
    "airplane", "gift", "musical-notes", "book", "briefcase",
    "game-controller", "phone-portrait", "construct", "star", "car", "card",
    "checkmark", "fitness",
)


# =============================================================================
# EXPENSE
# =============================================================================

def _to_decimal(value: Any) -> Decimal:
    # Backend numbers arrive as floats; go through str() to keep 12.5 == Decimal("12.5")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("Amount must be a number")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"Amount is not a number: {value!r}")


class NewExpense(BaseModel):
    """
    A validated expense that has not been persisted yet.

    Only ``ExpenseValidator`` builds these from raw form input.
    ``to_document`` produces the normalized record written to the backend:
    ``{amount: number, description: string, category: string, date: ISO string}``.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount spent (positive)"
    )
    description: str = Field(
        default="",
        max_length=200,
        description="What the money was spent on"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=60,
        description="Name of the category this expense belongs to"
    )
    date: datetime = Field(
        ...,
        description="When the expense happened (timezone-aware)"
    )

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return _to_decimal(v)

    @field_validator('date')
    @classmethod
    def ensure_aware(cls, v: datetime) -> datetime:
        """Naive datetimes are taken to be UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def local_date(self, tz: Optional[tzinfo] = None) -> date:
        """Calendar day of this expense in the given display timezone."""
        return self.date.astimezone(tz or timezone.utc).date()

    def to_document(self) -> dict[str, Any]:
        return {
            "amount": float(self.amount),
            "description": self.description,
            "category": self.category,
            "date": self.date.astimezone(timezone.utc).isoformat(),
        }


class Expense(NewExpense):
    """A persisted expense as delivered by a snapshot."""

    id: str = Field(
        ...,
        min_length=1,
        description="Document ID"
    )

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "Expense":
        return cls(
            id=doc_id,
            amount=data.get("amount"),
            description=str(data.get("description") or ""),
            category=str(data.get("category") or "").strip() or "Uncategorized",
            date=data.get("date"),
        )


# =============================================================================
# SETTINGS
# =============================================================================

class BudgetSettings(BaseModel):
    """Per-user settings singleton (``settings/general``)."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    monthly_budget: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        alias="monthlyBudget",
        description="Amount the user plans to spend per month"
    )

    @field_validator('monthly_budget', mode='before')
    @classmethod
    def coerce_budget(cls, v: Any) -> Decimal:
        if v is None:
            return Decimal("0")
        return _to_decimal(v)

    def to_document(self) -> dict[str, Any]:
        return {"monthlyBudget": float(self.monthly_budget)}


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of validating one form.

    Errors block the write; warnings are shown but don't block.
    """

    validated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    is_valid: bool = Field(
        ...,
        description="True when no error-level issues were found"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    def errors_for(self, field: str) -> list[str]:
        """Error messages for one form field, for inline display."""
        return [
            issue.message for issue in self.issues
            if issue.field == field and issue.severity == "error"
        ]


class ExpenseValidationResult(ValidationResult):
    """Validation result carrying the normalized expense when valid."""

    expense: Optional[NewExpense] = None


class CategoryValidationResult(ValidationResult):
    """Validation result carrying the new category when valid."""

    category: Optional[Category] = None


class BudgetValidationResult(ValidationResult):
    """Validation result carrying the parsed budget when valid."""

    monthly_budget: Optional[Decimal] = None


# =============================================================================
# RAW FORM INPUT
# =============================================================================

class ExpenseForm(BaseModel):
    """
    Raw expense form input, exactly as typed.

    Nothing here is trusted; ``ExpenseValidator`` turns it into a ``NewExpense``.
    ``date`` is either form text (``DD-MM-YYYY`` or ``YYYY-MM-DD``), a date,
    a datetime, or None for today.
    """

    amount: str = ""
    description: str = ""
    category: str = ""
    date: Optional[DateInput] = None


class CategoryForm(BaseModel):
    """Raw category creator input."""

    name: str = ""
    color: str = AVAILABLE_COLORS["Orange"]
    icon_name: str = "star"
