"""
Data Models Package

This package contains all Pydantic models used in the Expense Tracker.
All data flowing through the system must conform to these schemas.
"""

from src.models.expense import (
    AVAILABLE_COLORS,
    AVAILABLE_ICONS,
    DEFAULT_CATEGORIES,
    FALLBACK_CATEGORY_COLOR,
    FALLBACK_CATEGORY_ICON,
    BudgetSettings,
    BudgetValidationResult,
    Category,
    CategoryForm,
    CategoryValidationResult,
    Expense,
    ExpenseForm,
    ExpenseValidationResult,
    NewExpense,
    Period,
    ValidationIssue,
    ValidationResult,
)
from src.models.summary import (
    Bar,
    BudgetStatus,
    CategoryTotal,
    DailySpend,
    DashboardView,
    DonutSlice,
    PeriodSummary,
    ProgressBar,
    TransactionRow,
    WeeklySeries,
)
from src.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)

__all__ = [
    # Entities
    "AVAILABLE_COLORS",
    "AVAILABLE_ICONS",
    "DEFAULT_CATEGORIES",
    "FALLBACK_CATEGORY_COLOR",
    "FALLBACK_CATEGORY_ICON",
    "BudgetSettings",
    "Category",
    "Expense",
    "NewExpense",
    "Period",
    # Forms and validation
    "CategoryForm",
    "ExpenseForm",
    "BudgetValidationResult",
    "CategoryValidationResult",
    "ExpenseValidationResult",
    "ValidationIssue",
    "ValidationResult",
    # Derived state
    "Bar",
    "BudgetStatus",
    "CategoryTotal",
    "DailySpend",
    "DashboardView",
    "DonutSlice",
    "PeriodSummary",
    "ProgressBar",
    "TransactionRow",
    "WeeklySeries",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
]
