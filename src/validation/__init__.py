"""Form validation package."""

from src.validation.validator import (
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

__all__ = [
    "BudgetValidator",
    "CategoryValidator",
    "ExpenseValidator",
    "InvalidAmountError",
    "format_form_date",
    "parse_amount",
    "parse_form_date",
    "quick_date",
    "user_friendly_summary",
]
