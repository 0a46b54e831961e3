"""Shared fixtures."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from src.config import AppSettings
from src.models.expense import Category, Expense
from src.services.auth import Session
from src.services.storage import InMemoryExpenseStore


@pytest.fixture
def app_settings():
    return AppSettings(
        timezone="UTC",
        require_description=True,
        max_expense_amount=10000.0,
        future_date_tolerance_days=1,
    )


@pytest.fixture
def categories():
    return [
        Category(id="c1", name="Casa", color="#4f46e5", icon_name="home"),
        Category(id="c2", name="Salud", color="#dc2626", icon_name="medical"),
        Category(id="c3", name="Otros", color="#4b5563", icon_name="cash"),
    ]


@pytest.fixture
def session():
    return Session(user_id="user-1", email="ana@example.com")


@pytest.fixture
def store():
    return InMemoryExpenseStore()


def make_expense(expense_id, amount, category, when, description="test"):
    """Build a persisted expense from a day and an amount."""
    if not isinstance(when, datetime):
        when = datetime(when.year, when.month, when.day, 12, tzinfo=timezone.utc)
    return Expense(
        id=expense_id,
        amount=Decimal(str(amount)),
        description=description,
        category=category,
        date=when,
    )
