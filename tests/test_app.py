"""Tests for the Streamlit page markup helpers."""

from datetime import date, timezone
from decimal import Decimal

import pytest

from app.main import donut_svg, progress_label, transaction_markup
from src.models.expense import CategoryForm, ExpenseForm, Period
from src.models.summary import ProgressBar, TransactionRow
from src.orchestrator import ExpenseTracker
from tests.conftest import make_expense


TODAY = date(2024, 3, 13)


@pytest.fixture
def tracker(store, session, app_settings):
    tracker = ExpenseTracker(store, settings=app_settings)
    tracker.start(session)
    yield tracker
    tracker.stop()


class TestMarkupEscaping:
    """User-entered text never reaches the page as raw HTML."""

    def test_transaction_description_is_escaped(self, categories):
        expense = make_expense("e1", "5", "Casa", TODAY, description="<script>alert(1)</script>")
        markup = transaction_markup(TransactionRow(expense=expense, category=categories[0]), timezone.utc)
        assert "<script>" not in markup
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in markup
        assert "13 Mar 2024" in markup

    def test_transaction_category_name_is_escaped(self, categories):
        expense = make_expense("e1", "5", '<img src=x onerror="boom">', TODAY, description="")
        markup = transaction_markup(TransactionRow(expense=expense, category=categories[0]), timezone.utc)
        assert "<img" not in markup
        assert "&lt;img" in markup

    def test_progress_label_is_escaped(self):
        bar = ProgressBar(
            name="<b>Casa</b>",
            color="#4f46e5",
            icon_name="home",
            total=Decimal("12.50"),
            width_percent=100.0,
        )
        markup = progress_label(bar, "$")
        assert "&lt;b&gt;Casa&lt;/b&gt;" in markup
        assert "$12.50" in markup


class TestDonutMarkup:
    """The donut is drawn from the computed slice geometry."""

    def test_slices_use_computed_paths(self, tracker):
        tracker.add_expense(ExpenseForm(amount="30", description="Rent", category="Casa",
                                        date=TODAY.strftime("%d-%m-%Y")))
        tracker.add_expense(ExpenseForm(amount="10", description="Pills", category="Salud",
                                        date=TODAY.strftime("%d-%m-%Y")))
        view = tracker.dashboard(Period.MONTH, TODAY, today=TODAY)

        svg = donut_svg(view, "$")
        assert len(view.slices) == 2
        for piece in view.slices:
            assert f'd="{piece.path}"' in svg
            assert piece.color in svg
        assert "$40.00" in svg

    def test_empty_period_draws_placeholder_ring(self, tracker):
        view = tracker.dashboard(Period.YEAR, date(2020, 1, 1), today=TODAY)
        svg = donut_svg(view, "$")
        assert "<path" not in svg
        assert "#f3f4f6" in svg
        assert "$0.00" in svg

    def test_category_name_in_tooltip_is_escaped(self, tracker):
        tracker.add_category(CategoryForm(name="<i>Fun</i>", color="#2563eb", icon_name="star"))
        tracker.add_expense(ExpenseForm(amount="5", description="x", category="<i>Fun</i>",
                                        date=TODAY.strftime("%d-%m-%Y")))
        svg = donut_svg(tracker.dashboard(Period.MONTH, TODAY, today=TODAY), "$")
        assert "<i>" not in svg
        assert "&lt;i&gt;Fun&lt;/i&gt;" in svg
