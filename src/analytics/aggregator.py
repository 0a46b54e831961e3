"""
Expense Aggregation

Pure functions over a snapshot of expenses and categories. Nothing here
touches storage or the clock: the reference day and display timezone are
always passed in, so the same snapshot always yields the same numbers.

GUARANTEES:
- The 7-day series always has exactly 7 entries, the last one flagged today
- Breakdown totals always add up to the period total, including expenses
  whose category no longer exists
- Percentages are 0 (never a division error) when the period total is 0
"""

import calendar
from collections import defaultdict
from datetime import date, timedelta, tzinfo
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from src.models.expense import Category, Expense, Period
from src.models.summary import CategoryTotal, DailySpend, PeriodSummary, WeeklySeries


WEEK_LENGTH = 7

# Indexed by date.weekday() (Monday == 0)
WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

ZERO = Decimal("0")


def total_amount(expenses: Iterable[Expense]) -> Decimal:
    """Sum of amounts."""
    return sum((e.amount for e in expenses), ZERO)


def sort_newest_first(expenses: Iterable[Expense]) -> list[Expense]:
    return sorted(expenses, key=lambda e: e.date, reverse=True)


def weekly_series(
    expenses: Iterable[Expense],
    today: date,
    tz: Optional[tzinfo] = None,
) -> WeeklySeries:
    """
    Rolling 7-day series ending on ``today``.

    Each expense is assigned to the calendar day its instant falls on in
    ``tz``; days are matched by plain date equality.
    """
    days = [today - timedelta(days=WEEK_LENGTH - 1 - i) for i in range(WEEK_LENGTH)]
    window = set(days)

    totals: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for expense in expenses:
        day = expense.local_date(tz)
        if day in window:
            totals[day] += expense.amount

    entries = [
        DailySpend(
            day=day,
            day_name=WEEKDAY_LABELS[day.weekday()],
            amount=totals[day],
            is_today=day == today,
        )
        for day in days
    ]
    return WeeklySeries(days=entries, total=sum((d.amount for d in entries), ZERO))


def period_bounds(reference: date, period: Period) -> tuple[date, date]:
    """Inclusive first and last day of the window containing ``reference``."""
    if period == Period.WEEK:
        return reference - timedelta(days=WEEK_LENGTH - 1), reference
    if period == Period.MONTH:
        last_day = calendar.monthrange(reference.year, reference.month)[1]
        return reference.replace(day=1), reference.replace(day=last_day)
    if period == Period.YEAR:
        return date(reference.year, 1, 1), date(reference.year, 12, 31)
    raise ValueError(f"Unsupported period: {period}")


def filter_expenses(
    expenses: Iterable[Expense],
    reference: date,
    period: Period,
    tz: Optional[tzinfo] = None,
) -> list[Expense]:
    """Expenses whose calendar day falls in the selected window."""
    start, end = period_bounds(reference, period)
    return [e for e in expenses if start <= e.local_date(tz) <= end]


def shift_reference(reference: date, period: Period, offset: int) -> date:
    """
    Move the reference ``offset`` periods backward (negative) or forward.

    Month and year shifts land on the first day of the month so that
    31 January + 1 month is February, not March.
    """
    if period == Period.WEEK:
        return reference + timedelta(days=WEEK_LENGTH * offset)
    if period == Period.MONTH:
        month_index = reference.year * 12 + (reference.month - 1) + offset
        return date(month_index // 12, month_index % 12 + 1, 1)
    if period == Period.YEAR:
        return date(reference.year + offset, reference.month, 1)
    raise ValueError(f"Unsupported period: {period}")


def period_label(reference: date, period: Period) -> str:
    """Title for the period navigator."""
    if period == Period.MONTH:
        return f"{calendar.month_name[reference.month]} {reference.year}"
    if period == Period.YEAR:
        return str(reference.year)
    start, end = period_bounds(reference, period)
    return f"{start.day} {calendar.month_abbr[start.month]} - {end.day} {calendar.month_abbr[end.month]}"


def resolve_category(categories: Sequence[Category], name: str) -> Category:
    """
    The category an expense refers to.

    Falls back to a default-styled stand-in when no category has that name
    (e.g. after the category was deleted).
    """
    for category in categories:
        if category.name == name:
            return category
    return Category.fallback(name)


def category_breakdown(
    expenses: Sequence[Expense],
    categories: Sequence[Category],
) -> list[CategoryTotal]:
    """
    Per-category subtotal and share of the period total.

    Only categories with nonzero spend are included. Sorted by descending
    total; ties keep the order of ``categories``, with unmatched names last.
    """
    period_total = total_amount(expenses)

    totals: dict[str, Decimal] = {}
    counts: dict[str, int] = defaultdict(int)
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, ZERO) + expense.amount
        counts[expense.category] += 1

    rank = {}
    for position, category in enumerate(categories):
        rank.setdefault(category.name, position)

    breakdown = []
    for name, subtotal in totals.items():
        if subtotal <= 0:
            continue
        if period_total == 0:
            percentage = 0.0
        else:
            percentage = min(float(subtotal / period_total * 100), 100.0)
        breakdown.append(CategoryTotal(
            category=resolve_category(categories, name),
            total=subtotal,
            percentage=percentage,
            expense_count=counts[name],
        ))

    unmatched_rank = len(categories)
    breakdown.sort(key=lambda item: (-item.total, rank.get(item.name, unmatched_rank)))
    return breakdown


def summarize_period(
    expenses: Sequence[Expense],
    categories: Sequence[Category],
    reference: date,
    period: Period,
    tz: Optional[tzinfo] = None,
) -> PeriodSummary:
    """Subset, total and breakdown for the window containing ``reference``."""
    start, end = period_bounds(reference, period)
    selected = sort_newest_first(filter_expenses(expenses, reference, period, tz))
    return PeriodSummary(
        period=period,
        start=start,
        end=end,
        expenses=selected,
        total=total_amount(selected),
        breakdown=category_breakdown(selected, categories),
    )


def count_expenses_in_category(expenses: Iterable[Expense], name: str) -> int:
    """How many expenses reference a category name."""
    return sum(1 for e in expenses if e.category == name)
