"""
Derived-state Models

Outputs of the aggregation layer and of the chart geometry helpers.
None of these are persisted; they are recomputed from every snapshot.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.models.expense import Category, Expense, Period


class DailySpend(BaseModel):
    """One bar of the rolling 7-day series."""
    model_config = ConfigDict(frozen=True)

    day: date
    day_name: str = Field(..., description="Short weekday label, e.g. 'Mon'")
    amount: Decimal = Decimal("0")
    is_today: bool = False


class CategoryTotal(BaseModel):
    """One entry of a per-category breakdown."""
    model_config = ConfigDict(frozen=True)

    category: Category
    total: Decimal
    percentage: float = Field(
        ...,
        ge=0.0,
        le=100.0,
        description="Share of the period total (0 when the period total is 0)"
    )
    expense_count: int = Field(default=0, ge=0)

    @property
    def name(self) -> str:
        return self.category.name

    @property
    def color(self) -> str:
        return self.category.color


class PeriodSummary(BaseModel):
    """Expenses, total and breakdown for one calendar window."""
    model_config = ConfigDict(frozen=True)

    period: Period
    start: date
    end: date = Field(..., description="Inclusive last day of the window")
    expenses: list[Expense] = Field(default_factory=list)
    total: Decimal = Decimal("0")
    breakdown: list[CategoryTotal] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.expenses


class WeeklySeries(BaseModel):
    """Rolling 7-day series ending on ``days[-1]``."""
    model_config = ConfigDict(frozen=True)

    days: list[DailySpend]
    total: Decimal = Decimal("0")

    @property
    def today(self) -> Optional[DailySpend]:
        return next((d for d in self.days if d.is_today), None)


# =============================================================================
# CHART GEOMETRY
# =============================================================================

class Bar(BaseModel):
    """Bar chart geometry for one day."""
    model_config = ConfigDict(frozen=True)

    label: str
    amount: Decimal
    height_percent: float = Field(..., ge=0.0, le=100.0)
    highlighted: bool = False


class DonutSlice(BaseModel):
    """One slice of the category donut chart."""
    model_config = ConfigDict(frozen=True)

    name: str
    color: str
    start_percent: float
    end_percent: float
    start_angle: float = Field(..., description="Degrees, -90 is 12 o'clock")
    end_angle: float
    path: str = Field(..., description="SVG path data for the slice")


class ProgressBar(BaseModel):
    """Per-category progress bar under the donut."""
    model_config = ConfigDict(frozen=True)

    name: str
    color: str
    icon_name: str
    total: Decimal
    width_percent: float = Field(..., ge=0.0, le=100.0)


class BudgetStatus(BaseModel):
    """Remaining balance against the monthly budget."""
    model_config = ConfigDict(frozen=True)

    monthly_budget: Decimal
    spent: Decimal
    balance: Decimal
    used_percent: float = Field(..., ge=0.0, le=100.0)
    over_budget: bool


class TransactionRow(BaseModel):
    """An expense with the category it renders with."""
    model_config = ConfigDict(frozen=True)

    expense: Expense
    category: Category

    @property
    def is_dangling(self) -> bool:
        """True when the expense's category no longer exists."""
        return self.category.is_fallback


class DashboardView(BaseModel):
    """Everything the main screen renders for one view mode and reference day."""
    model_config = ConfigDict(frozen=True)

    view_mode: Period
    reference: date
    greeting: str
    title: str = Field(..., description="Month title in monthly view, period label otherwise")
    budget: BudgetStatus
    weekly: WeeklySeries
    bars: list[Bar] = Field(default_factory=list)
    summary: Optional[PeriodSummary] = Field(
        default=None,
        description="Selected month or year; None in weekly view"
    )
    slices: list[DonutSlice] = Field(default_factory=list)
    progress: list[ProgressBar] = Field(default_factory=list)
    transactions: list[TransactionRow] = Field(default_factory=list)
    all_time_total: Decimal = Decimal("0")
    loaded: bool = False
    last_error: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.transactions
