"""
Chart Geometry

Turns aggregator output into the numbers the charts are drawn from:
bar heights for the weekly chart, slice paths for the category donut,
progress-bar widths and the budget card. Rendering itself is left to the UI.
"""

import math
from decimal import Decimal
from typing import Sequence

from src.models.summary import (
    Bar,
    BudgetStatus,
    CategoryTotal,
    DonutSlice,
    ProgressBar,
    WeeklySeries,
)


# Non-empty days never shrink below this, so small spends stay visible
MIN_BAR_PERCENT = 5.0

PLACEHOLDER_RING_COLOR = "#f3f4f6"

DEFAULT_DONUT_RADIUS = 100.0


def max_spend(series: WeeklySeries) -> Decimal:
    """Scale for the bar chart (never below 1)."""
    return max([d.amount for d in series.days] + [Decimal("1")])


def bar_geometry(series: WeeklySeries) -> list[Bar]:
    scale = max_spend(series)
    bars = []
    for day in series.days:
        if day.amount == 0:
            height = 0.0
        else:
            height = max(float(day.amount / scale * 100), MIN_BAR_PERCENT)
        bars.append(Bar(
            label=day.day_name,
            amount=day.amount,
            height_percent=min(height, 100.0),
            highlighted=day.is_today,
        ))
    return bars


def _point(center: float, radius: float, angle_deg: float) -> tuple[float, float]:
    rad = math.radians(angle_deg)
    return center + radius * math.cos(rad), center + radius * math.sin(rad)


def _fmt(value: float) -> str:
    text = f"{value:.2f}"
    return "0.00" if text == "-0.00" else text


def slice_path(start_percent: float, end_percent: float, radius: float = DEFAULT_DONUT_RADIUS) -> str:
    """
    SVG path for a pie slice in a ``2 * radius`` square, starting at 12 o'clock.

    A slice covering the whole circle is drawn as two half arcs, since an arc
    whose endpoints coincide renders as nothing.
    """
    center = radius
    start_angle = start_percent / 100 * 360 - 90
    end_angle = end_percent / 100 * 360 - 90

    if end_percent - start_percent >= 100:
        top_x, top_y = _point(center, radius, -90)
        bottom_x, bottom_y = _point(center, radius, 90)
        return (
            f"M {_fmt(top_x)} {_fmt(top_y)} "
            f"A {_fmt(radius)} {_fmt(radius)} 0 1 1 {_fmt(bottom_x)} {_fmt(bottom_y)} "
            f"A {_fmt(radius)} {_fmt(radius)} 0 1 1 {_fmt(top_x)} {_fmt(top_y)} Z"
        )

    x1, y1 = _point(center, radius, start_angle)
    x2, y2 = _point(center, radius, end_angle)
    large_arc = 1 if end_percent - start_percent > 50 else 0

    return (
        f"M {_fmt(center)} {_fmt(center)} "
        f"L {_fmt(x1)} {_fmt(y1)} "
        f"A {_fmt(radius)} {_fmt(radius)} 0 {large_arc} 1 {_fmt(x2)} {_fmt(y2)} Z"
    )


def donut_slices(
    breakdown: Sequence[CategoryTotal],
    radius: float = DEFAULT_DONUT_RADIUS,
) -> list[DonutSlice]:
    """
    Slices laid out cumulatively in breakdown order.

    An empty breakdown gives no slices; the UI draws a placeholder ring
    in PLACEHOLDER_RING_COLOR instead.
    """
    slices = []
    cumulative = 0.0
    for item in breakdown:
        start = cumulative
        cumulative = min(cumulative + item.percentage, 100.0)
        slices.append(DonutSlice(
            name=item.name,
            color=item.color,
            start_percent=start,
            end_percent=cumulative,
            start_angle=start / 100 * 360 - 90,
            end_angle=cumulative / 100 * 360 - 90,
            path=slice_path(start, cumulative, radius),
        ))
    return slices


def progress_bars(breakdown: Sequence[CategoryTotal]) -> list[ProgressBar]:
    return [
        ProgressBar(
            name=item.name,
            color=item.color,
            icon_name=item.category.icon_name,
            total=item.total,
            width_percent=max(0.0, min(item.percentage, 100.0)),
        )
        for item in breakdown
    ]


def budget_status(monthly_budget: Decimal, spent: Decimal) -> BudgetStatus:
    """Balance card numbers: what is left of this month's budget."""
    if monthly_budget > 0:
        used = min(float(spent / monthly_budget * 100), 100.0)
    else:
        used = 0.0
    return BudgetStatus(
        monthly_budget=monthly_budget,
        spent=spent,
        balance=monthly_budget - spent,
        used_percent=max(used, 0.0),
        over_budget=monthly_budget > 0 and spent > monthly_budget,
    )
