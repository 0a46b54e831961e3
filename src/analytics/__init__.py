"""Aggregation and chart geometry package."""

from src.analytics.aggregator import (
    WEEK_LENGTH,
    category_breakdown,
    count_expenses_in_category,
    filter_expenses,
    period_bounds,
    period_label,
    resolve_category,
    shift_reference,
    sort_newest_first,
    summarize_period,
    total_amount,
    weekly_series,
)
from src.analytics.charts import (
    DEFAULT_DONUT_RADIUS,
    PLACEHOLDER_RING_COLOR,
    bar_geometry,
    budget_status,
    donut_slices,
    max_spend,
    progress_bars,
    slice_path,
)

__all__ = [
    "WEEK_LENGTH",
    "category_breakdown",
    "count_expenses_in_category",
    "filter_expenses",
    "period_bounds",
    "period_label",
    "resolve_category",
    "shift_reference",
    "sort_newest_first",
    "summarize_period",
    "total_amount",
    "weekly_series",
    "DEFAULT_DONUT_RADIUS",
    "PLACEHOLDER_RING_COLOR",
    "bar_geometry",
    "budget_status",
    "donut_slices",
    "max_spend",
    "progress_bars",
    "slice_path",
]
