"""
Calculation Engine

Pure functions over a LedgerSnapshot. Nothing in this package performs
I/O or mutates its input.
"""

from brewery_ledger.engine.costing import (
    compute_cost_per_unit,
    compute_cost_per_unit_by_product,
    group_by_product,
)
from brewery_ledger.engine.financials import (
    average_price_per_unit,
    monthly_series,
    profit,
    profit_margin,
    summarize,
    total_expenses,
    total_revenue,
    total_units_produced,
    total_units_sold,
)
from brewery_ledger.engine.merge import merge_records, merge_snapshots, merge_unparsed
from brewery_ledger.engine.period import (
    MONTH_NAMES,
    MonthKey,
    Period,
    available_years,
    distinct_month_keys,
    filter_by_period,
    month_key,
    select,
)

__all__ = [
    # Period
    "MONTH_NAMES",
    "MonthKey",
    "Period",
    "available_years",
    "distinct_month_keys",
    "filter_by_period",
    "month_key",
    "select",
    # Costing
    "compute_cost_per_unit",
    "compute_cost_per_unit_by_product",
    "group_by_product",
    # Financials
    "average_price_per_unit",
    "monthly_series",
    "profit",
    "profit_margin",
    "summarize",
    "total_expenses",
    "total_revenue",
    "total_units_produced",
    "total_units_sold",
    # Merge
    "merge_records",
    "merge_snapshots",
    "merge_unparsed",
]
