"""Printable reports."""

from brewery_ledger.reports.statement import (
    CATEGORY_DISPLAY_NAMES,
    ExpenseLine,
    ProfitAndLossReport,
    build_profit_and_loss,
    category_display_name,
    format_currency,
    render_text,
)

__all__ = [
    "CATEGORY_DISPLAY_NAMES",
    "ExpenseLine",
    "ProfitAndLossReport",
    "build_profit_and_loss",
    "category_display_name",
    "format_currency",
    "render_text",
]
