"""
Financial Aggregator

Revenue, expenses, profit and volume figures for a period.

Revenue has two independent sources that are added together: income
transactions in the cash ledger and recorded sales. Nothing is
deduplicated; the same money must not be entered in both places.
"""

from typing import Optional

from brewery_ledger.engine.costing import compute_cost_per_unit
from brewery_ledger.engine.period import MONTH_NAMES, Period, select
from brewery_ledger.models.records import TransactionKind
from brewery_ledger.models.results import (
    ExpenseSummary,
    FinancialSummary,
    MonthlyFigures,
)
from brewery_ledger.models.snapshot import LedgerSnapshot


def total_revenue(snapshot: LedgerSnapshot, period: Optional[Period] = None) -> float:
    """Income transactions plus sales revenue."""
    income = sum(
        t.amount
        for t in select(snapshot.transactions, period)
        if t.kind == TransactionKind.INCOME
    )
    sales = sum(s.revenue for s in select(snapshot.sales, period))
    return income + sales


def total_expenses(
    snapshot: LedgerSnapshot,
    period: Optional[Period] = None,
) -> ExpenseSummary:
    """
    Expense transactions, in total and by category.
    
    The breakdown keeps categories in the order they first appear and
    `total` is the sum of the breakdown values.
    """
    breakdown: dict[str, float] = {}
    for t in select(snapshot.transactions, period):
        if t.kind != TransactionKind.EXPENSE:
            continue
        breakdown[t.category] = breakdown.get(t.category, 0.0) + t.amount
    return ExpenseSummary(total=sum(breakdown.values()), breakdown=breakdown)


def profit(snapshot: LedgerSnapshot, period: Optional[Period] = None) -> float:
    """Revenue minus expenses. Negative for a loss."""
    return total_revenue(snapshot, period) - total_expenses(snapshot, period).total


def profit_margin(snapshot: LedgerSnapshot, period: Optional[Period] = None) -> float:
    """Profit as a percentage of revenue, 0 when there is no revenue."""
    revenue = total_revenue(snapshot, period)
    if revenue == 0:
        return 0.0
    return profit(snapshot, period) / revenue * 100


def total_units_produced(
    snapshot: LedgerSnapshot,
    period: Optional[Period] = None,
) -> float:
    return sum(b.volume_produced for b in select(snapshot.production, period))


def total_units_sold(
    snapshot: LedgerSnapshot,
    period: Optional[Period] = None,
) -> float:
    return sum(s.volume_sold for s in select(snapshot.sales, period))


def average_price_per_unit(
    snapshot: LedgerSnapshot,
    period: Optional[Period] = None,
) -> float:
    """Total revenue per unit sold, 0 when nothing was sold."""
    units_sold = total_units_sold(snapshot, period)
    if units_sold <= 0:
        return 0.0
    return total_revenue(snapshot, period) / units_sold


def monthly_series(snapshot: LedgerSnapshot, year: int) -> list[MonthlyFigures]:
    """
    Twelve months of figures for a year, January first.
    
    Months without data are present with zeros so charts always get a
    complete series.
    """
    series = []
    for month in range(1, 13):
        period = Period(month=month, year=year)
        revenue = total_revenue(snapshot, period)
        expenses = total_expenses(snapshot, period).total
        series.append(MonthlyFigures(
            month=month,
            month_name=MONTH_NAMES[month - 1],
            revenue=revenue,
            expenses=expenses,
            profit=revenue - expenses,
            units_produced=total_units_produced(snapshot, period),
            cost_per_unit=compute_cost_per_unit(snapshot, period).cost_per_unit,
        ))
    return series


def summarize(
    snapshot: LedgerSnapshot,
    period: Optional[Period] = None,
) -> FinancialSummary:
    """All dashboard KPIs for a period in one pass over the helpers above."""
    revenue = total_revenue(snapshot, period)
    expenses = total_expenses(snapshot, period).total
    result = revenue - expenses
    units_sold = total_units_sold(snapshot, period)
    return FinancialSummary(
        revenue=revenue,
        expenses=expenses,
        profit=result,
        profit_margin=result / revenue * 100 if revenue != 0 else 0.0,
        units_produced=total_units_produced(snapshot, period),
        units_sold=units_sold,
        average_price_per_unit=revenue / units_sold if units_sold > 0 else 0.0,
        cost_per_unit=compute_cost_per_unit(snapshot, period).cost_per_unit,
    )
