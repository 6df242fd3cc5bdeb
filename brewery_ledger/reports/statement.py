"""
Profit and Loss Statement

Assembles the printable report for a period: income, expenses by
category, net result, production analysis and the per-product pricing
table. build_profit_and_loss() returns data; render_text() lays it out
as plain text for printing or export.
"""

from typing import Optional

from pydantic import BaseModel, Field

from brewery_ledger.engine.costing import (
    compute_cost_per_unit,
    compute_cost_per_unit_by_product,
)
from brewery_ledger.engine.financials import total_expenses, total_revenue
from brewery_ledger.engine.period import Period
from brewery_ledger.models.results import CostBreakdown, ProductCost
from brewery_ledger.models.snapshot import LedgerSnapshot


CATEGORY_DISPLAY_NAMES = {
    "ingredients": "Ingredients",
    "packaging": "Packaging",
    "rent": "Rent",
    "utilities": "Utilities",
    "salaries": "Salaries",
    "equipment": "Equipment",
    "marketing": "Marketing",
    "maintenance": "Maintenance",
    "taxes": "Taxes",
    "sales": "Sales",
    "other": "Other",
}


def category_display_name(category: str) -> str:
    """Display label for a category tag; unknown tags are shown as typed."""
    return CATEGORY_DISPLAY_NAMES.get(category, category)


def format_currency(amount: float, currency: str = "MXN") -> str:
    """Format an amount as "$1,234.50 MXN"."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f} {currency}".rstrip()


class ExpenseLine(BaseModel):
    category: str
    label: str
    amount: float


class ProfitAndLossReport(BaseModel):
    """Everything the statement shows, already computed."""
    period: Period
    period_label: str
    revenue: float
    expense_lines: list[ExpenseLine] = Field(default_factory=list)
    total_expenses: float = 0.0
    net_result: float = 0.0
    production: CostBreakdown
    products: list[ProductCost] = Field(default_factory=list)
    margin_description: str = ""
    
    @property
    def is_profit(self) -> bool:
        return self.net_result >= 0


def build_profit_and_loss(
    snapshot: LedgerSnapshot,
    period: Optional[Period] = None,
) -> ProfitAndLossReport:
    """Compute the statement for a period (all time when omitted)."""
    period = period or Period.all_time()
    revenue = total_revenue(snapshot, period)
    expenses = total_expenses(snapshot, period)
    return ProfitAndLossReport(
        period=period,
        period_label=period.label(),
        revenue=revenue,
        expense_lines=[
            ExpenseLine(
                category=category,
                label=category_display_name(category),
                amount=amount,
            )
            for category, amount in expenses.breakdown.items()
        ],
        total_expenses=expenses.total,
        net_result=revenue - expenses.total,
        production=compute_cost_per_unit(snapshot, period),
        products=compute_cost_per_unit_by_product(snapshot, period),
        margin_description=snapshot.effective_config.margin.describe(),
    )


def render_text(report: ProfitAndLossReport, currency: str = "MXN") -> str:
    """Lay the statement out as fixed-width text."""
    width = 64
    
    def money(amount: float) -> str:
        return format_currency(amount, currency)
    
    def row(label: str, value: str) -> str:
        return f"  {label:<{max(width - len(value) - 4, 1)}}{value}"
    
    lines = [
        "Profit and Loss Statement".center(width),
        f"Period: {report.period_label}".center(width),
        "=" * width,
        "INCOME",
        row("Gross revenue", money(report.revenue)),
        "",
        "EXPENSES",
    ]
    if report.expense_lines:
        lines.extend(row(line.label, money(line.amount)) for line in report.expense_lines)
    else:
        lines.append("  No expenses recorded")
    lines.append(row("Total expenses", money(report.total_expenses)))
    lines.append("")
    lines.append("RESULT")
    lines.append(row(
        "Net profit" if report.is_profit else "Net loss",
        money(abs(report.net_result)),
    ))
    lines.append("=" * width)
    
    production = report.production
    lines.extend([
        "PRODUCTION ANALYSIS",
        row("Units produced", f"{production.units_produced:,.0f}"),
        row("Cost per unit", money(production.cost_per_unit)),
        row("Variable cost", money(production.variable_cost)),
        row("Labor cost", money(production.labor_cost)),
        row(
            f"Fixed costs ({production.months_touched} month(s))",
            money(production.fixed_cost_amortization),
        ),
        "",
        "PRODUCTION BY PRODUCT",
    ])
    if not report.products:
        lines.append("  No production recorded")
    else:
        lines.append(f"  {'Product':<20}{'Batches':>8}{'Units':>10}{'Cost/unit':>12}{'Price':>12}")
        for product in report.products:
            lines.append(
                f"  {product.product_name[:20]:<20}"
                f"{product.batches:>8}"
                f"{product.units_produced:>10,.0f}"
                f"{product.cost_per_unit:>12,.2f}"
                f"{product.recommended_price:>12,.2f}"
            )
        lines.append(f"  Recommended price = {report.margin_description}")
    
    return "\n".join(lines) + "\n"
