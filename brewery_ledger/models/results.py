"""
Result Models

Everything the engine and the record store hand back to callers. These
are plain, fully-populated values: a calculation over an empty period
returns zeros, a failed save returns success=False.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# COSTING
# =============================================================================

class CostBreakdown(BaseModel):
    """
    Cost per unit for a period, with every intermediate sum.
    
    cost_per_unit = (variable_cost + labor_cost + fixed_cost_amortization)
                    / units_produced
    """
    batches: int = 0
    units_produced: float = 0.0
    labor_hours: float = 0.0
    variable_cost: float = 0.0
    labor_cost: float = 0.0
    months_touched: int = 0
    monthly_fixed_costs: float = 0.0
    fixed_cost_amortization: float = 0.0
    total_cost: float = 0.0
    cost_per_unit: float = 0.0


class ProductCost(CostBreakdown):
    """Cost per unit and pricing guidance for a single product."""
    product_name: str
    recommended_price: float = 0.0
    margin_description: str = ""


# =============================================================================
# FINANCIALS
# =============================================================================

class ExpenseSummary(BaseModel):
    """Total expenses and their split by category (first-seen order)."""
    total: float = 0.0
    breakdown: dict[str, float] = Field(default_factory=dict)


class MonthlyFigures(BaseModel):
    """One month of the yearly series used by the charts."""
    month: int = Field(ge=1, le=12)
    month_name: str
    revenue: float = 0.0
    expenses: float = 0.0
    profit: float = 0.0
    units_produced: float = 0.0
    cost_per_unit: float = 0.0


class FinancialSummary(BaseModel):
    """Dashboard KPIs for a period."""
    revenue: float = 0.0
    expenses: float = 0.0
    profit: float = 0.0
    profit_margin: float = 0.0
    units_produced: float = 0.0
    units_sold: float = 0.0
    average_price_per_unit: float = 0.0
    cost_per_unit: float = 0.0


# =============================================================================
# PERSISTENCE
# =============================================================================

class PersistResult(BaseModel):
    """Outcome of writing dirty documents to a backend."""
    success: bool
    saved: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    error_message: Optional[str] = None


class SyncResult(BaseModel):
    """Outcome of a pull or push against the remote backend."""
    success: bool
    direction: str = Field(pattern="^(pull|push)$")
    synced_at: Optional[datetime] = None
    records: int = Field(default=0, ge=0)
    error_message: Optional[str] = None
