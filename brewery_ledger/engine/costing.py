"""
Cost Allocation Engine

Computes the cost of producing one unit for a period:

    cost per unit = (variable cost + labor cost + fixed cost amortization)
                    / units produced

- variable cost: sum of ingredient cost of the batches
- labor cost: sum of labor hours x configured labor rate
- fixed cost amortization: (rent + salaries + utilities) x the number of
  distinct calendar months touched by the batches. A month with any
  batch carries its full fixed cost once, however many batches it has.

The per-product breakdown applies the same formula to each product's own
batches, so each product is charged the fixed cost of every month it was
brewed in. When two products share a month, the sum of per-product
amortizations is larger than the aggregate amortization. Both numbers
are reported as they are; they answer different questions.
"""

import locale
from typing import Iterable, Optional

from brewery_ledger.engine.period import Period, distinct_month_keys, select
from brewery_ledger.models.ledger_config import LedgerConfig
from brewery_ledger.models.records import ProductionBatch
from brewery_ledger.models.results import CostBreakdown, ProductCost
from brewery_ledger.models.snapshot import LedgerSnapshot


def _breakdown(
    batches: list[ProductionBatch],
    config: LedgerConfig,
) -> CostBreakdown:
    """Steps 3-8 of the allocation over an already-selected set of batches."""
    if not batches:
        return CostBreakdown()
    
    variable_cost = sum(batch.ingredient_cost for batch in batches)
    labor_hours = sum(batch.labor_hours for batch in batches)
    labor_cost = labor_hours * config.labor_rate
    
    months_touched = len(distinct_month_keys(batches))
    monthly_fixed_costs = config.monthly_fixed_costs
    fixed_cost_amortization = monthly_fixed_costs * months_touched
    
    total_cost = variable_cost + labor_cost + fixed_cost_amortization
    units_produced = sum(batch.volume_produced for batch in batches)
    cost_per_unit = total_cost / units_produced if units_produced > 0 else 0.0
    
    return CostBreakdown(
        batches=len(batches),
        units_produced=units_produced,
        labor_hours=labor_hours,
        variable_cost=variable_cost,
        labor_cost=labor_cost,
        months_touched=months_touched,
        monthly_fixed_costs=monthly_fixed_costs,
        fixed_cost_amortization=fixed_cost_amortization,
        total_cost=total_cost,
        cost_per_unit=cost_per_unit,
    )


def compute_cost_per_unit(
    snapshot: LedgerSnapshot,
    period: Optional[Period] = None,
) -> CostBreakdown:
    """
    Aggregate cost per unit over every batch in the period.
    
    A period without batches gives an all-zero breakdown.
    """
    batches = select(snapshot.production, period)
    return _breakdown(batches, snapshot.effective_config)


def _product_sort_key(product: ProductCost) -> tuple[str, str]:
    """Collate with the process locale, ignoring case; exact name breaks ties."""
    return (locale.strxfrm(product.product_name.casefold()), product.product_name)


def group_by_product(
    batches: Iterable[ProductionBatch],
) -> dict[str, list[ProductionBatch]]:
    """Group batches by exact product name (case-sensitive, untrimmed)."""
    groups: dict[str, list[ProductionBatch]] = {}
    for batch in batches:
        groups.setdefault(batch.product_name, []).append(batch)
    return groups


def compute_cost_per_unit_by_product(
    snapshot: LedgerSnapshot,
    period: Optional[Period] = None,
) -> list[ProductCost]:
    """
    Cost per unit and recommended price for each product in the period.
    
    Returns an empty list when there are no batches. Products are sorted
    by name, case-insensitively, using the collation of the current
    locale (LC_COLLATE). Under the default "C" locale this is code-point
    order of the case-folded names.
    """
    config = snapshot.effective_config
    batches = select(snapshot.production, period)
    
    products = []
    for product_name, product_batches in group_by_product(batches).items():
        breakdown = _breakdown(product_batches, config)
        products.append(ProductCost(
            product_name=product_name,
            recommended_price=config.recommended_price(breakdown.cost_per_unit),
            margin_description=config.margin.describe(),
            **breakdown.model_dump(),
        ))
    
    products.sort(key=_product_sort_key)
    return products
