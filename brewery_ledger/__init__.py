"""
Brewery Ledger - Source Package

Bookkeeping for a small craft-beverage producer: production batches,
cash transactions and sales, with cost-per-unit and profitability
metrics derived from them.

DESIGN PRINCIPLES:
1. Calculations are pure functions over an immutable snapshot
2. The record store is the only owner of mutable state
3. Bad data degrades to neutral values, it never crashes a report
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Brewery Ledger Team"
