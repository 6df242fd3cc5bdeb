"""
Data Models Package

This package contains all Pydantic models used by Brewery Ledger.
All data flowing through the system must conform to these schemas.
"""

from brewery_ledger.models.records import (
    LedgerRecord,
    LedgerTransaction,
    ProductionBatch,
    SaleRecord,
    TransactionKind,
    coerce_number,
    parse_date,
    parse_timestamp,
)
from brewery_ledger.models.ledger_config import (
    CONFIG_SCHEMA_VERSION,
    LedgerConfig,
    MarginPolicy,
    MultiplierMargin,
    PercentageMargin,
    migrate_config,
)
from brewery_ledger.models.snapshot import (
    RECORD_COLLECTIONS,
    CollectionName,
    LedgerSnapshot,
    parse_records,
    split_records,
)
from brewery_ledger.models.results import (
    CostBreakdown,
    ExpenseSummary,
    FinancialSummary,
    MonthlyFigures,
    PersistResult,
    ProductCost,
    SyncResult,
)

__all__ = [
    # Records
    "LedgerRecord",
    "LedgerTransaction",
    "ProductionBatch",
    "SaleRecord",
    "TransactionKind",
    "coerce_number",
    "parse_date",
    "parse_timestamp",
    # Configuration
    "CONFIG_SCHEMA_VERSION",
    "LedgerConfig",
    "MarginPolicy",
    "MultiplierMargin",
    "PercentageMargin",
    "migrate_config",
    # Snapshot
    "RECORD_COLLECTIONS",
    "CollectionName",
    "LedgerSnapshot",
    "parse_records",
    "split_records",
    # Results
    "CostBreakdown",
    "ExpenseSummary",
    "FinancialSummary",
    "MonthlyFigures",
    "PersistResult",
    "ProductCost",
    "SyncResult",
]
