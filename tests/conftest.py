"""
Shared fixtures for Brewery Ledger tests.

No test touches the network: backends are InMemoryDocumentStore or
LocalJsonDocumentStore over pytest's tmp_path.
"""

import asyncio

import pytest

from brewery_ledger.models import (
    LedgerConfig,
    LedgerSnapshot,
    LedgerTransaction,
    ProductionBatch,
    SaleRecord,
)
from brewery_ledger.repository import RecordStore
from brewery_ledger.services.storage import InMemoryDocumentStore


def make_batch(date, product_name="IPA", volume=100, hours=10, cost=500, **extra):
    return ProductionBatch(
        date=date,
        product_name=product_name,
        volume_produced=volume,
        labor_hours=hours,
        ingredient_cost=cost,
        **extra,
    )


def make_transaction(date, amount, kind, category="other", description="", **extra):
    return LedgerTransaction(
        date=date,
        amount=amount,
        kind=kind,
        category=category,
        description=description,
        **extra,
    )


def make_sale(date, revenue, volume_sold, **extra):
    return SaleRecord(date=date, revenue=revenue, volume_sold=volume_sold, **extra)


@pytest.fixture
def brewery_config():
    """Labor at 150/h and 3,500 of monthly fixed costs."""
    return LedgerConfig(
        labor_rate=150,
        monthly_rent=1000,
        monthly_salaries=2000,
        monthly_utilities=500,
    )


@pytest.fixture
def march_ipa_snapshot(brewery_config):
    """Two IPA batches in March 2024."""
    return LedgerSnapshot(
        config=brewery_config,
        production=(
            make_batch("2024-03-05", volume=100, hours=10, cost=500),
            make_batch("2024-03-20", volume=50, hours=5, cost=250),
        ),
    )


@pytest.fixture
def memory_backend():
    return InMemoryDocumentStore()


@pytest.fixture
def loaded_store(memory_backend):
    """A RecordStore already refreshed from an empty in-memory backend."""
    store = RecordStore(memory_backend)
    asyncio.run(store.refresh())
    return store
