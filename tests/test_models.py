"""
Tests for the ledger models: lenient record parsing, configuration
migration and snapshot (de)serialization.
"""

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from brewery_ledger.models import (
    CollectionName,
    LedgerConfig,
    LedgerSnapshot,
    LedgerTransaction,
    MultiplierMargin,
    PercentageMargin,
    ProductionBatch,
    SaleRecord,
    TransactionKind,
    coerce_number,
    migrate_config,
    parse_date,
    parse_timestamp,
)


class TestCoercion:
    """Tests for the value coercion helpers."""
    
    def test_coerce_number_accepts_numeric_text(self):
        assert coerce_number("12.5") == 12.5
    
    @pytest.mark.parametrize("value", ["n/a", None, "", [], True, float("nan")])
    def test_coerce_number_neutral_for_garbage(self, value):
        assert coerce_number(value) == 0.0
    
    def test_parse_date_formats(self):
        assert parse_date("2024-03-05") == date(2024, 3, 5)
        assert parse_date("2024-03-05T23:10:00Z") == date(2024, 3, 5)
        assert parse_date(date(2024, 1, 2)) == date(2024, 1, 2)
    
    @pytest.mark.parametrize("value", ["not a date", "2024-13-01", "", None, 20240305])
    def test_parse_date_returns_none_for_garbage(self, value):
        assert parse_date(value) is None
    
    def test_parse_timestamp_assumes_utc_for_naive(self):
        parsed = parse_timestamp("2024-03-05T10:00:00")
        assert parsed == datetime(2024, 3, 5, 10, tzinfo=timezone.utc)
    
    def test_parse_timestamp_handles_zulu_suffix(self):
        parsed = parse_timestamp("2024-03-05T10:00:00.123Z")
        assert parsed.tzinfo is not None
        assert parsed.microsecond == 123000


class TestRecordModels:
    """Tests for the record models."""
    
    def test_production_batch_defaults(self):
        batch = ProductionBatch(
            date=date(2024, 3, 5),
            product_name="IPA",
            volume_produced=100,
            labor_hours=10,
            ingredient_cost=500,
        )
        assert batch.date == "2024-03-05"
        assert batch.id
        assert batch.created_at is not None
        assert batch.record_date == date(2024, 3, 5)
    
    def test_production_batch_document_uses_camel_case(self):
        batch = ProductionBatch(date="2024-03-05", product_name="IPA", volume_produced=10)
        document = batch.to_document()
        assert document["productName"] == "IPA"
        assert document["volumeProduced"] == 10
        assert "laborHours" in document
        assert "createdAt" in document
    
    def test_production_batch_reads_legacy_keys(self):
        batch = ProductionBatch.model_validate({
            "id": "1700000000000_abc",
            "date": "2024-01-02",
            "beerName": "Stout",
            "volume": 40,
        })
        assert batch.product_name == "Stout"
        assert batch.volume_produced == 40
    
    def test_production_batch_rejects_negative_volume(self):
        with pytest.raises(ValidationError):
            ProductionBatch(date="2024-03-05", product_name="IPA", volume_produced=-1)
    
    def test_non_numeric_cost_becomes_zero(self):
        batch = ProductionBatch.model_validate({
            "id": "b1",
            "date": "2024-03-05",
            "productName": "IPA",
            "ingredientCost": "lots",
        })
        assert batch.ingredient_cost == 0.0
    
    def test_malformed_date_is_kept(self):
        sale = SaleRecord.model_validate({"id": "s1", "date": "yesterday", "revenue": 10})
        assert sale.date == "yesterday"
        assert sale.record_date is None
    
    def test_malformed_created_at_becomes_none(self):
        sale = SaleRecord.model_validate({"id": "s1", "date": "2024-01-01", "createdAt": "soon"})
        assert sale.created_at is None
    
    def test_transaction_accepts_legacy_type_key(self):
        transaction = LedgerTransaction.model_validate({
            "id": "t1",
            "date": "2024-03-01",
            "amount": 300,
            "type": "expense",
            "category": "rent",
        })
        assert transaction.kind == TransactionKind.EXPENSE
        assert transaction.to_document()["kind"] == "expense"
    
    def test_transaction_signed_amount(self):
        income = LedgerTransaction(date="2024-03-01", amount=100, kind="income")
        expense = LedgerTransaction(date="2024-03-01", amount=100, kind="expense")
        assert income.signed_amount == 100
        assert expense.signed_amount == -100
    
    def test_sale_average_price_zero_volume(self):
        sale = SaleRecord(date="2024-03-01", revenue=200, volume_sold=0)
        assert sale.average_price == 0.0
    
    def test_with_changes_keeps_identity(self):
        batch = ProductionBatch(date="2024-03-05", product_name="IPA", volume_produced=10)
        changed = batch.with_changes(volume_produced=20)
        assert changed.id == batch.id
        assert changed.created_at == batch.created_at
        assert changed.volume_produced == 20
        assert batch.volume_produced == 10
    
    def test_with_changes_refuses_identity_fields(self):
        batch = ProductionBatch(date="2024-03-05", product_name="IPA")
        with pytest.raises(ValueError, match="immutable"):
            batch.with_changes(id="other")
    
    def test_records_are_frozen(self):
        batch = ProductionBatch(date="2024-03-05", product_name="IPA")
        with pytest.raises(ValidationError):
            batch.volume_produced = 5


class TestConfigMigration:
    """Tests for migrate_config() and LedgerConfig."""
    
    def test_missing_config_gives_defaults(self):
        config = migrate_config(None)
        assert config.labor_rate == 150
        assert config.margin == MultiplierMargin(multiplier=3)
        assert config.monthly_fixed_costs == 0
    
    def test_canonical_document_round_trips(self):
        config = LedgerConfig(labor_rate=120, margin=PercentageMargin(percentage=40))
        assert migrate_config(config.to_document()) == config
    
    def test_nested_fixed_costs_shape(self):
        config = migrate_config({
            "fixedCosts": {
                "laborRate": 150,
                "monthlyRent": 1000,
                "monthlySalaries": 2000,
                "monthlyUtilities": 500,
            },
            "profitMarginMultiplier": 2.5,
        })
        assert config.monthly_fixed_costs == 3500
        assert config.margin == MultiplierMargin(multiplier=2.5)
    
    def test_flat_percentage_shape(self):
        config = migrate_config({"laborRate": 180, "profitMarginPercentage": 60, "version": "1.0"})
        assert config.labor_rate == 180
        assert config.margin == PercentageMargin(percentage=60)
        assert config.monthly_fixed_costs == 0
    
    def test_invalid_config_falls_back_to_defaults(self):
        assert migrate_config({"laborRate": -5}) == LedgerConfig()
        assert migrate_config("garbage") == LedgerConfig()
    
    def test_recommended_price_by_policy(self):
        multiplier = LedgerConfig(margin=MultiplierMargin(multiplier=3))
        percentage = LedgerConfig(margin=PercentageMargin(percentage=60))
        assert multiplier.recommended_price(10) == pytest.approx(30)
        assert percentage.recommended_price(10) == pytest.approx(16)


class TestSnapshot:
    """Tests for LedgerSnapshot."""
    
    def test_from_documents_keeps_unreadable_entries_aside(self):
        snapshot = LedgerSnapshot.from_documents({
            "production": [
                {"id": "ok", "date": "2024-03-05", "productName": "IPA", "volumeProduced": 10},
                {"id": "bad", "date": "2024-03-05", "volumeProduced": -3},
                "not an object",
            ],
            "transactions": [{"id": "t1", "date": "2024-03-05", "amount": 5, "kind": "gift"}],
            "sales": None,
        })
        assert [b.id for b in snapshot.production] == ["ok"]
        assert snapshot.transactions == ()
        assert snapshot.sales == ()
        assert snapshot.config is None
        assert snapshot.unparsed_entries("production") == (
            {"id": "bad", "date": "2024-03-05", "volumeProduced": -3},
            "not an object",
        )
        assert snapshot.unparsed_entries("transactions")[0]["kind"] == "gift"
        assert snapshot.unparsed_entries("sales") == ()
    
    def test_unreadable_entries_written_back(self):
        raw = {"id": "bad", "date": "2024-03-05", "volumeProduced": -3}
        snapshot = LedgerSnapshot.from_documents({"production": [raw]})
        assert snapshot.production == ()
        assert snapshot.document("production") == [raw]
    
    def test_null_text_fields_are_read_leniently(self):
        transaction = LedgerTransaction.model_validate({
            "id": "t1",
            "date": "2024-03-01",
            "description": None,
            "amount": 10,
            "type": "income",
            "category": None,
        })
        assert transaction.description == ""
        assert transaction.category == "other"
        batch = ProductionBatch.model_validate({"id": "b1", "date": "2024-03-01", "productName": None})
        assert batch.product_name == ""
    
    def test_long_description_accepted(self):
        transaction = LedgerTransaction(date="2024-03-01", amount=1, kind="expense", description="x" * 2000)
        assert len(transaction.description) == 2000
    
    def test_effective_config_defaults(self):
        assert LedgerSnapshot().effective_config == LedgerConfig()
    
    def test_to_documents_has_all_four(self, march_ipa_snapshot):
        documents = march_ipa_snapshot.to_documents()
        assert set(documents) == {"config", "production", "transactions", "sales"}
        assert documents["config"]["schemaVersion"] == 2
        assert len(documents["production"]) == 2
    
    def test_replace_records_type_checked(self, march_ipa_snapshot):
        with pytest.raises(TypeError):
            march_ipa_snapshot.replace_records(
                CollectionName.SALES, march_ipa_snapshot.production
            )
    
    def test_records_rejects_config(self):
        with pytest.raises(ValueError):
            LedgerSnapshot().records(CollectionName.CONFIG)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
