"""
Tests for period filtering.
"""

import pytest
from pydantic import ValidationError

from brewery_ledger.engine import (
    MonthKey,
    Period,
    available_years,
    distinct_month_keys,
    filter_by_period,
    select,
)
from brewery_ledger.models import LedgerSnapshot

from conftest import make_batch, make_sale, make_transaction


@pytest.fixture
def mixed_batches():
    return [
        make_batch("2024-03-05", product_name="IPA"),
        make_batch("2024-04-01", product_name="Stout"),
        make_batch("2023-03-15", product_name="Lager"),
        make_batch("not a date", product_name="Mystery"),
    ]


class TestFilterByPeriod:
    """Tests for filter_by_period()."""
    
    def test_no_filter_is_identity(self, mixed_batches):
        assert filter_by_period(mixed_batches) == mixed_batches
    
    def test_month_and_year(self, mixed_batches):
        selected = filter_by_period(mixed_batches, month=3, year=2024)
        assert [b.product_name for b in selected] == ["IPA"]
    
    def test_month_of_any_year(self, mixed_batches):
        selected = filter_by_period(mixed_batches, month=3)
        assert [b.product_name for b in selected] == ["IPA", "Lager"]
    
    def test_whole_year_preserves_order(self, mixed_batches):
        selected = filter_by_period(mixed_batches, year=2024)
        assert [b.product_name for b in selected] == ["IPA", "Stout"]
    
    def test_unparseable_date_never_matches(self, mixed_batches):
        for month in range(1, 13):
            selected = filter_by_period(mixed_batches, month=month)
            assert "Mystery" not in [b.product_name for b in selected]
    
    def test_timestamp_dates_match_their_day(self):
        batch = make_batch("2024-03-31T23:30:00")
        assert filter_by_period([batch], month=3, year=2024) == [batch]
    
    @pytest.mark.parametrize("month", [0, 13, -1])
    def test_month_out_of_range(self, mixed_batches, month):
        with pytest.raises(ValueError):
            filter_by_period(mixed_batches, month=month)
    
    def test_empty_input(self):
        assert filter_by_period([], month=1, year=2024) == []


class TestPeriod:
    """Tests for the Period value and select()."""
    
    def test_select_without_period_keeps_everything(self, mixed_batches):
        assert select(mixed_batches) == mixed_batches
        assert select(mixed_batches, Period.all_time()) == mixed_batches
    
    def test_select_with_period(self, mixed_batches):
        assert len(select(mixed_batches, Period(month=4, year=2024))) == 1
    
    def test_invalid_month_rejected(self):
        with pytest.raises(ValidationError):
            Period(month=13)
    
    def test_labels(self):
        assert Period(month=3, year=2024).label() == "March 2024"
        assert Period(year=2024).label() == "2024"
        assert Period(month=12).label() == "December"
        assert Period().label() == "All time"
        assert Period().is_unbounded
    
    def test_label_with_custom_names(self):
        names = ["Enero", "Febrero", "Marzo"] + [""] * 9
        assert Period(month=3, year=2024).label(names) == "Marzo 2024"


class TestMonthKeys:
    """Tests for month bucketing helpers."""
    
    def test_distinct_month_keys_first_seen_order(self, mixed_batches):
        batches = mixed_batches + [make_batch("2024-03-28")]
        assert distinct_month_keys(batches) == [
            MonthKey(2024, 3),
            MonthKey(2024, 4),
            MonthKey(2023, 3),
        ]
    
    def test_available_years_across_collections(self):
        snapshot = LedgerSnapshot(
            production=(make_batch("2022-05-01"),),
            transactions=(make_transaction("2024-01-10", 10, "income"),),
            sales=(make_sale("2023-07-07", 100, 10), make_sale("bad", 1, 1)),
        )
        assert available_years(snapshot) == [2024, 2023, 2022]
    
    def test_available_years_empty(self):
        assert available_years(LedgerSnapshot()) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
