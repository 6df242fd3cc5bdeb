"""
Period Filtering

A period is a (month, year) filter where either part may be omitted,
meaning "any". Records are matched on the calendar month and year of
their `date` field.

Records whose date does not parse never match a bounded period. With
both parts omitted every record passes, malformed or not.
"""

from typing import Iterable, NamedTuple, Optional, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from brewery_ledger.models.records import LedgerRecord, parse_date
from brewery_ledger.models.snapshot import RECORD_COLLECTIONS, LedgerSnapshot


R = TypeVar("R", bound=LedgerRecord)


class MonthKey(NamedTuple):
    """A calendar month, used for amortization and time series buckets."""
    year: int
    month: int


class Period(BaseModel):
    """
    A month/year filter.
    
    Period() is all time, Period(year=2024) is a whole year and
    Period(month=3, year=2024) is March 2024. Period(month=3) matches
    March of any year.
    """
    model_config = ConfigDict(frozen=True)
    
    month: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = Field(default=None, ge=1)
    
    @classmethod
    def all_time(cls) -> "Period":
        return cls()
    
    @property
    def is_unbounded(self) -> bool:
        return self.month is None and self.year is None
    
    def label(self, month_names: Optional[Sequence[str]] = None) -> str:
        """Human-readable label, e.g. "March 2024", "2024" or "All time"."""
        names = month_names or MONTH_NAMES
        if self.month is not None and self.year is not None:
            return f"{names[self.month - 1]} {self.year}"
        if self.month is not None:
            return names[self.month - 1]
        if self.year is not None:
            return str(self.year)
        return "All time"


MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def _check_month(month: Optional[int]) -> None:
    if month is not None and not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")


def filter_by_period(
    records: Iterable[R],
    month: Optional[int] = None,
    year: Optional[int] = None,
) -> list[R]:
    """
    Select the records dated in the given month and/or year.
    
    Input order is preserved. A record with an unparseable date is
    excluded whenever month or year is given.
    """
    _check_month(month)
    if month is None and year is None:
        return list(records)
    
    selected = []
    for record in records:
        record_date = parse_date(record.date)
        if record_date is None:
            continue
        if month is not None and record_date.month != month:
            continue
        if year is not None and record_date.year != year:
            continue
        selected.append(record)
    return selected


def select(records: Iterable[R], period: Optional[Period] = None) -> list[R]:
    """filter_by_period() driven by a Period value."""
    if period is None:
        return list(records)
    return filter_by_period(records, period.month, period.year)


def month_key(record: LedgerRecord) -> Optional[MonthKey]:
    record_date = parse_date(record.date)
    if record_date is None:
        return None
    return MonthKey(record_date.year, record_date.month)


def distinct_month_keys(records: Iterable[LedgerRecord]) -> list[MonthKey]:
    """Distinct months touched by the records, in first-seen order."""
    keys: dict[MonthKey, None] = {}
    for record in records:
        key = month_key(record)
        if key is not None:
            keys.setdefault(key, None)
    return list(keys)


def available_years(snapshot: LedgerSnapshot) -> list[int]:
    """Every year that has at least one record, newest first."""
    years = set()
    for collection in RECORD_COLLECTIONS:
        for record in snapshot.records(collection):
            record_date = parse_date(record.date)
            if record_date is not None:
                years.add(record_date.year)
    return sorted(years, reverse=True)
