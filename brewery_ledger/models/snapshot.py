"""
Ledger Snapshot

An immutable view of the whole ledger: the configuration singleton and
the three keyed collections. Calculations take a snapshot as their only
input, so they never see a half-applied edit.
"""

from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from brewery_ledger.log import get_logger
from brewery_ledger.models.ledger_config import LedgerConfig, migrate_config
from brewery_ledger.models.records import (
    LedgerRecord,
    LedgerTransaction,
    ProductionBatch,
    SaleRecord,
)


logger = get_logger(__name__)


class CollectionName(str, Enum):
    """Logical names of the four stored documents."""
    CONFIG = "config"
    PRODUCTION = "production"
    TRANSACTIONS = "transactions"
    SALES = "sales"


RECORD_COLLECTIONS = (
    CollectionName.PRODUCTION,
    CollectionName.TRANSACTIONS,
    CollectionName.SALES,
)

RECORD_TYPES: dict[CollectionName, type[LedgerRecord]] = {
    CollectionName.PRODUCTION: ProductionBatch,
    CollectionName.TRANSACTIONS: LedgerTransaction,
    CollectionName.SALES: SaleRecord,
}


def split_records(
    collection: CollectionName,
    raw: Any,
) -> tuple[list[LedgerRecord], list[Any]]:
    """
    Parse a stored collection document into records.
    
    A missing document is an empty collection. Entries that fail
    validation are returned untouched in the second list so they can be
    written back as they were; they never abort the load.
    
    Returns:
        (records, unparsed_entries)
    """
    if raw is None:
        return [], []
    if not isinstance(raw, list):
        logger.warning(
            "collection_not_a_list",
            collection=collection.value,
            value_type=type(raw).__name__,
        )
        return [], [raw]
    
    record_type = RECORD_TYPES[collection]
    records: list[LedgerRecord] = []
    unparsed: list[Any] = []
    for index, item in enumerate(raw):
        if isinstance(item, record_type):
            records.append(item)
            continue
        if not isinstance(item, dict):
            logger.warning("record_kept_unparsed", collection=collection.value, index=index)
            unparsed.append(item)
            continue
        try:
            records.append(record_type.model_validate(item))
        except ValidationError as e:
            logger.warning(
                "record_kept_unparsed",
                collection=collection.value,
                index=index,
                record_id=str(item.get("id", "")),
                error_count=e.error_count(),
            )
            unparsed.append(item)
    return records, unparsed


def parse_records(
    collection: CollectionName,
    raw: Any,
) -> list[LedgerRecord]:
    """The valid records of a stored collection document."""
    records, _ = split_records(collection, raw)
    return records


class LedgerSnapshot(BaseModel):
    """
    The four collections at one point in time.
    
    `config` is None when the config document does not exist yet;
    use `effective_config` to get the configuration with defaults.
    
    `unparsed` holds stored entries that could not be read as records,
    keyed by collection. Calculations never see them, but they are
    written back unchanged so a save never drops stored data.
    """
    model_config = ConfigDict(frozen=True)
    
    config: Optional[LedgerConfig] = None
    production: tuple[ProductionBatch, ...] = ()
    transactions: tuple[LedgerTransaction, ...] = ()
    sales: tuple[SaleRecord, ...] = ()
    unparsed: dict[CollectionName, tuple[Any, ...]] = Field(default_factory=dict)
    
    @property
    def effective_config(self) -> LedgerConfig:
        return self.config if self.config is not None else LedgerConfig()
    
    def records(self, collection: Union[CollectionName, str]) -> tuple:
        """Get the records of one keyed collection."""
        collection = CollectionName(collection)
        if collection == CollectionName.CONFIG:
            raise ValueError("config is a singleton, not a record collection")
        return getattr(self, collection.value)
    
    def unparsed_entries(self, collection: Union[CollectionName, str]) -> tuple:
        return self.unparsed.get(CollectionName(collection), ())
    
    def replace_records(
        self,
        collection: Union[CollectionName, str],
        records: Iterable[LedgerRecord],
    ) -> "LedgerSnapshot":
        """Return a new snapshot with one collection replaced."""
        collection = CollectionName(collection)
        if collection == CollectionName.CONFIG:
            raise ValueError("use with_config() to replace the configuration")
        record_type = RECORD_TYPES[collection]
        records = tuple(records)
        for record in records:
            if not isinstance(record, record_type):
                raise TypeError(
                    f"{collection.value} holds {record_type.__name__}, "
                    f"got {type(record).__name__}"
                )
        return self.model_copy(update={collection.value: records})
    
    def with_unparsed(
        self,
        collection: Union[CollectionName, str],
        entries: Iterable[Any],
    ) -> "LedgerSnapshot":
        """Return a new snapshot with one collection's unparsed entries replaced."""
        unparsed = dict(self.unparsed)
        entries = tuple(entries)
        if entries:
            unparsed[CollectionName(collection)] = entries
        else:
            unparsed.pop(CollectionName(collection), None)
        return self.model_copy(update={"unparsed": unparsed})
    
    def with_config(self, config: LedgerConfig) -> "LedgerSnapshot":
        return self.model_copy(update={"config": config})
    
    def document(self, collection: Union[CollectionName, str]) -> Any:
        """Serialize one collection to its stored JSON value."""
        collection = CollectionName(collection)
        if collection == CollectionName.CONFIG:
            return self.effective_config.to_document()
        return [
            *(record.to_document() for record in self.records(collection)),
            *self.unparsed_entries(collection),
        ]
    
    def to_documents(self) -> dict[str, Any]:
        """Serialize all four documents, keyed by collection name."""
        return {name.value: self.document(name) for name in CollectionName}
    
    @classmethod
    def from_documents(cls, documents: Mapping[str, Any]) -> "LedgerSnapshot":
        """
        Build a snapshot from stored JSON values.
        
        Missing keys mean "not created yet". The config document is
        migrated to the canonical schema here and nowhere else.
        """
        raw_config = documents.get(CollectionName.CONFIG.value)
        collections: dict[str, tuple] = {}
        unparsed: dict[CollectionName, tuple] = {}
        for collection in RECORD_COLLECTIONS:
            records, rejected = split_records(collection, documents.get(collection.value))
            collections[collection.value] = tuple(records)
            if rejected:
                unparsed[collection] = tuple(rejected)
        return cls(
            config=migrate_config(raw_config) if raw_config is not None else None,
            unparsed=unparsed,
            **collections,
        )
