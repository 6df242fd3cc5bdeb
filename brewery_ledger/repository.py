"""
Record Store

The single owner of the live ledger. Everything else receives immutable
snapshots from here.

DESIGN DECISION: The store never edits records in place. Every create,
update or delete builds a new LedgerSnapshot with the change applied and
swaps it in, then marks that collection dirty. persist() writes the
dirty documents back to the backend one at a time.

Writes are optimistic: the store remembers the version of each document
it loaded and the backend refuses a save if the stored document has
moved on. Two writers editing the same ledger will see a conflict, not
a merge; resolving that is LedgerSync's job.
"""

from datetime import date, datetime, timezone
from typing import Any, Optional, Union

from brewery_ledger.log import get_logger
from brewery_ledger.models.ledger_config import LedgerConfig, migrate_config
from brewery_ledger.models.records import (
    LedgerRecord,
    LedgerTransaction,
    ProductionBatch,
    SaleRecord,
    TransactionKind,
    parse_date,
)
from brewery_ledger.models.results import PersistResult
from brewery_ledger.models.snapshot import (
    RECORD_COLLECTIONS,
    RECORD_TYPES,
    CollectionName,
    LedgerSnapshot,
)
from brewery_ledger.services.storage import DocumentStoreInterface, StorageError


logger = get_logger(__name__)

EXPORT_FORMAT_VERSION = "2"


class StoreNotLoadedError(RuntimeError):
    """The store was used before refresh() or after invalidate()."""
    pass


class RecordNotFoundError(LookupError):
    """No record with the given id in the collection."""
    
    def __init__(self, collection: CollectionName, record_id: str):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"No {collection.value} record with id {record_id}")


def _record_collection(collection: Union[CollectionName, str]) -> CollectionName:
    collection = CollectionName(collection)
    if collection not in RECORD_COLLECTIONS:
        raise ValueError(f"{collection.value} is not a record collection")
    return collection


def _newest_first(record: LedgerRecord) -> tuple[bool, date]:
    record_date = parse_date(record.date)
    return (record_date is not None, record_date or date.min)


class RecordStore:
    """
    Repository object holding the ledger snapshot.
    
    Usage:
        store = RecordStore(LocalJsonDocumentStore("data"))
        await store.refresh()
        store.add_production(date="2024-03-05", product_name="IPA", ...)
        result = await store.persist()
    """
    
    def __init__(self, backend: DocumentStoreInterface):
        self._backend = backend
        self._snapshot: Optional[LedgerSnapshot] = None
        self._versions: dict[CollectionName, Optional[str]] = {}
        self._dirty: set[CollectionName] = set()
        # Bumped on every mutation so persist() can tell if a collection
        # changed again while its save was in flight
        self._revisions: dict[CollectionName, int] = {name: 0 for name in CollectionName}
    
    # =========================================================================
    # SNAPSHOT LIFECYCLE
    # =========================================================================
    
    @property
    def backend(self) -> DocumentStoreInterface:
        return self._backend
    
    @property
    def is_loaded(self) -> bool:
        return self._snapshot is not None
    
    @property
    def snapshot(self) -> LedgerSnapshot:
        """The current immutable snapshot."""
        if self._snapshot is None:
            raise StoreNotLoadedError("Record store is not loaded; call refresh() first")
        return self._snapshot
    
    @property
    def dirty(self) -> frozenset[CollectionName]:
        """Collections changed since the last successful persist."""
        return frozenset(self._dirty)
    
    async def refresh(self) -> LedgerSnapshot:
        """
        Load all four documents from the backend.
        
        Discards unsaved changes. A missing config document is created
        with defaults and marked dirty so the next persist() writes it.
        
        Raises:
            StorageError: If the backend cannot be read
        """
        documents: dict[str, Any] = {}
        versions: dict[CollectionName, Optional[str]] = {}
        for name in CollectionName:
            stored = await self._backend.load(name)
            documents[name.value] = stored.content
            versions[name] = stored.version
        
        snapshot = LedgerSnapshot.from_documents(documents)
        dirty: set[CollectionName] = set()
        if snapshot.config is None:
            snapshot = snapshot.with_config(LedgerConfig())
            dirty.add(CollectionName.CONFIG)
        
        self._snapshot = snapshot
        self._versions = versions
        self._dirty = dirty
        logger.info(
            "record_store_refreshed",
            production=len(snapshot.production),
            transactions=len(snapshot.transactions),
            sales=len(snapshot.sales),
            unparsed=sum(len(entries) for entries in snapshot.unparsed.values()),
        )
        return snapshot
    
    def invalidate(self) -> None:
        """Drop the snapshot and any unsaved changes. refresh() must follow."""
        self._snapshot = None
        self._versions = {}
        self._dirty = set()
        logger.info("record_store_invalidated")
    
    def replace(self, snapshot: LedgerSnapshot) -> None:
        """
        Install a whole snapshot (after a merge or an import).
        
        Every document is marked dirty.
        """
        if snapshot.config is None:
            snapshot = snapshot.with_config(self.snapshot.effective_config)
        self._snapshot = snapshot
        for name in CollectionName:
            self._mark_dirty(name)
    
    def _mark_dirty(self, name: CollectionName) -> None:
        self._dirty.add(name)
        self._revisions[name] += 1
    
    def _swap_records(self, collection: CollectionName, records: list) -> None:
        self._snapshot = self.snapshot.replace_records(collection, records)
        self._mark_dirty(collection)
    
    # =========================================================================
    # GENERIC RECORD OPERATIONS
    # =========================================================================
    
    def get(
        self,
        collection: Union[CollectionName, str],
        record_id: str,
    ) -> Optional[LedgerRecord]:
        """Get a record by id, or None."""
        collection = _record_collection(collection)
        for record in self.snapshot.records(collection):
            if record.id == record_id:
                return record
        return None
    
    def list_records(self, collection: Union[CollectionName, str]) -> list[LedgerRecord]:
        """All records of a collection, newest date first. Undated records go last."""
        collection = _record_collection(collection)
        return sorted(
            self.snapshot.records(collection),
            key=_newest_first,
            reverse=True,
        )
    
    def add(
        self,
        collection: Union[CollectionName, str],
        record: LedgerRecord,
    ) -> LedgerRecord:
        """
        Insert a record.
        
        Raises:
            TypeError: If the record does not belong to the collection
            ValueError: If the id is already used or the date is invalid
        """
        collection = _record_collection(collection)
        record_type = RECORD_TYPES[collection]
        if not isinstance(record, record_type):
            raise TypeError(f"{collection.value} expects {record_type.__name__}")
        if record.record_date is None:
            raise ValueError(f"Invalid record date: {record.date!r}")
        if self.get(collection, record.id) is not None:
            raise ValueError(f"Duplicate {collection.value} id: {record.id}")
        
        self._swap_records(collection, [*self.snapshot.records(collection), record])
        logger.info("record_added", collection=collection.value, record_id=record.id)
        return record
    
    def update(
        self,
        collection: Union[CollectionName, str],
        record_id: str,
        **changes: Any,
    ) -> LedgerRecord:
        """
        Replace fields of an existing record.
        
        Raises:
            RecordNotFoundError: If no record has this id
            ValueError: If the change touches id/created_at or fails validation
        """
        collection = _record_collection(collection)
        records = list(self.snapshot.records(collection))
        for index, record in enumerate(records):
            if record.id == record_id:
                updated = record.with_changes(**changes)
                if updated.record_date is None:
                    raise ValueError(f"Invalid record date: {updated.date!r}")
                records[index] = updated
                self._swap_records(collection, records)
                logger.info(
                    "record_updated",
                    collection=collection.value,
                    record_id=record_id,
                    fields=sorted(changes),
                )
                return updated
        raise RecordNotFoundError(collection, record_id)
    
    def delete(self, collection: Union[CollectionName, str], record_id: str) -> bool:
        """Delete a record by id. Returns False if it did not exist."""
        collection = _record_collection(collection)
        records = self.snapshot.records(collection)
        remaining = [record for record in records if record.id != record_id]
        if len(remaining) == len(records):
            return False
        self._swap_records(collection, remaining)
        logger.info("record_deleted", collection=collection.value, record_id=record_id)
        return True
    
    # =========================================================================
    # TYPED CONSTRUCTORS
    # =========================================================================
    
    def add_production(
        self,
        date: Union[str, date],
        product_name: str,
        volume_produced: float,
        labor_hours: float,
        ingredient_cost: float,
    ) -> ProductionBatch:
        """Record a production batch."""
        batch = ProductionBatch(
            date=date,
            product_name=product_name,
            volume_produced=volume_produced,
            labor_hours=labor_hours,
            ingredient_cost=ingredient_cost,
        )
        return self.add(CollectionName.PRODUCTION, batch)
    
    def add_transaction(
        self,
        date: Union[str, date],
        description: str,
        amount: float,
        kind: Union[TransactionKind, str],
        category: str,
    ) -> LedgerTransaction:
        """Record an income or expense transaction."""
        transaction = LedgerTransaction(
            date=date,
            description=description,
            amount=amount,
            kind=kind,
            category=category,
        )
        return self.add(CollectionName.TRANSACTIONS, transaction)
    
    def add_sale(
        self,
        date: Union[str, date],
        revenue: float,
        volume_sold: float,
    ) -> SaleRecord:
        """Record sales."""
        sale = SaleRecord(date=date, revenue=revenue, volume_sold=volume_sold)
        return self.add(CollectionName.SALES, sale)
    
    # =========================================================================
    # CONFIGURATION
    # =========================================================================
    
    @property
    def config(self) -> LedgerConfig:
        return self.snapshot.effective_config
    
    def update_config(self, **changes: Any) -> LedgerConfig:
        """Change configuration fields (validated)."""
        config = self.config.with_changes(**changes)
        self._snapshot = self.snapshot.with_config(config)
        self._mark_dirty(CollectionName.CONFIG)
        logger.info("config_updated", fields=sorted(changes))
        return config
    
    # =========================================================================
    # PERSISTENCE
    # =========================================================================
    
    async def persist(self, change_description: Optional[str] = None) -> PersistResult:
        """
        Write dirty documents to the backend, in order, one at a time.
        
        Stops at the first failure; the failed document and any not yet
        written stay dirty. Never raises for backend errors and never
        retries.
        """
        snapshot = self.snapshot
        saved: list[str] = []
        for name in CollectionName:
            if name not in self._dirty:
                continue
            revision = self._revisions[name]
            try:
                stored = await self._backend.save(
                    name,
                    snapshot.document(name),
                    change_description or f"Update {name.value}",
                    expected_version=self._versions.get(name),
                )
            except StorageError as e:
                logger.error("persist_failed", document=name.value, error=str(e))
                return PersistResult(
                    success=False,
                    saved=saved,
                    failed=[name.value],
                    error_message=str(e),
                )
            
            self._versions[name] = stored.version
            if self._revisions[name] == revision:
                self._dirty.discard(name)
            saved.append(name.value)
        
        if saved:
            logger.info("record_store_persisted", documents=saved)
        return PersistResult(success=True, saved=saved)
    
    # =========================================================================
    # IMPORT / EXPORT
    # =========================================================================
    
    def export_data(self) -> dict[str, Any]:
        """Whole-ledger backup as a JSON-serializable dict."""
        return {
            "exportVersion": EXPORT_FORMAT_VERSION,
            "exportedAt": datetime.now(timezone.utc).isoformat(),
            **self.snapshot.to_documents(),
        }
    
    def import_data(self, payload: Any) -> LedgerSnapshot:
        """
        Replace the ledger with a backup produced by export_data().
        
        Older single-blob backups ({production, transactions, sales,
        fixedCosts, ...}) are accepted; their configuration is migrated.
        
        Raises:
            ValueError: If the payload is not a ledger backup
        """
        if not isinstance(payload, dict) or not all(
            name.value in payload for name in RECORD_COLLECTIONS
        ):
            raise ValueError("Invalid data format: production, transactions and sales are required")
        
        documents = dict(payload)
        if documents.get(CollectionName.CONFIG.value) is None and "fixedCosts" in payload:
            documents[CollectionName.CONFIG.value] = payload
        
        snapshot = LedgerSnapshot.from_documents(documents)
        if snapshot.config is None:
            snapshot = snapshot.with_config(migrate_config(None))
        self.replace(snapshot)
        logger.info(
            "ledger_imported",
            production=len(snapshot.production),
            transactions=len(snapshot.transactions),
            sales=len(snapshot.sales),
        )
        return snapshot
