"""
Application Wiring

Builds the record store and, when configured, the remote sync from
settings. The presentation layer only talks to what this module returns.
"""

from typing import Optional

from brewery_ledger.config import Settings, StorageBackend, get_settings
from brewery_ledger.log import get_logger
from brewery_ledger.repository import RecordStore
from brewery_ledger.services.storage import (
    DocumentStoreInterface,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    LocalJsonDocumentStore,
)
from brewery_ledger.sync import LedgerSync


logger = get_logger(__name__)

SYNC_STATE_FILE = "sync_state.json"


def create_backend(settings: Settings) -> DocumentStoreInterface:
    """Document store for the working copy of the ledger."""
    app = settings.app
    if app.storage_backend == StorageBackend.MEMORY:
        return InMemoryDocumentStore()
    if app.storage_backend == StorageBackend.SHEETS:
        return GoogleSheetsDocumentStore()
    return LocalJsonDocumentStore(app.data_path)


def create_app_components(
    settings: Optional[Settings] = None,
) -> tuple[RecordStore, Optional[LedgerSync]]:
    """
    Factory function to create all application components.
    
    Returns:
        (record_store, ledger_sync) - ledger_sync is None when remote
        sync is disabled or Google Sheets is not configured.
    """
    settings = settings or get_settings()
    store = RecordStore(create_backend(settings))
    
    sync = None
    if settings.app.sync_enabled and settings.app.storage_backend != StorageBackend.SHEETS:
        try:
            sync = LedgerSync(
                store,
                GoogleSheetsDocumentStore(),
                state_path=settings.app.data_path / SYNC_STATE_FILE,
            )
        except Exception as e:
            # Sheets not configured - continue with the local ledger only
            logger.warning("sync_not_configured", error=str(e))
            sync = None
    
    return store, sync


async def open_ledger(store: RecordStore, sync: Optional[LedgerSync] = None) -> None:
    """
    Startup sequence: load the working copy, then reconcile with the
    remote if one is configured. A failed pull leaves the local ledger
    usable.
    """
    await store.refresh()
    if sync is not None:
        result = await sync.pull()
        if not result.success:
            logger.warning("startup_pull_failed", error=result.error_message)
