"""Services package."""

from brewery_ledger.services.storage import (
    ConflictError,
    ConnectionError,
    DocumentStoreInterface,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    LocalJsonDocumentStore,
    NotFoundError,
    StorageError,
    StoredDocument,
)

__all__ = [
    # Storage services
    "ConflictError",
    "ConnectionError",
    "DocumentStoreInterface",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
    "LocalJsonDocumentStore",
    "NotFoundError",
    "StorageError",
    "StoredDocument",
]
