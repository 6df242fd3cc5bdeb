"""
Storage Services Package

Provides the abstract document store interface and its implementations.
The local JSON store holds the working copy; Google Sheets is the remote.
"""

from brewery_ledger.services.storage.interface import (
    ConflictError,
    ConnectionError,
    DocumentStoreInterface,
    NotFoundError,
    StorageError,
    StoredDocument,
    content_version,
    serialize_content,
)
from brewery_ledger.services.storage.memory import InMemoryDocumentStore
from brewery_ledger.services.storage.local_json import LocalJsonDocumentStore
from brewery_ledger.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
)

__all__ = [
    # Interface
    "DocumentStoreInterface",
    "StoredDocument",
    "content_version",
    "serialize_content",
    # Exceptions
    "ConflictError",
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryDocumentStore",
    "LocalJsonDocumentStore",
    # Google Sheets implementation
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
]
