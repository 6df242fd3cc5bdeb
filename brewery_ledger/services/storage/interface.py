"""
Abstract Storage Interface

The ledger is persisted as four named JSON documents: config,
production, transactions and sales. A backend only has to read and
write whole documents; everything else happens in memory.

DESIGN DECISION: Each document carries a version token. A save may pass
the version it last saw; the backend refuses the write with
ConflictError if the stored document has changed since. Passing no
version overwrites unconditionally.

A document that was never written is not an error: it loads with
content=None and version=None.
"""

import hashlib
import json
from abc import ABC, abstractmethod
from typing import Any, Optional, Union

from pydantic import BaseModel

from brewery_ledger.models.snapshot import CollectionName


class StoredDocument(BaseModel):
    """A document as read from or written to a backend."""
    name: CollectionName
    content: Any = None
    version: Optional[str] = None
    
    @property
    def exists(self) -> bool:
        return self.version is not None


def serialize_content(content: Any) -> str:
    """Canonical JSON text for a document body."""
    return json.dumps(content, indent=2, ensure_ascii=False, sort_keys=True)


def content_version(text: str) -> str:
    """Version token for a serialized document: SHA-256 of its text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class DocumentStoreInterface(ABC):
    """
    Abstract interface for ledger document storage.
    
    Any storage implementation (local files, Google Sheets, etc.)
    must implement these methods.
    """
    
    @abstractmethod
    async def load(self, name: Union[CollectionName, str]) -> StoredDocument:
        """
        Read a whole document.
        
        Args:
            name: One of the four logical document names
            
        Returns:
            The document; content and version are None if it does not exist
            
        Raises:
            StorageError: If the backend cannot be read
        """
        pass
    
    @abstractmethod
    async def save(
        self,
        name: Union[CollectionName, str],
        content: Any,
        change_description: str,
        expected_version: Optional[str] = None,
    ) -> StoredDocument:
        """
        Write a whole document.
        
        Args:
            name: One of the four logical document names
            content: JSON-serializable document body
            change_description: Short note stored alongside the write
            expected_version: Version the caller last saw, or None to
                overwrite unconditionally
            
        Returns:
            The stored document with its new version
            
        Raises:
            ConflictError: If expected_version no longer matches
            StorageError: If the write fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConflictError(StorageError):
    """The stored document changed since the caller last read it."""
    
    def __init__(self, name: str, expected: Optional[str], actual: Optional[str]):
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Document '{name}' changed in storage "
            f"(expected version {expected}, found {actual})"
        )


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
