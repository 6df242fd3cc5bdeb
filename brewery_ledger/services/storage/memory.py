"""
In-Memory Storage

Keeps documents in a dict. Used by tests and when the app runs with
STORAGE_BACKEND=memory. Content is stored serialized so callers can
never mutate what was saved.
"""

import json
from typing import Any, Optional, Union

from brewery_ledger.models.snapshot import CollectionName
from brewery_ledger.services.storage.interface import (
    ConflictError,
    DocumentStoreInterface,
    StoredDocument,
    content_version,
    serialize_content,
)


class InMemoryDocumentStore(DocumentStoreInterface):
    """Dict-backed document store with the same version semantics as the real ones."""
    
    def __init__(self, documents: Optional[dict[str, Any]] = None):
        self._texts: dict[CollectionName, str] = {}
        self.change_log: list[tuple[str, str]] = []
        for name, content in (documents or {}).items():
            self._texts[CollectionName(name)] = serialize_content(content)
    
    async def load(self, name: Union[CollectionName, str]) -> StoredDocument:
        name = CollectionName(name)
        text = self._texts.get(name)
        if text is None:
            return StoredDocument(name=name)
        return StoredDocument(
            name=name,
            content=json.loads(text),
            version=content_version(text),
        )
    
    async def save(
        self,
        name: Union[CollectionName, str],
        content: Any,
        change_description: str,
        expected_version: Optional[str] = None,
    ) -> StoredDocument:
        name = CollectionName(name)
        current = self._texts.get(name)
        current_version = content_version(current) if current is not None else None
        if expected_version is not None and expected_version != current_version:
            raise ConflictError(name.value, expected_version, current_version)
        
        text = serialize_content(content)
        self._texts[name] = text
        self.change_log.append((name.value, change_description))
        return StoredDocument(
            name=name,
            content=json.loads(text),
            version=content_version(text),
        )
