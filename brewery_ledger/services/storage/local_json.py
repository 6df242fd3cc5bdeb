"""
Local JSON File Storage

One pretty-printed JSON file per document inside a data directory:

    data/config.json
    data/production.json
    data/transactions.json
    data/sales.json

This is the working copy the app edits; the remote backend is
reconciled against it by LedgerSync. The version token is the SHA-256
of the file text, so edits made outside the app are detected as
conflicts.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

from brewery_ledger.log import get_logger
from brewery_ledger.models.snapshot import CollectionName
from brewery_ledger.services.storage.interface import (
    ConflictError,
    DocumentStoreInterface,
    StorageError,
    StoredDocument,
    content_version,
    serialize_content,
)


logger = get_logger(__name__)


class LocalJsonDocumentStore(DocumentStoreInterface):
    """Document store backed by JSON files in a directory."""
    
    def __init__(self, data_dir: Union[str, Path]):
        self._data_dir = Path(data_dir)
    
    def path_for(self, name: Union[CollectionName, str]) -> Path:
        return self._data_dir / f"{CollectionName(name).value}.json"
    
    def _read_text(self, path: Path) -> Optional[str]:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}")
    
    async def load(self, name: Union[CollectionName, str]) -> StoredDocument:
        name = CollectionName(name)
        path = self.path_for(name)
        text = self._read_text(path)
        if text is None:
            return StoredDocument(name=name)
        
        try:
            content = json.loads(text)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt JSON in {path}: {e}")
        
        return StoredDocument(
            name=name,
            content=content,
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
        path = self.path_for(name)
        
        if expected_version is not None:
            current = self._read_text(path)
            current_version = content_version(current) if current is not None else None
            if current_version != expected_version:
                raise ConflictError(name.value, expected_version, current_version)
        
        text = serialize_content(content)
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            # Write to a temp file and rename so a crash never leaves half a document
            fd, tmp_name = tempfile.mkstemp(dir=self._data_dir, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
            os.replace(tmp_name, path)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}")
        
        logger.debug(
            "document_written",
            document=name.value,
            change=change_description,
        )
        return StoredDocument(
            name=name,
            content=content,
            version=content_version(text),
        )
