"""
Remote Sync

Reconciles the record store's working copy with a remote backend.

pull(): load the remote documents, merge them with the local snapshot
        (last writer wins per record) and persist the result locally.
push(): write every local document to the remote.

The remote versions seen by the last pull are sent with each push, so a
push over a remote that changed in the meantime fails with a conflict
instead of silently discarding the other device's records. Pull again,
then push.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from brewery_ledger.engine.merge import merge_snapshots
from brewery_ledger.log import get_logger
from brewery_ledger.models.records import parse_timestamp
from brewery_ledger.models.results import SyncResult
from brewery_ledger.models.snapshot import CollectionName, LedgerSnapshot
from brewery_ledger.repository import RecordStore
from brewery_ledger.services.storage import DocumentStoreInterface, StorageError


logger = get_logger(__name__)


def _record_count(snapshot: LedgerSnapshot) -> int:
    return len(snapshot.production) + len(snapshot.transactions) + len(snapshot.sales)


def _read_last_sync(path: Optional[Path]) -> Optional[datetime]:
    if path is None:
        return None
    try:
        state = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("sync_state_unreadable", path=str(path), error=str(e))
        return None
    if not isinstance(state, dict):
        return None
    return parse_timestamp(state.get("lastSyncAt"))


def _write_last_sync(path: Optional[Path], synced_at: datetime) -> None:
    if path is None:
        return
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps({"lastSyncAt": synced_at.isoformat()}, indent=2),
            encoding="utf-8",
        )
    except OSError as e:
        # Push already succeeded
        logger.warning("sync_state_not_saved", path=str(path), error=str(e))


class LedgerSync:
    """
    Pull/push between a RecordStore and a remote document store.
    
    When `state_path` is given, the time of the last successful push is
    kept in that JSON file so it survives restarts.
    """
    
    def __init__(
        self,
        store: RecordStore,
        remote: DocumentStoreInterface,
        state_path: Optional[Union[str, Path]] = None,
    ):
        self._store = store
        self._remote = remote
        self._remote_versions: dict[CollectionName, Optional[str]] = {}
        self._state_path = Path(state_path) if state_path is not None else None
        self.last_sync_at: Optional[datetime] = _read_last_sync(self._state_path)
    
    async def load_remote(self) -> LedgerSnapshot:
        """
        Read the remote snapshot and remember its document versions.
        
        Raises:
            StorageError: If the remote cannot be read
        """
        documents: dict[str, Any] = {}
        for name in CollectionName:
            stored = await self._remote.load(name)
            documents[name.value] = stored.content
            self._remote_versions[name] = stored.version
        return LedgerSnapshot.from_documents(documents)
    
    async def pull(self) -> SyncResult:
        """Merge the remote ledger into the local one and save it locally."""
        try:
            remote = await self.load_remote()
        except StorageError as e:
            logger.error("sync_pull_failed", error=str(e))
            return SyncResult(success=False, direction="pull", error_message=str(e))
        
        merged = merge_snapshots(remote, self._store.snapshot)
        self._store.replace(merged)
        persisted = await self._store.persist("Merge remote data")
        if not persisted.success:
            return SyncResult(
                success=False,
                direction="pull",
                error_message=persisted.error_message,
            )
        
        synced_at = datetime.now(timezone.utc)
        logger.info("sync_pulled", records=_record_count(merged))
        return SyncResult(
            success=True,
            direction="pull",
            synced_at=synced_at,
            records=_record_count(merged),
        )
    
    async def push(self) -> SyncResult:
        """Write all four local documents to the remote, one at a time."""
        snapshot = self._store.snapshot
        synced_at = datetime.now(timezone.utc)
        message = f"Sync data - {synced_at.isoformat()}"
        
        for name in CollectionName:
            try:
                stored = await self._remote.save(
                    name,
                    snapshot.document(name),
                    message,
                    expected_version=self._remote_versions.get(name),
                )
            except StorageError as e:
                logger.error("sync_push_failed", document=name.value, error=str(e))
                return SyncResult(success=False, direction="push", error_message=str(e))
            self._remote_versions[name] = stored.version
        
        self.last_sync_at = synced_at
        _write_last_sync(self._state_path, synced_at)
        logger.info("sync_pushed", records=_record_count(snapshot))
        return SyncResult(
            success=True,
            direction="push",
            synced_at=synced_at,
            records=_record_count(snapshot),
        )
    
    async def synchronize(self) -> SyncResult:
        """Pull then push. Returns the first failure, or the push result."""
        pulled = await self.pull()
        if not pulled.success:
            return pulled
        return await self.push()
