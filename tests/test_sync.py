"""
Tests for pull/push between the record store and a remote backend.
"""

import asyncio
import json
from datetime import datetime, timezone

import pytest

from brewery_ledger.models import CollectionName, LedgerConfig
from brewery_ledger.repository import RecordStore
from brewery_ledger.services.storage import InMemoryDocumentStore, StorageError
from brewery_ledger.sync import LedgerSync

from conftest import make_sale


EARLY = datetime(2024, 3, 1, 9, tzinfo=timezone.utc)
LATE = datetime(2024, 3, 2, 9, tzinfo=timezone.utc)


class UnreachableRemote(InMemoryDocumentStore):
    async def load(self, name):
        raise StorageError("Remote unreachable")


@pytest.fixture
def remote():
    """Remote ledger with one sale and its own configuration."""
    return InMemoryDocumentStore({
        "config": LedgerConfig(labor_rate=200).to_document(),
        "production": [],
        "transactions": [],
        "sales": [make_sale("2024-03-01", 100, 10, id="remote-sale", created_at=EARLY).to_document()],
    })


@pytest.fixture
def local_store():
    """Local ledger with a different sale."""
    backend = InMemoryDocumentStore({
        "config": LedgerConfig(labor_rate=150).to_document(),
        "sales": [make_sale("2024-03-02", 50, 5, id="local-sale", created_at=EARLY).to_document()],
    })
    store = RecordStore(backend)
    asyncio.run(store.refresh())
    return store


class TestPull:
    """Tests for LedgerSync.pull()."""
    
    def test_pull_merges_and_persists_locally(self, local_store, remote):
        sync = LedgerSync(local_store, remote)
        result = asyncio.run(sync.pull())
        
        assert result.success
        assert result.direction == "pull"
        assert result.records == 2
        assert [s.id for s in local_store.snapshot.sales] == ["remote-sale", "local-sale"]
        assert local_store.config.labor_rate == 200
        assert local_store.dirty == frozenset()
        assert local_store.backend.change_log[-1][1] == "Merge remote data"
    
    def test_pull_keeps_newer_local_edit(self, local_store, remote):
        local_store.replace(local_store.snapshot.replace_records(
            CollectionName.SALES,
            [make_sale("2024-03-01", 999, 10, id="remote-sale", created_at=LATE)],
        ))
        asyncio.run(LedgerSync(local_store, remote).pull())
        assert local_store.get(CollectionName.SALES, "remote-sale").revenue == 999
    
    def test_pull_failure_leaves_local_untouched(self, local_store):
        before = local_store.snapshot
        result = asyncio.run(LedgerSync(local_store, UnreachableRemote()).pull())
        
        assert not result.success
        assert result.direction == "pull"
        assert "unreachable" in result.error_message
        assert local_store.snapshot == before


class TestPush:
    """Tests for LedgerSync.push() and synchronize()."""
    
    def test_push_writes_all_documents(self, local_store, remote):
        sync = LedgerSync(local_store, remote)
        result = asyncio.run(sync.push())
        
        assert result.success
        assert result.direction == "push"
        assert sync.last_sync_at == result.synced_at
        assert [name for name, _ in remote.change_log] == [
            "config", "production", "transactions", "sales",
        ]
        assert all(message.startswith("Sync data - ") for _, message in remote.change_log)
        stored = asyncio.run(remote.load("sales"))
        assert [s["id"] for s in stored.content] == ["local-sale"]
    
    def test_synchronize_converges(self, local_store, remote):
        sync = LedgerSync(local_store, remote)
        result = asyncio.run(sync.synchronize())
        
        assert result.success
        assert result.records == 2
        remote_sales = asyncio.run(remote.load("sales")).content
        assert {s["id"] for s in remote_sales} == {"remote-sale", "local-sale"}
    
    def test_push_after_remote_change_conflicts(self, local_store, remote):
        sync = LedgerSync(local_store, remote)
        assert asyncio.run(sync.pull()).success
        
        asyncio.run(remote.save("sales", [], "Other device"))
        result = asyncio.run(sync.push())
        
        assert not result.success
        assert result.direction == "push"
        assert "changed in storage" in result.error_message
        assert sync.last_sync_at is None
    
    def test_pull_again_then_push_succeeds(self, local_store, remote):
        sync = LedgerSync(local_store, remote)
        asyncio.run(sync.pull())
        asyncio.run(remote.save("sales", [], "Other device"))
        assert not asyncio.run(sync.push()).success
        
        assert asyncio.run(sync.synchronize()).success
    
    def test_synchronize_stops_on_pull_failure(self, local_store):
        remote = UnreachableRemote()
        result = asyncio.run(LedgerSync(local_store, remote).synchronize())
        assert not result.success
        assert result.direction == "pull"
        assert remote.change_log == []


class TestUnreadableEntriesInSync:
    """Entries that cannot be read as records survive pull and push."""
    
    def test_remote_entry_survives_pull_and_push(self, local_store):
        odd = {"id": "odd", "date": "2024-03-03", "revenue": 10, "volumeSold": -4}
        remote = InMemoryDocumentStore({
            "sales": [make_sale("2024-03-01", 100, 10, id="remote-sale", created_at=EARLY).to_document(), odd],
        })
        sync = LedgerSync(local_store, remote)
        assert asyncio.run(sync.synchronize()).success
        
        assert odd in asyncio.run(local_store.backend.load("sales")).content
        assert odd in asyncio.run(remote.load("sales")).content
        assert [s.id for s in local_store.snapshot.sales] == ["remote-sale", "local-sale"]
    
    def test_local_entry_survives_push(self, remote):
        odd = {"id": "odd", "date": "2024-03-03", "amount": 5, "kind": "refund"}
        store = RecordStore(InMemoryDocumentStore({"transactions": [odd]}))
        asyncio.run(store.refresh())
        assert asyncio.run(LedgerSync(store, remote).synchronize()).success
        assert asyncio.run(remote.load("transactions")).content == [odd]
    
    def test_readable_copy_replaces_unreadable_one(self, local_store):
        broken = {"id": "remote-sale", "date": "2024-03-01", "revenue": 1, "volumeSold": -1}
        remote = InMemoryDocumentStore({"sales": [broken]})
        local_store.add(
            CollectionName.SALES,
            make_sale("2024-03-01", 100, 10, id="remote-sale", created_at=LATE),
        )
        assert asyncio.run(LedgerSync(local_store, remote).pull()).success
        assert broken not in local_store.snapshot.document(CollectionName.SALES)
        assert local_store.get(CollectionName.SALES, "remote-sale").revenue == 100


class TestLastSyncState:
    """The last successful push time is kept across restarts."""
    
    def test_push_records_time_in_state_file(self, local_store, remote, tmp_path):
        state_path = tmp_path / "sync_state.json"
        result = asyncio.run(LedgerSync(local_store, remote, state_path=state_path).push())
        
        restarted = LedgerSync(local_store, remote, state_path=state_path)
        assert restarted.last_sync_at == result.synced_at
        assert "lastSyncAt" in json.loads(state_path.read_text(encoding="utf-8"))
    
    def test_no_state_file_yet(self, local_store, remote, tmp_path):
        sync = LedgerSync(local_store, remote, state_path=tmp_path / "missing.json")
        assert sync.last_sync_at is None
    
    def test_corrupt_state_file_is_ignored(self, local_store, remote, tmp_path):
        state_path = tmp_path / "sync_state.json"
        state_path.write_text("{oops", encoding="utf-8")
        assert LedgerSync(local_store, remote, state_path=state_path).last_sync_at is None
    
    def test_failed_push_keeps_previous_time(self, local_store, remote, tmp_path):
        state_path = tmp_path / "sync_state.json"
        sync = LedgerSync(local_store, remote, state_path=state_path)
        first = asyncio.run(sync.synchronize())
        asyncio.run(remote.save("sales", [], "Other device"))
        assert not asyncio.run(sync.push()).success
        
        restarted = LedgerSync(local_store, remote, state_path=state_path)
        assert restarted.last_sync_at == first.synced_at


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
