"""
Tests for application wiring from settings.
"""

import asyncio

import pytest

from brewery_ledger.config import Settings, get_settings
from brewery_ledger.orchestrator import create_app_components, open_ledger
from brewery_ledger.services.storage import InMemoryDocumentStore, LocalJsonDocumentStore


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in (
        "STORAGE_BACKEND",
        "DATA_DIR",
        "SYNC_ENABLED",
        "GOOGLE_SHEETS_CREDENTIALS_PATH",
        "GOOGLE_SHEETS_SPREADSHEET_ID",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestCreateAppComponents:
    """Tests for create_app_components()."""
    
    def test_memory_backend(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        store, sync = create_app_components(Settings())
        assert isinstance(store.backend, InMemoryDocumentStore)
        assert sync is None
    
    def test_local_backend_uses_data_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("STORAGE_BACKEND", "local")
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        store, _ = create_app_components(Settings())
        assert isinstance(store.backend, LocalJsonDocumentStore)
        assert store.backend.path_for("sales") == tmp_path / "sales.json"
    
    def test_sync_without_sheets_settings_is_disabled(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        monkeypatch.setenv("SYNC_ENABLED", "true")
        _, sync = create_app_components(Settings())
        assert sync is None
    
    def test_open_ledger_loads_store(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        store, sync = create_app_components(Settings())
        asyncio.run(open_ledger(store, sync))
        assert store.is_loaded
        assert store.config.labor_rate == 150


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
