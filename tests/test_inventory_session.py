"""
Tests for the session inventory: local mirror plus remote store.
"""

from datetime import date

import pytest

from clients.inventory_session import InvalidDeletionPassword, InventorySession, SyncStatus
from clients.local_cache import LocalInventoryCache
from clients.medication_store import MedicationStore, StoreError
from core.models import Medication

PASSWORD = "farmaciahospitalaria"
MISSING_TABLE = "Could not find the table 'public.medications' in the schema cache"


@pytest.fixture
def cache(tmp_path):
    return LocalInventoryCache(tmp_path / "inventory.json")


@pytest.fixture
def new_lot():
    return Medication("med-9-1", "C9", "Insulina", "L9", date(2026, 3, 1), 40)


class TestStartup:
    def test_loads_local_mirror(self, cache, medications):
        cache.save(medications)
        session = InventorySession(cache, None, PASSWORD)
        assert session.records == medications
        assert session.status == SyncStatus.IDLE
        assert not session.has_remote

    def test_refresh_without_store_is_noop(self, cache, medications):
        cache.save(medications)
        session = InventorySession(cache, None, PASSWORD)
        session.refresh()
        assert session.records == medications
        assert session.status == SyncStatus.IDLE


class TestRefresh:
    """Pulling the remote table."""

    def test_remote_replaces_local(self, cache, medications, fake_supabase, make_remote_row):
        cache.save(medications)
        store = MedicationStore(fake_supabase([make_remote_row(1), make_remote_row(2)]))
        session = InventorySession(cache, store, PASSWORD)

        session.refresh()

        assert [m.id for m in session.records] == ["med-1", "med-2"]
        assert session.records[0].name == "Medication 1"
        assert session.status == SyncStatus.SUCCESS
        assert cache.load() == session.records

    def test_empty_remote_keeps_local(self, cache, medications, fake_supabase):
        cache.save(medications)
        session = InventorySession(cache, MedicationStore(fake_supabase()), PASSWORD)

        session.refresh()

        assert session.records == medications
        assert session.status == SyncStatus.SUCCESS

    def test_failure_keeps_local(self, cache, medications, fake_supabase):
        cache.save(medications)
        store = MedicationStore(fake_supabase(error=RuntimeError("timeout")))
        session = InventorySession(cache, store, PASSWORD)

        session.refresh()

        assert session.records == medications
        assert session.status == SyncStatus.ERROR
        assert session.error_message == "timeout"
        assert not session.table_missing

    def test_missing_table_flagged(self, cache, fake_supabase):
        store = MedicationStore(fake_supabase(error=RuntimeError(MISSING_TABLE)))
        session = InventorySession(cache, store, PASSWORD)
        session.refresh()
        assert session.table_missing


class TestImport:
    """Appending uploaded records."""

    def test_local_only(self, cache, medications, new_lot):
        cache.save(medications)
        session = InventorySession(cache, None, PASSWORD)

        assert session.import_records([new_lot])

        assert session.records == medications + [new_lot]
        assert cache.load() == medications + [new_lot]

    def test_pushes_only_new_records(self, cache, medications, new_lot, fake_supabase):
        cache.save(medications)
        client = fake_supabase()
        session = InventorySession(cache, MedicationStore(client), PASSWORD)

        assert session.import_records([new_lot])

        assert list(client.tables["medications"]) == ["med-9-1"]
        assert session.status == SyncStatus.SUCCESS
        assert len(session.records) == 5

    def test_remote_failure_keeps_records_locally(self, cache, new_lot, fake_supabase):
        store = MedicationStore(fake_supabase(error=RuntimeError(MISSING_TABLE)))
        session = InventorySession(cache, store, PASSWORD)

        assert not session.import_records([new_lot])

        assert session.records == [new_lot]
        assert cache.load() == [new_lot]
        assert session.status == SyncStatus.ERROR
        assert session.table_missing


class TestClearAll:
    """Password-protected wipe."""

    def test_wrong_password(self, cache, medications):
        cache.save(medications)
        session = InventorySession(cache, None, PASSWORD)

        with pytest.raises(InvalidDeletionPassword):
            session.clear_all("wrong")

        assert session.records == medications
        assert cache.load() == medications

    def test_clears_remote_and_local(self, cache, fake_supabase, make_remote_row):
        client = fake_supabase([make_remote_row(1)])
        session = InventorySession(cache, MedicationStore(client), PASSWORD)
        session.refresh()

        session.clear_all(PASSWORD)

        assert session.records == []
        assert client.tables["medications"] == {}
        assert not cache.path.exists()

    def test_remote_failure_removes_nothing(self, cache, medications, fake_supabase):
        cache.save(medications)
        client = fake_supabase()
        session = InventorySession(cache, MedicationStore(client), PASSWORD)
        client.error = RuntimeError("timeout")

        with pytest.raises(StoreError):
            session.clear_all(PASSWORD)

        assert session.records == medications
        assert cache.load() == medications
        assert session.status == SyncStatus.ERROR


def test_stats(cache, medications, today):
    cache.save(medications)
    session = InventorySession(cache, None, PASSWORD)
    stats = session.stats(today)
    assert (stats.total_medications, stats.expired, stats.expiring_soon) == (4, 1, 2)
