"""
Inventory state for one app session.

Holds the in-memory record list, mirrors it to the local cache and keeps
the remote store in step. Remote failures never lose data: records stay
in memory and in the local mirror, and the sync status reports the error.
"""

import logging
from datetime import date
from enum import Enum

from clients.local_cache import LocalInventoryCache
from clients.medication_store import MedicationStore, StoreError
from core.analysis import compute_inventory_stats
from core.models import InventoryStats, Medication

logger = logging.getLogger(__name__)


class SyncStatus(Enum):
    """State of the last exchange with the remote store."""

    IDLE = "idle"
    SYNCING = "syncing"
    ERROR = "error"
    SUCCESS = "success"


class InvalidDeletionPassword(Exception):
    """The password given to wipe the inventory is wrong."""


class InventorySession:
    """
    In-memory inventory backed by a local mirror and an optional remote store.

    Usage:
        session = InventorySession(LocalInventoryCache(path), store, delete_password)
        session.refresh()
        session.import_records(result.records)
    """

    def __init__(
        self,
        cache: LocalInventoryCache,
        store: MedicationStore | None,
        delete_password: str,
        warning_months: int = 3,
    ):
        self.cache = cache
        self.store = store
        self.delete_password = delete_password
        self.warning_months = warning_months
        self.records: list[Medication] = cache.load()
        self.status = SyncStatus.IDLE
        self.error_message: str | None = None
        self._table_missing = False

    @property
    def has_remote(self) -> bool:
        return self.store is not None

    @property
    def table_missing(self) -> bool:
        """True when the last remote error says the table does not exist."""
        return self.status == SyncStatus.ERROR and self._table_missing

    def _fail(self, error: StoreError) -> None:
        self.status = SyncStatus.ERROR
        self.error_message = str(error)
        self._table_missing = error.table_missing

    def _succeed(self) -> None:
        self.status = SyncStatus.SUCCESS
        self.error_message = None
        self._table_missing = False

    def refresh(self) -> None:
        """
        Pull the remote table.

        Remote data replaces the local records only when the table is not
        empty, so a fresh table never wipes what is cached locally.
        """
        if self.store is None:
            return

        self.status = SyncStatus.SYNCING
        try:
            remote = self.store.fetch_all()
        except StoreError as e:
            logger.warning(f"Refresh failed, keeping {len(self.records)} local records: {e}")
            self._fail(e)
            return

        if remote:
            self.records = remote
            self.cache.save(self.records)
        self._succeed()

    def import_records(self, new_records: list[Medication]) -> bool:
        """
        Append imported records and push them to the remote store.

        Returns False when the records were only saved locally.
        """
        self.records = self.records + list(new_records)
        self.cache.save(self.records)

        if self.store is None:
            return True

        self.status = SyncStatus.SYNCING
        try:
            self.store.upsert(list(new_records))
        except StoreError as e:
            logger.warning(f"{len(new_records)} records saved locally only: {e}")
            self._fail(e)
            return False

        self._succeed()
        return True

    def clear_all(self, password: str) -> None:
        """
        Delete every record, remotely first, then locally.

        Raises InvalidDeletionPassword for a wrong password and StoreError
        when the remote delete fails; nothing is removed in either case.
        """
        if password != self.delete_password:
            raise InvalidDeletionPassword("The deletion password is incorrect.")

        if self.store is not None:
            self.status = SyncStatus.SYNCING
            try:
                self.store.delete_all()
            except StoreError as e:
                self._fail(e)
                raise
            self._succeed()

        self.records = []
        self.cache.clear()
        logger.info("Inventory cleared")

    def stats(self, today: date) -> InventoryStats:
        """Dashboard counts for the current records."""
        return compute_inventory_stats(self.records, today, self.warning_months)
