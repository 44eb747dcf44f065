# Adapters around the outside world: uploaded workbooks, the local mirror
# and the remote Supabase table, plus the session that ties them together

from .workbook_loader import WorkbookLoader, WorkbookImport, WorkbookError
from .local_cache import LocalInventoryCache
from .medication_store import MedicationStore, StoreError, create_store
from .inventory_session import InventorySession, SyncStatus, InvalidDeletionPassword

__all__ = [
    "WorkbookLoader",
    "WorkbookImport",
    "WorkbookError",
    "LocalInventoryCache",
    "MedicationStore",
    "StoreError",
    "create_store",
    "InventorySession",
    "SyncStatus",
    "InvalidDeletionPassword",
]
