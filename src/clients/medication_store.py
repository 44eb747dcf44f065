"""
Remote persistence of the inventory in a Supabase table.

The table keeps the column names of the hospital's original schema
(clave, nombre, lote, fecha_caducidad, cantidad); records are mapped
to and from them here and nowhere else.
"""

import logging
from typing import Any

from supabase import Client, create_client

from core.config import Settings
from core.models import Medication
from core.parsers import ExpiryDateParser, QuantityParser

logger = logging.getLogger(__name__)

DEFAULT_TABLE = "medications"


def setup_sql(table: str = DEFAULT_TABLE) -> str:
    """SQL the operator runs once in the Supabase SQL editor."""
    return f"""
-- Run this in the SQL Editor of your Supabase dashboard
create table {table} (
  id text primary key,
  clave text,
  nombre text,
  lote text,
  fecha_caducidad text,
  cantidad integer
);

-- Public access (optional, adjust to your security needs)
alter table {table} enable row level security;
create policy "Allow all for anon users" on {table} for all using (true) with check (true);
""".strip()


SQL_SETUP_SCRIPT = setup_sql()


class StoreError(Exception):
    """A remote store call failed."""

    # PostgREST reports a missing relation with one of these
    TABLE_MISSING_MARKERS = ("Could not find the table", "PGRST205", "404")

    @property
    def table_missing(self) -> bool:
        return any(marker in str(self) for marker in self.TABLE_MISSING_MARKERS)


def _error_message(error: Exception) -> str:
    return getattr(error, "message", None) or str(error) or "Connection error"


class MedicationStore:
    """
    Reads and writes the medications table.

    Usage:
        store = MedicationStore(create_client(url, key))
        records = store.fetch_all()
        store.upsert(new_records)
    """

    def __init__(
        self,
        client: Client,
        table: str = DEFAULT_TABLE,
        page_size: int = 1000,
        chunk_size: int = 500,
    ):
        self.client = client
        self.table = table
        self.page_size = page_size
        self.chunk_size = chunk_size
        self._date_parser = ExpiryDateParser()
        self._quantity_parser = QuantityParser()

    @staticmethod
    def to_row(med: Medication) -> dict[str, Any]:
        """Record -> table row."""
        return {
            "id": med.id,
            "clave": med.code,
            "nombre": med.name,
            "lote": med.lot,
            "fecha_caducidad": med.expiry_date.isoformat(),
            "cantidad": med.quantity,
        }

    def from_row(self, row: dict[str, Any]) -> Medication:
        """Table row -> record."""
        return Medication.from_dict(
            {
                "id": row["id"],
                "code": row.get("clave"),
                "name": row.get("nombre"),
                "lot": row.get("lote"),
                "expiry_date": self._date_parser.parse(row.get("fecha_caducidad")).isoformat(),
                "quantity": self._quantity_parser.parse(row.get("cantidad")),
            }
        )

    def fetch_all(self) -> list[Medication]:
        """Fetch every row, one page at a time."""
        rows: list[dict] = []
        start = 0
        try:
            while True:
                end = start + self.page_size - 1
                response = (
                    self.client.table(self.table)
                    .select("*")
                    .order("id")
                    .range(start, end)
                    .execute()
                )
                page = response.data or []
                rows.extend(page)
                if len(page) < self.page_size:
                    break
                start += self.page_size
        except Exception as e:
            logger.error(f"Fetching {self.table} failed: {e}")
            raise StoreError(_error_message(e)) from e

        logger.info(f"Fetched {len(rows)} rows from {self.table}")
        return [self.from_row(r) for r in rows]

    def upsert(self, records: list[Medication]) -> int:
        """Insert or update records by id, in chunks. Returns rows sent."""
        payload = [self.to_row(m) for m in records]
        try:
            for start in range(0, len(payload), self.chunk_size):
                chunk = payload[start : start + self.chunk_size]
                self.client.table(self.table).upsert(chunk, on_conflict="id").execute()
                logger.debug(f"Upserted {len(chunk)} rows into {self.table}")
        except Exception as e:
            logger.error(f"Upserting into {self.table} failed: {e}")
            raise StoreError(_error_message(e)) from e

        logger.info(f"Upserted {len(payload)} rows into {self.table}")
        return len(payload)

    def delete_all(self) -> None:
        """Delete every row of the table."""
        try:
            # The API refuses unfiltered deletes; no record has id "0"
            self.client.table(self.table).delete().neq("id", "0").execute()
        except Exception as e:
            logger.error(f"Deleting from {self.table} failed: {e}")
            raise StoreError(_error_message(e)) from e

        logger.info(f"Deleted all rows from {self.table}")


def create_store(settings: Settings) -> MedicationStore | None:
    """Build the store from settings; None when Supabase is not configured."""
    if not settings.supabase_configured:
        logger.info("Supabase not configured, running with the local mirror only")
        return None

    client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    return MedicationStore(
        client,
        table=settings.SUPABASE_TABLE,
        page_size=settings.STORE_PAGE_SIZE,
        chunk_size=settings.STORE_CHUNK_SIZE,
    )
