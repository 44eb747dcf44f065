"""
Inventory record types shared by the importer, the stores and the UI.
"""

from dataclasses import dataclass, asdict
from datetime import date
from enum import Enum

# Values used when a column is missing or a cell is empty
DEFAULT_CODE = "N/A"
DEFAULT_NAME = "Unnamed"
DEFAULT_LOT = "N/A"
SENTINEL_EXPIRY = date(2099, 1, 1)


class ExpiryStatus(Enum):
    """Expiry risk of a single lot."""

    SAFE = "SAFE"
    WARNING = "WARNING"
    EXPIRED = "EXPIRED"


class ExpiryFilter(str, Enum):
    """Subsets the table, the stat cards and the reports can be narrowed to."""

    ALL = "all"
    UPCOMING = "upcoming"
    EXPIRED = "expired"


@dataclass
class Medication:
    """One lot of one medication as it sits on the shelf."""

    id: str
    code: str
    name: str
    lot: str
    expiry_date: date
    quantity: int

    def to_dict(self) -> dict:
        """JSON-friendly dict (ISO expiry date)."""
        data = asdict(self)
        data["expiry_date"] = self.expiry_date.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Medication":
        expiry = data.get("expiry_date")
        return cls(
            id=str(data["id"]),
            code=str(data.get("code") or DEFAULT_CODE),
            name=str(data.get("name") or DEFAULT_NAME),
            lot=str(data.get("lot") or DEFAULT_LOT),
            expiry_date=date.fromisoformat(expiry) if expiry else SENTINEL_EXPIRY,
            quantity=int(data.get("quantity") or 0),
        )


@dataclass
class InventoryStats:
    """Headline counts shown on the dashboard and in the PDF summary."""

    total_medications: int = 0
    total_units: int = 0
    expiring_soon: int = 0
    expired: int = 0

    @property
    def current(self) -> int:
        """Lots that are neither expired nor inside the warning window."""
        return max(0, self.total_medications - self.expired - self.expiring_soon)

    def summary(self) -> dict:
        """Return a summary dict for display and prompts."""
        return {
            "total_medications": self.total_medications,
            "total_units": self.total_units,
            "expiring_soon": self.expiring_soon,
            "expired": self.expired,
        }
