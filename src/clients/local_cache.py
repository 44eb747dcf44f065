"""
On-disk mirror of the inventory.

Keeps the last known record list next to the app so the inventory
survives restarts and stays usable when the remote store is down.
"""

import json
import logging
from pathlib import Path

from core.models import Medication

logger = logging.getLogger(__name__)


class LocalInventoryCache:
    """JSON file holding the current record list."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> list[Medication]:
        """Load the mirrored records; a missing or unreadable file means no records."""
        if not self.path.exists():
            return []

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            return [Medication.from_dict(item) for item in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable inventory cache {self.path}: {e}")
            return []

    def save(self, records: list[Medication]) -> None:
        """Replace the mirror with the given records."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump([m.to_dict() for m in records], f, ensure_ascii=False, indent=2)
        tmp_path.replace(self.path)
        logger.debug(f"Mirrored {len(records)} records to {self.path}")

    def clear(self) -> None:
        """Remove the mirror file."""
        self.path.unlink(missing_ok=True)
