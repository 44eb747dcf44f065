"""
Header row and column role detection for unlabeled stock exports.

Hospital exports rarely share a layout: the header can sit below a few
title rows and columns are named in Spanish or English ("Clave",
"No. Lote", "Fecha de Caducidad", "Existencia", "Qty"...). Detection is
keyword based and works on normalized header text.
"""

import logging
from dataclasses import dataclass

from core.parsers import HeaderNormalizer

logger = logging.getLogger(__name__)

# Keywords per field, already normalized. Order within a list does not matter.
FIELD_KEYWORDS: dict[str, list[str]] = {
    "code": ["clave", "codigo", "id", "sku", "code", "no", "referencia", "ref"],
    "name": [
        "medicamento", "nombre", "producto", "descripcion", "item",
        "medicine", "articulo", "denominacion", "sustancia",
    ],
    "lot": ["lote", "batch", "numlote", "serie", "number", "lot"],
    "expiry": [
        "caducidad", "vencimiento", "fecha", "expiry", "expiration",
        "vence", "cad", "venc",
    ],
    "quantity": [
        "cantidad", "stock", "unidades", "qty", "count", "monto",
        "existencia", "disponible", "saldo", "total",
    ],
}

FIELDS = tuple(FIELD_KEYWORDS)


@dataclass
class ColumnMap:
    """Column index per field; None when the sheet has no such column."""

    code: int | None = None
    name: int | None = None
    lot: int | None = None
    expiry: int | None = None
    quantity: int | None = None

    def get(self, field: str) -> int | None:
        return getattr(self, field)

    @property
    def found_fields(self) -> list[str]:
        return [f for f in FIELDS if self.get(f) is not None]

    @property
    def missing_fields(self) -> list[str]:
        return [f for f in FIELDS if self.get(f) is None]

    def as_dict(self) -> dict[str, int | None]:
        return {f: self.get(f) for f in FIELDS}


@dataclass
class HeaderDetection:
    """Which row was picked as header and how many fields it recognised."""

    row_index: int
    score: int

    @property
    def is_perfect(self) -> bool:
        return self.score == len(FIELDS)


class ColumnDetector:
    """
    Finds the header row and assigns a column to each field.

    Usage:
        detector = ColumnDetector()
        header = detector.detect_header_row(rows)
        columns = detector.map_columns(rows[header.row_index])
    """

    def __init__(
        self,
        keywords: dict[str, list[str]] | None = None,
        max_scan_rows: int = 15,
    ):
        """
        Args:
            keywords: Keyword lists per field (defaults to FIELD_KEYWORDS)
            max_scan_rows: How many leading rows may hold the header
        """
        self.keywords = keywords or FIELD_KEYWORDS
        self.max_scan_rows = max_scan_rows
        self.normalizer = HeaderNormalizer()

    def score_row(self, cells: list) -> int:
        """Number of fields with at least one keyword inside any cell of the row."""
        values = [v for v in self.normalizer.normalize_row(cells) if v]
        return sum(
            1
            for words in self.keywords.values()
            if any(k in v for k in words for v in values)
        )

    def detect_header_row(self, rows: list[list]) -> HeaderDetection:
        """
        Pick the best-scoring row among the first max_scan_rows.

        Ties keep the earliest row; a row recognising every field ends the scan.
        """
        best = HeaderDetection(row_index=0, score=0)
        best_score = -1

        for idx, row in enumerate(rows[: self.max_scan_rows]):
            score = self.score_row(row)
            if score > best_score:
                best_score = score
                best = HeaderDetection(row_index=idx, score=score)
            if score == len(self.keywords):
                break

        logger.debug(f"Header row {best.row_index} recognised {best.score} fields")
        return best

    def map_columns(self, header_cells: list) -> ColumnMap:
        """
        Assign each field the header column that matches it best.

        A candidate is a (field, column) pair where a keyword of the field
        appears in the column header. Exact matches beat substring matches,
        longer keywords beat shorter ones, and earlier columns win ties.
        A column serves at most one field.
        """
        headers = self.normalizer.normalize_row(header_cells)

        candidates = []
        for field_order, (field, words) in enumerate(self.keywords.items()):
            for col, header in enumerate(headers):
                if not header:
                    continue
                matched = [k for k in words if k in header]
                if not matched:
                    continue
                exact = header in words
                longest = max(len(k) for k in matched)
                candidates.append((not exact, -longest, col, field_order, field))

        assigned: dict[str, int] = {}
        claimed: set[int] = set()
        for _, _, col, _, field in sorted(candidates):
            if field in assigned or col in claimed:
                continue
            assigned[field] = col
            claimed.add(col)

        return ColumnMap(**assigned)
