"""
Loader for uploaded stock spreadsheets.

Pharmacy exports arrive in whatever layout the hospital system produces:
- Title rows above the real header
- Column names in Spanish or English, with accents and abbreviations
- Expiry dates as Excel serials, real dates or text
- Quantities with floating point noise

The loader reads the first sheet as raw rows, lets ColumnDetector find
the header and column roles, and maps every following row into a
Medication. Rows with neither a name nor a code are dropped.
"""

import csv
import io
import logging
import time
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Callable

import pandas as pd

from core.analysis import to_frame
from core.columns import ColumnDetector, ColumnMap
from core.models import (
    DEFAULT_CODE,
    DEFAULT_LOT,
    DEFAULT_NAME,
    SENTINEL_EXPIRY,
    ExpiryStatus,
    Medication,
)
from core.parsers import ExpiryDateParser, QuantityParser, cell_text, is_blank
from core.quality import DataQualityChecker, DataQualityIssue, DataQualityReport

logger = logging.getLogger(__name__)


class WorkbookError(Exception):
    """Base class for spreadsheet import failures."""


class UnsupportedFileError(WorkbookError):
    """The uploaded file is not a spreadsheet we can read."""


class WorkbookReadError(WorkbookError):
    """The file could not be decoded."""


class ColumnDetectionError(WorkbookError):
    """No medication rows could be recognised in the sheet."""


@dataclass
class WorkbookImport:
    """Everything produced by one upload."""

    records: list[Medication]
    header_row: int
    columns: ColumnMap
    skipped_rows: int
    quality_report: DataQualityReport


class WorkbookLoader:
    """
    Turns an uploaded workbook into Medication records.

    Usage:
        loader = WorkbookLoader()
        result = loader.load("stock.xlsx", uploaded_bytes)
        result.records
    """

    EXCEL_ENGINES = {
        ".xlsx": "openpyxl",
        ".xlsm": "openpyxl",
        ".xls": "xlrd",
    }
    SUPPORTED_EXTENSIONS = (*EXCEL_ENGINES, ".csv")

    def __init__(
        self,
        max_scan_rows: int = 15,
        warning_months: int = 3,
        clock: Callable[[], float] = time.time,
    ):
        self.detector = ColumnDetector(max_scan_rows=max_scan_rows)
        self.date_parser = ExpiryDateParser()
        self.quantity_parser = QuantityParser()
        self.warning_months = warning_months
        self._clock = clock

    @classmethod
    def accepted_types(cls) -> list[str]:
        """Extensions without the dot, for the upload widget."""
        return [ext.lstrip(".") for ext in cls.SUPPORTED_EXTENSIONS]

    def load(self, filename: str, content: bytes, today: date | None = None) -> WorkbookImport:
        """Read, detect and map one uploaded file."""
        rows = self.read_rows(filename, content)
        header = self.detector.detect_header_row(rows)
        header_cells = rows[header.row_index] if rows else []
        columns = self.detector.map_columns(header_cells)

        logger.info(
            f"{filename}: header at row {header.row_index} "
            f"(score {header.score}), columns {columns.as_dict()}"
        )

        records, skipped = self.map_rows(rows, header.row_index, columns)
        if not records:
            raise ColumnDetectionError(
                "No medication rows recognised. Make sure the sheet has headers "
                "such as 'Name', 'Quantity', 'Lot' and 'Code'."
            )

        logger.info(f"{filename}: {len(records)} records mapped, {skipped} rows skipped")

        report = self._check_quality(filename, records, columns, today or date.today())
        return WorkbookImport(
            records=records,
            header_row=header.row_index,
            columns=columns,
            skipped_rows=skipped,
            quality_report=report,
        )

    def read_rows(self, filename: str, content: bytes) -> list[list]:
        """Decode the first sheet into raw rows, without header interpretation."""
        suffix = Path(filename).suffix.lower()
        if suffix not in self.SUPPORTED_EXTENSIONS:
            raise UnsupportedFileError(
                f"Unsupported file type '{suffix or filename}'. "
                f"Upload one of: {', '.join(self.SUPPORTED_EXTENSIONS)}"
            )

        if suffix == ".csv":
            return self._read_csv(content)

        try:
            df = pd.read_excel(
                io.BytesIO(content),
                sheet_name=0,
                header=None,
                engine=self.EXCEL_ENGINES[suffix],
            )
        except Exception as e:
            logger.error(f"Failed to read {filename}: {e}")
            raise WorkbookReadError(f"Could not read {filename}: {e}") from e

        df = df.astype(object).where(df.notna(), None)
        return df.values.tolist()

    def _read_csv(self, content: bytes) -> list[list]:
        # Exports from older hospital systems are often latin-1
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            text = content.decode("latin-1")

        # Title rows make CSV exports ragged, so rows are read as-is
        dialect = csv.excel
        try:
            dialect = csv.Sniffer().sniff(text[:4096], delimiters=",;\t")
        except csv.Error:
            pass
        return [row for row in csv.reader(io.StringIO(text), dialect)]

    def map_rows(
        self, rows: list[list], header_row: int, columns: ColumnMap
    ) -> tuple[list[Medication], int]:
        """
        Map the rows after the header into records.

        Returns (records, skipped) where skipped counts non-blank rows
        that had neither a name nor a code.
        """
        stamp = int(self._clock() * 1000)
        records = []
        skipped = 0

        for idx in range(header_row + 1, len(rows)):
            row = rows[idx]
            if not row or all(is_blank(v) for v in row):
                continue

            def cell(field):
                col = columns.get(field)
                if col is None or col >= len(row):
                    return None
                return row[col]

            name = cell_text(cell("name"))
            code = cell_text(cell("code"))
            if not name and not code:
                skipped += 1
                continue

            records.append(
                Medication(
                    id=f"med-{idx}-{stamp}",
                    code=code or DEFAULT_CODE,
                    name=name or DEFAULT_NAME,
                    lot=cell_text(cell("lot")) or DEFAULT_LOT,
                    expiry_date=self.date_parser.parse(cell("expiry")),
                    quantity=self.quantity_parser.parse(cell("quantity")),
                )
            )

        return records, skipped

    def _check_quality(
        self, filename: str, records: list[Medication], columns: ColumnMap, today: date
    ) -> DataQualityReport:
        """Run quality checks on the mapped records."""
        df = to_frame(records, today, self.warning_months)
        checker = DataQualityChecker(filename)

        checker.check_missing_columns(columns.missing_fields, critical={"expiry"})

        if columns.expiry is not None:
            checker.check_default_values(
                "expiry_date", SENTINEL_EXPIRY, severity="warning", label="expiry dates"
            )
        if columns.lot is not None:
            checker.check_default_values("lot", DEFAULT_LOT, severity="info", label="lots")

        # Negative stock usually means a returns line or a typo
        checker.check_outliers("quantity", min_val=0, severity="warning")
        checker.check_duplicates(["code", "lot"], severity="info")

        def check_expired(d: pd.DataFrame) -> list[DataQualityIssue]:
            expired = d["status"] == ExpiryStatus.EXPIRED.value
            count = int(expired.sum())
            if count == 0:
                return []
            return [
                DataQualityIssue(
                    column="expiry_date",
                    issue_type="expired_on_import",
                    severity="info",
                    count=count,
                    percentage=(count / len(d)) * 100,
                    sample_values=d.loc[expired, "name"].head(5).tolist(),
                    description=f"{count:,} lots were already expired when imported",
                )
            ]

        checker.add_check(check_expired)

        return checker.run(df)
