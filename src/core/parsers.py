"""
Reusable parsers for spreadsheet exports of pharmacy stock.

These parsers handle the messy reality of hospital inventory exports:
- Headers written in Spanish or English, with accents and punctuation
- Expiry dates stored as Excel serial numbers, real dates or free text
- Quantities with floating point noise (624.0000000001)
"""

import math
import numbers
import re
import unicodedata
from datetime import date, datetime, timedelta

import pandas as pd

from core.models import SENTINEL_EXPIRY

# Day 0 of the Excel 1900 date system (serial 25569 == 1970-01-01)
EXCEL_EPOCH = date(1899, 12, 30)

MIN_DATE = pd.Timestamp.min.date() + timedelta(days=1)
MAX_DATE = pd.Timestamp.max.date()

_NUMERIC_RE = re.compile(r"^-?\d+(\.\d+)?$")


def is_blank(value) -> bool:
    """True for None, NaN/NaT and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def cell_text(value) -> str:
    """
    Render a spreadsheet cell as text.

    Integral floats lose their ".0" so numeric codes read like the sheet
    shows them (12345.0 -> "12345").
    """
    if is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


class HeaderNormalizer:
    """
    Normalizes header cells for keyword matching.

    - Lowercase
    - Accents stripped ("Descripción" -> "descripcion")
    - Everything outside [a-z0-9] removed ("No. Lote" -> "nolote")
    """

    _STRIP_RE = re.compile(r"[^a-z0-9]")

    def normalize(self, value) -> str:
        """Normalize a single header cell."""
        if is_blank(value):
            return ""
        text = unicodedata.normalize("NFD", str(value).lower())
        text = "".join(ch for ch in text if not unicodedata.combining(ch))
        return self._STRIP_RE.sub("", text)

    def normalize_row(self, cells: list) -> list[str]:
        """Normalize every cell of a row."""
        return [self.normalize(c) for c in cells]


class ExpiryDateParser:
    """
    Parses expiry cells into calendar dates.

    Handles:
    - Excel serial numbers (1900 date system)
    - datetime / date / pandas Timestamp cells
    - Text dates in the formats listed in DATE_FORMATS

    Anything empty, unparseable or a 0 placeholder becomes SENTINEL_EXPIRY
    so the lot is never reported as expired by mistake.
    To extend: Add new format patterns to DATE_FORMATS.
    """

    # Ordered by specificity
    DATE_FORMATS = [
        "%Y-%m-%d",      # ISO: 2025-07-25
        "%Y/%m/%d",      # ISO slash: 2025/07/25
        "%m/%d/%Y",      # US: 05/27/2025
        "%d/%m/%Y",      # Day first: 27/05/2025
        "%d-%m-%Y",      # Day first dash: 27-05-2025
        "%m/%d/%y",      # US short: 05/27/25
        "%d/%m/%y",      # Day first short: 27/05/25
        "%d %b %Y",      # 27 May 2025
        "%b %d %Y",      # May 27 2025
        "%B %d, %Y",     # May 27, 2025
    ]

    def __init__(self, custom_formats: list[str] | None = None, default: date = SENTINEL_EXPIRY):
        """
        Args:
            custom_formats: Additional date formats to try (prepended to defaults)
            default: Date returned for empty or unparseable cells
        """
        self.formats = (custom_formats or []) + self.DATE_FORMATS
        self.default = default
        self._cache: dict[str, date] = {}

    def from_serial(self, serial: float) -> date:
        """Convert an Excel serial number to a date; the time fraction is dropped."""
        try:
            return EXCEL_EPOCH + timedelta(days=math.floor(serial))
        except (OverflowError, ValueError):
            return self.default

    def parse(self, value) -> date:
        """Parse a single expiry cell."""
        result = self._parse_value(value)
        # Dates pandas cannot represent would break the tabular views
        if not MIN_DATE <= result <= MAX_DATE:
            return self.default
        return result

    def _parse_value(self, value) -> date:
        if is_blank(value) or isinstance(value, bool):
            return self.default

        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, numbers.Number):
            number = float(value)
            # 0 is a placeholder for "no date", not 1899-12-30
            if not math.isfinite(number) or number == 0:
                return self.default
            return self.from_serial(number)

        text = str(value).strip()
        if text in self._cache:
            return self._cache[text]

        result = self._parse_text(text)
        self._cache[text] = result
        return result

    def _parse_text(self, text: str) -> date:
        # Numbers exported as text (CSV) are still serials
        if _NUMERIC_RE.match(text):
            number = float(text)
            return self.default if number == 0 else self.from_serial(number)

        for fmt in self.formats:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue

        parsed = pd.to_datetime(text, errors="coerce")
        if pd.isna(parsed):
            return self.default
        return parsed.date()

    def parse_series(self, series: pd.Series) -> pd.Series:
        """Parse an entire pandas Series of expiry cells."""
        return series.apply(self.parse)


class QuantityParser:
    """
    Turns quantity cells into whole units.

    Excel often stores counts with decimal noise (624.0000000001), so
    values are rounded to the nearest integer, halves rounding up.
    Thousand separators in text cells are tolerated ("1,250" -> 1250).
    """

    def parse(self, value) -> int:
        """Parse a single quantity cell; missing or unparseable -> 0."""
        if is_blank(value) or isinstance(value, bool):
            return 0

        if isinstance(value, str):
            text = value.strip().replace(",", "").replace(" ", "")
            try:
                number = float(text)
            except ValueError:
                return 0
        else:
            try:
                number = float(value)
            except (TypeError, ValueError):
                return 0

        if not math.isfinite(number):
            return 0
        return math.floor(number + 0.5)

    def parse_series(self, series: pd.Series) -> pd.Series:
        """Parse an entire pandas Series of quantities."""
        return series.apply(self.parse)
