"""
Tests for the cell parsers.
"""

from datetime import date, datetime

import pandas as pd
import pytest

from core.models import SENTINEL_EXPIRY
from core.parsers import (
    ExpiryDateParser,
    HeaderNormalizer,
    QuantityParser,
    cell_text,
    is_blank,
)


class TestHeaderNormalizer:
    """Header text normalization."""

    @pytest.fixture
    def normalizer(self):
        return HeaderNormalizer()

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Descripción", "descripcion"),
            ("No. Lote", "nolote"),
            ("Fecha de Caducidad", "fechadecaducidad"),
            ("  QTY  ", "qty"),
            (2024, "2024"),
            (None, ""),
        ],
    )
    def test_normalize(self, normalizer, raw, expected):
        assert normalizer.normalize(raw) == expected

    def test_normalize_row(self, normalizer):
        assert normalizer.normalize_row(["Código", None, "Existencia"]) == [
            "codigo",
            "",
            "existencia",
        ]


class TestCellHelpers:
    """Blank detection and text rendering of cells."""

    @pytest.mark.parametrize("value", [None, "", "   ", float("nan"), pd.NaT])
    def test_blank_values(self, value):
        assert is_blank(value)

    @pytest.mark.parametrize("value", [0, "0", "x", date(2025, 1, 1)])
    def test_non_blank_values(self, value):
        assert not is_blank(value)

    def test_integral_float_loses_decimal(self):
        assert cell_text(12345.0) == "12345"

    def test_text_is_stripped(self):
        assert cell_text("  Paracetamol 500mg ") == "Paracetamol 500mg"

    def test_blank_is_empty_text(self):
        assert cell_text(None) == ""


class TestExpiryDateParser:
    """Expiry cell parsing."""

    @pytest.fixture
    def parser(self):
        return ExpiryDateParser()

    def test_unix_epoch_serial(self, parser):
        assert parser.parse(25569) == date(1970, 1, 1)

    def test_serial_dates(self, parser):
        assert parser.parse(44927) == date(2023, 1, 1)
        assert parser.parse(45000) == date(2023, 3, 15)

    def test_serial_time_fraction_dropped(self, parser):
        assert parser.parse(44927.75) == date(2023, 1, 1)

    def test_serial_as_text(self, parser):
        assert parser.parse("44927") == date(2023, 1, 1)

    def test_datetime_cells(self, parser):
        assert parser.parse(datetime(2025, 3, 1, 10, 30)) == date(2025, 3, 1)
        assert parser.parse(pd.Timestamp("2025-03-01")) == date(2025, 3, 1)
        assert parser.parse(date(2025, 3, 1)) == date(2025, 3, 1)

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("2025-07-25", date(2025, 7, 25)),
            ("2025/07/25", date(2025, 7, 25)),
            ("05/27/2025", date(2025, 5, 27)),
            ("27/05/2025", date(2025, 5, 27)),
            ("27-05-2025", date(2025, 5, 27)),
            ("May 27, 2025", date(2025, 5, 27)),
        ],
    )
    def test_text_formats(self, parser, text, expected):
        assert parser.parse(text) == expected

    def test_ambiguous_text_is_month_first(self, parser):
        assert parser.parse("03/04/2025") == date(2025, 3, 4)

    @pytest.mark.parametrize(
        "value", [None, "", "   ", float("nan"), "not a date", True, 0, 0.0, "0", "0.0"]
    )
    def test_unparseable_becomes_sentinel(self, parser, value):
        assert parser.parse(value) == SENTINEL_EXPIRY

    def test_out_of_range_serial_becomes_sentinel(self, parser):
        assert parser.parse(1e9) == SENTINEL_EXPIRY
        assert parser.parse(float("inf")) == SENTINEL_EXPIRY

    def test_custom_default(self):
        parser = ExpiryDateParser(default=date(2000, 1, 1))
        assert parser.parse("") == date(2000, 1, 1)

    def test_custom_format_tried_first(self):
        parser = ExpiryDateParser(custom_formats=["%d.%m.%Y"])
        assert parser.parse("31.12.2025") == date(2025, 12, 31)

    def test_parse_series(self, parser):
        result = parser.parse_series(pd.Series([25569, "2025-07-25", None]))
        assert result.tolist() == [date(1970, 1, 1), date(2025, 7, 25), SENTINEL_EXPIRY]


class TestQuantityParser:
    """Quantity cell parsing."""

    @pytest.fixture
    def parser(self):
        return QuantityParser()

    @pytest.mark.parametrize(
        "value, expected",
        [
            (624.0000000001, 624),
            (12, 12),
            (2.5, 3),
            (2.4, 2),
            (-2.5, -2),
            ("1,250", 1250),
            (" 40 ", 40),
            ("7.6", 8),
        ],
    )
    def test_rounding(self, parser, value, expected):
        assert parser.parse(value) == expected

    @pytest.mark.parametrize("value", [None, "", "abc", float("nan"), float("inf"), True])
    def test_unparseable_is_zero(self, parser, value):
        assert parser.parse(value) == 0

    def test_parse_series(self, parser):
        assert parser.parse_series(pd.Series([1.2, "3", None])).tolist() == [1, 3, 0]
