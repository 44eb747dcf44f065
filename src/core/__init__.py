# Core reusable components for pharmacy inventory tracking
# Parsing, column detection, expiry classification, reports and AI insights

from .models import Medication, InventoryStats, ExpiryStatus, ExpiryFilter
from .parsers import ExpiryDateParser, QuantityParser, HeaderNormalizer
from .columns import ColumnDetector, ColumnMap, HeaderDetection
from .expiry import classify_expiry, matches_filter, warning_cutoff
from .quality import DataQualityReport, DataQualityChecker
from .analysis import (
    compute_inventory_stats,
    filter_by_expiry,
    search_medications,
    to_frame,
    top_stock,
    expiry_breakdown,
)
from .insights import InsightGenerator, InventoryInsightReport, InsightsUnavailableError
from .reports import generate_medication_report, generate_insight_report

__all__ = [
    "Medication",
    "InventoryStats",
    "ExpiryStatus",
    "ExpiryFilter",
    "ExpiryDateParser",
    "QuantityParser",
    "HeaderNormalizer",
    "ColumnDetector",
    "ColumnMap",
    "HeaderDetection",
    "classify_expiry",
    "matches_filter",
    "warning_cutoff",
    "DataQualityReport",
    "DataQualityChecker",
    "compute_inventory_stats",
    "filter_by_expiry",
    "search_medications",
    "to_frame",
    "top_stock",
    "expiry_breakdown",
    "InsightGenerator",
    "InventoryInsightReport",
    "InsightsUnavailableError",
    "generate_medication_report",
    "generate_insight_report",
]
