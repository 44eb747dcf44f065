"""
Inventory health analysis functions.

Computes:
- Headline stats (totals, expiring soon, expired)
- Expiry-filtered and searched views of the inventory
- Chart data (top stock, expiry breakdown)
"""

from datetime import date

import numpy as np
import pandas as pd

from core.expiry import DEFAULT_WARNING_MONTHS, classify_expiry, matches_filter, warning_cutoff
from core.models import ExpiryFilter, ExpiryStatus, InventoryStats, Medication

FRAME_COLUMNS = ["id", "code", "name", "lot", "expiry_date", "quantity"]

STATUS_LABELS = {
    ExpiryStatus.EXPIRED.value: "Expired",
    ExpiryStatus.WARNING.value: "Upcoming",
    ExpiryStatus.SAFE.value: "Current",
}


def compute_inventory_stats(
    records: list[Medication],
    today: date,
    warning_months: int = DEFAULT_WARNING_MONTHS,
) -> InventoryStats:
    """Single pass over the records producing the dashboard counts."""
    stats = InventoryStats(total_medications=len(records))
    for med in records:
        stats.total_units += med.quantity
        status = classify_expiry(med.expiry_date, today, warning_months)
        if status == ExpiryStatus.EXPIRED:
            stats.expired += 1
        elif status == ExpiryStatus.WARNING:
            stats.expiring_soon += 1
    return stats


def filter_by_expiry(
    records: list[Medication],
    expiry_filter: ExpiryFilter,
    today: date,
    warning_months: int = DEFAULT_WARNING_MONTHS,
) -> list[Medication]:
    """Keep the records belonging to the given subset."""
    return [
        m for m in records
        if matches_filter(m.expiry_date, expiry_filter, today, warning_months)
    ]


def search_medications(records: list[Medication], term: str) -> list[Medication]:
    """Case-insensitive search over name, code and lot."""
    needle = (term or "").strip().lower()
    if not needle:
        return list(records)
    return [
        m for m in records
        if needle in m.name.lower()
        or needle in m.code.lower()
        or needle in m.lot.lower()
    ]


def to_frame(
    records: list[Medication],
    today: date,
    warning_months: int = DEFAULT_WARNING_MONTHS,
) -> pd.DataFrame:
    """
    Tabular view of the records for display and export.

    Adds:
    - status (SAFE / WARNING / EXPIRED)
    - days_to_expiry (negative once expired)
    """
    df = pd.DataFrame([m.to_dict() for m in records], columns=FRAME_COLUMNS)
    expiry = pd.to_datetime(df["expiry_date"])
    today_ts = pd.Timestamp(today)
    cutoff_ts = pd.Timestamp(warning_cutoff(today, warning_months))

    df["expiry_date"] = expiry.dt.date
    df["quantity"] = df["quantity"].astype(int)
    df["status"] = np.select(
        [expiry < today_ts, expiry <= cutoff_ts],
        [ExpiryStatus.EXPIRED.value, ExpiryStatus.WARNING.value],
        default=ExpiryStatus.SAFE.value,
    )
    df["days_to_expiry"] = (expiry - today_ts).dt.days
    return df


def top_stock(records: list[Medication], n: int = 5, label_length: int = 10) -> pd.DataFrame:
    """
    Records with the highest quantities, for the "Top Stock" chart.

    Long names are shortened for axis labels ("Paracetamol 500mg" -> "Paracetamo...").
    """
    ranked = sorted(records, key=lambda m: m.quantity, reverse=True)[:n]
    df = pd.DataFrame(
        [m.to_dict() for m in ranked], columns=FRAME_COLUMNS
    )
    df["short_name"] = df["name"].apply(
        lambda s: s[:label_length] + "..." if len(s) > label_length else s
    )
    return df


def expiry_breakdown(stats: InventoryStats) -> list[dict]:
    """Slices for the expiry status donut chart."""
    return [
        {"name": "Expired", "value": stats.expired, "color": "#ef4444", "filter": ExpiryFilter.EXPIRED},
        {"name": "Upcoming", "value": stats.expiring_soon, "color": "#f59e0b", "filter": ExpiryFilter.UPCOMING},
        {"name": "Current", "value": stats.current, "color": "#10b981", "filter": ExpiryFilter.ALL},
    ]
