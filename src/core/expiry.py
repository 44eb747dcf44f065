"""
Expiry risk classification.

A lot is EXPIRED once its expiry date is before today, and WARNING while
it expires within the warning window (three calendar months by default).
"""

from datetime import date

import pandas as pd

from core.models import ExpiryFilter, ExpiryStatus

DEFAULT_WARNING_MONTHS = 3


def warning_cutoff(today: date, months: int = DEFAULT_WARNING_MONTHS) -> date:
    """Last day still inside the warning window (month-end clamped)."""
    return (pd.Timestamp(today) + pd.DateOffset(months=months)).date()


def classify_expiry(
    expiry: date, today: date, warning_months: int = DEFAULT_WARNING_MONTHS
) -> ExpiryStatus:
    """Classify a single expiry date relative to today."""
    if expiry < today:
        return ExpiryStatus.EXPIRED
    if expiry <= warning_cutoff(today, warning_months):
        return ExpiryStatus.WARNING
    return ExpiryStatus.SAFE


def matches_filter(
    expiry: date,
    expiry_filter: ExpiryFilter,
    today: date,
    warning_months: int = DEFAULT_WARNING_MONTHS,
) -> bool:
    """Whether an expiry date belongs to the given subset."""
    if expiry_filter == ExpiryFilter.ALL:
        return True
    status = classify_expiry(expiry, today, warning_months)
    if expiry_filter == ExpiryFilter.EXPIRED:
        return status == ExpiryStatus.EXPIRED
    return status == ExpiryStatus.WARNING
