"""
Data quality checks for imported stock sheets.

Each check looks at the mapped records as a DataFrame and reports what
the importer had to guess: columns it could not locate, cells that fell
back to a default, odd quantities, repeated lots. Issues are reported,
never fixed, so the operator can decide whether to re-export the sheet.
"""

from dataclasses import dataclass, field
from typing import Any, Callable

import pandas as pd

SEVERITIES = ("critical", "warning", "info")


@dataclass
class DataQualityIssue:
    """One finding about the imported data."""

    column: str
    issue_type: str  # missing_column, defaulted, outlier, duplicate, expired_on_import
    severity: str  # one of SEVERITIES
    count: int
    percentage: float
    sample_values: list[Any] = field(default_factory=list)
    description: str = ""


@dataclass
class DataQualityReport:
    """All findings for one uploaded file."""

    source_name: str
    total_rows: int
    issues: list[DataQualityIssue] = field(default_factory=list)

    def by_severity(self, severity: str) -> list[DataQualityIssue]:
        return [i for i in self.issues if i.severity == severity]

    @property
    def critical_issues(self) -> list[DataQualityIssue]:
        return self.by_severity("critical")

    @property
    def warning_issues(self) -> list[DataQualityIssue]:
        return self.by_severity("warning")

    @property
    def has_critical_issues(self) -> bool:
        return bool(self.critical_issues)

    def summary(self) -> dict:
        """Issue counts per severity, for display."""
        counts = {s: len(self.by_severity(s)) for s in SEVERITIES}
        return {
            "source": self.source_name,
            "total_rows": self.total_rows,
            "critical": counts["critical"],
            "warnings": counts["warning"],
            "info": counts["info"],
        }


Check = Callable[[pd.DataFrame], list[DataQualityIssue]]


def _masked_issue(
    df: pd.DataFrame,
    mask: pd.Series,
    column: str,
    issue_type: str,
    severity: str,
    description: str,
    sample_column: str | None = None,
) -> list[DataQualityIssue]:
    """Turn a row mask into zero or one issue."""
    count = int(mask.sum())
    if count == 0:
        return []
    samples = []
    if sample_column and sample_column in df.columns:
        samples = df.loc[mask, sample_column].head(5).tolist()
    return [
        DataQualityIssue(
            column=column,
            issue_type=issue_type,
            severity=severity,
            count=count,
            percentage=count / len(df) * 100,
            sample_values=samples,
            description=description.format(count=count),
        )
    ]


class DataQualityChecker:
    """
    Collects checks and runs them over the imported records.

    Usage:
        report = (
            DataQualityChecker("stock.xlsx")
            .check_missing_columns(["lot"])
            .check_outliers("quantity", min_val=0)
            .run(df)
        )

    Custom checks are plain functions added with add_check().
    """

    def __init__(self, source_name: str):
        self.source_name = source_name
        self._checks: list[Check] = []

    def add_check(self, check_fn: Check) -> "DataQualityChecker":
        """Register a custom check. Returns self for chaining."""
        self._checks.append(check_fn)
        return self

    def check_missing_columns(
        self, missing: list[str], critical: set[str] | None = None
    ) -> "DataQualityChecker":
        """One issue per field the sheet had no column for."""
        critical = critical or set()

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            rows = len(df)
            return [
                DataQualityIssue(
                    column=name,
                    issue_type="missing_column",
                    severity="critical" if name in critical else "warning",
                    count=rows,
                    percentage=100.0 if rows else 0.0,
                    description=f"No '{name}' column recognised; defaults were used",
                )
                for name in missing
            ]

        return self.add_check(check)

    def check_default_values(
        self, column: str, default: Any, severity: str = "warning", label: str = "values"
    ) -> "DataQualityChecker":
        """Count cells that ended up holding the default value."""

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            if column not in df.columns:
                return []
            return _masked_issue(
                df,
                df[column] == default,
                column,
                "defaulted",
                severity,
                f"{{count:,}} {label} defaulted to {default}",
                sample_column="name",
            )

        return self.add_check(check)

    def check_duplicates(
        self, key_columns: list[str], severity: str = "warning"
    ) -> "DataQualityChecker":
        """Rows sharing the same key columns (all copies are counted)."""

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            if df.empty:
                return []
            return _masked_issue(
                df,
                df.duplicated(subset=key_columns, keep=False),
                ", ".join(key_columns),
                "duplicate",
                severity,
                f"{{count:,}} rows share the same {' + '.join(key_columns)}",
            )

        return self.add_check(check)

    def check_outliers(
        self,
        column: str,
        min_val: float | None = None,
        max_val: float | None = None,
        severity: str = "warning",
    ) -> "DataQualityChecker":
        """Numeric values below min_val or above max_val."""

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            if column not in df.columns:
                return []
            values = pd.to_numeric(df[column], errors="coerce")
            mask = pd.Series(False, index=values.index)
            if min_val is not None:
                mask |= values < min_val
            if max_val is not None:
                mask |= values > max_val
            return _masked_issue(
                df,
                mask,
                column,
                "outlier",
                severity,
                "{count:,} values outside expected range",
                sample_column=column,
            )

        return self.add_check(check)

    def run(self, df: pd.DataFrame) -> DataQualityReport:
        """Run every registered check."""
        issues = [issue for check_fn in self._checks for issue in check_fn(df)]
        return DataQualityReport(source_name=self.source_name, total_rows=len(df), issues=issues)
