"""
Tests for the import quality checks.
"""

import pandas as pd
import pytest

from core.quality import DataQualityChecker, DataQualityIssue


@pytest.fixture
def frame():
    return pd.DataFrame(
        {
            "code": ["A1", "A1", "B2", "N/A"],
            "name": ["Aspirina", "Aspirina", "Insulina", "Unnamed"],
            "lot": ["L1", "L1", "N/A", "N/A"],
            "quantity": [10, -3, 5, 0],
        }
    )


class TestDataQualityChecker:
    """Individual checks and the combined report."""

    def test_missing_columns(self, frame):
        report = (
            DataQualityChecker("stock.xlsx")
            .check_missing_columns(["code", "expiry"], critical={"expiry"})
            .run(frame)
        )
        severities = {i.column: i.severity for i in report.issues}
        assert severities == {"code": "warning", "expiry": "critical"}
        assert report.has_critical_issues

    def test_default_values(self, frame):
        report = (
            DataQualityChecker("stock.xlsx")
            .check_default_values("lot", "N/A", severity="info", label="lots")
            .run(frame)
        )
        [issue] = report.issues
        assert issue.count == 2
        assert issue.percentage == 50.0
        assert issue.sample_values == ["Insulina", "Unnamed"]
        assert issue.description == "2 lots defaulted to N/A"

    def test_outliers(self, frame):
        report = DataQualityChecker("s").check_outliers("quantity", min_val=0).run(frame)
        [issue] = report.issues
        assert issue.issue_type == "outlier"
        assert issue.sample_values == [-3]

    def test_duplicates(self, frame):
        report = DataQualityChecker("s").check_duplicates(["code", "lot"]).run(frame)
        [issue] = report.issues
        assert issue.count == 2

    def test_clean_frame_has_no_issues(self):
        df = pd.DataFrame({"code": ["A"], "name": ["X"], "lot": ["L"], "quantity": [1]})
        report = (
            DataQualityChecker("s")
            .check_default_values("lot", "N/A")
            .check_outliers("quantity", min_val=0)
            .check_duplicates(["code", "lot"])
            .run(df)
        )
        assert report.issues == []

    def test_unknown_column_ignored(self, frame):
        report = DataQualityChecker("s").check_outliers("price", min_val=0).run(frame)
        assert report.issues == []

    def test_custom_check_and_summary(self, frame):
        def always(df):
            return [DataQualityIssue("name", "custom", "info", 1, 25.0)]

        report = (
            DataQualityChecker("stock.xlsx")
            .check_outliers("quantity", min_val=0)
            .add_check(always)
            .run(frame)
        )
        assert report.summary() == {
            "source": "stock.xlsx",
            "total_rows": 4,
            "critical": 0,
            "warnings": 1,
            "info": 1,
        }
