"""
Tests for task table schema validation and record types.
"""
import pytest
import pandas as pd
import numpy as np
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.data.schema import (
    ClientTaskDemand,
    DemandDataPoint,
    RecurrencePattern,
    RecurringTask,
    validate_required_columns,
    check_optional_columns,
    validate_schema,
    is_missing,
    SchemaValidationError
)
from src.config import REQUIRED_TASK_COLUMNS


class TestValidateRequiredColumns:
    """Tests for required column validation."""

    def test_all_columns_present(self):
        """All required columns present should return valid."""
        df = pd.DataFrame({
            "id": ["t1"],
            "client_id": ["c1"],
            "estimated_hours": [2.0],
            "recurrence_type": ["monthly"],
        })

        is_valid, missing = validate_required_columns(df)

        assert is_valid is True
        assert missing == []

    def test_missing_columns(self):
        """Missing columns should be detected."""
        df = pd.DataFrame({
            "id": ["t1"],
            # Missing other columns
        })

        is_valid, missing = validate_required_columns(df)

        assert is_valid is False
        assert "estimated_hours" in missing
        assert "recurrence_type" in missing
        assert "id" not in missing


class TestValidateSchema:
    """Tests for full schema validation."""

    def test_strict_mode_raises(self):
        """Strict mode should raise on missing columns."""
        df = pd.DataFrame({
            "id": ["t1"],
        })

        with pytest.raises(SchemaValidationError):
            validate_schema(df, strict=True)

    def test_non_strict_returns_result(self):
        """Non-strict mode should return result dict."""
        df = pd.DataFrame({
            "id": ["t1"],
        })

        result = validate_schema(df, strict=False)

        assert result["is_valid"] is False
        assert len(result["missing_required"]) == len(REQUIRED_TASK_COLUMNS) - 1
        assert result["total_rows"] == 1
        assert result["total_columns"] == 1


class TestCheckOptionalColumns:
    """Tests for optional column checking."""

    def test_returns_missing_optional(self):
        """Should return list of missing optional columns."""
        df = pd.DataFrame({
            "id": ["t1"],
            "weekdays": ["1,3"],
        })

        missing = check_optional_columns(df)

        assert "required_skills" in missing
        assert "weekdays" not in missing


def test_is_missing():
    assert is_missing(None) is True
    assert is_missing(np.nan) is True
    assert is_missing(pd.NaT) is True
    assert is_missing(0) is False
    assert is_missing("") is False
    assert is_missing([1, 2]) is False


def test_task_properties():
    task = RecurringTask(id="t1", client_id="c1", estimated_hours=1, recurrence_type="monthly",
                         required_skills=("Tax", "Audit"))
    assert task.primary_skill == "Tax"
    assert task.display_client == "c1"


def test_data_point_totals_come_from_breakdown():
    rows = [
        ClientTaskDemand("t1", "c1", "Acme", "A", "Tax", 2.0, 2.0, RecurrencePattern("monthly", 1, 1.0), "2025-01"),
        ClientTaskDemand("t2", "c1", "Acme", "B", "Tax", 1.5, 3.0, RecurrencePattern("monthly", 1, 2.0), "2025-01"),
        ClientTaskDemand("t3", "c2", "Beta", "C", "Tax", 1.0, 1.0, RecurrencePattern("monthly", 1, 1.0), "2025-01"),
    ]
    point = DemandDataPoint.from_breakdown("Tax", "2025-01", "January 2025", rows, skill="Tax")

    assert point.demand_hours == pytest.approx(6.0)
    assert point.task_count == 3
    assert point.client_count == 2
    assert point.task_breakdown == tuple(rows)
