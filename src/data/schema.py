"""
Core record types and task-table schema validation.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from src.config import REQUIRED_TASK_COLUMNS, OPTIONAL_TASK_COLUMNS


class SchemaValidationError(Exception):
    """Raised when required columns are missing."""
    pass


# =============================================================================
# RECORDS
# =============================================================================

@dataclass(frozen=True)
class RecurringTask:
    """
    A recurring task definition as stored upstream.

    Values are kept as received; nothing here is trusted until the task
    has been through ``src.data.validation.validate_task``.
    """
    id: Any
    client_id: Any
    estimated_hours: Any
    recurrence_type: Any
    name: str = ""
    client_name: Optional[str] = None
    recurrence_interval: Any = 1
    weekdays: Any = None
    month_of_year: Any = None
    due_date: Any = None
    required_skills: Sequence[str] = ()
    preferred_staff_id: Optional[str] = None
    preferred_staff_name: Optional[str] = None
    is_active: Any = True

    @property
    def display_client(self) -> str:
        return self.client_name or str(self.client_id)

    @property
    def primary_skill(self) -> Optional[str]:
        skills = self.required_skills
        if isinstance(skills, str):
            # A single skill stored as text
            return skills.strip() or None
        if isinstance(skills, (list, tuple)) and skills:
            return skills[0]
        return None


@dataclass(frozen=True)
class Period:
    """One calendar month."""
    start: date
    end: date

    @property
    def month_key(self) -> str:
        return f"{self.start.year}-{self.start.month:02d}"

    @property
    def month_label(self) -> str:
        return self.start.strftime("%B %Y")

    @property
    def month_index(self) -> int:
        """0-based month (January = 0)."""
        return self.start.month - 1

    @property
    def year(self) -> int:
        return self.start.year

    @property
    def days_in_month(self) -> int:
        return (self.end - self.start).days + 1


@dataclass(frozen=True)
class RecurrencePattern:
    type: str
    interval: int
    occurrences_this_month: float


@dataclass(frozen=True)
class ClientTaskDemand:
    """One task's demand in one month."""
    recurring_task_id: str
    client_id: str
    client_name: str
    task_name: str
    skill_type: str
    estimated_hours: float
    monthly_hours: float
    recurrence_pattern: RecurrencePattern
    month: str
    preferred_staff_id: Optional[str] = None
    preferred_staff_name: Optional[str] = None


@dataclass(frozen=True)
class DemandDataPoint:
    """Aggregated demand for one dimension value in one month."""
    dimension: str
    month: str
    month_label: str
    demand_hours: float
    task_count: int
    client_count: int
    task_breakdown: Tuple[ClientTaskDemand, ...] = ()
    skill: Optional[str] = None
    staff_id: Optional[str] = None
    staff_name: Optional[str] = None
    is_unassigned: bool = False

    @classmethod
    def from_breakdown(cls,
                       dimension: str,
                       month: str,
                       month_label: str,
                       breakdown: Sequence[ClientTaskDemand],
                       **extra: Any) -> "DemandDataPoint":
        """Build a data point whose totals are derived from its breakdown."""
        breakdown = tuple(breakdown)
        return cls(
            dimension=dimension,
            month=month,
            month_label=month_label,
            demand_hours=sum(item.monthly_hours for item in breakdown),
            task_count=len(breakdown),
            client_count=len({item.client_id for item in breakdown}),
            task_breakdown=breakdown,
            **extra,
        )


# =============================================================================
# TASK TABLE SCHEMA
# =============================================================================

def validate_required_columns(df: pd.DataFrame) -> Tuple[bool, List[str]]:
    """
    Validate that required task columns exist in dataframe.
    Returns (is_valid, missing_columns).
    """
    missing = [col for col in REQUIRED_TASK_COLUMNS if col not in df.columns]
    return len(missing) == 0, missing


def check_optional_columns(df: pd.DataFrame) -> List[str]:
    """Return the optional task columns missing from the dataframe."""
    return [col for col in OPTIONAL_TASK_COLUMNS if col not in df.columns]


def validate_schema(df: pd.DataFrame, strict: bool = True) -> Dict:
    """
    Full schema validation for a task table.

    Args:
        df: DataFrame of task rows
        strict: If True, raise error on missing required columns

    Returns:
        Dict with validation results
    """
    is_valid, missing_required = validate_required_columns(df)
    missing_optional = check_optional_columns(df)

    result = {
        "is_valid": is_valid,
        "missing_required": missing_required,
        "missing_optional": missing_optional,
        "total_columns": len(df.columns),
        "total_rows": len(df),
    }

    if strict and not is_valid:
        raise SchemaValidationError(
            f"Missing required columns in task table: {missing_required}"
        )

    return result


def is_missing(value: Any) -> bool:
    """True for None, NaN, NaT and pandas NA scalars."""
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False
