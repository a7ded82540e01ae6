"""
Task table loading and forecast month ranges.
"""
from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd

from src.config import config
from src.data.schema import Period, RecurringTask, is_missing, validate_schema

DateLike = Union[str, date, pd.Timestamp]


def _load_file(filepath: Path) -> Optional[pd.DataFrame]:
    """Load a single file (parquet or csv). Returns None if neither exists."""
    filepath = Path(filepath)
    if filepath.suffix in (".parquet", ".csv") and filepath.exists():
        if filepath.suffix == ".parquet":
            return pd.read_parquet(filepath)
        return pd.read_csv(filepath)

    parquet_path = filepath.with_suffix(".parquet")
    csv_path = filepath.with_suffix(".csv")
    if parquet_path.exists():
        return pd.read_parquet(parquet_path)
    elif csv_path.exists():
        return pd.read_csv(csv_path)
    return None


# =============================================================================
# FIELD CLEANING
# =============================================================================

def _clean(value: Any) -> Any:
    """NaN / NaT / blank strings become None."""
    if isinstance(value, str):
        return value.strip() or None
    if not isinstance(value, (list, tuple, set)) and is_missing(value):
        return None
    return value


def _parse_list(value: Any, separators: str = ",;|") -> Any:
    """
    Lists stored as text ("1,3,5", "[1, 3, 5]", "Tax;Audit") become lists.

    Numeric-looking items become numbers; anything else is left as text so
    validation can report it.
    """
    value = _clean(value)
    if value is None or not isinstance(value, str):
        return list(value) if isinstance(value, (tuple, set)) else value

    text = value
    if text.startswith("["):
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            text = text.strip("[]")

    for sep in separators[1:]:
        text = text.replace(sep, separators[0])
    items = [item.strip().strip("'\"") for item in text.split(separators[0])]
    parsed: List[Any] = []
    for item in items:
        if not item:
            continue
        try:
            parsed.append(int(item))
        except ValueError:
            parsed.append(item)
    return parsed


def _parse_bool(value: Any) -> Any:
    value = _clean(value)
    if isinstance(value, str):
        lowered = value.lower()
        if lowered in ("true", "1", "yes", "y", "t"):
            return True
        if lowered in ("false", "0", "no", "n", "f"):
            return False
    if value is None:
        return True
    if hasattr(value, "item"):
        # numpy scalars
        value = value.item()
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    return value


def _as_text_id(value: Any) -> Optional[str]:
    """Identifier as text; integral floats from NaN-holed int columns lose the ".0"."""
    value = _clean(value)
    if value is None:
        return None
    if hasattr(value, "item"):
        value = value.item()
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def task_from_record(record: Mapping[str, Any]) -> RecurringTask:
    """Build a RecurringTask from one storage row. Values are not validated here."""
    skills = _parse_list(record.get("required_skills"))
    if skills is None:
        skills = ()
    elif isinstance(skills, list):
        skills = tuple(str(s) for s in skills)
    else:
        skills = (str(skills),)

    interval = _clean(record.get("recurrence_interval"))
    staff_name = _clean(record.get("preferred_staff_name"))
    client_name = _clean(record.get("client_name"))

    return RecurringTask(
        id=_clean(record.get("id")),
        client_id=_clean(record.get("client_id")),
        estimated_hours=_clean(record.get("estimated_hours")),
        recurrence_type=_clean(record.get("recurrence_type")),
        name=_clean(record.get("name")) or "",
        client_name=str(client_name) if client_name is not None else None,
        recurrence_interval=1 if interval is None else interval,
        weekdays=_parse_list(record.get("weekdays")),
        month_of_year=_clean(record.get("month_of_year")),
        due_date=_clean(record.get("due_date")),
        required_skills=skills,
        preferred_staff_id=_as_text_id(record.get("preferred_staff_id")),
        preferred_staff_name=str(staff_name) if staff_name is not None else None,
        is_active=_parse_bool(record.get("is_active")),
    )


def tasks_from_records(records: Iterable[Mapping[str, Any]]) -> List[RecurringTask]:
    """Build tasks from storage rows (dicts with snake_case field names)."""
    return [task_from_record(record) for record in records]


def tasks_from_frame(df: pd.DataFrame) -> List[RecurringTask]:
    """
    Build tasks from a task table.

    Raises:
        SchemaValidationError: if required columns are missing.
    """
    validate_schema(df, strict=True)
    if len(df) == 0:
        return []
    return tasks_from_records(df.to_dict("records"))


def load_tasks(filepath: Path) -> Optional[List[RecurringTask]]:
    """Load tasks from a parquet or csv task table. None when the file is missing."""
    df = _load_file(filepath)
    if df is None:
        return None
    return tasks_from_frame(df)


# =============================================================================
# MONTH RANGES
# =============================================================================

def month_period(month: DateLike) -> Period:
    """The calendar month containing ``month``."""
    p = pd.Period(pd.Timestamp(month), freq="M")
    return Period(start=p.start_time.date(), end=p.end_time.date())


def month_periods(start: DateLike, count: Optional[int] = None) -> List[Period]:
    """``count`` consecutive calendar months starting at the month of ``start``."""
    if count is None:
        count = config.forecast_months
    if count < 0:
        raise ValueError(f"Month count must be non-negative, got {count}")
    first = pd.Period(pd.Timestamp(start), freq="M")
    return [
        Period(start=p.start_time.date(), end=p.end_time.date())
        for p in pd.period_range(first, periods=count, freq="M")
    ] if count else []


def periods_between(start: DateLike, end: DateLike) -> List[Period]:
    """Every calendar month from the month of ``start`` to the month of ``end`` inclusive."""
    first = pd.Period(pd.Timestamp(start), freq="M")
    last = pd.Period(pd.Timestamp(end), freq="M")
    if last < first:
        raise ValueError(f"End month {last} is before start month {first}")
    return [
        Period(start=p.start_time.date(), end=p.end_time.date())
        for p in pd.period_range(first, last, freq="M")
    ]


def month_keys(periods: Sequence[Period]) -> List[str]:
    return [p.month_key for p in periods]
