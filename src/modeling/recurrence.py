"""
Recurrence resolution: turn a validated task into a schedule variant and
answer "how many times does it occur in this month".

Variants form a closed set (Daily, Weekly, Monthly, Quarterly, Annual). A task
whose recurrence type is not one of them never becomes a variant:
``resolve_recurrence`` raises ``RecurrenceConfigurationError`` instead.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, Tuple, Union

import pandas as pd

from src.config import RECURRENCE_TYPES, RECURRENCE_ALIASES
from src.data.schema import Period, RecurringTask, is_missing
from src.diagnostics import RecurrenceConfigurationError
from src.modeling.weekday import (
    as_whole_number,
    describe_weekly,
    legacy_weekly_occurrences,
    normalize_weekdays,
    weekday_occurrences,
)

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


# =============================================================================
# FIELD PARSING
# =============================================================================

def normalize_recurrence_type(value: Any) -> Optional[str]:
    """Lower-case a recurrence type and map aliases. Returns None if unknown."""
    if not isinstance(value, str):
        return None
    rtype = value.strip().lower()
    rtype = RECURRENCE_ALIASES.get(rtype, rtype)
    return rtype if rtype in RECURRENCE_TYPES else None


def parse_interval(value: Any) -> int:
    """Recurrence interval as a positive int; missing means 1."""
    if is_missing(value):
        return 1
    interval = as_whole_number(value)
    if interval is None or interval <= 0:
        raise RecurrenceConfigurationError(
            f"Invalid recurrence_interval: {value!r} (must be a positive integer)"
        )
    return interval


def parse_due_date(value: Any) -> Optional[date]:
    """Coerce a due date to ``date``. Blank values give None; junk raises."""
    if isinstance(value, str):
        if not value.strip():
            return None
    elif is_missing(value):
        return None

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    parsed = pd.to_datetime(value, errors="coerce")
    if pd.isna(parsed):
        raise RecurrenceConfigurationError(f"Invalid due_date: {value!r}")
    return parsed.date()


def parse_month_of_year(value: Any) -> Optional[int]:
    """month_of_year as 1-12, None when absent."""
    if is_missing(value):
        return None
    month = as_whole_number(value)
    if month is None or month < 1 or month > 12:
        raise RecurrenceConfigurationError(
            f"Invalid month_of_year: {value!r} (must be 1-12)"
        )
    return month


# =============================================================================
# VARIANTS
# =============================================================================

@dataclass(frozen=True)
class Daily:
    interval: int = 1
    type = "daily"

    def occurrences(self, period: Period) -> float:
        # Actual day count of the month, not a fixed 30.
        return period.days_in_month / self.interval

    def describe(self) -> str:
        return "Every day" if self.interval == 1 else f"Every {self.interval} days"


@dataclass(frozen=True)
class Weekly:
    interval: int = 1
    weekdays: Tuple[int, ...] = ()
    type = "weekly"

    def occurrences(self, period: Period) -> float:
        if self.weekdays:
            return weekday_occurrences(self.weekdays, self.interval)
        return legacy_weekly_occurrences(self.interval)

    def describe(self) -> str:
        return describe_weekly(self.interval, self.weekdays)


@dataclass(frozen=True)
class Monthly:
    interval: int = 1
    type = "monthly"

    def occurrences(self, period: Period) -> float:
        return 1 / self.interval

    def describe(self) -> str:
        return "Every month" if self.interval == 1 else f"Every {self.interval} months"


@dataclass(frozen=True)
class Quarterly:
    """
    Due every ``3 * interval`` months counted from the anchor month.

    With an anchor year the offset is measured in absolute months, so cycles
    that do not divide a year (interval 3 = every 9 months) stay aligned
    across years. Without one, month indexes are compared modulo 12.
    """
    interval: int = 1
    anchor_month: Optional[int] = None
    anchor_year: Optional[int] = None
    type = "quarterly"

    @property
    def cycle_months(self) -> int:
        return 3 * self.interval

    def is_due(self, month_index: int, year: Optional[int] = None) -> bool:
        if self.anchor_month is None:
            return False
        if self.anchor_year is None or year is None:
            offset = (month_index - self.anchor_month) % 12
        else:
            offset = (year * 12 + month_index) - (self.anchor_year * 12 + self.anchor_month)
        return offset % self.cycle_months == 0

    def occurrences(self, period: Period) -> float:
        if self.is_due(period.month_index, period.year):
            return 1 / self.interval
        return 0.0

    def describe(self) -> str:
        if self.anchor_month is None:
            return "Every quarter" if self.interval == 1 else f"Every {self.interval} quarters"
        month = MONTH_NAMES[self.anchor_month]
        if self.interval == 1:
            return f"Quarterly in {month}"
        if self.interval == 2:
            return f"Semi-annually in {month}"
        if self.interval == 4:
            return f"Annually in {month}"
        return f"Every {self.interval} quarters from {month}"


@dataclass(frozen=True)
class Annual:
    """
    One occurrence a year in the target month, spread as 1/interval.

    A task due every 2 years therefore books half its hours in its month each
    year instead of a full allocation every other year.
    """
    interval: int = 1
    target_month: Optional[int] = None
    type = "annual"

    def is_due(self, month_index: int) -> bool:
        return self.target_month is not None and month_index == self.target_month

    def occurrences(self, period: Period) -> float:
        if self.is_due(period.month_index):
            return 1 / self.interval
        return 0.0

    def describe(self) -> str:
        cadence = "Annually" if self.interval == 1 else f"Every {self.interval} years"
        if self.target_month is None:
            return cadence
        return f"{cadence} in {MONTH_NAMES[self.target_month]}"


Recurrence = Union[Daily, Weekly, Monthly, Quarterly, Annual]


# =============================================================================
# RESOLVERS
# =============================================================================

def annual_target_month(month_of_year: Any, due_date: Any) -> Optional[int]:
    """
    0-based month an annual task falls in.

    month_of_year wins over the due date's month. None when neither is set.
    """
    month = parse_month_of_year(month_of_year)
    if month is not None:
        return month - 1
    parsed = parse_due_date(due_date)
    if parsed is not None:
        return parsed.month - 1
    return None


def quarterly_anchor(month_of_year: Any, due_date: Any) -> Tuple[Optional[int], Optional[int]]:
    """(anchor_month 0-11, anchor_year) for a quarterly task; month_of_year wins."""
    month = parse_month_of_year(month_of_year)
    parsed = parse_due_date(due_date)
    anchor_year = parsed.year if parsed is not None else None
    if month is not None:
        return month - 1, anchor_year
    if parsed is not None:
        return parsed.month - 1, anchor_year
    return None, None


def resolve_recurrence(task: RecurringTask) -> Recurrence:
    """
    Build the schedule variant for a task.

    Raises:
        RecurrenceConfigurationError: unknown type, bad interval, bad
            weekdays, bad month or due date.
    """
    rtype = normalize_recurrence_type(task.recurrence_type)
    if rtype is None:
        raise RecurrenceConfigurationError(
            f"Unknown recurrence type: {task.recurrence_type!r}"
        )
    interval = parse_interval(task.recurrence_interval)

    if rtype == "daily":
        return Daily(interval)
    if rtype == "weekly":
        normalized = normalize_weekdays(task.weekdays)
        if not normalized.is_valid:
            raise RecurrenceConfigurationError("; ".join(normalized.errors))
        return Weekly(interval, normalized.weekdays)
    if rtype == "monthly":
        return Monthly(interval)
    if rtype == "quarterly":
        anchor_month, anchor_year = quarterly_anchor(task.month_of_year, task.due_date)
        return Quarterly(interval, anchor_month, anchor_year)
    return Annual(interval, annual_target_month(task.month_of_year, task.due_date))


def is_annual_due(task: RecurringTask, month_index: int) -> bool:
    """Whether an annual task's yearly occurrence falls in month_index (0-11)."""
    recurrence = resolve_recurrence(task)
    return isinstance(recurrence, Annual) and recurrence.is_due(month_index)


def annual_occurrences(task: RecurringTask, month_index: int) -> float:
    """1/interval in the annual task's target month, 0 in every other month."""
    recurrence = resolve_recurrence(task)
    if isinstance(recurrence, Annual) and recurrence.is_due(month_index):
        return 1 / recurrence.interval
    return 0.0


def is_quarter_due(task: RecurringTask, month_index: int, year: int) -> bool:
    """Whether a quarterly task is due in the given month (0-11) and year."""
    recurrence = resolve_recurrence(task)
    return isinstance(recurrence, Quarterly) and recurrence.is_due(month_index, year)


def describe_recurrence(task: RecurringTask) -> str:
    """Readable schedule description; falls back to the raw type when unresolvable."""
    try:
        return resolve_recurrence(task).describe()
    except RecurrenceConfigurationError:
        return str(task.recurrence_type or "Unknown")
