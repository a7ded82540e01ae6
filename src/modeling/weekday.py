"""
Weekday occurrence maths for weekly recurring tasks.

Weekdays are integers 0-6 with Sunday = 0.
"""
from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Tuple

from src.config import AVERAGE_WEEKS_PER_MONTH, LEGACY_WEEKS_PER_MONTH, WEEKDAY_NAMES

MIN_WEEKDAY = 0
MAX_WEEKDAY = 6

WORKING_WEEK = (1, 2, 3, 4, 5)
WEEKEND = (0, 6)


@dataclass
class WeekdayNormalization:
    """Outcome of checking a raw weekday collection."""
    is_valid: bool
    weekdays: Tuple[int, ...] = ()
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def as_whole_number(value: Any) -> Optional[int]:
    """Return value as an int if it is a whole number, else None. Bools are rejected."""
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        as_float = float(value)
        if math.isfinite(as_float) and as_float.is_integer():
            return int(as_float)
    return None


def weekday_name(weekday: int) -> str:
    if weekday < MIN_WEEKDAY or weekday > MAX_WEEKDAY:
        return f"Invalid({weekday})"
    return WEEKDAY_NAMES[weekday]


def normalize_weekdays(weekdays: Any) -> WeekdayNormalization:
    """
    Validate and deduplicate a weekday collection.

    None and empty collections are valid and yield no weekdays, which means the
    legacy weekly formula applies. Any value that is not a whole number in
    0-6 makes the whole collection invalid.
    """
    if weekdays is None:
        return WeekdayNormalization(is_valid=True)

    if isinstance(weekdays, (str, bytes, dict)) or not hasattr(weekdays, "__iter__"):
        return WeekdayNormalization(
            is_valid=False,
            errors=[f"Weekdays must be a list of integers, received: {type(weekdays).__name__}"],
        )

    raw = list(weekdays)
    if not raw:
        return WeekdayNormalization(
            is_valid=True,
            warnings=["Empty weekdays list provided, will use legacy calculation"],
        )

    errors: List[str] = []
    warnings: List[str] = []
    invalid = []
    seen: List[int] = []
    duplicates: List[int] = []

    for index, value in enumerate(raw):
        day = as_whole_number(value)
        if day is None:
            invalid.append(f"{value!r} at index {index} (must be an integer)")
            continue
        if day < MIN_WEEKDAY or day > MAX_WEEKDAY:
            invalid.append(f"{value!r} at index {index} (out of range {MIN_WEEKDAY}-{MAX_WEEKDAY})")
            continue
        if day in seen:
            if day not in duplicates:
                duplicates.append(day)
        else:
            seen.append(day)

    if invalid:
        errors.append(f"Invalid weekday values: {', '.join(invalid)}")

    if duplicates:
        names = ", ".join(weekday_name(d) for d in duplicates)
        warnings.append(f"Duplicate weekdays removed: {names}")

    return WeekdayNormalization(
        is_valid=not errors,
        weekdays=tuple(sorted(seen)) if not errors else (),
        errors=errors,
        warnings=warnings,
    )


def weekday_occurrences(weekdays: Iterable[int], interval: float = 1) -> float:
    """
    Monthly occurrences of a task that runs on the given weekdays every
    ``interval`` weeks.

    occurrences = AVERAGE_WEEKS_PER_MONTH * len(weekdays) / interval
    """
    days = set(weekdays)
    if not days:
        raise ValueError("Cannot calculate occurrences for an empty weekday set")
    if interval <= 0:
        raise ValueError(f"Invalid interval: {interval}. Must be greater than 0.")

    return AVERAGE_WEEKS_PER_MONTH * len(days) / interval


def legacy_weekly_occurrences(interval: float = 1) -> float:
    """Weekly occurrences when no weekdays are set: the week counts once."""
    if interval <= 0:
        raise ValueError(f"Invalid interval: {interval}. Must be greater than 0.")
    return LEGACY_WEEKS_PER_MONTH / interval


def describe_weekdays(weekdays: Iterable[int]) -> str:
    """Human-readable summary of a weekday set."""
    days = sorted(set(weekdays))
    if not days:
        return "No specific days"
    if len(days) == 7:
        return "Every day"
    if tuple(days) == WORKING_WEEK:
        return "Weekdays (Mon-Fri)"
    if tuple(days) == WEEKEND:
        return "Weekends (Sat-Sun)"

    names = [weekday_name(d) for d in days]
    if len(names) <= 3:
        return ", ".join(names)
    return f"{', '.join(names[:2])} and {len(names) - 2} more days"


def describe_weekly(interval: int = 1, weekdays: Optional[Iterable[int]] = None) -> str:
    """
    Describe a weekly schedule, e.g. "Monday, Wednesday, Friday every 2 weeks".

    Invalid weekdays fall back to the plain "Every week" wording.
    """
    cadence = "every week" if interval == 1 else f"every {interval} weeks"
    normalized = normalize_weekdays(weekdays)
    if not normalized.is_valid or not normalized.weekdays:
        return cadence[0].upper() + cadence[1:]
    names = ", ".join(weekday_name(d) for d in normalized.weekdays)
    return f"{names} {cadence}"
