"""
Task input validation.

Malformed tasks are excluded from demand calculation and reported back to the
caller; validation never raises for a single bad record.
"""
from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np

from src.config import RECURRENCE_TYPES, config
from src.data.schema import RecurringTask, is_missing
from src.diagnostics import DiagnosticLog, RecurrenceConfigurationError
from src.modeling.recurrence import (
    normalize_recurrence_type,
    parse_due_date,
    parse_interval,
    parse_month_of_year,
)
from src.modeling.weekday import normalize_weekdays


@dataclass
class TaskValidationResult:
    task_id: Any
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    weekdays: Tuple[int, ...] = ()


@dataclass
class InvalidTask:
    task_id: Any
    errors: List[str]


@dataclass
class ValidationReport:
    """Batch validation summary returned alongside demand results."""
    valid_count: int = 0
    invalid_tasks: List[InvalidTask] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def invalid_count(self) -> int:
        return len(self.invalid_tasks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid_count": self.valid_count,
            "invalid_tasks": [
                {"task_id": item.task_id, "errors": list(item.errors)}
                for item in self.invalid_tasks
            ],
            "warnings": list(self.warnings),
        }


def _is_blank(value: Any) -> bool:
    return is_missing(value) or not str(value).strip()


def _is_positive_number(value: Any) -> bool:
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(float(value)) and float(value) > 0


def _is_active(value: Any) -> bool:
    return isinstance(value, (bool, np.bool_)) and bool(value)


def _check_basic_fields(task: RecurringTask, errors: List[str]) -> None:
    if _is_blank(task.id):
        errors.append("Task ID is missing or invalid")

    if _is_blank(task.client_id):
        errors.append("Client ID is missing or invalid")

    if not _is_positive_number(task.estimated_hours):
        errors.append(
            f"Invalid estimated_hours: {task.estimated_hours!r} (must be a positive number)"
        )

    if normalize_recurrence_type(task.recurrence_type) is None:
        errors.append(
            f"Unknown recurrence type: {task.recurrence_type!r} "
            f"(supported: {', '.join(RECURRENCE_TYPES)})"
        )

    if not _is_active(task.is_active):
        errors.append("Task is not active")

    try:
        parse_interval(task.recurrence_interval)
    except RecurrenceConfigurationError as exc:
        errors.append(str(exc))


def _check_weekdays(task: RecurringTask, errors: List[str], warnings: List[str]) -> Tuple[int, ...]:
    if task.weekdays is None:
        warnings.append(
            "Weekly task has no weekdays specified, will use legacy calculation (4.33 occurrences/month)"
        )
        return ()

    normalized = normalize_weekdays(task.weekdays)
    errors.extend(f"Weekdays validation failed: {err}" for err in normalized.errors)
    warnings.extend(f"Weekdays: {warn}" for warn in normalized.warnings)

    if normalized.is_valid and len(normalized.weekdays) == 7:
        warnings.append("All 7 weekdays selected - consider using daily recurrence instead")

    return normalized.weekdays


def _check_skills(task: RecurringTask, errors: List[str], warnings: List[str]) -> None:
    skills = task.required_skills
    no_skills = f"Task has no required skills; grouped under '{config.unspecified_skill}'"

    if isinstance(skills, str):
        if skills.strip():
            warnings.append("required_skills given as text; treated as a single skill")
        else:
            warnings.append(no_skills)
        return

    if not isinstance(skills, (list, tuple)):
        if is_missing(skills):
            warnings.append(no_skills)
        else:
            errors.append(
                f"Invalid required_skills: {skills!r} (must be a list of skill names or ids)"
            )
        return

    bad = [s for s in skills if not isinstance(s, str) or not s.strip()]
    if bad:
        errors.append(f"Invalid required_skills entries: {bad!r} (must be non-empty text)")
    elif not skills:
        warnings.append(no_skills)


def _parse_anchor_fields(task: RecurringTask, errors: List[str]) -> Tuple[Optional[int], Optional[Any]]:
    month = due = None
    try:
        month = parse_month_of_year(task.month_of_year)
    except RecurrenceConfigurationError as exc:
        errors.append(str(exc))
    try:
        due = parse_due_date(task.due_date)
    except RecurrenceConfigurationError as exc:
        errors.append(str(exc))
    return month, due


def validate_task(task: RecurringTask) -> TaskValidationResult:
    """
    Validate a single task.

    Returns a result with errors (task must be excluded) and warnings
    (task is usable but something about it is suspicious).
    """
    errors: List[str] = []
    warnings: List[str] = []
    weekdays: Tuple[int, ...] = ()

    _check_basic_fields(task, errors)
    rtype = normalize_recurrence_type(task.recurrence_type)

    if rtype == "weekly":
        weekdays = _check_weekdays(task, errors, warnings)

    elif rtype == "annual":
        anchor_errors: List[str] = []
        month, due = _parse_anchor_fields(task, anchor_errors)
        errors.extend(anchor_errors)
        if month is None and due is None and not anchor_errors:
            errors.append("Annual task must have either month_of_year or due_date specified")

    elif rtype == "quarterly":
        anchor_errors = []
        month, due = _parse_anchor_fields(task, anchor_errors)
        errors.extend(anchor_errors)
        if month is None and due is None and not anchor_errors:
            warnings.append("Quarterly task has no month_of_year or due_date; it will contribute no demand")

    _check_skills(task, errors, warnings)

    return TaskValidationResult(
        task_id=task.id,
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        weekdays=weekdays,
    )


def validate_tasks(tasks: Iterable[RecurringTask],
                   diagnostics: Optional[DiagnosticLog] = None) -> Tuple[List[RecurringTask], ValidationReport]:
    """
    Validate a batch of tasks.

    Returns:
        (valid_tasks, report). Invalid tasks are excluded and listed in the
        report with their errors.

    Raises:
        TypeError: if ``tasks`` is None.
    """
    if tasks is None:
        raise TypeError("Task list is required")

    valid: List[RecurringTask] = []
    report = ValidationReport()

    for task in tasks:
        result = validate_task(task)
        for warning in result.warnings:
            report.warnings.append(f"Task {result.task_id}: {warning}")
            if diagnostics is not None:
                diagnostics.warning(warning, task_id=result.task_id)

        if result.is_valid:
            valid.append(task)
            continue

        report.invalid_tasks.append(InvalidTask(task_id=result.task_id, errors=result.errors))
        if diagnostics is not None:
            diagnostics.error("Task excluded by validation", task_id=result.task_id, errors=result.errors)

    report.valid_count = len(valid)
    return valid, report
