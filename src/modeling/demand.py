"""
Monthly demand calculation.

Single source of truth for: occurrences and hours of one task in one month,
and the per-task, per-month demand rows every aggregation is built from.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence

from src.data.schema import ClientTaskDemand, Period, RecurrencePattern, RecurringTask
from src.data.skills import primary_skill_name
from src.diagnostics import DiagnosticLog, RecurrenceConfigurationError
from src.modeling.recurrence import Annual, Quarterly, Recurrence, resolve_recurrence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonthlyDemand:
    task_id: str
    monthly_occurrences: float
    monthly_hours: float

    @classmethod
    def zero(cls, task_id) -> "MonthlyDemand":
        return cls(task_id=task_id, monthly_occurrences=0.0, monthly_hours=0.0)


def _occurrences(task: RecurringTask,
                 recurrence: Recurrence,
                 period: Period,
                 diagnostics: Optional[DiagnosticLog]) -> MonthlyDemand:
    try:
        occurrences = recurrence.occurrences(period)
        hours = max(0.0, occurrences * float(task.estimated_hours))
    except Exception as exc:
        logger.exception("Demand calculation failed for task %s in %s", task.id, period.month_key)
        if diagnostics is not None:
            diagnostics.error(
                "Demand calculation failed; task contributes zero demand",
                task_id=task.id, month=period.month_key, error=str(exc),
            )
        return MonthlyDemand.zero(task.id)

    return MonthlyDemand(task_id=task.id, monthly_occurrences=occurrences, monthly_hours=hours)


def calculate_monthly_demand(task: RecurringTask,
                             period: Period,
                             diagnostics: Optional[DiagnosticLog] = None) -> MonthlyDemand:
    """
    Occurrences and hours for one task in one month.

    Never raises: an unresolvable recurrence or a failure inside the maths
    yields zero demand and a diagnostic.
    """
    try:
        recurrence = resolve_recurrence(task)
    except RecurrenceConfigurationError as exc:
        if diagnostics is not None:
            diagnostics.warning(str(exc), task_id=task.id, month=period.month_key)
        else:
            logger.warning("Task %s: %s", task.id, exc)
        return MonthlyDemand.zero(task.id)

    return _occurrences(task, recurrence, period, diagnostics)


def _has_no_anchor(recurrence: Recurrence) -> bool:
    if isinstance(recurrence, Annual):
        return recurrence.target_month is None
    if isinstance(recurrence, Quarterly):
        return recurrence.anchor_month is None
    return False


def compute_task_demand(tasks: Iterable[RecurringTask],
                        periods: Sequence[Period],
                        skill_names: Optional[Mapping[str, str]] = None,
                        diagnostics: Optional[DiagnosticLog] = None) -> List[ClientTaskDemand]:
    """
    Demand rows for every task in every period, keeping only hours > 0.

    Each task's recurrence is resolved once; a task that cannot be resolved
    is skipped with a warning and the rest of the batch carries on.
    """
    rows: List[ClientTaskDemand] = []

    for task in tasks:
        try:
            recurrence = resolve_recurrence(task)
        except RecurrenceConfigurationError as exc:
            if diagnostics is not None:
                diagnostics.warning(str(exc), task_id=task.id)
            else:
                logger.warning("Task %s skipped: %s", task.id, exc)
            continue

        if _has_no_anchor(recurrence) and diagnostics is not None:
            diagnostics.warning(
                f"{recurrence.type.capitalize()} task has no target month; contributes no demand",
                task_id=task.id,
            )

        skill = primary_skill_name(task, skill_names)

        for period in periods:
            demand = _occurrences(task, recurrence, period, diagnostics)
            if demand.monthly_hours <= 0:
                continue
            rows.append(ClientTaskDemand(
                recurring_task_id=str(task.id),
                client_id=str(task.client_id),
                client_name=task.display_client,
                task_name=task.name or f"Task {task.id}",
                skill_type=skill,
                estimated_hours=float(task.estimated_hours),
                monthly_hours=demand.monthly_hours,
                recurrence_pattern=RecurrencePattern(
                    type=recurrence.type,
                    interval=recurrence.interval,
                    occurrences_this_month=demand.monthly_occurrences,
                ),
                month=period.month_key,
                preferred_staff_id=task.preferred_staff_id,
                preferred_staff_name=task.preferred_staff_name,
            ))

    return rows
