"""
Demand aggregation pack.

Single source of truth for: skill-mode and client-mode demand data points.
Every aggregate is built from ClientTaskDemand rows; totals are always derived
from the breakdown a point carries.
"""
from __future__ import annotations

from itertools import groupby
from typing import Callable, Dict, Iterable, List, Sequence, Tuple

from src.data.schema import ClientTaskDemand, DemandDataPoint, Period


def _month_labels(periods: Sequence[Period]) -> Dict[str, str]:
    return {p.month_key: p.month_label for p in periods}


def group_rows(rows: Iterable[ClientTaskDemand],
               key: Callable[[ClientTaskDemand], Tuple]) -> List[Tuple[Tuple, List[ClientTaskDemand]]]:
    """
    Group demand rows by ``key`` in a stable order.

    Keys are sorted; rows within a group keep task-id order so repeated runs
    produce identical breakdowns.
    """
    ordered = sorted(rows, key=lambda r: (key(r), r.recurring_task_id))
    return [(k, list(group)) for k, group in groupby(ordered, key=key)]


def aggregate_by_skill(rows: Iterable[ClientTaskDemand],
                       periods: Sequence[Period]) -> List[DemandDataPoint]:
    """
    One data point per (month, skill).

    Rows already carry their resolved primary skill (unspecified skills are
    bucketed under the configured default upstream).
    """
    labels = _month_labels(periods)
    points = []
    for (month, skill), breakdown in group_rows(rows, key=lambda r: (r.month, r.skill_type)):
        points.append(DemandDataPoint.from_breakdown(
            dimension=skill,
            month=month,
            month_label=labels.get(month, month),
            breakdown=breakdown,
            skill=skill,
        ))
    return points


def aggregate_by_client(skill_points: Iterable[DemandDataPoint]) -> List[DemandDataPoint]:
    """
    Regroup skill-mode points by client name, per month.

    A client's total for a month covers every breakdown entry carrying that
    client name, regardless of which skill bucket it came from.
    """
    labels: Dict[str, str] = {}
    entries: List[ClientTaskDemand] = []
    for point in skill_points:
        labels[point.month] = point.month_label
        entries.extend(point.task_breakdown)

    points = []
    for (month, client), breakdown in group_rows(entries, key=lambda r: (r.month, r.client_name)):
        points.append(DemandDataPoint.from_breakdown(
            dimension=client,
            month=month,
            month_label=labels.get(month, month),
            breakdown=breakdown,
        ))
    return points


def client_month_total(points: Iterable[DemandDataPoint], client: str, month: str) -> float:
    """Sum of monthly hours for ``client`` in ``month`` across all points' breakdowns."""
    return sum(
        item.monthly_hours
        for point in points
        if point.month == month
        for item in point.task_breakdown
        if item.client_name == client
    )


def dimension_totals(points: Iterable[DemandDataPoint]) -> Dict[str, float]:
    """Total demand hours per dimension over the whole month range."""
    totals: Dict[str, float] = {}
    for point in points:
        totals[point.dimension] = totals.get(point.dimension, 0.0) + point.demand_hours
    return totals


def skill_month_hours(points: Iterable[DemandDataPoint]) -> Dict[Tuple[str, str], float]:
    """Hours per (skill, month); works for skill- and staff-mode points alike."""
    totals: Dict[Tuple[str, str], float] = {}
    for point in points:
        for item in point.task_breakdown:
            key = (item.skill_type, item.month)
            totals[key] = totals.get(key, 0.0) + item.monthly_hours
    return totals
