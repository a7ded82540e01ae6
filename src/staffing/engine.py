"""
Staffing engine: demand by preferred staff member and skill.

Assigned and unassigned demand never share a bucket: a staff member's point
only ever holds tasks whose preferred staff id is that member, and tasks with
no preferred staff land in an "Unassigned (skill)" point for their skill.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from src.config import STAFF_LABEL, UNASSIGNED_LABEL
from src.data.schema import ClientTaskDemand, DemandDataPoint, Period
from src.metrics.demand_aggregation import group_rows


@dataclass
class StaffingWarning:
    """Warning surfaced during staffing."""
    type: str
    task: str
    message: str


def _staff_id(row: ClientTaskDemand) -> Optional[str]:
    if row.preferred_staff_id is None or not str(row.preferred_staff_id).strip():
        return None
    return str(row.preferred_staff_id)


def _staff_name(staff_id: str,
                breakdown: Sequence[ClientTaskDemand],
                staff_names: Optional[Mapping[str, str]]) -> str:
    if staff_names and staff_names.get(staff_id):
        return staff_names[staff_id]
    for row in breakdown:
        if row.preferred_staff_name:
            return row.preferred_staff_name
    return staff_id


def aggregate_by_staff(rows: Iterable[ClientTaskDemand],
                       periods: Sequence[Period],
                       staff_names: Optional[Mapping[str, str]] = None) -> List[DemandDataPoint]:
    """
    One data point per (month, staff member, skill), plus one unassigned
    point per (month, skill).

    For any skill and month the points here sum to the skill-mode total.
    """
    labels = {p.month_key: p.month_label for p in periods}
    points = []

    grouped = group_rows(rows, key=lambda r: (r.month, r.skill_type, _staff_id(r) or ""))
    for (month, skill, staff_id), breakdown in grouped:
        if staff_id:
            name = _staff_name(staff_id, breakdown, staff_names)
            points.append(DemandDataPoint.from_breakdown(
                dimension=STAFF_LABEL.format(staff_name=name, skill=skill),
                month=month,
                month_label=labels.get(month, month),
                breakdown=breakdown,
                skill=skill,
                staff_id=staff_id,
                staff_name=name,
                is_unassigned=False,
            ))
        else:
            points.append(DemandDataPoint.from_breakdown(
                dimension=UNASSIGNED_LABEL.format(skill=skill),
                month=month,
                month_label=labels.get(month, month),
                breakdown=breakdown,
                skill=skill,
                is_unassigned=True,
            ))

    points.sort(key=lambda p: (p.month, p.dimension, p.staff_id or ""))
    return points


def filter_by_staff(points: Iterable[DemandDataPoint], staff_id: str) -> List[DemandDataPoint]:
    """Only the given staff member's points; never unassigned or other staff hours."""
    staff_id = str(staff_id)
    return [p for p in points if not p.is_unassigned and p.staff_id == staff_id]


def filter_unassigned(points: Iterable[DemandDataPoint]) -> List[DemandDataPoint]:
    return [p for p in points if p.is_unassigned]


def staff_hours(points: Iterable[DemandDataPoint]) -> Dict[str, float]:
    """Total assigned hours per staff id over the month range."""
    totals: Dict[str, float] = {}
    for point in points:
        if point.is_unassigned or point.staff_id is None:
            continue
        totals[point.staff_id] = totals.get(point.staff_id, 0.0) + point.demand_hours
    return totals


def staffing_warnings(points: Iterable[DemandDataPoint]) -> List[StaffingWarning]:
    """
    Flag demand that nobody is lined up for, and staff whose name is unknown.
    """
    warnings: List[StaffingWarning] = []
    unassigned: Dict[str, float] = {}
    unnamed = set()

    for point in points:
        if point.is_unassigned:
            unassigned[point.skill] = unassigned.get(point.skill, 0.0) + point.demand_hours
        elif point.staff_name == point.staff_id:
            unnamed.add(point.staff_id)

    for skill in sorted(unassigned):
        warnings.append(StaffingWarning(
            type="no_coverage",
            task=skill,
            message=f"{unassigned[skill]:,.1f} hours of {skill} demand have no preferred staff.",
        ))

    for staff_id in sorted(unnamed):
        warnings.append(StaffingWarning(
            type="unknown_staff",
            task=staff_id,
            message="Staff name not found; showing the staff id instead.",
        ))

    return warnings
