"""
Demand matrix: validation, per-task monthly demand and aggregation in one call.

Single source of truth for: the demand matrix handed to renderers and exports.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from src.config import GROUPING_MODES, HOURS_DECIMALS, config
from src.data.loader import month_periods
from src.data.schema import DemandDataPoint, Period, RecurringTask
from src.data.skills import (
    AsyncSkillResolver,
    SkillLookup,
    aresolve_skill_refs,
    resolve_skill_refs,
    skill_name_map,
    task_skill_refs,
)
from src.data.validation import ValidationReport, validate_tasks
from src.diagnostics import Diagnostic, DiagnosticLog
from src.metrics.client_revenue import (
    ClientRevenue,
    GrandTotals,
    compute_client_revenue,
    compute_grand_totals,
)
from src.metrics.demand_aggregation import aggregate_by_client, aggregate_by_skill
from src.modeling.demand import compute_task_demand
from src.staffing.engine import aggregate_by_staff, staffing_warnings

logger = logging.getLogger(__name__)

FRAME_COLUMNS = [
    "month", "month_label", "dimension", "demand_hours", "task_count",
    "client_count", "skill", "staff_id", "staff_name", "is_unassigned",
]


@dataclass
class DemandMatrix:
    """Result of one demand matrix build."""
    months: List[str]
    data_points: List[DemandDataPoint]
    validation_report: ValidationReport
    grand_totals: Optional[GrandTotals] = None
    client_revenue: List[ClientRevenue] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    grouping_mode: str = "skill"

    @property
    def dimensions(self) -> List[str]:
        return sorted({p.dimension for p in self.data_points})

    @property
    def total_hours(self) -> float:
        return sum(p.demand_hours for p in self.data_points)

    def to_frame(self, rounded: bool = True) -> pd.DataFrame:
        return demand_frame(self.data_points, rounded=rounded)

    def pivot_frame(self, value: str = "demand_hours", rounded: bool = True) -> pd.DataFrame:
        return pivot_demand(self.data_points, self.months, value=value, rounded=rounded)


# =============================================================================
# FRAMES
# =============================================================================

def demand_frame(points: Iterable[DemandDataPoint], rounded: bool = True) -> pd.DataFrame:
    """Long format: one row per (month, dimension)."""
    records = [{
        "month": p.month,
        "month_label": p.month_label,
        "dimension": p.dimension,
        "demand_hours": p.demand_hours,
        "task_count": p.task_count,
        "client_count": p.client_count,
        "skill": p.skill,
        "staff_id": p.staff_id,
        "staff_name": p.staff_name,
        "is_unassigned": p.is_unassigned,
    } for p in points]

    if not records:
        return pd.DataFrame(columns=FRAME_COLUMNS)

    df = pd.DataFrame(records, columns=FRAME_COLUMNS)
    if rounded:
        df["demand_hours"] = df["demand_hours"].round(HOURS_DECIMALS)
    return df


def pivot_demand(points: Iterable[DemandDataPoint],
                 months: Sequence[str],
                 value: str = "demand_hours",
                 rounded: bool = True) -> pd.DataFrame:
    """
    Dimension x month matrix, with every requested month as a column.

    Staff sharing a display name keep separate rows, suffixed with their id.
    """
    df = demand_frame(points, rounded=False)
    if len(df) == 0:
        return pd.DataFrame(columns=list(months), dtype=float)

    ids_per_label = df.groupby("dimension")["staff_id"].nunique()
    shared = ids_per_label[ids_per_label > 1].index
    df["row"] = np.where(
        df["dimension"].isin(shared) & df["staff_id"].notna(),
        df["dimension"] + " [" + df["staff_id"].fillna("").astype(str) + "]",
        df["dimension"],
    )

    matrix = df.pivot_table(
        index="row",
        columns="month",
        values=value,
        aggfunc="sum",
        fill_value=0,
    ).reindex(columns=list(months), fill_value=0)
    matrix.columns.name = None
    matrix.index.name = "dimension"

    if rounded and value == "demand_hours":
        matrix = matrix.round(HOURS_DECIMALS)
    return matrix


# =============================================================================
# BUILD
# =============================================================================

def _resolve_periods(periods: Optional[Sequence[Period]],
                     start_month: Optional[Union[str, date]],
                     month_count: Optional[int]) -> List[Period]:
    if periods is not None:
        return list(periods)
    if start_month is None:
        raise ValueError("Either periods or start_month is required")
    return month_periods(start_month, month_count if month_count is not None else config.forecast_months)


def _check_inputs(tasks: Any, grouping_mode: str) -> None:
    if tasks is None:
        raise TypeError("Task list is required")
    if grouping_mode not in GROUPING_MODES:
        raise ValueError(
            f"Unknown grouping mode: {grouping_mode!r} (expected one of {', '.join(GROUPING_MODES)})"
        )


def _assemble(valid: List[RecurringTask],
              report: ValidationReport,
              periods: List[Period],
              grouping_mode: str,
              skill_names: Mapping[str, str],
              diagnostics: DiagnosticLog,
              staff_names: Optional[Mapping[str, str]] = None,
              client_hourly_rates: Optional[Mapping[str, float]] = None,
              client_revenue: Optional[Mapping[str, float]] = None,
              client_suggested_revenue: Optional[Mapping[str, float]] = None,
              skill_fee_rates: Optional[Mapping[str, float]] = None) -> DemandMatrix:
    rows = compute_task_demand(valid, periods, skill_names, diagnostics)
    skill_points = aggregate_by_skill(rows, periods)

    grand_totals = None
    revenue_rows: List[ClientRevenue] = []

    if grouping_mode == "skill":
        points = skill_points
    elif grouping_mode == "client":
        points = aggregate_by_client(skill_points)
        revenue_rows = compute_client_revenue(
            points,
            hourly_rates=client_hourly_rates,
            revenue=client_revenue,
            suggested_revenue=client_suggested_revenue,
            skill_fee_rates=skill_fee_rates,
            diagnostics=diagnostics,
        )
        grand_totals = compute_grand_totals(revenue_rows)
    else:
        points = aggregate_by_staff(rows, periods, staff_names)
        for warning in staffing_warnings(points):
            diagnostics.info(warning.message, type=warning.type, subject=warning.task)

    logger.debug("Built %s-mode demand matrix: %d points over %d months",
                 grouping_mode, len(points), len(periods))

    return DemandMatrix(
        months=[p.month_key for p in periods],
        data_points=points,
        validation_report=report,
        grand_totals=grand_totals,
        client_revenue=revenue_rows,
        diagnostics=list(diagnostics.entries),
        grouping_mode=grouping_mode,
    )


def build_demand_matrix(tasks: Iterable[RecurringTask],
                        periods: Optional[Sequence[Period]] = None,
                        grouping_mode: str = "skill",
                        start_month: Optional[Union[str, date]] = None,
                        month_count: Optional[int] = None,
                        skill_names: Optional[SkillLookup] = None,
                        staff_names: Optional[Mapping[str, str]] = None,
                        client_hourly_rates: Optional[Mapping[str, float]] = None,
                        client_revenue: Optional[Mapping[str, float]] = None,
                        client_suggested_revenue: Optional[Mapping[str, float]] = None,
                        skill_fee_rates: Optional[Mapping[str, float]] = None) -> DemandMatrix:
    """
    Build the demand matrix for a task list over a month range.

    Args:
        tasks: Recurring tasks as loaded; malformed ones are excluded and reported
        periods: Months to forecast, or give start_month (+ month_count)
        grouping_mode: "skill", "client" or "staff"
        skill_names: Skill id -> display name mapping or lookup callable
        staff_names: Staff id -> display name
        client_hourly_rates / client_revenue / client_suggested_revenue:
            Per-client pricing inputs, keyed by client name (client mode)
        skill_fee_rates: Skill name -> fee per hour for suggested revenue

    Raises:
        TypeError: if tasks is None
        ValueError: for an unknown grouping mode or a missing month range
    """
    _check_inputs(tasks, grouping_mode)
    periods = _resolve_periods(periods, start_month, month_count)

    diagnostics = DiagnosticLog(logger)
    valid, report = validate_tasks(list(tasks), diagnostics)

    resolutions = resolve_skill_refs(task_skill_refs(valid), skill_names, diagnostics)

    return _assemble(
        valid, report, periods, grouping_mode, skill_name_map(resolutions), diagnostics,
        staff_names=staff_names,
        client_hourly_rates=client_hourly_rates,
        client_revenue=client_revenue,
        client_suggested_revenue=client_suggested_revenue,
        skill_fee_rates=skill_fee_rates,
    )


async def abuild_demand_matrix(tasks: Iterable[RecurringTask],
                               skill_resolver: AsyncSkillResolver,
                               periods: Optional[Sequence[Period]] = None,
                               grouping_mode: str = "skill",
                               start_month: Optional[Union[str, date]] = None,
                               month_count: Optional[int] = None,
                               **pricing: Any) -> DemandMatrix:
    """
    Same as ``build_demand_matrix`` but resolves skill ids with an async
    resolver; all lookups are awaited concurrently before aggregation.
    """
    _check_inputs(tasks, grouping_mode)
    periods = _resolve_periods(periods, start_month, month_count)

    diagnostics = DiagnosticLog(logger)
    valid, report = validate_tasks(list(tasks), diagnostics)

    resolutions = await aresolve_skill_refs(task_skill_refs(valid), skill_resolver, diagnostics)

    return _assemble(valid, report, periods, grouping_mode, skill_name_map(resolutions), diagnostics, **pricing)
