"""
Client revenue metrics pack.

Single source of truth for: client hours, expected revenue, suggested
(fee-rate based) revenue, expected less suggested, and grand totals.

Everything is accumulated at full precision; rounding happens only in the
``round_*`` helpers and ``client_revenue_frame``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from src.config import (
    CURRENCY_DECIMALS,
    DEFAULT_SKILL_FEE_RATES,
    HOURS_DECIMALS,
    RATE_DECIMALS,
    config,
)
from src.data.schema import DemandDataPoint, is_missing
from src.diagnostics import DiagnosticLog


@dataclass(frozen=True)
class ClientRevenue:
    """Revenue figures for one client over the forecast range."""
    client: str
    hours: float
    hourly_rate: Optional[float]
    expected_revenue: float
    suggested_revenue: float

    @property
    def expected_less_suggested(self) -> float:
        return self.expected_revenue - self.suggested_revenue


@dataclass(frozen=True)
class GrandTotals:
    hours: float
    revenue: float
    average_rate: float
    suggested_revenue: float
    expected_less_suggested: float


# =============================================================================
# ROUNDING (output boundary only)
# =============================================================================

def round_hours(value: float) -> float:
    return round(float(value), HOURS_DECIMALS)


def round_currency(value: float) -> float:
    return round(float(value), CURRENCY_DECIMALS)


def round_rate(value: float) -> float:
    return round(float(value), RATE_DECIMALS)


# =============================================================================
# HOURS
# =============================================================================

def client_total_hours(points: Iterable[DemandDataPoint]) -> Dict[str, float]:
    """Hours per client name over all months, summed from point breakdowns."""
    totals: Dict[str, float] = {}
    for point in points:
        for item in point.task_breakdown:
            totals[item.client_name] = totals.get(item.client_name, 0.0) + item.monthly_hours
    return totals


# =============================================================================
# EXPECTED REVENUE
# =============================================================================

def _usable(value) -> bool:
    return value is not None and not is_missing(value)


def expected_revenue_for(client: str,
                         hours: float,
                         hourly_rates: Optional[Mapping[str, float]] = None,
                         revenue: Optional[Mapping[str, float]] = None,
                         diagnostics: Optional[DiagnosticLog] = None) -> Tuple[float, Optional[float]]:
    """
    Expected revenue and the hourly rate behind it for one client.

    A supplied revenue figure wins over hours x rate. With neither, revenue
    is 0 and a warning is recorded; no rate is ever invented.
    """
    rate = hourly_rates.get(client) if hourly_rates else None
    rate = float(rate) if _usable(rate) else None

    supplied = revenue.get(client) if revenue else None
    if _usable(supplied):
        return float(supplied), rate

    if rate is None:
        if diagnostics is not None:
            diagnostics.warning("No hourly rate or revenue for client; expected revenue is 0", client=client)
        return 0.0, None

    return hours * rate, rate


def expected_revenue_from_monthly(monthly_fees: Mapping[str, float], month_count: int) -> Dict[str, float]:
    """Expected revenue for retainer clients: monthly fee times months in range."""
    if month_count < 0:
        raise ValueError(f"Month count must be non-negative, got {month_count}")
    return {
        client: float(fee) * month_count
        for client, fee in monthly_fees.items()
        if _usable(fee)
    }


# =============================================================================
# SUGGESTED REVENUE
# =============================================================================

def _case_insensitive(rates: Mapping[str, float], skill: str) -> Optional[float]:
    wanted = skill.lower()
    for name, rate in rates.items():
        if str(name).strip().lower() == wanted and _usable(rate) and float(rate) > 0:
            return float(rate)
    return None


def fee_rate_for(skill: str,
                 skill_fee_rates: Optional[Mapping[str, float]] = None) -> Tuple[float, bool]:
    """
    Fee rate for a skill as (rate, is_fallback).

    Lookup order: exact match, case-insensitive match, built-in skill
    defaults, then the configured default fee rate. Zero or missing rates
    are skipped.
    """
    skill = str(skill).strip()
    rates = skill_fee_rates or {}

    exact = rates.get(skill)
    if _usable(exact) and float(exact) > 0:
        return float(exact), False

    for table in (rates, DEFAULT_SKILL_FEE_RATES):
        rate = _case_insensitive(table, skill)
        if rate is not None:
            return rate, False

    return config.default_fee_rate, True


def suggested_revenue_by_client(points: Iterable[DemandDataPoint],
                                skill_fee_rates: Optional[Mapping[str, float]] = None,
                                diagnostics: Optional[DiagnosticLog] = None) -> Dict[str, float]:
    """Hours x skill fee rate, summed per client over every breakdown entry."""
    totals: Dict[str, float] = {}
    flagged = set()
    for point in points:
        for item in point.task_breakdown:
            rate, is_fallback = fee_rate_for(item.skill_type, skill_fee_rates)
            if is_fallback and item.skill_type not in flagged:
                flagged.add(item.skill_type)
                if diagnostics is not None:
                    diagnostics.warning("No fee rate for skill; using default fee rate",
                                        skill=item.skill_type, rate=rate)
            totals[item.client_name] = totals.get(item.client_name, 0.0) + item.monthly_hours * rate
    return totals


def expected_less_suggested(expected: Mapping[str, float], suggested: Mapping[str, float]) -> Dict[str, float]:
    clients = list(dict.fromkeys(list(expected) + list(suggested)))
    return {c: expected.get(c, 0.0) - suggested.get(c, 0.0) for c in clients}


# =============================================================================
# CLIENT TABLE + GRAND TOTALS
# =============================================================================

def compute_client_revenue(points: Iterable[DemandDataPoint],
                           hourly_rates: Optional[Mapping[str, float]] = None,
                           revenue: Optional[Mapping[str, float]] = None,
                           suggested_revenue: Optional[Mapping[str, float]] = None,
                           skill_fee_rates: Optional[Mapping[str, float]] = None,
                           diagnostics: Optional[DiagnosticLog] = None) -> List[ClientRevenue]:
    """
    Revenue rows per client, sorted by client name.

    A supplied suggested revenue map wins over the fee-rate computation for
    the clients it covers.
    """
    points = list(points)
    hours = client_total_hours(points)
    computed = suggested_revenue_by_client(points, skill_fee_rates, diagnostics)

    rows = []
    for client in sorted(hours):
        expected, rate = expected_revenue_for(client, hours[client], hourly_rates, revenue, diagnostics)
        supplied = suggested_revenue.get(client) if suggested_revenue else None
        suggested = float(supplied) if _usable(supplied) else computed.get(client, 0.0)
        rows.append(ClientRevenue(
            client=client,
            hours=hours[client],
            hourly_rate=rate,
            expected_revenue=expected,
            suggested_revenue=suggested,
        ))
    return rows


def compute_grand_totals(rows: Iterable[ClientRevenue]) -> GrandTotals:
    """Totals across clients; average rate is revenue-weighted by hours."""
    rows = list(rows)
    hours = sum(r.hours for r in rows)
    revenue = sum(r.expected_revenue for r in rows)
    suggested = sum(r.suggested_revenue for r in rows)
    return GrandTotals(
        hours=hours,
        revenue=revenue,
        average_rate=revenue / hours if hours > 0 else 0.0,
        suggested_revenue=suggested,
        expected_less_suggested=revenue - suggested,
    )


def round_grand_totals(totals: GrandTotals) -> GrandTotals:
    return GrandTotals(
        hours=round_hours(totals.hours),
        revenue=round_currency(totals.revenue),
        average_rate=round_rate(totals.average_rate),
        suggested_revenue=round_currency(totals.suggested_revenue),
        expected_less_suggested=round_currency(totals.expected_less_suggested),
    )


def client_revenue_frame(rows: Iterable[ClientRevenue]) -> pd.DataFrame:
    """
    Rounded client revenue table.

    Returns DataFrame with:
    - client, hours, hourly_rate
    - expected_revenue, suggested_revenue, expected_less_suggested
    - effective_rate: expected_revenue / hours
    """
    columns = ["client", "hours", "hourly_rate", "expected_revenue",
               "suggested_revenue", "expected_less_suggested", "effective_rate"]
    records = [{
        "client": r.client,
        "hours": r.hours,
        "hourly_rate": r.hourly_rate if r.hourly_rate is not None else np.nan,
        "expected_revenue": r.expected_revenue,
        "suggested_revenue": r.suggested_revenue,
        "expected_less_suggested": r.expected_less_suggested,
    } for r in rows]

    if not records:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(records)
    df["effective_rate"] = np.where(
        df["hours"] > 0,
        df["expected_revenue"] / df["hours"].where(df["hours"] > 0, 1),
        0.0,
    )

    df["hours"] = df["hours"].round(HOURS_DECIMALS)
    for col in ["expected_revenue", "suggested_revenue", "expected_less_suggested"]:
        df[col] = df[col].round(CURRENCY_DECIMALS)
    for col in ["hourly_rate", "effective_rate"]:
        df[col] = df[col].round(RATE_DECIMALS)

    return df[columns]
