"""
Tests for recurrence resolution and due-month rules.
"""
import pytest
import numpy as np
import sys
from datetime import date, datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.data.loader import month_period
from src.data.schema import RecurringTask
from src.diagnostics import RecurrenceConfigurationError
from src.modeling.recurrence import (
    Annual,
    Daily,
    Monthly,
    Quarterly,
    Weekly,
    annual_occurrences,
    annual_target_month,
    describe_recurrence,
    is_annual_due,
    is_quarter_due,
    normalize_recurrence_type,
    parse_due_date,
    parse_interval,
    parse_month_of_year,
    quarterly_anchor,
    resolve_recurrence,
)


def make_task(**overrides):
    base = dict(id="t1", client_id="c1", estimated_hours=2.0, recurrence_type="monthly")
    base.update(overrides)
    return RecurringTask(**base)


class TestFieldParsing:
    """Tests for raw field coercion."""

    def test_recurrence_type_aliases(self):
        assert normalize_recurrence_type("Annually") == "annual"
        assert normalize_recurrence_type(" yearly ") == "annual"
        assert normalize_recurrence_type("WEEKLY") == "weekly"
        assert normalize_recurrence_type("fortnightly") is None
        assert normalize_recurrence_type(None) is None

    def test_interval(self):
        assert parse_interval(None) == 1
        assert parse_interval(np.nan) == 1
        assert parse_interval(3) == 3
        assert parse_interval(2.0) == 2
        for bad in (0, -1, 1.5, "2"):
            with pytest.raises(RecurrenceConfigurationError):
                parse_interval(bad)

    def test_due_date(self):
        assert parse_due_date(None) is None
        assert parse_due_date("") is None
        assert parse_due_date("2025-03-15") == date(2025, 3, 15)
        assert parse_due_date(datetime(2025, 3, 15, 9, 30)) == date(2025, 3, 15)
        with pytest.raises(RecurrenceConfigurationError):
            parse_due_date("not a date")

    def test_month_of_year(self):
        assert parse_month_of_year(None) is None
        assert parse_month_of_year(3) == 3
        assert parse_month_of_year(12.0) == 12
        for bad in (0, 13, "March"):
            with pytest.raises(RecurrenceConfigurationError):
                parse_month_of_year(bad)


class TestResolveRecurrence:
    """Tests for turning tasks into schedule variants."""

    def test_variants(self):
        assert resolve_recurrence(make_task(recurrence_type="daily")) == Daily(1)
        assert resolve_recurrence(make_task(recurrence_type="monthly", recurrence_interval=2)) == Monthly(2)
        assert resolve_recurrence(make_task(recurrence_type="weekly", weekdays=[5, 1])) == Weekly(1, (1, 5))
        assert resolve_recurrence(make_task(recurrence_type="annual", month_of_year=3)) == Annual(1, 2)

    def test_unknown_type_raises(self):
        with pytest.raises(RecurrenceConfigurationError):
            resolve_recurrence(make_task(recurrence_type="hourly"))

    def test_invalid_weekdays_raise(self):
        with pytest.raises(RecurrenceConfigurationError):
            resolve_recurrence(make_task(recurrence_type="weekly", weekdays=[8]))

    def test_daily_uses_days_in_month(self):
        daily = Daily(1)
        assert daily.occurrences(month_period("2025-02")) == 28
        assert daily.occurrences(month_period("2024-02")) == 29
        assert Daily(2).occurrences(month_period("2025-01")) == pytest.approx(15.5)

    def test_weekly_legacy_when_no_weekdays(self):
        assert Weekly(1).occurrences(month_period("2025-01")) == pytest.approx(4.33)


class TestAnnual:
    """Tests for annual target month resolution."""

    def test_month_of_year_wins_over_due_date(self):
        assert annual_target_month(3, "2025-07-01") == 2

    def test_due_date_month(self):
        assert annual_target_month(None, "2025-07-01") == 6

    def test_no_anchor(self):
        assert annual_target_month(None, None) is None

    def test_only_target_month_gets_hours(self):
        task = make_task(recurrence_type="annual", month_of_year=3)
        for month_index in range(12):
            expected = 1.0 if month_index == 2 else 0.0
            assert annual_occurrences(task, month_index) == expected
            assert is_annual_due(task, month_index) is (month_index == 2)

    def test_interval_spreads(self):
        task = make_task(recurrence_type="annual", month_of_year=3, recurrence_interval=2)
        assert annual_occurrences(task, 2) == pytest.approx(0.5)


class TestQuarterly:
    """Tests for quarterly due-month cadence."""

    def test_anchor_from_month_of_year(self):
        assert quarterly_anchor(2, None) == (1, None)
        assert quarterly_anchor(2, "2024-05-10") == (1, 2024)
        assert quarterly_anchor(None, "2024-05-10") == (4, 2024)

    def test_quarterly_every_three_months(self):
        task = make_task(recurrence_type="quarterly", month_of_year=1)
        due = [m for m in range(12) if is_quarter_due(task, m, 2025)]
        assert due == [0, 3, 6, 9]

    def test_semi_annual(self):
        task = make_task(recurrence_type="quarterly", month_of_year=2, recurrence_interval=2)
        due = [m for m in range(12) if is_quarter_due(task, m, 2025)]
        assert due == [1, 7]

    def test_every_three_quarters_stays_aligned_across_years(self):
        q = Quarterly(interval=3, anchor_month=0, anchor_year=2025)
        due = [(y, m) for y in (2025, 2026, 2027) for m in range(12) if q.is_due(m, y)]
        assert due == [(2025, 0), (2025, 9), (2026, 6), (2027, 3)]

    def test_occurrences_in_due_month(self):
        q = Quarterly(interval=2, anchor_month=0)
        assert q.occurrences(month_period("2025-01")) == pytest.approx(0.5)
        assert q.occurrences(month_period("2025-02")) == 0.0

    def test_no_anchor_never_due(self):
        assert Quarterly(1).is_due(0, 2025) is False


def test_descriptions():
    assert describe_recurrence(make_task(recurrence_type="daily", recurrence_interval=3)) == "Every 3 days"
    assert describe_recurrence(make_task(recurrence_type="monthly")) == "Every month"
    assert describe_recurrence(make_task(recurrence_type="quarterly", month_of_year=4)) == "Quarterly in April"
    assert describe_recurrence(
        make_task(recurrence_type="quarterly", month_of_year=4, recurrence_interval=2)
    ) == "Semi-annually in April"
    assert describe_recurrence(
        make_task(recurrence_type="annual", month_of_year=3, recurrence_interval=2)
    ) == "Every 2 years in March"
    assert describe_recurrence(make_task(recurrence_type="hourly")) == "hourly"
