"""
Tests for skill- and client-mode demand aggregation.
"""
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config import AVERAGE_WEEKS_PER_MONTH
from src.data.validation import validate_tasks
from src.metrics.demand_aggregation import (
    aggregate_by_client,
    aggregate_by_skill,
    client_month_total,
    dimension_totals,
    skill_month_hours,
)
from src.modeling.demand import compute_task_demand

BOOKKEEPING_JAN = 3 * AVERAGE_WEEKS_PER_MONTH * 2.0 + 3.0 + 31 / 7 * 0.5


@pytest.fixture
def rows(practice_tasks, periods):
    valid, _ = validate_tasks(practice_tasks)
    return compute_task_demand(valid, periods)


def _point(points, dimension, month):
    matches = [p for p in points if p.dimension == dimension and p.month == month]
    assert len(matches) == 1
    return matches[0]


class TestAggregateBySkill:
    """Tests for skill-mode aggregation."""

    def test_january_buckets(self, rows, periods):
        points = aggregate_by_skill(rows, periods)
        jan = [p for p in points if p.month == "2025-01"]

        assert [p.dimension for p in jan] == ["Bookkeeping", "General", "Tax"]
        assert _point(points, "Bookkeeping", "2025-01").demand_hours == pytest.approx(BOOKKEEPING_JAN)
        assert _point(points, "General", "2025-01").demand_hours == pytest.approx(2.0)
        assert _point(points, "Tax", "2025-01").demand_hours == pytest.approx(6.0)

    def test_counts(self, rows, periods):
        point = _point(aggregate_by_skill(rows, periods), "Bookkeeping", "2025-01")
        assert point.task_count == 3
        assert point.client_count == 2
        assert point.month_label == "January 2025"
        assert point.skill == "Bookkeeping"

    def test_annual_only_in_march(self, rows, periods):
        points = aggregate_by_skill(rows, periods)
        tax_ids = {
            p.month: [r.recurring_task_id for r in p.task_breakdown]
            for p in points if p.dimension == "Tax"
        }
        assert "tax-return" in tax_ids["2025-03"]
        assert all("tax-return" not in ids for month, ids in tax_ids.items() if month != "2025-03")

    def test_hours_match_breakdown(self, rows, periods):
        for point in aggregate_by_skill(rows, periods):
            assert point.demand_hours == pytest.approx(sum(r.monthly_hours for r in point.task_breakdown))
            assert point.task_count == len(point.task_breakdown)

    def test_ordered_by_month_then_dimension(self, rows, periods):
        points = aggregate_by_skill(rows, periods)
        keys = [(p.month, p.dimension) for p in points]
        assert keys == sorted(keys)

    def test_idempotent(self, rows, periods):
        assert aggregate_by_skill(rows, periods) == aggregate_by_skill(list(reversed(rows)), periods)

    def test_empty(self, periods):
        assert aggregate_by_skill([], periods) == []


class TestAggregateByClient:
    """Tests for client-mode regrouping."""

    def test_client_totals_across_skills(self, rows, periods):
        skill_points = aggregate_by_skill(rows, periods)
        client_points = aggregate_by_client(skill_points)

        acme = _point(client_points, "Acme", "2025-01")
        assert acme.demand_hours == pytest.approx(3 * AVERAGE_WEEKS_PER_MONTH * 2.0 + 3.0)
        assert acme.client_count == 1

        cole = _point(client_points, "Cole", "2025-01")
        assert cole.demand_hours == pytest.approx(31 / 7 * 0.5 + 2.0)
        assert cole.task_count == 2

    def test_client_month_total(self, rows, periods):
        skill_points = aggregate_by_skill(rows, periods)
        assert client_month_total(skill_points, "Beta", "2025-03") == pytest.approx(10.0)
        assert client_month_total(skill_points, "Beta", "2025-04") == pytest.approx(6.0)
        assert client_month_total(skill_points, "Nobody", "2025-01") == 0

    def test_total_hours_conserved(self, rows, periods):
        skill_points = aggregate_by_skill(rows, periods)
        client_points = aggregate_by_client(skill_points)
        assert sum(dimension_totals(client_points).values()) == pytest.approx(
            sum(dimension_totals(skill_points).values())
        )


def test_skill_month_hours(rows, periods):
    totals = skill_month_hours(aggregate_by_skill(rows, periods))
    assert totals[("Tax", "2025-03")] == pytest.approx(10.0)
    assert ("Tax", "2025-02") not in totals
