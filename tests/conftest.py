"""
Shared fixtures: a small practice with skill, client and staff variety.
"""
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.data.loader import month_periods
from src.data.schema import RecurringTask


def make_task(**overrides):
    base = dict(
        id="t1",
        client_id="c1",
        client_name="Acme",
        estimated_hours=2.0,
        recurrence_type="monthly",
        required_skills=("Tax",),
    )
    base.update(overrides)
    return RecurringTask(**base)


@pytest.fixture
def periods():
    return month_periods("2025-01", 12)


@pytest.fixture
def practice_tasks():
    return [
        make_task(id="bookkeeping", client_id="c1", client_name="Acme", recurrence_type="weekly",
                  weekdays=[1, 3, 5], estimated_hours=2.0, required_skills=("Bookkeeping",),
                  preferred_staff_id="s1", preferred_staff_name="Sam"),
        make_task(id="payroll", client_id="c1", client_name="Acme", recurrence_type="monthly",
                  estimated_hours=3.0, required_skills=("Bookkeeping",)),
        make_task(id="bas", client_id="c2", client_name="Beta", recurrence_type="quarterly",
                  month_of_year=1, estimated_hours=6.0, required_skills=("Tax",),
                  preferred_staff_id="s2", preferred_staff_name="Alex"),
        make_task(id="tax-return", client_id="c2", client_name="Beta", recurrence_type="annual",
                  month_of_year=3, estimated_hours=10.0, required_skills=("Tax",),
                  preferred_staff_id="s1", preferred_staff_name="Sam"),
        make_task(id="reconcile", client_id="c3", client_name="Cole", recurrence_type="daily",
                  recurrence_interval=7, estimated_hours=0.5, required_skills=("Bookkeeping",),
                  preferred_staff_id="s2", preferred_staff_name="Alex"),
        make_task(id="review", client_id="c3", client_name="Cole", recurrence_type="monthly",
                  recurrence_interval=2, estimated_hours=4.0, required_skills=()),
        make_task(id="broken", client_id="c3", client_name="Cole", recurrence_type="weekly",
                  weekdays=[1, 8], estimated_hours=1.0),
    ]
