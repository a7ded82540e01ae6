"""
Tests for skill reference resolution, sync and async.
"""
import asyncio
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.data.schema import RecurringTask
from src.data.skills import (
    SkillRef,
    aresolve_skill_refs,
    primary_skill_name,
    resolve_skill_refs,
    skill_name_map,
    task_skill_refs,
)
from src.diagnostics import DiagnosticLog, SkillResolutionError

TAX_ID = "3f2b8c1e-9a4d-4c6e-8b2a-1d5e7f9a0b3c"
AUDIT_ID = "7a1c2d3e-4f5a-4b6c-9d8e-0f1a2b3c4d5e"


def test_skill_ref_parse():
    assert SkillRef.parse(TAX_ID).is_id is True
    assert SkillRef.parse(" Tax ").value == "Tax"
    assert SkillRef.parse("Tax").is_id is False


class TestResolveSkillRefs:
    """Tests for synchronous resolution."""

    def test_names_resolve_to_themselves(self):
        result = resolve_skill_refs(["Tax", "Tax", "Audit"])
        assert list(result) == ["Tax", "Audit"]
        assert all(r.resolved for r in result.values())

    def test_mapping_lookup(self):
        result = resolve_skill_refs([TAX_ID], {TAX_ID: "Tax"})
        assert result[TAX_ID].name == "Tax"
        assert result[TAX_ID].resolved is True

    def test_missing_id_falls_back_flagged(self):
        log = DiagnosticLog()
        result = resolve_skill_refs([TAX_ID], {}, log)
        assert result[TAX_ID].name == TAX_ID
        assert result[TAX_ID].resolved is False
        assert log.warnings[0].context["skill_id"] == TAX_ID

    def test_failing_lookup_does_not_block_others(self):
        def lookup(skill_id):
            if skill_id == TAX_ID:
                raise SkillResolutionError("directory unavailable")
            return "Audit"

        log = DiagnosticLog()
        result = resolve_skill_refs([TAX_ID, AUDIT_ID], lookup, log)
        assert result[TAX_ID].resolved is False
        assert result[AUDIT_ID].name == "Audit"
        assert "directory unavailable" in log.warnings[0].context["reason"]


class TestAsyncResolve:
    """Tests for concurrent resolution."""

    def test_all_lookups_awaited(self):
        calls = []

        async def resolver(skill_id):
            calls.append(skill_id)
            await asyncio.sleep(0)
            if skill_id == TAX_ID:
                raise SkillResolutionError("timeout")
            return "Audit"

        log = DiagnosticLog()
        result = asyncio.run(aresolve_skill_refs([TAX_ID, "Payroll", AUDIT_ID], resolver, log))

        assert sorted(calls) == sorted([TAX_ID, AUDIT_ID])
        assert skill_name_map(result) == {TAX_ID: TAX_ID, "Payroll": "Payroll", AUDIT_ID: "Audit"}
        assert result[TAX_ID].resolved is False
        assert len(log.warnings) == 1


def test_task_skill_refs_and_primary_name():
    tasks = [
        RecurringTask(id="1", client_id="c", estimated_hours=1, recurrence_type="monthly",
                      required_skills=(TAX_ID, "Audit")),
        RecurringTask(id="2", client_id="c", estimated_hours=1, recurrence_type="monthly"),
        RecurringTask(id="3", client_id="c", estimated_hours=1, recurrence_type="monthly",
                      required_skills=("Audit",)),
    ]
    assert task_skill_refs(tasks) == [TAX_ID, "Audit"]
    assert primary_skill_name(tasks[0], {TAX_ID: "Tax"}) == "Tax"
    assert primary_skill_name(tasks[1]) == "General"
