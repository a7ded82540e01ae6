"""
Skill reference resolution.

Task records reference skills either by display name or by UUID. References
are parsed once into ``SkillRef`` and resolved to display names before
aggregation; a lookup failure for one skill falls back to the raw identifier
and is flagged, without blocking the others.
"""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Union

from src.config import config
from src.data.schema import RecurringTask
from src.diagnostics import DiagnosticLog

logger = logging.getLogger(__name__)

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

SkillLookup = Union[Mapping[str, str], Callable[[str], Optional[str]]]
AsyncSkillResolver = Callable[[str], Awaitable[Optional[str]]]


@dataclass(frozen=True)
class SkillRef:
    """A skill reference: either an opaque id or a display name."""
    value: str
    is_id: bool

    @classmethod
    def parse(cls, raw: str) -> "SkillRef":
        value = str(raw).strip()
        return cls(value=value, is_id=bool(UUID_PATTERN.match(value)))


@dataclass(frozen=True)
class SkillResolution:
    ref: SkillRef
    name: str
    resolved: bool


def _distinct_refs(raw_refs: Iterable[str]) -> List[SkillRef]:
    refs = [SkillRef.parse(raw) for raw in raw_refs if raw is not None and str(raw).strip()]
    return list(dict.fromkeys(refs))


def _lookup(lookup: Optional[SkillLookup], skill_id: str) -> Optional[str]:
    if lookup is None:
        return None
    if callable(lookup):
        return lookup(skill_id)
    return lookup.get(skill_id)


def _fallback(ref: SkillRef, diagnostics: Optional[DiagnosticLog], reason: str) -> SkillResolution:
    if diagnostics is not None:
        diagnostics.warning("Unresolved skill id; using raw identifier", skill_id=ref.value, reason=reason)
    else:
        logger.warning("Unresolved skill id %s (%s)", ref.value, reason)
    return SkillResolution(ref=ref, name=ref.value, resolved=False)


def resolve_skill_refs(raw_refs: Iterable[str],
                       lookup: Optional[SkillLookup] = None,
                       diagnostics: Optional[DiagnosticLog] = None) -> Dict[str, SkillResolution]:
    """
    Resolve skill references with a mapping or a synchronous callable.

    Name references resolve to themselves. Id references go through the
    lookup; a missing entry or a failing lookup yields the raw id, flagged
    as unresolved.
    """
    resolutions: Dict[str, SkillResolution] = {}
    for ref in _distinct_refs(raw_refs):
        if not ref.is_id:
            resolutions[ref.value] = SkillResolution(ref=ref, name=ref.value, resolved=True)
            continue
        try:
            name = _lookup(lookup, ref.value)
        except Exception as exc:
            resolutions[ref.value] = _fallback(ref, diagnostics, f"lookup failed: {exc}")
            continue
        if name:
            resolutions[ref.value] = SkillResolution(ref=ref, name=str(name), resolved=True)
        else:
            resolutions[ref.value] = _fallback(ref, diagnostics, "not found")
    return resolutions


async def aresolve_skill_refs(raw_refs: Iterable[str],
                              resolver: AsyncSkillResolver,
                              diagnostics: Optional[DiagnosticLog] = None) -> Dict[str, SkillResolution]:
    """
    Resolve skill references with an async resolver.

    All id lookups run concurrently; every one is awaited before returning,
    and a failure in one does not cancel the others.
    """
    refs = _distinct_refs(raw_refs)
    id_refs = [ref for ref in refs if ref.is_id]
    results = await asyncio.gather(
        *(resolver(ref.value) for ref in id_refs),
        return_exceptions=True,
    )
    by_id = dict(zip((ref.value for ref in id_refs), results))

    resolutions: Dict[str, SkillResolution] = {}
    for ref in refs:
        if not ref.is_id:
            resolutions[ref.value] = SkillResolution(ref=ref, name=ref.value, resolved=True)
            continue
        outcome = by_id[ref.value]
        if isinstance(outcome, BaseException):
            resolutions[ref.value] = _fallback(ref, diagnostics, f"lookup failed: {outcome}")
        elif outcome:
            resolutions[ref.value] = SkillResolution(ref=ref, name=str(outcome), resolved=True)
        else:
            resolutions[ref.value] = _fallback(ref, diagnostics, "not found")
    return resolutions


def skill_name_map(resolutions: Mapping[str, SkillResolution]) -> Dict[str, str]:
    """Flatten resolutions to raw reference -> display name."""
    return {raw: res.name for raw, res in resolutions.items()}


def task_skill_refs(tasks: Iterable[RecurringTask]) -> List[str]:
    """Every primary skill reference used by the tasks, in first-seen order."""
    refs = []
    for task in tasks:
        skill = task.primary_skill
        if skill is not None and str(skill).strip():
            refs.append(str(skill).strip())
    return list(dict.fromkeys(refs))


def primary_skill_name(task: RecurringTask, skill_names: Optional[Mapping[str, str]] = None) -> str:
    """Display name of a task's primary skill, or the unspecified-skill bucket."""
    skill = task.primary_skill
    if skill is None or not str(skill).strip():
        return config.unspecified_skill
    raw = str(skill).strip()
    if skill_names:
        return skill_names.get(raw, raw)
    return raw
