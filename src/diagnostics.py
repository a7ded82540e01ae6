"""
Structured diagnostics collected alongside demand calculations.

Calculation code never prints; it records warnings and errors here so callers
get them back as data. Every entry is also forwarded to the standard logger.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

_LEVELS = {
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class DemandCalculationError(Exception):
    """Base error for the demand forecasting core."""
    pass


class RecurrenceConfigurationError(DemandCalculationError):
    """Raised when a task's recurrence settings cannot be turned into a schedule."""
    pass


class SkillResolutionError(DemandCalculationError):
    """Raised by skill lookups that cannot resolve an identifier."""
    pass


@dataclass
class Diagnostic:
    """A single warning or error surfaced during calculation."""
    level: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)


class DiagnosticLog:
    """Collects diagnostics for one calculation call."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.entries: List[Diagnostic] = []
        self._log = log or logger

    def record(self, level: str, message: str, **context: Any) -> Diagnostic:
        entry = Diagnostic(level=level, message=message, context=context)
        self.entries.append(entry)
        self._log.log(_LEVELS.get(level, logging.INFO), "%s %s", message, context or "")
        return entry

    def info(self, message: str, **context: Any) -> Diagnostic:
        return self.record("info", message, **context)

    def warning(self, message: str, **context: Any) -> Diagnostic:
        return self.record("warning", message, **context)

    def error(self, message: str, **context: Any) -> Diagnostic:
        return self.record("error", message, **context)

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.entries if d.level == "warning"]

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.entries if d.level == "error"]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)
