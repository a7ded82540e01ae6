"""
Application configuration management.
"""
import os
from dataclasses import dataclass, field


@dataclass
class AppConfig:
    """Application configuration with environment overrides."""

    # Environment
    app_env: str = field(default_factory=lambda: os.getenv("APP_ENV", "dev"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "WARNING"))

    # Forecast window
    forecast_months: int = field(default_factory=lambda: int(os.getenv("FORECAST_MONTHS", "12")))

    # Business logic defaults
    default_fee_rate: float = field(default_factory=lambda: float(os.getenv("DEFAULT_FEE_RATE", "75.0")))
    unspecified_skill: str = field(default_factory=lambda: os.getenv("UNSPECIFIED_SKILL", "General"))

    @property
    def is_prod(self) -> bool:
        return self.app_env.lower() == "prod"


# Global config instance
config = AppConfig()


# Recurrence arithmetic
AVERAGE_DAYS_PER_MONTH = 30.44
AVERAGE_WEEKS_PER_MONTH = AVERAGE_DAYS_PER_MONTH / 7  # ~4.3486
LEGACY_WEEKS_PER_MONTH = 4.33  # historical weekly factor when no weekdays are set

RECURRENCE_TYPES = ["daily", "weekly", "monthly", "quarterly", "annual"]
RECURRENCE_ALIASES = {
    "annually": "annual",
    "yearly": "annual",
}

WEEKDAY_NAMES = [
    "Sunday", "Monday", "Tuesday", "Wednesday",
    "Thursday", "Friday", "Saturday",
]

GROUPING_MODES = ["skill", "client", "staff"]

# Demand labels
STAFF_LABEL = "{staff_name} ({skill})"
UNASSIGNED_LABEL = "Unassigned ({skill})"

# Task table columns (hard fail if missing)
REQUIRED_TASK_COLUMNS = [
    "id",
    "client_id",
    "estimated_hours",
    "recurrence_type",
]

# Optional task columns (soft warn if missing)
OPTIONAL_TASK_COLUMNS = [
    "name",
    "client_name",
    "recurrence_interval",
    "weekdays",
    "month_of_year",
    "due_date",
    "required_skills",
    "preferred_staff_id",
    "preferred_staff_name",
    "is_active",
]

# Skill fee rates used when a caller supplies none for a skill ($/hr)
DEFAULT_SKILL_FEE_RATES = {
    "CPA": 250.00,
    "Senior": 150.00,
    "Junior": 100.00,
}

# Output precision (applied at the output boundary only)
HOURS_DECIMALS = 1
CURRENCY_DECIMALS = 0
RATE_DECIMALS = 2

# Formatting constants
FORMAT_CURRENCY = "${:,.0f}"
FORMAT_HOURS = "{:,.1f}"
FORMAT_RATE = "${:,.2f}/hr"
