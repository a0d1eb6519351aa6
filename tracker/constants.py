"""
Application-wide constants.
Discipline enums, scheduling windows and runtime defaults.
"""
from enum import Enum


class Frequency(str, Enum):
    DAILY = "DAILY"
    WEEKDAYS = "WEEKDAYS"  # Mon-Fri
    WEEKENDS = "WEEKENDS"  # Sat-Sun
    SPECIFIC_DAYS = "SPECIFIC_DAYS"  # e.g. Tue/Thu/Sun
    ALWAYS = "ALWAYS"  # Contextual - "no phone in bedroom"


class DisciplineStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INGRAINED = "INGRAINED"  # Graduated - automatic now
    EVOLVED = "EVOLVED"  # Superseded by a successor
    RETIRED = "RETIRED"


class Rating(str, Enum):
    NAILED_IT = "NAILED_IT"
    CLOSE = "CLOSE"
    MISSED = "MISSED"


class Weekday(str, Enum):
    """Weekday names in date.weekday() order (Monday=0)"""
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, d) -> "Weekday":
        return WEEKDAY_ORDER[d.weekday()]


WEEKDAY_ORDER = list(Weekday)
WORKING_DAYS = frozenset(WEEKDAY_ORDER[:5])
WEEKEND_DAYS = frozenset(WEEKDAY_ORDER[5:])

FREQUENCY_LABELS = {
    Frequency.DAILY: "Daily",
    Frequency.WEEKDAYS: "Weekdays",
    Frequency.WEEKENDS: "Weekends",
    Frequency.ALWAYS: "Always",
}
SPECIFIC_DAYS_FALLBACK_LABEL = "Specific days"

# Scheduling windows
NEXT_APPLICABLE_SCAN_DAYS = 7
RECENT_CHECKS_WINDOW_DAYS = 90

# Soft cap on concurrently active disciplines
ACTIVE_DISCIPLINE_SOFT_LIMIT = 3

DEFAULT_FLEXIBILITY_MINUTES = 15

TIME_PATTERN = r"^([0-1][0-9]|2[0-3]):[0-5][0-9]$"
QUARTER_PATTERN = r"^\d{4}-Q[1-4]$"

# Runtime defaults
DEFAULT_DATABASE_URL = "sqlite:///./tracker.db"
DEFAULT_LOG_DIRECTORY_PROD = "/var/log/tracker"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"

CORS_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8081",
    "http://127.0.0.1:8081",
]

# Authentication
API_KEY_HEADER_NAME = "X-API-Key"
DEFAULT_API_KEY = "your-secret-key-change-me"
