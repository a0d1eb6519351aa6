"""
Quarter calculation service.
Handles YYYY-Qn keys, quarter boundaries and week-of-quarter helpers.
"""
from datetime import date, timedelta
from typing import List
import re

from tracker.exceptions import InvalidQuarterException

_QUARTER_RE = re.compile(r"^(\d{4})-Q([1-4])$")


class QuarterService:
    """Service for quarter-related operations"""

    @staticmethod
    def format_quarter(d: date) -> str:
        """Format a date as its quarter key, e.g. "2026-Q1" """
        return f"{d.year}-Q{(d.month - 1) // 3 + 1}"

    @staticmethod
    def get_current_quarter(today: date) -> str:
        """Quarter key containing the reference date"""
        return QuarterService.format_quarter(today)

    @staticmethod
    def parse_quarter(quarter_key: str) -> tuple[int, int]:
        """
        Split a quarter key into year and quarter number.

        Raises:
            InvalidQuarterException: If the key is not YYYY-Qn with n in 1..4
        """
        match = _QUARTER_RE.match(quarter_key or "")
        if not match:
            raise InvalidQuarterException(quarter_key)
        return int(match.group(1)), int(match.group(2))

    @staticmethod
    def quarter_date_range(quarter_key: str) -> tuple[date, date]:
        """
        Get inclusive calendar bounds of a quarter.

        Args:
            quarter_key: Quarter in "YYYY-Qn" format

        Returns:
            Tuple of (first_day, last_day)
        """
        year, quarter = QuarterService.parse_quarter(quarter_key)
        first_month = (quarter - 1) * 3 + 1
        start = date(year, first_month, 1)

        if quarter == 4:
            next_start = date(year + 1, 1, 1)
        else:
            next_start = date(year, first_month + 3, 1)

        return start, next_start - timedelta(days=1)

    @staticmethod
    def get_week_of_quarter(d: date) -> int:
        """
        Week number of a date within its quarter (1-13).
        Weeks start on Monday; the partial first week counts as week 1.
        """
        quarter_start, _ = QuarterService.quarter_date_range(QuarterService.format_quarter(d))
        week_start = d - timedelta(days=d.weekday())
        quarter_week_start = quarter_start - timedelta(days=quarter_start.weekday())

        weeks_diff = (week_start - quarter_week_start).days // 7
        return min(max(weeks_diff + 1, 1), 13)

    @staticmethod
    def format_quarter_label(quarter_key: str) -> str:
        """Readable label, e.g. "Q1 2026" """
        year, quarter = QuarterService.parse_quarter(quarter_key)
        return f"Q{quarter} {year}"

    @staticmethod
    def format_quarter_range(quarter_key: str) -> str:
        """Month range label, e.g. "Jan - Mar 2026" """
        start, end = QuarterService.quarter_date_range(quarter_key)
        return f"{start.strftime('%b')} - {end.strftime('%b')} {end.year}"

    @staticmethod
    def add_quarters(quarter_key: str, amount: int) -> str:
        """Shift a quarter key by a number of quarters (negative goes back)"""
        year, quarter = QuarterService.parse_quarter(quarter_key)
        index = year * 4 + (quarter - 1) + amount
        return f"{index // 4}-Q{index % 4 + 1}"

    @staticmethod
    def get_months_in_quarter(quarter_key: str) -> List[str]:
        """The three months of a quarter as YYYY-MM strings"""
        start, _ = QuarterService.quarter_date_range(quarter_key)
        return [f"{start.year}-{start.month + i:02d}" for i in range(3)]

    @staticmethod
    def is_in_quarter(d: date, quarter_key: str) -> bool:
        return QuarterService.format_quarter(d) == quarter_key

    @staticmethod
    def get_total_weeks_in_quarter(quarter_key: str) -> int:
        """Total weeks in a quarter (typically 13, sometimes 14)"""
        start, end = QuarterService.quarter_date_range(quarter_key)
        return (end - start).days // 7 + 1
