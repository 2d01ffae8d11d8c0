"""
Date and time utilities for booking slots.
"""

from datetime import datetime, timedelta
from typing import Optional
import pytz

from ..config import get_settings


class DateParser:
    """Date helpers bound to the configured salon timezone."""

    def __init__(self, timezone: Optional[str] = None):
        self.tz = pytz.timezone(timezone or get_settings().timezone)

    def now(self) -> datetime:
        """Current time in the salon timezone."""
        return datetime.now(self.tz)

    @staticmethod
    def is_valid_iso_date(date_str: str) -> bool:
        """Check if string is a valid ISO date (YYYY-MM-DD)."""
        try:
            datetime.strptime(date_str, "%Y-%m-%d")
            return True
        except (TypeError, ValueError):
            return False

    def parse_booking_datetime(self, date_str: str, time_str: str) -> datetime:
        """Combine a booking date and time into an aware datetime."""
        naive = datetime.strptime(f"{date_str} {time_str}", "%Y-%m-%d %H:%M")
        return self.tz.localize(naive)


class TimeParser:
    """Time slot helpers."""

    @staticmethod
    def is_valid_time_format(time_str: str) -> bool:
        """Check if string is a valid time format (HH:MM)."""
        try:
            datetime.strptime(time_str, "%H:%M")
            return True
        except (TypeError, ValueError):
            return False

    @staticmethod
    def format_time_slot(time_str: str) -> str:
        """Format "09:05" for display as "9:05"."""
        hours, minutes = time_str.split(":")[:2]
        return f"{int(hours)}:{int(minutes):02d}"

    @staticmethod
    def combine(date_str: str, time_str: str) -> str:
        """Build the API start timestamp "YYYY-MM-DDTHH:MM"."""
        return f"{date_str}T{time_str}"

    @staticmethod
    def calculate_end_time(start_time: str, duration_minutes: int) -> str:
        """
        Add a duration to a "YYYY-MM-DDTHH:MM" start time.

        The hour wraps at midnight while the date part is kept, matching how
        the salon platform reports same-day booking items.
        """
        date_part, time_part = start_time.split("T")
        start = datetime.strptime(time_part[:5], "%H:%M")
        end = start + timedelta(minutes=duration_minutes)
        return f"{date_part}T{end.strftime('%H:%M')}"
