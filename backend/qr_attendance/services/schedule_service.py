# backend/qr_attendance/services/schedule_service.py
"""Lecture schedule helpers and session status resolution."""
from datetime import date, datetime, time
from enum import Enum
from typing import Tuple, Union


class WeekDay(Enum):
    """Days of the week, numbered like ``date.weekday()``."""
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def from_date(cls, value: date) -> 'WeekDay':
        """Weekday of a calendar date."""
        return cls(value.weekday())

    @classmethod
    def parse(cls, value: str) -> 'WeekDay':
        """Parse a weekday name such as ``Monday`` or ``MONDAY``."""
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Weekday is required")
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown weekday: {value}") from None


class SessionStatus(Enum):
    """Temporal state of a lecture relative to the current time."""
    UPCOMING = 'upcoming'
    ACTIVE = 'active'
    ENDED = 'ended'


TIME_FORMAT = '%H:%M'


def parse_time(value: str) -> time:
    """Parse an ``HH:MM`` time of day."""
    if not isinstance(value, str):
        raise ValueError("Time must be a string in HH:MM format")
    return datetime.strptime(value.strip(), TIME_FORMAT).time()


def format_time(value: time) -> str:
    """Format a time of day as ``HH:MM``."""
    return value.strftime(TIME_FORMAT)


def parse_time_range(value: str) -> Tuple[time, time]:
    """
    Parse a time slot like ``09:00 - 10:30``.
    Returns: (start_time, end_time)
    """
    if not isinstance(value, str) or '-' not in value:
        raise ValueError("Time slot must look like 'HH:MM - HH:MM'")

    start_part, _, end_part = value.partition('-')
    start_time = parse_time(start_part)
    end_time = parse_time(end_part)

    if start_time >= end_time:
        raise ValueError("End time must be after start time")

    return start_time, end_time


def format_time_range(start_time: time, end_time: time) -> str:
    return f"{format_time(start_time)} - {format_time(end_time)}"


class SessionStatusService:
    """Derives a session's status from the clock and its time window."""

    @staticmethod
    def resolve(
        now: Union[time, datetime],
        start: time,
        end: time,
        extend_active_to_end_of_day: bool = False
    ) -> SessionStatus:
        """
        Resolve the status of a session window at ``now``.

        Times are compared at minute precision, so a window ending at
        10:30 is still active at 10:30:45. With
        ``extend_active_to_end_of_day`` a started session stays active until
        midnight regardless of its end time.
        """
        if isinstance(now, datetime):
            now = now.time()
        now = now.replace(second=0, microsecond=0, tzinfo=None)

        if now < start:
            return SessionStatus.UPCOMING

        if extend_active_to_end_of_day or now <= end:
            return SessionStatus.ACTIVE

        return SessionStatus.ENDED
