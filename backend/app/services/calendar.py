from __future__ import annotations

from datetime import date

from app.core.exceptions import UnschedulableDayError
from app.models.schedule_slot import Weekday

SUNDAY_ISO = 7

_LABEL_ALIASES = {
    "mon": Weekday.monday,
    "tue": Weekday.tuesday,
    "wed": Weekday.wednesday,
    "thu": Weekday.thursday,
    "fri": Weekday.friday,
    "sat": Weekday.saturday,
}


def resolve_day_slot(value: date) -> Weekday:
    """Map a calendar date to its teaching day, Monday=0 through Saturday=5.

    Raises UnschedulableDayError for Sundays.
    """
    iso_day = value.isoweekday()
    if iso_day == SUNDAY_ISO:
        raise UnschedulableDayError(value)
    return Weekday(iso_day - 1)


def parse_weekday(value: str | int) -> Weekday:
    if isinstance(value, int):
        return Weekday(value)
    normalized = value.strip().lower()
    if normalized.isdigit():
        return Weekday(int(normalized))
    weekday = _LABEL_ALIASES.get(normalized[:3])
    if weekday is None:
        raise ValueError(f"Unknown teaching day: {value!r}")
    return weekday
