from dataclasses import dataclass
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from app.core.config import settings

SATURDAY = 5
SUNDAY = 6


@dataclass(frozen=True)
class BusinessHours:
    open_hour: int
    close_hour: int  # exclusive, so the last slot ends at close_hour:00
    lunch_start: int | None = None
    lunch_end: int | None = None

    def in_lunch(self, hour: int) -> bool:
        if self.lunch_start is None or self.lunch_end is None:
            return False
        return self.lunch_start <= hour < self.lunch_end

    def contains(self, t: time) -> bool:
        """True if a slot starting at wall-clock time ``t`` is bookable."""
        return self.open_hour <= t.hour < self.close_hour and not self.in_lunch(t.hour)


WEEKDAY_HOURS = BusinessHours(open_hour=9, close_hour=17, lunch_start=12, lunch_end=13)
SATURDAY_HOURS = BusinessHours(open_hour=9, close_hour=13)


def hours_for(d: date) -> BusinessHours | None:
    """Business hours for a calendar date, or None when branches are closed."""
    weekday = d.weekday()
    if weekday == SUNDAY:
        return None
    if weekday == SATURDAY:
        return SATURDAY_HOURS
    return WEEKDAY_HOURS


def branch_now() -> datetime:
    """Current wall-clock time in the branch timezone, naive."""
    return datetime.now(ZoneInfo(settings.branch_timezone)).replace(tzinfo=None)
