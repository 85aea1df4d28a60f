from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.services.booking_store import get_booked_slot_starts
from app.services.business_hours import branch_now, hours_for


@dataclass(frozen=True)
class Slot:
    branch_id: str
    start: datetime
    available: bool = field(default=True, compare=False)

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=settings.slot_duration_minutes)


def slot_times_for_date(d: date) -> list[datetime]:
    """Slot start times (branch wall clock) for the given date, ascending. Empty when closed."""
    hours = hours_for(d)
    if hours is None:
        return []
    slots: list[datetime] = []
    current = datetime(d.year, d.month, d.day, hours.open_hour, 0, 0)
    end = datetime(d.year, d.month, d.day, hours.close_hour, 0, 0)
    delta = timedelta(minutes=settings.slot_duration_minutes)
    while current < end:
        if not hours.in_lunch(current.hour):
            slots.append(current)
        current += delta
    return slots


async def get_slots_for_date(session: AsyncSession, branch_id: str, d: date) -> list[Slot]:
    """All slots for the branch on the given date, each tagged with availability."""
    times = slot_times_for_date(d)
    if not times:
        return []
    booked = await get_booked_slot_starts(
        session, branch_id, times[0], times[-1] + timedelta(minutes=settings.slot_duration_minutes)
    )
    return [Slot(branch_id=branch_id, start=t, available=t not in booked) for t in times]


async def get_available_dates(
    session: AsyncSession,
    branch_id: str,
    lookahead_days: int | None = None,
    from_tomorrow: bool = True,
    today: date | None = None,
) -> list[date]:
    """Dates within the lookahead window that have at least one free slot."""
    if lookahead_days is None:
        lookahead_days = settings.booking_lookahead_days
    if today is None:
        today = branch_now().date()
    offsets = range(1, lookahead_days + 1) if from_tomorrow else range(lookahead_days)
    out: list[date] = []
    for i in offsets:
        d = today + timedelta(days=i)
        slots = await get_slots_for_date(session, branch_id, d)
        if any(s.available for s in slots):
            out.append(d)
    return out
