"""Booking pipeline: validate a request against the catalog, business hours and
current bookings, then commit it. The first violated rule wins; nothing is
written before the final commit.
"""
import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import (
    BookingValidationError,
    CatalogReferenceError,
    RejectionKind,
    SlotTakenError,
)
from app.models.appointment import Appointment, AppointmentCreate
from app.services.booking_store import commit_appointment, slot_exists
from app.services.business_hours import branch_now, hours_for
from app.services.catalog_service import Catalog

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "email", "topic_id", "branch_id", "slot_start")


def parse_slot_start(value: str) -> datetime:
    """Parse an ISO 8601 date-time into the canonical naive branch wall-clock form.

    Aware values are converted into the branch timezone first, so the same instant
    always yields the same key. Raises ValueError on malformed input.
    """
    dt = datetime.fromisoformat(value.strip())
    if dt.tzinfo is not None:
        dt = dt.astimezone(ZoneInfo(settings.branch_timezone)).replace(tzinfo=None)
    return dt


def is_slot_aligned(dt: datetime) -> bool:
    """True if dt falls on a slot boundary of the generated lattice."""
    return dt.minute % settings.slot_duration_minutes == 0 and dt.second == 0 and dt.microsecond == 0


def _missing_fields(data: AppointmentCreate) -> list[str]:
    missing = []
    for name in REQUIRED_FIELDS:
        value = getattr(data, name)
        if value is None or not str(value).strip():
            missing.append(name)
    return missing


async def book_appointment(
    session: AsyncSession,
    data: AppointmentCreate,
    catalog: Catalog,
    now: datetime | None = None,
) -> Appointment:
    """Validate and commit a booking. Raises a BookingError subclass on rejection."""
    missing = _missing_fields(data)
    if missing:
        raise BookingValidationError(
            RejectionKind.MISSING_FIELDS, f"Missing required fields: {', '.join(missing)}"
        )
    topic_id = data.topic_id.strip()
    branch_id = data.branch_id.strip()

    if not catalog.topic_exists(topic_id):
        raise CatalogReferenceError(RejectionKind.TOPIC_NOT_FOUND, "Topic not found")
    if not catalog.branch_exists(branch_id):
        raise CatalogReferenceError(RejectionKind.BRANCH_NOT_FOUND, "Branch not found")
    if not catalog.branch_supports_topic(branch_id, topic_id):
        raise CatalogReferenceError(
            RejectionKind.UNSUPPORTED_TOPIC_FOR_BRANCH,
            "Selected branch does not support this topic",
        )

    try:
        slot_start = parse_slot_start(data.slot_start)
    except ValueError as e:
        raise BookingValidationError(RejectionKind.INVALID_DATE_TIME, "Invalid slot_start format") from e

    if now is None:
        now = branch_now()
    if slot_start <= now:
        raise BookingValidationError(RejectionKind.PAST_APPOINTMENT, "Appointment must be in the future")

    if not is_slot_aligned(slot_start):
        raise BookingValidationError(
            RejectionKind.MISALIGNED_SLOT,
            f"Appointment time must be in {settings.slot_duration_minutes}-minute increments",
        )

    hours = hours_for(slot_start.date())
    if hours is None:
        raise BookingValidationError(
            RejectionKind.OUTSIDE_BUSINESS_HOURS, "Branch is closed on the selected date"
        )
    if not hours.contains(slot_start.time()):
        raise BookingValidationError(
            RejectionKind.OUTSIDE_BUSINESS_HOURS, "Selected time is outside business hours"
        )

    # Fast path only; the unique constraint at commit is authoritative
    if await slot_exists(session, branch_id, slot_start):
        raise SlotTakenError()

    appointment = Appointment(
        name=data.name.strip(),
        email=data.email.strip(),
        topic_id=topic_id,
        branch_id=branch_id,
        slot_start=slot_start,
        reason=(data.reason or "").strip(),
    )
    await commit_appointment(session, appointment)
    logger.info(
        "Booked appointment %s: branch=%s slot=%s topic=%s",
        appointment.id,
        branch_id,
        slot_start.isoformat(),
        topic_id,
    )
    return appointment
