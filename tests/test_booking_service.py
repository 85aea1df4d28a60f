from datetime import date, datetime
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select

from app.core.config import settings
from app.core.errors import (
    BookingValidationError,
    CatalogReferenceError,
    RejectionKind,
    SlotTakenError,
)
from app.models.appointment import Appointment, AppointmentCreate
from app.services.booking_service import book_appointment, is_slot_aligned, parse_slot_start
from app.services.slot_service import get_slots_for_date

NOW = datetime(2026, 2, 1, 8, 0)


def _request(**overrides) -> AppointmentCreate:
    data = {
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "topic_id": "T1",
        "branch_id": "B1",
        "slot_start": "2026-02-07T09:30:00",
        "reason": "Loan rates",
    }
    data.update(overrides)
    return AppointmentCreate(**data)


async def _count(session) -> int:
    result = await session.execute(select(func.count()).select_from(Appointment))
    return result.scalar_one()


async def test_books_free_slot(session, catalog):
    appointment = await book_appointment(session, _request(), catalog, now=NOW)
    assert appointment.id.startswith("apt-")
    assert appointment.branch_id == "B1"
    assert appointment.topic_id == "T1"
    assert appointment.slot_start == datetime(2026, 2, 7, 9, 30)
    assert appointment.reason == "Loan rates"
    assert appointment.created_at is not None
    assert await _count(session) == 1


async def test_booked_slot_reads_unavailable(session, catalog):
    await book_appointment(session, _request(slot_start="2026-02-07T12:30"), catalog, now=NOW)
    slots = await get_slots_for_date(session, "B1", date(2026, 2, 7))
    taken = [s.start for s in slots if not s.available]
    assert taken == [datetime(2026, 2, 7, 12, 30)]


async def test_reason_is_optional(session, catalog):
    appointment = await book_appointment(session, _request(reason=None), catalog, now=NOW)
    assert appointment.reason == ""


@pytest.mark.parametrize("field", ["name", "email", "topic_id", "branch_id", "slot_start"])
async def test_missing_fields(session, catalog, field):
    with pytest.raises(BookingValidationError) as exc:
        await book_appointment(session, _request(**{field: None}), catalog, now=NOW)
    assert exc.value.kind == RejectionKind.MISSING_FIELDS
    assert field in exc.value.message


async def test_blank_field_counts_as_missing(session, catalog):
    with pytest.raises(BookingValidationError) as exc:
        await book_appointment(session, _request(name="   "), catalog, now=NOW)
    assert exc.value.kind == RejectionKind.MISSING_FIELDS


async def test_missing_fields_checked_before_references(session, catalog):
    with pytest.raises(BookingValidationError) as exc:
        await book_appointment(session, _request(topic_id="nope", email=""), catalog, now=NOW)
    assert exc.value.kind == RejectionKind.MISSING_FIELDS


async def test_unknown_topic(session, catalog):
    with pytest.raises(CatalogReferenceError) as exc:
        await book_appointment(session, _request(topic_id="T9", branch_id="B9"), catalog, now=NOW)
    assert exc.value.kind == RejectionKind.TOPIC_NOT_FOUND
    assert exc.value.status_code == 404


async def test_unknown_branch(session, catalog):
    with pytest.raises(CatalogReferenceError) as exc:
        await book_appointment(session, _request(branch_id="B9"), catalog, now=NOW)
    assert exc.value.kind == RejectionKind.BRANCH_NOT_FOUND
    assert exc.value.status_code == 404


async def test_branch_must_support_topic(session, catalog):
    with pytest.raises(CatalogReferenceError) as exc:
        await book_appointment(session, _request(topic_id="T3"), catalog, now=NOW)
    assert exc.value.kind == RejectionKind.UNSUPPORTED_TOPIC_FOR_BRANCH
    assert exc.value.status_code == 400


@pytest.mark.parametrize("value", ["tomorrow", "2026-02-30T09:00:00", "2026-02-07 25:00", "09:00"])
async def test_invalid_date_time(session, catalog, value):
    with pytest.raises(BookingValidationError) as exc:
        await book_appointment(session, _request(slot_start=value), catalog, now=NOW)
    assert exc.value.kind == RejectionKind.INVALID_DATE_TIME


async def test_past_appointment_rejected_even_if_free(session, catalog):
    with pytest.raises(BookingValidationError) as exc:
        await book_appointment(
            session, _request(slot_start="2026-02-07T09:30:00"), catalog, now=datetime(2026, 3, 1, 9, 0)
        )
    assert exc.value.kind == RejectionKind.PAST_APPOINTMENT


async def test_slot_starting_now_is_past(session, catalog):
    with pytest.raises(BookingValidationError) as exc:
        await book_appointment(
            session, _request(slot_start="2026-02-07T09:30:00"), catalog, now=datetime(2026, 2, 7, 9, 30)
        )
    assert exc.value.kind == RejectionKind.PAST_APPOINTMENT


async def test_past_checked_before_alignment(session, catalog):
    with pytest.raises(BookingValidationError) as exc:
        await book_appointment(
            session, _request(slot_start="2026-01-10T09:15:00"), catalog, now=NOW
        )
    assert exc.value.kind == RejectionKind.PAST_APPOINTMENT


@pytest.mark.parametrize("value", ["2026-02-08T12:15:00", "2026-02-09T09:45", "2026-02-09T09:30:30"])
async def test_misaligned_slot(session, catalog, value):
    with pytest.raises(BookingValidationError) as exc:
        await book_appointment(session, _request(slot_start=value), catalog, now=NOW)
    assert exc.value.kind == RejectionKind.MISALIGNED_SLOT


@pytest.mark.parametrize(
    "value",
    [
        "2026-02-08T10:00:00",  # Sunday
        "2026-02-09T08:30:00",  # before opening
        "2026-02-09T12:00:00",  # lunch
        "2026-02-09T12:30:00",  # lunch
        "2026-02-09T17:00:00",  # closing time
        "2026-02-07T13:00:00",  # Saturday afternoon
    ],
)
async def test_outside_business_hours(session, catalog, value):
    with pytest.raises(BookingValidationError) as exc:
        await book_appointment(session, _request(slot_start=value), catalog, now=NOW)
    assert exc.value.kind == RejectionKind.OUTSIDE_BUSINESS_HOURS


async def test_second_booking_for_same_slot_is_taken(session, catalog):
    await book_appointment(session, _request(slot_start="2026-02-09T13:00"), catalog, now=NOW)
    with pytest.raises(SlotTakenError) as exc:
        await book_appointment(
            session,
            _request(name="Grace", email="grace@example.com", topic_id="T2", slot_start="2026-02-09T13:00:00"),
            catalog,
            now=NOW,
        )
    assert exc.value.kind == RejectionKind.SLOT_TAKEN
    assert exc.value.status_code == 409
    assert await _count(session) == 1


async def test_same_slot_at_another_branch_is_free(session, catalog):
    await book_appointment(session, _request(topic_id="T2", branch_id="B1"), catalog, now=NOW)
    await book_appointment(session, _request(topic_id="T2", branch_id="B2"), catalog, now=NOW)
    assert await _count(session) == 2


async def test_commit_constraint_is_authoritative(session_maker, catalog):
    async with session_maker() as session:
        await book_appointment(session, _request(), catalog, now=NOW)

    # Pre-check lies (as if a concurrent commit landed after it ran)
    with patch("app.services.booking_service.slot_exists", AsyncMock(return_value=False)):
        async with session_maker() as session:
            with pytest.raises(SlotTakenError):
                await book_appointment(session, _request(name="Grace"), catalog, now=NOW)

    async with session_maker() as session:
        assert await _count(session) == 1


def test_parse_slot_start_canonicalizes():
    assert parse_slot_start("2026-02-07T09:00") == parse_slot_start("2026-02-07T09:00:00")
    assert parse_slot_start(" 2026-02-07T09:00:00 ") == datetime(2026, 2, 7, 9, 0)
    # UTC is the default branch timezone
    assert parse_slot_start("2026-02-07T10:00:00+01:00") == datetime(2026, 2, 7, 9, 0)
    assert parse_slot_start("2026-02-07T09:00:00Z") == datetime(2026, 2, 7, 9, 0)


def test_alignment():
    assert is_slot_aligned(datetime(2026, 2, 7, 9, 0))
    assert is_slot_aligned(datetime(2026, 2, 7, 9, 30))
    assert not is_slot_aligned(datetime(2026, 2, 7, 9, 15))
    assert not is_slot_aligned(datetime(2026, 2, 7, 9, 30, 1))


async def test_alignment_follows_configured_slot_length(session, catalog):
    with patch.object(settings, "slot_duration_minutes", 15):
        slots = await get_slots_for_date(session, "B1", date(2026, 2, 7))
        assert len(slots) == 16
        assert datetime(2026, 2, 7, 9, 15) in [s.start for s in slots]

        appointment = await book_appointment(session, _request(slot_start="2026-02-07T09:15"), catalog, now=NOW)
        assert appointment.slot_start == datetime(2026, 2, 7, 9, 15)

        with pytest.raises(BookingValidationError) as exc:
            await book_appointment(session, _request(slot_start="2026-02-07T09:10"), catalog, now=NOW)
        assert exc.value.kind == RejectionKind.MISALIGNED_SLOT

        slots = await get_slots_for_date(session, "B1", date(2026, 2, 7))
        assert [s.start for s in slots if not s.available] == [datetime(2026, 2, 7, 9, 15)]
