"""Durable appointment records keyed by (branch_id, slot_start).

The unique constraint on that pair is the only double-booking guard that holds
under concurrency: ``slot_exists`` is advisory, ``commit_appointment`` is final.
All ``slot_start`` arguments are canonical naive wall-clock datetimes.
"""
import asyncio
import logging
from collections.abc import Awaitable
from datetime import date, datetime
from typing import TypeVar

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import SlotTakenError, TransientStoreError
from app.models.appointment import Appointment

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _bounded(aw: Awaitable[T], operation: str) -> T:
    """Await a store call, reporting timeouts and connection failures as transient."""
    try:
        return await asyncio.wait_for(aw, timeout=settings.store_timeout_seconds)
    except TimeoutError as e:
        logger.warning("Store %s timed out after %.1fs", operation, settings.store_timeout_seconds)
        raise TransientStoreError() from e
    except OperationalError as e:
        logger.warning("Store %s failed: %s", operation, e)
        raise TransientStoreError() from e


async def slot_exists(session: AsyncSession, branch_id: str, slot_start: datetime) -> bool:
    result = await _bounded(
        session.execute(
            select(Appointment.id)
            .where(
                Appointment.branch_id == branch_id,
                Appointment.slot_start == slot_start,
            )
            .limit(1)
        ),
        "slot lookup",
    )
    return result.first() is not None


async def get_booked_slot_starts(
    session: AsyncSession, branch_id: str, start_inclusive: datetime, end_exclusive: datetime
) -> set[datetime]:
    result = await _bounded(
        session.execute(
            select(Appointment.slot_start).where(
                Appointment.branch_id == branch_id,
                Appointment.slot_start >= start_inclusive,
                Appointment.slot_start < end_exclusive,
            )
        ),
        "booked slot lookup",
    )
    return {row[0] for row in result.all()}


async def commit_appointment(session: AsyncSession, appointment: Appointment) -> Appointment:
    """Insert and commit in one transaction; raise SlotTakenError if the key is taken."""
    session.add(appointment)
    try:
        await _bounded(session.commit(), "commit")
    except IntegrityError as e:
        await session.rollback()
        logger.info(
            "Slot %s at branch %s was taken by a concurrent booking",
            appointment.slot_start.isoformat(),
            appointment.branch_id,
        )
        raise SlotTakenError() from e
    except TransientStoreError:
        await session.rollback()
        raise
    return appointment


async def get_appointment(session: AsyncSession, appointment_id: str) -> Appointment | None:
    result = await session.execute(select(Appointment).where(Appointment.id == appointment_id))
    return result.scalar_one_or_none()


async def list_appointments(
    session: AsyncSession, branch_id: str | None = None, from_date: date | None = None
) -> list[Appointment]:
    q = select(Appointment).order_by(Appointment.slot_start, Appointment.branch_id)
    if branch_id:
        q = q.where(Appointment.branch_id == branch_id)
    if from_date:
        start = datetime(from_date.year, from_date.month, from_date.day, 0, 0, 0)
        q = q.where(Appointment.slot_start >= start)
    result = await session.execute(q)
    return list(result.scalars().all())


async def delete_appointment(session: AsyncSession, appointment_id: str) -> bool:
    appointment = await get_appointment(session, appointment_id)
    if not appointment:
        return False
    await session.delete(appointment)
    await session.flush()
    return True


async def delete_all_appointments(session: AsyncSession) -> int:
    """Bulk administrative delete. Returns count deleted."""
    result = await session.execute(delete(Appointment))
    await session.flush()
    return result.rowcount or 0
