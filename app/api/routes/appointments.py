import logging
from datetime import date

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_catalog, get_session
from app.api.schemas.appointment import (
    BookAppointmentRequest,
    ConfirmationQueuedResponse,
    DeleteAllResponse,
    ErrorResponse,
)
from app.core.config import settings
from app.models.appointment import Appointment, AppointmentCreate, AppointmentPublic
from app.services.booking_service import book_appointment
from app.services.booking_store import (
    delete_all_appointments,
    delete_appointment,
    get_appointment,
    list_appointments,
)
from app.services.catalog_service import Catalog
from app.services.email_service import send_appointment_confirmation_email

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["appointments"])

_BOOKING_ERRORS = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_409_CONFLICT: {"model": ErrorResponse},
    status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
}


def _to_public(a: Appointment) -> AppointmentPublic:
    return AppointmentPublic(
        id=a.id,
        name=a.name,
        email=a.email,
        topic_id=a.topic_id,
        branch_id=a.branch_id,
        slot_start=a.slot_start,
        reason=a.reason or "",
        created_at=a.created_at,
    )


def _queue_confirmation(background_tasks: BackgroundTasks, catalog: Catalog, appointment: Appointment) -> None:
    # Runs after the response is sent; failures are logged and never undo the booking
    background_tasks.add_task(
        send_appointment_confirmation_email,
        appointment=appointment,
        topic=catalog.get_topic(appointment.topic_id),
        branch=catalog.get_branch(appointment.branch_id),
    )


@router.post(
    "",
    response_model=AppointmentPublic,
    status_code=status.HTTP_201_CREATED,
    responses=_BOOKING_ERRORS,
)
async def create_appointment(
    body: BookAppointmentRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    catalog: Catalog = Depends(get_catalog),
) -> AppointmentPublic:
    data = AppointmentCreate(**body.model_dump())
    appointment = await book_appointment(session, data, catalog)
    _queue_confirmation(background_tasks, catalog, appointment)
    return _to_public(appointment)


@router.get("", response_model=list[AppointmentPublic])
async def list_all_appointments(
    branch_id: str | None = Query(None),
    from_date: date | None = Query(None),
    session: AsyncSession = Depends(get_session),
) -> list[AppointmentPublic]:
    """Admin listing, ordered by slot start."""
    appointments = await list_appointments(session, branch_id=branch_id, from_date=from_date)
    return [_to_public(a) for a in appointments]


@router.delete("", response_model=DeleteAllResponse)
async def delete_all(session: AsyncSession = Depends(get_session)) -> DeleteAllResponse:
    n = await delete_all_appointments(session)
    logger.info("Admin bulk delete: removed %d appointment(s)", n)
    return DeleteAllResponse(deleted=n)


@router.get("/{appointment_id}", response_model=AppointmentPublic)
async def read_appointment(
    appointment_id: str,
    session: AsyncSession = Depends(get_session),
) -> AppointmentPublic:
    appointment = await get_appointment(session, appointment_id)
    if not appointment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    return _to_public(appointment)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_one(
    appointment_id: str,
    session: AsyncSession = Depends(get_session),
) -> None:
    ok = await delete_appointment(session, appointment_id)
    if not ok:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    logger.info("Admin delete: removed appointment %s", appointment_id)


@router.post(
    "/{appointment_id}/send-confirmation",
    response_model=ConfirmationQueuedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def resend_confirmation(
    appointment_id: str,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    catalog: Catalog = Depends(get_catalog),
) -> ConfirmationQueuedResponse:
    appointment = await get_appointment(session, appointment_id)
    if not appointment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    _queue_confirmation(background_tasks, catalog, appointment)
    return ConfirmationQueuedResponse(appointment_id=appointment.id, email_enabled=settings.email_enabled)
