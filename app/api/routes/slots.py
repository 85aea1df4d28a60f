from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_catalog, get_session
from app.api.schemas.appointment import SlotInfo
from app.core.errors import CatalogReferenceError, RejectionKind
from app.services.catalog_service import Catalog
from app.services.slot_service import get_available_dates, get_slots_for_date

router = APIRouter(prefix="/appointments", tags=["slots"])


def _require_branch(catalog: Catalog, branch_id: str) -> None:
    if not catalog.branch_exists(branch_id):
        raise CatalogReferenceError(RejectionKind.BRANCH_NOT_FOUND, "Branch not found")


@router.get("/available-dates", response_model=list[date])
async def available_dates(
    branch_id: str = Query(...),
    session: AsyncSession = Depends(get_session),
    catalog: Catalog = Depends(get_catalog),
) -> list[date]:
    """Dates in the booking window (starting tomorrow) with at least one free slot."""
    _require_branch(catalog, branch_id)
    return await get_available_dates(session, branch_id)


@router.get("/available-slots", response_model=list[SlotInfo])
async def available_slots(
    branch_id: str = Query(...),
    date_param: date = Query(..., alias="date"),
    session: AsyncSession = Depends(get_session),
    catalog: Catalog = Depends(get_catalog),
) -> list[SlotInfo]:
    """All slots for the branch on the given date, ascending. Each slot has start, end, and available."""
    _require_branch(catalog, branch_id)
    slots = await get_slots_for_date(session, branch_id, date_param)
    return [SlotInfo(start=s.start, end=s.end, available=s.available) for s in slots]
