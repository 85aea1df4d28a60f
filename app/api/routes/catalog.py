from datetime import date, time

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_catalog
from app.api.schemas.catalog import BusinessHoursResponse
from app.core.errors import CatalogReferenceError, RejectionKind
from app.models.catalog import Branch, Topic
from app.services.business_hours import hours_for
from app.services.catalog_service import Catalog

router = APIRouter(tags=["catalog"])


def _get_branch_or_404(catalog: Catalog, branch_id: str) -> Branch:
    branch = catalog.get_branch(branch_id)
    if not branch:
        raise CatalogReferenceError(RejectionKind.BRANCH_NOT_FOUND, "Branch not found")
    return branch


@router.get("/topics", response_model=list[Topic])
async def list_topics(catalog: Catalog = Depends(get_catalog)) -> list[Topic]:
    return catalog.list_topics()


@router.get("/branches", response_model=list[Branch])
async def list_branches(
    topic_id: str | None = Query(None),
    catalog: Catalog = Depends(get_catalog),
) -> list[Branch]:
    """Branches supporting the given topic, or every branch when no topic is given."""
    return catalog.list_branches(topic_id)


@router.get("/branches/{branch_id}", response_model=Branch)
async def get_branch(branch_id: str, catalog: Catalog = Depends(get_catalog)) -> Branch:
    return _get_branch_or_404(catalog, branch_id)


@router.get("/branches/{branch_id}/hours", response_model=BusinessHoursResponse)
async def branch_hours(
    branch_id: str,
    date_param: date = Query(..., alias="date"),
    catalog: Catalog = Depends(get_catalog),
) -> BusinessHoursResponse:
    _get_branch_or_404(catalog, branch_id)
    hours = hours_for(date_param)
    if hours is None:
        return BusinessHoursResponse(branch_id=branch_id, date=date_param, closed=True)
    lunch_start = time(hours.lunch_start) if hours.lunch_start is not None else None
    lunch_end = time(hours.lunch_end) if hours.lunch_end is not None else None
    return BusinessHoursResponse(
        branch_id=branch_id,
        date=date_param,
        closed=False,
        open_time=time(hours.open_hour),
        close_time=time(hours.close_hour),
        lunch_start=lunch_start,
        lunch_end=lunch_end,
    )
