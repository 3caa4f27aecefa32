from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_provider
from app.api.schemas.availability import FreeSlotsResponse, SetAvailabilityRequest, TimeRangeInfo
from app.core.db import get_session
from app.models.availability import AvailabilityWindowPublic
from app.models.user import User
from app.services import booking_engine
from app.services.availability_service import check_day_of_week, list_windows, window_to_public
from app.services.catalog_service import get_service
from app.services.time_range import day_of_week, format_time

router = APIRouter(prefix="/services", tags=["availability"])


@router.post(
    "/{service_id}/availability",
    response_model=AvailabilityWindowPublic,
    status_code=status.HTTP_201_CREATED,
)
async def set_availability(
    service_id: int,
    body: SetAvailabilityRequest,
    session: AsyncSession = Depends(get_session),
    provider: User = Depends(require_provider),
) -> AvailabilityWindowPublic:
    """Add a weekly window; dayOfWeek is 0 (Sunday) .. 6 (Saturday)."""
    window = await booking_engine.create_window(
        session, service_id, body.day_of_week, body.start_time, body.end_time, provider.id
    )
    return window_to_public(window)


@router.get("/{service_id}/availability", response_model=list[AvailabilityWindowPublic])
async def get_availability(
    service_id: int,
    dow: int | None = Query(None, alias="day_of_week"),
    session: AsyncSession = Depends(get_session),
) -> list[AvailabilityWindowPublic]:
    if dow is not None:
        check_day_of_week(dow)
    await get_service(session, service_id)
    return [window_to_public(w) for w in await list_windows(session, service_id, dow)]


@router.get("/{service_id}/slots", response_model=FreeSlotsResponse)
async def free_slots(
    service_id: int,
    date_param: date = Query(..., alias="date"),
    bucket_minutes: int | None = Query(None, gt=0),
    session: AsyncSession = Depends(get_session),
) -> FreeSlotsResponse:
    """Unbooked parts of the service's windows on the given date."""
    ranges = await booking_engine.list_free_slots(session, service_id, date_param, bucket_minutes)
    return FreeSlotsResponse(
        service_id=service_id,
        date=date_param,
        day_of_week=day_of_week(date_param),
        slots=[TimeRangeInfo(start_time=format_time(r.start), end_time=format_time(r.end)) for r in ranges],
    )
