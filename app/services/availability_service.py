import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import Forbidden, InvalidInput, NotFound, OverlapConflict
from app.models.availability import AvailabilityWindow, AvailabilityWindowPublic
from app.models.service import Service
from app.services.time_range import TimeRange, find_overlapping, format_time

logger = logging.getLogger(__name__)


def window_range(window: AvailabilityWindow) -> TimeRange:
    return TimeRange(window.start_minute, window.end_minute)


def window_to_public(window: AvailabilityWindow) -> AvailabilityWindowPublic:
    return AvailabilityWindowPublic(
        id=window.id,
        service_id=window.service_id,
        day_of_week=window.day_of_week,
        start_time=format_time(window.start_minute),
        end_time=format_time(window.end_minute),
    )


def check_day_of_week(day: int) -> None:
    if not 0 <= day <= 6:
        raise InvalidInput("dayOfWeek must be between 0 (Sunday) and 6 (Saturday)")


async def list_windows(
    session: AsyncSession, service_id: int, day_of_week: int | None = None
) -> list[AvailabilityWindow]:
    q = select(AvailabilityWindow).where(AvailabilityWindow.service_id == service_id)
    if day_of_week is not None:
        q = q.where(AvailabilityWindow.day_of_week == day_of_week)
    q = q.order_by(AvailabilityWindow.day_of_week, AvailabilityWindow.start_minute)
    result = await session.execute(q)
    return list(result.scalars().all())


async def windows_for(session: AsyncSession, service_id: int, day_of_week: int) -> list[TimeRange]:
    """Windows of one service/day, ascending by start."""
    rows = await list_windows(session, service_id, day_of_week)
    return sorted(window_range(w) for w in rows)


async def add_window(
    session: AsyncSession,
    service_id: int,
    day_of_week: int,
    time_range: TimeRange,
    requester_id: int,
) -> AvailabilityWindow:
    """Insert a window unless it overlaps another one for the same service/day.

    Must run inside the ``(service_id, day_of_week)`` conflict domain; the
    caller commits.
    """
    check_day_of_week(day_of_week)
    service = await session.get(Service, service_id)
    if service is None:
        raise NotFound("Service not found")
    if service.provider_id != requester_id:
        raise Forbidden("Service does not belong to provider")

    existing = await windows_for(session, service_id, day_of_week)
    clash = find_overlapping(time_range, existing)
    if clash is not None:
        logger.info(
            "Window %s on day %d for service %d overlaps %s", time_range, day_of_week, service_id, clash
        )
        raise OverlapConflict(f"Overlapping availability: {time_range} overlaps {clash}")

    window = AvailabilityWindow(
        service_id=service_id,
        day_of_week=day_of_week,
        start_minute=time_range.start,
        end_minute=time_range.end,
    )
    session.add(window)
    await session.flush()
    await session.refresh(window)
    return window
