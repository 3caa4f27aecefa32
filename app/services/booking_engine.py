"""Admission of availability windows and appointments.

Each write runs its read, decide, insert and commit while holding the lock of
its conflict domain:

- ``("window", service_id, day_of_week)`` for new windows
- ``("booking", provider_id, date)`` for new appointments

so two overlapping requests in the same domain can never both be admitted.
On PostgreSQL a transaction-level advisory lock on the same key extends this
to every worker process sharing the database.
Cancellation is a compare-and-swap on the row and takes no domain lock.
Time strings are parsed before the store is touched.
"""

import logging
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import StorageError
from app.models.appointment import Appointment
from app.models.availability import AvailabilityWindow
from app.services import appointment_service, availability_service
from app.services.catalog_service import get_service
from app.services.locks import advisory_xact_lock, domain_locks
from app.services.time_range import TimeRange, day_of_week, split_into_buckets, subtract

logger = logging.getLogger(__name__)


async def _commit(session: AsyncSession) -> None:
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("Commit failed: %s", e)
        raise StorageError() from e


async def create_window(
    session: AsyncSession,
    service_id: int,
    dow: int,
    start_time: str,
    end_time: str,
    requester_id: int,
) -> AvailabilityWindow:
    time_range = TimeRange.parse(start_time, end_time)
    availability_service.check_day_of_week(dow)
    try:
        key = ("window", service_id, dow)
        async with domain_locks.hold(key, settings.lock_timeout_seconds):
            await advisory_xact_lock(session, key, settings.lock_timeout_seconds)
            window = await availability_service.add_window(session, service_id, dow, time_range, requester_id)
            await _commit(session)
    except SQLAlchemyError as e:
        logger.exception("Adding window for service %d failed: %s", service_id, e)
        raise StorageError() from e
    logger.info("Window %s added on day %d for service %d", time_range, dow, service_id)
    return window


async def create_appointment(
    session: AsyncSession,
    service_id: int,
    on_date: date,
    start_time: str,
    end_time: str,
    requester_id: int,
) -> Appointment:
    time_range = TimeRange.parse(start_time, end_time)
    try:
        # Services are immutable, so the owner can be read before locking
        service = await get_service(session, service_id)
        key = ("booking", service.provider_id, on_date)
        async with domain_locks.hold(key, settings.lock_timeout_seconds):
            await advisory_xact_lock(session, key, settings.lock_timeout_seconds)
            appointment = await appointment_service.book(session, requester_id, service, on_date, time_range)
            await _commit(session)
    except SQLAlchemyError as e:
        logger.exception("Booking service %d on %s failed: %s", service_id, on_date, e)
        raise StorageError() from e
    logger.info(
        "Appointment %d booked: user %d, service %d, %s %s", appointment.id, requester_id, service_id, on_date, time_range
    )
    return appointment


async def cancel_appointment(session: AsyncSession, appointment_id: int, requester_id: int) -> Appointment:
    try:
        appointment = await appointment_service.cancel(session, appointment_id, requester_id)
        await _commit(session)
    except SQLAlchemyError as e:
        logger.exception("Cancelling appointment %d failed: %s", appointment_id, e)
        raise StorageError() from e
    return appointment


async def list_windows(session: AsyncSession, service_id: int, dow: int) -> list[TimeRange]:
    availability_service.check_day_of_week(dow)
    try:
        await get_service(session, service_id)
        return await availability_service.windows_for(session, service_id, dow)
    except SQLAlchemyError as e:
        raise StorageError() from e


async def list_free_slots(
    session: AsyncSession, service_id: int, on_date: date, bucket_minutes: int | None = None
) -> list[TimeRange]:
    """Bookable ranges of a service on a date.

    Each window of the weekday minus the provider's BOOKED appointments on that
    date. With ``bucket_minutes`` the gaps are cut into fixed-size slots.
    """
    try:
        service = await get_service(session, service_id)
        windows = await availability_service.windows_for(session, service_id, day_of_week(on_date))
        busy = await appointment_service.booked_ranges(session, service.provider_id, on_date)
    except SQLAlchemyError as e:
        raise StorageError() from e

    free: list[TimeRange] = []
    for window in windows:
        free.extend(subtract(window, busy))
    if bucket_minutes is not None:
        free = [bucket for gap in free for bucket in split_into_buckets(gap, bucket_minutes)]
    return free
