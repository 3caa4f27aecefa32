import logging
from datetime import date

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import Forbidden, NoAvailability, NotFound, SlotConflict
from app.models.appointment import Appointment, AppointmentPublic, AppointmentStatus
from app.models.service import Service
from app.services.availability_service import windows_for
from app.services.time_range import TimeRange, day_of_week, find_overlapping, format_time

logger = logging.getLogger(__name__)


def appointment_range(a: Appointment) -> TimeRange:
    return TimeRange(a.start_minute, a.end_minute)


def appointment_to_public(a: Appointment) -> AppointmentPublic:
    return AppointmentPublic(
        id=a.id,
        user_id=a.user_id,
        provider_id=a.provider_id,
        service_id=a.service_id,
        date=a.date,
        start_time=format_time(a.start_minute),
        end_time=format_time(a.end_minute),
        status=a.status,
        created_at=a.created_at,
    )


async def booked_ranges(session: AsyncSession, provider_id: int, on_date: date) -> list[TimeRange]:
    """Ranges of the provider's BOOKED appointments on a date, ascending."""
    result = await session.execute(
        select(Appointment).where(
            Appointment.provider_id == provider_id,
            Appointment.date == on_date,
            Appointment.status == AppointmentStatus.BOOKED,
        )
    )
    return sorted(appointment_range(a) for a in result.scalars().all())


async def book(
    session: AsyncSession,
    user_id: int,
    service: Service,
    on_date: date,
    time_range: TimeRange,
) -> Appointment:
    """Insert a BOOKED appointment if it fits one window and hits no other booking.

    Must run inside the ``(provider_id, date)`` conflict domain; the caller
    commits.
    """
    windows = await windows_for(session, service.id, day_of_week(on_date))
    if not any(w.contains(time_range) for w in windows):
        logger.info("No window of service %d contains %s on %s", service.id, time_range, on_date)
        raise NoAvailability()

    clash = find_overlapping(time_range, await booked_ranges(session, service.provider_id, on_date))
    if clash is not None:
        logger.info(
            "Booking %s on %s for provider %d collides with %s", time_range, on_date, service.provider_id, clash
        )
        raise SlotConflict()

    appointment = Appointment(
        user_id=user_id,
        provider_id=service.provider_id,
        service_id=service.id,
        date=on_date,
        start_minute=time_range.start,
        end_minute=time_range.end,
        status=AppointmentStatus.BOOKED,
    )
    session.add(appointment)
    await session.flush()
    await session.refresh(appointment)
    return appointment


async def cancel(session: AsyncSession, appointment_id: int, requester_id: int) -> Appointment:
    """BOOKED -> CANCELLED. Cancelling a cancelled appointment is a no-op."""
    appointment = await session.get(Appointment, appointment_id)
    if appointment is None:
        raise NotFound("Appointment not found")
    if appointment.user_id != requester_id:
        raise Forbidden("Appointment does not belong to user")
    if appointment.status == AppointmentStatus.CANCELLED:
        return appointment

    # Compare-and-swap so two concurrent cancels flip the status once
    result = await session.execute(
        update(Appointment)
        .where(Appointment.id == appointment_id, Appointment.status == AppointmentStatus.BOOKED)
        .values(status=AppointmentStatus.CANCELLED)
    )
    await session.flush()
    if result.rowcount:
        logger.info("Appointment %d cancelled by user %d", appointment_id, requester_id)
    await session.refresh(appointment)
    return appointment


async def list_appointments_for_user(
    session: AsyncSession, user_id: int, from_date: date | None = None
) -> list[Appointment]:
    q = (
        select(Appointment)
        .where(Appointment.user_id == user_id)
        .order_by(Appointment.date, Appointment.start_minute)
    )
    if from_date:
        q = q.where(Appointment.date >= from_date)
    result = await session.execute(q)
    return list(result.scalars().all())


async def list_appointments_for_provider(
    session: AsyncSession, provider_id: int, from_date: date | None = None
) -> list[Appointment]:
    q = (
        select(Appointment)
        .where(Appointment.provider_id == provider_id)
        .order_by(Appointment.date, Appointment.start_minute)
    )
    if from_date:
        q = q.where(Appointment.date >= from_date)
    result = await session.execute(q)
    return list(result.scalars().all())
