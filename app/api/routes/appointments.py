import logging
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_session, require_customer
from app.api.schemas.appointment import BookAppointmentRequest
from app.models.appointment import AppointmentPublic
from app.models.user import Role, User
from app.services import booking_engine
from app.services.appointment_service import (
    appointment_to_public,
    list_appointments_for_provider,
    list_appointments_for_user,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    body: BookAppointmentRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_customer),
) -> AppointmentPublic:
    appointment = await booking_engine.create_appointment(
        session, body.service_id, body.date, body.start_time, body.end_time, current_user.id
    )
    return appointment_to_public(appointment)


@router.get("", response_model=list[AppointmentPublic])
async def list_my_appointments(
    from_date: date | None = Query(None, alias="from_date"),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> list[AppointmentPublic]:
    """Users see their bookings; providers see bookings made with them."""
    if current_user.role == Role.SERVICE_PROVIDER:
        appointments = await list_appointments_for_provider(session, current_user.id, from_date=from_date)
    else:
        appointments = await list_appointments_for_user(session, current_user.id, from_date=from_date)
    return [appointment_to_public(a) for a in appointments]


@router.patch("/{appointment_id}/cancel", response_model=AppointmentPublic)
async def cancel_my_appointment(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> AppointmentPublic:
    appointment = await booking_engine.cancel_appointment(session, appointment_id, current_user.id)
    return appointment_to_public(appointment)
