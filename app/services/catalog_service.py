from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import InvalidInput, NotFound
from app.models.service import Service, ServiceCreate, ServicePublic, ServiceType


def check_duration(minutes: int) -> None:
    step = settings.service_duration_step_minutes
    low, high = settings.service_min_duration_minutes, settings.service_max_duration_minutes
    if minutes <= 0 or minutes % step or not low <= minutes <= high:
        raise InvalidInput(f"durationMinutes must be a multiple of {step} between {low} and {high}")


def service_to_public(service: Service) -> ServicePublic:
    return ServicePublic(
        id=service.id,
        provider_id=service.provider_id,
        name=service.name,
        type=service.type,
        duration_minutes=service.duration_minutes,
    )


async def create_service(session: AsyncSession, provider_id: int, data: ServiceCreate) -> Service:
    if not data.name.strip():
        raise InvalidInput("Service name is required")
    check_duration(data.duration_minutes)
    service = Service(
        provider_id=provider_id,
        name=data.name.strip(),
        type=data.type,
        duration_minutes=data.duration_minutes,
    )
    session.add(service)
    await session.flush()
    await session.refresh(service)
    return service


async def get_service(session: AsyncSession, service_id: int) -> Service:
    service = await session.get(Service, service_id)
    if service is None:
        raise NotFound("Service not found")
    return service


async def list_services(session: AsyncSession, service_type: ServiceType | None = None) -> list[Service]:
    q = select(Service).order_by(Service.id)
    if service_type is not None:
        q = q.where(Service.type == service_type)
    result = await session.execute(q)
    return list(result.scalars().all())
