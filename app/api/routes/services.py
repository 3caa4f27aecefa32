from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_provider
from app.api.schemas.service import CreateServiceRequest
from app.core.db import get_session
from app.models.service import ServiceCreate, ServicePublic, ServiceType
from app.models.user import User
from app.services.catalog_service import create_service, get_service, list_services, service_to_public

router = APIRouter(prefix="/services", tags=["services"])


@router.post("", response_model=ServicePublic, status_code=status.HTTP_201_CREATED)
async def add_service(
    body: CreateServiceRequest,
    session: AsyncSession = Depends(get_session),
    provider: User = Depends(require_provider),
) -> ServicePublic:
    data = ServiceCreate(name=body.name, type=body.type, duration_minutes=body.duration_minutes)
    service = await create_service(session, provider.id, data)
    return service_to_public(service)


@router.get("", response_model=list[ServicePublic])
async def get_services(
    service_type: ServiceType | None = Query(None, alias="type"),
    session: AsyncSession = Depends(get_session),
) -> list[ServicePublic]:
    return [service_to_public(s) for s in await list_services(session, service_type)]


@router.get("/{service_id}", response_model=ServicePublic)
async def get_one_service(
    service_id: int,
    session: AsyncSession = Depends(get_session),
) -> ServicePublic:
    return service_to_public(await get_service(session, service_id))
