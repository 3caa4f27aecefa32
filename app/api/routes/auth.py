import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.api.schemas.auth import LoginRequest, RegisterRequest, RegisterResponse, Token
from app.core.db import get_session
from app.models.user import User, UserCreate, UserPublic
from app.services.auth_service import login_user, register_user, user_to_public

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    session: AsyncSession = Depends(get_session),
) -> RegisterResponse:
    user = await register_user(
        session,
        UserCreate(name=body.name, email=body.email, password=body.password, role=body.role),
    )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already exists",
        )
    logger.info("Registered %s user %d", user.role.value, user.id)
    return RegisterResponse(message=f"User created successfully with id {user.id}", id=user.id)


@router.post("/login", response_model=Token)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> Token:
    pair = await login_user(session, body.email, body.password)
    if not pair:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    _, access = pair
    return Token(access_token=access)


@router.get("/me", response_model=UserPublic)
async def me(current_user: User = Depends(get_current_user)) -> UserPublic:
    return user_to_public(current_user)
