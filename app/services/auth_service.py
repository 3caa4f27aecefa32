from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import User, UserCreate, UserPublic


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, data: UserCreate) -> User:
    user = User(
        name=data.name,
        email=data.email.lower(),
        role=data.role,
        hashed_password=hash_password(data.password),
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user


def user_to_public(user: User) -> UserPublic:
    return UserPublic(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
    )


async def register_user(session: AsyncSession, data: UserCreate) -> User | None:
    """Returns the new user, or None if the email is taken."""
    existing = await get_user_by_email(session, data.email)
    if existing:
        return None
    try:
        return await create_user(session, data)
    except IntegrityError:
        # lost a race with a concurrent signup on the unique email index
        await session.rollback()
        return None


async def login_user(session: AsyncSession, email: str, password: str) -> tuple[User, str] | None:
    user = await get_user_by_email(session, email)
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user, create_access_token(user.id, user.role.value)
