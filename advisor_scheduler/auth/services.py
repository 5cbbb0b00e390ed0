from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from advisor_scheduler.auth.models import User
from advisor_scheduler.auth.schemas import LoginRequest, LoginResponse, UserInfo
from advisor_scheduler.auth.security import create_access_token, verify_password
from advisor_scheduler.core.exceptions import ServiceError


async def login_user(db: AsyncSession, payload: LoginRequest) -> LoginResponse:
    result = await db.execute(select(User).where(User.code == payload.code.strip()))
    user = result.scalar_one_or_none()
    if not user or not verify_password(payload.password, user.password_hash):
        raise ServiceError("Invalid credentials", status.HTTP_401_UNAUTHORIZED)

    access_token = create_access_token(user.id, user.role)
    return LoginResponse(
        access_token=access_token,
        token_type="bearer",
        user=UserInfo.model_validate(user),
    )
