"""User administration: advisors manage accounts, everyone edits their own profile."""

from typing import List
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from advisor_scheduler.auth.models import User
from advisor_scheduler.auth.schemas import CurrentUser, UserInfo
from advisor_scheduler.auth.security import hash_password
from advisor_scheduler.core.enums import UserRole
from advisor_scheduler.core.exceptions import Conflict, Forbidden, NotFound, ValidationError

from .schemas import UserCreate, UserUpdate


async def list_users(db: AsyncSession) -> List[UserInfo]:
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    return [UserInfo.model_validate(u) for u in result.scalars().all()]


async def create_user(db: AsyncSession, payload: UserCreate) -> UserInfo:
    code = payload.code.strip()
    phone = payload.phone.strip()
    first_name = payload.first_name.strip()
    last_name = payload.last_name.strip()
    if not code or not phone or not first_name or not last_name:
        raise ValidationError("code, first_name, last_name and phone are required")
    if payload.role == UserRole.SYSTEM:
        raise ValidationError("role must be student or advisor")

    existing = (
        await db.execute(select(User).where(or_(User.code == code, User.phone == phone)))
    ).scalars().first()
    if existing:
        field = "code" if existing.code == code else "phone"
        raise Conflict(f"A user with this {field} already exists")

    user = User(
        code=code,
        first_name=first_name,
        last_name=last_name,
        phone=phone,
        email=str(payload.email) if payload.email else None,
        role=payload.role.value,
        office=payload.office.strip() if payload.office else None,
        password_hash=hash_password(payload.password),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("A user with this code or phone already exists")
    await db.refresh(user)
    return UserInfo.model_validate(user)


async def update_user(
    db: AsyncSession,
    current_user: CurrentUser,
    user_id: UUID,
    payload: UserUpdate,
) -> UserInfo:
    if current_user.id != user_id and current_user.role != UserRole.ADVISOR.value:
        raise Forbidden("You can only update your own profile")
    user = await db.get(User, user_id)
    if not user:
        raise NotFound("User not found")

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise ValidationError("No fields to update")

    if "phone" in changes:
        phone = changes["phone"].strip()
        if phone != user.phone:
            taken = (
                await db.execute(select(User.id).where(User.phone == phone, User.id != user.id))
            ).scalar_one_or_none()
            if taken:
                raise Conflict("Phone number is already in use")
        user.phone = phone
    for name in ("first_name", "last_name", "office"):
        if name in changes:
            setattr(user, name, changes[name].strip())
    if "email" in changes:
        user.email = str(changes["email"])
    if "password" in changes:
        user.password_hash = hash_password(changes["password"])

    await db.commit()
    await db.refresh(user)
    return UserInfo.model_validate(user)
