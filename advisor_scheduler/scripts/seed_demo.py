"""
Seed a demo advisor, a demo student and a project linking them.

Run after init_db. Idempotent: existing rows (matched by code / project name) are left alone.
Usage: python -m advisor_scheduler.scripts.seed_demo
"""

import asyncio
import logging
from typing import Dict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from advisor_scheduler.auth.models import User
from advisor_scheduler.auth.security import hash_password
from advisor_scheduler.core.enums import UserRole
from advisor_scheduler.core.logging import configure_logging
from advisor_scheduler.core.models import Project, ProjectStudent
from advisor_scheduler.db.session import AsyncSessionLocal

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "demo1234"
DEMO_PROJECT_NAME = "Demo Graduation Project"

DEMO_USERS: Dict[str, Dict[str, str]] = {
    "A1001": {
        "first_name": "Ayse",
        "last_name": "Demir",
        "phone": "5550000001",
        "email": "advisor@example.edu",
        "role": UserRole.ADVISOR.value,
        "office": "B-204",
    },
    "S2001": {
        "first_name": "Mert",
        "last_name": "Kaya",
        "phone": "5550000002",
        "email": "student@example.edu",
        "role": UserRole.STUDENT.value,
    },
}


async def _get_or_create_user(db: AsyncSession, code: str, fields: Dict[str, str]) -> User:
    user = (await db.execute(select(User).where(User.code == code))).scalar_one_or_none()
    if user:
        logger.info("User %s already exists", code)
        return user
    user = User(code=code, password_hash=hash_password(DEMO_PASSWORD), **fields)
    db.add(user)
    await db.flush()
    logger.info("Created %s %s", fields["role"], code)
    return user


async def seed_demo(db: AsyncSession) -> None:
    advisor = await _get_or_create_user(db, "A1001", DEMO_USERS["A1001"])
    student = await _get_or_create_user(db, "S2001", DEMO_USERS["S2001"])

    project = (
        await db.execute(
            select(Project).where(Project.name == DEMO_PROJECT_NAME, Project.advisor_id == advisor.id)
        )
    ).scalar_one_or_none()
    if not project:
        project = Project(name=DEMO_PROJECT_NAME, advisor_id=advisor.id)
        db.add(project)
        await db.flush()
        logger.info("Created project %r", DEMO_PROJECT_NAME)

    membership = (
        await db.execute(
            select(ProjectStudent).where(
                ProjectStudent.project_id == project.id,
                ProjectStudent.student_id == student.id,
            )
        )
    ).scalar_one_or_none()
    if not membership:
        db.add(ProjectStudent(project_id=project.id, student_id=student.id))
    await db.commit()


async def main_async() -> None:
    async with AsyncSessionLocal() as session:
        await seed_demo(session)


def main() -> None:
    configure_logging()
    asyncio.run(main_async())


if __name__ == "__main__":
    main()
