import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from typing import AsyncGenerator, Dict

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from advisor_scheduler.auth.models import User
from advisor_scheduler.auth.security import create_access_token, hash_password
from advisor_scheduler.core.models import Project, ProjectStudent
from advisor_scheduler.db.session import Base, get_db
from advisor_scheduler.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "secret123"


@pytest_asyncio.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test, wired into the FastAPI dependency."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.clear()
    await engine.dispose()


@pytest_asyncio.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _make_user(db: AsyncSession, code: str, role: str, first_name: str, phone: str) -> User:
    user = User(
        code=code,
        first_name=first_name,
        last_name="Test",
        phone=phone,
        email=f"{code.lower()}@example.edu",
        role=role,
        password_hash=hash_password(TEST_PASSWORD),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture()
async def advisor(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "A100", "advisor", "Ada", "5550001")


@pytest_asyncio.fixture()
async def other_advisor(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "A200", "advisor", "Alan", "5550002")


@pytest_asyncio.fixture()
async def student(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "S100", "student", "Sam", "5550003")


@pytest_asyncio.fixture()
async def other_student(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "S200", "student", "Sue", "5550004")


@pytest_asyncio.fixture()
async def project(db_session: AsyncSession, advisor: User, student: User) -> Project:
    """Project owned by `advisor` with `student` on the roster."""
    project = Project(name="Thesis", advisor_id=advisor.id)
    db_session.add(project)
    await db_session.flush()
    db_session.add(ProjectStudent(project_id=project.id, student_id=student.id))
    await db_session.commit()
    await db_session.refresh(project)
    return project


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token(user.id, user.role)
    return {"Authorization": f"Bearer {token}"}
