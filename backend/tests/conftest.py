"""Shared fixtures: a throwaway SQLite database and JWT-authenticated clients.

Environment variables are set before `src` is imported because settings,
the engine and the rate limiter are built at import time.
"""

import os
import tempfile
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path


_DB_DIR = tempfile.mkdtemp(prefix="workspace-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{Path(_DB_DIR) / 'test.db'}"
os.environ["ENVIRONMENT"] = "test"
os.environ["AUTH_PROVIDER"] = "jwt"
os.environ["AUTH_SECRET_KEY"] = "test-secret-key-for-the-suite"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.security import create_access_token
from src.database.base import Base
from src.database.engine import engine
from src.database.session import async_session_maker
from src.main import app
from src.projects.models import Project, Task
from src.users.models import User, UserRole


ClientFactory = Callable[..., Awaitable[AsyncClient]]


@pytest_asyncio.fixture(autouse=True)
async def database() -> AsyncGenerator[None, None]:
    """Fresh schema for every test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client_factory() -> AsyncGenerator[ClientFactory, None]:
    """Build clients that carry a bearer token for `user_id` with `role`."""
    clients: list[AsyncClient] = []

    async def _make(user_id: int | None = None, role: str = UserRole.ADMIN.value) -> AsyncClient:
        headers = {}
        if user_id is not None:
            headers["Authorization"] = f"Bearer {create_access_token(user_id, role)}"
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test", headers=headers)
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.aclose()


async def _add_user(session: AsyncSession, email: str, role: UserRole, first_name: str) -> User:
    user = User(email=email, first_name=first_name, last_name="Tester", role=role.value)
    session.add(user)
    await session.commit()
    return user


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> User:
    return await _add_user(db_session, "admin@example.com", UserRole.ADMIN, "Ada")


@pytest_asyncio.fixture
async def freelancer(db_session: AsyncSession) -> User:
    return await _add_user(db_session, "freelancer@example.com", UserRole.FREELANCER, "Finn")


@pytest_asyncio.fixture
async def client_user(db_session: AsyncSession) -> User:
    return await _add_user(db_session, "client@example.com", UserRole.CLIENT, "Cleo")


@pytest_asyncio.fixture
async def admin_client(client_factory: ClientFactory, admin: User) -> AsyncClient:
    return await client_factory(admin.id, UserRole.ADMIN.value)


@pytest_asyncio.fixture
async def freelancer_client(client_factory: ClientFactory, freelancer: User) -> AsyncClient:
    return await client_factory(freelancer.id, UserRole.FREELANCER.value)


@pytest_asyncio.fixture
async def customer_client(client_factory: ClientFactory, client_user: User) -> AsyncClient:
    return await client_factory(client_user.id, UserRole.CLIENT.value)


@pytest_asyncio.fixture
async def project(db_session: AsyncSession) -> Project:
    project = Project(title="Website redesign", description="Marketing site refresh")
    db_session.add(project)
    await db_session.commit()
    return project


@pytest_asyncio.fixture
async def task(db_session: AsyncSession, project: Project, freelancer: User) -> Task:
    task = Task(project_id=project.id, title="Landing page mockups", assigned_to_id=freelancer.id)
    db_session.add(task)
    await db_session.commit()
    return task
