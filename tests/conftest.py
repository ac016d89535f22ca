# tests/conftest.py

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from mpms.database import Base
from mpms.models.comment import Comment  # noqa: F401  registers the table
from mpms.models.enums import UserRole

from .factories import make_project, make_sprint, make_task, make_user


@pytest_asyncio.fixture()
async def engine():
    """
    Fresh in-memory SQLite per test.

    StaticPool keeps the single connection alive, otherwise every checkout
    would see an empty database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture()
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def admin(db):
    return await make_user(db, UserRole.ADMIN, name="Ada Admin")


@pytest_asyncio.fixture()
async def manager(db):
    return await make_user(db, UserRole.MANAGER, name="Mona Manager")


@pytest_asyncio.fixture()
async def member(db):
    return await make_user(db, UserRole.MEMBER, name="Alex Member")


@pytest_asyncio.fixture()
async def outsider(db):
    """A member who is on no team and assigned to nothing."""
    return await make_user(db, UserRole.MEMBER, name="Oli Outsider")


@pytest_asyncio.fixture()
async def project(db, manager, member):
    return await make_project(db, manager, team=[member])


@pytest_asyncio.fixture()
async def sprint(db, project):
    return await make_sprint(db, project)


@pytest_asyncio.fixture()
async def task(db, sprint, member):
    return await make_task(db, sprint, assignees=[member])
