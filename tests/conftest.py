"""
Pytest fixtures for wikiflow tests.

Every test gets a fresh in-memory SQLite database. StaticPool keeps the
single connection alive so all sessions see the same data.
"""

import os
import uuid
from datetime import datetime, timedelta
from typing import AsyncGenerator, List, Optional

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
from wikiflow.config import Settings, get_settings
get_settings.cache_clear()

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from wikiflow.kernel.models import Base
from wikiflow.kernel.models.base import utcnow
from wikiflow.kernel.models.task import TaskStatus, WikiTask
from wikiflow.kernel.models.user import User, UserRole
from wikiflow.orchestration.workflow import WorkflowOrchestrator


TEST_DATABASE_URL = "sqlite+aiosqlite://"


class FakeClock:
    """Settable clock so deadline tests do not depend on wall time."""

    def __init__(self, now: Optional[datetime] = None):
        self.now = now or utcnow()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_maker(db_engine) -> async_sessionmaker:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def settings() -> Settings:
    """Workflow settings with the default quorum (every eligible reviewer)."""
    return Settings(
        database_url=TEST_DATABASE_URL,
        reviewer_roles=["team_member"],
        min_votes_per_document=None,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def orchestrator(db_session, settings, clock) -> WorkflowOrchestrator:
    return WorkflowOrchestrator(db_session, settings=settings, clock=clock)


async def make_user(
    session: AsyncSession,
    role: UserRole,
    name: str,
    is_active: bool = True,
) -> User:
    user = User(
        id=uuid.uuid4(),
        email=f"{name.lower().replace(' ', '.')}-{uuid.uuid4().hex[:6]}@example.com",
        full_name=name,
        role=role,
        is_active=is_active,
    )
    session.add(user)
    await session.flush()
    return user


@pytest_asyncio.fixture
async def admin(db_session) -> User:
    return await make_user(db_session, UserRole.ADMIN, "Ada Admin")


@pytest_asyncio.fixture
async def annotator(db_session) -> User:
    return await make_user(db_session, UserRole.CODE_AUTHOR, "Cody Author")


@pytest_asyncio.fixture
async def writer_a(db_session) -> User:
    return await make_user(db_session, UserRole.DOC_AUTHOR, "Writer A")


@pytest_asyncio.fixture
async def writer_b(db_session) -> User:
    return await make_user(db_session, UserRole.DOC_AUTHOR, "Writer B")


@pytest_asyncio.fixture
async def reviewers(db_session) -> List[User]:
    return [
        await make_user(db_session, UserRole.TEAM_MEMBER, f"Reviewer {i}")
        for i in range(1, 4)
    ]


@pytest_asyncio.fixture
async def task(db_session, admin, annotator, writer_a, writer_b, clock) -> WikiTask:
    """A fresh not_started task due in a week."""
    wiki_task = WikiTask(
        function_ref="billing/invoices/create",
        title="Document invoice creation",
        description="Cover the happy path and the retry behaviour",
        code_annotator_id=annotator.id,
        writer1_id=writer_a.id,
        writer2_id=writer_b.id,
        assigned_by=admin.id,
        deadline=clock.now + timedelta(days=7),
        status=TaskStatus.NOT_STARTED,
    )
    db_session.add(wiki_task)
    await db_session.flush()
    return wiki_task


@pytest_asyncio.fixture
async def client(session_maker, db_session, admin, annotator, writer_a, writer_b, reviewers):
    """
    Async API client bound to the test database.

    The fixture users are committed first so the request-scoped sessions
    of the API see them.
    """
    from wikiflow.database import get_db
    from wikiflow.main import app

    await db_session.commit()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_db, None)


def auth(user: User) -> dict:
    """Identity header as forwarded by the auth gateway."""
    return {"X-User-Id": str(user.id)}
