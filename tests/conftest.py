"""Shared test fixtures.

Every test gets its own SQLite file database (aiosqlite), created from the ORM
metadata. Redis is never initialized, so notification pushes and rate
limiting are skipped.
"""

from __future__ import annotations

import itertools
from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.auth.jwt import create_access_token
from wordflow.database import close_db, get_engine, init_db, session_scope
from wordflow.db.base import Base
from wordflow.db.models import User
from wordflow.main import create_app
from wordflow.users.service import create_user


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[None, None]:  # noqa: ANN001
    """Fresh schema in a per-test SQLite file."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'wordflow.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:  # noqa: ANN001
    """A direct session for calling services and asserting on rows."""
    async with session_scope() as session:
        yield session


@pytest_asyncio.fixture
async def client(database) -> AsyncGenerator[AsyncClient, None]:  # noqa: ANN001
    """Async HTTP client bound to the app (no lifespan, no Redis)."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user(database) -> Callable[..., Awaitable[User]]:  # noqa: ANN001
    """Factory that commits a user in its own session and returns it detached."""
    counter = itertools.count(1)

    async def _make(name: str | None = None, role: str = "USER") -> User:
        n = next(counter)
        async with session_scope() as db:
            user = await create_user(db, f"user{n}@example.com", name or f"User {n}", role)
            await db.commit()
            return user

    return _make


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}

    return _headers
