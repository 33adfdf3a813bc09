import os
import uuid
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Load .env.test when present; an in-memory SQLite database is the fallback
from dotenv import load_dotenv

env_test_path = os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=False)

SQLITE_URL = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("DATABASE_URL", SQLITE_URL)
os.environ.setdefault("ENVIRONMENT", "test")

from libs.common.config import get_settings  # noqa: E402

# Clear cached settings to reload with new env vars
get_settings.cache_clear()
settings = get_settings()

from libs.auth.capabilities import Actor  # noqa: E402
from libs.auth.models import AuthUser  # noqa: E402
from libs.db.base import Base  # noqa: E402
from services.gateway_service.app.main import app  # noqa: E402
from services.members_service.services.roster import load_actor  # noqa: E402

# Import all models so metadata includes every table
from services.events_service import models as _event_models  # noqa: F401,E402
from services.members_service import models as _member_models  # noqa: F401,E402
from services.transport_service import models as _transport_models  # noqa: F401,E402


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # ON DELETE CASCADE is off by default in SQLite
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture
async def test_engine():
    """
    One fresh database per test.

    ``TEST_DATABASE_URL`` points the suite at a real Postgres; otherwise an
    in-memory SQLite database shared through a single connection is used.
    """
    db_url = os.environ.get("TEST_DATABASE_URL", SQLITE_URL)

    if db_url.startswith("sqlite"):
        engine = create_async_engine(db_url, poolclass=StaticPool)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_async_engine(db_url)

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except OperationalError:
        await engine.dispose()
        pytest.skip("Database not available for tests")

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session configured like the application's session factory."""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


@pytest_asyncio.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient on the gateway app with the DB dependency overridden.

    Authentication goes through real bearer tokens (see :func:`auth_headers`).
    """
    from libs.db.session import get_async_db

    async def _override_db():
        yield db_session

    app.dependency_overrides[get_async_db] = _override_db

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


def make_token(user_id: uuid.UUID, email: str = "user@test.com") -> str:
    """Sign an access token the way Supabase does (HS256, ``sub`` claim)."""
    payload = {"sub": str(user_id), "email": email, "role": "authenticated"}
    return jwt.encode(payload, get_settings().SUPABASE_JWT_SECRET, algorithm="HS256")


def auth_headers(user_id: uuid.UUID) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


async def actor_for(db: AsyncSession, profile) -> Actor:
    """Resolve a profile into an Actor exactly like the routers do."""
    return await load_actor(db, AuthUser(sub=str(profile.id)))
