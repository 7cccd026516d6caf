import os

TEST_SECRET = "sharelinks-test-secret-0123456789abcdef"

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", TEST_SECRET)
os.environ.setdefault("LINK_BASE_URL", "https://links.test")

import uuid
from dataclasses import replace
from unittest.mock import AsyncMock

import httpx
import jwt
import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from sharelinks.config import settings as base_settings
from sharelinks.container import Services
from sharelinks.db import Base, get_sessionmaker
from sharelinks.main import create_app
from sharelinks.models.user import UserRole
from sharelinks.repositories import UserRepository



class FakeSource:
    """In-memory remote link listing."""

    def __init__(self, links=None, error: Exception | None = None):
        self.links = list(links or [])
        self.error = error
        self.calls = 0

    async def fetch_links(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.links)


@pytest.fixture()
def settings():
    return replace(
        base_settings,
        database_url="sqlite+aiosqlite://",
        jwt_secret=TEST_SECRET,
        link_base_url="https://links.test",
        policy_max_days_internal=90,
        policy_max_days_external=30,
        policy_allow_public_sharing=True,
    )


@pytest.fixture()
async def engine():
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
    return get_sessionmaker(engine)


@pytest.fixture()
def users(session_factory):
    return UserRepository(session_factory)


@pytest.fixture()
async def user(users):
    return await users.create(f"user-{uuid.uuid4().hex[:8]}@example.com", "Test User")


@pytest.fixture()
async def other_user(users):
    return await users.create(f"other-{uuid.uuid4().hex[:8]}@example.com", "Other User")


@pytest.fixture()
async def admin(users):
    return await users.create(
        f"admin-{uuid.uuid4().hex[:8]}@example.com", "Admin", role=UserRole.admin
    )


@pytest.fixture()
def source():
    return FakeSource()


@pytest.fixture()
def dispatcher():
    dispatcher = AsyncMock()
    dispatcher.dispatch = AsyncMock(return_value=None)
    return dispatcher


@pytest.fixture()
async def services(settings, engine, source, dispatcher):
    services = Services(settings, engine=engine, source=source, dispatcher=dispatcher)
    await services.init()
    yield services
    await services.shutdown()


@pytest.fixture()
async def policy(services):
    return await services.policies.current()


@pytest.fixture()
async def client(settings, services):
    app = create_app(settings, services=services)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def bearer_for(user, secret: str = TEST_SECRET) -> dict:
    claims = {"email": user.email, "sub": str(user.id)}
    token = jwt.encode(claims, secret, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_headers(user):
    return bearer_for(user)


@pytest.fixture()
def admin_headers(admin):
    return bearer_for(admin)


@pytest.fixture()
def other_headers(other_user):
    return bearer_for(other_user)
