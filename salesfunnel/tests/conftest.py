"""Async test fixtures for sales funnel tests using SQLite."""

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from salesfunnel.config import settings
from salesfunnel.database import get_db
from salesfunnel.models.account import UserAccount
from salesfunnel.models.base import Base
from salesfunnel.security import SessionUser, hash_password, issue_session_token

PASSWORD = "secret123"


def _sample_entry(**overrides) -> dict:
    payload = {
        "company_name": "Acme Corp",
        "contact_name": "John Smith",
        "contact_email": "john@acme.com",
        "stage": "Prospecting",
        "value": 50000,
        "probability": 30,
        "expected_revenue": 15000,
        "creation_date": "2023-01-15T00:00:00Z",
        "expected_close_date": "2023-03-15T00:00:00Z",
        "team_member": "Jane Doe",
        "progress_to_won": 30,
        "last_interacted_on": "2023-01-20T00:00:00Z",
        "next_step": "Schedule demo call",
    }
    payload.update(overrides)
    return payload


def _auth_headers(account: UserAccount) -> dict[str, str]:
    token = issue_session_token(settings, SessionUser(id=account.id, email=account.email))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


async def _make_account(db: AsyncSession, username: str, email: str) -> UserAccount:
    account = UserAccount(
        username=username,
        email=email,
        # low iteration count keeps the suite fast; verify reads it from the hash
        password_hash=hash_password(PASSWORD, iterations=1000),
    )
    db.add(account)
    await db.commit()
    await db.refresh(account)
    return account


@pytest_asyncio.fixture
async def account(db: AsyncSession):
    return await _make_account(db, "jane", "jane@example.com")


@pytest_asyncio.fixture
async def other_account(db: AsyncSession):
    return await _make_account(db, "bob", "bob@example.com")


@pytest_asyncio.fixture
async def client(engine):
    """HTTPX async test client against the sales funnel app."""
    from salesfunnel.app import app

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def auth_client(client: AsyncClient, account: UserAccount):
    """Client carrying a session cookie for ``account``."""
    token = issue_session_token(settings, SessionUser(id=account.id, email=account.email))
    client.cookies.set(settings.auth_cookie_name, token)
    return client


@pytest.fixture
def entry_payload():
    """Factory for a valid funnel entry payload; keyword args override fields."""
    return _sample_entry


@pytest.fixture
def headers_for():
    """Factory for Bearer auth headers for a given account."""
    return _auth_headers
