"""
Pytest fixtures for testing.
"""
import os

# Settings are read at import time; give the app a throwaway configuration
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("REFRESH_SECRET_KEY", "test-refresh-secret-key")

import pytest
import pytest_asyncio
from typing import AsyncGenerator, Callable

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Import database module BEFORE app to allow override
import jobboard.database
from jobboard.database import Base
from jobboard.config import Settings, get_settings
# Import ALL models so Base.metadata knows about all tables
from jobboard.models import User, UserRole, JobPosting
from jobboard.schemas.job import JobCreate
from jobboard.services.job_repository import create_posting
from jobboard.services.security import create_access_token, hash_password

# Now import app (after we can override database)
from jobboard.main import app as fastapi_app


# Test database URL (use in-memory SQLite for fast tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "Password1!"


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database for each test.
    Ensures cleanup happens even if test fails.
    """
    # Use StaticPool to keep single connection alive and reuse it
    # This ensures all sessions see the same in-memory database
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables FIRST
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # THEN replace the app's engine and sessionmaker
    # This ensures get_db() uses sessions connected to DB with tables
    original_engine = jobboard.database.engine
    original_sessionmaker = jobboard.database.AsyncSessionLocal

    jobboard.database.engine = test_engine
    jobboard.database.AsyncSessionLocal = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    # Create session for direct test use
    async_session = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    session = async_session()

    try:
        yield session
    finally:
        await session.close()

        async with test_engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await test_engine.dispose()

        # Restore original engine
        jobboard.database.engine = original_engine
        jobboard.database.AsyncSessionLocal = original_sessionmaker


@pytest_asyncio.fixture
async def async_client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing endpoints.

    The db fixture already replaced jobboard.database.engine with test engine,
    so all endpoints will automatically use the test database.
    """
    transport = ASGITransport(app=fastapi_app)

    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        follow_redirects=True  # Follow 307 redirects for trailing slashes
    ) as client:
        yield client


async def _create_user(db: AsyncSession, email: str, name: str, role: UserRole = UserRole.USER) -> User:
    user = User(
        email=email,
        name=name,
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(db: AsyncSession) -> User:
    """The user most tests act as."""
    return await _create_user(db, "testuser@jobboard.dev", "tester")


@pytest_asyncio.fixture
async def other_user(db: AsyncSession) -> User:
    """A second account, for ownership checks."""
    return await _create_user(db, "other@jobboard.dev", "other")


def auth_headers(user: User, settings: Settings) -> dict:
    token = create_access_token(user.id, user.email, settings)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def client(async_client: AsyncClient, test_user: User, settings: Settings) -> AsyncClient:
    """Client authenticated as test_user with a bearer access token."""
    async_client.headers.update(auth_headers(test_user, settings))
    return async_client


def job_data(n: int = 1, **overrides) -> dict:
    """Fields for a user-submitted posting; ``n`` keeps title and link unique."""
    data = {
        "company_name": f"Company {n}",
        "title": f"Backend Engineer {n}",
        "link": f"https://jobs.example.com/view/{n}",
        "education_level": "대졸",
        "deadline": "~ 12/31(화)",
        "location_names": ["서울 강남구"],
        "sector_names": ["백엔드"],
        "employment_type": "정규직",
        "salary": None,
    }
    data.update(overrides)
    return data


@pytest_asyncio.fixture
async def make_posting(db: AsyncSession, test_user: User) -> Callable:
    """Factory creating postings through the repository, owned by test_user by default."""
    counter = {"n": 0}

    async def _make(owner: User = None, **overrides) -> JobPosting:
        counter["n"] += 1
        owner = owner or test_user
        data = JobCreate(**job_data(counter["n"], **overrides))
        return await create_posting(db, owner.id, data)

    return _make
