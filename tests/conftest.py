"""Pytest configuration and fixtures."""

import asyncio
import sys
from datetime import datetime, UTC

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import create_async_engine

import config
from api.deps import get_services
from auth.jwt import create_dev_token
from auth.upload_token import UploadTokenSigner
from db import Base, create_session_factory
from main import app
from services.container import UploadLinkServices
from services.retry import RetryPolicy
from tests.fakes import InMemoryBlobStore, InMemoryUploadLinkStore, MutableClock

# Fix Windows asyncio event loop
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

TEST_UPLOAD_SECRET = "test-upload-secret"
BASE_URL = "https://portal.example.com"
OWNER_A = "user_2abcOwnerA"
OWNER_B = "user_2xyzOwnerB"

# Test database URL (use same DB as dev for now)
TEST_DATABASE_URL = config.settings.DATABASE_URL

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
TestSessionLocal = create_session_factory(test_engine)


@pytest.fixture
def clock():
    """Clock frozen at a fixed instant; tests advance it explicitly."""
    return MutableClock(datetime(2025, 3, 4, 9, 0, 0, tzinfo=UTC))


@pytest.fixture
def store():
    return InMemoryUploadLinkStore()


@pytest.fixture
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture
def signer():
    return UploadTokenSigner(TEST_UPLOAD_SECRET)


@pytest.fixture
def services(store, blob_store, signer, clock):
    """Service container wired to in-memory doubles, with zero retry delay."""
    return UploadLinkServices(
        store=store,
        blob_store=blob_store,
        signer=signer,
        base_url=BASE_URL,
        retry_policy=RetryPolicy(max_attempts=3, base_delay=0),
        clock=clock,
    )


@pytest.fixture
def client(services):
    """Create test client using the in-memory service container."""
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_auth_headers(owner_id: str) -> dict:
    """
    Helper function to create owner session auth headers.

    Args:
        owner_id: Owner id to put in the session token subject

    Returns:
        Headers dict with Authorization
    """
    return {"Authorization": f"Bearer {create_dev_token(owner_id)}"}


@pytest.fixture
def owner_a_headers():
    return make_auth_headers(OWNER_A)


@pytest.fixture
def owner_b_headers():
    return make_auth_headers(OWNER_B)


@pytest_asyncio.fixture(scope="function")
async def db_session():
    """Create a test database session on a freshly created schema."""
    # Register every model on Base.metadata
    import models  # noqa: F401

    try:
        async with test_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except (OSError, OperationalError) as e:
        await test_engine.dispose()
        pytest.skip(f"Test database unavailable: {e}")

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()
