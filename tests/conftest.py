"""
Pytest configuration and shared fixtures for testing.
Sets up a throwaway SQLite database, an in-memory session store and a test client.
"""

import os

# Set TEST_MODE before any app imports to disable rate limiting
os.environ["TEST_MODE"] = "1"

# Enable metrics endpoint for testing
os.environ["ENABLE_METRICS"] = "true"

os.environ["SKIP_ENV_FILE"] = "1"
os.environ.setdefault("APP_ENV", "test")
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise in test output
os.environ["SESSION_SECRET_KEY"] = "test-session-secret-key-minimum-32-chars"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from courtside.main import app
from courtside.db import init_db
from courtside.auth import hash_password, decode_session_token
from courtside.config import settings
from courtside.crud import insert_user
from courtside.sessions import MemorySessionStore


@pytest_asyncio.fixture(scope="function")
async def database(tmp_path):
    """Fresh SQLite database file per test, schema created by init_db."""
    db = await init_db(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    yield db
    await db.dispose()


@pytest.fixture
def session_store():
    return MemorySessionStore()


@pytest_asyncio.fixture(scope="function")
async def client(database, session_store):
    """Test HTTP client with the app's storage and session handles injected."""
    app.state.db = database
    app.state.sessions = session_store
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        timeout=30.0
    ) as ac:
        yield ac


@pytest.fixture
def sample_user():
    """Sample user data for testing."""
    return {
        "name": "Test User",
        "email": "test@example.com",
        "password": "password123"
    }


@pytest_asyncio.fixture
async def registered_user(database, sample_user):
    """A user stored with a hashed password, able to log in."""
    return await insert_user(
        database,
        sample_user["name"],
        sample_user["email"],
        password=hash_password(sample_user["password"]),
    )


@pytest.fixture
def login(client):
    """Post the login form and return the response."""
    async def _login(email: str, password: str):
        return await client.post("/login", data={"email": email, "password": password})
    return _login


@pytest.fixture
def current_session(client, session_store):
    """Load the session record the client's cookie points at (None if no valid cookie)."""
    async def _current_session():
        token = client.cookies.get(settings.SESSION_COOKIE_NAME)
        if not token:
            return None
        session_id = decode_session_token(token)
        if session_id is None:
            return None
        return await session_store.read(session_id)
    return _current_session
