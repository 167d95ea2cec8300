"""Shared fixtures: isolated SQLite database, ASGI client, signed-up users."""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="grokchat-tests-")

# Must be set before grokchat.config is imported
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/test.db"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["OPENAI_API_KEY"] = ""
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["STATIC_DIR"] = os.path.join(_TMP_DIR, "no-ui")

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio

from grokchat.main import app
from grokchat.models.database import Base, engine
from grokchat.services import ai_service


@pytest_asyncio.fixture(autouse=True)
async def database():
    """Fresh schema per test."""
    from grokchat.models import entities  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest_asyncio.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def signup(client, name="Ada", email="ada@example.com", password="s3cret-pass"):
    response = await client.post(
        "/api/auth/signup",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest_asyncio.fixture
async def auth_headers(client):
    data = await signup(client)
    return {"Authorization": f"Bearer {data['token']}"}


@pytest_asyncio.fixture
async def other_headers(client):
    data = await signup(client, name="Grace", email="grace@example.com")
    return {"Authorization": f"Bearer {data['token']}"}


def completion(text):
    """Minimal stand-in for a chat.completions.create result."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


@pytest.fixture
def mock_ai(monkeypatch):
    """Configured provider client whose calls are AsyncMocks."""
    fake = MagicMock()
    fake.chat.completions.create = AsyncMock(return_value=completion("Hello from the model"))
    fake.images.generate = AsyncMock()
    monkeypatch.setattr(ai_service, "client", fake)
    return fake


@pytest.fixture(autouse=True)
def no_provider(monkeypatch):
    """Tests start unconfigured unless they ask for mock_ai."""
    monkeypatch.setattr(ai_service, "client", None)
