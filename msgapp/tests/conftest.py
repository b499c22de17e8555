import os
import tempfile
from pathlib import Path

import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Configure test environment before the package builds its engine
_DB_DIR = Path(tempfile.mkdtemp(prefix='msgapp-tests-'))
os.environ['DATABASE_URL'] = os.getenv('TEST_DATABASE_URL') or f"sqlite+aiosqlite:///{_DB_DIR / 'test.db'}"

from msgapp.models import Base, engine  # noqa: E402
from msgapp.main import app  # noqa: E402
from msgapp.schemas.users import RegisterIn  # noqa: E402
from msgapp import crud  # noqa: E402


@pytest_asyncio.fixture(autouse=True)
async def fresh_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield


@pytest_asyncio.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def make_user():
    async def _make(username: str, email: str | None = None, password: str = 'secret'):
        payload = RegisterIn(
            username=username,
            email=email or f'{username}@example.com',
            password=password,
        )
        return await crud.create_user(payload)
    return _make
