import pytest
from httpx import AsyncClient, ASGITransport

from app.core.config import Settings
from app.core.errors import StoreError
from app.main import create_app
from app.services.store import RecordStore, SqlRecordStore

SECRET = "s3cr3t"

class FailingStore(RecordStore):
    """Store whose every call fails, as if the database were unreachable."""

    async def get_user(self, user_id):
        raise StoreError("connection refused")

    async def put_user(self, user_id, data):
        raise StoreError("connection refused")

    async def delete_user(self, user_id):
        raise StoreError("connection refused")

    async def get_deletion_log(self, code):
        raise StoreError("connection refused")

    async def put_deletion_log(self, code, record):
        raise StoreError("connection refused")

@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        APP_SECRET=SECRET,
        BASE_URL="https://deletion.example.com/",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
    )

@pytest.fixture
async def store(settings):
    s = SqlRecordStore.from_url(settings.DATABASE_URL)
    await s.init()
    yield s
    await s.close()

@pytest.fixture
def app(settings, store):
    return create_app(settings, store)

@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
