import os
import tempfile
import pytest
import pytest_asyncio
import fakeredis.aioredis
from httpx import AsyncClient, ASGITransport

# Configure test environment before the app creates its engine
TEST_DIR = tempfile.mkdtemp(prefix='podshare-tests-')
os.environ['DATABASE_URL'] = f"sqlite+aiosqlite:///{os.path.join(TEST_DIR, 'test.db')}"
os.environ.setdefault('JWT_SECRET', 'test-secret')
os.environ.setdefault('METRICS_PORT', '0')

from podshare.main import app  # noqa: E402
from podshare.models import Base, engine, AsyncSessionLocal  # noqa: E402
from podshare.models.users import User  # noqa: E402
from podshare.auth import create_access_token  # noqa: E402
from podshare.chunk_storage import chunk_storage  # noqa: E402
from podshare import core  # noqa: E402


@pytest_asyncio.fixture(autouse=True)
async def fresh_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield


@pytest.fixture(autouse=True)
def chunk_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(chunk_storage, 'base_dir', str(tmp_path / 'chunks'))
    return tmp_path / 'chunks'


@pytest_asyncio.fixture
async def fake_redis(monkeypatch):
    """In-memory Redis installed as the shared client"""
    redis = fakeredis.aioredis.FakeRedis()
    await redis.flushall()
    monkeypatch.setattr(core, 'REDIS', redis)
    yield redis
    await redis.flushall()


@pytest_asyncio.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url='http://test') as ac:
        yield ac


@pytest_asyncio.fixture
async def users():
    """Three users (alice, bob, carol) with ready-made auth headers"""
    async with AsyncSessionLocal() as session:
        rows = [
            User(name='Alice', email='alice@example.com'),
            User(name='Bob', email='bob@example.com'),
            User(name='Carol', email='carol@example.com'),
        ]
        session.add_all(rows)
        await session.commit()
        for u in rows:
            await session.refresh(u)
    return [
        {'id': u.id, 'name': u.name, 'headers': {'Authorization': f"Bearer {create_access_token({'id': u.id})}"}}
        for u in rows
    ]
