import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["ADMIN_SECRET"] = "test-secret"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stockledger.db import Base, create_engine_for, get_session
from stockledger.main import app
from stockledger.schemas import LocationRef, MaterialRef


@pytest.fixture
async def engine(tmp_path):
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def _session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def adhesive():
    return MaterialRef(sku="ADH-123", name="Adhesivo Blanco", unit="KG")


@pytest.fixture
def office():
    return LocationRef(name="Oficina")


@pytest.fixture
def miss_lookup(monkeypatch):
    """Make a service lookup find nothing, for the first ``times`` calls or always."""

    def patch(module, name, times=None):
        real = getattr(module, name)
        calls = []

        async def lookup(*args, **kwargs):
            calls.append(args)
            if times is None or len(calls) <= times:
                return None
            return await real(*args, **kwargs)

        monkeypatch.setattr(module, name, lookup)
        return calls

    return patch
