"""
Shared test fixtures.

Every test gets its own SQLite file under pytest's tmp_path; the FastAPI app
is driven in-process through httpx's ASGITransport with the database and
classifier dependencies overridden.
"""

from datetime import datetime, timezone
from types import SimpleNamespace

import geoip2.errors
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from linkhub.core.classifier_manager import get_classifier
from linkhub.db import models  # noqa: F401
from linkhub.db.adapters import SQLiteAdapter
from linkhub.db.session import get_session, get_session_factory
from linkhub.main import app
from linkhub.services.visitor_classifier import VisitorClassifier


class FakeGeoReader:
    """Stands in for geoip2.database.Reader with a fixed ip -> (country, city) table."""

    def __init__(self, locations):
        self.locations = locations
        self.lookups = 0
        self.closed = False

    def city(self, ip_address):
        self.lookups += 1
        if ip_address not in self.locations:
            raise geoip2.errors.AddressNotFoundError(f"{ip_address} not found")
        country, city = self.locations[ip_address]
        return SimpleNamespace(
            country=SimpleNamespace(iso_code=country),
            city=SimpleNamespace(name=city),
        )

    def close(self):
        self.closed = True


@pytest.fixture
def wednesday_afternoon():
    """2024-01-10 is a Wednesday (index 3 with Sunday = 0)."""
    return datetime(2024, 1, 10, 14, 30, tzinfo=timezone.utc)


@pytest.fixture
def geo_reader():
    return FakeGeoReader({
        "8.8.8.8": ("US", "Mountain View"),
        "81.2.69.142": ("GB", "London"),
    })


@pytest.fixture
def classifier(geo_reader):
    return VisitorClassifier(geo_reader=geo_reader)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = SQLiteAdapter().create_engine(f"sqlite+aiosqlite:///{tmp_path / 'linkhub-test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory, classifier):
    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_classifier] = lambda: classifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client

    app.dependency_overrides.clear()
