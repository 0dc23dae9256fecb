"""Test configuration for the cafe API tests."""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

import fakeredis.aioredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cafe_api.app.db.tenant import TenantEngineRegistry
from cafe_api.app.main import create_app
from cafe_api.app.models_tenant import Base, MenuItem, Promo, Table
from cafe_api.app.storage.local_backend import LocalBackend
from cafe_api.tests.catalog import MENU, PROMOS, TABLES
from cafe_api.tests.fakes import FakeUnitOfWork
from config import Settings

TENANT = "demo"
HEADERS = {"X-Tenant-ID": TENANT}
STAFF = {**HEADERS, "X-Staff-ID": "kasir-1"}


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        media_dir=str(tmp_path / "media"),
        retry_base_delay=0,
        qris_static_code="00020101021126570011ID.DANA.WWW",
        bank_accounts=[
            {
                "bank_name": "Bank Central Asia (BCA)",
                "account_number": "1234567890",
                "account_name": "Cafe Test",
            }
        ],
    )


@pytest.fixture
def fake_uow():
    return FakeUnitOfWork.seeded()


def seed(session) -> None:
    session.add_all([MenuItem(**m) for m in MENU])
    session.add_all([Table(**t) for t in TABLES])
    session.add_all([Promo(**p) for p in PROMOS])


@pytest.fixture
async def session():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    Session = sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    async with Session() as s:
        seed(s)
        await s.commit()
        yield s
    await engine.dispose()


def _prepare_tenant_db(dsn: str) -> None:
    async def _run():
        engine = create_async_engine(dsn)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        Session = sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
        async with Session() as s:
            seed(s)
            await s.commit()
        await engine.dispose()

    asyncio.run(_run())


@pytest.fixture
def app(tmp_path, settings):
    template = f"sqlite+aiosqlite:///{tmp_path}/tenant_{{tenant_id}}.db"
    _prepare_tenant_db(template.format(tenant_id=TENANT))
    return create_app(
        settings,
        tenant_engines=TenantEngineRegistry(template, create_schema=True),
        redis_client=fakeredis.aioredis.FakeRedis(decode_responses=True),
        storage=LocalBackend(str(tmp_path / "media")),
    )


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
