"""Utilities for tenant-specific database engines.

The DSN template comes from ``POSTGRES_TENANT_DSN_TEMPLATE`` and is expected
to include a ``{tenant_id}`` placeholder. For example::

    postgresql+asyncpg://u:p@host:5432/tenant_{tenant_id}

Engines are cached per tenant by :class:`TenantEngineRegistry`, which the
application lifespan creates at startup and disposes at shutdown.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Any, Dict, Final

from alembic import command
from alembic.config import Config
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from ..models_tenant import Base
from ..obs import add_query_logger

TENANT_ID_RE: Final = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

logger = logging.getLogger(__name__)


def build_dsn(template: str, tenant_id: str) -> str:
    """Return a DSN for ``tenant_id`` rendered from ``template``.

    Raises
    ------
    ValueError
        If ``tenant_id`` contains characters that are unsafe in a DSN or
        file name, or the template is malformed.
    """
    if not TENANT_ID_RE.match(tenant_id or ""):
        raise ValueError(f"invalid tenant id {tenant_id!r}")
    try:
        return template.format(tenant_id=tenant_id)
    except (KeyError, IndexError) as exc:  # pragma: no cover - invalid format string
        raise ValueError("Invalid DSN template") from exc


class TenantEngineRegistry:
    """Cache of one :class:`AsyncEngine` and session factory per tenant.

    Parameters
    ----------
    template:
        DSN template containing ``{tenant_id}``.
    create_schema:
        Create missing tables with ``metadata.create_all`` the first time a
        tenant engine is opened. Meant for local SQLite and tests; production
        tenants are migrated with Alembic.
    engine_kwargs:
        Extra keyword arguments for ``create_async_engine``.
    """

    def __init__(
        self,
        template: str,
        *,
        create_schema: bool = False,
        engine_kwargs: Dict[str, Any] | None = None,
    ) -> None:
        self.template = template
        self.create_schema = create_schema
        self.engine_kwargs = engine_kwargs or {}
        self._engines: Dict[str, AsyncEngine] = {}
        self._sessionmakers: Dict[str, sessionmaker] = {}
        self._lock = asyncio.Lock()

    async def engine(self, tenant_id: str) -> AsyncEngine:
        if tenant_id in self._engines:
            return self._engines[tenant_id]
        async with self._lock:
            if tenant_id not in self._engines:
                engine = create_async_engine(
                    build_dsn(self.template, tenant_id), **self.engine_kwargs
                )
                add_query_logger(engine, tenant_id)
                if self.create_schema:
                    async with engine.begin() as conn:
                        await conn.run_sync(Base.metadata.create_all)
                self._engines[tenant_id] = engine
                self._sessionmakers[tenant_id] = sessionmaker(
                    engine, expire_on_commit=False, class_=AsyncSession
                )
        return self._engines[tenant_id]

    async def session_factory(self, tenant_id: str) -> sessionmaker:
        await self.engine(tenant_id)
        return self._sessionmakers[tenant_id]

    async def dispose(self) -> None:
        for tenant_id, engine in list(self._engines.items()):
            await engine.dispose()
            logger.info("disposed engine", extra={"tenant": tenant_id})
        self._engines.clear()
        self._sessionmakers.clear()


async def run_tenant_migrations(template: str, tenant_id: str) -> None:
    """Run Alembic migrations for ``tenant_id`` up to ``head``."""

    dsn = build_dsn(template, tenant_id)
    cfg = Config()
    cfg.set_main_option(
        "script_location",
        str(Path(__file__).resolve().parents[2] / "alembic_tenant"),
    )
    cfg.set_main_option("sqlalchemy.url", dsn)
    try:
        await asyncio.to_thread(command.upgrade, cfg, "head")
    except Exception as exc:  # pragma: no cover - runtime errors
        logger.error("Failed to run migrations for %s: %s", tenant_id, exc)
        raise
