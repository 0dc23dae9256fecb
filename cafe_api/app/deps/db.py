"""Per-request tenant session and unit of work."""

from __future__ import annotations

from typing import AsyncIterator

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..repos_sqlalchemy import SQLUnitOfWork
from .tenant import get_tenant_id


async def get_session(
    request: Request, tenant_id: str = Depends(get_tenant_id)
) -> AsyncIterator[AsyncSession]:
    registry = request.app.state.tenant_engines
    try:
        Session = await registry.session_factory(tenant_id)
    except ValueError:
        raise HTTPException(400, "TENANT_REQUIRED")
    async with Session() as session:
        yield session


async def get_uow(session: AsyncSession = Depends(get_session)) -> SQLUnitOfWork:
    return SQLUnitOfWork(session)
