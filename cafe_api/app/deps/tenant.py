from fastapi import Header, HTTPException

from ..db.tenant import TENANT_ID_RE

"""Dependency helpers for tenant resolution."""


def get_tenant_id(x_tenant_id: str | None = Header(default=None)) -> str:
    """Return the cafe identifier from the ``X-Tenant-ID`` header.

    The id is rendered into a DSN, so anything outside ``TENANT_ID_RE`` is
    rejected before an engine is created.

    Raises:
        HTTPException: 400 when the header is missing or malformed.
    """
    if not x_tenant_id:
        raise HTTPException(400, "TENANT_REQUIRED")
    if not TENANT_ID_RE.match(x_tenant_id):
        raise HTTPException(400, "TENANT_INVALID")
    return x_tenant_id
