"""Database engine and session helpers."""

from .tenant import TenantEngineRegistry, build_dsn, run_tenant_migrations

__all__ = ["TenantEngineRegistry", "build_dsn", "run_tenant_migrations"]
