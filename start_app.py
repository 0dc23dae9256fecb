# start_app.py
"""Run tenant migrations and launch the API server."""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

import uvicorn
from dotenv import load_dotenv
from sqlalchemy.exc import OperationalError

import config
from cafe_api.app.db.tenant import run_tenant_migrations


def _tenants(cli: list[str]) -> list[str]:
    env = os.getenv("TENANTS", "")
    return cli or [t.strip() for t in env.split(",") if t.strip()]


def main(argv: list[str] | None = None) -> None:
    """Load settings, optionally migrate tenant databases, then start the API."""

    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--tenant",
        action="append",
        default=[],
        help="Tenant to migrate before start (repeatable, or TENANTS=a,b)",
    )
    parser.add_argument(
        "--skip-db-migrations",
        action="store_true",
        help="Start without running Alembic migrations",
    )
    args = parser.parse_args(argv)

    load_dotenv()  # load environment variables from a .env file

    env_flag = os.getenv("SKIP_DB_MIGRATIONS")
    skip = args.skip_db_migrations or (
        env_flag and env_flag.lower() not in {"0", "false"}
    )
    settings = config.get_settings()

    if not skip:
        for tenant in _tenants(args.tenant):
            try:
                asyncio.run(
                    run_tenant_migrations(settings.postgres_tenant_dsn_template, tenant)
                )
            except (OperationalError, ValueError) as exc:
                print(
                    f"database migration failed for tenant {tenant}: {exc}",
                    file=sys.stderr,
                )
                raise SystemExit(1)

    uvicorn.run(
        "cafe_api.app.main:app",
        host="0.0.0.0",  # nosec B104: bind for local development
        port=int(os.getenv("PORT", "8000")),
        log_level="info",
    )


if __name__ == "__main__":
    main()
