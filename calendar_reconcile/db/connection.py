from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2

from calendar_reconcile.models.config_models import DatabaseConfig

"""PostgreSQL connection handling.

Connection settings resolve in this order:
    1. DATABASE_URL / PGDSN environment variables (full DSN)
    2. the config file's database.dsn
    3. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, each falling back to
       the matching database.* key, then to libpq defaults
The CLI loads ``.env`` with override before calling in here, so values from
``.env`` win over the inherited environment.
"""


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def open_connection(db_cfg: DatabaseConfig) -> Iterator[Any]:  # pragma: no cover (needs a server)
    """Yield a psycopg2 connection with autocommit off; always closed on exit."""
    conn = psycopg2.connect(resolve_dsn(db_cfg))
    conn.autocommit = False  # CalendarStore issues BEGIN/COMMIT itself
    try:
        yield conn
    finally:
        conn.close()
