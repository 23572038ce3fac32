"""Creation and teardown of the two demo databases.

``CREATE DATABASE`` / ``DROP DATABASE`` cannot run inside a transaction, so
everything here goes through the autocommit maintenance connection.
"""

from __future__ import annotations

from typing import Any

from apps.backend.db import admin_conn, close_pools, fetch_one_conn
from apps.backend.sql_script import SqlTemplate
from infra.config import Settings
from infra.logging_config import StructuredLogger

_LOG = StructuredLogger(__name__)


def demo_databases(settings: Settings) -> tuple[str, str]:
    return (settings.db.customer_db, settings.db.transaction_db)


def database_exists(conn: Any, name: str) -> bool:
    row = fetch_one_conn(conn, "SELECT 1 FROM pg_database WHERE datname = %s", (name,))
    return row is not None


def _drop_database(name: str) -> SqlTemplate:
    return SqlTemplate("DROP DATABASE IF EXISTS {name}", identifiers={"name": name})


def _create_database(name: str) -> SqlTemplate:
    return SqlTemplate("CREATE DATABASE {name}", identifiers={"name": name})


def setup_templates(settings: Settings) -> list[SqlTemplate]:
    out: list[SqlTemplate] = []
    for name in demo_databases(settings):
        out += [_drop_database(name), _create_database(name)]
    return out


def setup_statements(settings: Settings) -> list[str]:
    """DROP/CREATE pairs for both demo databases, in order."""
    return [t.text() for t in setup_templates(settings)]


def recreate_databases(settings: Settings) -> list[str]:
    """Drop and re-create both demo databases. Returns the databases created."""
    names = demo_databases(settings)
    close_pools(names)
    with admin_conn() as conn:
        with conn.cursor() as cur:
            for template in setup_templates(settings):
                cur.execute(template.composed())
    _LOG.info("databases_recreated", databases=list(names))
    return list(names)


def ensure_databases(settings: Settings) -> list[str]:
    """Create whichever demo database is missing. Returns the databases created."""
    created: list[str] = []
    with admin_conn() as conn:
        for name in demo_databases(settings):
            if database_exists(conn, name):
                continue
            with conn.cursor() as cur:
                cur.execute(_create_database(name).composed())
            created.append(name)
    if created:
        _LOG.info("databases_created", databases=created)
    return created
