"""postgres_fdw wiring between the two demo databases.

Each database gets a foreign server pointing at the other one, a user mapping
for the connecting role and the ``foreign_*`` mirror tables declared in
``contracts.schema.FOREIGN_TABLE_MIRRORS``. Everything is ``IF NOT EXISTS`` so
setup can be re-run.
"""

from __future__ import annotations

from apps.backend.db import db_conn, execute_conn
from apps.backend.sql_script import SqlTemplate
from contracts.schema import DATABASE_ROLES, DatabaseRole, ForeignTableMirror, mirrors_for_role, other_role
from infra.config import Settings
from infra.logging_config import StructuredLogger

_LOG = StructuredLogger(__name__)


def server_name(remote_database: str) -> str:
    return f"{remote_database}_server"


def create_server_sql(remote_database: str, settings: Settings) -> SqlTemplate:
    fdw = settings.fdw
    return SqlTemplate(
        "CREATE SERVER IF NOT EXISTS {server}\n"
        "    FOREIGN DATA WRAPPER postgres_fdw\n"
        "    OPTIONS (host {host}, port {port}, dbname {dbname})",
        identifiers={"server": server_name(remote_database)},
        literals={"host": fdw.host, "port": str(fdw.port), "dbname": remote_database},
    )


def user_mapping_sql(remote_database: str, settings: Settings) -> SqlTemplate:
    return SqlTemplate(
        "CREATE USER MAPPING IF NOT EXISTS FOR current_user\n"
        "    SERVER {server}\n"
        "    OPTIONS (user {user}, password {password})",
        identifiers={"server": server_name(remote_database)},
        literals={"user": settings.fdw.user, "password": settings.fdw.password},
    )


def foreign_table_sql(mirror: ForeignTableMirror, remote_database: str, settings: Settings) -> SqlTemplate:
    cols = ",\n".join(f"    {name} {sql_type}" for name, sql_type in mirror.source.foreign_columns())
    return SqlTemplate(
        "CREATE FOREIGN TABLE IF NOT EXISTS {table} (\n{columns}\n)\n"
        "SERVER {server}\n"
        "OPTIONS (schema_name {schema_name}, table_name {table_name})",
        identifiers={"table": mirror.foreign_name, "server": server_name(remote_database)},
        literals={"schema_name": settings.fdw.remote_schema, "table_name": mirror.source.name},
        fragments={"columns": cols},
    )


def federation_templates(local_role: DatabaseRole, settings: Settings) -> list[SqlTemplate]:
    """Statements to run in *local_role*'s database to reach the other one."""
    remote_database = settings.database_for_role(other_role(local_role))
    out = [
        create_server_sql(remote_database, settings),
        user_mapping_sql(remote_database, settings),
    ]
    out.extend(foreign_table_sql(m, remote_database, settings) for m in mirrors_for_role(local_role))
    return out


def teardown_templates(local_role: DatabaseRole, settings: Settings) -> list[SqlTemplate]:
    remote_database = settings.database_for_role(other_role(local_role))
    return [
        SqlTemplate(
            "DROP SERVER IF EXISTS {server} CASCADE",
            identifiers={"server": server_name(remote_database)},
        )
    ]


def federation_statements(local_role: DatabaseRole, settings: Settings) -> list[str]:
    return [t.text() for t in federation_templates(local_role, settings)]


def _run(settings: Settings, templates_for) -> dict[str, int]:
    counts: dict[str, int] = {}
    for role in DATABASE_ROLES:
        database = settings.database_for_role(role)
        templates = templates_for(role, settings)
        with db_conn(database) as conn:
            try:
                for template in templates:
                    execute_conn(conn, template.composed())
                conn.commit()
            except Exception:
                conn.rollback()
                raise
        counts[database] = len(templates)
    return counts


def setup_federation(settings: Settings) -> dict[str, int]:
    """Create servers, user mappings and foreign tables in both directions."""
    counts = _run(settings, federation_templates)
    _LOG.info("federation_ready", statements=counts)
    return counts


def teardown_federation(settings: Settings) -> dict[str, int]:
    """Drop both foreign servers; CASCADE removes mappings and foreign tables."""
    counts = _run(settings, teardown_templates)
    _LOG.info("federation_removed", statements=counts)
    return counts
