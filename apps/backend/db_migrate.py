"""
Migration runner for the two demo databases.

Migrations are grouped by directory: ``common/`` applies to both databases,
``customer/`` and ``transaction/`` to one each. Versions are recorded per
database in ``schema_migrations`` as ``"<group>/<stem>"``.

Usage:
  python -m apps.backend.db_migrate
  python -m apps.backend.db_migrate --role customer --dry-run
  python -m apps.backend.db_migrate --migrations-dir migrations
"""

from __future__ import annotations

import argparse
from pathlib import Path

from apps.backend.db import db_conn
from apps.backend.sql_script import split_sql
from contracts.schema import DATABASE_ROLES
from infra.config import get_settings
from infra.logging_config import StructuredLogger

_LOG = StructuredLogger(__name__)

DEFAULT_MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "migrations"
COMMON_GROUP = "common"


def _ensure_migrations_table(conn) -> None:
    """Create schema_migrations table if missing."""
    with conn.cursor() as cur:
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
              version TEXT PRIMARY KEY,
              applied_at TIMESTAMPTZ NOT NULL DEFAULT now()
            )
            """
        )
    conn.commit()


def _applied_versions(conn) -> set[str]:
    with conn.cursor() as cur:
        cur.execute("SELECT version FROM schema_migrations")
        rows = cur.fetchall() or []
    return {str(r[0]) for r in rows if r and r[0]}


def _check_role(role: str) -> None:
    if role not in DATABASE_ROLES:
        raise ValueError(f"Unknown database role: {role!r} (expected one of {', '.join(DATABASE_ROLES)})")


def _iter_group(migrations_dir: Path, group: str) -> list[Path]:
    group_dir = migrations_dir / group
    if not group_dir.is_dir():
        return []
    files = [p for p in group_dir.iterdir() if p.is_file() and p.suffix == ".sql"]
    return sorted(files, key=lambda p: p.name)


def migration_files(role: str, *, migrations_dir: Path = DEFAULT_MIGRATIONS_DIR) -> list[tuple[str, Path]]:
    """Return ``(version, path)`` pairs for *role*: common group first, then the role group."""
    _check_role(role)
    out: list[tuple[str, Path]] = []
    for group in (COMMON_GROUP, role):
        for path in _iter_group(migrations_dir, group):
            out.append((f"{group}/{path.stem}", path))
    return out


def migration_sql(role: str, *, migrations_dir: Path = DEFAULT_MIGRATIONS_DIR) -> str:
    """Concatenate the migrations of *role* into one script fragment."""
    chunks: list[str] = []
    for version, path in migration_files(role, migrations_dir=migrations_dir):
        statements = split_sql(path.read_text(encoding="utf-8"))
        chunks.append(f"-- migration {version}\n" + "".join(f"{s};\n\n" for s in statements))
    return "\n".join(chunks).rstrip() + "\n"


def _apply_sql_migration(conn, path: Path) -> None:
    for stmt in split_sql(path.read_text(encoding="utf-8")):
        with conn.cursor() as cur:
            cur.execute(stmt)
    conn.commit()


def pending_migration_versions(conn, role: str, *, migrations_dir: Path = DEFAULT_MIGRATIONS_DIR) -> list[str]:
    """Return pending migration versions for *role* on the provided connection."""
    _ensure_migrations_table(conn)
    applied = _applied_versions(conn)
    return [v for v, _ in migration_files(role, migrations_dir=migrations_dir) if v not in applied]


def ensure_schema_current(role: str, *, migrations_dir: Path = DEFAULT_MIGRATIONS_DIR) -> None:
    """Fail fast when *role*'s database is behind local migrations."""
    database = get_settings().database_for_role(role)
    with db_conn(database) as conn:
        pending = pending_migration_versions(conn, role, migrations_dir=migrations_dir)
    if pending:
        pending_csv = ", ".join(pending)
        raise RuntimeError(
            f"Database {database} is out of date. Pending migrations: {pending_csv}. "
            "Run `aidb-demo migrate` (or `python -m apps.backend.db_migrate`) first."
        )


def run_migrations(
    role: str,
    *,
    migrations_dir: Path = DEFAULT_MIGRATIONS_DIR,
    dry_run: bool = False,
) -> list[str]:
    """Apply pending migrations for *role* (or print them in dry-run).

    Returns the versions applied (or pending, for a dry run).
    """
    database = get_settings().database_for_role(role)
    with db_conn(database) as conn:
        pending_versions = set(pending_migration_versions(conn, role, migrations_dir=migrations_dir))
        pending = [
            (v, p) for v, p in migration_files(role, migrations_dir=migrations_dir) if v in pending_versions
        ]

        if dry_run:
            for version, _ in pending:
                print(f"PENDING [{database}]: {version}")
            if not pending:
                print(f"No pending migrations for {database}.")
            return [v for v, _ in pending]

        applied: list[str] = []
        for version, path in pending:
            print(f"Applying {version} to {database}...")
            _apply_sql_migration(conn, path)

            with conn.cursor() as cur:
                cur.execute(
                    "INSERT INTO schema_migrations (version) VALUES (%s)",
                    (version,),
                )
            conn.commit()
            _LOG.info("migration_applied", database=database, version=version)
            applied.append(version)
        return applied


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint."""
    parser = argparse.ArgumentParser(description="Apply database migrations.")
    parser.add_argument(
        "--role",
        choices=[*DATABASE_ROLES, "all"],
        default="all",
        help="Database to migrate (default: both).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show pending migrations without applying.",
    )
    parser.add_argument(
        "--migrations-dir",
        default=str(DEFAULT_MIGRATIONS_DIR),
        help="Path to migrations directory (default: ./migrations).",
    )
    args = parser.parse_args(argv)

    roles = list(DATABASE_ROLES) if args.role == "all" else [args.role]
    for role in roles:
        run_migrations(role, migrations_dir=Path(args.migrations_dir), dry_run=bool(args.dry_run))


if __name__ == "__main__":
    main()
