"""
aidb-demo CLI (flat-layout friendly).

Usage
-----
aidb-demo run-all --provider sql --export-format json
aidb-demo setup-db
aidb-demo migrate --role all
aidb-demo seed --seed 42
aidb-demo embed --provider python
aidb-demo federate
aidb-demo index
aidb-demo monitor create | refresh | drop | show
aidb-demo query list
aidb-demo query run similar_feedback --param keyword=refund --out data/query_results
aidb-demo render-script --out examples/aidb_multidb_demo.sql
aidb-demo run-script examples/aidb_multidb_demo.sql
aidb-demo validate examples/aidb_multidb_demo.sql
"""

from __future__ import annotations

import argparse
import importlib.util
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

from apps.backend import db_migrate, sql_script
from apps.backend.db import close_pools, db_conn
from contracts.schema import DATABASE_ROLES
from infra.config import EMBEDDING_PROVIDERS, Settings, get_settings
from infra.logging_config import setup_logging
from pipeline.embeddings import backfill_embeddings
from pipeline.export_results import EXPORT_FORMATS, export_result
from pipeline.generate import generate_dataset
from pipeline.load import seed_customer_db, seed_transaction_db
from pipeline.render_script import write_demo_script
from services import analysis, monitoring
from services.databases import ensure_databases, recreate_databases
from services.federation import setup_federation, teardown_federation
from services.indexes import create_indexes
from tools import validate_demo


def _walk_up_for_root(start: Path) -> Optional[Path]:
    """Walk up from *start* to find a project root marker."""
    cur = start.resolve()
    if cur.is_file():
        cur = cur.parent
    for _ in range(10):
        if (cur / "pyproject.toml").exists() or (cur / "runner.py").exists():
            return cur
        if cur.parent == cur:
            break
        cur = cur.parent
    return None


def _repo_root() -> Path:
    """Resolve the working project root (installed or in-repo)."""
    return _walk_up_for_root(Path.cwd()) or _walk_up_for_root(Path(__file__)) or Path.cwd().resolve()


def _module_exists(mod_name: str) -> bool:
    return importlib.util.find_spec(mod_name) is not None


def _python() -> str:
    return sys.executable


def _run_cmd(cmd: List[str], *, cwd: Optional[Path] = None) -> None:
    try:
        subprocess.run(cmd, cwd=str(cwd) if cwd else None, check=True)
    except subprocess.CalledProcessError as exc:
        raise SystemExit(exc.returncode) from exc


def _settings() -> Settings:
    settings = get_settings()
    if not settings.db.url:
        raise SystemExit("Missing DB_URL (maintenance database DSN, e.g. postgresql://postgres@localhost/postgres).")
    return settings


def _roles(role: str) -> tuple[str, ...]:
    return tuple(DATABASE_ROLES) if role == "all" else (role,)


def _parse_params(pairs: List[str]) -> dict[str, str]:
    out: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise SystemExit(f"Invalid --param {pair!r} (expected name=value).")
        out[key.strip()] = value
    return out


def cmd_setup_db(args: argparse.Namespace) -> None:
    settings = _settings()
    if args.keep:
        created = ensure_databases(settings)
        print(f"Created: {', '.join(created) or 'nothing (both databases exist)'}")
    else:
        created = recreate_databases(settings)
        print(f"Re-created: {', '.join(created)}")


def cmd_migrate(args: argparse.Namespace) -> None:
    _settings()
    for role in _roles(args.role):
        db_migrate.run_migrations(role, dry_run=args.dry_run)


def cmd_seed(args: argparse.Namespace) -> None:
    settings = _settings()
    demo = settings.demo
    seed = demo.seed if args.seed is None else args.seed
    dataset = generate_dataset(
        seed,
        generated_customers=demo.generated_customers,
        extra_feedback=demo.extra_feedback,
        generated_transactions=demo.generated_transactions,
    )
    with db_conn(settings.db.customer_db) as conn:
        counts = seed_customer_db(conn, dataset)
    with db_conn(settings.db.transaction_db) as conn:
        counts.update(seed_transaction_db(conn, dataset))
    for table, count in counts.items():
        print(f"{table}: {count}")


def cmd_embed(args: argparse.Namespace) -> None:
    settings = _settings()
    provider = args.provider or settings.demo.embedding_provider
    for role in _roles(args.role):
        with db_conn(settings.database_for_role(role)) as conn:
            counts = backfill_embeddings(conn, role, provider=provider, model=settings.demo.aidb_model)
        for table, count in counts.items():
            print(f"{table}: {count} embedded ({provider})")


def cmd_federate(args: argparse.Namespace) -> None:
    settings = _settings()
    counts = teardown_federation(settings) if args.teardown else setup_federation(settings)
    for database, count in counts.items():
        print(f"{database}: {count} statements")


def cmd_index(args: argparse.Namespace) -> None:
    settings = _settings()
    for role in _roles(args.role):
        count = create_indexes(role, args.lists, settings=settings)
        print(f"{settings.database_for_role(role)}: {count} indexes")


def cmd_monitor(args: argparse.Namespace) -> None:
    settings = _settings()
    if args.action == "create":
        monitoring.create_dashboard(settings, replace=args.replace)
        print(f"Created {monitoring.VIEW_NAME}")
    elif args.action == "refresh":
        monitoring.refresh_dashboard(settings)
        print(f"Refreshed {monitoring.VIEW_NAME}")
    elif args.action == "drop":
        monitoring.drop_dashboard(settings)
        print(f"Dropped {monitoring.VIEW_NAME}")
    else:
        try:
            alerts = monitoring.fetch_alerts(args.level or None, args.limit, settings=settings)
        except ValueError as exc:
            raise SystemExit(str(exc)) from exc
        for row in alerts:
            print(
                f"{row['alert_level']:<16} txn={row['transaction_id']} customer={row['customer_id']} "
                f"amount={row['amount']} score={row['fraud_score']} -> {row['recommended_action']}"
            )
        if not alerts:
            print("No alerts.")


def cmd_query_list(args: argparse.Namespace) -> None:  # pylint: disable=unused-argument
    for query in analysis.build_queries():
        params = ", ".join(f"{name}={query.defaults.get(name)}" for name in query.params)
        print(f"{query.query_id:<30} [{query.role}] {query.name}" + (f" ({params})" if params else ""))


def cmd_query_run(args: argparse.Namespace) -> None:
    try:
        overrides = _parse_params(args.param)
        if args.render:
            print(analysis.render_query(analysis.get_query(args.query_id), overrides) + ";")
            return
        result = analysis.run_query(args.query_id, overrides, settings=_settings())
    except analysis.UnknownQueryError as exc:
        raise SystemExit(f"Unknown query: {args.query_id} (see `aidb-demo query list`).") from exc
    except analysis.QueryParameterError as exc:
        raise SystemExit(str(exc)) from exc

    if args.out:
        print(f"Wrote {export_result(result, args.out, args.format)}")
        return
    print("\t".join(result.columns))
    for row in result.rows:
        print("\t".join("" if v is None else str(v) for v in row))
    print(f"({len(result.rows)} rows)")


def cmd_run_all(args: argparse.Namespace) -> None:
    root = _repo_root()
    # Run as module so it works whether we're in-repo or installed as py-modules
    if not _module_exists("runner") and not (root / "runner.py").exists():
        raise SystemExit(
            "runner module not found. Run from the project directory or ensure runner.py is installed as a module."
        )

    cmd = [_python(), "-m", "runner"]
    if args.skip_setup:
        cmd.append("--skip-setup")
    if args.provider:
        cmd += ["--provider", args.provider]
    if args.seed is not None:
        cmd += ["--seed", str(args.seed)]
    if args.no_queries:
        cmd.append("--no-queries")
    if args.export_format:
        cmd += ["--export-format", args.export_format]
    if args.export_dir:
        cmd += ["--export-dir", args.export_dir]
    _run_cmd(cmd, cwd=root)


def cmd_render_script(args: argparse.Namespace) -> None:
    settings = get_settings()
    demo = settings.demo
    dataset = generate_dataset(
        demo.seed if args.seed is None else args.seed,
        generated_customers=demo.generated_customers,
        extra_feedback=demo.extra_feedback,
        generated_transactions=demo.generated_transactions,
    )
    path = write_demo_script(args.out, settings, dataset, provider=args.provider)
    print(f"Wrote {path}")


def cmd_run_script(args: argparse.Namespace) -> None:
    _settings()
    path = Path(args.path)
    if not path.is_file():
        raise SystemExit(f"Script not found: {path}")
    try:
        report = sql_script.run_script(path.read_text(encoding="utf-8"), fail_fast=not args.keep_going)
    except sql_script.ScriptExecutionError as exc:
        raise SystemExit(str(exc)) from exc
    print(f"Statements executed: {report.statements_executed}")
    print(f"Result sets: {len(report.result_sets)}")
    for err in report.errors:
        print(f"ERROR {err}")
    if not report.ok:
        raise SystemExit(1)


def cmd_validate(args: argparse.Namespace) -> None:
    code = validate_demo.main([args.path, "--readme", args.readme])
    if code:
        raise SystemExit(code)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="aidb-demo", description="AIDB multi-database fraud demo CLI")
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_role(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("--role", choices=[*DATABASE_ROLES, "all"], default="all", help="Database(s) to target.")

    sp = sub.add_parser("setup-db", help="Drop and re-create customerdb and transactiondb.")
    sp.add_argument("--keep", action="store_true", help="Only create missing databases; never drop.")
    sp.set_defaults(func=cmd_setup_db)

    sp = sub.add_parser("migrate", help="Apply schema migrations.")
    add_role(sp)
    sp.add_argument("--dry-run", action="store_true", help="Print pending migrations without applying them.")
    sp.set_defaults(func=cmd_migrate)

    sp = sub.add_parser("seed", help="Load curated and generated rows into both databases.")
    sp.add_argument("--seed", type=int, default=None, help="Random seed (or DEMO_SEED env var).")
    sp.set_defaults(func=cmd_seed)

    sp = sub.add_parser("embed", help="Fill missing embedding columns.")
    add_role(sp)
    sp.add_argument("--provider", choices=EMBEDDING_PROVIDERS, default=None, help="Embedding provider.")
    sp.set_defaults(func=cmd_embed)

    sp = sub.add_parser("federate", help="Create postgres_fdw servers and foreign tables.")
    sp.add_argument("--teardown", action="store_true", help="Drop the foreign servers instead.")
    sp.set_defaults(func=cmd_federate)

    sp = sub.add_parser("index", help="Create ivfflat and B-tree indexes.")
    add_role(sp)
    sp.add_argument("--lists", type=int, default=None, help="ivfflat lists (or IVFFLAT_LISTS env var).")
    sp.set_defaults(func=cmd_index)

    sp = sub.add_parser("monitor", help="Fraud monitoring materialized view.")
    sp.add_argument("action", choices=["create", "refresh", "drop", "show"])
    sp.add_argument("--replace", action="store_true", help="Drop and re-create the view (create only).")
    sp.add_argument("--level", action="append", default=[], help="Alert level to show (repeatable).")
    sp.add_argument("--limit", type=int, default=10, help="Rows to show. Default: 10")
    sp.set_defaults(func=cmd_monitor)

    sp = sub.add_parser("query", help="List or run the canned analysis queries.")
    qsub = sp.add_subparsers(dest="query_cmd", required=True)
    qp = qsub.add_parser("list", help="List queries and their parameters.")
    qp.set_defaults(func=cmd_query_list)
    qp = qsub.add_parser("run", help="Run one query.")
    qp.add_argument("query_id")
    qp.add_argument("--param", action="append", default=[], help="Override a parameter: name=value (repeatable).")
    qp.add_argument("--render", action="store_true", help="Print the SQL with parameters inlined; do not run it.")
    qp.add_argument("--out", default=None, help="Write the result to this directory instead of stdout.")
    qp.add_argument("--format", choices=EXPORT_FORMATS, default="json", help="Export format. Default: json")
    qp.set_defaults(func=cmd_query_run)

    sp = sub.add_parser("run-all", help="Full pipeline: databases → seed → embeddings → FDW → queries.")
    sp.add_argument("--skip-setup", action="store_true", help="Keep existing databases and rows.")
    sp.add_argument("--provider", choices=EMBEDDING_PROVIDERS, default=None, help="Embedding provider.")
    sp.add_argument("--seed", type=int, default=None, help="Random seed (or DEMO_SEED env var).")
    sp.add_argument("--no-queries", action="store_true", help="Skip the analysis queries.")
    sp.add_argument("--export-format", choices=EXPORT_FORMATS, default=None, help="Export query results.")
    sp.add_argument("--export-dir", default=None, help="Export directory (or RESULTS_DIR env var).")
    sp.set_defaults(func=cmd_run_all)

    sp = sub.add_parser("render-script", help="Write the whole demo as one psql script.")
    sp.add_argument("--out", default=str(validate_demo.DEFAULT_SCRIPT), help="Output path.")
    sp.add_argument("--provider", choices=EMBEDDING_PROVIDERS, default=None, help="Embedding provider.")
    sp.add_argument("--seed", type=int, default=None, help="Random seed (or DEMO_SEED env var).")
    sp.set_defaults(func=cmd_render_script)

    sp = sub.add_parser("run-script", help="Execute a psql-style script (supports \\c).")
    sp.add_argument("path")
    sp.add_argument("--keep-going", action="store_true", help="Continue after failed statements.")
    sp.set_defaults(func=cmd_run_script)

    sp = sub.add_parser("validate", help="Text-level checks for a rendered demo script.")
    sp.add_argument("path", nargs="?", default=str(validate_demo.DEFAULT_SCRIPT))
    sp.add_argument("--readme", default=str(validate_demo.DEFAULT_README))
    sp.set_defaults(func=cmd_validate)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging()
    try:
        args.func(args)
    finally:
        close_pools()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
