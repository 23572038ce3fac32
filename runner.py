"""
runner.py

End-to-end demo runner, one step per section of the demo:

  databases -> migrations -> seed -> embeddings -> federation
    -> indexes -> monitoring view -> analysis queries (+ export) -> manifest

Every step is timed and logged; the run manifest lands in the results
directory next to any exported query results.

Run everything (drops and re-creates both databases):
python runner.py

Keep existing databases and data (their migrations must be current), only
re-run embeddings and queries:
python runner.py --skip-setup

Client-side embeddings and Parquet exports:
python runner.py --provider python --export-format parquet
"""

from __future__ import annotations

import argparse
import sys
import time
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Any, TypeVar

from apps.backend.db import close_pools, db_conn
from apps.backend.db_migrate import ensure_schema_current, run_migrations
from contracts.schema import DATABASE_ROLES
from infra.config import EMBEDDING_PROVIDERS, Settings, get_settings
from infra.logging_config import StructuredLogger, clear_run_context, set_run_context, setup_logging
from pipeline.embeddings import backfill_embeddings
from pipeline.export_results import EXPORT_FORMATS, export_results
from pipeline.generate import generate_dataset
from pipeline.load import seed_customer_db, seed_transaction_db
from pipeline.run_manifest import RunManifest, write_manifest
from services.analysis import run_all_queries
from services.databases import recreate_databases
from services.federation import setup_federation
from services.indexes import create_indexes
from services.monitoring import create_dashboard
from version import ENGINE_NAME, ENGINE_VERSION, SCHEMA_VERSION

_LOG = StructuredLogger(__name__)

T = TypeVar("T")


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _make_run_id(run_ts: datetime) -> str:
    return f"run-{run_ts.astimezone(UTC).isoformat().replace('+00:00', 'Z')}"


class _StepTimer:
    """Runs named steps, logging and recording their durations."""

    def __init__(self) -> None:
        self.durations_ms: dict[str, int] = {}

    def run(self, name: str, fn: Callable[[], T]) -> T:
        _LOG.info("step_started", step=name)
        start = time.perf_counter()
        try:
            result = fn()
        except Exception:
            _LOG.exception("step_failed", step=name)
            raise
        elapsed = int((time.perf_counter() - start) * 1000)
        self.durations_ms[name] = elapsed
        _LOG.info("step_done", step=name, duration_ms=elapsed)
        return result


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Run the AIDB multi-database fraud demo end to end.")
    p.add_argument(
        "--skip-setup",
        action="store_true",
        help="Keep existing databases and rows (skip database creation, migrations and seeding).",
    )
    p.add_argument("--provider", choices=EMBEDDING_PROVIDERS, default=None, help="Embedding provider override.")
    p.add_argument("--seed", type=int, default=None, help="Random seed for synthetic data (default: DEMO_SEED).")
    p.add_argument("--no-queries", action="store_true", help="Skip the analysis queries.")
    p.add_argument("--export-dir", default="", help="Write query results here (default: RESULTS_DIR).")
    p.add_argument("--export-format", choices=EXPORT_FORMATS, default=None, help="Export query results.")
    p.add_argument("--print-version", action="store_true", help="Print version info and exit.")
    return p.parse_args(list(argv))


def _seed(settings: Settings, seed: int) -> dict[str, int]:
    demo = settings.demo
    dataset = generate_dataset(
        seed,
        generated_customers=demo.generated_customers,
        extra_feedback=demo.extra_feedback,
        generated_transactions=demo.generated_transactions,
    )
    counts: dict[str, int] = {}
    with db_conn(settings.db.customer_db) as conn:
        counts.update(seed_customer_db(conn, dataset))
    with db_conn(settings.db.transaction_db) as conn:
        counts.update(seed_transaction_db(conn, dataset))
    return counts


def _embed(settings: Settings, provider: str) -> dict[str, int]:
    counts: dict[str, int] = {}
    for role in DATABASE_ROLES:
        with db_conn(settings.database_for_role(role)) as conn:
            counts.update(backfill_embeddings(conn, role, provider=provider, model=settings.demo.aidb_model))
    return counts


def _setup(settings: Settings, timer: _StepTimer, seed: int) -> dict[str, int]:
    timer.run("databases", lambda: recreate_databases(settings))
    for role in DATABASE_ROLES:
        timer.run(f"migrations:{role}", lambda role=role: run_migrations(role))
    return timer.run("seed", lambda: _seed(settings, seed))


def main(argv: Sequence[str]) -> int:
    args = _parse_args(argv)

    if args.print_version:
        print(f"ENGINE_NAME={ENGINE_NAME}")
        print(f"ENGINE_VERSION={ENGINE_VERSION}")
        print(f"SCHEMA_VERSION={SCHEMA_VERSION}")
        return 0

    setup_logging()
    settings = get_settings()
    if not settings.db.url:
        raise SystemExit("DB_URL is not set. Point it at the maintenance database, e.g. postgresql://postgres@localhost/postgres")

    provider = args.provider or settings.demo.embedding_provider
    seed = settings.demo.seed if args.seed is None else args.seed
    export_dir = args.export_dir.strip() or settings.demo.results_dir

    run_ts = _utc_now()
    run_id = _make_run_id(run_ts)
    set_run_context(run_id=run_id)
    timer = _StepTimer()

    row_counts: dict[str, int] = {}
    exported: list[str] = []
    results: list[Any] = []
    try:
        if args.skip_setup:
            for role in DATABASE_ROLES:
                timer.run(f"schema_check:{role}", lambda role=role: ensure_schema_current(role))
        else:
            row_counts = _setup(settings, timer, seed)
        embedded = timer.run("embeddings", lambda: _embed(settings, provider))
        timer.run("federation", lambda: setup_federation(settings))
        for role in DATABASE_ROLES:
            timer.run(f"indexes:{role}", lambda role=role: create_indexes(role, settings=settings))
        timer.run("monitoring", lambda: create_dashboard(settings, replace=True))

        if not args.no_queries:
            results = timer.run("queries", lambda: run_all_queries(settings=settings))
            if args.export_format:
                paths = timer.run("export", lambda: export_results(results, export_dir, args.export_format))
                exported = [str(p) for p in paths]

        manifest = RunManifest(
            run_id=run_id,
            started_at=run_ts.isoformat().replace("+00:00", "Z"),
            engine_name=ENGINE_NAME,
            engine_version=ENGINE_VERSION,
            schema_version=SCHEMA_VERSION,
            customer_db=settings.db.customer_db,
            transaction_db=settings.db.transaction_db,
            embedding_provider=provider,
            seed=seed,
            row_counts=row_counts,
            embedded_counts=embedded,
            step_durations_ms=dict(timer.durations_ms),
            exported_files=exported,
        )
        manifest_file = write_manifest(export_dir, manifest)
    finally:
        close_pools()
        clear_run_context()

    # --- Summary ---
    print("=== Run summary ===")
    print(f"run_id: {run_id}")
    print(f"customer_db: {settings.db.customer_db}")
    print(f"transaction_db: {settings.db.transaction_db}")
    print(f"embedding_provider: {provider}")
    print(f"seed: {seed}")
    if row_counts:
        print("--- Rows loaded ---")
        for table, count in row_counts.items():
            print(f"{table}: {count}")
    print("--- Embeddings generated ---")
    for table, count in embedded.items():
        print(f"{table}: {count}")
    if results:
        print("--- Query results ---")
        for result in results:
            print(f"{result.query_id}: {len(result.rows)} rows")
    print("--- Step durations (ms) ---")
    for step, ms in timer.durations_ms.items():
        print(f"{step}: {ms}")
    print(f"manifest: {manifest_file}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
