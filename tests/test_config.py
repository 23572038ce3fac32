"""Unit tests for centralized configuration parsing and validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from infra.config import Settings, ValidationError, clear_settings_cache, get_settings


def test_settings_reads_legacy_env_keys() -> None:
    """Legacy flat env keys should map to nested settings models."""
    env = {
        "DB_URL": "postgres://legacy/postgres",
        "DB_POOL_MAXCONN": "15",
        "DB_CONNECT_TIMEOUT": "9",
        "CUSTOMER_DB": "cust_demo",
        "TRANSACTION_DB": "txn_demo",
        "FDW_HOST": "db.internal",
        "FDW_PORT": "6543",
        "DEMO_SEED": "7",
        "EMBEDDING_PROVIDER": "python",
        "IVFFLAT_LISTS": "25",
    }
    settings = Settings.from_env(env=env, env_file=".missing.env")

    assert settings.db.url == "postgres://legacy/postgres"
    assert settings.db.pool_maxconn == 15
    assert settings.db.connect_timeout == 9
    assert settings.db.customer_db == "cust_demo"
    assert settings.db.transaction_db == "txn_demo"
    assert settings.fdw.host == "db.internal"
    assert settings.fdw.port == 6543
    assert settings.demo.seed == 7
    assert settings.demo.embedding_provider == "python"
    assert settings.demo.ivfflat_lists == 25


def test_settings_reads_nested_env_keys() -> None:
    """Nested env keys should be supported with `__` delimiter."""
    env = {
        "DB__URL": "postgres://nested/postgres",
        "DB__POOL_MAXCONN": "11",
        "FDW__USER": "fdw_reader",
        "DEMO__MONITORING_WINDOW_HOURS": "48",
    }
    settings = Settings.from_env(env=env, env_file=".missing.env")

    assert settings.db.url == "postgres://nested/postgres"
    assert settings.db.pool_maxconn == 11
    assert settings.fdw.user == "fdw_reader"
    assert settings.demo.monitoring_window_hours == 48


def test_settings_defaults_match_demo_databases() -> None:
    settings = Settings.from_env(env={}, env_file=".missing.env")

    assert settings.db.url is None
    assert settings.db.customer_db == "customerdb"
    assert settings.db.transaction_db == "transactiondb"
    assert settings.demo.embedding_provider == "sql"
    assert settings.demo.ivfflat_lists == 100


def test_settings_invalid_pool_size_raises_validation_error() -> None:
    """Invalid constrained values should fail schema validation."""
    env = {"DB_POOL_MAXCONN": "0"}

    with pytest.raises(ValidationError):
        Settings.from_env(env=env, env_file=".missing.env")


def test_settings_invalid_provider_falls_back_to_sql() -> None:
    """Unknown embedding providers normalize to the SQL placeholder."""
    settings = Settings.from_env(env={"EMBEDDING_PROVIDER": "openai"}, env_file=".missing.env")
    assert settings.demo.embedding_provider == "sql"


def test_settings_dotenv_is_overridden_by_process_env(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("# local\nDB_URL='postgres://dotenv/postgres'\nDEMO_SEED=3\n", encoding="utf-8")

    settings = Settings.from_env(env={"DEMO_SEED": "9"}, env_file=str(env_file))

    assert settings.db.url == "postgres://dotenv/postgres"
    assert settings.demo.seed == 9


def test_database_for_role() -> None:
    settings = Settings.from_env(env={"CUSTOMER_DB": "c1", "TRANSACTION_DB": "t1"}, env_file=".missing.env")

    assert settings.database_for_role("customer") == "c1"
    assert settings.database_for_role("transaction") == "t1"
    with pytest.raises(ValueError):
        settings.database_for_role("billing")


def test_get_settings_reload_rebuilds_cache(monkeypatch: Any) -> None:
    """Reload should rebuild cached settings from current process env."""
    clear_settings_cache()
    monkeypatch.setenv("DB_URL", "postgres://first/postgres")
    first = get_settings(reload=True)

    monkeypatch.setenv("DB_URL", "postgres://second/postgres")
    second = get_settings(reload=True)

    assert first.db.url == "postgres://first/postgres"
    assert second.db.url == "postgres://second/postgres"
    clear_settings_cache()
