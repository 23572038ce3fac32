"""Centralized application configuration with schema validation.

This module is intentionally compatibility-first:
- Supports flat environment names (for example ``DB_URL``).
- Supports nested names (for example ``DB__URL``) for consistency.
- Optionally reads a local ``.env`` file before process env values.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from threading import Lock

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

EMBEDDING_PROVIDERS = ("sql", "python", "aidb")


class DatabaseConfig(BaseModel):
    """Database connection settings.

    ``url`` points at the maintenance database (usually ``postgres``); the two
    demo databases are reached by swapping the database name in that DSN.
    """

    model_config = ConfigDict(frozen=True)

    url: str | None = Field(default=None, description="Postgres maintenance connection URL")
    customer_db: str = Field(default="customerdb", min_length=1, max_length=63)
    transaction_db: str = Field(default="transactiondb", min_length=1, max_length=63)
    pool_maxconn: int = Field(default=10, ge=1, le=100)
    connect_timeout: int = Field(default=5, ge=1, le=60)

    @field_validator("customer_db", "transaction_db", mode="before")
    @classmethod
    def _normalize_db_name(cls, value: object) -> str:
        return str(value or "").strip()


class FederationConfig(BaseModel):
    """Connection options handed to postgres_fdw foreign servers."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(default="localhost")
    port: int = Field(default=5432, ge=1, le=65535)
    user: str = Field(default="postgres")
    password: str = Field(default="postgres")
    remote_schema: str = Field(default="public")


class DemoConfig(BaseModel):
    """Synthetic data and pipeline knobs."""

    model_config = ConfigDict(frozen=True)

    seed: int = Field(default=42)
    embedding_provider: str = Field(default="sql")
    aidb_model: str = Field(default="text-embedding-model")
    generated_customers: int = Field(default=80, ge=0, le=100_000)
    extra_feedback: int = Field(default=100, ge=0, le=100_000)
    generated_transactions: int = Field(default=130, ge=0, le=1_000_000)
    ivfflat_lists: int = Field(default=100, ge=1, le=10_000)
    monitoring_window_hours: int = Field(default=24, ge=1, le=24 * 365)
    results_dir: str = Field(default="data/query_results")

    @field_validator("embedding_provider", mode="before")
    @classmethod
    def _normalize_provider(cls, value: object) -> str:
        text = str(value or "").strip().lower()
        if text in EMBEDDING_PROVIDERS:
            return text
        return "sql"


class LoggingSettings(BaseModel):
    """Repository-wide logging settings."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)
    override_root_handlers: bool = Field(default=False)

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        text = str(value or "").strip().upper()
        if text in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            return text
        return "INFO"


class DbMetricsConfig(BaseModel):
    """DB query instrumentation settings."""

    model_config = ConfigDict(frozen=True)

    metrics_enabled: bool = Field(default=True)
    slow_query_threshold_ms: float = Field(default=1000.0, ge=0.0)

    @field_validator("metrics_enabled", mode="before")
    @classmethod
    def _normalize_metrics_enabled(cls, value: object) -> bool:
        if value is None:
            return True
        text = str(value).strip().lower()
        if text == "":
            return True
        if text in {"1", "true", "yes", "on"}:
            return True
        if text in {"0", "false", "no", "off"}:
            return False
        return True

    @field_validator("slow_query_threshold_ms", mode="before")
    @classmethod
    def _normalize_threshold_ms(cls, value: object) -> float:
        if value is None:
            return 1000.0
        text = str(value).strip()
        if text == "":
            return 1000.0
        try:
            parsed = float(text)
        except (TypeError, ValueError):
            return 1000.0
        return max(0.0, parsed)


class Settings(BaseModel):
    """Top-level settings model."""

    model_config = ConfigDict(frozen=True)

    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    fdw: FederationConfig = Field(default_factory=FederationConfig)
    demo: DemoConfig = Field(default_factory=DemoConfig)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    db_metrics: DbMetricsConfig = Field(default_factory=DbMetricsConfig)

    @classmethod
    def from_env(
        cls,
        *,
        env: Mapping[str, str] | None = None,
        env_file: str = ".env",
    ) -> Settings:
        """Build settings from `.env` then environment variables."""
        runtime_env = os.environ if env is None else env
        merged_env = _merge_env(_load_dotenv(Path(env_file)), runtime_env)
        payload = _build_payload(merged_env)
        return cls.model_validate(payload)

    def database_for_role(self, role: str) -> str:
        """Return the configured database name for a ``customer``/``transaction`` role."""
        if role == "customer":
            return self.db.customer_db
        if role == "transaction":
            return self.db.transaction_db
        raise ValueError(f"Unknown database role: {role!r}")


def _load_dotenv(path: Path) -> dict[str, str]:
    """Parse a minimal `.env` file format."""
    if not path.exists() or not path.is_file():
        return {}

    values: dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, raw_value = line.split("=", 1)
        key_clean = key.strip()
        value = raw_value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        if key_clean:
            values[key_clean] = value
    return values


def _merge_env(dotenv_values: Mapping[str, str], runtime_env: Mapping[str, str]) -> dict[str, str]:
    """Return env map where process env overrides `.env` values."""
    merged = {str(k): str(v) for k, v in dotenv_values.items()}
    for key, value in runtime_env.items():
        merged[str(key)] = str(value)
    return merged


def _first_non_empty(env: Mapping[str, str], *keys: str) -> str | None:
    """Return the first non-empty value for the provided keys."""
    for key in keys:
        value = str(env.get(key, "")).strip()
        if value:
            return value
    return None


def _build_payload(env: Mapping[str, str]) -> dict[str, object]:
    """Build nested settings payload from env values."""
    db = {
        "url": _first_non_empty(env, "DB__URL", "DB_URL"),
        "customer_db": _first_non_empty(env, "DB__CUSTOMER_DB", "CUSTOMER_DB"),
        "transaction_db": _first_non_empty(env, "DB__TRANSACTION_DB", "TRANSACTION_DB"),
        "pool_maxconn": _first_non_empty(env, "DB__POOL_MAXCONN", "DB_POOL_MAXCONN"),
        "connect_timeout": _first_non_empty(env, "DB__CONNECT_TIMEOUT", "DB_CONNECT_TIMEOUT"),
    }
    fdw = {
        "host": _first_non_empty(env, "FDW__HOST", "FDW_HOST"),
        "port": _first_non_empty(env, "FDW__PORT", "FDW_PORT"),
        "user": _first_non_empty(env, "FDW__USER", "FDW_USER"),
        "password": _first_non_empty(env, "FDW__PASSWORD", "FDW_PASSWORD"),
        "remote_schema": _first_non_empty(env, "FDW__REMOTE_SCHEMA", "FDW_REMOTE_SCHEMA"),
    }
    demo = {
        "seed": _first_non_empty(env, "DEMO__SEED", "DEMO_SEED"),
        "embedding_provider": _first_non_empty(env, "DEMO__EMBEDDING_PROVIDER", "EMBEDDING_PROVIDER"),
        "aidb_model": _first_non_empty(env, "DEMO__AIDB_MODEL", "AIDB_MODEL"),
        "generated_customers": _first_non_empty(
            env, "DEMO__GENERATED_CUSTOMERS", "DEMO_GENERATED_CUSTOMERS"
        ),
        "extra_feedback": _first_non_empty(env, "DEMO__EXTRA_FEEDBACK", "DEMO_EXTRA_FEEDBACK"),
        "generated_transactions": _first_non_empty(
            env, "DEMO__GENERATED_TRANSACTIONS", "DEMO_GENERATED_TRANSACTIONS"
        ),
        "ivfflat_lists": _first_non_empty(env, "DEMO__IVFFLAT_LISTS", "IVFFLAT_LISTS"),
        "monitoring_window_hours": _first_non_empty(
            env, "DEMO__MONITORING_WINDOW_HOURS", "MONITORING_WINDOW_HOURS"
        ),
        "results_dir": _first_non_empty(env, "DEMO__RESULTS_DIR", "RESULTS_DIR"),
    }
    logging_settings = {
        "level": _first_non_empty(env, "LOGGING__LEVEL", "AIDB_DEMO_LOG_LEVEL"),
        "json_logs": _first_non_empty(env, "LOGGING__JSON_LOGS", "AIDB_DEMO_LOG_JSON"),
        "override_root_handlers": _first_non_empty(
            env, "LOGGING__OVERRIDE_ROOT_HANDLERS", "AIDB_DEMO_LOG_OVERRIDE"
        ),
    }
    db_metrics = {
        "metrics_enabled": _first_non_empty(env, "DB_METRICS__ENABLED", "DB_QUERY_METRICS_ENABLED"),
        "slow_query_threshold_ms": _first_non_empty(
            env, "DB_METRICS__SLOW_QUERY_THRESHOLD_MS", "DB_SLOW_QUERY_THRESHOLD_MS"
        ),
    }
    return {
        "db": {k: v for k, v in db.items() if v is not None},
        "fdw": {k: v for k, v in fdw.items() if v is not None},
        "demo": {k: v for k, v in demo.items() if v is not None},
        "logging": {k: v for k, v in logging_settings.items() if v is not None},
        "db_metrics": {k: v for k, v in db_metrics.items() if v is not None},
    }


_SETTINGS_LOCK = Lock()
_SETTINGS_CACHE: Settings | None = None


def get_settings(*, reload: bool = False) -> Settings:
    """Return cached settings, optionally forcing reload from env."""
    global _SETTINGS_CACHE
    with _SETTINGS_LOCK:
        if reload or _SETTINGS_CACHE is None:
            _SETTINGS_CACHE = Settings.from_env()
        return _SETTINGS_CACHE


def clear_settings_cache() -> None:
    """Clear in-process settings cache."""
    global _SETTINGS_CACHE
    with _SETTINGS_LOCK:
        _SETTINGS_CACHE = None


__all__ = [
    "EMBEDDING_PROVIDERS",
    "DatabaseConfig",
    "DbMetricsConfig",
    "DemoConfig",
    "FederationConfig",
    "LoggingSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
    "ValidationError",
]
