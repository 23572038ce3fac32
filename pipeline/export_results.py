"""Write analysis query results to JSON or Parquet files."""

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq

from infra.logging_config import StructuredLogger
from services.analysis import QueryResult

_LOG = StructuredLogger(__name__)

EXPORT_FORMATS = ("json", "parquet")


class ExportError(RuntimeError):
    """Raised when results cannot be exported."""


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return str(obj)
    if hasattr(obj, "tolist"):
        return obj.tolist()
    return str(obj)


def _parquet_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str, datetime, date, time)):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if hasattr(value, "tolist"):
        return value.tolist()
    return str(value)


def result_payload(result: QueryResult) -> dict[str, Any]:
    return {
        "query_id": result.query_id,
        "database": result.database,
        "columns": list(result.columns),
        "row_count": len(result.rows),
        "rows": result.as_dicts(),
    }


def write_json(result: QueryResult, out_dir: str | Path) -> Path:
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / f"{result.query_id}.json"
    with path.open("w", encoding="utf-8") as f:
        json.dump(result_payload(result), f, indent=2, ensure_ascii=False, default=_json_default)
    return path


def result_table(result: QueryResult) -> pa.Table:
    columns: dict[str, list[Any]] = {name: [] for name in result.columns}
    for row in result.rows:
        for name, value in zip(result.columns, row, strict=False):
            columns[name].append(_parquet_value(value))
    try:
        return pa.table({name: pa.array(values) for name, values in columns.items()})
    except (pa.ArrowInvalid, pa.ArrowTypeError) as exc:
        raise ExportError(f"Cannot convert {result.query_id} rows to Arrow: {exc}") from exc


def write_parquet(result: QueryResult, out_dir: str | Path) -> Path:
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / f"{result.query_id}.parquet"
    pq.write_table(result_table(result), path)
    return path


def export_result(result: QueryResult, out_dir: str | Path, fmt: str = "json") -> Path:
    fmt = str(fmt or "").strip().lower()
    if fmt == "json":
        path = write_json(result, out_dir)
    elif fmt == "parquet":
        path = write_parquet(result, out_dir)
    else:
        raise ExportError(f"Unsupported export format: {fmt!r} (expected one of {', '.join(EXPORT_FORMATS)})")
    _LOG.info("result_exported", query_id=result.query_id, path=str(path), rows=len(result.rows))
    return path


def export_results(results: Iterable[QueryResult], out_dir: str | Path, fmt: str = "json") -> list[Path]:
    return [export_result(r, out_dir, fmt) for r in results]
