from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pyarrow.parquet as pq
import pytest

from pipeline.export_results import ExportError, export_result, export_results
from services.analysis import QueryResult


def _result(query_id: str = "fraud_neighbors") -> QueryResult:
    return QueryResult(
        query_id=query_id,
        database="transactiondb",
        columns=["transaction_id", "amount", "transaction_date"],
        rows=[
            (1, Decimal("12.50"), datetime(2024, 5, 1, 10, 0)),
            (2, Decimal("899.99"), None),
        ],
    )


def test_json_export_serializes_decimals_and_datetimes(tmp_path: Path) -> None:
    path = export_result(_result(), tmp_path / "out", "json")

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert path.name == "fraud_neighbors.json"
    assert payload["database"] == "transactiondb"
    assert payload["row_count"] == 2
    assert payload["rows"][0] == {"transaction_id": 1, "amount": "12.50", "transaction_date": "2024-05-01T10:00:00"}
    assert payload["rows"][1]["transaction_date"] is None


def test_parquet_export_keeps_columns(tmp_path: Path) -> None:
    path = export_result(_result(), tmp_path, "PARQUET")

    table = pq.read_table(path)
    assert path.suffix == ".parquet"
    assert table.column_names == ["transaction_id", "amount", "transaction_date"]
    assert table.num_rows == 2
    assert table.column("amount").to_pylist() == [12.5, 899.99]


def test_empty_result_exports(tmp_path: Path) -> None:
    empty = QueryResult(query_id="empty", database="customerdb", columns=["a"], rows=[])

    table = pq.read_table(export_result(empty, tmp_path, "parquet"))

    assert table.num_rows == 0


def test_unknown_format_raises(tmp_path: Path) -> None:
    with pytest.raises(ExportError, match="Unsupported export format"):
        export_result(_result(), tmp_path, "csv")


def test_export_results_writes_one_file_per_query(tmp_path: Path) -> None:
    paths = export_results([_result("a"), _result("b")], tmp_path)

    assert [p.name for p in paths] == ["a.json", "b.json"]
