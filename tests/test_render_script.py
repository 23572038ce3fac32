"""Tests for the stand-alone psql script renderer."""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path

import pytest

from apps.backend.sql_script import ConnectStep, StatementStep, parse_script
from contracts.schema import get_table
from pipeline.generate import generate_dataset
from pipeline.render_script import insert_statements, render_demo_script, write_demo_script
from tests.factories import make_settings
from tools.validate_demo import REQUIRED_CONSTRUCTS, REQUIRED_SECTIONS, validate_file


@pytest.fixture(scope="module")
def script() -> str:
    dataset = generate_dataset(42, reference_time=datetime(2024, 5, 1, 12, 0))
    return render_demo_script(make_settings(), dataset)


def test_rendered_script_passes_validation(tmp_path: Path, script: str) -> None:
    path = tmp_path / "aidb_multidb_demo.sql"
    path.write_text(script, encoding="utf-8")

    report = validate_file(path, readme=tmp_path / "README.md")

    assert report.exists
    assert report.missing_sections == []
    assert report.missing_constructs == []
    assert set(report.sections) == set(REQUIRED_SECTIONS)
    assert set(report.constructs) == set(REQUIRED_CONSTRUCTS)
    assert report.customer_inserts == 3  # 120 rows in batches of 50
    assert report.transaction_inserts == 4  # 152 rows
    assert report.has_generate_series
    assert report.has_terminated_statements


def test_rendered_sections_are_numbered_in_order(script: str) -> None:
    banners = [line for line in script.splitlines() if line.startswith("-- SECTION ")]

    assert banners[0] == "-- SECTION 1: DATABASE SETUP"
    assert banners[5] == "-- SECTION 6: AIDB EMBEDDING GENERATION"
    assert banners[-1] == "-- SECTION 13: PERFORMANCE INDEXES"
    assert len(banners) == 13


def test_rendered_script_parses_into_connect_and_statement_steps(script: str) -> None:
    steps = parse_script(script)
    connects = [s for s in steps if isinstance(s, ConnectStep)]
    first_connect = steps.index(connects[0])

    assert {c.database for c in connects} == {"customerdb", "transactiondb"}
    assert connects[0].database == "customerdb"
    assert [s.sql.splitlines()[-1] for s in steps[:first_connect]] == [
        'DROP DATABASE IF EXISTS "customerdb"',
        'CREATE DATABASE "customerdb"',
        'DROP DATABASE IF EXISTS "transactiondb"',
        'CREATE DATABASE "transactiondb"',
    ]
    assert all(isinstance(s, StatementStep) for s in steps[:first_connect])
    assert not any(a.database == b.database for a, b in zip(connects, connects[1:]))


def test_rendered_queries_have_no_placeholders(script: str) -> None:
    assert "%(" not in script
    assert "CREATE MATERIALIZED VIEW IF NOT EXISTS fraud_monitoring_dashboard" in script


def test_aidb_provider_uses_generate_embedding() -> None:
    dataset = generate_dataset(1, generated_customers=0, extra_feedback=0, generated_transactions=0)
    text = render_demo_script(make_settings(AIDB_MODEL="all-MiniLM-L6-v2"), dataset, provider="aidb")

    assert "SET feedback_embedding = aidb_generate_embedding(feedback_text, 'all-MiniLM-L6-v2')" in text


def test_transaction_dates_are_relative_to_run_time(script: str) -> None:
    blocks = [block for block in script.split("\n\n") if "INSERT INTO transactions " in block]

    assert len(blocks) == 4
    for block in blocks:
        lines = block.splitlines()
        rows = lines[[i for i, line in enumerate(lines) if line.startswith("INSERT INTO")][0] + 1 :]
        assert rows
        assert all("CURRENT_TIMESTAMP - INTERVAL '" in row for row in rows)
        assert not any(re.search(r"'\d{4}-\d{2}-\d{2} \d{2}:", row) for row in rows)
    assert "CURRENT_TIMESTAMP - INTERVAL '60 seconds'" in script


def test_insert_statements_keep_literals_without_reference_time() -> None:
    reference_time = datetime(2024, 5, 1, 12, 0)
    dataset = generate_dataset(
        1, generated_customers=0, extra_feedback=0, generated_transactions=0, reference_time=reference_time
    )
    table = get_table("transactions")
    row = dataset.transactions[-1].as_row()

    [plain] = insert_statements(table, [row])
    [relative] = insert_statements(table, [row], reference_time=reference_time)

    assert dataset.reference_time == reference_time
    assert "'2024-05-01 11:59:00'" in plain
    assert "CURRENT_TIMESTAMP" not in plain
    assert "CURRENT_TIMESTAMP - INTERVAL '60 seconds'" in relative


def test_insert_statements_batches_rows() -> None:
    table = get_table("fraud_patterns")
    rows = [("p", "d", "r", 0.5)] * 5

    stmts = insert_statements(table, rows, batch_size=2)

    assert len(stmts) == 3
    assert stmts[0].startswith(
        "INSERT INTO fraud_patterns (pattern_name, pattern_description, detection_rules, risk_weight) VALUES\n"
    )
    with pytest.raises(ValueError):
        insert_statements(table, rows, batch_size=0)


def test_write_demo_script_creates_parent_dirs(tmp_path: Path) -> None:
    dataset = generate_dataset(1, generated_customers=0, extra_feedback=0, generated_transactions=0)
    out = write_demo_script(tmp_path / "examples" / "demo.sql", make_settings(), dataset)

    assert out.is_file()
    assert not out.with_suffix(".sql.tmp").exists()
