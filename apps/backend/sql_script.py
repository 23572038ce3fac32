"""
sql_script.py

SQL text utilities shared by the migration runner, the script renderer and the
script executor:

- ``split_sql`` splits a SQL file into statements (comments, single quotes and
  dollar quoting aware).
- ``quote_literal`` / ``quote_ident`` / ``render_params`` turn parameterised
  statements into stand-alone SQL text; ``SqlTemplate`` renders the same
  statement as text or as a ``psycopg2.sql`` composition.
- ``parse_script`` / ``run_script`` execute a psql-style script that switches
  databases with ``\\c <dbname>``, the way ``psql -f`` would.

Usage:
  python -m apps.backend.sql_script path/to/script.sql
  python -m apps.backend.sql_script path/to/script.sql --keep-going
"""

from __future__ import annotations

import argparse
import math
import re
from collections.abc import Callable, Iterator, Mapping
from contextlib import AbstractContextManager, ExitStack
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import Any, Union

from psycopg2 import sql as pg_sql

from apps.backend.db_metrics import measure_query
from infra.logging_config import StructuredLogger

_LOG = StructuredLogger(__name__)


class ScriptExecutionError(RuntimeError):
    """Raised when a script statement fails in fail-fast mode."""

    def __init__(self, message: str, *, line: int, database: str | None) -> None:
        super().__init__(message)
        self.line = line
        self.database = database


# ---------------------------
# Literal rendering
# ---------------------------

def quote_ident(name: str) -> str:
    """Double-quote *name*, reserved words and lower-case names included."""
    text = str(name)
    return '"' + text.replace('"', '""') + '"'


def quote_literal(value: Any) -> str:
    """Render a Python value as a SQL literal."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError(f"Cannot render non-finite float literal: {value!r}")
        return repr(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return "'" + value.isoformat(sep=" ") + "'"
    if isinstance(value, (date, time)):
        return "'" + value.isoformat() + "'"
    if isinstance(value, str):
        return "'" + value.replace("'", "''") + "'"
    if isinstance(value, (list, tuple)) or hasattr(value, "tolist"):
        items = value.tolist() if hasattr(value, "tolist") else list(value)
        return "'[" + ",".join(repr(float(x)) for x in items) + "]'"
    raise TypeError(f"Unsupported literal type: {type(value).__name__}")


_PARAM_RE = re.compile(r"%%|%\((?P<name>[A-Za-z_][A-Za-z0-9_]*)\)s")


def render_params(sql: str, params: Mapping[str, Any]) -> str:
    """Substitute pyformat ``%(name)s`` placeholders with SQL literals.

    ``%%`` becomes ``%``, mirroring what psycopg2 does client-side.
    """

    def _replace(match: re.Match[str]) -> str:
        name = match.group("name")
        if name is None:
            return "%"
        if name not in params:
            raise KeyError(f"Missing value for SQL parameter {name!r}")
        return quote_literal(params[name])

    return _PARAM_RE.sub(_replace, sql)


def param_names(sql: str) -> list[str]:
    """Return pyformat parameter names in order of first appearance."""
    seen: list[str] = []
    for match in _PARAM_RE.finditer(sql):
        name = match.group("name")
        if name and name not in seen:
            seen.append(name)
    return seen


@dataclass(frozen=True)
class SqlTemplate:
    """A statement with named identifier, literal and raw-SQL slots.

    ``text()`` renders it for script files; ``composed()`` builds the
    ``psycopg2.sql`` object executed on a live connection.
    """

    template: str
    identifiers: Mapping[str, str] = field(default_factory=dict)
    literals: Mapping[str, Any] = field(default_factory=dict)
    fragments: Mapping[str, str] = field(default_factory=dict)

    def text(self) -> str:
        values = {k: quote_ident(v) for k, v in self.identifiers.items()}
        values.update({k: quote_literal(v) for k, v in self.literals.items()})
        values.update(self.fragments)
        return self.template.format(**values)

    def composed(self) -> pg_sql.Composed:
        values: dict[str, pg_sql.Composable] = {k: pg_sql.Identifier(v) for k, v in self.identifiers.items()}
        values.update({k: pg_sql.Literal(v) for k, v in self.literals.items()})
        values.update({k: pg_sql.SQL(v) for k, v in self.fragments.items()})
        return pg_sql.SQL(self.template).format(**values)


# ---------------------------
# Splitting
# ---------------------------

_Chunk = tuple[str, str, int]  # (kind, text, line)


def _dollar_tag_at(sql: str, i: int) -> str:
    """Return the dollar-quote tag starting at *i* (``$$`` or ``$tag$``), or ''."""
    n = len(sql)
    j = i + 1
    while j < n and sql[j] != "$":
        if not (sql[j].isalnum() or sql[j] == "_"):
            return ""
        j += 1
    if j < n and sql[j] == "$":
        return sql[i : j + 1]
    return ""


def _scan(sql: str) -> Iterator[_Chunk]:
    """Yield ``("statement", sql, line)`` and ``("meta", command, line)`` chunks.

    A backslash that starts a line outside of quotes and comments begins a
    psql meta command running to the end of that line; it also ends any
    pending statement. Comment-only chunks are dropped.
    """
    buf: list[str] = []
    has_code = False
    stmt_start = 0
    in_squote = False
    in_line_comment = False
    in_block_comment = False
    dollar_tag = ""
    line_blank = True

    def _line_of(index: int) -> int:
        return sql.count("\n", 0, index) + 1

    def _flush() -> Iterator[_Chunk]:
        nonlocal buf, has_code
        text = "".join(buf).strip()
        if text and has_code:
            yield ("statement", text, _line_of(stmt_start))
        buf = []
        has_code = False

    i = 0
    n = len(sql)
    while i < n:
        ch = sql[i]
        nxt = sql[i + 1] if i + 1 < n else ""

        if in_line_comment:
            buf.append(ch)
            if ch == "\n":
                in_line_comment = False
                line_blank = True
            i += 1
            continue

        if in_block_comment:
            if ch == "*" and nxt == "/":
                in_block_comment = False
                buf.append("*/")
                i += 2
                continue
            buf.append(ch)
            i += 1
            continue

        if in_squote:
            buf.append(ch)
            if ch == "'":
                if nxt == "'":
                    buf.append(nxt)
                    i += 2
                    continue
                in_squote = False
            i += 1
            continue

        if dollar_tag:
            if sql.startswith(dollar_tag, i):
                buf.append(dollar_tag)
                i += len(dollar_tag)
                dollar_tag = ""
                continue
            buf.append(ch)
            i += 1
            continue

        if ch == "\\" and line_blank:
            yield from _flush()
            end = sql.find("\n", i)
            end = n if end == -1 else end
            yield ("meta", sql[i:end].strip(), _line_of(i))
            i = end
            continue

        if ch == "\n":
            line_blank = True
            buf.append(ch)
            i += 1
            continue
        if not ch.isspace():
            line_blank = False

        if ch == "-" and nxt == "-":
            in_line_comment = True
            buf.append("--")
            i += 2
            continue
        if ch == "/" and nxt == "*":
            in_block_comment = True
            buf.append("/*")
            i += 2
            continue

        if ch == ";":
            yield from _flush()
            i += 1
            continue

        if not ch.isspace() and not has_code:
            has_code = True
            stmt_start = i

        if ch == "'":
            in_squote = True
            buf.append(ch)
            i += 1
            continue
        if ch == "$":
            tag = _dollar_tag_at(sql, i)
            if tag:
                dollar_tag = tag
                buf.append(tag)
                i += len(tag)
                continue

        buf.append(ch)
        i += 1

    yield from _flush()


def split_sql(sql: str) -> list[str]:
    """Split a SQL file into statements (supports comments and dollar-quoting)."""
    return [text for kind, text, _line in _scan(sql) if kind == "statement"]


# ---------------------------
# psql-style scripts
# ---------------------------

@dataclass(frozen=True)
class ConnectStep:
    """``\\c <database>``: subsequent statements run against *database*."""

    database: str
    line: int


@dataclass(frozen=True)
class StatementStep:
    sql: str
    line: int


ScriptStep = Union[ConnectStep, StatementStep]

_CONNECT_COMMANDS = {"\\c", "\\connect"}


def _parse_meta(command: str, line: int) -> ConnectStep | None:
    parts = command.split()
    if not parts or parts[0] not in _CONNECT_COMMANDS:
        _LOG.warning("script_meta_command_skipped", command=command, line=line)
        return None
    if len(parts) < 2:
        raise ValueError(f"line {line}: {parts[0]} requires a database name")
    database = parts[1].rstrip(";").strip("'\"")
    if not database:
        raise ValueError(f"line {line}: {parts[0]} requires a database name")
    return ConnectStep(database=database, line=line)


def parse_script(text: str) -> list[ScriptStep]:
    """Parse a psql-style script into connect and statement steps."""
    steps: list[ScriptStep] = []
    for kind, chunk, line in _scan(text):
        if kind == "statement":
            steps.append(StatementStep(sql=chunk, line=line))
            continue
        step = _parse_meta(chunk, line)
        if step is not None:
            steps.append(step)
    return steps


@dataclass(frozen=True)
class ResultSetSummary:
    line: int
    database: str | None
    rows: int
    columns: tuple[str, ...]


@dataclass
class ScriptReport:
    statements_executed: int = 0
    connections: int = 0
    result_sets: list[ResultSetSummary] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


Connector = Callable[[Union[str, None]], AbstractContextManager[Any]]


def _autocommit_conn(database: str | None) -> AbstractContextManager[Any]:
    from apps.backend.db import direct_conn

    return direct_conn(database, autocommit=True)


def _statement_label(sql: str) -> str:
    text = " ".join(sql.split())
    return "script:" + (text.split(" ", 1)[0].lower() if text else "empty")


def run_script(
    text: str,
    *,
    fail_fast: bool = True,
    initial_database: str | None = None,
    connect: Connector = _autocommit_conn,
) -> ScriptReport:
    """Execute a psql-style script statement by statement.

    Statements run in autocommit mode, like psql. The script starts on
    *initial_database* (the maintenance database when None) and every
    ``\\c`` opens a fresh connection.
    """
    import psycopg2  # type: ignore

    report = ScriptReport()
    database = initial_database
    with ExitStack() as stack:
        conn = None
        for step in parse_script(text):
            if isinstance(step, ConnectStep):
                stack.close()
                conn = None
                database = step.database
                report.connections += 1
                _LOG.info("script_connect", database=database, line=step.line)
                continue

            if conn is None:
                conn = stack.enter_context(connect(database))

            try:
                with conn.cursor() as cur:
                    with measure_query(_statement_label(step.sql), database=database):
                        cur.execute(step.sql)
                    if cur.description:
                        rows = cur.fetchall()
                        columns = tuple(str(d[0]) for d in cur.description)
                        report.result_sets.append(
                            ResultSetSummary(line=step.line, database=database, rows=len(rows), columns=columns)
                        )
                        _LOG.info("script_result", database=database, line=step.line, rows=len(rows))
            except psycopg2.Error as exc:
                message = f"line {step.line} ({database or 'maintenance'}): {str(exc).strip()}"
                if fail_fast:
                    raise ScriptExecutionError(message, line=step.line, database=database) from exc
                _LOG.error("script_statement_failed", database=database, line=step.line, error=str(exc).strip())
                report.errors.append(message)
                continue
            report.statements_executed += 1

    return report


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""
    from infra.logging_config import setup_logging

    parser = argparse.ArgumentParser(description="Execute a psql-style SQL script.")
    parser.add_argument("path", help="Script to execute.")
    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Continue after a failing statement (default: stop on first error).",
    )
    args = parser.parse_args(argv)

    setup_logging()
    report = run_script(Path(args.path).read_text(encoding="utf-8"), fail_fast=not args.keep_going)
    print(
        f"Executed {report.statements_executed} statements "
        f"across {report.connections} connection switches; {len(report.errors)} errors."
    )
    return 0 if report.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
