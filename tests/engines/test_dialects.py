"""Unit tests for MySQL / PostgreSQL prepare-execute-deallocate with mocked drivers."""

from typing import Any
from unittest.mock import MagicMock, patch

import psycopg
import pymysql
import pytest
from psycopg import sql as pgsql

from execquery import Connection, ProductTypeEnum, QueryError, ReportFlag, execute_query
from execquery.engines.sql.dialects import (
    MySQLDialect,
    PostgresDialect,
    SQLiteDialect,
    get_dialect,
)


def _mock_conn(description: list[tuple] | None = None, rows: list[tuple] | None = None) -> tuple[MagicMock, MagicMock]:
    cur = MagicMock()
    cur.description = description
    cur.fetchall.return_value = rows or []
    cur.rowcount = len(rows) if rows else 0
    cur.lastrowid = 0
    raw = MagicMock()
    raw.cursor.return_value = cur
    return raw, cur


def _executed(cur: MagicMock) -> list[tuple[Any, ...]]:
    return [c.args for c in cur.execute.call_args_list]


def _flatten(obj: Any) -> list[Any]:
    if isinstance(obj, pgsql.Composed):
        out: list[Any] = []
        for part in obj:
            out.extend(_flatten(part))
        return out
    return [obj]


def test_get_dialect() -> None:
    assert isinstance(get_dialect(ProductTypeEnum.MYSQL), MySQLDialect)
    assert isinstance(get_dialect(ProductTypeEnum.POSTGRES), PostgresDialect)
    assert isinstance(get_dialect(ProductTypeEnum.SQLITE), SQLiteDialect)


# --- MySQL ---


def test_mysql_prepare_sends_template_as_parameter() -> None:
    raw, cur = _mock_conn()
    MySQLDialect().prepare(raw, "s1", "SELECT * FROM t WHERE a = ? AND b = '%'", 1)
    assert _executed(cur) == [
        ("PREPARE s1 FROM %s", ("SELECT * FROM t WHERE a = ? AND b = '%'",)),
    ]


def test_mysql_execute_binds_user_variables() -> None:
    raw, cur = _mock_conn()
    out = MySQLDialect().execute(raw, "s1", "SELECT ?, ?", [1, "x"])
    assert out is cur
    assert _executed(cur) == [
        ("SET @s1_p0 = %s, @s1_p1 = %s", (1, "x")),
        ("EXECUTE s1 USING @s1_p0, @s1_p1",),
    ]


def test_mysql_execute_without_params() -> None:
    raw, cur = _mock_conn()
    MySQLDialect().execute(raw, "s1", "SELECT 1", [])
    assert _executed(cur) == [("EXECUTE s1",)]


def test_mysql_deallocate_resets_variables() -> None:
    raw, cur = _mock_conn()
    MySQLDialect().deallocate(raw, "s1", 2)
    assert _executed(cur) == [
        ("DEALLOCATE PREPARE s1",),
        ("SET @s1_p0 = NULL, @s1_p1 = NULL",),
    ]


def test_mysql_execute_query_full_sequence() -> None:
    raw, cur = _mock_conn(description=[("id",), ("name",)], rows=[(5, "x")])
    conn = Connection(raw, ProductTypeEnum.MYSQL, report_mode=ReportFlag.OFF)

    result = execute_query(conn, "SELECT id, name FROM t WHERE id = ?", [5])

    assert result is not False
    assert result.fetch_all() == [{"id": 5, "name": "x"}]
    sent = [args[0] for args in _executed(cur)]
    name = sent[0].split()[1]
    assert sent == [
        f"PREPARE {name} FROM %s",
        f"SET @{name}_p0 = %s",
        f"EXECUTE {name} USING @{name}_p0",
        f"DEALLOCATE PREPARE {name}",
        f"SET @{name}_p0 = NULL",
    ]


def test_mysql_update_returns_false() -> None:
    raw, cur = _mock_conn(description=None)
    cur.rowcount = 4
    conn = Connection(raw, ProductTypeEnum.MYSQL, report_mode=ReportFlag.OFF)

    assert execute_query(conn, "UPDATE t SET a = ?", [1]) is False
    assert conn.errno == 0
    assert conn.affected_rows == -1


def test_mysql_prepare_error_translated() -> None:
    raw, cur = _mock_conn()
    cur.execute.side_effect = pymysql.err.ProgrammingError(
        1064, "You have an error in your SQL syntax"
    )
    conn = Connection(raw, ProductTypeEnum.MYSQL, report_mode=ReportFlag.OFF)

    assert execute_query(conn, "SELEC 1") is False
    assert conn.errno == 1064
    assert conn.sqlstate == "42000"
    assert "SQL syntax" in conn.error


def test_mysql_prepare_error_raises_in_strict_mode() -> None:
    raw, cur = _mock_conn()
    cur.execute.side_effect = pymysql.err.ProgrammingError(1146, "Table 'db.nope' doesn't exist")
    conn = Connection(raw, ProductTypeEnum.MYSQL, report_mode=ReportFlag.STRICT)

    with pytest.raises(QueryError) as exc_info:
        execute_query(conn, "SELECT * FROM nope")
    assert exc_info.value.errno == 1146
    assert exc_info.value.sqlstate == "42S02"
    assert isinstance(exc_info.value.__cause__, pymysql.err.ProgrammingError)


def test_mysql_statement_timeout_wraps_execute() -> None:
    raw, cur = _mock_conn()
    with patch("execquery.core.pool.connect.settings") as mock_settings:
        mock_settings.EXTERNAL_DB_STATEMENT_TIMEOUT = 2
        MySQLDialect().execute(raw, "s1", "SELECT 1", [])
    assert _executed(cur) == [
        ("SET SESSION max_execution_time = %s", (2000,)),
        ("EXECUTE s1",),
        ("SET SESSION max_execution_time = 0",),
    ]


# --- PostgreSQL ---


def test_postgres_prepare_uses_numbered_placeholders() -> None:
    raw, cur = _mock_conn()
    PostgresDialect().prepare(raw, "s1", "SELECT * FROM t WHERE a = ? AND b = ? AND c = '?'", 2)

    (stmt,) = cur.execute.call_args.args
    parts = _flatten(stmt)
    assert pgsql.Identifier("s1") in parts
    assert parts[-1] == pgsql.SQL("SELECT * FROM t WHERE a = $1 AND b = $2 AND c = '?'")


def test_postgres_trailing_backslash_literal_keeps_placeholder() -> None:
    raw, cur = _mock_conn(description=[("p",), ("v",)], rows=[("C:\\", 7)])
    conn = Connection(raw, ProductTypeEnum.POSTGRES, report_mode=ReportFlag.OFF)

    result = execute_query(conn, "SELECT 'C:\\' AS p, ? AS v", [7])

    assert result is not False
    prepare_stmt = _executed(cur)[0][0]
    assert _flatten(prepare_stmt)[-1] == pgsql.SQL("SELECT 'C:\\' AS p, $1 AS v")


def test_postgres_execute_composes_literals() -> None:
    raw, cur = _mock_conn()
    PostgresDialect().execute(raw, "s1", "SELECT ?, ?", [42, "o'neil"])

    (stmt,) = cur.execute.call_args.args
    parts = _flatten(stmt)
    assert parts[:2] == [pgsql.SQL("EXECUTE "), pgsql.Identifier("s1")]
    assert pgsql.Literal(42) in parts
    assert pgsql.Literal("o'neil") in parts


def test_postgres_execute_without_params() -> None:
    raw, cur = _mock_conn()
    PostgresDialect().execute(raw, "s1", "SELECT 1", [])
    (stmt,) = cur.execute.call_args.args
    assert _flatten(stmt) == [pgsql.SQL("EXECUTE "), pgsql.Identifier("s1")]


def test_postgres_hash_is_not_a_comment() -> None:
    raw, cur = _mock_conn(description=[("v",)], rows=[(3,)])
    conn = Connection(raw, ProductTypeEnum.POSTGRES, report_mode=ReportFlag.OFF)

    with patch.object(conn.dialect, "prepare") as prepare:
        result = execute_query(conn, "SELECT 1 # ?", [2])

    assert result is not False
    assert prepare.call_args.args[3] == 1


def test_postgres_error_translated() -> None:
    raw, cur = _mock_conn()
    err = psycopg.errors.SyntaxError("syntax error at or near \"SELEC\"")
    cur.execute.side_effect = err
    conn = Connection(raw, ProductTypeEnum.POSTGRES, report_mode=ReportFlag.OFF)

    assert execute_query(conn, "SELEC 1") is False
    assert conn.sqlstate == "42601"
    assert "syntax error" in conn.error


def test_postgres_insert_id_is_zero() -> None:
    raw, cur = _mock_conn()
    cur.lastrowid = 99
    assert PostgresDialect.insert_id(cur) == 0
