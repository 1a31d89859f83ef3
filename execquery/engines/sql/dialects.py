"""
Server-side prepare / execute / deallocate per product type.

- MySQL: ``PREPARE name FROM '...'``, user variables + ``EXECUTE name USING``,
  ``DEALLOCATE PREPARE name``.
- PostgreSQL: ``PREPARE name AS ...`` with ``$n`` placeholders, ``EXECUTE
  name (literal, ...)`` composed by psycopg, ``DEALLOCATE name``.
- SQLite: no PREPARE statement; the template is compiled with ``EXPLAIN``
  (null bindings, no side effects) and re-run with the real parameters on
  execute.

All methods let driver exceptions propagate; the caller translates them.
"""

from collections.abc import Sequence
from typing import Any

from psycopg import sql as pgsql

from execquery.core.pool import execute
from execquery.models import ProductTypeEnum

from .placeholders import ParamStyle, leading_keyword, rewrite_placeholders


def _close_quiet(cur: Any) -> None:
    try:
        cur.close()
    except Exception:
        pass


class Dialect:
    product_type: ProductTypeEnum
    # '#' starts a line comment
    hash_comments: bool = False
    # backslash escapes inside '...' and "..." literals
    backslash_escapes: bool = False

    def prepare(self, conn: Any, name: str, sql: str, param_count: int) -> None:
        raise NotImplementedError

    def execute(self, conn: Any, name: str, sql: str, params: Sequence[Any]) -> Any:
        """Run the prepared statement and return the cursor."""
        raise NotImplementedError

    def deallocate(self, conn: Any, name: str, param_count: int) -> None:
        raise NotImplementedError

    def query(self, conn: Any, sql: str) -> Any:
        """Run *sql* without preparing it and return the cursor."""
        return execute(conn, sql, product_type=self.product_type)

    @staticmethod
    def insert_id(cursor: Any) -> int:
        return getattr(cursor, "lastrowid", None) or 0


class MySQLDialect(Dialect):
    product_type = ProductTypeEnum.MYSQL
    hash_comments = True
    backslash_escapes = True

    @staticmethod
    def _var(name: str, i: int) -> str:
        return f"@{name}_p{i}"

    def prepare(self, conn: Any, name: str, sql: str, param_count: int) -> None:
        cur = conn.cursor()
        try:
            cur.execute(f"PREPARE {name} FROM %s", (sql,))
        finally:
            _close_quiet(cur)

    def execute(self, conn: Any, name: str, sql: str, params: Sequence[Any]) -> Any:
        if not params:
            return execute(conn, f"EXECUTE {name}", product_type=self.product_type)
        names = [self._var(name, i) for i in range(len(params))]
        cur = conn.cursor()
        try:
            cur.execute(
                "SET " + ", ".join(f"{v} = %s" for v in names),
                tuple(params),
            )
        finally:
            _close_quiet(cur)
        return execute(
            conn,
            f"EXECUTE {name} USING {', '.join(names)}",
            product_type=self.product_type,
        )

    def deallocate(self, conn: Any, name: str, param_count: int) -> None:
        cur = conn.cursor()
        try:
            cur.execute(f"DEALLOCATE PREPARE {name}")
            if param_count:
                # bound values must not linger in the session
                cur.execute(
                    "SET "
                    + ", ".join(f"{self._var(name, i)} = NULL" for i in range(param_count))
                )
        finally:
            _close_quiet(cur)


class PostgresDialect(Dialect):
    product_type = ProductTypeEnum.POSTGRES

    def prepare(self, conn: Any, name: str, sql: str, param_count: int) -> None:
        body = rewrite_placeholders(
            sql,
            ParamStyle.NUMERIC,
            hash_comments=self.hash_comments,
            backslash_escapes=self.backslash_escapes,
        )
        stmt = pgsql.SQL("PREPARE {} AS ").format(pgsql.Identifier(name)) + pgsql.SQL(body)
        cur = conn.cursor()
        try:
            cur.execute(stmt)
        finally:
            _close_quiet(cur)

    def execute(self, conn: Any, name: str, sql: str, params: Sequence[Any]) -> Any:
        stmt = pgsql.SQL("EXECUTE {}").format(pgsql.Identifier(name))
        if params:
            stmt += pgsql.SQL(" ({})").format(
                pgsql.SQL(", ").join(pgsql.Literal(p) for p in params)
            )
        return execute(conn, stmt, product_type=self.product_type)

    def deallocate(self, conn: Any, name: str, param_count: int) -> None:
        cur = conn.cursor()
        try:
            cur.execute(pgsql.SQL("DEALLOCATE {}").format(pgsql.Identifier(name)))
        finally:
            _close_quiet(cur)

    @staticmethod
    def insert_id(cursor: Any) -> int:
        # No last-insert-id in PostgreSQL; use RETURNING.
        return 0


class SQLiteDialect(Dialect):
    product_type = ProductTypeEnum.SQLITE

    def prepare(self, conn: Any, name: str, sql: str, param_count: int) -> None:
        if leading_keyword(
            sql,
            hash_comments=self.hash_comments,
            backslash_escapes=self.backslash_escapes,
        ) == "EXPLAIN":
            # EXPLAIN EXPLAIN is not valid; compiled on execute instead
            return
        cur = conn.cursor()
        try:
            cur.execute(f"EXPLAIN {sql}", (None,) * param_count)
            cur.fetchall()
        finally:
            _close_quiet(cur)

    def execute(self, conn: Any, name: str, sql: str, params: Sequence[Any]) -> Any:
        return execute(conn, sql, tuple(params), product_type=self.product_type)

    def deallocate(self, conn: Any, name: str, param_count: int) -> None:
        return None


_DIALECTS: dict[ProductTypeEnum, type[Dialect]] = {
    ProductTypeEnum.MYSQL: MySQLDialect,
    ProductTypeEnum.POSTGRES: PostgresDialect,
    ProductTypeEnum.SQLITE: SQLiteDialect,
}


def get_dialect(product_type: ProductTypeEnum) -> Dialect:
    try:
        return _DIALECTS[product_type]()
    except KeyError:
        raise ValueError(f"Unsupported product_type: {product_type}") from None
