"""
Connection: a raw DB-API connection plus its dialect, report mode and diagnostics.

Diagnostics (errno, error, sqlstate, error_list) describe the last call that
touched the connection; a successful prepare, execute or query clears them.
"""

import logging
import threading
import uuid
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any, Literal

from execquery.core.config import settings
from execquery.core.errors import (
    DRIVER_ERRORS,
    ER_PARSE_ERROR,
    NO_ERROR,
    ErrorInfo,
    QueryError,
    client_error,
    from_driver_error,
)
from execquery.core.pool import PoolManager, get_pool_manager, resolve_product_type
from execquery.core.pool import connect as raw_connect
from execquery.core.report import ReportFlag, parse_report_mode
from execquery.models import DataSource, ProductTypeEnum

from .dialects import Dialect, get_dialect
from .executor import QueryOutcome, execute_query, execute_query_outcome
from .placeholders import count_placeholders, split_statements
from .result import ResultSet
from .statement import PreparedStatement

_log = logging.getLogger(__name__)

ER_EMPTY_QUERY = 1065


class Connection:
    """
    prepare(sql) -> PreparedStatement | False
    query(sql) -> ResultSet | True | False
    execute_query(sql, params) -> ResultSet | False
    """

    def __init__(
        self,
        raw: Any,
        product_type: ProductTypeEnum | str,
        *,
        report_mode: ReportFlag | int | str | None = None,
    ) -> None:
        self._raw = raw
        self.product_type = ProductTypeEnum(product_type)
        self.dialect: Dialect = get_dialect(self.product_type)
        self._report_mode = (
            settings.DEFAULT_REPORT_MODE
            if report_mode is None
            else parse_report_mode(report_mode)
        )
        self.lock = threading.RLock()
        self._errors: list[ErrorInfo] = []
        self.affected_rows = -1
        self.insert_id = 0
        self.field_count = 0
        self._closed = False

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def raw_connection(self) -> Any:
        return self._raw

    @property
    def report_mode(self) -> ReportFlag:
        return self._report_mode

    @report_mode.setter
    def report_mode(self, value: ReportFlag | int | str) -> None:
        self._report_mode = parse_report_mode(value)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def last_error(self) -> ErrorInfo | None:
        return self._errors[-1] if self._errors else None

    @property
    def errno(self) -> int:
        return (self.last_error or NO_ERROR).errno

    @property
    def error(self) -> str:
        return (self.last_error or NO_ERROR).error

    @property
    def sqlstate(self) -> str:
        return (self.last_error or NO_ERROR).sqlstate

    @property
    def error_list(self) -> list[ErrorInfo]:
        return list(self._errors)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def prepare(self, sql: str) -> PreparedStatement | Literal[False]:
        """Prepare *sql* (``?`` placeholders) on the server."""
        if not isinstance(sql, str):
            raise TypeError(f"sql must be a str, not {type(sql).__name__}")
        scan = {
            "hash_comments": self.dialect.hash_comments,
            "backslash_escapes": self.dialect.backslash_escapes,
        }
        with self.lock:
            statements = split_statements(sql, **scan)
            if not statements:
                return self._report(
                    client_error(ER_EMPTY_QUERY, "Query was empty", "42000"), "prepare"
                )
            if len(statements) > 1:
                return self._report(
                    client_error(
                        ER_PARSE_ERROR,
                        f"A prepared statement must contain exactly one statement, got {len(statements)}",
                        "42000",
                    ),
                    "prepare",
                )
            text = statements[0]
            param_count = count_placeholders(text, **scan)
            name = f"execquery_{uuid.uuid4().hex}"
            try:
                self.dialect.prepare(self._raw, name, text, param_count)
            except DRIVER_ERRORS as e:
                return self._report(from_driver_error(e), "prepare", e)
            self._clear_error()
            _log.debug("Prepared statement %s (%d placeholder(s))", name, param_count)
            return PreparedStatement(self, name, text, param_count)

    def query(self, sql: str) -> ResultSet | bool:
        """Run *sql* without parameters; True for statements without a row set."""
        if not isinstance(sql, str):
            raise TypeError(f"sql must be a str, not {type(sql).__name__}")
        with self.lock:
            if not sql.strip():
                return self._report(
                    client_error(ER_EMPTY_QUERY, "Query was empty", "42000"), "query"
                )
            try:
                cur = self.dialect.query(self._raw, sql)
                try:
                    result = ResultSet.from_cursor(cur)
                    rowcount = cur.rowcount
                    self.insert_id = self.dialect.insert_id(cur)
                finally:
                    cur.close()
            except DRIVER_ERRORS as e:
                return self._report(from_driver_error(e), "query", e)
            self._clear_error()
            if result is None:
                self.field_count = 0
                self.affected_rows = rowcount if rowcount is not None else -1
                return True
            self.field_count = result.field_count
            self.affected_rows = result.num_rows
            return result

    def execute_query(
        self, sql: str, params: Sequence[Any] | None = None
    ) -> ResultSet | Literal[False]:
        return execute_query(self, sql, params)

    def execute_query_outcome(
        self, sql: str, params: Sequence[Any] | None = None
    ) -> QueryOutcome:
        return execute_query_outcome(self, sql, params)

    def close(self) -> None:
        with self.lock:
            if self._closed:
                return
            self._closed = True
            try:
                self._raw.close()
            except DRIVER_ERRORS as e:
                _log.debug("Closing %s connection failed: %s", self.product_type.value, e)

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"Connection({self.product_type.value}, {state})"

    # ------------------------------------------------------------------
    # Error reporting
    # ------------------------------------------------------------------

    def _clear_error(self) -> None:
        self._errors = []

    def _report(
        self, info: ErrorInfo, step: str, cause: BaseException | None = None
    ) -> Literal[False]:
        """Record *info*, then raise or warn according to the report mode."""
        self._errors = [info]
        if self._report_mode & ReportFlag.STRICT:
            raise QueryError.from_info(info) from cause
        if self._report_mode & ReportFlag.ERROR:
            _log.warning("%s failed: (%s/%s) %s", step, info.errno, info.sqlstate, info.error)
        return False


def connect(
    datasource: DataSource | dict,
    *,
    report_mode: ReportFlag | int | str | None = None,
) -> Connection:
    """Open a Connection for *datasource*. Connect failures always raise QueryError."""
    if isinstance(datasource, DataSource) and not datasource.is_active:
        raise ValueError("DataSource is inactive and cannot be used")
    pt = resolve_product_type(datasource)
    try:
        raw = raw_connect(datasource, product_type=pt)
    except DRIVER_ERRORS as e:
        info = from_driver_error(e)
        _log.error("Connection to %s failed: %s", pt.value, info.error)
        raise QueryError.from_info(info) from e
    return Connection(raw, pt, report_mode=report_mode)


@contextmanager
def pooled_connection(
    datasource: DataSource,
    *,
    report_mode: ReportFlag | int | str | None = None,
    pool_manager: PoolManager | None = None,
) -> Iterator[Connection]:
    """Check a connection out of the pool for the duration of the block."""
    if not datasource.is_active:
        raise ValueError("DataSource is inactive and cannot be used")
    pm = pool_manager or get_pool_manager()
    pt = resolve_product_type(datasource)
    try:
        raw = pm.get_connection(datasource)
    except DRIVER_ERRORS as e:
        raise QueryError.from_info(from_driver_error(e)) from e
    try:
        yield Connection(raw, pt, report_mode=report_mode)
    finally:
        pm.release(raw, datasource.id)
