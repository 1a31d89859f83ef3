"""
Prepared statement handle: execute(params) -> bool, get_result() -> ResultSet | False, close().
"""

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Literal

from execquery.core.errors import (
    CR_COMMANDS_OUT_OF_SYNC,
    CR_PARAMS_NOT_BOUND,
    DRIVER_ERRORS,
    NO_ERROR,
    ErrorInfo,
    client_error,
    from_driver_error,
)

from .result import ResultSet

if TYPE_CHECKING:
    from .connection import Connection

_log = logging.getLogger(__name__)


def normalize_params(params: Sequence[Any] | None) -> tuple[Any, ...]:
    """Positional parameters as a tuple; None means no parameters."""
    if params is None:
        return ()
    if isinstance(params, Mapping):
        raise TypeError("params must be a sequence of positional values, not a mapping")
    if isinstance(params, (str, bytes, bytearray)):
        raise TypeError("params must be a sequence of values, not a single string")
    return tuple(params)


class PreparedStatement:
    """A statement prepared on the server, bound to one Connection."""

    def __init__(
        self,
        connection: "Connection",
        name: str,
        sql: str,
        param_count: int,
    ) -> None:
        self._connection = connection
        self.name = name
        self.sql = sql
        self.param_count = param_count
        self.affected_rows = -1
        self.insert_id = 0
        self.field_count = 0
        self._error: ErrorInfo = NO_ERROR
        self._cursor: Any = None
        self._executed = False
        self._closed = False

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    @property
    def errno(self) -> int:
        return self._error.errno

    @property
    def error(self) -> str:
        return self._error.error

    @property
    def sqlstate(self) -> str:
        return self._error.sqlstate

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def execute(self, params: Sequence[Any] | None = None) -> bool:
        """Bind *params* positionally and run the statement."""
        values = normalize_params(params)
        with self._connection.lock:
            if self._closed:
                return self._fail(
                    client_error(CR_COMMANDS_OUT_OF_SYNC, "Statement has already been closed"),
                    "execute",
                )
            if len(values) != self.param_count:
                return self._fail(
                    client_error(
                        CR_PARAMS_NOT_BOUND,
                        f"Number of parameters ({len(values)}) does not match "
                        f"number of placeholders ({self.param_count})",
                        "HY093",
                    ),
                    "execute",
                )
            self._discard_cursor()
            dialect = self._connection.dialect
            try:
                cur = dialect.execute(self._connection.raw_connection, self.name, self.sql, values)
            except DRIVER_ERRORS as e:
                return self._fail(from_driver_error(e), "execute", e)

            self._cursor = cur
            self._executed = True
            self.affected_rows = cur.rowcount if cur.rowcount is not None else -1
            self.insert_id = dialect.insert_id(cur)
            self.field_count = len(cur.description or ())
            self._error = NO_ERROR
            self._connection._clear_error()
            _log.debug("Executed statement %s with %d parameter(s)", self.name, len(values))
            return True

    def get_result(self) -> ResultSet | Literal[False]:
        """Buffered result of the last execute.

        False both on error and when the statement produced no row set.
        """
        with self._connection.lock:
            if not self._executed:
                return self._fail(
                    client_error(
                        CR_COMMANDS_OUT_OF_SYNC,
                        "Commands out of sync; you can't run this command now",
                    ),
                    "get_result",
                )
            self._executed = False
            try:
                result = ResultSet.from_cursor(self._cursor)
            except DRIVER_ERRORS as e:
                return self._fail(from_driver_error(e), "get_result", e)
            finally:
                self._discard_cursor()
            if result is None:
                return False
            return result

    def close(self) -> None:
        """Deallocate the statement. Safe to call more than once."""
        with self._connection.lock:
            if self._closed:
                return
            self._closed = True
            self._executed = False
            self._discard_cursor()
            try:
                self._connection.dialect.deallocate(
                    self._connection.raw_connection, self.name, self.param_count
                )
            except DRIVER_ERRORS as e:
                # the server drops the statement with the session anyway
                _log.debug("Deallocate of %s failed: %s", self.name, e)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fail(
        self, info: ErrorInfo, step: str, cause: BaseException | None = None
    ) -> Literal[False]:
        self._error = info
        return self._connection._report(info, step, cause)

    def _discard_cursor(self) -> None:
        cur, self._cursor = self._cursor, None
        if cur is not None:
            try:
                cur.close()
            except Exception:
                pass

    def __enter__(self) -> "PreparedStatement":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"PreparedStatement({self.name!r}, param_count={self.param_count}, {state})"
