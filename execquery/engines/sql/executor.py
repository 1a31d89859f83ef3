"""
execute_query: prepare -> bind & execute -> get_result in one call.

Returns the buffered ResultSet for row-producing statements. Returns False
both when a step failed (and the connection's report mode did not raise)
and when the statement succeeded without producing a row set (INSERT,
UPDATE, DELETE, DDL). Callers that need to tell the two apart use
execute_query_outcome or the connection's errno.

The statement is closed after every call; nothing is cached, so each call
prepares again. Statement-level counters are not returned, and the
connection's affected_rows is -1 afterwards.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from execquery.core.errors import ErrorInfo

from .result import ResultSet
from .statement import PreparedStatement, normalize_params

if TYPE_CHECKING:
    from .connection import Connection


def execute_query(
    connection: "Connection",
    sql: str,
    params: Sequence[Any] | None = None,
) -> ResultSet | Literal[False]:
    values = normalize_params(params)
    with connection.lock:
        stmt: PreparedStatement | Literal[False] = False
        try:
            stmt = connection.prepare(sql)
            if stmt is False or not stmt.execute(values):
                return False
            return stmt.get_result()
        finally:
            if stmt is not False:
                stmt.close()
            connection.affected_rows = -1


@dataclass(frozen=True)
class Rows:
    """The statement produced a row set."""

    result: ResultSet

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class NoRowsOrError:
    """No row set: *error* is set when a step failed, None when there were simply no rows."""

    error: ErrorInfo | None = None

    def __bool__(self) -> bool:
        return False


QueryOutcome = Rows | NoRowsOrError


def execute_query_outcome(
    connection: "Connection",
    sql: str,
    params: Sequence[Any] | None = None,
) -> QueryOutcome:
    """Same as execute_query, with the falsy case tagged."""
    with connection.lock:
        result = execute_query(connection, sql, params)
        if result is False:
            return NoRowsOrError(connection.last_error)
        return Rows(result)
