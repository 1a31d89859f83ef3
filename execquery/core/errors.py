"""Exceptions and driver-error translation for execquery."""

import sqlite3
from typing import NamedTuple

import psycopg
import pymysql

# Client-side error codes (same numbering as the MySQL client library).
CR_UNKNOWN_ERROR = 2000
CR_SERVER_GONE_ERROR = 2006
CR_COMMANDS_OUT_OF_SYNC = 2014
CR_PARAMS_NOT_BOUND = 2031
ER_PARSE_ERROR = 1064

SQLSTATE_OK = "00000"
SQLSTATE_GENERAL = "HY000"

# SQLSTATE for common MySQL server errors; anything else is HY000.
_MYSQL_SQLSTATE = {
    1044: "42000",  # ER_DBACCESS_DENIED_ERROR
    1045: "28000",  # ER_ACCESS_DENIED_ERROR
    1046: "3D000",  # ER_NO_DB_ERROR
    1048: "23000",  # ER_BAD_NULL_ERROR
    1049: "42000",  # ER_BAD_DB_ERROR
    1050: "42S01",  # ER_TABLE_EXISTS_ERROR
    1051: "42S02",  # ER_BAD_TABLE_ERROR
    1054: "42S22",  # ER_BAD_FIELD_ERROR
    1062: "23000",  # ER_DUP_ENTRY
    1064: "42000",  # ER_PARSE_ERROR
    1065: "42000",  # ER_EMPTY_QUERY
    1136: "21S01",  # ER_WRONG_VALUE_COUNT_ON_ROW
    1146: "42S02",  # ER_NO_SUCH_TABLE
    1149: "42000",  # ER_SYNTAX_ERROR
    1213: "40001",  # ER_LOCK_DEADLOCK
    1264: "22003",  # ER_WARN_DATA_OUT_OF_RANGE
    1292: "22007",  # ER_TRUNCATED_WRONG_VALUE
    1365: "22012",  # ER_DIVISION_BY_ZERO
    1406: "22001",  # ER_DATA_TOO_LONG
    1451: "23000",  # ER_ROW_IS_REFERENCED_2
    1452: "23000",  # ER_NO_REFERENCED_ROW_2
}


class ErrorInfo(NamedTuple):
    errno: int
    sqlstate: str
    error: str


NO_ERROR = ErrorInfo(0, SQLSTATE_OK, "")


class ExecQueryError(Exception):
    """Base exception for execquery."""


class QueryError(ExecQueryError):
    """A prepare, execute or result step failed (raised in STRICT report mode)."""

    def __init__(
        self,
        message: str,
        errno: int = CR_UNKNOWN_ERROR,
        sqlstate: str = SQLSTATE_GENERAL,
    ):
        self.message = message
        self.errno = errno
        self.sqlstate = sqlstate
        super().__init__(message)

    @classmethod
    def from_info(cls, info: ErrorInfo) -> "QueryError":
        return cls(info.error, errno=info.errno, sqlstate=info.sqlstate)

    @property
    def info(self) -> ErrorInfo:
        return ErrorInfo(self.errno, self.sqlstate, self.message)

    def __str__(self) -> str:
        return f"({self.errno}, {self.sqlstate}) {self.message}"


def client_error(errno: int, message: str, sqlstate: str = SQLSTATE_GENERAL) -> ErrorInfo:
    return ErrorInfo(errno, sqlstate, message)


def _mysql_info(exc: pymysql.Error) -> ErrorInfo:
    args = exc.args
    if len(args) >= 2 and isinstance(args[0], int):
        errno, msg = args[0], str(args[1])
    else:
        errno, msg = CR_UNKNOWN_ERROR, str(exc)
    if isinstance(exc, pymysql.err.InterfaceError):
        # pymysql raises InterfaceError(0, "") on a closed connection
        errno = errno or CR_SERVER_GONE_ERROR
        msg = msg or "MySQL server has gone away"
    return ErrorInfo(errno, _MYSQL_SQLSTATE.get(errno, SQLSTATE_GENERAL), msg)


def _postgres_info(exc: psycopg.Error) -> ErrorInfo:
    sqlstate = getattr(exc, "sqlstate", None) or SQLSTATE_GENERAL
    diag = getattr(exc, "diag", None)
    msg = getattr(diag, "message_primary", None) or str(exc).strip()
    if isinstance(exc, psycopg.OperationalError) and getattr(exc, "sqlstate", None) is None:
        return ErrorInfo(CR_SERVER_GONE_ERROR, sqlstate, msg)
    return ErrorInfo(CR_UNKNOWN_ERROR, sqlstate, msg)


def _sqlite_info(exc: sqlite3.Error) -> ErrorInfo:
    # sqlite_errorcode is only set on errors raised by the library itself (3.11+)
    code = getattr(exc, "sqlite_errorcode", None)
    msg = str(exc)
    if isinstance(exc, sqlite3.ProgrammingError) and "closed" in msg:
        return ErrorInfo(CR_SERVER_GONE_ERROR, SQLSTATE_GENERAL, msg)
    if code is None:
        code = CR_UNKNOWN_ERROR
    if isinstance(exc, sqlite3.OperationalError) and "syntax error" in msg:
        return ErrorInfo(code, "42000", msg)
    return ErrorInfo(code, SQLSTATE_GENERAL, msg)


def from_driver_error(exc: BaseException) -> ErrorInfo:
    """Translate a pymysql / psycopg / sqlite3 exception into ErrorInfo."""
    if isinstance(exc, QueryError):
        return exc.info
    if isinstance(exc, pymysql.Error):
        return _mysql_info(exc)
    if isinstance(exc, psycopg.Error):
        return _postgres_info(exc)
    if isinstance(exc, sqlite3.Error):
        return _sqlite_info(exc)
    if isinstance(exc, ConnectionError):
        return ErrorInfo(CR_SERVER_GONE_ERROR, SQLSTATE_GENERAL, str(exc))
    return ErrorInfo(CR_UNKNOWN_ERROR, SQLSTATE_GENERAL, str(exc) or type(exc).__name__)


DRIVER_ERRORS: tuple[type[BaseException], ...] = (
    pymysql.Error,
    psycopg.Error,
    sqlite3.Error,
    ConnectionError,
)
