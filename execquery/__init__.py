"""execquery - prepare, execute and fetch a parameterized query in one call."""

from execquery.core.errors import ErrorInfo, ExecQueryError, QueryError
from execquery.core.report import ReportFlag
from execquery.engines.sql import (
    Connection,
    NoRowsOrError,
    PreparedStatement,
    QueryOutcome,
    ResultMode,
    ResultSet,
    Rows,
    connect,
    execute_query,
    execute_query_outcome,
    pooled_connection,
)
from execquery.models import DataSource, ProductTypeEnum

__version__ = "0.1.0"

__all__ = [
    "connect",
    "pooled_connection",
    "execute_query",
    "execute_query_outcome",
    "Connection",
    "PreparedStatement",
    "ResultSet",
    "ResultMode",
    "Rows",
    "NoRowsOrError",
    "QueryOutcome",
    "ReportFlag",
    "ErrorInfo",
    "ExecQueryError",
    "QueryError",
    "DataSource",
    "ProductTypeEnum",
]
