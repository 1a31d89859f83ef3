"""
Prepared-statement client: Connection, PreparedStatement, ResultSet and execute_query.
"""

from execquery.engines.sql.connection import Connection, connect, pooled_connection
from execquery.engines.sql.executor import (
    NoRowsOrError,
    QueryOutcome,
    Rows,
    execute_query,
    execute_query_outcome,
)
from execquery.engines.sql.placeholders import (
    ParamStyle,
    count_placeholders,
    rewrite_placeholders,
    split_statements,
)
from execquery.engines.sql.result import ResultMode, ResultSet
from execquery.engines.sql.statement import PreparedStatement

__all__ = [
    "Connection",
    "connect",
    "pooled_connection",
    "PreparedStatement",
    "ResultSet",
    "ResultMode",
    "execute_query",
    "execute_query_outcome",
    "Rows",
    "NoRowsOrError",
    "QueryOutcome",
    "ParamStyle",
    "count_placeholders",
    "rewrite_placeholders",
    "split_statements",
]
