"""
Engines: SQL prepared-statement client.
"""

from execquery.engines.sql import Connection, connect, execute_query

__all__ = [
    "Connection",
    "connect",
    "execute_query",
]
