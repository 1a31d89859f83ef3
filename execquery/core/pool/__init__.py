"""
DB connection and connection pool for external DataSources.

No driver layer: psycopg and pymysql are installed via pip, sqlite3 ships with Python;
DataSource (product_type, host, ...) is enough.
"""

from .connect import connect, execute, resolve_product_type
from .health import health_check
from .manager import PoolManager, get_pool_manager

__all__ = [
    "connect",
    "execute",
    "resolve_product_type",
    "health_check",
    "PoolManager",
    "get_pool_manager",
]
