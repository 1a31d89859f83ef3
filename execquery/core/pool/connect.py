"""
DB connection helpers for external DataSources.

Uses psycopg (PostgreSQL), pymysql (MySQL) or sqlite3 (SQLite) based on product_type.
Connections are opened in autocommit mode unless EXTERNAL_DB_AUTOCOMMIT is off.
"""

import sqlite3
from typing import Any

import psycopg
import pymysql

from execquery.core.config import settings
from execquery.models import ProductTypeEnum, default_port


def _get(datasource: Any, key: str) -> Any:
    """Get attribute or dict key from DataSource, dict, or Pydantic model."""
    if isinstance(datasource, dict):
        return datasource.get(key)
    return getattr(datasource, key, None)


def resolve_product_type(
    datasource: Any, product_type: ProductTypeEnum | None = None
) -> ProductTypeEnum:
    pt = product_type or _get(datasource, "product_type")
    if pt is None:
        raise ValueError("product_type is required (from datasource or argument)")
    if isinstance(pt, str):
        try:
            return ProductTypeEnum(pt)
        except ValueError:
            raise ValueError(f"Unsupported product_type: {pt}") from None
    return pt


def connect(
    datasource: Any,
    *,
    product_type: ProductTypeEnum | None = None,
) -> Any:
    """
    Open a raw DB-API connection from a DataSource or connection dict.

    - datasource: DataSource model or dict with host, port, database, username,
      password, and product_type (or pass product_type=).
    - For sqlite only ``database`` (file path or ":memory:") is used.
    """
    pt = resolve_product_type(datasource, product_type)
    database = _get(datasource, "database")
    if database is None:
        raise ValueError("datasource must provide database")

    timeout = settings.EXTERNAL_DB_CONNECT_TIMEOUT
    autocommit = settings.EXTERNAL_DB_AUTOCOMMIT

    if pt == ProductTypeEnum.SQLITE:
        # check_same_thread=False: pooled connections may be used from another thread
        return sqlite3.connect(
            database,
            timeout=timeout,
            isolation_level=None if autocommit else "DEFERRED",
            check_same_thread=False,
        )

    host = _get(datasource, "host")
    port = _get(datasource, "port") or default_port(pt)
    username = _get(datasource, "username")
    password = _get(datasource, "password")

    for name, val in [
        ("host", host),
        ("username", username),
    ]:
        if not val:
            raise ValueError(f"datasource must provide {name}")
    password = password if password is not None else ""

    if pt == ProductTypeEnum.POSTGRES:
        return psycopg.connect(
            host=host,
            port=int(port),
            dbname=database,
            user=username,
            password=password,
            connect_timeout=timeout,
            autocommit=autocommit,
        )
    if pt == ProductTypeEnum.MYSQL:
        return pymysql.connect(
            host=host,
            port=int(port),
            database=database,
            user=username,
            password=password,
            connect_timeout=timeout,
            autocommit=autocommit,
        )
    raise ValueError(f"Unsupported product_type: {pt}")


def execute(
    conn: Any,
    sql: str,
    params: dict | list | tuple | None = None,
    *,
    product_type: ProductTypeEnum | None = None,
) -> Any:
    """
    Execute SQL and return the cursor; the caller reads and closes it.

    - product_type: used for EXTERNAL_DB_STATEMENT_TIMEOUT (Postgres: statement_timeout,
      MySQL: max_execution_time). When set, applies timeout in ms before the query and
      resets after. SQLite has no statement timeout.
    """
    timeout_sec = settings.EXTERNAL_DB_STATEMENT_TIMEOUT
    use_timeout = (
        timeout_sec is not None
        and timeout_sec > 0
        and product_type in (ProductTypeEnum.POSTGRES, ProductTypeEnum.MYSQL)
    )

    if use_timeout:
        timeout_ms = int(timeout_sec * 1000)
        cur_set = conn.cursor()
        try:
            if product_type == ProductTypeEnum.POSTGRES:
                cur_set.execute(f"SET statement_timeout = {timeout_ms}")
            else:
                cur_set.execute("SET SESSION max_execution_time = %s", (timeout_ms,))
        finally:
            try:
                cur_set.close()
            except Exception:
                pass

    cur = conn.cursor()
    try:
        if params is not None:
            cur.execute(sql, params)
        else:
            cur.execute(sql)
    finally:
        if use_timeout:
            try:
                cur_reset = conn.cursor()
                if product_type == ProductTypeEnum.POSTGRES:
                    cur_reset.execute("SET statement_timeout = 0")
                else:
                    cur_reset.execute("SET SESSION max_execution_time = 0")
                cur_reset.close()
            except Exception:
                pass

    return cur

