import sqlite3
from collections.abc import Generator

import pytest

from execquery import Connection, ProductTypeEnum, ReportFlag


def _sqlite_connection(report_mode: ReportFlag) -> Connection:
    raw = sqlite3.connect(":memory:", isolation_level=None)
    conn = Connection(raw, ProductTypeEnum.SQLITE, report_mode=report_mode)
    raw.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, age INTEGER)")
    raw.executemany(
        "INSERT INTO users (name, age) VALUES (?, ?)",
        [("alice", 30), ("bob", 25), ("carol", 41)],
    )
    return conn


@pytest.fixture()
def conn() -> Generator[Connection, None, None]:
    """SQLite connection in return-value mode (failures return False)."""
    c = _sqlite_connection(ReportFlag.OFF)
    yield c
    c.close()


@pytest.fixture()
def strict_conn() -> Generator[Connection, None, None]:
    """SQLite connection in strict mode (failures raise QueryError)."""
    c = _sqlite_connection(ReportFlag.ERROR | ReportFlag.STRICT)
    yield c
    c.close()
