"""
Connection models: ProductTypeEnum and DataSource.

DataSource carries everything needed to open a connection to an external DB
(product_type, host, port, database, username, password). It is a plain
SQLModel (no table); callers may also pass a dict with the same keys.
"""

import uuid
from enum import Enum

from sqlmodel import Field, SQLModel


class ProductTypeEnum(str, Enum):
    """Supported database product types (postgres, mysql, sqlite)."""

    POSTGRES = "postgres"
    MYSQL = "mysql"
    SQLITE = "sqlite"


_DEFAULT_PORTS = {
    ProductTypeEnum.POSTGRES: 5432,
    ProductTypeEnum.MYSQL: 3306,
}


def default_port(product_type: ProductTypeEnum) -> int | None:
    return _DEFAULT_PORTS.get(product_type)


class DataSource(SQLModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str = Field(default="", max_length=255)
    product_type: ProductTypeEnum
    host: str = Field(default="", max_length=255)
    port: int | None = Field(default=None)
    # For sqlite this is the file path (":memory:" allowed).
    database: str = Field(max_length=1024)
    username: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=512)
    description: str | None = Field(default=None, max_length=512)
    is_active: bool = Field(default=True)
