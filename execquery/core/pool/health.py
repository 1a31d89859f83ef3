"""
Liveness check for pooled connections.
"""

from typing import Any

from execquery.models import ProductTypeEnum

from .connect import execute


def health_check(conn: Any, product_type: ProductTypeEnum) -> bool:
    """
    True if ``SELECT 1`` succeeds on *conn*. Runs through execute(), so the
    configured statement timeout also bounds the ping on PostgreSQL and MySQL.
    """
    cur = None
    try:
        cur = execute(conn, "SELECT 1", product_type=product_type)
        cur.fetchall()
        return True
    except Exception:
        return False
    finally:
        if cur is not None:
            try:
                cur.close()
            except Exception:
                pass
