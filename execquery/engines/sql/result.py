"""
Buffered result set returned by PreparedStatement.get_result and Connection.query.

All rows are fetched from the cursor up front, so the result stays usable
after the statement is closed and the connection is reused.
"""

from collections.abc import Iterator, Sequence
from enum import Enum
from typing import Any


class ResultMode(str, Enum):
    """Row shape for fetch_all: dict by column name, tuple by position, or both."""

    ASSOC = "assoc"
    NUM = "num"
    BOTH = "both"


class ResultSet:
    """Rows plus column names. Iterating yields one dict per remaining row."""

    def __init__(self, columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
        self._columns = list(columns)
        self._rows = [tuple(r) for r in rows]
        self._pos = 0
        self._freed = False

    @classmethod
    def from_cursor(cls, cursor: Any) -> "ResultSet | None":
        """Buffer *cursor*'s rows; None when the statement produced no row set."""
        desc = cursor.description
        if not desc:
            return None
        return cls([d[0] for d in desc], cursor.fetchall())

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    @property
    def num_rows(self) -> int:
        return len(self._rows)

    @property
    def field_count(self) -> int:
        return len(self._columns)

    @property
    def fields(self) -> list[str]:
        return list(self._columns)

    @property
    def current_row(self) -> int:
        return self._pos

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def _assoc(self, row: tuple[Any, ...]) -> dict[str, Any]:
        # Duplicate column names: the last one wins.
        return dict(zip(self._columns, row, strict=True))

    def _next(self) -> tuple[Any, ...] | None:
        self._check_freed()
        if self._pos >= len(self._rows):
            return None
        row = self._rows[self._pos]
        self._pos += 1
        return row

    def fetch_row(self) -> tuple[Any, ...] | None:
        """Next row as a tuple, or None when exhausted."""
        return self._next()

    def fetch_assoc(self) -> dict[str, Any] | None:
        """Next row as a dict keyed by column name, or None when exhausted."""
        row = self._next()
        return None if row is None else self._assoc(row)

    def fetch_column(self, column: int = 0) -> Any:
        """Single column of the next row; None when exhausted."""
        if not 0 <= column < len(self._columns):
            raise ValueError(f"Column index {column} out of range")
        row = self._next()
        return None if row is None else row[column]

    def fetch_all(self, mode: ResultMode | str = ResultMode.ASSOC) -> list[Any]:
        """All remaining rows in the given *mode*."""
        self._check_freed()
        mode = ResultMode(mode)
        rest = self._rows[self._pos :]
        self._pos = len(self._rows)
        if mode == ResultMode.NUM:
            return list(rest)
        if mode == ResultMode.BOTH:
            out = []
            for row in rest:
                both: dict[Any, Any] = dict(enumerate(row))
                both.update(self._assoc(row))
                out.append(both)
            return out
        return [self._assoc(r) for r in rest]

    def data_seek(self, offset: int) -> bool:
        """Move the row pointer; False if *offset* is out of range."""
        self._check_freed()
        if not 0 <= offset < len(self._rows):
            return False
        self._pos = offset
        return True

    def free(self) -> None:
        self._rows = []
        self._pos = 0
        self._freed = True

    def _check_freed(self) -> None:
        if self._freed:
            raise ValueError("ResultSet has already been freed")

    def __iter__(self) -> Iterator[dict[str, Any]]:
        while True:
            row = self.fetch_assoc()
            if row is None:
                return
            yield row

    def __len__(self) -> int:
        return len(self._rows)

    def __bool__(self) -> bool:
        # An empty result set is still a successful result.
        return True

    def __repr__(self) -> str:
        return f"ResultSet(fields={self._columns!r}, num_rows={len(self._rows)})"
