"""
Quote-aware scanning of SQL templates with ``?`` positional placeholders.

The scanner skips single-quoted, double-quoted and backtick-quoted literals
(doubled-quote escapes; backslash escapes only where the dialect has them),
``--`` / ``#`` line comments, ``/* */`` block comments and ``$$...$$``
bodies, so that a ``?`` or ``;`` inside them is not treated as a placeholder
or statement terminator.
"""

import re
from collections.abc import Iterator
from enum import Enum

CODE = "code"
LITERAL = "literal"
COMMENT = "comment"
PLACEHOLDER = "placeholder"
TERMINATOR = "terminator"

_WORD = re.compile(r"\s*(\w+)")


class ParamStyle(str, Enum):
    """Placeholder styles understood by the drivers (PEP 249 names)."""

    QMARK = "qmark"  # ?      (sqlite3, MySQL PREPARE)
    FORMAT = "format"  # %s     (pymysql, psycopg)
    NUMERIC = "numeric"  # $1..$n (PostgreSQL PREPARE)


def _scan(
    sql: str, hash_comments: bool = True, backslash_escapes: bool = False
) -> Iterator[tuple[str, str]]:
    """Yield (kind, text) segments of *sql*.

    ``#`` starts a comment only when *hash_comments* is set (MySQL); in
    PostgreSQL it is an operator. A backslash escapes the next character in
    ``'...'`` and ``"..."`` only when *backslash_escapes* is set (MySQL);
    otherwise it is an ordinary character, except in PostgreSQL ``E'...'``
    strings.
    """
    i = 0
    length = len(sql)
    code_start = 0

    def flush(end: int) -> Iterator[tuple[str, str]]:
        if end > code_start:
            yield CODE, sql[code_start:end]

    while i < length:
        ch = sql[i]

        if ch in ("'", '"', "`"):
            yield from flush(i)
            quote = ch
            escapes = quote != "`" and (backslash_escapes or _is_escape_string(sql, i))
            j = i + 1
            while j < length:
                c = sql[j]
                if c == quote:
                    if j + 1 < length and sql[j + 1] == quote:
                        j += 2
                        continue
                    j += 1
                    break
                if c == "\\" and escapes and j + 1 < length:
                    j += 2
                    continue
                j += 1
            yield LITERAL, sql[i:j]
            i = code_start = j
            continue

        if ch == "$" and i + 1 < length and sql[i + 1] == "$":
            yield from flush(i)
            end = sql.find("$$", i + 2)
            j = length if end == -1 else end + 2
            yield LITERAL, sql[i:j]
            i = code_start = j
            continue

        if (ch == "-" and i + 1 < length and sql[i + 1] == "-") or (ch == "#" and hash_comments):
            yield from flush(i)
            end = sql.find("\n", i)
            j = length if end == -1 else end + 1
            yield COMMENT, sql[i:j]
            i = code_start = j
            continue

        if ch == "/" and i + 1 < length and sql[i + 1] == "*":
            yield from flush(i)
            end = sql.find("*/", i + 2)
            j = length if end == -1 else end + 2
            yield COMMENT, sql[i:j]
            i = code_start = j
            continue

        if ch == "?":
            yield from flush(i)
            yield PLACEHOLDER, ch
            i = code_start = i + 1
            continue

        if ch == ";":
            yield from flush(i)
            yield TERMINATOR, ch
            i = code_start = i + 1
            continue

        i += 1

    yield from flush(length)


def _is_escape_string(sql: str, i: int) -> bool:
    """True for the quote at *i* opening an ``E'...'`` string."""
    if sql[i] != "'" or i == 0 or sql[i - 1] not in "eE":
        return False
    return i == 1 or not (sql[i - 2].isalnum() or sql[i - 2] in "_$")


def count_placeholders(
    sql: str, *, hash_comments: bool = True, backslash_escapes: bool = False
) -> int:
    """Number of ``?`` placeholders outside literals and comments."""
    segments = _scan(sql, hash_comments, backslash_escapes)
    return sum(1 for kind, _ in segments if kind == PLACEHOLDER)


def rewrite_placeholders(
    sql: str,
    style: ParamStyle | str,
    *,
    hash_comments: bool = True,
    backslash_escapes: bool = False,
) -> str:
    """Rewrite ``?`` placeholders into the driver's *style*.

    For FORMAT, literal ``%`` characters are doubled so the driver's
    ``%``-interpolation leaves them intact.
    """
    style = ParamStyle(style)
    out: list[str] = []
    n = 0
    for kind, text in _scan(sql, hash_comments, backslash_escapes):
        if kind == PLACEHOLDER:
            n += 1
            if style == ParamStyle.FORMAT:
                out.append("%s")
            elif style == ParamStyle.NUMERIC:
                out.append(f"${n}")
            else:
                out.append("?")
        elif style == ParamStyle.FORMAT:
            out.append(text.replace("%", "%%"))
        else:
            out.append(text)
    return "".join(out)


def split_statements(
    sql: str, *, hash_comments: bool = True, backslash_escapes: bool = False
) -> list[str]:
    """Split *sql* on ``;`` terminators.

    Statements made only of whitespace and comments are dropped.
    """
    stmts: list[str] = []
    current: list[str] = []
    has_code = False
    for kind, text in _scan(sql, hash_comments, backslash_escapes):
        if kind == TERMINATOR:
            if has_code:
                stmts.append("".join(current).strip())
            current = []
            has_code = False
            continue
        current.append(text)
        if kind != COMMENT and text.strip():
            has_code = True
    if has_code:
        stmts.append("".join(current).strip())
    return stmts


def leading_keyword(
    sql: str, *, hash_comments: bool = True, backslash_escapes: bool = False
) -> str:
    """First word of *sql* after leading whitespace and comments, upper-cased."""
    for kind, text in _scan(sql, hash_comments, backslash_escapes):
        if kind == COMMENT or (kind == CODE and not text.strip()):
            continue
        if kind != CODE:
            return ""
        m = _WORD.match(text)
        return m.group(1).upper() if m else ""
    return ""
