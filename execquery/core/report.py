"""
Error reporting modes for connections.

- STRICT: failures raise QueryError.
- ERROR (without STRICT): failures are logged as warnings and the caller gets
  the falsy sentinel.
- OFF: failures are silent; only the connection diagnostics record them.
"""

from enum import IntFlag


class ReportFlag(IntFlag):
    OFF = 0
    ERROR = 1
    STRICT = 2
    ALL = 255


def parse_report_mode(value: object) -> ReportFlag:
    """Accept a ReportFlag, an int, or a string such as ``"ERROR|STRICT"``."""
    if isinstance(value, ReportFlag):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid report mode: {value!r}")
    if isinstance(value, int):
        return ReportFlag(value)
    if isinstance(value, str):
        flag = ReportFlag.OFF
        for part in value.replace(",", "|").split("|"):
            name = part.strip().upper()
            if not name:
                continue
            if name.isdigit():
                flag |= ReportFlag(int(name))
                continue
            try:
                flag |= ReportFlag[name]
            except KeyError:
                raise ValueError(f"Unknown report mode: {part.strip()!r}") from None
        return flag
    raise ValueError(f"Invalid report mode: {value!r}")
