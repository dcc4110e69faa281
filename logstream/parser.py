"""Structured log line parser with a fallback for lines that don't match.

Grammar:
    <timestamp> <hostname> <facility>.<severity> <program>[<pid>]: <message>

The ``[<pid>]`` part is optional. The timestamp accepts an optional
``.ddd`` fraction and an optional ``+HH:MM`` / ``-HH:MM`` offset.
"""

import re
from datetime import datetime, timezone

from logstream.models import LogRecord

_LINE_RE = re.compile(
    r'^(?P<timestamp>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d{3})?(?:[+-]\d{2}:\d{2})?)\s+'
    r'(?P<hostname>\S+)\s+'
    r'(?P<facility>\S+)\.(?P<severity>\S+)\s+'
    r'(?P<program>[^\[]+?)'
    r'(?:\[(?P<pid>\d+)\])?'
    r'\s*:\s*'
    r'(?P<message>.*)$'
)

FALLBACK_VALUE = "unknown"
FALLBACK_SEVERITY = "info"


def now_iso() -> str:
    """Current UTC time, millisecond precision, 'Z' suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def split_lines(text: str) -> list[str]:
    """Split on newlines, drop one trailing CR per line, discard blank lines."""
    lines = []
    for piece in text.split("\n"):
        if piece.endswith("\r"):
            piece = piece[:-1]
        if piece.strip():
            lines.append(piece)
    return lines


def parse_line(line: str) -> LogRecord:
    """Parse one log line. Never raises; unmatched lines get a fallback record."""
    m = _LINE_RE.match(line)
    if m:
        return LogRecord(
            timestamp=m.group("timestamp"),
            hostname=m.group("hostname"),
            facility=m.group("facility"),
            severity=m.group("severity"),
            program=m.group("program").rstrip(),
            pid=m.group("pid"),
            message=m.group("message"),
            raw=line,
        )

    return LogRecord(
        timestamp=now_iso(),
        hostname=FALLBACK_VALUE,
        facility=FALLBACK_VALUE,
        severity=FALLBACK_SEVERITY,
        program=FALLBACK_VALUE,
        pid=None,
        message=line,
        raw=line,
    )
