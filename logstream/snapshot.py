"""Bounded, newest-first snapshot of a source file."""

import logging

from logstream.models import LogRecord, Source
from logstream.parser import parse_line, split_lines

logger = logging.getLogger(__name__)


def read_snapshot(source: Source, max_lines: int, end_offset: int | None = None) -> list[LogRecord]:
    """Return up to ``max_lines`` parsed records, most recent line first.

    With ``end_offset`` only bytes before that offset are considered, which
    lets a caller line the snapshot up with what the watcher has consumed.
    A missing file yields an empty list. Does not touch ``last_known_size``.
    """
    if max_lines <= 0:
        return []
    try:
        with open(source.path, "rb") as f:
            data = f.read() if end_offset is None else f.read(end_offset)
    except FileNotFoundError:
        return []
    except OSError as e:
        logger.error("Error reading log file %s: %s", source.path, e)
        return []

    lines = split_lines(data.decode("utf-8", errors="replace"))
    recent = lines[-max_lines:]
    recent.reverse()
    return [parse_line(line) for line in recent]
