"""Core data types: parsed records, watched sources, update batches, subscribers."""

import asyncio
import os
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class LogRecord:
    timestamp: str
    hostname: str
    facility: str
    severity: str
    program: str
    pid: str | None
    message: str
    raw: str  # original line, verbatim

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Source:
    """One watched file. ``last_known_size`` is the byte offset already consumed."""

    name: str
    path: str
    last_known_size: int = 0

    @classmethod
    def open(cls, name: str, path: str) -> "Source":
        """Create a Source positioned at the file's current end (0 if absent)."""
        try:
            size = os.stat(path).st_size
        except FileNotFoundError:
            size = 0
        return cls(name=name, path=path, last_known_size=size)


@dataclass(frozen=True)
class UpdateBatch:
    source_name: str
    entries: tuple[LogRecord, ...]


class SubscriberState(Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass(eq=False)
class Subscriber:
    id: str
    connection: Any  # anything with `async send(str)`
    queue: asyncio.Queue
    state: SubscriberState = SubscriberState.OPEN
    sender: asyncio.Task | None = field(default=None, repr=False)

    @property
    def is_open(self) -> bool:
        return self.state is SubscriberState.OPEN


def snapshot_event(logs: dict[str, list[LogRecord]]) -> dict[str, Any]:
    return {
        "type": "initial",
        "logs": {name: [r.to_dict() for r in records] for name, records in logs.items()},
    }


def update_event(batch: UpdateBatch) -> dict[str, Any]:
    return {
        "type": "update",
        "logType": batch.source_name,
        "entries": [r.to_dict() for r in batch.entries],
    }
