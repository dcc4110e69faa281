import json

import pytest

from logstream.registry import SourceRegistry

SYSTEM_LINE = "2024-01-01T00:00:00 host1 cron.info run[123]: job started"


class FakeConnection:
    """Records every message sent to it, decoded from JSON."""

    def __init__(self):
        self.messages = []

    async def send(self, message: str):
        self.messages.append(json.loads(message))

    def of_type(self, event_type: str) -> list[dict]:
        return [m for m in self.messages if m["type"] == event_type]


class FailingConnection:
    def __init__(self, fail_after: int = 0):
        self.sent = 0
        self._fail_after = fail_after

    async def send(self, message: str):
        if self.sent >= self._fail_after:
            raise ConnectionResetError("peer went away")
        self.sent += 1


@pytest.fixture
def log_dir(tmp_path):
    d = tmp_path / "logs"
    d.mkdir()
    return d


@pytest.fixture
def system_log(log_dir):
    f = log_dir / "system.log"
    f.write_text(SYSTEM_LINE + "\n")
    return f


@pytest.fixture
def registry(log_dir, system_log):
    """Two sources: 'system' with one existing line, 'auth' not yet created."""
    return SourceRegistry.from_mapping({
        "system": str(system_log),
        "auth": str(log_dir / "auth.log"),
    })


def append(path, *lines: str):
    with open(path, "a", encoding="utf-8") as f:
        for line in lines:
            f.write(line + "\n")
