"""Tests for the newest-first snapshot reader."""

from logstream.models import Source
from logstream.snapshot import read_snapshot


def _write(path, lines):
    path.write_text("".join(line + "\n" for line in lines))


def _line(i: int) -> str:
    return f"2024-01-01T00:00:{i:02d} host1 app.info worker[{i}]: message {i}"


class TestReadSnapshot:
    def test_missing_file_returns_empty(self, tmp_path):
        source = Source("gone", str(tmp_path / "nope.log"))
        assert read_snapshot(source, 10) == []

    def test_newest_first(self, tmp_path):
        f = tmp_path / "app.log"
        _write(f, [_line(1), _line(2), _line(3)])
        records = read_snapshot(Source("app", str(f)), 10)
        assert [r.pid for r in records] == ["3", "2", "1"]

    def test_bounded_by_max_lines(self, tmp_path):
        f = tmp_path / "app.log"
        _write(f, [_line(i) for i in range(20)])
        records = read_snapshot(Source("app", str(f)), 5)
        assert len(records) == 5
        assert [r.pid for r in records] == ["19", "18", "17", "16", "15"]

    def test_non_positive_limit_returns_empty(self, tmp_path):
        f = tmp_path / "app.log"
        _write(f, [_line(1)])
        assert read_snapshot(Source("app", str(f)), 0) == []
        assert read_snapshot(Source("app", str(f)), -3) == []

    def test_blank_lines_never_returned(self, tmp_path):
        f = tmp_path / "app.log"
        f.write_text(_line(1) + "\n\n   \n" + _line(2) + "\n\t\n")
        records = read_snapshot(Source("app", str(f)), 10)
        assert len(records) == 2
        assert all(r.raw.strip() for r in records)

    def test_stable_across_calls(self, tmp_path):
        f = tmp_path / "app.log"
        _write(f, [_line(1), _line(2)])
        source = Source("app", str(f))
        assert read_snapshot(source, 10) == read_snapshot(source, 10)

    def test_does_not_touch_offset(self, tmp_path):
        f = tmp_path / "app.log"
        _write(f, [_line(1)])
        source = Source("app", str(f), last_known_size=7)
        read_snapshot(source, 10)
        assert source.last_known_size == 7

    def test_end_offset_excludes_later_bytes(self, tmp_path):
        f = tmp_path / "app.log"
        _write(f, [_line(1)])
        cut = f.stat().st_size
        with open(f, "a") as fh:
            fh.write(_line(2) + "\n")
        records = read_snapshot(Source("app", str(f)), 10, end_offset=cut)
        assert [r.pid for r in records] == ["1"]

    def test_end_offset_zero(self, tmp_path):
        f = tmp_path / "app.log"
        _write(f, [_line(1)])
        assert read_snapshot(Source("app", str(f)), 10, end_offset=0) == []

    def test_unreadable_path_returns_empty(self, tmp_path):
        # a directory cannot be opened as a file
        assert read_snapshot(Source("dir", str(tmp_path)), 10) == []

    def test_invalid_utf8_is_replaced(self, tmp_path):
        f = tmp_path / "app.log"
        f.write_bytes(b"caf\xe9 latte\n")
        records = read_snapshot(Source("app", str(f)), 10)
        assert records[0].raw == "caf\ufffd latte"
