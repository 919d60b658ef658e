"""Tests for the storage layer: log file I/O, key directory and file checks."""

import os
import subprocess
import sys
import tempfile
from pathlib import Path

import pytest

from exceptions import ErrorKind, FileCheckError, ReadError, TruncatedInputError
from models import encode_key_dir_entry, encode_record
from storage import KeyDir, LogFile, file_exists, iter_records


class TestFileExists:
    """Tests for the file existence check."""

    def test_existing_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "dummy.db"
            path.touch()
            assert file_exists(path) is True

    def test_missing_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            assert file_exists(Path(tmpdir) / "missing.db") is False

    def test_directory_is_not_a_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            assert file_exists(tmpdir) is False

    def test_other_errors_are_not_false(self):
        """A path through a regular file fails with ENOTDIR, not "not found"."""
        with tempfile.TemporaryDirectory() as tmpdir:
            blocker = Path(tmpdir) / "blocker"
            blocker.touch()

            with pytest.raises(FileCheckError) as exc_info:
                file_exists(blocker / "tmpdb.db")

            assert exc_info.value.kind is ErrorKind.FILE_CHECK
            assert isinstance(exc_info.value.__cause__, OSError)


class TestLogFile:
    """Tests for LogFile byte I/O."""

    def test_create_new_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "nested" / "tmpdb.db"

            with LogFile.create(path) as log:
                assert path.exists()
                assert log.size == 0

    def test_create_refuses_existing_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "tmpdb.db"
            path.write_bytes(b"old")

            with pytest.raises(FileExistsError):
                LogFile.create(path)

            assert path.read_bytes() == b"old"

    def test_append_and_read_at(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "tmpdb.db"

            with LogFile.create(path) as log:
                log.append(0, b"hello")
                log.append(5, b"world")
                log.sync()

                assert log.size == 10
                assert log.read_at(0, 5) == b"hello"
                assert log.read_at(5, 5) == b"world"
                assert log.read_at(3, 4) == b"lowo"

            assert path.read_bytes() == b"helloworld"

    def test_append_overwrites_from_position(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "tmpdb.db"

            with LogFile.create(path) as log:
                log.append(0, b"abcdef")
                log.append(3, b"XYZ")
                log.sync()

            assert path.read_bytes() == b"abcXYZ"

    def test_truncate_drops_tail(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "tmpdb.db"

            with LogFile.create(path) as log:
                log.append(0, b"abcdef")
                log.truncate(2)
                assert log.size == 2
                log.append(2, b"Z")
                log.sync()

            assert path.read_bytes() == b"abZ"

    def test_short_read(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with LogFile.create(Path(tmpdir) / "tmpdb.db") as log:
                log.append(0, b"abc")
                log.sync()

                with pytest.raises(ReadError, match="Incomplete read"):
                    log.read_at(1, 10)

    def test_closed(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            log = LogFile.create(Path(tmpdir) / "tmpdb.db")
            log.close()
            log.close()

            assert log.closed
            with pytest.raises(RuntimeError, match="closed"):
                log.append(0, b"x")


class TestIterRecords:
    """Tests for scanning records out of a log file."""

    def _write(self, path: Path, *pairs: tuple[str, str]) -> list[bytes]:
        records = [encode_record(1000 + i, key, value).record for i, (key, value) in enumerate(pairs)]
        path.write_bytes(b"".join(records))
        return records

    def test_empty_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "tmpdb.db"
            path.touch()
            assert list(iter_records(path)) == []

    def test_offsets_follow_record_lengths(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "tmpdb.db"
            raw = self._write(path, ("hello", "test"), ("key", "value"), ("héllo", "世界"))

            scanned = list(iter_records(path))

            assert [offset for offset, _ in scanned] == [0, len(raw[0]), len(raw[0]) + len(raw[1])]
            assert [(r.key, r.value) for _, r in scanned] == [
                ("hello", "test"),
                ("key", "value"),
                ("héllo", "世界"),
            ]
            assert [r.timestamp for _, r in scanned] == [1000, 1001, 1002]

    def test_partial_tail(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "tmpdb.db"
            self._write(path, ("a", "1"), ("b", "2"))
            with open(path, "r+b") as f:
                f.truncate(os.path.getsize(path) - 1)

            scanned = []
            with pytest.raises(TruncatedInputError):
                for item in iter_records(path):
                    scanned.append(item)

            assert len(scanned) == 1


class TestKeyDir:
    """Tests for the in-memory key directory."""

    def test_missing_key(self):
        kd = KeyDir()
        assert kd.get("nope") is None
        assert kd.get_raw("nope") is None
        assert "nope" not in kd

    def test_put_and_get(self):
        kd = KeyDir()
        kd.put("hello", encode_key_dir_entry(10, 4, 17))

        entry = kd.get("hello")
        assert entry.timestamp == 10
        assert entry.value_size == 4
        assert entry.value_offset == 17
        assert kd.get_raw("hello") == encode_key_dir_entry(10, 4, 17)

    def test_last_write_wins(self):
        kd = KeyDir()
        kd.put("k", encode_key_dir_entry(1, 1, 13))
        kd.put("k", encode_key_dir_entry(2, 1, 27))

        assert len(kd) == 1
        assert kd.get("k").value_offset == 27

    def test_commit_in_order(self):
        kd = KeyDir()
        pending = [
            ("a", encode_key_dir_entry(1, 1, 13)),
            ("b", encode_key_dir_entry(1, 1, 27)),
            ("a", encode_key_dir_entry(1, 2, 41)),
        ]

        assert kd.commit(pending) == 3
        assert kd.keys() == ["a", "b"]
        assert kd.get("a").value_offset == 41

    def test_clear(self):
        kd = KeyDir()
        kd.put("a", encode_key_dir_entry(1, 1, 13))
        kd.clear()

        assert len(kd) == 0
        assert list(kd) == []


class TestInspectTool:
    """Tests to verify tools/log_inspect.py works correctly."""

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        return subprocess.run(
            [sys.executable, "tools/log_inspect.py", *args],
            capture_output=True,
            text=True,
            cwd=Path(__file__).parent.parent,
        )

    def test_inspect_summary(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "tmpdb.db"
            path.write_bytes(
                encode_record(1, "found", "yes").record
                + encode_record(2, "found", "still yes").record
                + encode_record(3, "other", "x").record
            )

            result = self._run("--log", str(path), "--summary")

            assert result.returncode == 0
            assert "LOG SUMMARY" in result.stdout
            assert "Records: 3" in result.stdout
            assert "Live Keys: 2" in result.stdout

    def test_inspect_key_versions(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "tmpdb.db"
            path.write_bytes(encode_record(1, "hello", "test").record + encode_record(2, "hello", "again").record)

            result = self._run("--log", str(path), "--key", "hello")

            assert result.returncode == 0
            assert "@0" in result.stdout
            assert "value_offset=17" in result.stdout
            assert "'again'" in result.stdout

    def test_inspect_missing_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            result = self._run("--log", str(Path(tmpdir) / "missing.db"))

            assert result.returncode == 1
            assert "Log file not found" in result.stderr
