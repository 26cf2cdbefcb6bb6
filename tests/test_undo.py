"""Tests for undoing moves."""

import errno
from pathlib import Path

from filo.core.undo import UndoExecutor
from filo.domain.result import ErrorKind
from filo.infrastructure.adapters.filesystem_adapter import FilesystemAdapter
from filo.models.results import UndoPair


class CrossDeviceFilesystem(FilesystemAdapter):
    """Filesystem whose renames always cross a device boundary."""

    def rename(self, source: Path, destination: Path) -> None:
        raise OSError(errno.EXDEV, "Invalid cross-device link")


class TestUndoFile:
    """Test single-file undo."""

    def test_restores_file(self, tmp_path):
        source = tmp_path / "in" / "a.txt"
        destination = tmp_path / "out" / "a.txt"
        destination.parent.mkdir()
        destination.write_text("data")

        result = UndoExecutor().undo_file(source, destination)

        assert result.is_success()
        assert source.read_text() == "data"
        assert not destination.exists()

    def test_recreates_missing_source_folder(self, tmp_path):
        source = tmp_path / "gone" / "deeper" / "a.txt"
        destination = tmp_path / "a.txt"
        destination.write_text("data")

        assert UndoExecutor().undo_file(source, destination).is_success()
        assert source.exists()

    def test_destination_missing(self, tmp_path):
        result = UndoExecutor().undo_file(tmp_path / "a.txt", tmp_path / "out" / "a.txt")

        assert result.is_failure()
        assert result.error().kind == ErrorKind.NOT_FOUND
        assert result.error().message.startswith("File no longer exists at destination")

    def test_source_reoccupied(self, tmp_path):
        source = tmp_path / "a.txt"
        destination = tmp_path / "out.txt"
        source.write_text("new file")
        destination.write_text("moved file")

        result = UndoExecutor().undo_file(source, destination)

        assert result.is_failure()
        assert result.error().message.startswith("File already exists at original location")
        assert source.read_text() == "new file"
        assert destination.read_text() == "moved file"

    def test_cross_device_undo(self, tmp_path):
        source = tmp_path / "in" / "a.txt"
        destination = tmp_path / "a.txt"
        destination.write_text("data")

        result = UndoExecutor(CrossDeviceFilesystem()).undo_file(source, destination)

        assert result.is_success()
        assert source.read_text() == "data"
        assert not destination.exists()


class TestUndoAll:
    """Test batch undo."""

    def test_failures_do_not_stop_batch(self, tmp_path):
        (tmp_path / "moved1.txt").write_text("1")
        (tmp_path / "moved3.txt").write_text("3")
        pairs = [
            UndoPair(tmp_path / "orig" / "one.txt", tmp_path / "moved1.txt"),
            UndoPair(tmp_path / "orig" / "two.txt", tmp_path / "moved2.txt"),
            UndoPair(tmp_path / "orig" / "three.txt", tmp_path / "moved3.txt"),
        ]

        results = UndoExecutor().undo_all(pairs)

        assert [r.is_success() for r in results] == [True, False, True]
        assert (tmp_path / "orig" / "one.txt").exists()
        assert (tmp_path / "orig" / "three.txt").exists()

    def test_empty(self):
        assert UndoExecutor().undo_all([]) == []
