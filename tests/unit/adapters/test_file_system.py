"""
Tests unitaires pour FileSystemMover.

Tests couvrant:
- Deplacement atomique sur le meme systeme de fichiers
- Repli copie + remplacement entre systemes de fichiers
- Nettoyage du fichier temporaire en cas d'erreur
- Destination existante jamais ecrasee
- Progression croissante
- Scan des fichiers video
"""

import errno
from pathlib import Path
from unittest.mock import patch

import pytest

from tvrenamer.adapters.file_system import FileSystemMover
from tvrenamer.core.errors import MoveConflictError


def _cross_device_link(source, destination):
    """os.link entre deux systemes de fichiers (EXDEV)."""
    raise OSError(errno.EXDEV, "Invalid cross-device link")


@pytest.fixture
def mover() -> FileSystemMover:
    return FileSystemMover(chunk_size=4)


class TestMove:
    """Tests du deplacement."""

    def test_same_filesystem_rename(self, mover: FileSystemMover, tmp_path: Path) -> None:
        source = tmp_path / "a.mkv"
        source.write_bytes(b"0123456789")
        destination = tmp_path / "b.mkv"
        progress = []

        assert mover.move(source, destination, lambda done, total: progress.append((done, total)))

        assert not source.exists()
        assert destination.read_bytes() == b"0123456789"
        assert progress == [(10, 10)]

    def test_cross_filesystem_fallback(self, mover: FileSystemMover, tmp_path: Path) -> None:
        source = tmp_path / "src" / "a.mkv"
        source.parent.mkdir()
        source.write_bytes(b"0123456789")
        destination = tmp_path / "dst" / "b.mkv"
        destination.parent.mkdir()
        progress = []

        with patch("tvrenamer.adapters.file_system.os.link", side_effect=_cross_device_link):
            assert mover.move(source, destination, lambda done, total: progress.append(done))

        assert not source.exists()
        assert destination.read_bytes() == b"0123456789"
        assert list(destination.parent.iterdir()) == [destination]
        assert progress == sorted(progress)
        assert progress[0] == 4
        assert progress[-1] == 10

    def test_copy_failure_cleans_temp_and_keeps_source(
        self, mover: FileSystemMover, tmp_path: Path
    ) -> None:
        source = tmp_path / "src" / "a.mkv"
        source.parent.mkdir()
        source.write_bytes(b"0123456789")
        destination = tmp_path / "dst" / "b.mkv"
        destination.parent.mkdir()

        with patch("tvrenamer.adapters.file_system.os.link", side_effect=_cross_device_link), \
                patch("tvrenamer.adapters.file_system.os.fsync", side_effect=OSError("I/O error")):
            assert mover.move(source, destination) is False

        assert source.read_bytes() == b"0123456789"
        assert list(destination.parent.iterdir()) == []

    def test_missing_source_fails(self, mover: FileSystemMover, tmp_path: Path) -> None:
        assert mover.move(tmp_path / "absent.mkv", tmp_path / "b.mkv") is False

    def test_existing_destination_never_overwritten(
        self, mover: FileSystemMover, tmp_path: Path
    ) -> None:
        source = tmp_path / "a.mkv"
        source.write_bytes(b"new")
        destination = tmp_path / "b.mkv"
        destination.write_bytes(b"old")

        with pytest.raises(MoveConflictError) as exc_info:
            mover.move(source, destination)

        assert exc_info.value.destination == destination
        assert source.read_bytes() == b"new"
        assert destination.read_bytes() == b"old"

    def test_existing_destination_cross_filesystem(
        self, mover: FileSystemMover, tmp_path: Path
    ) -> None:
        source = tmp_path / "src" / "a.mkv"
        source.parent.mkdir()
        source.write_bytes(b"new")
        destination = tmp_path / "dst" / "b.mkv"
        destination.parent.mkdir()
        destination.write_bytes(b"old")

        with patch("tvrenamer.adapters.file_system.os.link", side_effect=_cross_device_link):
            with pytest.raises(MoveConflictError):
                mover.move(source, destination)

        assert source.read_bytes() == b"new"
        assert destination.read_bytes() == b"old"
        assert list(destination.parent.iterdir()) == [destination]


class TestHelpers:

    def test_is_same_file(self, mover: FileSystemMover, tmp_path: Path) -> None:
        path = tmp_path / "a.mkv"
        path.write_bytes(b"x")
        other = tmp_path / "b.mkv"
        other.write_bytes(b"x")
        assert mover.is_same_file(path, tmp_path / "." / "a.mkv") is True
        assert mover.is_same_file(path, other) is False
        assert mover.is_same_file(path, tmp_path / "absent.mkv") is False

    def test_ensure_directory(self, mover: FileSystemMover, tmp_path: Path) -> None:
        directory = tmp_path / "a" / "b"
        assert mover.ensure_directory(directory) is True
        assert directory.is_dir()

    def test_ensure_directory_failure(self, mover: FileSystemMover, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x")
        assert mover.ensure_directory(blocker / "sub") is False


class TestListVideoFiles:
    """Tests du scan des fichiers video."""

    def test_filters_and_sorts(self, mover: FileSystemMover, tmp_path: Path) -> None:
        (tmp_path / "b.mkv").write_bytes(b"x")
        (tmp_path / "a.avi").write_bytes(b"x")
        (tmp_path / "notes.txt").write_text("x")
        (tmp_path / "show.sample.mkv").write_bytes(b"x")
        nested = tmp_path / "season"
        nested.mkdir()
        (nested / "c.MP4").write_bytes(b"x")

        found = list(mover.list_video_files([tmp_path]))

        assert [p.name for p in found] == ["a.avi", "b.mkv", "c.MP4"]
        assert all(p.is_absolute() for p in found)

    def test_single_file_and_missing_path(self, mover: FileSystemMover, tmp_path: Path) -> None:
        video = tmp_path / "a.mkv"
        video.write_bytes(b"x")
        found = list(mover.list_video_files([video, tmp_path / "absent"]))
        assert found == [video.absolute()]

    def test_symlinks_skipped(self, mover: FileSystemMover, tmp_path: Path) -> None:
        target = tmp_path / "a.mkv"
        target.write_bytes(b"x")
        (tmp_path / "link.mkv").symlink_to(target)
        assert [p.name for p in mover.list_video_files([tmp_path])] == ["a.mkv"]
