"""
Fixtures pytest partagees pour les tests TVRenamer.

Ce module contient les fixtures communes utilisees dans les tests:
- Preferences de test avec repertoires temporaires
- Resolveur en memoire avec un petit catalogue
- Fabrique de fichiers video et de records resolus
"""

import os
from datetime import date
from pathlib import Path
from typing import Callable
from unittest.mock import MagicMock

import pytest

from tvrenamer.adapters.memory_resolver import InMemoryShowResolver
from tvrenamer.core.entities.episode_record import EpisodeRecord
from tvrenamer.core.entities.media import Show
from tvrenamer.core.ports.file_mover import IFileMover
from tvrenamer.core.value_objects.preferences import UserPreferences
from tvrenamer.services.renamer import RenameTemplateEngine


@pytest.fixture
def downloads_dir(tmp_path: Path) -> Path:
    """Repertoire des fichiers a renommer."""
    path = tmp_path / "downloads"
    path.mkdir()
    return path


@pytest.fixture
def library_dir(tmp_path: Path) -> Path:
    """Repertoire de destination (non cree : l'orchestrateur le cree)."""
    return tmp_path / "library"


@pytest.fixture
def preferences(library_dir: Path) -> UserPreferences:
    """Preferences par defaut : renommage en place, sans deplacement."""
    return UserPreferences(destination_dir=library_dir)


@pytest.fixture
def move_preferences(library_dir: Path) -> UserPreferences:
    """Preferences avec deplacement vers la bibliotheque."""
    return UserPreferences(destination_dir=library_dir, move_enabled=True)


@pytest.fixture
def engine() -> RenameTemplateEngine:
    return RenameTemplateEngine()


@pytest.fixture
def resolver() -> InMemoryShowResolver:
    """
    Catalogue en memoire :
    - The Office (cle 73244) : S02E05 "Halloween" (18/10/2005), S02E06 "The Fight"
    - Lost (cle 73739) : S01E01 "Pilot (1)" sans date
    """
    resolver = InMemoryShowResolver()
    office = resolver.add_show("73244", "The Office (US)", aliases=["The Office"])
    resolver.add_episode(office, 2, 5, "Halloween", date(2005, 10, 18))
    resolver.add_episode(office, 2, 6, "The Fight", date(2005, 11, 1))
    lost = resolver.add_show("73739", "Lost")
    resolver.add_episode(lost, 1, 1, "Pilot (1)")
    return resolver


@pytest.fixture
def make_video(downloads_dir: Path) -> Callable[..., Path]:
    """Fabrique de fichiers video avec un contenu donne."""

    def _make(name: str, content: bytes = b"video-data", directory: Path = None) -> Path:
        target_dir = directory or downloads_dir
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / name
        path.write_bytes(content)
        return path

    return _make


@pytest.fixture
def make_ready_record(resolver: InMemoryShowResolver) -> Callable[..., EpisodeRecord]:
    """
    Fabrique de records en GOT_LISTINGS, sans passer par une session.

    Le record pointe sur un episode du catalogue en memoire.
    """

    def _make(
        path: Path,
        show: Show = Show("73244", "The Office (US)"),
        season: str = "2",
        episode: str = "5",
        resolution: str = "",
    ) -> EpisodeRecord:
        record = EpisodeRecord(path)
        record.set_filename_show(show.name)
        record.set_filename_season(season)
        record.set_filename_episode(episode)
        record.set_filename_resolution(resolution)
        record.set_parsed()
        record.set_show(show)
        record.listings_complete(resolver)
        return record

    return _make


@pytest.fixture
def mock_file_mover() -> MagicMock:
    """
    Mock de IFileMover pour les tests.

    Par defaut le mock se comporte comme le disque : exists() et move()
    agissent reellement, ensure_directory() reussit sans rien creer.
    """

    def _move(source: Path, destination: Path, progress_sink=None) -> bool:
        destination.parent.mkdir(parents=True, exist_ok=True)
        os.replace(source, destination)
        return True

    mock = MagicMock(spec=IFileMover)
    mock.exists.side_effect = lambda path: Path(path).exists()
    mock.is_same_file.return_value = False
    mock.ensure_directory.return_value = True
    mock.move.side_effect = _move
    return mock
