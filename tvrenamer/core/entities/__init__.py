"""
Entites metier representant les concepts centraux du domaine.

Exports:
- EpisodeRecord: Fichier d'episode suivi, avec ses trois machines a etats
- ParseStatus, SeriesStatus, FileStatus: Statuts du record
- Show, FailedShow: Serie resolue / marqueur d'echec de resolution
- Episode: Episode d'une serie
"""

from tvrenamer.core.entities.episode_record import (
    ADDED_PLACEHOLDER,
    BROKEN_PLACEHOLDER,
    DOWNLOADING_FAILED_PLACEHOLDER,
    FILE_TRANSITIONS,
    NO_FILE_SIZE,
    SERIES_TRANSITIONS,
    UNKNOWN_NUMBER,
    EpisodeRecord,
    FileStatus,
    ParseStatus,
    SeriesStatus,
    parse_number,
)
from tvrenamer.core.entities.media import Episode, FailedShow, Show

__all__ = [
    "ADDED_PLACEHOLDER",
    "BROKEN_PLACEHOLDER",
    "DOWNLOADING_FAILED_PLACEHOLDER",
    "FILE_TRANSITIONS",
    "NO_FILE_SIZE",
    "SERIES_TRANSITIONS",
    "UNKNOWN_NUMBER",
    "Episode",
    "EpisodeRecord",
    "FailedShow",
    "FileStatus",
    "ParseStatus",
    "SeriesStatus",
    "Show",
    "parse_number",
]
