"""
Implementation du parser de noms de fichiers avec guessit.

GuessitFilenameParser implemente IFilenameParser : il extrait le nom de
la serie, la saison, l'episode et la resolution d'un nom de fichier video.
"""

from typing import Any, Optional

from guessit import guessit

from tvrenamer.core.ports.parser import IFilenameParser
from tvrenamer.core.value_objects.parsed_info import ParsedFilename


class GuessitFilenameParser(IFilenameParser):
    """
    Parser de noms de fichiers d'episodes utilisant guessit.

    Les valeurs sont retournees sous forme de chaines brutes ; la conversion
    en numeros est faite par EpisodeRecord.
    """

    def parse(self, filename: str) -> ParsedFilename:
        """
        Parse un nom de fichier d'episode.

        Args:
            filename: Nom du fichier a parser (sans le chemin)

        Returns:
            ParsedFilename ; parsed=False si serie, saison ou episode manquent.
        """
        # Forcer le type episode : le nom est toujours celui d'un episode de serie
        result = guessit(filename, {"type": "episode"})

        show = self._extract_show(result)
        season = self._first_number(result.get("season"))
        episode = self._first_number(result.get("episode"))
        resolution = str(result.get("screen_size") or "")

        parsed = bool(show) and season is not None and episode is not None
        return ParsedFilename(
            show=show,
            season=season or "",
            episode=episode or "",
            resolution=resolution,
            parsed=parsed,
        )

    def _extract_show(self, result: dict[str, Any]) -> str:
        title = result.get("title")
        return str(title) if title else ""

    def _first_number(self, value: Any) -> Optional[str]:
        """Premier numero d'une valeur guessit (int ou liste pour les multi-episodes)."""
        if value is None:
            return None
        if isinstance(value, list):
            if not value:
                return None
            value = value[0]
        return str(value)
