"""
Interface port pour le parsing des noms de fichiers d'episodes.
"""

from abc import ABC, abstractmethod

from tvrenamer.core.value_objects.parsed_info import ParsedFilename


class IFilenameParser(ABC):
    """
    Interface pour extraire serie/saison/episode d'un nom de fichier.

    L'implementation utilise la bibliotheque guessit.
    """

    @abstractmethod
    def parse(self, filename: str) -> ParsedFilename:
        """
        Parse un nom de fichier video.

        Args:
            filename: Nom du fichier (sans le chemin)

        Retourne:
            ParsedFilename ; parsed vaut False si saison/episode sont introuvables.
        """
        ...
