"""
Interface port pour le deplacement de fichiers.

L'orchestrateur decide si et ou deplacer un fichier ; l'implementation
de ce port effectue le deplacement et rapporte la progression.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional

# (octets deplaces, octets totaux)
ProgressSink = Callable[[int, int], None]


class IFileMover(ABC):
    """
    Interface des operations fichiers utilisees par l'orchestrateur.

    Le deplacement ne doit jamais supprimer la source avant que la
    destination soit entierement ecrite, ni ecraser un fichier existant.
    """

    @abstractmethod
    def exists(self, path: Path) -> bool:
        """Verifie si un chemin existe."""
        ...

    @abstractmethod
    def is_same_file(self, first: Path, second: Path) -> bool:
        """Verifie si deux chemins designent le meme fichier sur le disque."""
        ...

    @abstractmethod
    def ensure_directory(self, directory: Path) -> bool:
        """
        Cree un repertoire et ses parents si necessaire.

        Returns:
            True si le repertoire existe a la sortie, False sinon.
        """
        ...

    @abstractmethod
    def move(
        self,
        source: Path,
        destination: Path,
        progress_sink: Optional[ProgressSink] = None,
    ) -> bool:
        """
        Deplace un fichier.

        Args:
            source: Chemin actuel du fichier
            destination: Chemin cible (le repertoire parent doit exister)
            progress_sink: Recoit des mises a jour croissantes (octets, total)

        Returns:
            True si reussi, False sinon (la source reste intacte).

        Raises:
            MoveConflictError: Si la destination existe deja ; elle n'est
                jamais ecrasee et la source reste intacte.
        """
        ...
