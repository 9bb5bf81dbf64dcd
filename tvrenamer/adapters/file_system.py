"""
Adaptateur pour les operations sur le systeme de fichiers.

Implementation concrete de IFileMover : deplacement avec progression,
creation des repertoires de destination, et scan des fichiers video
pour la ligne de commande.
"""

import os
import shutil
import uuid
from pathlib import Path
from typing import Iterable, Iterator, Optional

from loguru import logger

from tvrenamer.core.errors import MoveConflictError
from tvrenamer.core.ports.file_mover import IFileMover, ProgressSink

# Extensions video supportees
VIDEO_EXTENSIONS: frozenset[str] = frozenset({
    ".mkv", ".mp4", ".avi", ".mov", ".wmv", ".flv", ".webm", ".m4v", ".mpg", ".ts"
})

# Patterns a ignorer dans les noms de fichiers (insensible a la casse)
IGNORED_PATTERNS: frozenset[str] = frozenset({"sample", "trailer"})

# Taille des blocs de copie entre systemes de fichiers (4 MB)
COPY_CHUNK_SIZE: int = 4 * 1024 * 1024


class FileSystemMover(IFileMover):
    """
    Implementation de IFileMover pour le systeme de fichiers reel.

    Sur un meme systeme de fichiers, le deplacement est un lien dur suivi
    de la suppression de la source. Entre systemes de fichiers, la
    destination est reservee par une creation exclusive, le fichier est
    copie par blocs dans un fichier temporaire du repertoire cible, renomme
    a la place de la reservation, puis la source est supprimee : la source
    n'est jamais touchee tant que la destination n'est pas complete, et un
    fichier existant n'est jamais ecrase.
    """

    def __init__(self, chunk_size: int = COPY_CHUNK_SIZE) -> None:
        self._chunk_size = chunk_size

    def exists(self, path: Path) -> bool:
        """Verifie si un chemin existe."""
        return path.exists()

    def is_same_file(self, first: Path, second: Path) -> bool:
        """Verifie si deux chemins designent le meme fichier."""
        try:
            return os.path.samefile(first, second)
        except OSError:
            return False

    def ensure_directory(self, directory: Path) -> bool:
        """Cree le repertoire et ses parents si necessaire."""
        try:
            directory.mkdir(parents=True, exist_ok=True)
            return True
        except OSError as e:
            logger.error(f"Impossible de creer le repertoire {directory}: {e}")
            return False

    def move(
        self,
        source: Path,
        destination: Path,
        progress_sink: Optional[ProgressSink] = None,
    ) -> bool:
        """
        Deplace un fichier de la source vers la destination.

        Une destination existante n'est jamais ecrasee, meme si elle apparait
        entre la verification de l'appelant et le deplacement.

        Args:
            source: Chemin du fichier source
            destination: Chemin de destination (repertoire parent existant)
            progress_sink: Recoit (octets copies, total) de maniere croissante

        Returns:
            True si le deplacement a reussi, False sinon.

        Raises:
            MoveConflictError: Si la destination existe deja (source intacte).
        """
        try:
            total = source.stat().st_size
        except OSError as e:
            logger.error(f"Source inaccessible {source}: {e}")
            return False

        try:
            # Lien dur : echoue si la destination existe (meme filesystem)
            os.link(source, destination)
        except FileExistsError:
            raise MoveConflictError(source, destination) from None
        except OSError:
            # Cross-filesystem ou liens durs non supportes : copie intermediaire
            try:
                self._copy_to_destination(source, destination, total, progress_sink)
            except FileExistsError:
                raise MoveConflictError(source, destination) from None
            except (OSError, shutil.Error) as e:
                logger.error(f"Echec de la copie de {source} vers {destination}: {e}")
                return False

        try:
            source.unlink()
        except OSError as e:
            # La destination est complete : on conserve la source plutot que d'echouer
            logger.warning(f"Source conservee apres deplacement {source}: {e}")
        if progress_sink:
            progress_sink(total, total)
        return True

    def _copy_to_destination(
        self,
        source: Path,
        destination: Path,
        total: int,
        progress_sink: Optional[ProgressSink],
    ) -> None:
        # Reservation exclusive : un deplacement concurrent recoit FileExistsError
        with open(destination, "xb"):
            pass
        temp = destination.with_name(f".tmp_{uuid.uuid4().hex}_{destination.name}")
        try:
            copied = 0
            with open(source, "rb") as src, open(temp, "wb") as dst:
                while True:
                    chunk = src.read(self._chunk_size)
                    if not chunk:
                        break
                    dst.write(chunk)
                    copied += len(chunk)
                    if progress_sink:
                        progress_sink(copied, total)
                dst.flush()
                os.fsync(dst.fileno())
            shutil.copystat(source, temp)
            # Remplace la reservation vide par le fichier complet
            os.replace(temp, destination)
        except BaseException:
            # Nettoyer le fichier temporaire et la reservation
            if temp.exists():
                temp.unlink()
            destination.unlink(missing_ok=True)
            raise

    # Methodes utilitaires pour le scan

    def list_video_files(self, paths: Iterable[Path]) -> Iterator[Path]:
        """
        Liste les fichiers video des chemins donnes (repertoires parcourus recursivement).

        Filtre:
        - Par extension (VIDEO_EXTENSIONS)
        - Exclut les symlinks
        - Exclut les fichiers contenant IGNORED_PATTERNS

        Yields:
            Chemins absolus vers les fichiers video, dans l'ordre alphabetique
        """
        for path in paths:
            path = Path(path).expanduser()
            if path.is_dir():
                candidates = sorted(p for p in path.rglob("*") if p.is_file())
            elif path.is_file():
                candidates = [path]
            else:
                logger.warning(f"Chemin introuvable: {path}")
                continue

            for candidate in candidates:
                if candidate.is_symlink():
                    continue
                if candidate.suffix.lower() not in VIDEO_EXTENSIONS:
                    continue
                name_lower = candidate.name.lower()
                if any(pattern in name_lower for pattern in IGNORED_PATTERNS):
                    continue
                yield candidate.absolute()
