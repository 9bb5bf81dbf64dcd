"""
Entite EpisodeRecord : un fichier du disque suppose contenir un episode.

Le record est cree avec un simple chemin, puis les informations arrivent
au fil de l'eau : champs devines depuis le nom de fichier, resolution de la
serie, listings d'episodes, puis resultat du deplacement.

Trois machines a etats independantes :
- parse_status : UNPARSED -> PARSED | BAD_PARSE
- series_status : NOT_STARTED -> GOT_SHOW -> GOT_LISTINGS | NO_LISTINGS
                  NOT_STARTED -> UNFOUND
- file_status : UNCHECKED -> MOVING -> RENAMED | FAIL_TO_MOVE
                UNCHECKED <-> NO_FILE (fichier absent, puis reapparu)

Les transitions sont validees par les tables SERIES_TRANSITIONS et
FILE_TRANSITIONS ; toute transition hors table leve InvalidTransitionError.
"""

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from loguru import logger

from tvrenamer.core.entities.media import Episode, Show
from tvrenamer.core.errors import InvalidTransitionError, SuffixChangeError

if TYPE_CHECKING:
    from tvrenamer.core.ports.show_resolver import IShowResolver
    from tvrenamer.core.value_objects.preferences import UserPreferences
    from tvrenamer.services.renamer import RenameTemplateEngine


# Valeur sentinelle pour une saison/un episode non numerique
UNKNOWN_NUMBER = -1

# Taille d'un fichier absent
NO_FILE_SIZE = -1

# Textes affiches tant que le nom propose n'est pas disponible
ADDED_PLACEHOLDER = "Recherche en cours..."
BROKEN_PLACEHOLDER = "Impossible de trouver la serie"
DOWNLOADING_FAILED_PLACEHOLDER = "Echec du telechargement des listings"


class ParseStatus(Enum):
    """Resultat du decoupage du nom de fichier."""

    UNPARSED = "unparsed"
    PARSED = "parsed"
    BAD_PARSE = "bad_parse"


class SeriesStatus(Enum):
    """Avancement de la resolution serie/episode."""

    NOT_STARTED = "not_started"
    GOT_SHOW = "got_show"
    UNFOUND = "unfound"
    GOT_LISTINGS = "got_listings"
    NO_LISTINGS = "no_listings"


class FileStatus(Enum):
    """Etat du fichier sur le disque."""

    UNCHECKED = "unchecked"
    NO_FILE = "no_file"
    MOVING = "moving"
    RENAMED = "renamed"
    FAIL_TO_MOVE = "fail_to_move"


SERIES_TRANSITIONS: dict[SeriesStatus, frozenset[SeriesStatus]] = {
    SeriesStatus.NOT_STARTED: frozenset({SeriesStatus.GOT_SHOW, SeriesStatus.UNFOUND}),
    SeriesStatus.GOT_SHOW: frozenset({SeriesStatus.GOT_LISTINGS, SeriesStatus.NO_LISTINGS}),
    SeriesStatus.UNFOUND: frozenset(),
    SeriesStatus.GOT_LISTINGS: frozenset(),
    SeriesStatus.NO_LISTINGS: frozenset(),
}

FILE_TRANSITIONS: dict[FileStatus, frozenset[FileStatus]] = {
    FileStatus.UNCHECKED: frozenset({FileStatus.MOVING, FileStatus.NO_FILE}),
    # Fichier reapparu : a reverifier avant tout deplacement
    FileStatus.NO_FILE: frozenset({FileStatus.UNCHECKED}),
    FileStatus.MOVING: frozenset({FileStatus.RENAMED, FileStatus.FAIL_TO_MOVE}),
    # Un fichier deja traite peut etre deplace a nouveau (nouveau lot)
    FileStatus.RENAMED: frozenset({FileStatus.MOVING, FileStatus.NO_FILE}),
    FileStatus.FAIL_TO_MOVE: frozenset({FileStatus.MOVING, FileStatus.NO_FILE}),
}


def parse_number(raw: Optional[str]) -> int:
    """
    Convertit un numero brut en entier.

    Les valeurs non numeriques produisent UNKNOWN_NUMBER, sans erreur.
    """
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return UNKNOWN_NUMBER


class EpisodeRecord:
    """
    Etat mutable d'un fichier d'episode suivi par une session.

    Le record est possede par la session qui l'a cree ; l'orchestrateur et
    l'affichage ne font que le referencer. Les champs serie sont modifies
    par la boucle de coordination de la session, les champs fichier par
    l'orchestrateur de deplacement.

    Attributs :
        path : Chemin actuel du fichier
        filename_suffix : Extension (avec le point), fixee a la construction
        filename_show / filename_season / filename_episode / filename_resolution :
            chaines devinees depuis le nom de fichier
        season_num / episode_num : numeros convertis (UNKNOWN_NUMBER si invalides)
        show : Serie resolue (reference au catalogue, jamais possedee)
        episode : Episode resolu, renseigne uniquement en GOT_LISTINGS
    """

    def __init__(self, path: Path) -> None:
        path = Path(path)
        # Seul champ fixe d'un record : l'extension
        self._filename_suffix = path.suffix
        self.filename_show = ""
        self.filename_season = ""
        self.filename_episode = ""
        self.filename_resolution = ""
        self.season_num = UNKNOWN_NUMBER
        self.episode_num = UNKNOWN_NUMBER

        self.show: Optional[Show] = None
        self.episode: Optional[Episode] = None

        self._parse_status = ParseStatus.UNPARSED
        self._series_status = SeriesStatus.NOT_STARTED
        self._file_status = FileStatus.UNCHECKED

        self._cached_basename: Optional[str] = None
        self._cache_key: Optional[tuple] = None

        self.exists = False
        self.file_size = NO_FILE_SIZE
        self.set_path(path)

    # ------------------------------------------------------------------
    # Chemin
    # ------------------------------------------------------------------

    @property
    def filename_suffix(self) -> str:
        return self._filename_suffix

    @property
    def path(self) -> Path:
        return self._path

    @property
    def filename(self) -> str:
        return self._path.name

    def set_path(self, path: Path) -> None:
        """
        Rattache le record a un chemin et relit l'existence du fichier.

        Un fichier absent passe en NO_FILE ; un fichier reapparu revient en
        UNCHECKED. Les deux changements suivent FILE_TRANSITIONS.

        Raises:
            SuffixChangeError: Si l'extension du nouveau chemin differe.
            InvalidTransitionError: Si le fichier disparait pendant un deplacement.
        """
        path = Path(path)
        if path.suffix != self._filename_suffix:
            raise SuffixChangeError(self._filename_suffix, path.suffix)
        self._path = path

        try:
            self.file_size = path.stat().st_size
            self.exists = True
        except FileNotFoundError:
            logger.debug(f"Record rattache a un chemin inexistant: {path}")
            self.exists = False
            self.file_size = NO_FILE_SIZE
        except OSError as e:
            logger.warning(f"Impossible de lire la taille de {path}: {e}")
            self.exists = False
            self.file_size = NO_FILE_SIZE

        if self.exists and self._file_status == FileStatus.NO_FILE:
            self._advance_file(FileStatus.UNCHECKED)
        elif not self.exists and self._file_status != FileStatus.NO_FILE:
            self._advance_file(FileStatus.NO_FILE)

    def refresh(self) -> None:
        """Relit l'existence et la taille du fichier courant."""
        self.set_path(self._path)

    # ------------------------------------------------------------------
    # Champs issus du nom de fichier
    # ------------------------------------------------------------------

    def set_filename_show(self, show_name: Optional[str]) -> None:
        self.filename_show = show_name or ""

    def set_filename_season(self, raw: Optional[str]) -> None:
        """Stocke la saison brute ; UNKNOWN_NUMBER si non numerique."""
        self.filename_season = raw or ""
        self.season_num = parse_number(raw)

    def set_filename_episode(self, raw: Optional[str]) -> None:
        """Stocke l'episode brut ; UNKNOWN_NUMBER si non numerique."""
        self.filename_episode = raw or ""
        self.episode_num = parse_number(raw)

    def set_filename_resolution(self, raw: Optional[str]) -> None:
        self.filename_resolution = raw or ""

    # ------------------------------------------------------------------
    # Statut de parsing
    # ------------------------------------------------------------------

    @property
    def parse_status(self) -> ParseStatus:
        return self._parse_status

    def set_parsed(self) -> None:
        self._parse_status = ParseStatus.PARSED

    def set_fail_to_parse(self) -> None:
        self._parse_status = ParseStatus.BAD_PARSE

    def was_parsed(self) -> bool:
        return self._parse_status == ParseStatus.PARSED

    # ------------------------------------------------------------------
    # Statut serie
    # ------------------------------------------------------------------

    @property
    def series_status(self) -> SeriesStatus:
        return self._series_status

    def _advance_series(self, target: SeriesStatus) -> None:
        if target not in SERIES_TRANSITIONS[self._series_status]:
            raise InvalidTransitionError("series_status", self._series_status, target)
        self._series_status = target
        self._invalidate_basename()

    def is_ready(self) -> bool:
        """True quand l'episode est resolu et le renommage possible."""
        return self._series_status == SeriesStatus.GOT_LISTINGS and self.episode is not None

    def set_show(self, show: Show) -> None:
        """
        Enregistre le resultat de la resolution de la serie.

        FailedShow -> UNFOUND, sinon GOT_SHOW. Doit preceder tout appel aux listings.
        """
        target = SeriesStatus.UNFOUND if show.is_failed else SeriesStatus.GOT_SHOW
        self._advance_series(target)
        self.show = show
        self.episode = None

    def listings_complete(self, resolver: "IShowResolver") -> None:
        """
        Recherche l'episode (saison, episode) dans les listings de la serie.

        Episode absent -> NO_LISTINGS (issue normale). Episode present -> GOT_LISTINGS.

        Raises:
            InvalidTransitionError: Si la serie n'a pas ete resolue (GOT_SHOW requis).
        """
        if self._series_status != SeriesStatus.GOT_SHOW or self.show is None or self.show.is_failed:
            previous = self._series_status
            logger.critical(
                f"Erreur interne: listings recus sans serie resolue pour {self} "
                f"(statut {previous.value})"
            )
            self._series_status = SeriesStatus.UNFOUND
            self.episode = None
            self._invalidate_basename()
            raise InvalidTransitionError(
                "series_status", previous, SeriesStatus.GOT_LISTINGS, "serie non resolue"
            )

        episode = resolver.resolve_episode(self.show, self.season_num, self.episode_num)
        if episode is None:
            logger.warning(
                f"Saison {self.season_num}, episode {self.episode_num} introuvable "
                f"pour la serie '{self.filename_show}'"
            )
            self._advance_series(SeriesStatus.NO_LISTINGS)
        else:
            self.episode = episode
            self._advance_series(SeriesStatus.GOT_LISTINGS)

    def listings_failed(self) -> None:
        """Le telechargement des listings a echoue : NO_LISTINGS quel que soit l'etat."""
        if self.show is None:
            logger.warning(f"Listings en echec sans serie resolue pour {self}")
        elif self.show.is_failed:
            logger.warning(f"Listings en echec pour une serie introuvable: {self}")
        self._series_status = SeriesStatus.NO_LISTINGS
        self.episode = None
        self._invalidate_basename()

    def reset_lookup(self) -> None:
        """Remet la resolution a NOT_STARTED (nouvelle demande explicite de l'appelant)."""
        self._series_status = SeriesStatus.NOT_STARTED
        self.show = None
        self.episode = None
        self._invalidate_basename()

    # ------------------------------------------------------------------
    # Statut fichier (modifie exclusivement par l'orchestrateur)
    # ------------------------------------------------------------------

    @property
    def file_status(self) -> FileStatus:
        return self._file_status

    def _advance_file(self, target: FileStatus) -> None:
        if target not in FILE_TRANSITIONS[self._file_status]:
            raise InvalidTransitionError("file_status", self._file_status, target)
        self._file_status = target

    def set_moving(self) -> None:
        self._advance_file(FileStatus.MOVING)

    def set_renamed(self, new_path: Optional[Path] = None) -> None:
        self._advance_file(FileStatus.RENAMED)
        if new_path is not None:
            self.set_path(new_path)

    def set_fail_to_move(self) -> None:
        self._advance_file(FileStatus.FAIL_TO_MOVE)

    def set_does_not_exist(self) -> None:
        self._advance_file(FileStatus.NO_FILE)
        self.exists = False
        self.file_size = NO_FILE_SIZE

    # ------------------------------------------------------------------
    # Nom propose
    # ------------------------------------------------------------------

    @property
    def cached_basename(self) -> Optional[str]:
        return self._cached_basename

    def cached_basename_for(self, cache_key: tuple) -> Optional[str]:
        """Nom memorise s'il a ete calcule avec les memes entrees."""
        if self._cache_key == cache_key:
            return self._cached_basename
        return None

    def remember_basename(self, basename: str, cache_key: tuple) -> None:
        """Memorise le dernier nom calcule (GOT_LISTINGS uniquement)."""
        if self._series_status != SeriesStatus.GOT_LISTINGS:
            raise InvalidTransitionError(
                "series_status", self._series_status, SeriesStatus.GOT_LISTINGS,
                "nom de renommage sans listings",
            )
        self._cached_basename = basename
        self._cache_key = cache_key

    def _invalidate_basename(self) -> None:
        self._cached_basename = None
        self._cache_key = None

    def compute_display_text(
        self,
        preferences: "UserPreferences",
        engine: "RenameTemplateEngine",
    ) -> str:
        """
        Texte a afficher pour ce record selon son statut serie.

        Fonction totale sur SeriesStatus : chaque statut est traite explicitement.
        """
        status = self._series_status
        if status == SeriesStatus.NOT_STARTED:
            return ADDED_PLACEHOLDER
        if status == SeriesStatus.GOT_SHOW:
            return f"<{self.show.name if self.show else self.filename_show}>"
        if status == SeriesStatus.UNFOUND:
            return BROKEN_PLACEHOLDER
        if status == SeriesStatus.NO_LISTINGS:
            return DOWNLOADING_FAILED_PLACEHOLDER
        if status == SeriesStatus.GOT_LISTINGS:
            return engine.replacement_text(self, preferences)
        logger.critical(f"Erreur interne: statut serie non gere {status} pour {self}")
        raise InvalidTransitionError("series_status", status, status, "statut non gere")

    def __str__(self) -> str:
        return (
            f"EpisodeRecord {{ serie: {self.filename_show}, saison: {self.season_num}, "
            f"episode: {self.episode_num}, fichier: {self.filename} }}"
        )

    def __repr__(self) -> str:
        return (
            f"EpisodeRecord(path={str(self._path)!r}, series_status={self._series_status.value}, "
            f"file_status={self._file_status.value})"
        )
