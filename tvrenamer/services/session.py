"""
Session de renommage : registre des fichiers suivis et boucle de coordination.

Les resultats du resolveur arrivent de maniere asynchrone. Plutot que de
modifier les records depuis les taches de recherche, chaque resultat est
poste comme evenement dans une file asyncio ; une boucle unique consomme
ces evenements et reste le seul ecrivain des champs serie des records.

Utilisation:
    async with RenameSession(resolver) as session:
        record = session.add_file(path, parsed)
        await session.wait_idle()
        print(record.series_status)
"""

import asyncio
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from loguru import logger

from tvrenamer.core.entities.episode_record import EpisodeRecord, SeriesStatus
from tvrenamer.core.entities.media import Show
from tvrenamer.core.errors import TVRenamerError
from tvrenamer.core.ports.show_resolver import IShowResolver
from tvrenamer.core.value_objects.parsed_info import ParsedFilename
from tvrenamer.services.show_store import ShowStore

RecordListener = Callable[[EpisodeRecord], None]


@dataclass(frozen=True)
class LookupRequested:
    """Demande de resolution pour un record."""

    path: Path
    generation: int


@dataclass(frozen=True)
class RequeryRequested:
    """Nouvelle resolution demandee pour un record deja suivi."""

    path: Path


@dataclass(frozen=True)
class ShowResolved:
    """La recherche de la serie est terminee (Show ou FailedShow)."""

    path: Path
    generation: int
    show: Show


@dataclass(frozen=True)
class ListingsLoaded:
    """Les listings de la serie sont disponibles."""

    path: Path
    generation: int


@dataclass(frozen=True)
class ListingsFailed:
    """Le chargement des listings a echoue."""

    path: Path
    generation: int
    error: str


@dataclass(frozen=True)
class _Shutdown:
    pass


SessionEvent = Union[
    LookupRequested, RequeryRequested, ShowResolved, ListingsLoaded, ListingsFailed, _Shutdown
]

_TERMINAL_SERIES = frozenset({
    SeriesStatus.UNFOUND,
    SeriesStatus.GOT_LISTINGS,
    SeriesStatus.NO_LISTINGS,
})


class RenameSession:
    """
    Registre des EpisodeRecord d'une session et boucle de coordination.

    Le registre est protege par un verrou : des fichiers peuvent etre
    ajoutes depuis un autre thread pendant qu'un lot est execute. Les
    evenements postes depuis un autre thread passent par
    call_soon_threadsafe.
    """

    def __init__(
        self,
        resolver: IShowResolver,
        on_update: Optional[RecordListener] = None,
    ) -> None:
        """
        Args:
            resolver: Resolveur de series (enveloppe dans un ShowStore si besoin)
            on_update: Appele apres chaque modification d'un record
        """
        self._store = resolver if isinstance(resolver, ShowStore) else ShowStore(resolver)
        self._records: dict[Path, EpisodeRecord] = {}
        self._records_lock = threading.Lock()
        self._generations: dict[Path, int] = {}
        self._listeners: list[RecordListener] = [on_update] if on_update else []

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._events: Optional[asyncio.Queue] = None
        self._runner: Optional[asyncio.Task] = None
        self._lookups: set[asyncio.Task] = set()
        self._pending = 0
        self._idle: Optional[asyncio.Event] = None
        # Evenements postes avant start()
        self._backlog: list[SessionEvent] = []

    # ------------------------------------------------------------------
    # Cycle de vie
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Demarre la boucle de coordination sur la boucle asyncio courante."""
        if self._runner is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._events = asyncio.Queue()
        self._idle = asyncio.Event()
        if self._pending == 0:
            self._idle.set()
        for event in self._backlog:
            self._events.put_nowait(event)
        self._backlog.clear()
        self._runner = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Arrete la boucle et annule les recherches en cours."""
        if self._runner is None:
            return
        self._post(_Shutdown())
        await self._runner
        self._runner = None
        for task in list(self._lookups):
            task.cancel()
        if self._lookups:
            await asyncio.gather(*self._lookups, return_exceptions=True)

    async def __aenter__(self) -> "RenameSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def wait_idle(self) -> None:
        """Attend que toutes les resolutions demandees soient terminees."""
        if self._idle is None:
            raise RuntimeError("La session n'est pas demarree")
        await self._idle.wait()

    # ------------------------------------------------------------------
    # Registre
    # ------------------------------------------------------------------

    def add_listener(self, listener: RecordListener) -> None:
        self._listeners.append(listener)

    def add_file(self, path: Path, parsed: Optional[ParsedFilename] = None) -> EpisodeRecord:
        """
        Ajoute un fichier a la session et demande sa resolution.

        Un chemin deja suivi retourne le record existant sans nouvelle demande.

        Args:
            path: Chemin du fichier
            parsed: Informations extraites du nom (None = non parse)

        Returns:
            Le record de ce fichier.
        """
        path = Path(path)
        with self._records_lock:
            existing = self._records.get(path)
            if existing is not None:
                return existing
            record = EpisodeRecord(path)
            self._records[path] = record

        if parsed is None or not parsed.parsed:
            logger.warning(f"Nom de fichier non reconnu: {path.name}")
            record.set_fail_to_parse()
            if parsed is not None:
                self._fill_filename_fields(record, parsed)
            self._notify(record)
            return record

        self._fill_filename_fields(record, parsed)
        record.set_parsed()
        self._request_lookup(record)
        self._notify(record)
        return record

    def requery(self, path: Path) -> EpisodeRecord:
        """
        Relance la resolution d'un record (demande explicite de l'appelant).

        La remise a zero du record est faite par la boucle de coordination ;
        les recherches et listings memorises pour ce nom sont oublies.

        Raises:
            KeyError: Si le chemin n'est pas suivi.
        """
        record = self._get_or_raise(path)
        self._pending += 1
        if self._idle is not None:
            self._idle.clear()
        self._post(RequeryRequested(record.path))
        return record

    def discard(self, path: Path) -> Optional[EpisodeRecord]:
        """Retire un record de la session."""
        with self._records_lock:
            return self._records.pop(Path(path), None)

    def get(self, path: Path) -> Optional[EpisodeRecord]:
        with self._records_lock:
            return self._records.get(Path(path))

    def records(self) -> list[EpisodeRecord]:
        """Copie de la liste des records (ordre d'ajout)."""
        with self._records_lock:
            return list(self._records.values())

    def ready_records(self) -> list[EpisodeRecord]:
        return [record for record in self.records() if record.is_ready()]

    def __len__(self) -> int:
        with self._records_lock:
            return len(self._records)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        with self._records_lock:
            return Path(path) in self._records

    @property
    def resolver(self) -> ShowStore:
        return self._store

    # ------------------------------------------------------------------
    # Evenements
    # ------------------------------------------------------------------

    def _get_or_raise(self, path: Path) -> EpisodeRecord:
        record = self.get(path)
        if record is None:
            raise KeyError(f"Fichier non suivi: {path}")
        return record

    @staticmethod
    def _fill_filename_fields(record: EpisodeRecord, parsed: ParsedFilename) -> None:
        record.set_filename_show(parsed.show)
        record.set_filename_season(parsed.season)
        record.set_filename_episode(parsed.episode)
        record.set_filename_resolution(parsed.resolution)

    def _request_lookup(self, record: EpisodeRecord) -> None:
        generation = self._generations.get(record.path, 0) + 1
        self._generations[record.path] = generation
        self._pending += 1
        if self._idle is not None:
            self._idle.clear()
        self._post(LookupRequested(record.path, generation))

    def _post(self, event: SessionEvent) -> None:
        """Poste un evenement vers la boucle de coordination, depuis n'importe quel thread."""
        if self._loop is None or self._events is None:
            self._backlog.append(event)
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._events.put_nowait(event)
        else:
            self._loop.call_soon_threadsafe(self._events.put_nowait, event)

    async def _run(self) -> None:
        assert self._events is not None
        while True:
            event = await self._events.get()
            if isinstance(event, _Shutdown):
                break
            try:
                self._handle(event)
            except Exception:
                logger.exception(f"Erreur lors du traitement de l'evenement {event}")
                self._finish()

    def _handle(self, event: SessionEvent) -> None:
        record = self.get(event.path)
        if isinstance(event, RequeryRequested):
            if record is None:
                self._finish()
            else:
                self._restart_lookup(record)
            return

        if record is None or self._generations.get(event.path) != event.generation:
            # Une demande obsolete ne produira plus d'autre evenement
            logger.debug(f"Evenement obsolete ignore: {event}")
            self._finish()
            return

        if isinstance(event, LookupRequested):
            self._spawn(self._lookup_show(event.path, event.generation, record.filename_show))
        elif isinstance(event, ShowResolved):
            self._apply_show(record, event)
        elif isinstance(event, ListingsLoaded):
            try:
                record.listings_complete(self._store)
            except TVRenamerError:
                logger.exception(f"Etat incoherent pour {record}")
            self._notify(record)
            self._finish()
        elif isinstance(event, ListingsFailed):
            logger.warning(f"Listings indisponibles pour {record}: {event.error}")
            record.listings_failed()
            self._notify(record)
            self._finish()

    def _restart_lookup(self, record: EpisodeRecord) -> None:
        previous = record.show
        record.reset_lookup()
        # Les resultats de la demande precedente deviennent obsoletes
        generation = self._generations.get(record.path, 0) + 1
        self._generations[record.path] = generation
        self._notify(record)
        self._spawn(self._requery_show(record.path, generation, record.filename_show, previous))

    def _apply_show(self, record: EpisodeRecord, event: ShowResolved) -> None:
        record.set_show(event.show)
        self._notify(record)
        if record.series_status in _TERMINAL_SERIES:
            self._finish()
            return
        self._spawn(self._load_listings(event.path, event.generation, event.show))

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._lookups.add(task)
        task.add_done_callback(self._lookups.discard)

    async def _lookup_show(self, path: Path, generation: int, name: str) -> None:
        show = await self._store.resolve_show(name)
        self._post(ShowResolved(path, generation, show))

    async def _requery_show(
        self, path: Path, generation: int, name: str, previous: Optional[Show]
    ) -> None:
        try:
            await self._store.forget(name, previous)
        except Exception as e:
            logger.warning(f"Impossible d'oublier la recherche '{name}': {e}")
        await self._lookup_show(path, generation, name)

    async def _load_listings(self, path: Path, generation: int, show: Show) -> None:
        try:
            await self._store.load_listings(show)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._post(ListingsFailed(path, generation, str(e) or type(e).__name__))
        else:
            self._post(ListingsLoaded(path, generation))

    def _finish(self) -> None:
        if self._pending > 0:
            self._pending -= 1
        if self._pending == 0 and self._idle is not None:
            self._idle.set()

    def _notify(self, record: EpisodeRecord) -> None:
        for listener in self._listeners:
            try:
                listener(record)
            except Exception:
                logger.exception(f"Erreur dans un observateur de session pour {record}")
