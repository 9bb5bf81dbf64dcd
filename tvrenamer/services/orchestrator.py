"""
Orchestrateur des deplacements par lots.

Execute les renommages/deplacements d'une selection de records avec :
- Detection des conflits avant toute modification du systeme de fichiers
- Pool de workers borne (1 par defaut : deplacements serialises)
- Un seul deplacement actif par repertoire de destination et par record
- Progression par fichier (octets) et progression globale du lot
- Poursuite du lot en cas d'echec d'un fichier
- Arret propre : plus de nouveau travail, les deplacements en cours se terminent

Utilisation:
    orchestrator = MoveOrchestrator(file_mover, engine, preferences, on_progress=print)
    report = await orchestrator.run(session.ready_records())
    for rejection in report.conflicts:
        print(rejection.reason)
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import AsyncIterator, Callable, Iterable, Optional

from loguru import logger

from tvrenamer.core.entities.episode_record import EpisodeRecord, FileStatus
from tvrenamer.core.errors import MoveConflictError, OrchestratorClosedError
from tvrenamer.core.ports.file_mover import IFileMover
from tvrenamer.core.value_objects.preferences import UserPreferences
from tvrenamer.services.renamer import RenameTemplateEngine


class MoveState(Enum):
    """Etat d'un element du lot."""

    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_MOVE_STATES = frozenset({MoveState.COMPLETED, MoveState.FAILED, MoveState.CANCELLED})


@dataclass
class MoveItem:
    """
    Deplacement d'un record au sein d'un lot.

    Attributs:
        record: Record concerne (reference, non possede)
        source: Chemin du fichier au moment de la planification
        destination: Chemin cible complet
        state: Etat courant (QUEUED -> RUNNING -> COMPLETED | FAILED)
        bytes_moved: Octets deja transferes
        total_bytes: Taille totale du fichier
        error: Message d'erreur si FAILED
        conflict: Conflit detecte au moment de l'execution
    """

    record: EpisodeRecord
    source: Path
    destination: Path
    state: MoveState = MoveState.QUEUED
    bytes_moved: int = 0
    total_bytes: int = 0
    error: Optional[str] = None
    conflict: Optional[MoveConflictError] = None

    @property
    def fraction(self) -> float:
        """Progression de ce fichier (0.0 a 1.0)."""
        if self.state == MoveState.COMPLETED:
            return 1.0
        if self.total_bytes <= 0:
            return 0.0
        return min(1.0, self.bytes_moved / self.total_bytes)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_MOVE_STATES


@dataclass
class MoveRejection:
    """
    Record ecarte avant execution.

    Attributs:
        record: Record ecarte (non modifie)
        reason: Message affichable
        destination: Destination calculee, si disponible
        conflict: Conflit de destination, le cas echeant
    """

    record: EpisodeRecord
    reason: str
    destination: Optional[Path] = None
    conflict: Optional[MoveConflictError] = None


@dataclass
class MovePlan:
    """Resultat de la planification : elements acceptes et records ecartes."""

    items: list[MoveItem] = field(default_factory=list)
    rejected: list[MoveRejection] = field(default_factory=list)

    @property
    def conflicts(self) -> list[MoveRejection]:
        return [r for r in self.rejected if r.conflict is not None]


@dataclass
class BatchReport:
    """Bilan d'un lot."""

    completed: list[MoveItem] = field(default_factory=list)
    failed: list[MoveItem] = field(default_factory=list)
    cancelled: list[MoveItem] = field(default_factory=list)
    rejected: list[MoveRejection] = field(default_factory=list)

    @property
    def conflicts(self) -> list[MoveRejection]:
        """Conflits detectes avant execution (record non modifie)."""
        return [r for r in self.rejected if r.conflict is not None]

    @property
    def success_count(self) -> int:
        return len(self.completed)

    @property
    def total(self) -> int:
        return len(self.completed) + len(self.failed) + len(self.cancelled)


ProgressCallback = Callable[[float], None]
ItemCallback = Callable[[MoveItem], None]
RejectionCallback = Callable[[MoveRejection], None]


class DirectoryLocks:
    """
    Verrous par repertoire de destination, partageables entre orchestrateurs.

    Un verrou n'existe que tant qu'un element le detient ou l'attend.
    """

    def __init__(self) -> None:
        self._locks: dict[Path, asyncio.Lock] = {}
        self._users: dict[Path, int] = {}

    @asynccontextmanager
    async def hold(self, directory: Path) -> AsyncIterator[None]:
        lock = self._locks.setdefault(directory, asyncio.Lock())
        self._users[directory] = self._users.get(directory, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[directory] -= 1
            if not self._users[directory]:
                del self._users[directory]
                del self._locks[directory]

    def __len__(self) -> int:
        return len(self._locks)


class MoveOrchestrator:
    """
    Execute les deplacements approuves avec concurrence bornee.

    Les statuts fichier des records ne sont modifies que depuis la boucle
    asyncio de l'orchestrateur ; les appels bloquants au systeme de
    fichiers sont executes dans un ThreadPoolExecutor.
    """

    def __init__(
        self,
        file_mover: IFileMover,
        engine: RenameTemplateEngine,
        preferences: UserPreferences,
        on_progress: Optional[ProgressCallback] = None,
        on_item_progress: Optional[ItemCallback] = None,
        on_item_done: Optional[ItemCallback] = None,
        on_rejected: Optional[RejectionCallback] = None,
        directory_locks: Optional[DirectoryLocks] = None,
    ) -> None:
        """
        Args:
            file_mover: Adaptateur de deplacement de fichiers
            engine: Moteur de renommage (calcul des destinations)
            preferences: Instantane des preferences
            on_progress: Recoit la progression globale du lot (0.0 a 1.0)
            on_item_progress: Appele a chaque mise a jour d'octets d'un element
            on_item_done: Appele quand un element atteint un etat terminal
            on_rejected: Appele pour chaque record ecarte (conflit, source absente...)
            directory_locks: Verrous de repertoire partages avec d'autres
                orchestrateurs (registre propre si absent)
        """
        self._fs = file_mover
        self._engine = engine
        self._prefs = preferences
        self._on_progress = on_progress
        self._on_item_progress = on_item_progress
        self._on_item_done = on_item_done
        self._on_rejected = on_rejected

        self._closed = False
        self._progress = 0.0
        self._items: dict[Path, MoveItem] = {}
        self._in_flight: set[Path] = set()
        self._dir_locks = directory_locks if directory_locks is not None else DirectoryLocks()

    # ------------------------------------------------------------------
    # Etat public
    # ------------------------------------------------------------------

    @property
    def progress(self) -> float:
        """Derniere progression globale publiee."""
        return self._progress

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def directory_locks(self) -> DirectoryLocks:
        return self._dir_locks

    @property
    def in_flight(self) -> frozenset[Path]:
        """Sources des elements soumis et non termines."""
        return frozenset(self._in_flight)

    def item_progress(self, source: Path) -> Optional[MoveItem]:
        """Element (et sa progression en octets) pour un chemin source."""
        return self._items.get(Path(source))

    def shutdown(self) -> None:
        """
        Arrete l'orchestrateur.

        Aucun nouveau travail n'est accepte ; les elements en attente sont
        annules et les deplacements en cours se terminent normalement.
        """
        if not self._closed:
            logger.info("Arret de l'orchestrateur demande")
        self._closed = True

    # ------------------------------------------------------------------
    # Planification
    # ------------------------------------------------------------------

    def plan(self, records: Iterable[EpisodeRecord]) -> MovePlan:
        """
        Calcule les destinations et ecarte les records non deplacables.

        Aucune modification du systeme de fichiers n'est faite ici. Un record
        est ecarte si :
        - ses listings ne sont pas resolus
        - un deplacement est deja en cours pour lui
        - son fichier source n'existe plus
        - sa destination est deja occupee par un autre fichier (conflit)
        - sa destination est deja reservee par un autre record du lot (conflit)
        """
        plan = MovePlan()
        claimed: dict[Path, EpisodeRecord] = {}
        seen_sources: set[Path] = set()

        for record in records:
            source = record.path
            if source in seen_sources:
                continue
            seen_sources.add(source)

            if not record.is_ready():
                self._reject(plan, MoveRejection(record, f"{record.filename}: episode non resolu"))
                continue

            if record.file_status == FileStatus.MOVING or source in self._in_flight:
                self._reject(plan, MoveRejection(record, f"{record.filename}: deplacement deja en cours"))
                continue

            if not self._fs.exists(source):
                if record.file_status != FileStatus.NO_FILE:
                    record.set_does_not_exist()
                self._reject(plan, MoveRejection(record, f"{source}: fichier introuvable"))
                continue

            if record.file_status == FileStatus.NO_FILE:
                # Fichier apparu depuis la creation du record
                record.refresh()
                if record.file_status == FileStatus.NO_FILE:
                    self._reject(plan, MoveRejection(record, f"{source}: fichier illisible"))
                    continue

            try:
                destination = self._engine.destination_path(record, self._prefs)
            except ValueError as e:
                self._reject(plan, MoveRejection(record, f"{record.filename}: {e}"))
                continue

            if destination.suffix != record.filename_suffix:
                self._reject(plan, MoveRejection(
                    record, f"{record.filename}: nom propose invalide ({destination.name})", destination
                ))
                continue

            if destination in claimed:
                conflict = MoveConflictError(
                    source, destination, "est deja la destination d'un autre fichier du lot"
                )
                self._reject(plan, MoveRejection(record, str(conflict), destination, conflict))
                continue

            if self._fs.exists(destination) and not self._fs.is_same_file(source, destination):
                conflict = MoveConflictError(source, destination)
                self._reject(plan, MoveRejection(record, str(conflict), destination, conflict))
                continue

            claimed[destination] = record
            plan.items.append(MoveItem(record=record, source=source, destination=destination))

        return plan

    def _reject(self, plan: MovePlan, rejection: MoveRejection) -> None:
        if rejection.conflict is not None:
            logger.warning(rejection.reason)
        else:
            logger.info(f"Fichier ecarte: {rejection.reason}")
        plan.rejected.append(rejection)
        if self._on_rejected:
            self._on_rejected(rejection)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run(self, records: Iterable[EpisodeRecord]) -> BatchReport:
        """Planifie puis execute un lot."""
        if self._closed:
            raise OrchestratorClosedError("L'orchestrateur n'accepte plus de lot")
        return await self.execute(self.plan(records))

    async def execute(self, plan: MovePlan) -> BatchReport:
        """
        Execute un lot planifie.

        La soumission ne fait qu'enregistrer les elements ; les deplacements
        sont executes par le pool. Retourne quand tous les elements sont
        dans un etat terminal.

        Raises:
            OrchestratorClosedError: Si shutdown() a deja ete appele.
        """
        if self._closed:
            raise OrchestratorClosedError("L'orchestrateur n'accepte plus de lot")

        report = BatchReport(rejected=list(plan.rejected))
        items: list[MoveItem] = []
        for item in plan.items:
            if item.source in self._in_flight:
                rejection = MoveRejection(item.record, f"{item.source.name}: deplacement deja en cours")
                self._reject(plan, rejection)
                report.rejected.append(rejection)
                continue
            self._in_flight.add(item.source)
            self._items[item.source] = item
            items.append(item)

        total = len(items)
        logger.info(f"Lot de {total} deplacement(s), {self._prefs.move_workers} worker(s)")

        completions: asyncio.Queue = asyncio.Queue()
        reporter = asyncio.create_task(self._report_progress(completions, total))

        loop = asyncio.get_running_loop()
        slots = asyncio.Semaphore(self._prefs.move_workers)
        with ThreadPoolExecutor(
            max_workers=self._prefs.move_workers, thread_name_prefix="tvrenamer-move"
        ) as executor:
            await asyncio.gather(
                *(self._run_item(item, loop, executor, slots, completions) for item in items)
            )
        await reporter

        for item in items:
            if item.state == MoveState.COMPLETED:
                report.completed.append(item)
            elif item.state == MoveState.CANCELLED:
                report.cancelled.append(item)
            else:
                report.failed.append(item)

        logger.info(
            f"Lot termine: {len(report.completed)} reussi(s), {len(report.failed)} echec(s), "
            f"{len(report.cancelled)} annule(s), {len(report.rejected)} ecarte(s)"
        )
        return report

    async def _run_item(
        self,
        item: MoveItem,
        loop: asyncio.AbstractEventLoop,
        executor: ThreadPoolExecutor,
        slots: asyncio.Semaphore,
        completions: asyncio.Queue,
    ) -> None:
        try:
            async with self._dir_locks.hold(item.destination.parent):
                async with slots:
                    if self._closed:
                        item.state = MoveState.CANCELLED
                        logger.info(f"Deplacement annule: {item.source.name}")
                    else:
                        try:
                            await self._move_item(item, loop, executor)
                        except Exception as e:
                            self._fail_unexpected(item, e)
        finally:
            self._in_flight.discard(item.source)
            completions.put_nowait(item)
            if self._on_item_done:
                self._on_item_done(item)

    async def _move_item(
        self,
        item: MoveItem,
        loop: asyncio.AbstractEventLoop,
        executor: ThreadPoolExecutor,
    ) -> None:
        record = item.record
        item.state = MoveState.RUNNING

        # Nouvelle verification sous le verrou du repertoire : un autre lot
        # a pu occuper la destination depuis la planification
        if self._fs.exists(item.destination):
            if self._fs.is_same_file(item.source, item.destination):
                logger.info(f"Deja en place: {item.destination}")
                record.set_moving()
                record.set_renamed(item.destination)
                item.total_bytes = item.bytes_moved = record.file_size
                item.state = MoveState.COMPLETED
                return
            item.conflict = MoveConflictError(item.source, item.destination)
            item.error = str(item.conflict)
            item.state = MoveState.FAILED
            logger.warning(item.error)
            return

        record.set_moving()
        item.total_bytes = max(record.file_size, 0)
        logger.info(f"Deplacement de '{item.source}' vers '{item.destination}'")

        directory_ok = await loop.run_in_executor(
            executor, self._fs.ensure_directory, item.destination.parent
        )
        if not directory_ok:
            item.error = f"Impossible de creer le repertoire {item.destination.parent}"
            item.state = MoveState.FAILED
            record.set_fail_to_move()
            logger.error(item.error)
            return

        def sink(done: int, total: int) -> None:
            # Appele depuis le thread du worker
            loop.call_soon_threadsafe(self._update_item_bytes, item, done, total)

        try:
            moved = await loop.run_in_executor(
                executor, self._fs.move, item.source, item.destination, sink
            )
        except MoveConflictError as e:
            # Destination occupee entre la verification et le deplacement
            item.conflict = e
            item.error = str(e)
            moved = False
        except Exception as e:
            logger.exception(f"Erreur inattendue lors du deplacement de {item.source}")
            item.error = str(e)
            moved = False

        if moved:
            record.set_renamed(item.destination)
            item.bytes_moved = item.total_bytes
            item.state = MoveState.COMPLETED
            logger.info(f"Deplace: {item.source} -> {item.destination}")
        else:
            item.error = item.error or f"Echec du deplacement de {item.source}"
            item.state = MoveState.FAILED
            record.set_fail_to_move()
            if item.conflict:
                logger.warning(item.error)
            else:
                logger.error(item.error)

    def _fail_unexpected(self, item: MoveItem, error: Exception) -> None:
        """Isole une erreur inattendue : seul cet element echoue."""
        logger.exception(f"Erreur interne lors du traitement de {item.source}")
        item.error = str(error) or type(error).__name__
        item.state = MoveState.FAILED
        if item.record.file_status == FileStatus.MOVING:
            item.record.set_fail_to_move()

    def _update_item_bytes(self, item: MoveItem, done: int, total: int) -> None:
        if item.is_terminal:
            return
        # Progression croissante uniquement
        item.total_bytes = total
        item.bytes_moved = max(item.bytes_moved, min(done, total))
        if self._on_item_progress:
            self._on_item_progress(item)

    async def _report_progress(self, completions: asyncio.Queue, total: int) -> None:
        """Publie la progression globale a chaque element termine."""
        if total == 0:
            self._publish(1.0)
            return
        self._publish(0.0)
        done = 0
        while done < total:
            await completions.get()
            done += 1
            self._publish(done / total)

    def _publish(self, fraction: float) -> None:
        self._progress = fraction
        logger.debug(f"Progression du lot: {fraction:.0%}")
        if self._on_progress:
            self._on_progress(fraction)
