"""
Utilitaires partages pour les commandes CLI de TVRenamer.

Ce module fournit :
- console : instance Rich Console partagee
- suppress_loguru : context manager pour desactiver/reactiver les logs loguru
- with_container : decorateur injectant un container
- status_style : couleur Rich associee au statut d'un record
"""

from contextlib import contextmanager
from functools import wraps

from loguru import logger as loguru_logger
from rich.console import Console

from tvrenamer.container import Container
from tvrenamer.core.entities.episode_record import EpisodeRecord, FileStatus, SeriesStatus

console = Console()


@contextmanager
def suppress_loguru():
    """
    Context manager pour desactiver les logs loguru pendant l'affichage Rich.

    Usage:
        with suppress_loguru():
            console.print(...)
    """
    loguru_logger.disable("tvrenamer")
    try:
        yield
    finally:
        loguru_logger.enable("tvrenamer")


def with_container():
    """
    Decorateur qui injecte un container en premier argument.

    Usage:
        @with_container()
        async def my_command(container, ...):
            config = container.config()
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            container = Container()
            return await func(container, *args, **kwargs)
        return wrapper
    return decorator


_SERIES_STYLES = {
    SeriesStatus.NOT_STARTED: "dim",
    SeriesStatus.GOT_SHOW: "cyan",
    SeriesStatus.UNFOUND: "red",
    SeriesStatus.GOT_LISTINGS: "green",
    SeriesStatus.NO_LISTINGS: "yellow",
}

_FILE_LABELS = {
    FileStatus.UNCHECKED: "",
    FileStatus.NO_FILE: "[red]absent[/red]",
    FileStatus.MOVING: "[cyan]en cours[/cyan]",
    FileStatus.RENAMED: "[green]renomme[/green]",
    FileStatus.FAIL_TO_MOVE: "[red]echec[/red]",
}


def status_style(record: EpisodeRecord) -> str:
    """Style Rich du nom propose selon le statut serie."""
    return _SERIES_STYLES[record.series_status]


def file_status_label(record: EpisodeRecord) -> str:
    """Libelle Rich du statut fichier."""
    return _FILE_LABELS[record.file_status]
