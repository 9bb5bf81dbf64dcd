"""
Magasin des series resolues.

Plusieurs fichiers d'une meme serie declenchent une seule recherche
aupres du fournisseur : les demandes concurrentes pour un meme nom
partagent la meme tache asyncio.
"""

import asyncio
from typing import Optional

from loguru import logger

from tvrenamer.core.entities.media import Episode, FailedShow, Show
from tvrenamer.core.ports.show_resolver import IShowResolver


def normalize_show_name(name: str) -> str:
    """Cle de regroupement des recherches ("The  Office " -> "the office")."""
    return " ".join(name.lower().split())


class ShowStore(IShowResolver):
    """
    Resolveur avec deduplication des recherches.

    Decore un IShowResolver : une recherche par nom normalise, un chargement
    de listings par serie. Les echecs de recherche de serie deviennent des
    FailedShow ; les echecs de listings sont propages et ne sont pas
    memorises (une nouvelle demande relance le chargement).
    """

    def __init__(self, resolver: IShowResolver) -> None:
        self._resolver = resolver
        self._shows: dict[str, asyncio.Task] = {}
        self._listings: dict[str, asyncio.Task] = {}

    async def resolve_show(self, name: str) -> Show:
        key = normalize_show_name(name)
        task = self._shows.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch_show(name))
            self._shows[key] = task
        return await asyncio.shield(task)

    async def _fetch_show(self, name: str) -> Show:
        try:
            show = await self._resolver.resolve_show(name)
        except Exception as e:
            logger.warning(f"Recherche de la serie '{name}' en echec: {e}")
            return FailedShow.for_name(name)
        if show.is_failed:
            logger.info(f"Aucune serie trouvee pour '{name}'")
        else:
            logger.debug(f"Serie '{name}' resolue: {show.name} ({show.key})")
        return show

    async def load_listings(self, show: Show) -> None:
        task = self._listings.get(show.key)
        if task is None or (task.done() and (task.cancelled() or task.exception() is not None)):
            task = asyncio.ensure_future(self._resolver.load_listings(show))
            self._listings[show.key] = task
        await asyncio.shield(task)

    def resolve_episode(self, show: Show, season: int, episode: int) -> Optional[Episode]:
        return self._resolver.resolve_episode(show, season, episode)

    async def forget(self, name: str, show: Optional[Show] = None) -> None:
        """
        Oublie une recherche (nouvelle requete explicite de l'utilisateur).

        La recherche, les listings de la serie et ce que le resolveur
        sous-jacent a memorise sont oublies : la prochaine demande
        interroge a nouveau le fournisseur.
        """
        task = self._shows.pop(normalize_show_name(name), None)
        if show is None and task is not None and task.done() and not task.cancelled():
            show = task.result()
        if show is not None and not show.is_failed:
            self._listings.pop(show.key, None)
        await self._resolver.forget(name, show)
