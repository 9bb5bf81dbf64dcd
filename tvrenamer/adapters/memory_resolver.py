"""
Resolveur de series en memoire.

Catalogue statique utilisable sans reseau (tests, catalogue local).
"""

from typing import Iterable, Optional

from tvrenamer.core.entities.media import Episode, FailedShow, Show
from tvrenamer.core.ports.show_resolver import IShowResolver
from tvrenamer.services.show_store import normalize_show_name


class InMemoryShowResolver(IShowResolver):
    """
    Implementation de IShowResolver sur un catalogue en memoire.

    Example:
        resolver = InMemoryShowResolver()
        show = resolver.add_show("81189", "Breaking Bad")
        resolver.add_episode(show, 1, 1, "Pilot")
    """

    def __init__(self) -> None:
        self._shows: dict[str, Show] = {}
        self._episodes: dict[str, dict[tuple[int, int], Episode]] = {}
        self.failing_listings: set[str] = set()
        self.search_count = 0
        self.listings_count = 0

    def add_show(self, key: str, name: str, aliases: Iterable[str] = ()) -> Show:
        """Ajoute une serie, recherchable par son nom et ses alias."""
        show = Show(key=key, name=name)
        for alias in (name, *aliases):
            self._shows[normalize_show_name(alias)] = show
        self._episodes.setdefault(key, {})
        return show

    def add_episode(self, show: Show, season: int, number: int, title: str = "", air_date=None) -> Episode:
        episode = Episode(show.key, season, number, title, air_date)
        self._episodes.setdefault(show.key, {})[(season, number)] = episode
        return episode

    async def resolve_show(self, name: str) -> Show:
        self.search_count += 1
        return self._shows.get(normalize_show_name(name)) or FailedShow.for_name(name)

    async def load_listings(self, show: Show) -> None:
        self.listings_count += 1
        if show.key in self.failing_listings:
            raise ConnectionError(f"Listings indisponibles pour {show.name}")

    def resolve_episode(self, show: Show, season: int, episode: int) -> Optional[Episode]:
        return self._episodes.get(show.key, {}).get((season, episode))
