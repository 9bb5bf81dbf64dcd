"""
Resolveur de series base sur l'API TVDB v3.

Implemente IShowResolver : recherche d'une serie par nom, chargement de
tous ses episodes dans un catalogue en memoire, puis resolution synchrone
des episodes (saison, episode). Gere l'authentification JWT, le cache
disque et les relances sur 429.

Reference API: https://api.thetvdb.com/swagger
"""

from datetime import date, datetime, timedelta
from typing import Any, Optional

import httpx
from loguru import logger

from tvrenamer.adapters.api.cache import APICache
from tvrenamer.adapters.api.retry import request_with_retry
from tvrenamer.core.entities.media import Episode, FailedShow, Show
from tvrenamer.core.ports.show_resolver import IShowResolver
from tvrenamer.services.show_store import normalize_show_name


def _parse_air_date(value: Optional[str]) -> Optional[date]:
    """Date TVDB (YYYY-MM-DD), None si absente ou invalide."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _parse_episode(show_key: str, item: dict[str, Any]) -> Optional[Episode]:
    season = item.get("airedSeason")
    number = item.get("airedEpisodeNumber")
    if season is None or number is None:
        return None
    try:
        season, number = int(season), int(number)
    except (TypeError, ValueError):
        return None
    return Episode(
        show_key=show_key,
        season_number=season,
        episode_number=number,
        title=item.get("episodeName") or "",
        air_date=_parse_air_date(item.get("firstAired")),
    )


class TVDBShowResolver(IShowResolver):
    """
    Resolveur TVDB.

    Le catalogue (Show -> episodes) appartient a ce resolveur ; les
    EpisodeRecord n'en conservent que des references.

    Example:
        cache = APICache(cache_dir=".cache/api")
        resolver = TVDBShowResolver(api_key="your-api-key", cache=cache)
        show = await resolver.resolve_show("The Office")
        await resolver.load_listings(show)
        episode = resolver.resolve_episode(show, 2, 5)
        await resolver.close()
    """

    BASE_URL = "https://api.thetvdb.com"

    def __init__(
        self,
        api_key: str,
        cache: APICache,
        language: str = "en",
        max_attempts: int = 5,
    ) -> None:
        """
        Args:
            api_key: Cle API TVDB
            cache: Cache disque des reponses
            language: Langue des titres (en-tete Accept-Language)
            max_attempts: Tentatives par requete (429, 5xx passagers, reseau)
        """
        self._api_key = api_key
        self._cache = cache
        self._language = language
        self._max_attempts = max_attempts
        self._token: Optional[str] = None
        self._token_expiry: Optional[datetime] = None
        self._client: Optional[httpx.AsyncClient] = None
        self._catalog: dict[str, dict[tuple[int, int], Episode]] = {}

    async def _get_client(self) -> httpx.AsyncClient:
        """Client HTTP unique (connection pooling)."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.BASE_URL,
                timeout=httpx.Timeout(30.0, connect=10.0),
            )
        return self._client

    async def _ensure_token(self) -> str:
        """Obtient ou rafraichit le token JWT (valide ~1 semaine, rafraichi a 6 jours)."""
        if self._token and self._token_expiry and datetime.now() < self._token_expiry:
            return self._token

        client = await self._get_client()
        response = await client.post("/login", json={"apikey": self._api_key})
        response.raise_for_status()
        self._token = response.json()["token"]
        self._token_expiry = datetime.now() + timedelta(days=6)
        logger.debug("Token TVDB obtenu")
        return self._token

    def _headers(self) -> dict[str, str]:
        if not self._token:
            raise RuntimeError("Token non disponible. Appeler _ensure_token() d'abord.")
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept-Language": self._language,
        }

    async def resolve_show(self, name: str) -> Show:
        """
        Recherche une serie par nom ; le premier resultat est retenu.

        Returns:
            Show, ou FailedShow si TVDB ne trouve rien (404 ou liste vide).
        """
        cache_key = self._search_key(name)
        results = await self._cache.get(cache_key)
        if results is None:
            results = await self._search(name)
            await self._cache.set_search(cache_key, results)

        if not results:
            return FailedShow.for_name(name)
        first = results[0]
        return Show(key=str(first["id"]), name=first.get("seriesName") or name)

    async def _search(self, name: str) -> list[dict[str, Any]]:
        await self._ensure_token()
        client = await self._get_client()
        try:
            response = await request_with_retry(
                client,
                "GET",
                "/search/series",
                params={"name": name},
                headers=self._headers(),
                max_attempts=self._max_attempts,
            )
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                # TVDB retourne 404 quand aucune serie ne correspond
                return []
            raise
        return [
            {"id": item["id"], "seriesName": item.get("seriesName", "")}
            for item in response.json().get("data") or []
            if "id" in item
        ]

    async def load_listings(self, show: Show) -> None:
        """
        Charge tous les episodes de la serie (pagines) dans le catalogue.

        Raises:
            httpx.HTTPError: Erreur du fournisseur (propagee a l'appelant).
        """
        if show.key in self._catalog:
            return

        cache_key = self._listings_key(show.key)
        items = await self._cache.get(cache_key)
        if items is None:
            items = await self._fetch_episodes(show.key)
            await self._cache.set_listings(cache_key, items)

        episodes: dict[tuple[int, int], Episode] = {}
        for item in items:
            episode = _parse_episode(show.key, item)
            if episode is not None:
                episodes[(episode.season_number, episode.episode_number)] = episode
        self._catalog[show.key] = episodes
        logger.debug(f"{len(episodes)} episode(s) charges pour {show.name}")

    async def _fetch_episodes(self, series_id: str) -> list[dict[str, Any]]:
        await self._ensure_token()
        client = await self._get_client()

        items: list[dict[str, Any]] = []
        page = 1
        while True:
            response = await request_with_retry(
                client,
                "GET",
                f"/series/{series_id}/episodes",
                params={"page": str(page)},
                headers=self._headers(),
                max_attempts=self._max_attempts,
            )
            data = response.json()
            items.extend(
                {
                    "airedSeason": item.get("airedSeason"),
                    "airedEpisodeNumber": item.get("airedEpisodeNumber"),
                    "episodeName": item.get("episodeName"),
                    "firstAired": item.get("firstAired"),
                }
                for item in data.get("data") or []
            )
            last_page = (data.get("links") or {}).get("last") or 1
            if page >= last_page:
                break
            page += 1
        return items

    def resolve_episode(self, show: Show, season: int, episode: int) -> Optional[Episode]:
        return self._catalog.get(show.key, {}).get((season, episode))

    def _search_key(self, name: str) -> str:
        return f"tvdb:search:{self._language}:{normalize_show_name(name)}"

    def _listings_key(self, series_id: str) -> str:
        return f"tvdb:episodes:{self._language}:{series_id}"

    async def forget(self, name: str, show: Optional[Show] = None) -> None:
        """Efface la recherche en cache et, si la serie est connue, ses listings."""
        await self._cache.delete(self._search_key(name))
        if show is not None and not show.is_failed:
            self._catalog.pop(show.key, None)
            await self._cache.delete(self._listings_key(show.key))
        logger.debug(f"Cache TVDB oublie pour '{name}'")

    async def close(self) -> None:
        """Ferme le client HTTP."""
        if self._client:
            await self._client.aclose()
            self._client = None
