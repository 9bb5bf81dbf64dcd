"""
Cache persistant des reponses du fournisseur de series.

Le cache utilise diskcache pour la persistence sur disque : une serie deja
recherchee n'est pas redemandee au fournisseur entre deux lancements.

TTL par defaut:
- Recherches (SEARCH_TTL): 24 heures
- Listings d'episodes (LISTINGS_TTL): 3 jours - de nouveaux episodes sont diffuses
"""

import asyncio
from functools import partial
from pathlib import Path
from typing import Any, Optional, Union

from diskcache import Cache


class APICache:
    """
    Cache asynchrone avec TTL pour les appels API.

    Les operations diskcache sont bloquantes : elles sont executees via
    run_in_executor pour ne pas bloquer la boucle de coordination.

    Example:
        cache = APICache(cache_dir=".cache/api")
        await cache.set_search("tvdb:search:the office", payload)
        data = await cache.get("tvdb:search:the office")
    """

    SEARCH_TTL = 24 * 60 * 60
    LISTINGS_TTL = 3 * 24 * 60 * 60

    def __init__(self, cache_dir: Union[str, Path] = ".cache/api") -> None:
        """
        Args:
            cache_dir: Repertoire du cache (cree si inexistant)
        """
        self._cache = Cache(str(cache_dir))

    async def get(self, key: str) -> Optional[Any]:
        """Valeur stockee, ou None si absente ou expiree."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._cache.get, key)

    async def set(self, key: str, value: Any, ttl: int) -> None:
        """Stocke une valeur serialisable avec une duree de vie en secondes."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, partial(self._cache.set, key, value, expire=ttl))

    async def set_search(self, key: str, value: Any) -> None:
        await self.set(key, value, self.SEARCH_TTL)

    async def set_listings(self, key: str, value: Any) -> None:
        await self.set(key, value, self.LISTINGS_TTL)

    async def delete(self, key: str) -> None:
        """Supprime une entree (nouvelle recherche explicite)."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._cache.delete, key)

    def close(self) -> None:
        """Ferme la connexion au cache."""
        self._cache.close()
