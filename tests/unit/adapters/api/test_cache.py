"""
Tests unitaires pour APICache.

Ces tests verifient:
- Stockage et recuperation de valeurs
- TTL differencies pour recherche (24h) et listings (3j)
- Suppression d'une entree
"""

import asyncio
from pathlib import Path

import pytest

from tvrenamer.adapters.api.cache import APICache


class TestAPICache:
    """Tests pour la classe APICache."""

    @pytest.fixture
    def cache(self, tmp_path: Path) -> APICache:
        """Cree un cache avec un repertoire temporaire."""
        cache = APICache(cache_dir=tmp_path / "test_cache")
        yield cache
        cache.close()

    @pytest.mark.asyncio
    async def test_get_returns_none_for_missing_key(self, cache: APICache) -> None:
        assert await cache.get("nonexistent_key") is None

    @pytest.mark.asyncio
    async def test_set_and_get(self, cache: APICache) -> None:
        value = [{"id": 81189, "seriesName": "Breaking Bad"}]
        await cache.set("tvdb:search:en:breaking bad", value, ttl=3600)
        assert await cache.get("tvdb:search:en:breaking bad") == value

    @pytest.mark.asyncio
    async def test_expired_value_is_gone(self, cache: APICache) -> None:
        await cache.set("short", "value", ttl=1)
        await asyncio.sleep(1.2)
        assert await cache.get("short") is None

    @pytest.mark.asyncio
    async def test_set_search_and_listings(self, cache: APICache) -> None:
        await cache.set_search("search", ["a"])
        await cache.set_listings("listings", ["b"])
        assert await cache.get("search") == ["a"]
        assert await cache.get("listings") == ["b"]

    @pytest.mark.asyncio
    async def test_delete(self, cache: APICache) -> None:
        await cache.set_search("key", "value")
        await cache.delete("key")
        assert await cache.get("key") is None

    def test_ttls(self) -> None:
        assert APICache.SEARCH_TTL == 86400
        assert APICache.LISTINGS_TTL == 3 * 86400

    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_path: Path) -> None:
        first = APICache(cache_dir=tmp_path / "shared")
        await first.set_search("key", {"v": 1})
        first.close()

        second = APICache(cache_dir=tmp_path / "shared")
        try:
            assert await second.get("key") == {"v": 1}
        finally:
            second.close()
