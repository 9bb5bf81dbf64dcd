"""
Tests unitaires pour InMemoryShowResolver.
"""

import pytest

from tvrenamer.adapters.memory_resolver import InMemoryShowResolver


class TestInMemoryShowResolver:

    @pytest.mark.asyncio
    async def test_alias_lookup(self, resolver: InMemoryShowResolver) -> None:
        show = await resolver.resolve_show("the  office")
        assert show.name == "The Office (US)"
        assert resolver.search_count == 1

    @pytest.mark.asyncio
    async def test_unknown_show(self, resolver: InMemoryShowResolver) -> None:
        show = await resolver.resolve_show("Nope")
        assert show.is_failed

    @pytest.mark.asyncio
    async def test_failing_listings(self, resolver: InMemoryShowResolver) -> None:
        show = await resolver.resolve_show("Lost")
        resolver.failing_listings.add(show.key)
        with pytest.raises(ConnectionError):
            await resolver.load_listings(show)

    @pytest.mark.asyncio
    async def test_resolve_episode(self, resolver: InMemoryShowResolver) -> None:
        show = await resolver.resolve_show("Lost")
        assert resolver.resolve_episode(show, 1, 1).title == "Pilot (1)"
        assert resolver.resolve_episode(show, 1, 2) is None
