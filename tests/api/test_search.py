"""Tests for the multi-step IGDB search strategy."""

import pytest

from romshelf.api.search import filter_by_platform, find_game_metadata


class FakeIGDBClient:
    """Records queries and answers from a canned table."""

    def __init__(self, responses=None, offline=False):
        self.responses = responses or {}
        self.offline = offline
        self.queries = []

    async def search(self, search_text):
        self.queries.append(search_text)
        return self.responses.get(search_text, [])


@pytest.mark.unit
def test_filter_by_platform_keeps_matching_results(igdb_game):
    nes = igdb_game(1, "Contra", platforms=[18])
    snes = igdb_game(2, "Contra III", platforms=[19])
    unknown = igdb_game(3, "Contra Force")

    assert filter_by_platform([nes, snes, unknown], 18) == [nes]
    assert filter_by_platform([nes, snes], None) == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_first_query_match_stops_search(igdb_game):
    game = igdb_game(1, "Contra", platforms=[18])
    client = FakeIGDBClient({"contra": [game]})

    assert await find_game_metadata(client, "contra", "NES") == game
    assert client.queries == ["contra"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_platform_match_is_preferred(igdb_game):
    snes = igdb_game(1, "Contra", platforms=[19])
    nes = igdb_game(2, "Contra", platforms=[18])
    client = FakeIGDBClient({"contra": [snes, nes]})

    assert await find_game_metadata(client, "contra", "NES") == nes


@pytest.mark.unit
@pytest.mark.asyncio
async def test_falls_back_to_any_platform(igdb_game):
    snes = igdb_game(1, "Contra", platforms=[19])
    client = FakeIGDBClient({"contra": [snes]})

    assert await find_game_metadata(client, "contra", "NES") == snes


@pytest.mark.unit
@pytest.mark.asyncio
async def test_alternative_names_are_matched(igdb_game):
    game = igdb_game(
        1, "Akumajou Densetsu", platforms=[18],
        alternative_names=[{"name": "Castlevania III: Dracula's Curse"}]
    )
    client = FakeIGDBClient({"castlevania iii dracula's curse": [game]})

    result = await find_game_metadata(client, "castlevania iii dracula's curse", "NES")

    assert result == game


@pytest.mark.unit
@pytest.mark.asyncio
async def test_amiga_tries_hint_then_plain_title(igdb_game):
    game = igdb_game(1, "Turrican", platforms=[34])
    client = FakeIGDBClient({"turrican": [game]})

    result = await find_game_metadata(client, "turrican", "Commodore Amiga")

    assert result == game
    assert client.queries == ["turrican amiga", "turrican"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_first_word_fallback(igdb_game):
    game = igdb_game(1, "Metroid: Zero Mission", platforms=[24])
    client = FakeIGDBClient({"metroid": [game]})

    result = await find_game_metadata(client, "metroid zero mission usa", "Game Boy Advance")

    assert result == game
    assert client.queries == ["metroid zero mission usa", "metroid"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_short_first_word_is_not_retried():
    client = FakeIGDBClient()

    assert await find_game_metadata(client, "ms pac-man", "NES") is None
    assert client.queries == ["ms pac-man"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_results_below_threshold_are_rejected(igdb_game):
    client = FakeIGDBClient({"zelda": [igdb_game(1, "Pac-Man", platforms=[18])]})

    assert await find_game_metadata(client, "zelda", "NES") is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unknown_console_sends_no_queries():
    client = FakeIGDBClient()

    assert await find_game_metadata(client, "mine storm", "Vectrex") is None
    assert client.queries == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_offline_client_sends_no_queries():
    client = FakeIGDBClient(offline=True)

    assert await find_game_metadata(client, "contra", "NES") is None
    assert client.queries == []
