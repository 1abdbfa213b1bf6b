"""Multi-step IGDB search for a local game title."""

import logging
from typing import Any, Dict, List, Optional

from romshelf.api.client import IGDBClient
from romshelf.api.matching import pick_best_fuzzy_match
from romshelf.config.platforms import get_platform_id

logger = logging.getLogger(__name__)


# Console names containing this get it appended to the first query
AMIGA_HINT = 'amiga'

# First-word fallback only applies to words longer than this
MIN_FALLBACK_WORD_LENGTH = 2


def filter_by_platform(
    results: List[Dict[str, Any]],
    platform_id: Optional[int]
) -> List[Dict[str, Any]]:
    """Keep only results that list the given platform id."""
    if not platform_id:
        return []
    return [
        game for game in results
        if platform_id in (game.get('platforms') or [])
    ]


async def attempt_search(
    client: IGDBClient,
    base_title: str,
    search_text: str,
    platform_id: Optional[int]
) -> Optional[Dict[str, Any]]:
    """
    Run one query and rank its results.

    Platform-matching results are ranked first; if none of them passes the
    fuzzy threshold, all results are ranked.

    Args:
        client: IGDB client
        base_title: Title the results are scored against
        search_text: Text sent to IGDB
        platform_id: IGDB platform id of the console

    Returns:
        Matching IGDB game object or None
    """
    results = await client.search(search_text)
    if not results:
        return None

    best = pick_best_fuzzy_match(base_title, filter_by_platform(results, platform_id))
    if best:
        return best

    return pick_best_fuzzy_match(base_title, results)


async def find_game_metadata(
    client: IGDBClient,
    base_title: str,
    console_name: str
) -> Optional[Dict[str, Any]]:
    """
    Find IGDB metadata for a game, trying progressively looser queries.

    Steps, stopping at the first match:
    1. Title, with " amiga" appended for Amiga consoles
    2. Title alone (Amiga consoles only)
    3. First word of the title, if longer than two characters

    Args:
        client: IGDB client
        base_title: Normalized game title
        console_name: Console name from the scanner

    Returns:
        Matching IGDB game object or None
    """
    if client.offline:
        return None

    platform_id = get_platform_id(console_name)
    if not platform_id:
        logger.warning(
            f"No platform ID found for console '{console_name}', "
            f"skipping metadata for '{base_title}'"
        )
        return None

    is_amiga = AMIGA_HINT in console_name.lower()
    first_query = f"{base_title} {AMIGA_HINT}" if is_amiga else base_title

    metadata = await attempt_search(client, base_title, first_query, platform_id)
    if metadata:
        return metadata

    if is_amiga:
        metadata = await attempt_search(client, base_title, base_title, platform_id)
        if metadata:
            return metadata

    words = base_title.split()
    first_word = words[0] if words else ''
    if len(first_word) > MIN_FALLBACK_WORD_LENGTH:
        logger.debug(f"Retrying '{base_title}' with first word '{first_word}'")
        metadata = await attempt_search(client, base_title, first_word, platform_id)
        if metadata:
            return metadata

    return None
