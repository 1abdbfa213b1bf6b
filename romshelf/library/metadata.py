"""
Conversion of IGDB game objects into GameRecord fields.

Handles both populating a new record and refreshing an existing one.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from romshelf.library.game_record import GameRecord

logger = logging.getLogger(__name__)


# Tag tokens shorter than this are dropped
MIN_TAG_LENGTH = 4

_NON_WORD_RE = re.compile(r"\W+")


def get_player_count(game_modes: Iterable[Dict[str, Any]]) -> int:
    """Return 2 if any game mode mentions multiplayer, else 1."""
    for mode in game_modes:
        if 'multiplayer' in (mode.get('name') or '').lower():
            return 2
    return 1


def get_companies(involved_companies: Optional[List[Dict[str, Any]]], role: str) -> str:
    """
    Join the names of companies with the given role.

    Args:
        involved_companies: IGDB involved_companies list
        role: 'developer' or 'publisher'

    Returns:
        Comma-separated company names ('' if none)
    """
    if not involved_companies:
        return ''
    names = [
        (company.get('company') or {}).get('name', '')
        for company in involved_companies
        if company.get(role)
    ]
    return ', '.join(names)


def get_age_ratings(age_ratings: Any) -> str:
    """Format age ratings as 'category: rating' pairs."""
    if not isinstance(age_ratings, list):
        return ''
    return ', '.join(
        f"{rating.get('category', '')}: {rating.get('rating', '')}"
        for rating in age_ratings
    )


def join_names(items: Optional[List[Dict[str, Any]]]) -> str:
    return ', '.join(item.get('name', '') for item in items or [])


def process_nested_genres(genres: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Optional[str]]]:
    """
    Convert IGDB genres to NestedGenres entries.

    IGDB does not expose genre parents, so parent is always None.
    """
    if not genres:
        return []
    return [{'name': genre.get('name', ''), 'parent': None} for genre in genres]


def generate_tags(
    summary: Optional[str] = None,
    storyline: Optional[str] = None,
    genres: Optional[List[Dict[str, Any]]] = None,
    developer: Optional[str] = None
) -> List[str]:
    """
    Build a sorted, deduplicated tag list.

    Summary, storyline and developer are split on non-word characters;
    genre names are kept whole. Tokens shorter than four characters are
    dropped.

    Example:
        >>> generate_tags(summary="Link must save Zelda", genres=[{'name': 'Adventure'}])
        ['adventure', 'link', 'must', 'save', 'zelda']
    """
    tokens: List[str] = []
    for text in (summary, storyline):
        if text:
            tokens.extend(_NON_WORD_RE.split(text.lower()))
    for genre in genres or []:
        tokens.append((genre.get('name') or '').lower())
    if developer:
        tokens.extend(_NON_WORD_RE.split(developer.lower()))

    return sorted({token for token in tokens if len(token) >= MIN_TAG_LENGTH})


def format_rating(rating: Any) -> str:
    """Convert an IGDB 0-100 rating to a 0-10 string with one decimal."""
    if not rating:
        return ''
    return f"{float(rating) / 10:.1f}"


def format_release_date(timestamp: Any) -> Tuple[str, str]:
    """
    Convert an IGDB epoch timestamp to (YYYY-MM-DD, YYYY), both UTC.

    Returns ('', '') when the timestamp is missing or invalid.
    """
    if not timestamp:
        return '', ''
    try:
        released = datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError) as e:
        logger.warning(f"Invalid release timestamp {timestamp!r}: {e}")
        return '', ''
    return released.strftime('%Y-%m-%d'), str(released.year)


def extract_fields(metadata: Dict[str, Any], tag_generation: bool = False) -> Dict[str, Any]:
    """
    Map an IGDB game object onto GameRecord attributes.

    Only attributes the game object actually provides are included, so
    the result can be applied to an existing record without erasing data.

    Args:
        metadata: IGDB game object
        tag_generation: Include tag_list

    Returns:
        Dict of GameRecord attribute name -> value
    """
    result: Dict[str, Any] = {}

    if metadata.get('id'):
        result['igdb_id'] = metadata['id']
    if metadata.get('summary'):
        result['description'] = metadata['summary']
    if metadata.get('storyline'):
        result['storyline'] = metadata['storyline']
    if metadata.get('category') is not None:
        result['category'] = str(metadata['category'])
    if metadata.get('status') is not None:
        result['status'] = str(metadata['status'])
    if metadata.get('game_modes'):
        result['players'] = get_player_count(metadata['game_modes'])

    rating = format_rating(metadata.get('rating'))
    if rating:
        result['rating'] = rating

    release_date, release_year = format_release_date(metadata.get('first_release_date'))
    if release_date:
        result['release_date'] = release_date
        result['release_year'] = release_year

    involved = metadata.get('involved_companies')
    for role in ('developer', 'publisher'):
        companies = get_companies(involved, role)
        if companies:
            result[role] = companies

    keywords = join_names(metadata.get('keywords'))
    if keywords:
        result['keywords'] = keywords

    age_ratings = get_age_ratings(metadata.get('age_ratings'))
    if age_ratings:
        result['age_ratings'] = age_ratings

    for attr in ('collection', 'franchise'):
        name = (metadata.get(attr) or {}).get('name')
        if name:
            result[attr] = name

    if metadata.get('genres'):
        result['genre'] = join_names(metadata['genres'])
        result['nested_genres'] = process_nested_genres(metadata['genres'])

    if tag_generation:
        result['tag_list'] = generate_tags(
            summary=metadata.get('summary'),
            storyline=metadata.get('storyline'),
            genres=metadata.get('genres'),
            developer=result.get('developer', ''),
        )

    return result


def apply_metadata(record: GameRecord, metadata: Dict[str, Any], tag_generation: bool = False) -> None:
    """
    Populate a newly created record from an IGDB game object.

    Args:
        record: Fresh record with defaults
        metadata: IGDB game object
        tag_generation: Generate TagList
    """
    for attr, value in extract_fields(metadata, tag_generation).items():
        setattr(record, attr, value)
    record.metadata_fetched = True


def merge_metadata(record: GameRecord, metadata: Dict[str, Any], tag_generation: bool = False) -> List[str]:
    """
    Refresh an existing record from an IGDB game object.

    Fields are only overwritten with values IGDB actually provides; tags
    are unioned with the existing list rather than replaced.

    Args:
        record: Existing record
        metadata: IGDB game object
        tag_generation: Merge newly generated tags into TagList

    Returns:
        Names of attributes whose value changed
    """
    fields = extract_fields(metadata, tag_generation)
    changed = []

    new_tags = fields.pop('tag_list', None)
    if new_tags is not None:
        # Existing developer counts when IGDB has none
        if 'developer' not in fields and record.developer:
            new_tags = sorted(set(new_tags) | set(generate_tags(developer=record.developer)))
        merged = sorted(set(record.tag_list or []) | set(new_tags))
        if merged != record.tag_list:
            record.tag_list = merged
            changed.append('tag_list')

    for attr, value in fields.items():
        if getattr(record, attr) != value:
            setattr(record, attr, value)
            changed.append(attr)

    record.metadata_fetched = True
    return changed
