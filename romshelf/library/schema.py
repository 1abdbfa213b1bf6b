"""JSON schema for per-console library files."""

import logging
from typing import Any, Dict, List

import jsonschema

logger = logging.getLogger(__name__)


def _typed(type_name: Any) -> Dict[str, Any]:
    return {'type': type_name}


_STRING_LIST = {'type': 'array', 'items': {'type': 'string'}}

GAME_RECORD_SCHEMA: Dict[str, Any] = {
    'type': 'object',
    'properties': {
        'Title': _typed('string'),
        'Console': _typed('string'),
        'PlatformID': _typed('number'),
        'IGDB_ID': _typed('number'),
        'Genre': _typed('string'),
        'RomPaths': _STRING_LIST,
        'CorePath': _typed('string'),
        'Description': _typed('string'),
        'Players': _typed('number'),
        'Rating': _typed('string'),
        'ReleaseDate': _typed('string'),
        'ReleaseYear': _typed('string'),
        'Developer': _typed('string'),
        'Publisher': _typed('string'),
        'Keywords': _typed('string'),
        'AgeRatings': _typed('string'),
        'Collection': _typed('string'),
        'Franchise': _typed('string'),
        'Screenshots': _STRING_LIST,
        'Region': _typed('string'),
        'Language': _typed('string'),
        'FileSize': _typed('number'),
        'PlayCount': _typed('number'),
        'PlayTime': _typed('number'),
        'LastPlayed': _typed('string'),
        'ControllerType': _typed('string'),
        'SupportWebsite': _typed('string'),
        'CoverImage': _typed('string'),
        'BackgroundImage': _typed('string'),
        'HeaderImage': _typed('string'),
        'SaveFileLocation': _typed('string'),
        'CheatsAvailable': _typed('boolean'),
        'Achievements': _typed('string'),
        'YouTubeTrailer': _typed('string'),
        'SoundtrackLink': _typed('string'),
        'LaunchArguments': _typed('string'),
        'VRSupport': _typed('boolean'),
        'Notes': _typed('string'),
        'ControlScheme': _typed('string'),
        'DiskCount': _typed('number'),
        'AdditionalNotes': _typed('string'),
        'MetadataFetched': _typed('boolean'),
        'Storyline': _typed('string'),
        'Category': _typed('string'),
        'Status': _typed('string'),
        'NestedGenres': {
            'type': 'array',
            'items': {
                'type': 'object',
                'properties': {
                    'name': _typed('string'),
                    'parent': _typed(['string', 'null']),
                },
                'required': ['name', 'parent'],
            },
        },
        'TagList': _STRING_LIST,
    },
    'required': ['Title', 'Console', 'RomPaths'],
}

GAMES_SCHEMA: Dict[str, Any] = {
    'type': 'object',
    'properties': {
        'Games': {'type': 'array', 'items': GAME_RECORD_SCHEMA},
    },
    'required': ['Games'],
}


def validate_games(games: List[Dict[str, Any]]) -> List[str]:
    """
    Validate a console's game list against GAMES_SCHEMA.

    Args:
        games: Serialized game records

    Returns:
        Human-readable violations (empty if valid)
    """
    validator = jsonschema.Draft7Validator(GAMES_SCHEMA)
    errors = sorted(
        validator.iter_errors({'Games': games}),
        key=lambda error: [str(part) for part in error.absolute_path]
    )
    return [
        f"{'/'.join(str(part) for part in error.absolute_path) or '<root>'}: {error.message}"
        for error in errors
    ]
