"""
Library persistence package for romshelf.

Holds the game record model, IGDB metadata conversion, schema validation
and the per-console JSON store.
"""

from .game_record import GameRecord, make_key
from .store import LibraryStore, sanitize_filename

__all__ = [
    'GameRecord',
    'make_key',
    'LibraryStore',
    'sanitize_filename',
]
