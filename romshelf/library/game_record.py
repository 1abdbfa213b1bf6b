"""
Game record data model for the per-console library files.

A GameRecord is keyed by (Console, Title); its JSON form uses the
PascalCase keys read by the library browser.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def make_key(console: str, title: str) -> str:
    """
    Build the merge-map key for a game.

    Example:
        >>> make_key(' NES ', 'Zelda II')
        'nes:zelda ii'
    """
    return f"{console.lower().strip()}:{title.lower().strip()}"


@dataclass
class GameRecord:
    """
    One game in the library, possibly backed by several ROM files.

    Field order matches the JSON key order written to disk. Keys found in
    a loaded record that are not modelled here are kept in extra_fields
    and written back after the known keys.
    """
    # Identity
    title: str
    console: str
    platform_id: int = 0
    igdb_id: int = 0

    genre: str = 'Unknown'
    rom_paths: List[str] = field(default_factory=list)
    core_path: str = ''
    description: str = ''
    players: int = 1
    rating: str = ''              # IGDB 0-100 rating / 10, one decimal
    release_date: str = ''        # YYYY-MM-DD (UTC)
    release_year: str = ''
    developer: str = ''
    publisher: str = ''
    keywords: str = ''
    age_ratings: str = ''
    collection: str = ''
    franchise: str = ''
    screenshots: List[str] = field(default_factory=list)

    # User/runtime fields, never filled by the pipeline
    region: str = ''
    language: str = ''
    file_size: int = 0            # Bytes, summed over contributing ROM files
    play_count: int = 0
    play_time: int = 0
    last_played: str = ''
    controller_type: str = 'Gamepad'
    support_website: str = ''
    cover_image: str = ''
    background_image: str = ''
    header_image: str = ''
    save_file_location: str = ''
    cheats_available: bool = False
    achievements: str = ''
    youtube_trailer: str = ''
    soundtrack_link: str = ''
    launch_arguments: str = ''
    vr_support: bool = False
    notes: str = ''
    control_scheme: str = ''
    disk_count: int = 1
    additional_notes: str = ''
    metadata_fetched: bool = False

    storyline: str = ''
    category: str = ''
    status: str = ''
    nested_genres: List[Dict[str, Optional[str]]] = field(default_factory=list)
    tag_list: List[str] = field(default_factory=list)

    extra_fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return make_key(self.console, self.title)

    def add_rom_path(self, rom_path: str) -> bool:
        """
        Append a ROM path unless already present.

        Returns:
            True if the path was added
        """
        if rom_path in self.rom_paths:
            return False
        self.rom_paths.append(rom_path)
        return True

    def raise_disk_count(self, total_disks: int) -> None:
        """Raise DiskCount to total_disks; never lowers it."""
        if total_disks > (self.disk_count or 1):
            self.disk_count = total_disks

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GameRecord':
        """
        Create a GameRecord from its JSON object.

        Args:
            data: Parsed record with at least Title and Console

        Returns:
            GameRecord instance

        Raises:
            KeyError: If Title or Console is missing
            TypeError: If Title/Console are not strings or a list field is not a list
        """
        kwargs: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for json_key, value in data.items():
            attr = _ATTRIBUTE_BY_KEY.get(json_key)
            if attr is None:
                extra[json_key] = value
            else:
                kwargs[attr] = value

        if 'title' not in kwargs or 'console' not in kwargs:
            raise KeyError("Record is missing Title or Console")
        if not isinstance(kwargs['title'], str) or not isinstance(kwargs['console'], str):
            raise TypeError("Title and Console must be strings")

        # JSON null in list fields would break merging
        for attr in ('rom_paths', 'screenshots', 'nested_genres', 'tag_list'):
            value = kwargs.get(attr, [])
            if value is None:
                kwargs[attr] = []
            elif not isinstance(value, list):
                raise TypeError(f"{JSON_KEYS[attr]} must be a list")

        return cls(extra_fields=extra, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON object for this record."""
        data = {
            json_key: getattr(self, attr)
            for attr, json_key in JSON_KEYS.items()
        }
        for json_key, value in self.extra_fields.items():
            data.setdefault(json_key, value)
        return data


# Attribute name -> JSON key, in output order
JSON_KEYS: Dict[str, str] = {
    'title': 'Title',
    'console': 'Console',
    'platform_id': 'PlatformID',
    'igdb_id': 'IGDB_ID',
    'genre': 'Genre',
    'rom_paths': 'RomPaths',
    'core_path': 'CorePath',
    'description': 'Description',
    'players': 'Players',
    'rating': 'Rating',
    'release_date': 'ReleaseDate',
    'release_year': 'ReleaseYear',
    'developer': 'Developer',
    'publisher': 'Publisher',
    'keywords': 'Keywords',
    'age_ratings': 'AgeRatings',
    'collection': 'Collection',
    'franchise': 'Franchise',
    'screenshots': 'Screenshots',
    'region': 'Region',
    'language': 'Language',
    'file_size': 'FileSize',
    'play_count': 'PlayCount',
    'play_time': 'PlayTime',
    'last_played': 'LastPlayed',
    'controller_type': 'ControllerType',
    'support_website': 'SupportWebsite',
    'cover_image': 'CoverImage',
    'background_image': 'BackgroundImage',
    'header_image': 'HeaderImage',
    'save_file_location': 'SaveFileLocation',
    'cheats_available': 'CheatsAvailable',
    'achievements': 'Achievements',
    'youtube_trailer': 'YouTubeTrailer',
    'soundtrack_link': 'SoundtrackLink',
    'launch_arguments': 'LaunchArguments',
    'vr_support': 'VRSupport',
    'notes': 'Notes',
    'control_scheme': 'ControlScheme',
    'disk_count': 'DiskCount',
    'additional_notes': 'AdditionalNotes',
    'metadata_fetched': 'MetadataFetched',
    'storyline': 'Storyline',
    'category': 'Category',
    'status': 'Status',
    'nested_genres': 'NestedGenres',
    'tag_list': 'TagList',
}

_ATTRIBUTE_BY_KEY = {json_key: attr for attr, json_key in JSON_KEYS.items()}
