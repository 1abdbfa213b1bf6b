"""
Console lookup tables.

Maps console folder names to IGDB platform ids and libretro cores. Both
lookups try an exact (lower-cased) match first, then fall back to the
first table key contained in the console name.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


# IGDB platform ids
PLATFORM_ID_MAP: Dict[str, int] = {
    'amiga': 34,
    'atari 2600': 59,
    'atari 7800': 60,
    'atari lynx': 68,
    'atari jaguar': 62,
    'colecovision': 56,
    'commodore 64': 15,
    'c64': 15,
    'intellivision': 57,
    'neo geo aes': 12,
    'nes': 18,
    'snes': 19,
    'super nintendo': 19,
    'nintendo / snes': 19,
    'nintendo 64': 4,
    'game boy': 33,
    'game boy color': 22,
    'game boy advance': 24,
    'genesis': 29,
    'sega genesis': 29,
    'sega master system': 64,
    'sega game gear': 35,
    'dreamcast': 23,
    'psx': 7,
    'playstation': 7,
    'playstation 1': 7,
    'turbografx-16': 86,
}

# Core filenames, relative to the configured cores directory
CORE_FILE_MAP: Dict[str, str] = {
    'amiga': 'puae_libretro.dll',
    'atari 2600': 'stella_libretro.dll',
    'atari 7800': 'prosystem_libretro.dll',
    'atari lynx': 'handy_libretro.dll',
    'atari jaguar': 'virtualjaguar_libretro.dll',
    'colecovision': 'blueMSX_libretro.dll',
    'commodore 64': 'vice_x64_libretro.dll',
    'intellivision': 'freeintv_libretro.dll',
    'neo geo aes': 'fbneo_libretro.dll',
    'nes': 'nestopia_libretro.dll',
    'snes': 'snes9x_libretro.dll',
    'nintendo 64': 'mupen64plus_next_libretro.dll',
    'game boy': 'sameboy_libretro.dll',
    'game boy color': 'sameboy_libretro.dll',
    'game boy advance': 'mgba_libretro.dll',
    'genesis': 'picodrive_libretro.dll',
    'sega game gear': 'genesis_plus_gx_libretro.dll',
    'sega master system': 'genesis_plus_gx_libretro.dll',
    'dreamcast': 'flycast_libretro.dll',
    'psx': 'mednafen_psx_libretro.dll',
    'playstation': 'mednafen_psx_libretro.dll',
    'turbografx-16': 'mednafen_pce_fast_libretro.dll',
}


def _lookup(table: Dict[str, T], console_name: str) -> Optional[T]:
    normalized = console_name.lower()
    if normalized in table:
        return table[normalized]
    # Table order decides which key wins when several are contained
    for key, value in table.items():
        if key in normalized:
            return value
    return None


def get_platform_id(console_name: str) -> Optional[int]:
    """
    Resolve the IGDB platform id for a console folder name.

    Args:
        console_name: Console name as produced by the scanner (e.g. 'NES')

    Returns:
        Platform id, or None when the console is unknown

    Example:
        >>> get_platform_id('Nintendo / SNES')
        19
        >>> get_platform_id('Sega Master System (EU)')
        64
    """
    return _lookup(PLATFORM_ID_MAP, console_name)


def get_core_path(console_name: str, cores_dir: Path) -> str:
    """
    Resolve the emulator core path for a console.

    Args:
        console_name: Console name as produced by the scanner
        cores_dir: Base directory holding libretro cores

    Returns:
        Core path as a string, or '' when no core is known
    """
    core_file = _lookup(CORE_FILE_MAP, console_name)
    if core_file is None:
        return ''
    return str(Path(cores_dir) / core_file)


def find_missing_cores(cores_dir: Path) -> List[Tuple[str, Path]]:
    """
    List configured cores that are not present on disk.

    Args:
        cores_dir: Base directory holding libretro cores

    Returns:
        List of (console key, expected core path) tuples
    """
    missing = []
    for console_key, core_file in CORE_FILE_MAP.items():
        core_path = Path(cores_dir) / core_file
        if not core_path.exists():
            missing.append((console_key, core_path))
    return missing
