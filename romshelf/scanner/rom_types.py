"""ROM discovery data structures."""

from dataclasses import dataclass
from pathlib import Path


# Container formats treated as ROMs (lower-case, with dot)
VALID_ROM_EXTENSIONS = frozenset({
    '.nes', '.sfc', '.smc', '.gba', '.gb', '.gbc', '.n64', '.z64', '.v64',
    '.a26', '.lnx', '.c64', '.col', '.int', '.sms', '.gg', '.pce', '.cue',
    '.iso', '.bin', '.adf', '.rom', '.img', '.chd', '.cso', '.gdi', '.cdi',
    '.zip',
})


@dataclass
class DiscoveredEntry:
    """
    A ROM file found by the scanner.

    Not persisted; the orchestrator folds it into a GameRecord.
    """
    title: str          # Filename without extension and tag groups
    console_name: str   # Console folder path relative to the ROM root
    rom_path: Path      # Full path to the ROM file

