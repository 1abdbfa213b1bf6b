"""
Persistence of the game library as per-console JSON files

Output directory layout:
    <Console>.json        {"Games": [...]} sorted by title
    unmatched.json        [{"title", "console", "romPath"}, ...]
    consoles_index.json   {"consoles": [{"console", "file", "count"}, ...]}

Every file is written to a temporary sibling and renamed over the target,
so an interrupted write never leaves a truncated file behind.
"""

import json
import logging
import re
import unicodedata
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

from romshelf.library.game_record import GameRecord
from romshelf.library.schema import validate_games
from romshelf.logging_utils import log_success

logger = logging.getLogger(__name__)


UNMATCHED_FILENAME = 'unmatched.json'
INDEX_FILENAME = 'consoles_index.json'
RESERVED_FILENAMES = {UNMATCHED_FILENAME, INDEX_FILENAME}

_FORBIDDEN_CHARS_RE = re.compile(r'[<>:"/\\|?*]+')


def sanitize_filename(name: str) -> str:
    """
    Make a console name safe to use as a file name.

    Removes <>:"/\\|?* and trims, including trailing dots.

    Example:
        >>> sanitize_filename('Sega / Genesis')
        'Sega  Genesis'
    """
    return _FORBIDDEN_CHARS_RE.sub('', name).strip().rstrip('. ')


def collation_key(text: str) -> Tuple[str, str]:
    """Case-insensitive, accent-folded sort key (ties broken by raw text)."""
    decomposed = unicodedata.normalize('NFKD', text)
    folded = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    return folded.casefold(), text


def console_filename(console: str) -> str:
    return f"{sanitize_filename(console)}.json"


class LibraryStore:
    """
    Loads and saves the library in an output directory.

    Example:
        store = LibraryStore(Path('data'), validate_schema=True)
        records = store.load()
        ...
        store.save(records, unmatched)
    """

    def __init__(self, output_dir: Path, validate_schema: bool = False):
        """
        Initialize library store

        Args:
            output_dir: Directory holding the library files
            validate_schema: Validate each console's games before writing
        """
        self.output_dir = Path(output_dir)
        self.validate_schema = validate_schema

    @property
    def unmatched_path(self) -> Path:
        return self.output_dir / UNMATCHED_FILENAME

    @property
    def index_path(self) -> Path:
        return self.output_dir / INDEX_FILENAME

    def load(self) -> Dict[str, GameRecord]:
        """
        Load every console file into a merge map.

        Unparseable files and records without Title/Console are logged and
        skipped. A missing output directory is created.

        Returns:
            Dict of make_key(console, title) -> GameRecord
        """
        records: Dict[str, GameRecord] = {}
        self.output_dir.mkdir(parents=True, exist_ok=True)

        for path in sorted(self.output_dir.iterdir()):
            if not path.is_file() or path.suffix.lower() != '.json':
                continue
            if path.name.lower() in RESERVED_FILENAMES:
                continue

            try:
                with open(path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning(f"Unable to parse {path.name}: {e}")
                continue

            games = data.get('Games') if isinstance(data, dict) else None
            if not isinstance(games, list):
                logger.warning(f"No Games list in {path.name}, skipping")
                continue

            for game in games:
                try:
                    record = GameRecord.from_dict(game)
                    key = record.key
                except (KeyError, TypeError, AttributeError) as e:
                    logger.warning(f"Skipping malformed record in {path.name}: {e}")
                    continue
                records[key] = record

        logger.info(f"Loaded {len(records)} existing games from {self.output_dir}")
        return records

    def save(
        self,
        records: Iterable[GameRecord],
        unmatched: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """
        Write all console files, the unmatched list and the console index.

        Args:
            records: Every record in the merge map
            unmatched: Unmatched entries collected during the run

        Returns:
            Console index entries

        Raises:
            OSError: If a file cannot be written
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)

        by_console: Dict[str, List[GameRecord]] = {}
        for record in records:
            by_console.setdefault(record.console, []).append(record)

        index = []
        for console in sorted(by_console, key=collation_key):
            games = sorted(by_console[console], key=lambda r: collation_key(r.title))
            serialized = [record.to_dict() for record in games]

            if self.validate_schema:
                self._report_violations(console, serialized)

            filename = console_filename(console)
            out_path = self.output_dir / filename
            self._write_json(out_path, {'Games': serialized})
            log_success(logger, f"Wrote {len(serialized)} games to {out_path}")

            index.append({'console': console, 'file': filename, 'count': len(serialized)})

        self._write_json(self.unmatched_path, unmatched)
        log_success(logger, f"Wrote {len(unmatched)} unmatched entries to {self.unmatched_path}")

        self._write_json(self.index_path, {'consoles': index})
        log_success(logger, f"Wrote consoles index to {self.index_path}")

        return index

    def _report_violations(self, console: str, games: List[Dict[str, Any]]) -> None:
        violations = validate_games(games)
        if violations:
            logger.warning(
                f"Schema validation failed for {console} ({len(violations)} problems):\n  - "
                + "\n  - ".join(violations)
            )
        else:
            logger.debug(f"Schema validation passed for {console}")

    def _write_json(self, path: Path, data: Any) -> None:
        """Atomic write: temp file, then rename over the target."""
        temp_file = path.with_name(path.name + '.tmp')
        try:
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_file.replace(path)
        except OSError:
            if temp_file.exists():
                temp_file.unlink()
            raise
