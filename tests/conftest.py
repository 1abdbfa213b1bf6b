"""
Shared pytest fixtures and utilities for the romshelf test suite.
"""

from pathlib import Path
from typing import Any, Callable, Dict, Optional

import pytest
import yaml

from romshelf.config.loader import apply_defaults


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., Path]:
    """
    Create a minimal config.yaml in a temp directory.

    Usage:
        path = make_config({"settings": {"offline_mode": True}})
    """

    def _builder(overrides: Optional[Dict[str, Any]] = None) -> Path:
        base = {
            "paths": {
                "roms": str(tmp_path / "roms"),
                "output": str(tmp_path / "data"),
                "images": str(tmp_path / "data" / "images"),
                "cores": str(tmp_path / "cores"),
            },
            "igdb": {"client_id": "test-client", "client_secret": "test-secret"},
        }
        if overrides:
            base = merge_dicts(base, overrides)

        cfg_path = tmp_path / "config.yaml"
        cfg_path.write_text(yaml.safe_dump(base))
        return cfg_path

    return _builder


@pytest.fixture
def library_config(tmp_path: Path) -> Callable[..., Dict[str, Any]]:
    """
    Build a complete in-memory configuration rooted in tmp_path.

    Usage:
        config = library_config({"settings": {"lazy_download": True}})
    """

    def _builder(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        base = {
            "paths": {
                "roms": str(tmp_path / "roms"),
                "output": str(tmp_path / "data"),
                "images": str(tmp_path / "data" / "images"),
                "cores": str(tmp_path / "cores"),
            },
            "igdb": {"client_id": "test-client", "client_secret": "test-secret"},
        }
        return apply_defaults(merge_dicts(base, overrides or {}))

    return _builder


@pytest.fixture
def make_rom(tmp_path: Path) -> Callable[[str, int], Path]:
    """
    Create a ROM file below tmp_path/roms.

    Usage:
        path = make_rom("NES/Zelda II (USA).nes", size=16)
    """

    def _builder(relative: str, size: int = 4) -> Path:
        path = tmp_path / "roms" / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"\0" * size)
        return path

    return _builder


@pytest.fixture
def igdb_game() -> Callable[..., Dict[str, Any]]:
    """
    Build minimal IGDB game objects.

    Usage:
        game = igdb_game(7346, "Zelda II: The Adventure of Link", platforms=[18])
    """

    def _builder(game_id: int, name: str, **fields: Any) -> Dict[str, Any]:
        game = {"id": game_id, "name": name}
        game.update(fields)
        return game

    return _builder


def merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shallow+deep merge helper for fixture config dictionaries.
    """
    result: Dict[str, Any] = dict(base)
    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result
