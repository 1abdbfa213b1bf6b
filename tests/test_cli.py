"""Tests for the command-line entry point and run_pipeline exit codes."""

import json

import pytest

from romshelf.cli import EXIT_INTERRUPTED, apply_overrides, create_parser, main, run_pipeline


@pytest.mark.unit
def test_parser_flags():
    args = create_parser().parse_args([
        '--offline', '--lazy-download', '--skip-existing', '--concurrency', '4',
        '--validate-schema', '--tags',
    ])

    assert args.offline
    assert args.lazy_download
    assert args.skip_existing
    assert args.concurrency == 4
    assert args.validate_schema
    assert args.tags
    assert args.config is None


@pytest.mark.unit
def test_overrides_only_touch_given_flags(library_config):
    config = library_config({'settings': {'concurrency': 3, 'lazy_download': True}})
    args = create_parser().parse_args(['--offline'])

    apply_overrides(config, args)

    assert config['settings']['offline_mode'] is True
    assert config['settings']['lazy_download'] is True
    assert config['settings']['concurrency'] == 3
    assert config['settings']['skip_existing_metadata'] is False


@pytest.mark.unit
def test_missing_config_file_exits_with_error(tmp_path, capsys):
    assert main(['--config', str(tmp_path / 'missing.yaml')]) == 1
    assert 'Configuration error' in capsys.readouterr().err


@pytest.mark.unit
def test_invalid_config_exits_with_error(make_config, capsys):
    path = make_config({'igdb': {'client_id': '', 'client_secret': ''}})

    assert main(['--config', str(path)]) == 1
    assert 'igdb.client_id' in capsys.readouterr().err


@pytest.mark.integration
def test_offline_main_builds_library(make_config, make_rom, tmp_path):
    make_rom('NES/Contra (U).nes')
    make_rom('Game Boy/Tetris (W).gb')
    path = make_config({'logging': {'console': False}})

    assert main(['--config', str(path), '--offline']) == 0

    index = json.loads((tmp_path / 'data' / 'consoles_index.json').read_text(encoding='utf-8'))
    assert [entry['console'] for entry in index['consoles']] == ['Game Boy', 'NES']


@pytest.mark.integration
@pytest.mark.asyncio
async def test_pipeline_missing_rom_root_fails(library_config):
    config = library_config({'settings': {'offline_mode': True}})

    assert await run_pipeline(config, show_progress=False) == 1


@pytest.mark.integration
@pytest.mark.asyncio
async def test_pipeline_fails_without_credentials(library_config, make_rom):
    make_rom('NES/Contra (U).nes')
    config = library_config({'igdb': {'client_id': '', 'client_secret': ''}})

    assert await run_pipeline(config, show_progress=False) == 1


@pytest.mark.integration
@pytest.mark.asyncio
async def test_pipeline_empty_library_skips_authentication(library_config, tmp_path):
    (tmp_path / 'roms').mkdir()
    config = library_config({'igdb': {'client_id': '', 'client_secret': ''}})

    assert await run_pipeline(config, show_progress=False) == 0
    assert (tmp_path / 'data' / 'unmatched.json').exists()


@pytest.mark.unit
def test_interrupted_exit_code():
    assert EXIT_INTERRUPTED == 130
