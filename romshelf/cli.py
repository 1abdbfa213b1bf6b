"""Command-line interface for romshelf."""

import sys
import logging
import argparse
import asyncio
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

from romshelf import __version__
from romshelf.config.loader import load_config, ConfigError
from romshelf.config.validator import validate_config, ValidationError
from romshelf.config.platforms import find_missing_cores
from romshelf.api.client import IGDBClient
from romshelf.api.connection_pool import ConnectionPoolManager
from romshelf.api.error_handler import FatalAPIError
from romshelf.api.throttle import ThrottleManager
from romshelf.library.store import LibraryStore
from romshelf.logging_utils import SUCCESS, log_success
from romshelf.media.assets import AssetLocator
from romshelf.media.downloader import ImageDownloader
from romshelf.scanner.rom_scanner import scan_library, ScannerError
from romshelf.workflow.orchestrator import LibraryOrchestrator
from romshelf.workflow.progress import ProgressTracker
from romshelf.workflow.shutdown import InterruptHandler


EXIT_INTERRUPTED = 130


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog='romshelf',
        description='IGDB metadata enrichment for local ROM libraries',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Enrich the library using ./config.yaml
  romshelf

  # Rebuild the JSON files without contacting IGDB
  romshelf --offline

  # Store image URLs instead of downloading
  romshelf --lazy-download

  # Only fetch metadata for games that have none yet
  romshelf --skip-existing

  # Use custom config file
  romshelf --config /path/to/config.yaml
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=Path,
        metavar='PATH',
        help='Path to config.yaml (default: ./config.yaml)'
    )

    parser.add_argument(
        '--offline',
        action='store_true',
        help='Do not contact IGDB; only merge local files. Overrides config.'
    )

    parser.add_argument(
        '--lazy-download',
        action='store_true',
        help='Store image URLs instead of downloading images. Overrides config.'
    )

    parser.add_argument(
        '--skip-existing',
        action='store_true',
        help='Do not refetch games that already have metadata. Overrides config.'
    )

    parser.add_argument(
        '--concurrency',
        type=int,
        metavar='N',
        help='Maximum concurrent IGDB requests. Overrides config.'
    )

    parser.add_argument(
        '--validate-schema',
        action='store_true',
        help='Validate each console file against the JSON schema. Overrides config.'
    )

    parser.add_argument(
        '--tags',
        action='store_true',
        help='Generate TagList from descriptions and genres. Overrides config.'
    )

    return parser


def _setup_logging(config: dict) -> None:
    """
    Setup logging configuration from config.

    Args:
        config: Configuration dictionary
    """
    logging_config = config.get('logging', {})

    level_str = logging_config.get('level', 'INFO').upper()
    level = SUCCESS if level_str == 'SUCCESS' else getattr(logging, level_str, logging.INFO)

    handlers = []

    if logging_config.get('console', True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
        handlers.append(console_handler)

    log_file = logging_config.get('file')
    if log_file:
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(level)
            file_handler.setFormatter(
                logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            )
            handlers.append(file_handler)
        except OSError as e:
            print(f"Error: Could not create log file '{log_file}': {e}", file=sys.stderr)
            sys.exit(1)

    logging.basicConfig(
        level=level,
        handlers=handlers,
        force=True  # Override any existing configuration
    )

    # httpx logs full URLs at INFO/DEBUG, including the token request's client secret
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)

    # Suppress PIL/Pillow debug logging (verbose chunk parsing messages)
    logging.getLogger('PIL').setLevel(logging.INFO)


def apply_overrides(config: dict, args: argparse.Namespace) -> None:
    """Apply command-line overrides to the loaded configuration."""
    settings = config.setdefault('settings', {})

    if args.offline:
        settings['offline_mode'] = True
    if args.lazy_download:
        settings['lazy_download'] = True
    if args.skip_existing:
        settings['skip_existing_metadata'] = True
    if args.concurrency is not None:
        settings['concurrency'] = args.concurrency
    if args.validate_schema:
        settings['validate_schema'] = True
    if args.tags:
        settings['tag_generation'] = True


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for romshelf CLI.

    Args:
        argv: Command-line arguments (default: sys.argv)

    Returns:
        Exit code (0 success, 1 failure, 130 interrupted)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Load and validate configuration
    try:
        config = load_config(args.config)
        apply_overrides(config, args)
        validate_config(config)
    except (ConfigError, ValidationError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    _setup_logging(config)

    try:
        return asyncio.run(run_pipeline(config))
    except KeyboardInterrupt:
        print("\n\nRun aborted by user.", file=sys.stderr)
        return EXIT_INTERRUPTED


async def run_pipeline(config: dict, show_progress: Optional[bool] = None) -> int:
    """
    Run the enrichment pipeline (async).

    Args:
        config: Loaded and validated configuration
        show_progress: Force the progress bar on or off (default: TTY detection)

    Returns:
        Exit code
    """
    paths = config['paths']
    settings = config['settings']

    rom_root = Path(paths['roms'])
    output_dir = Path(paths.get('output') or 'data')
    images_dir = Path(paths.get('images') or output_dir / 'images')
    cores_dir = Path(paths.get('cores') or '')

    if not rom_root.exists():
        logger.error(f"ROM directory does not exist: {rom_root}")
        return 1

    output_dir.mkdir(parents=True, exist_ok=True)
    images_dir.mkdir(parents=True, exist_ok=True)

    for console_key, core_path in find_missing_cores(cores_dir):
        logger.warning(f"Core for '{console_key}' not found at {core_path}")

    store = LibraryStore(output_dir, validate_schema=settings.get('validate_schema', False))
    throttle_manager = ThrottleManager(
        max_concurrent=settings.get('concurrency', 2),
        adaptive=settings.get('adaptive_rate', False)
    )
    pool_manager = ConnectionPoolManager(config)
    interrupt_handler = InterruptHandler()

    try:
        http_client = None if settings.get('offline_mode') else await pool_manager.get_client()
        api_client = IGDBClient(config, throttle_manager, client=http_client)

        downloader = None
        if http_client is not None and not settings.get('lazy_download'):
            downloader = ImageDownloader(
                http_client,
                validate_images=config.get('media', {}).get('validate_images', False)
            )

        orchestrator = LibraryOrchestrator(
            config=config,
            api_client=api_client,
            store=store,
            assets=AssetLocator(images_dir),
            downloader=downloader,
            progress=ProgressTracker(enabled=show_progress),
            shutdown_event=interrupt_handler.shutdown_event,
        )

        orchestrator.load_existing()

        try:
            entries = scan_library(rom_root)
        except ScannerError as e:
            logger.error(str(e))
            return 1

        if entries:
            try:
                await api_client.initialize()
            except FatalAPIError as e:
                logger.error(str(e))
                return 1

        interrupt_handler.install(asyncio.get_running_loop())
        interrupt_handler.running = True
        try:
            result = await orchestrator.run(entries)
        except OSError as e:
            logger.error(f"Failed to save library: {e}")
            return 1
        finally:
            interrupt_handler.running = False

        if result.interrupted:
            logger.warning(
                f"Interrupted: progress saved ({result.processed}/{result.total_entries} entries)"
            )
            return EXIT_INTERRUPTED

        log_success(logger, f"Done! Processed {result.total_records} total games.")
        return 0

    finally:
        await pool_manager.close_client()
        interrupt_handler.restore()
