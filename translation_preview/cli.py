"""Command line interface for the Markdown translation preview.

This module is the entry point of the ``translation-preview`` console script
and wires settings, cache, provider and preview together per command.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .cache.backends import CacheStoreError, InMemoryStore, KeyValueStore, SqliteStore
from .cache.translation_cache import TranslationCache
from .config.settings import ConfigurationError, TranslationSettings, get_settings
from .errors import ErrorKind, TranslationError
from .providers.factory import TranslationProviderFactory
from .providers.openai_compatible import OpenAICompatibleProvider
from .services.documents import find_translatable_headings, read_document
from .services.orchestrator import TranslationOrchestrator
from .services.preview import TranslationPreview
from .ui.console import ConsoleManager
from .utils.logging_factory import PACKAGE_LOGGER, LoggingFactory

logger = logging.getLogger(__name__)


def setup_logging(
    console_manager: ConsoleManager,
    verbose: bool = False,
    log_dir: Optional[Path] = None,
    log_level: str = "INFO",
) -> None:
    """Setup logging for the package.

    Args:
        console_manager: Console manager providing the Rich/JSON handler
        verbose: If True, force DEBUG regardless of ``log_level``
        log_dir: Optional directory for the translation.log file
        log_level: Configured level name used when not verbose
    """
    level = logging.DEBUG if verbose else getattr(logging, log_level.upper(), logging.INFO)
    LoggingFactory.initialize(log_dir=log_dir, level=level, console=False)
    console_manager.setup_logging(logging.getLogger(PACKAGE_LOGGER), level=level)
    LoggingFactory.configure_level(level)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="translation-preview",
        description="Stream English to Chinese translations of Markdown documents with caching",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  # Preview the translation of a whole document
  translation-preview translate docs/guide.md

  # Translate only the section starting at line 12
  translation-preview headings docs/guide.md
  translation-preview translate docs/guide.md --section 12

  # Ignore the cached translation and translate again
  translation-preview translate docs/guide.md --force

  # Inspect configuration and backend connectivity
  translation-preview check-settings
  translation-preview test-connection

Configuration (environment or .env):
  SPECKIT_TRANSLATION_API_KEY                API key for the FRIDAY backend
  SPECKIT_TRANSLATION_BASE_URL               Backend base URL
  SPECKIT_TRANSLATION_MODEL                  Default model
  SPECKIT_TRANSLATION_SKIP_SSL_VERIFICATION  Disable TLS verification for the backend

Without an API key the offline stand-in translator is used.
        """,
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--json-output",
        action="store_true",
        help="Emit machine-readable JSON lines instead of rich output",
    )
    parser.add_argument(
        "--cache-dir", type=Path, help="Directory of the translation cache database"
    )
    parser.add_argument(
        "--no-persist",
        action="store_true",
        help="Use an in-memory cache that is discarded on exit",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands", required=True)

    translate_parser = subparsers.add_parser(
        "translate",
        help="Stream a translation preview of a Markdown file",
        description="Translate a Markdown file (or one of its sections) with live streaming output",
    )
    translate_parser.add_argument("file", help="Markdown file to translate")
    translate_parser.add_argument(
        "--section",
        type=int,
        metavar="LINE",
        help="Translate only the section starting at this 0-based heading line",
    )
    translate_parser.add_argument(
        "--force", action="store_true", help="Bypass the cache and translate again"
    )
    translate_parser.add_argument("--model", help="Model to use (default: provider default)")
    translate_parser.add_argument(
        "--provider",
        choices=TranslationProviderFactory.get_available_providers(),
        help="Translation provider (default: live backend if configured, else mock)",
    )

    headings_parser = subparsers.add_parser(
        "headings", help="List sections that can be translated on their own"
    )
    headings_parser.add_argument("file", help="Markdown file to inspect")

    subparsers.add_parser("clear-cache", help="Remove every cached translation")
    subparsers.add_parser("stats", help="Show translation cache statistics")
    subparsers.add_parser("check-settings", help="Show the effective (redacted) settings")
    subparsers.add_parser("test-connection", help="Check that the live backend answers")

    return parser


def _build_store(args: argparse.Namespace, settings: TranslationSettings) -> KeyValueStore:
    if args.no_persist:
        return InMemoryStore()
    return SqliteStore(args.cache_dir or settings.cache_dir)


async def _run_translate(
    args: argparse.Namespace, settings: TranslationSettings, console_manager: ConsoleManager
) -> int:
    store = _build_store(args, settings)
    provider = TranslationProviderFactory.create_default(settings, prefer=args.provider)
    preview = TranslationPreview(
        TranslationOrchestrator(provider, TranslationCache(store)),
        renderer=console_manager.render_update,
        error_reporter=console_manager.report_error,
    )

    try:
        if args.section is not None:
            outcome = await preview.show_section(
                args.file, args.section, force_bypass_cache=args.force, model=args.model
            )
        else:
            outcome = await preview.show_path(
                args.file, force_bypass_cache=args.force, model=args.model
            )
    finally:
        console_manager.stop_live()
        await provider.aclose()
        await store.close()

    if outcome is None:
        return 1
    console_manager.print_outcome(outcome)
    return 0


def translate_command(
    args: argparse.Namespace, settings: TranslationSettings, console_manager: ConsoleManager
) -> int:
    """Handle the translate subcommand.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        return asyncio.run(_run_translate(args, settings, console_manager))
    except (FileNotFoundError, ValueError) as e:
        console_manager.print_message(str(e), "error")
        return 1


def headings_command(args: argparse.Namespace, console_manager: ConsoleManager) -> int:
    """Handle the headings subcommand."""
    try:
        text = read_document(args.file)
    except (FileNotFoundError, ValueError) as e:
        console_manager.print_message(str(e), "error")
        return 1
    console_manager.print_headings(find_translatable_headings(text), args.file)
    return 0


async def _run_cache_command(
    args: argparse.Namespace, settings: TranslationSettings, console_manager: ConsoleManager
) -> int:
    store = _build_store(args, settings)
    cache = TranslationCache(store)
    try:
        if args.command == "clear-cache":
            removed = await cache.clear()
            console_manager.print_message(f"Removed {removed} cached translations", "success")
        console_manager.print_stats(await cache.get_stats())
    finally:
        await store.close()
    return 0


def cache_command(
    args: argparse.Namespace, settings: TranslationSettings, console_manager: ConsoleManager
) -> int:
    """Handle the clear-cache and stats subcommands."""
    return asyncio.run(_run_cache_command(args, settings, console_manager))


def check_settings_command(settings: TranslationSettings, console_manager: ConsoleManager) -> int:
    """Handle the check-settings subcommand."""
    console_manager.print_settings(settings.describe())
    for name, status in TranslationProviderFactory.get_provider_status(settings).items():
        state = "available" if status.get("available") else "unavailable"
        logger.info(f"Provider '{name}': {state}")
    return 0


async def _run_connection_check(
    settings: TranslationSettings, console_manager: ConsoleManager
) -> int:
    provider = OpenAICompatibleProvider(settings)
    if not provider.is_available():
        console_manager.report_error(
            TranslationError(
                "FRIDAY API is not configured. Please set your API key first.",
                kind=ErrorKind.CONFIGURATION,
            )
        )
        return 1

    try:
        console_manager.print_message(f"Testing connection to {provider.base_url}...")
        ok = await provider.test_connection()
    finally:
        await provider.aclose()

    if ok:
        console_manager.print_message("Connection successful", "success")
        return 0
    console_manager.print_message(
        "Connection failed. Check your API key, base URL and network.", "error"
    )
    return 1


def connection_command(settings: TranslationSettings, console_manager: ConsoleManager) -> int:
    """Handle the test-connection subcommand."""
    return asyncio.run(_run_connection_check(settings, console_manager))


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    console_manager = ConsoleManager(verbose=args.verbose, json_output=args.json_output)

    try:
        settings = get_settings()
    except ConfigurationError as e:
        console_manager.report_error(TranslationError(str(e), kind=ErrorKind.CONFIGURATION))
        return 1

    setup_logging(console_manager, args.verbose, settings.log_dir, settings.log_level)

    try:
        if args.command == "translate":
            return translate_command(args, settings, console_manager)
        elif args.command == "headings":
            return headings_command(args, console_manager)
        elif args.command in ("clear-cache", "stats"):
            return cache_command(args, settings, console_manager)
        elif args.command == "check-settings":
            return check_settings_command(settings, console_manager)
        elif args.command == "test-connection":
            return connection_command(settings, console_manager)
        else:
            parser.print_help()
            return 1
    except CacheStoreError as e:
        console_manager.report_error(
            TranslationError(f"Translation cache unavailable: {e}", kind=ErrorKind.PERSISTENCE)
        )
        return 1
    except KeyboardInterrupt:
        logger.error("Operation cancelled by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
