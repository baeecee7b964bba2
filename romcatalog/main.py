"""Main entry point for the listing catalog builder.

This module provides the command-line entry point with:
- Command-line argument parsing
- Service initialization and dependency injection
- Loading every listing into one catalog and an optional JSON export
"""

import argparse
import signal
import sys
from collections.abc import Sequence
from pathlib import Path

import structlog

from romcatalog import __version__
from romcatalog.models import AppConfig
from romcatalog.services.catalog import DuplicatePolicy, GameCatalog
from romcatalog.services.config import VALID_LOG_LEVELS, ConfigurationService
from romcatalog.services.errors import AppError, ConfigurationError, ErrorReporter
from romcatalog.services.filesystem import FileSystemService
from romcatalog.services.listing_loader import ListingLoaderService, LoadResult
from romcatalog.services.logging import setup_logging


log = structlog.stdlib.get_logger()


class ApplicationContext:
    """Container for application services and state.

    Services are created lazily from the loaded configuration; command-line
    overrides take precedence over the configuration file.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        namespace: str | None = None,
    ) -> None:
        self._config_path: Path | None = config_path
        self._namespace: str | None = namespace

        self._config_service: ConfigurationService | None = None
        self._filesystem: FileSystemService | None = None
        self._loader: ListingLoaderService | None = None
        self._catalog: GameCatalog | None = None
        self._config: AppConfig | None = None

        self._shutdown_requested: bool = False

    @property
    def config_service(self) -> ConfigurationService:
        """Get the configuration service (lazy initialization)."""
        if self._config_service is None:
            self._config_service = ConfigurationService(config_path=self._config_path)
        return self._config_service

    @property
    def config(self) -> AppConfig:
        """Get the current application configuration."""
        if self._config is None:
            self._config = self.config_service.load_config()
        return self._config

    @property
    def namespace(self) -> str:
        """Namespace for this run; a command-line override is validated like the file setting."""
        if self._namespace is None:
            return self.config.namespace
        if not self._namespace.strip() or "/" in self._namespace:
            raise ConfigurationError(
                "Invalid namespace.",
                setting="namespace",
                current_value=self._namespace,
                expected="a non-empty name without '/'",
            )
        return self._namespace

    @property
    def filesystem(self) -> FileSystemService:
        if self._filesystem is None:
            self._filesystem = FileSystemService()
        return self._filesystem

    @property
    def loader(self) -> ListingLoaderService:
        if self._loader is None:
            self._loader = ListingLoaderService(
                chunk_size=self.config.chunk_size,
                max_depth=self.config.max_depth,
            )
        return self._loader

    @property
    def catalog(self) -> GameCatalog:
        if self._catalog is None:
            self._catalog = GameCatalog(DuplicatePolicy(self.config.duplicate_policy))
        return self._catalog

    def request_shutdown(self) -> None:
        """Stop before the next listing is loaded."""
        self._shutdown_requested = True
        log.info("Shutdown requested")

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_requested

    def load(self, path: Path) -> LoadResult:
        """Load one listing file or archive into the shared catalog."""
        with self.filesystem.open_listing(path) as stream:
            return self.loader.load(stream, self.namespace, self.catalog)


class ParsedArgs:
    """Type-safe container for parsed command-line arguments."""

    def __init__(
        self,
        listings: list[Path],
        namespace: str | None,
        config: Path | None,
        log_level: str | None,
        log_dir: Path | None,
        output: Path | None,
        quiet: bool,
    ) -> None:
        self.listings: list[Path] = listings
        self.namespace: str | None = namespace
        self.config: Path | None = config
        self.log_level: str | None = log_level
        self.log_dir: Path | None = log_dir
        self.output: Path | None = output
        self.quiet: bool = quiet


def parse_arguments(argv: Sequence[str] | None = None) -> ParsedArgs:
    """Parse command-line arguments.

    Args:
        argv: Arguments to parse (defaults to sys.argv)

    Returns:
        Parsed arguments container
    """
    parser = argparse.ArgumentParser(
        prog="romcatalog",
        description="Build a game catalog from emulator XML listings (mame -listxml and compatible)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  romcatalog mame.xml                         Load a listing and print a summary
  romcatalog --namespace mess mess.7z         Load a listing stored in a 7z archive
  romcatalog mame.zip --output catalog.json   Export the catalog as JSON
        """
    )

    _ = parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    _ = parser.add_argument(
        "listings",
        nargs="+",
        type=Path,
        help="Listing files (.xml, or .zip/.7z archives containing one)"
    )

    _ = parser.add_argument(
        "--namespace",
        default=None,
        help="Prefix for game names and references (default: from configuration, 'mame')"
    )

    _ = parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: ~/.config/romcatalog/config.json)"
    )

    _ = parser.add_argument(
        "--log-level",
        choices=list(VALID_LOG_LEVELS),
        default=None,
        help="Set the logging level (default: from configuration, INFO)"
    )

    _ = parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for rotating log files (default: console only)"
    )

    _ = parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the catalog as JSON to this file"
    )

    _ = parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not log to the console"
    )

    ns = parser.parse_args(argv)

    return ParsedArgs(
        listings=list(ns.listings),
        namespace=ns.namespace,
        config=ns.config,
        log_level=ns.log_level,
        log_dir=ns.log_dir,
        output=ns.output,
        quiet=bool(ns.quiet),
    )


def setup_signal_handlers(context: ApplicationContext) -> None:
    """Stop between listings on SIGTERM."""
    def signal_handler(signum: int, frame: object) -> None:
        _ = frame
        log.info("Received signal", signal=signal.Signals(signum).name)
        context.request_shutdown()

    _ = signal.signal(signal.SIGTERM, signal_handler)


def run(args: ParsedArgs) -> int:
    """Load all listings and report the outcome.

    Returns:
        Exit code (0 if every listing loaded without error, 1 otherwise)
    """
    context = ApplicationContext(config_path=args.config, namespace=args.namespace)

    _ = setup_logging(
        log_level=args.log_level or context.config.log_level,
        log_dir=args.log_dir,
        quiet=args.quiet,
    )

    try:
        namespace = context.namespace
    except ConfigurationError as e:
        log.error("Invalid command-line setting", setting=e.setting, value=e.current_value)
        print(ErrorReporter.create_user_message(e), file=sys.stderr)
        return 1

    log.info(
        "Starting listing catalog builder",
        version=__version__,
        namespace=namespace,
        listings=len(args.listings),
    )

    setup_signal_handlers(context)

    exit_code = 0
    for path in args.listings:
        if context.shutdown_requested:
            exit_code = 1
            break

        try:
            result = context.load(path)
        except AppError as e:
            print(ErrorReporter.create_user_message(e), file=sys.stderr)
            exit_code = 1
            continue

        status = "ok" if result.success else "FAILED"
        print(f"{path}: {result.records} records [{status}]")
        for error in result.errors:
            print(f"  {error}", file=sys.stderr)
        if not result.success:
            exit_code = 1

    if args.output is not None:
        try:
            context.filesystem.save_json(context.catalog.to_dict(), args.output)
        except AppError as e:
            print(ErrorReporter.create_user_message(e), file=sys.stderr)
            exit_code = 1

    stats = context.catalog.statistics()
    print(
        f"Catalog: {stats['records']} records, {stats['clones']} clones, "
        f"{stats['not_playable']} not playable, {stats['duplicates']} duplicates"
    )
    return exit_code


def main() -> None:
    """Main entry point for the application."""
    args = parse_arguments()

    try:
        exit_code = run(args)
    except KeyboardInterrupt:
        log.info("Interrupted by user")
        exit_code = 130

    log.info("Application exiting", exit_code=exit_code)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
