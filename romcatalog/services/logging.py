"""Logging configuration for the emulator listing catalog.

structlog events and plain standard library records (py7zr, lxml) share one
processor chain and are rendered per handler by ``ProcessorFormatter``: the
console follows the environment, log files are always JSON lines.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

APP_LOG = "app.log"
ERROR_LOG = "error.log"


class LoggingService:
    """Service for configuring and managing application logging."""

    def __init__(
        self,
        log_level: str = "INFO",
        log_dir: Path | None = None,
        quiet: bool = False,
    ) -> None:
        """Initialize the logging service.

        Args:
            log_level: The minimum log level to capture
            log_dir: Directory for rotating log files (None for console only)
            quiet: If True, log only to files so stdout carries just the load summary
        """
        self.log_level = log_level.upper()
        self.log_dir = log_dir
        self.quiet = quiet
        self.is_development = os.getenv("ENVIRONMENT", "development") == "development"

    @property
    def level(self) -> int:
        return getattr(logging, self.log_level, logging.INFO)

    def configure(self) -> None:
        """Install the handlers and point structlog at the standard library."""
        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.setLevel(self.level)

        for handler in self._build_handlers():
            root_logger.addHandler(handler)

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                *self._shared_processors(),
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    def _build_handlers(self) -> list[logging.Handler]:
        handlers: list[logging.Handler] = []

        if not self.quiet:
            # stderr, so that load summaries on stdout stay machine readable
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(self.level)
            console_handler.setFormatter(self._formatter(self._console_renderer()))
            handlers.append(console_handler)

        if self.log_dir:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            json_formatter = self._formatter(structlog.processors.JSONRenderer())

            app_handler = logging.handlers.RotatingFileHandler(
                filename=self.log_dir / APP_LOG,
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
                encoding="utf-8",
            )
            app_handler.setLevel(self.level)
            app_handler.setFormatter(json_formatter)
            handlers.append(app_handler)

            # Load failures only, one JSON object per line
            error_handler = logging.handlers.RotatingFileHandler(
                filename=self.log_dir / ERROR_LOG,
                maxBytes=5 * 1024 * 1024,
                backupCount=3,
                encoding="utf-8",
            )
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(json_formatter)
            handlers.append(error_handler)

        if not handlers:
            # Keeps the logging module's last-resort stderr output away in quiet mode
            handlers.append(logging.NullHandler())

        return handlers

    def _console_renderer(self) -> Any:
        if self.is_development:
            return structlog.dev.ConsoleRenderer(colors=False)
        return structlog.processors.JSONRenderer()

    def _formatter(self, renderer: Any) -> structlog.stdlib.ProcessorFormatter:
        return structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[
                *self._shared_processors(),
                structlog.processors.format_exc_info,
            ],
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )

    @staticmethod
    def _shared_processors() -> list[Any]:
        """Processors applied to structlog events and foreign records alike."""
        return [
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
        ]

    def get_logger(self, name: str | None = None) -> structlog.stdlib.BoundLogger:
        """Get a configured logger instance.

        Args:
            name: Logger name (defaults to calling module)

        Returns:
            Configured structlog logger
        """
        return structlog.stdlib.get_logger(name)


def setup_logging(
    log_level: str = "INFO",
    log_dir: Path | None = None,
    environment: str | None = None,
    quiet: bool = False,
) -> LoggingService:
    """Set up application logging with the specified configuration.

    Args:
        log_level: Minimum log level to capture
        log_dir: Directory for log files (None for console only)
        environment: Environment name (development/production)
        quiet: If True, disable console logging

    Returns:
        Configured LoggingService instance
    """
    if environment:
        os.environ["ENVIRONMENT"] = environment

    service = LoggingService(log_level=log_level, log_dir=log_dir, quiet=quiet)
    service.configure()
    return service
