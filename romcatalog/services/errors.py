"""Error handling module for the emulator listing catalog.

This module provides:
- Custom exception classes for the listing load errors (read, syntax, state, memory)
- Exception classes for the surrounding application (configuration, file system)
- User-friendly error message generation with suggested actions
- A per-load error reporter that latches the load as failed
"""

import zipfile
import zlib
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog
from lxml import etree

log = structlog.stdlib.get_logger()

# Exceptions a listing stream can raise while being read. Compressed members
# report corrupt data with their own exception types.
READ_ERRORS = (OSError, ValueError, EOFError, zipfile.BadZipFile, zlib.error)


class ErrorCategory(Enum):
    """Categories of errors for classification and handling."""
    IO = "io"
    SYNTAX = "syntax"
    SEMANTIC = "semantic"
    ALLOCATION = "allocation"
    FILE_SYSTEM = "file_system"
    CONFIGURATION = "configuration"
    UNEXPECTED = "unexpected"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass(frozen=True)
class UserFriendlyError:
    """User-friendly error representation with suggested actions."""
    message: str
    category: ErrorCategory
    severity: ErrorSeverity
    suggested_actions: list[str]
    technical_details: str | None = None
    recoverable: bool = True


class AppError(Exception):
    """Base exception class for application errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNEXPECTED,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        suggested_actions: list[str] | None = None,
        technical_details: str | None = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.suggested_actions = suggested_actions or []
        self.technical_details = technical_details
        self.recoverable = recoverable

    def to_user_friendly(self) -> UserFriendlyError:
        """Convert to user-friendly error representation."""
        return UserFriendlyError(
            message=self.message,
            category=self.category,
            severity=self.severity,
            suggested_actions=self.suggested_actions,
            technical_details=self.technical_details,
            recoverable=self.recoverable,
        )


class ListingError(AppError):
    """Base class for errors raised while loading a listing.

    Carries the offending element/attribute name and the line number where
    the tokenizer was when the error was detected, when they are known.
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        tag: str | None = None,
        line: int | None = None,
        suggested_actions: list[str] | None = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
    ) -> None:
        technical_details = None
        if line is not None:
            technical_details = f"Line: {line}"
        if tag:
            technical_details = (technical_details + "\n" if technical_details else "") + f"Element: {tag}"

        super().__init__(
            message=message,
            category=category,
            severity=severity,
            suggested_actions=suggested_actions,
            technical_details=technical_details,
            recoverable=False,
        )
        self.tag = tag
        self.line = line

    def __str__(self) -> str:
        if self.line is None:
            return f"Error reading for {self.message}"
        if self.tag:
            return f"Error reading at line {self.line} for element/attribute `{self.tag}' for {self.message}"
        return f"Error reading at line {self.line} for {self.message}"


class ListingReadError(ListingError):
    """The input stream could not be read."""

    def __init__(self, message: str = "read error", original_error: Exception | None = None) -> None:
        super().__init__(
            message=message,
            category=ErrorCategory.IO,
            suggested_actions=[
                "Check that the listing file is readable",
                "Regenerate the listing if the file is truncated",
            ],
            severity=ErrorSeverity.CRITICAL,
        )
        self.original_error = original_error
        if original_error:
            self.technical_details = f"{type(original_error).__name__}: {str(original_error)}"


class ListingSyntaxError(ListingError):
    """The tokenizer rejected malformed markup."""

    def __init__(self, message: str, line: int | None = None) -> None:
        super().__init__(
            message=message,
            category=ErrorCategory.SYNTAX,
            line=line,
            suggested_actions=[
                "The listing is not well-formed XML",
                "Regenerate the listing with the emulator's -listxml option",
            ],
            severity=ErrorSeverity.CRITICAL,
        )


class InvalidStateError(ListingError):
    """A field was found outside of the record that should own it."""

    def __init__(self, tag: str | None = None, line: int | None = None) -> None:
        super().__init__(
            message="invalid state",
            category=ErrorCategory.SEMANTIC,
            tag=tag,
            line=line,
            suggested_actions=[
                "The listing layout does not match the expected game/machine structure",
            ],
        )


class LowMemoryError(ListingError):
    """The character data of an element could not be accumulated."""

    def __init__(self, tag: str | None = None, line: int | None = None) -> None:
        super().__init__(
            message="low memory",
            category=ErrorCategory.ALLOCATION,
            tag=tag,
            line=line,
            suggested_actions=[
                "Close other applications to free memory",
                "Check the listing for abnormally large text content",
            ],
        )


class FileSystemError(AppError):
    """Exception for file system-related errors."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        path: str | None = None,
        operation: str | None = None,
    ) -> None:
        suggested_actions = self._get_suggested_actions(original_error)

        technical_details = None
        if original_error:
            technical_details = f"{type(original_error).__name__}: {str(original_error)}"
        if path:
            technical_details = f"Path: {path}" + (f"\n{technical_details}" if technical_details else "")

        super().__init__(
            message=message,
            category=ErrorCategory.FILE_SYSTEM,
            severity=ErrorSeverity.ERROR,
            suggested_actions=suggested_actions,
            technical_details=technical_details,
            recoverable=True,
        )
        self.original_error = original_error
        self.path = path
        self.operation = operation

    @staticmethod
    def _get_suggested_actions(original_error: Exception | None) -> list[str]:
        """Get suggested actions based on error type."""
        if isinstance(original_error, PermissionError):
            return [
                "Check file/directory permissions",
                "Choose a different location",
            ]
        elif isinstance(original_error, FileNotFoundError):
            return [
                "Verify the file path is correct",
                "Check if the file was moved or deleted",
            ]

        return [
            "Check the file path and permissions",
            "Verify the archive contains an .xml listing",
        ]


class ConfigurationError(AppError):
    """Exception for configuration-related errors."""

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        current_value: Any = None,
        expected: str | None = None,
    ) -> None:
        suggested_actions = [
            "Check the configuration settings",
            "Reset to default values if needed",
        ]
        if expected:
            suggested_actions.append(f"Expected: {expected}")

        technical_details = None
        if setting:
            technical_details = f"Setting: {setting}"
        if current_value is not None:
            technical_details = (technical_details or "") + f"\nCurrent: {current_value}"

        super().__init__(
            message=message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.ERROR,
            suggested_actions=suggested_actions,
            technical_details=technical_details,
            recoverable=True,
        )
        self.setting = setting
        self.current_value = current_value
        self.expected = expected


class ErrorReporter:
    """Collects the errors of a single listing load.

    One reporter is created per load; recording any error latches the load
    as failed. Errors are logged with their technical details as they are
    recorded and kept in order for the caller.
    """

    def __init__(self, namespace: str = "") -> None:
        self.namespace = namespace
        self._errors: list[ListingError] = []

    @property
    def failed(self) -> bool:
        """True once any error has been recorded."""
        return bool(self._errors)

    @property
    def errors(self) -> tuple[ListingError, ...]:
        """Recorded errors in the order they happened."""
        return tuple(self._errors)

    def record(self, error: ListingError) -> ListingError:
        """Record and log an error, latching the load as failed."""
        self._errors.append(error)
        self._log_error(error)
        return error

    def handle_error(
        self,
        error: Exception,
        tag: str | None = None,
        line: int | None = None,
    ) -> ListingError:
        """Convert a raw exception to a listing error and record it.

        Args:
            error: The exception that occurred
            tag: The element/attribute being processed, if any
            line: The current tokenizer line, if known

        Returns:
            The recorded listing error
        """
        return self.record(self._convert_to_listing_error(error, tag, line))

    @staticmethod
    def _convert_to_listing_error(
        error: Exception,
        tag: str | None,
        line: int | None,
    ) -> ListingError:
        """Convert a standard exception to a ListingError."""
        if isinstance(error, ListingError):
            if error.line is None and line is not None and not isinstance(error, ListingReadError):
                error.line = line
            if error.tag is None and tag is not None:
                error.tag = tag
            return error

        if isinstance(error, etree.XMLSyntaxError):
            return ListingSyntaxError(error.msg or str(error), line=error.lineno)
        elif isinstance(error, MemoryError):
            return LowMemoryError(tag=tag, line=line)
        elif isinstance(error, READ_ERRORS):
            return ListingReadError(original_error=error)

        raise error

    def _log_error(self, error: ListingError) -> None:
        """Log error with full technical details."""
        log_method = log.warning if error.severity == ErrorSeverity.WARNING else log.error

        log_method(
            str(error),
            category=error.category.value,
            severity=error.severity.value,
            namespace=self.namespace,
            tag=error.tag,
            line=error.line,
            technical_details=error.technical_details,
        )

    @staticmethod
    def create_user_message(
        error: AppError,
        include_suggestions: bool = True,
    ) -> str:
        """Create a formatted user message from an error.

        Args:
            error: The application error
            include_suggestions: Whether to include suggested actions

        Returns:
            Formatted message string
        """
        parts = [str(error)]

        if include_suggestions and error.suggested_actions:
            parts.append("\nSuggested actions:")
            for action in error.suggested_actions[:3]:
                parts.append(f"  • {action}")

        return "\n".join(parts)
