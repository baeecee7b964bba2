"""Service layer: listing parsing, catalog and application plumbing."""

from .catalog import DuplicatePolicy, GameCatalog
from .config import ConfigurationService, ValidationResult
from .dispatch import LISTING_TABLE, DispatchEntry, PathToken, TokenKind, WildcardSet, match_entry
from .errors import (
    AppError,
    ConfigurationError,
    ErrorCategory,
    ErrorReporter,
    ErrorSeverity,
    FileSystemError,
    InvalidStateError,
    ListingError,
    ListingReadError,
    ListingSyntaxError,
    LowMemoryError,
    UserFriendlyError,
)
from .filesystem import FileSystemService
from .handlers import Event, FieldHandler
from .level_stack import MAX_DEPTH, LevelFrame, LevelStack
from .listing_loader import ListingLoaderService, LoadResult, load_listing
from .record_builder import RecordBuilder

__all__ = [
    "AppError",
    "ConfigurationError",
    "ConfigurationService",
    "DispatchEntry",
    "DuplicatePolicy",
    "ErrorCategory",
    "ErrorReporter",
    "ErrorSeverity",
    "Event",
    "FieldHandler",
    "FileSystemError",
    "FileSystemService",
    "GameCatalog",
    "InvalidStateError",
    "LISTING_TABLE",
    "LevelFrame",
    "LevelStack",
    "ListingError",
    "ListingLoaderService",
    "ListingReadError",
    "ListingSyntaxError",
    "LoadResult",
    "LowMemoryError",
    "MAX_DEPTH",
    "PathToken",
    "RecordBuilder",
    "TokenKind",
    "UserFriendlyError",
    "ValidationResult",
    "WildcardSet",
    "load_listing",
    "match_entry",
]
