"""Tests for error classification, reporting and user-facing messages."""

import zipfile
import zlib
from unittest.mock import patch

import pytest
from hypothesis import given, strategies as st
from lxml import etree

from romcatalog.services.errors import (
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
)


def syntax_error(document: bytes) -> etree.XMLSyntaxError:
    with pytest.raises(etree.XMLSyntaxError) as exc_info:
        etree.fromstring(document)
    return exc_info.value


class TestListingErrorMessages:
    """The message format of listing errors."""

    def test_message_with_tag_and_line(self) -> None:
        error = InvalidStateError(tag="name", line=12)

        assert str(error) == "Error reading at line 12 for element/attribute `name' for invalid state"

    def test_message_with_line_only(self) -> None:
        error = ListingSyntaxError("mismatched tag", line=4)

        assert str(error) == "Error reading at line 4 for mismatched tag"

    def test_message_without_position(self) -> None:
        assert str(ListingReadError()) == "Error reading for read error"

    @given(
        tag=st.text(alphabet="abcdefghijklmnopqrstuvwxyz", min_size=1, max_size=15),
        line=st.integers(min_value=1, max_value=10**7),
    )
    def test_position_is_always_reported(self, tag: str, line: int) -> None:
        """**Feature: listing catalog, Property: Error position reporting**

        Every semantic error names the offending element and the line where
        it was detected.
        """
        for error in (InvalidStateError(tag=tag, line=line), LowMemoryError(tag=tag, line=line)):
            message = str(error)
            assert f"line {line}" in message
            assert f"`{tag}'" in message
            assert f"Line: {line}" in error.technical_details
            assert f"Element: {tag}" in error.technical_details

    @pytest.mark.parametrize(
        ("error", "category", "severity"),
        [
            (ListingReadError(), ErrorCategory.IO, ErrorSeverity.CRITICAL),
            (ListingSyntaxError("bad"), ErrorCategory.SYNTAX, ErrorSeverity.CRITICAL),
            (InvalidStateError(), ErrorCategory.SEMANTIC, ErrorSeverity.ERROR),
            (LowMemoryError(), ErrorCategory.ALLOCATION, ErrorSeverity.ERROR),
        ],
    )
    def test_classification(self, error: ListingError, category: ErrorCategory, severity: ErrorSeverity) -> None:
        assert error.category is category
        assert error.severity is severity
        assert not error.recoverable
        assert error.suggested_actions

    def test_read_error_keeps_original_error(self) -> None:
        original = OSError("device not ready")
        error = ListingReadError(original_error=original)

        assert error.original_error is original
        assert error.technical_details == "OSError: device not ready"


class TestErrorReporter:
    """The per-load error reporter."""

    def test_starts_clean(self) -> None:
        reporter = ErrorReporter("mame")

        assert not reporter.failed
        assert reporter.errors == ()

    def test_record_latches_failure_and_logs(self) -> None:
        reporter = ErrorReporter("mame")

        with patch("romcatalog.services.errors.log") as mock_logger:
            error = reporter.record(InvalidStateError(tag="year", line=3))

        assert reporter.failed
        assert reporter.errors == (error,)
        mock_logger.error.assert_called_once()
        args, kwargs = mock_logger.error.call_args
        assert args[0] == str(error)
        assert kwargs["namespace"] == "mame"
        assert kwargs["tag"] == "year"
        assert kwargs["line"] == 3
        assert kwargs["category"] == "semantic"

    def test_errors_are_kept_in_order(self) -> None:
        reporter = ErrorReporter()
        first = reporter.record(LowMemoryError(tag="description", line=1))
        second = reporter.record(ListingReadError())

        assert reporter.errors == (first, second)

    def test_listing_error_gets_position_filled_in(self) -> None:
        reporter = ErrorReporter()

        error = reporter.handle_error(InvalidStateError(), tag="cloneof", line=8)

        assert isinstance(error, InvalidStateError)
        assert error.tag == "cloneof"
        assert error.line == 8

    def test_known_position_is_not_overwritten(self) -> None:
        reporter = ErrorReporter()

        error = reporter.handle_error(InvalidStateError(tag="name", line=2), tag="other", line=9)

        assert error.tag == "name"
        assert error.line == 2

    def test_syntax_error_conversion(self) -> None:
        reporter = ErrorReporter()
        original = syntax_error(b"<mame>\n<game>\n</mame>")

        error = reporter.handle_error(original)

        assert isinstance(error, ListingSyntaxError)
        assert error.line == original.lineno
        assert error.line >= 2
        assert error.message

    @pytest.mark.parametrize(
        ("original", "expected_type"),
        [
            (OSError("broken pipe"), ListingReadError),
            (ValueError("I/O operation on closed file."), ListingReadError),
            (MemoryError(), LowMemoryError),
            (zipfile.BadZipFile("Bad CRC-32 for file 'mame.xml'"), ListingReadError),
            (zlib.error("invalid stored block lengths"), ListingReadError),
            (EOFError(), ListingReadError),
        ],
    )
    def test_standard_exception_conversion(self, original: Exception, expected_type: type[ListingError]) -> None:
        reporter = ErrorReporter()

        error = reporter.handle_error(original, tag="rom", line=5)

        assert isinstance(error, expected_type)
        assert reporter.failed

    def test_unexpected_exception_propagates(self) -> None:
        reporter = ErrorReporter()

        with pytest.raises(KeyError):
            reporter.handle_error(KeyError("programming error"))

        assert not reporter.failed


class TestUserMessages:
    """User-friendly messages with suggested actions."""

    def test_message_includes_suggestions(self) -> None:
        error = FileSystemError("The listing could not be opened.", original_error=FileNotFoundError("x"), path="/x.xml")

        message = ErrorReporter.create_user_message(error)

        assert message.startswith("The listing could not be opened.")
        assert "Suggested actions:" in message
        assert "Verify the file path is correct" in message

    def test_suggestions_can_be_omitted(self) -> None:
        error = ConfigurationError("Bad setting", setting="chunk_size", current_value=0, expected="positive integer")

        assert ErrorReporter.create_user_message(error, include_suggestions=False) == "Bad setting"

    def test_at_most_three_suggestions(self) -> None:
        error = AppError("Many options", suggested_actions=["one", "two", "three", "four"])

        message = ErrorReporter.create_user_message(error)

        assert "four" not in message
        assert message.count("  • ") == 3

    def test_to_user_friendly(self) -> None:
        error = FileSystemError("Write failed", original_error=PermissionError("denied"), path="/out.json")

        friendly = error.to_user_friendly()

        assert friendly.message == "Write failed"
        assert friendly.category is ErrorCategory.FILE_SYSTEM
        assert friendly.recoverable
        assert "Path: /out.json" in friendly.technical_details
        assert "PermissionError: denied" in friendly.technical_details
        assert "Check file/directory permissions" in friendly.suggested_actions

    def test_configuration_error_details(self) -> None:
        error = ConfigurationError("Bad setting", setting="max_depth", current_value=1, expected="2 to 32")

        assert error.category is ErrorCategory.CONFIGURATION
        assert "Setting: max_depth" in error.technical_details
        assert "Current: 1" in error.technical_details
        assert "Expected: 2 to 32" in error.suggested_actions
