"""File system service for opening listings and writing catalog exports."""

import json
import tempfile
import zipfile
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from pathlib import Path
from typing import Any, BinaryIO

import py7zr
import structlog

from .errors import FileSystemError as FSError

log = structlog.stdlib.get_logger()

LISTING_SUFFIX = ".xml"


class FileSystemService:
    """Service for file system operations with error handling."""

    def open_listing(self, path: Path) -> AbstractContextManager[BinaryIO]:
        """Open a listing as a binary stream.

        Plain files are read directly. For ``.zip`` and ``.7z`` archives the
        first ``.xml`` member is used.

        Args:
            path: Path to the listing or to an archive containing it

        Returns:
            Context manager yielding the binary stream

        Raises:
            FileSystemError: If the file or archive cannot be opened
        """
        suffix = path.suffix.lower()
        if suffix == ".zip":
            return self._open_zip_listing(path)
        if suffix == ".7z":
            return self._open_7z_listing(path)
        return self._open_plain_listing(path)

    @contextmanager
    def _open_plain_listing(self, path: Path) -> Iterator[BinaryIO]:
        try:
            stream = open(path, "rb")
        except OSError as e:
            log.error("Failed to open listing", path=str(path), error=str(e))
            raise FSError("The listing could not be opened.", original_error=e, path=str(path), operation="open") from e

        log.debug("Opened listing", path=str(path))
        with stream:
            yield stream

    @contextmanager
    def _open_zip_listing(self, path: Path) -> Iterator[BinaryIO]:
        try:
            archive = zipfile.ZipFile(path, "r")
        except (OSError, zipfile.BadZipFile) as e:
            log.error("Failed to open zip archive", path=str(path), error=str(e))
            raise FSError("The zip archive could not be opened.", original_error=e, path=str(path), operation="open") from e

        with archive:
            member = self._select_member(archive.namelist(), path)
            log.debug("Opened listing from zip archive", path=str(path), member=member)
            with archive.open(member) as stream:
                yield stream

    @contextmanager
    def _open_7z_listing(self, path: Path) -> Iterator[BinaryIO]:
        try:
            archive = py7zr.SevenZipFile(path, mode="r")
        except (OSError, py7zr.Bad7zFile) as e:
            log.error("Failed to open 7z archive", path=str(path), error=str(e))
            raise FSError("The 7z archive could not be opened.", original_error=e, path=str(path), operation="open") from e

        # 7z members are not seekable streams, extract the listing first
        with tempfile.TemporaryDirectory(prefix="romcatalog-") as temp_dir:
            with archive:
                member = self._select_member(archive.getnames(), path)
                archive.extract(path=temp_dir, targets=[member])

            log.debug("Extracted listing from 7z archive", path=str(path), member=member)
            with open(Path(temp_dir) / member, "rb") as stream:
                yield stream

    @staticmethod
    def _select_member(names: list[str], path: Path) -> str:
        """Pick the first XML member of an archive."""
        for name in names:
            if name.lower().endswith(LISTING_SUFFIX) and not name.endswith("/"):
                return name
        raise FSError("The archive does not contain an XML listing.", path=str(path), operation="open")

    def save_json(self, data: dict[str, Any], path: Path) -> None:
        """Save data as JSON to the specified path.

        Args:
            data: Dictionary to save as JSON
            path: Path to save the file

        Raises:
            FileSystemError: If the file cannot be written
            ValueError: If data cannot be serialized to JSON
        """
        self.ensure_directory(path.parent)

        # Write next to the target first so a failed export never leaves a truncated file
        temp_path = path.with_suffix(path.suffix + ".tmp")

        try:
            log.debug("Saving JSON data", path=str(path), temp_path=str(temp_path))

            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)

            temp_path.replace(path)

            log.info("JSON data saved successfully", path=str(path), size=path.stat().st_size)

        except OSError as e:
            log.error("Failed to save JSON data", path=str(path), error=str(e))
            temp_path.unlink(missing_ok=True)
            raise FSError("The export could not be written.", original_error=e, path=str(path), operation="write") from e
        except (TypeError, ValueError) as e:
            log.error("Failed to serialize data to JSON", path=str(path), error=str(e))
            temp_path.unlink(missing_ok=True)
            raise ValueError(f"Cannot serialize data to JSON: {e}") from e

    def ensure_directory(self, path: Path) -> None:
        """Ensure that a directory exists, creating it if necessary.

        Raises:
            FileSystemError: If the directory cannot be created
        """
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log.error("Failed to create directory", path=str(path), error=str(e))
            raise FSError("The directory could not be created.", original_error=e, path=str(path), operation="mkdir") from e
