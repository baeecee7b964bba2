"""Streaming loader turning an emulator XML listing into catalog records."""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import BinaryIO

import structlog
from lxml import etree

from .catalog import GameCatalog
from .dispatch import LISTING_TABLE, DispatchEntry
from .errors import READ_ERRORS, ErrorReporter, ListingError
from .level_stack import MAX_DEPTH, LevelStack
from .record_builder import RecordBuilder

log = structlog.stdlib.get_logger()

DEFAULT_CHUNK_SIZE = 4096


@dataclass(frozen=True)
class LoadResult:
    """Outcome of a single listing load."""
    namespace: str
    records: int
    errors: tuple[ListingError, ...]

    @property
    def success(self) -> bool:
        return not self.errors


class ListingLoaderService:
    """Service feeding a listing stream through the path dispatch machinery.

    Every call to ``load`` builds its own level stack, record builder and
    error reporter, so one service instance can load any number of listings
    one after the other.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_depth: int = MAX_DEPTH,
        table: Sequence[DispatchEntry] = LISTING_TABLE,
    ) -> None:
        """Initialize the listing loader.

        Args:
            chunk_size: Bytes read from the stream per tokenizer feed
            max_depth: Number of nesting levels tracked for dispatch
            table: Dispatch entries in precedence order
        """
        if chunk_size < 1:
            raise ValueError("chunk_size must be a positive integer")
        self.chunk_size: int = chunk_size
        self.max_depth: int = max_depth
        self.table: Sequence[DispatchEntry] = table

    def load(self, stream: BinaryIO, namespace: str, catalog: GameCatalog) -> LoadResult:
        """Load every game of a listing into the catalog.

        Reading stops at the end of the stream, on a read failure or on a
        syntax error. A semantic error stops record building but the rest of
        the stream is still consumed.

        Args:
            stream: Binary stream with the XML listing
            namespace: Prefix for the record names of this listing
            catalog: Destination for the finished records

        Returns:
            LoadResult, successful only if the whole stream was consumed
            without any error
        """
        reporter = ErrorReporter(namespace)
        builder = RecordBuilder(namespace, catalog)
        stack = LevelStack(builder, reporter, table=self.table, max_depth=self.max_depth)

        # huge_tree lifts the nesting and text node size limits of libxml2
        parser = etree.XMLPullParser(
            events=("start", "end"),
            remove_comments=True,
            remove_pis=True,
            huge_tree=True,
        )
        events = parser.read_events()

        log.info("Loading listing", namespace=namespace, chunk_size=self.chunk_size)

        while True:
            try:
                chunk = stream.read(self.chunk_size)
            except READ_ERRORS as e:
                reporter.handle_error(e)
                break

            try:
                if chunk:
                    parser.feed(chunk)
                else:
                    parser.close()
                self._dispatch(events, stack)
            except etree.XMLSyntaxError as e:
                # Deliver what was parsed before the error, like a SAX parser would
                self._dispatch(events, stack)
                reporter.handle_error(e)
                break

            if not chunk:
                break

        builder.discard()

        result = LoadResult(namespace=namespace, records=builder.committed, errors=reporter.errors)
        if result.success:
            log.info("Listing loaded", namespace=namespace, records=result.records, **catalog.statistics())
        else:
            log.warning(
                "Listing load failed",
                namespace=namespace,
                records=result.records,
                errors=len(result.errors),
            )
        return result

    @staticmethod
    def _dispatch(events: Iterator[tuple[str, etree._Element]], stack: LevelStack) -> None:
        """Replay tokenizer events on the level stack in document order.

        Text is handed to an element's frame as soon as it is complete: the
        leading text when the first child starts, the text after a child when
        the next sibling starts or the element ends. Finished children are
        removed right after, so the tree never holds more than the open path.

        Closes are reported at the line of the end tag, counted from the last
        start or end tag line plus the newlines of the text in between.
        """
        for action, element in events:
            if action == "start":
                parent = element.getparent()
                if parent is not None:
                    previous = element.getprevious()
                    if previous is None:
                        text = parent.text
                    else:
                        text = previous.tail
                        parent.remove(previous)
                    if text:
                        stack.character_data(text)
                stack.open_element(element.tag, element.attrib.items(), line=element.sourceline)
            else:
                if len(element):
                    last = element[-1]
                    text = last.tail
                    element.remove(last)
                else:
                    text = element.text
                # sourceline is the start tag; the end tag follows the last delivered text
                line = stack.line if stack.line is not None else element.sourceline
                if text:
                    stack.character_data(text)
                    if line is not None:
                        line += text.count("\n")
                stack.close_element(element.tag, line=line)


def load_listing(
    stream: BinaryIO,
    namespace: str,
    catalog: GameCatalog,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> bool:
    """Convenience function loading a listing with the default dispatch table.

    Returns:
        True on success, False if any error occurred
    """
    return ListingLoaderService(chunk_size=chunk_size).load(stream, namespace, catalog).success
