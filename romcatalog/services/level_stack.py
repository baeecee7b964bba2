"""Depth-bounded stack of open elements feeding the field handlers."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import structlog

from .dispatch import LISTING_TABLE, DispatchEntry, match_entry
from .errors import ErrorReporter, InvalidStateError, LowMemoryError
from .handlers import Event, FieldHandler
from .record_builder import RecordBuilder

log = structlog.stdlib.get_logger()

MAX_DEPTH = 5


@dataclass
class LevelFrame:
    """State of one open element or synthesized attribute."""
    tag: str
    handler: FieldHandler | None = None
    buffer: bytearray = field(default_factory=bytearray)

    def append(self, text: str) -> None:
        self.buffer.extend(text.encode("utf-8"))

    @property
    def text(self) -> str:
        return self.buffer.decode("utf-8")


class LevelStack:
    """Tracks element depth and dispatches events to the bound handlers.

    Only the first ``max_depth`` levels get a frame. Deeper elements still
    move the depth counter, so the closes that follow stay balanced, but
    they accumulate nothing and never reach a handler.

    Attributes are handled as child elements one level deeper whose text is
    the attribute value, so that a field can be given either way in the
    listing. Once the reporter has latched an error no handler runs again.
    """

    def __init__(
        self,
        builder: RecordBuilder,
        reporter: ErrorReporter,
        table: Sequence[DispatchEntry] = LISTING_TABLE,
        max_depth: int = MAX_DEPTH,
    ) -> None:
        self.builder = builder
        self.reporter = reporter
        self.table = table
        self.max_depth = max_depth
        self.depth: int = -1
        self.line: int | None = None
        self._frames: list[LevelFrame] = []

    @property
    def path(self) -> tuple[str, ...]:
        """Tag names of the tracked frames, root first."""
        return tuple(frame.tag for frame in self._frames)

    def _tracked(self) -> bool:
        return 0 <= self.depth < self.max_depth

    def open_element(
        self,
        tag: str,
        attributes: Iterable[tuple[str, str]] = (),
        line: int | None = None,
    ) -> None:
        """Open an element and replay its attributes as nested elements."""
        if line is not None:
            self.line = line

        self.depth += 1
        if not self._tracked():
            return

        frame = LevelFrame(tag)
        self._frames.append(frame)

        if self.reporter.failed:
            return

        matched = match_entry(self.path, self.table)
        if matched is not None:
            frame.handler = matched.handler
            self._fire(frame, Event.OPEN)

        # Attributes carry no attributes of their own, so this recurses once.
        for name, value in attributes:
            self.open_element(name)
            self.character_data(value)
            self.close_element(name)

    def character_data(self, text: str) -> None:
        """Accumulate character data into the current frame."""
        if not self._tracked() or self.reporter.failed:
            return

        frame = self._frames[-1]
        try:
            frame.append(text)
        except MemoryError:
            self.reporter.record(LowMemoryError(tag=frame.tag, line=self.line))
            self.builder.discard()

    def close_element(self, tag: str, line: int | None = None) -> None:
        """Deliver the accumulated text to the bound handler and pop the frame."""
        if line is not None:
            self.line = line

        if self._tracked():
            frame = self._frames.pop()
            if frame.handler is not None and not self.reporter.failed:
                self._fire(frame, Event.DATA, frame.text)
                if not self.reporter.failed:
                    self._fire(frame, Event.CLOSE)

        self.depth -= 1

    def _fire(self, frame: LevelFrame, event: Event, text: str = "") -> None:
        try:
            frame.handler.handle(event, text, self.builder)
        except InvalidStateError as e:
            self.reporter.handle_error(e, tag=frame.tag, line=self.line)
            self.builder.discard()
