"""Field handlers reacting to the open/data/close events of listing paths."""

import re
from enum import Enum

from ..models.game import GameFlag, PlayLevel
from .record_builder import RecordBuilder

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class Event(Enum):
    """Kind of event delivered to a field handler."""
    OPEN = "open"
    DATA = "data"
    CLOSE = "close"


def parse_int(text: str) -> int:
    """Parse the leading integer of a text value, 0 if there is none."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


class FieldHandler:
    """Base class for handlers bound to a dispatch path.

    Subclasses override only the events they react to; the others are no-ops.
    Handlers hold no load state, so a single table of them is shared by every
    load. Everything mutable lives in the builder passed to ``handle``.
    """

    def handle(self, event: Event, text: str, builder: RecordBuilder) -> None:
        if event is Event.OPEN:
            self.on_open(builder)
        elif event is Event.DATA:
            self.on_data(text, builder)
        else:
            self.on_close(builder)

    def on_open(self, builder: RecordBuilder) -> None:
        pass

    def on_data(self, text: str, builder: RecordBuilder) -> None:
        pass

    def on_close(self, builder: RecordBuilder) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class GameHandler(FieldHandler):
    """The game/machine element: starts a record and commits it on close."""

    def on_open(self, builder: RecordBuilder) -> None:
        builder.begin_game()

    def on_close(self, builder: RecordBuilder) -> None:
        builder.commit_game()


class TextFieldHandler(FieldHandler):
    """Stores the text in a record field, optionally namespace-prefixed."""

    def __init__(self, field: str, prefixed: bool = False) -> None:
        self.field = field
        self.prefixed = prefixed

    def on_data(self, text: str, builder: RecordBuilder) -> None:
        value = builder.prefixed(text) if self.prefixed else text
        builder.update_game(**{self.field: value})

    def __repr__(self) -> str:
        return f"TextFieldHandler({self.field!r}, prefixed={self.prefixed})"


class IntFieldHandler(FieldHandler):
    """Stores the leading integer of the text in a record field."""

    def __init__(self, field: str) -> None:
        self.field = field

    def on_data(self, text: str, builder: RecordBuilder) -> None:
        builder.update_game(**{self.field: parse_int(text)})

    def __repr__(self) -> str:
        return f"IntFieldHandler({self.field!r})"


class FlagHandler(FieldHandler):
    """Sets a derived flag when the text equals the trigger value, clears it otherwise."""

    def __init__(self, flag: GameFlag, trigger: str) -> None:
        self.flag = flag
        self.trigger = trigger

    def on_data(self, text: str, builder: RecordBuilder) -> None:
        builder.set_flag(self.flag, text == self.trigger)

    def __repr__(self) -> str:
        return f"FlagHandler({self.flag!r}, {self.trigger!r})"


class PlayLevelHandler(FieldHandler):
    """Raises the play level when a driver aspect is reported preliminary."""

    def __init__(self, level: PlayLevel) -> None:
        self.level = level

    def on_data(self, text: str, builder: RecordBuilder) -> None:
        builder.require_game()
        if text == "preliminary":
            builder.upgrade_play(self.level)

    def __repr__(self) -> str:
        return f"PlayLevelHandler({self.level!r})"


class RomHandler(FieldHandler):
    def on_open(self, builder: RecordBuilder) -> None:
        builder.begin_rom()

    def on_close(self, builder: RecordBuilder) -> None:
        builder.end_rom()


class RomSizeHandler(FieldHandler):
    def on_data(self, text: str, builder: RecordBuilder) -> None:
        builder.rom_size = parse_int(text)


class RomMergeHandler(FieldHandler):
    # Any merge value, even an empty one, marks the rom as shared.
    def on_data(self, text: str, builder: RecordBuilder) -> None:
        builder.rom_merge = True


class DeviceHandler(FieldHandler):
    def on_open(self, builder: RecordBuilder) -> None:
        builder.begin_device()

    def on_close(self, builder: RecordBuilder) -> None:
        builder.commit_device()


class DeviceNameHandler(FieldHandler):
    def on_data(self, text: str, builder: RecordBuilder) -> None:
        builder.update_device(name=text)


class DeviceExtensionHandler(FieldHandler):
    def on_data(self, text: str, builder: RecordBuilder) -> None:
        builder.add_device_extension(text)
