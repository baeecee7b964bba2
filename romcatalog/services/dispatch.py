"""Path dispatch table mapping listing element paths to field handlers.

A path is the chain of tag names from the document root to the current
element or attribute. Each dispatch entry holds a pattern of the same length
whose tokens are either a literal tag name or a named set of accepted tags.
The first entry of the table whose pattern matches the whole path wins.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from ..models.game import GameFlag, PlayLevel
from .handlers import (
    DeviceExtensionHandler,
    DeviceHandler,
    DeviceNameHandler,
    FieldHandler,
    FlagHandler,
    GameHandler,
    IntFieldHandler,
    PlayLevelHandler,
    RomHandler,
    RomMergeHandler,
    RomSizeHandler,
    TextFieldHandler,
)


class TokenKind(Enum):
    """Variant of a path token."""
    LITERAL = "literal"
    WILDCARD = "wildcard"


class WildcardSet(Enum):
    """Named sets of tag names accepted at a single path position."""
    EMULATOR = frozenset({"mame", "mess", "raine"})
    TITLE = frozenset({"game", "machine"})


@dataclass(frozen=True)
class PathToken:
    """A single position of a dispatch pattern."""
    kind: TokenKind
    literal: str | None = None
    wildcard: WildcardSet | None = None

    def matches(self, tag: str) -> bool:
        if self.kind is TokenKind.LITERAL:
            return tag == self.literal
        return tag in self.wildcard.value


def literal(tag: str) -> PathToken:
    return PathToken(TokenKind.LITERAL, literal=tag)


def wildcard(accepted: WildcardSet) -> PathToken:
    return PathToken(TokenKind.WILDCARD, wildcard=accepted)


@dataclass(frozen=True)
class DispatchEntry:
    """A dispatch rule: the handler bound to every path matching ``pattern``.

    ``depth`` is the index of the last path position, so the root element
    is at depth 0.
    """
    depth: int
    pattern: tuple[PathToken, ...]
    handler: FieldHandler

    def __post_init__(self) -> None:
        if self.depth != len(self.pattern) - 1:
            raise ValueError(
                f"Dispatch depth {self.depth} does not match a pattern of {len(self.pattern)} tokens"
            )

    def matches(self, path: Sequence[str]) -> bool:
        if self.depth != len(path) - 1:
            return False
        return all(token.matches(tag) for token, tag in zip(self.pattern, path))


def entry(handler: FieldHandler, *tags: str) -> DispatchEntry:
    """Build an entry rooted at any emulator element and any game/machine element."""
    pattern = (wildcard(WildcardSet.EMULATOR), wildcard(WildcardSet.TITLE)) + tuple(literal(tag) for tag in tags)
    return DispatchEntry(depth=len(pattern) - 1, pattern=pattern, handler=handler)


LISTING_TABLE: tuple[DispatchEntry, ...] = (
    entry(GameHandler()),
    entry(FlagHandler(GameFlag.DERIVED_RESOURCE, "no"), "runnable"),
    entry(TextFieldHandler("name", prefixed=True), "name"),
    entry(TextFieldHandler("description"), "description"),
    entry(TextFieldHandler("manufacturer"), "manufacturer"),
    entry(TextFieldHandler("year"), "year"),
    entry(TextFieldHandler("cloneof", prefixed=True), "cloneof"),
    entry(TextFieldHandler("romof", prefixed=True), "romof"),
    entry(RomHandler(), "rom"),
    entry(RomMergeHandler(), "rom", "merge"),
    entry(RomSizeHandler(), "rom", "size"),
    entry(DeviceHandler(), "device"),
    entry(DeviceNameHandler(), "device", "name"),
    entry(DeviceExtensionHandler(), "device", "extension", "name"),
    entry(PlayLevelHandler(PlayLevel.NOT_PLAYABLE), "driver", "status"),
    entry(PlayLevelHandler(PlayLevel.MAJOR), "driver", "color"),
    entry(PlayLevelHandler(PlayLevel.MINOR), "driver", "sound"),
    entry(FlagHandler(GameFlag.VECTOR, "vector"), "video", "screen"),
    entry(FlagHandler(GameFlag.VERTICAL, "vertical"), "video", "orientation"),
    entry(IntFieldHandler("width"), "video", "width"),
    entry(IntFieldHandler("height"), "video", "height"),
    entry(IntFieldHandler("aspectx"), "video", "aspectx"),
    entry(IntFieldHandler("aspecty"), "video", "aspecty"),
)


def match_entry(
    path: Sequence[str],
    table: Sequence[DispatchEntry] = LISTING_TABLE,
) -> DispatchEntry | None:
    """Find the first entry of the table matching the full path.

    Args:
        path: Tag names from the root to the current element, inclusive
        table: Dispatch entries in precedence order

    Returns:
        The matching entry, or None if the element is not recognized
    """
    for candidate in table:
        if candidate.matches(path):
            return candidate
    return None
