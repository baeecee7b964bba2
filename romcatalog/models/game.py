"""Game-related data models."""

from dataclasses import dataclass
from enum import IntEnum, IntFlag


class PlayLevel(IntEnum):
    """Severity of known emulation defects, higher is worse."""
    FULL = 0
    MINOR = 1
    MAJOR = 2
    NOT_PLAYABLE = 3


class GameFlag(IntFlag):
    """Derived flags of a game record."""
    NONE = 0
    DERIVED_RESOURCE = 1  # bios or non-runnable machine
    VECTOR = 2
    VERTICAL = 4


@dataclass(frozen=True)
class DeviceRecord:
    """A media device exposed by a machine."""
    name: str = ""
    extensions: tuple[str, ...] = ()


@dataclass(frozen=True)
class GameRecord:
    """A single game/machine entry of an emulator listing."""
    name: str = ""
    emulator: str = ""
    description: str = ""
    manufacturer: str = ""
    year: str = ""
    cloneof: str | None = None
    romof: str | None = None
    size: int = 0  # bytes, merged roms excluded
    play: PlayLevel = PlayLevel.FULL
    flags: GameFlag = GameFlag.NONE
    width: int = 0
    height: int = 0
    aspectx: int = 0
    aspecty: int = 0
    devices: tuple[DeviceRecord, ...] = ()

    def has_flag(self, flag: GameFlag) -> bool:
        """Check whether a derived flag is set."""
        return bool(self.flags & flag)
