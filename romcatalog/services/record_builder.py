"""Record builder owning the game record under construction."""

from dataclasses import replace
from typing import Any

import structlog

from ..models.game import DeviceRecord, GameFlag, GameRecord, PlayLevel
from .catalog import GameCatalog
from .errors import InvalidStateError

log = structlog.stdlib.get_logger()


class RecordBuilder:
    """Assembles game records from field handler events.

    The builder is the only owner of the in-progress game, device and rom
    state of a load. Records are frozen, so every update derives a new value;
    a game only reaches the catalog through ``commit_game``.
    """

    def __init__(self, namespace: str, catalog: GameCatalog) -> None:
        self.namespace: str = namespace
        self.catalog: GameCatalog = catalog
        self.game: GameRecord | None = None
        self.device: DeviceRecord | None = None
        self.rom_size: int = 0
        self.rom_merge: bool = False
        self.committed: int = 0

    def prefixed(self, name: str) -> str:
        """Qualify a game name with the namespace prefix."""
        return f"{self.namespace}/{name}"

    def require_game(self) -> GameRecord:
        if self.game is None:
            raise InvalidStateError()
        return self.game

    def require_device(self) -> DeviceRecord:
        if self.device is None:
            raise InvalidStateError()
        return self.device

    # Game

    def begin_game(self) -> None:
        self.game = GameRecord(emulator=self.namespace)

    def update_game(self, **changes: Any) -> None:
        self.game = replace(self.require_game(), **changes)

    def set_flag(self, flag: GameFlag, enabled: bool) -> None:
        game = self.require_game()
        flags = game.flags | flag if enabled else game.flags & ~flag
        self.game = replace(game, flags=flags)

    def upgrade_play(self, level: PlayLevel) -> None:
        """Raise the play level, never lowering an already worse one."""
        game = self.require_game()
        if game.play < level:
            self.game = replace(game, play=level)

    def commit_game(self) -> None:
        game = self.require_game()
        if self.catalog.insert(game):
            self.committed += 1
        self.game = None

    # Rom

    def begin_rom(self) -> None:
        self.rom_size = 0
        self.rom_merge = False

    def end_rom(self) -> None:
        game = self.require_game()
        if not self.rom_merge:
            self.game = replace(game, size=game.size + self.rom_size)

    # Device

    def begin_device(self) -> None:
        self.device = DeviceRecord()

    def update_device(self, **changes: Any) -> None:
        self.device = replace(self.require_device(), **changes)

    def add_device_extension(self, extension: str) -> None:
        device = self.require_device()
        self.device = replace(device, extensions=device.extensions + (extension,))

    def commit_device(self) -> None:
        game = self.require_game()
        device = self.require_device()
        self.game = replace(game, devices=game.devices + (device,))
        self.device = None

    def discard(self) -> None:
        """Drop any partially built state without committing it."""
        if self.game is not None:
            log.debug("Discarding incomplete record", namespace=self.namespace, name=self.game.name)
        self.game = None
        self.device = None
