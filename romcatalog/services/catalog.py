"""In-memory catalog of game records keyed by name."""

from collections.abc import Iterator
from enum import Enum
from typing import Any

import structlog

from ..models.game import GameFlag, GameRecord, PlayLevel

log = structlog.stdlib.get_logger()


class DuplicatePolicy(Enum):
    """What to do when a record name is already in the catalog."""
    KEEP_FIRST = "keep_first"
    REPLACE = "replace"


class GameCatalog:
    """Insert-only collection of finished game records."""

    def __init__(self, duplicate_policy: DuplicatePolicy = DuplicatePolicy.KEEP_FIRST) -> None:
        self.duplicate_policy: DuplicatePolicy = duplicate_policy
        self._records: dict[str, GameRecord] = {}
        self._duplicates: int = 0

    def insert(self, record: GameRecord) -> bool:
        """Insert a finished record.

        Args:
            record: The record to add

        Returns:
            True if the record is now in the catalog, False if it was rejected
            as a duplicate
        """
        if record.name in self._records:
            self._duplicates += 1
            if self.duplicate_policy is DuplicatePolicy.KEEP_FIRST:
                log.warning("Duplicate record ignored", name=record.name)
                return False
            log.warning("Duplicate record replaced", name=record.name)

        self._records[record.name] = record
        return True

    def get(self, name: str) -> GameRecord | None:
        return self._records.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[GameRecord]:
        return iter(self._records.values())

    @property
    def duplicates(self) -> int:
        """Number of inserts that hit an existing name."""
        return self._duplicates

    def statistics(self) -> dict[str, int]:
        """Summary counts used in load reports."""
        return {
            "records": len(self._records),
            "duplicates": self._duplicates,
            "clones": sum(1 for r in self._records.values() if r.cloneof),
            "not_playable": sum(1 for r in self._records.values() if r.play is PlayLevel.NOT_PLAYABLE),
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize the catalog for a JSON export."""
        return {
            "statistics": self.statistics(),
            "games": [_record_to_dict(record) for record in self._records.values()],
        }


def _record_to_dict(record: GameRecord) -> dict[str, Any]:
    return {
        "name": record.name,
        "emulator": record.emulator,
        "description": record.description,
        "manufacturer": record.manufacturer,
        "year": record.year,
        "cloneof": record.cloneof,
        "romof": record.romof,
        "size": record.size,
        "play": record.play.name.lower(),
        "flags": [flag.name.lower() for flag in GameFlag if flag and record.flags & flag],
        "width": record.width,
        "height": record.height,
        "aspectx": record.aspectx,
        "aspecty": record.aspecty,
        "devices": [
            {"name": device.name, "extensions": list(device.extensions)}
            for device in record.devices
        ],
    }
