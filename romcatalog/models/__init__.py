"""Data models for the emulator listing catalog."""

from .config import AppConfig
from .game import DeviceRecord, GameFlag, GameRecord, PlayLevel

__all__ = [
    "AppConfig",
    "DeviceRecord",
    "GameFlag",
    "GameRecord",
    "PlayLevel",
]
