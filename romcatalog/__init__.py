"""Catalog builder for emulator game listings."""

__version__ = "0.1.0"
