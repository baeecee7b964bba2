"""Configuration data models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AppConfig:
    """Application configuration settings."""
    namespace: str = "mame"
    chunk_size: int = 4096  # Bytes read from the listing per tokenizer feed
    max_depth: int = 5  # Deeper elements are accepted but never tracked
    log_level: str = "INFO"
    duplicate_policy: str = "keep_first"  # keep_first | replace
