"""Configuration service for managing application settings."""

import json
from pathlib import Path

import structlog

from ..models import AppConfig
from .catalog import DuplicatePolicy

log = structlog.stdlib.get_logger()

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
MAX_CHUNK_SIZE = 16 * 1024 * 1024


class ValidationResult:
    """Result of configuration validation."""

    def __init__(self, is_valid: bool, errors: list[str] | None = None) -> None:
        self.is_valid: bool = is_valid
        self.errors: list[str] = errors or []


class ConfigurationService:
    """Service for managing application configuration."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path: Path = config_path or Path.home() / ".config" / "romcatalog" / "config.json"
        log.debug("Configuration service initialized", config_path=str(self.config_path))

    def load_config(self) -> AppConfig:
        """Load configuration from file or return default configuration."""
        if not self.config_path.exists():
            log.info("Configuration file not found, using defaults")
            return self._get_default_config()

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data: dict[str, str | int | None] = json.load(f)

            config = self._dict_to_config(data)
            validation_result = self.validate_config(config)

            if not validation_result.is_valid:
                log.warning("Invalid configuration loaded, using defaults", errors=validation_result.errors)
                return self._get_default_config()

            log.info("Configuration loaded successfully")
            return config

        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            log.error("Failed to load configuration, using defaults", error=str(e))
            return self._get_default_config()

    def save_config(self, config: AppConfig) -> None:
        """Save configuration to file."""
        validation_result = self.validate_config(config)
        if not validation_result.is_valid:
            raise ValueError(f"Invalid configuration: {', '.join(validation_result.errors)}")

        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(self._config_to_dict(config), f, indent=2, ensure_ascii=False)

            log.info("Configuration saved successfully")

        except OSError as e:
            log.error("Failed to save configuration", error=str(e))
            raise

    def validate_config(self, config: AppConfig) -> ValidationResult:
        """Validate configuration settings."""
        errors = []

        if not isinstance(config.namespace, str) or not config.namespace.strip():
            errors.append("namespace cannot be empty")
        elif "/" in config.namespace:
            errors.append("namespace must not contain '/'")

        if not isinstance(config.chunk_size, int) or config.chunk_size < 1:
            errors.append("chunk_size must be a positive integer")
        elif config.chunk_size > MAX_CHUNK_SIZE:
            errors.append("chunk_size should not exceed 16 MiB")

        # The root and the game element are always needed to dispatch anything
        if not isinstance(config.max_depth, int) or config.max_depth < 2:
            errors.append("max_depth must be an integer of at least 2")
        elif config.max_depth > 32:
            errors.append("max_depth should not exceed 32")

        if config.log_level not in VALID_LOG_LEVELS:
            errors.append(f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}")

        if config.duplicate_policy not in {policy.value for policy in DuplicatePolicy}:
            errors.append("duplicate_policy must be 'keep_first' or 'replace'")

        return ValidationResult(len(errors) == 0, errors)

    def _get_default_config(self) -> AppConfig:
        """Get default configuration."""
        return AppConfig()

    def _config_to_dict(self, config: AppConfig) -> dict[str, str | int]:
        """Convert AppConfig to dictionary for JSON serialization."""
        return {
            "namespace": config.namespace,
            "chunk_size": config.chunk_size,
            "max_depth": config.max_depth,
            "log_level": config.log_level,
            "duplicate_policy": config.duplicate_policy,
        }

    def _dict_to_config(self, data: dict[str, str | int | None]) -> AppConfig:
        """Convert dictionary to AppConfig, defaulting missing settings."""
        defaults = AppConfig()

        chunk_size_raw = data.get("chunk_size", defaults.chunk_size)
        max_depth_raw = data.get("max_depth", defaults.max_depth)

        return AppConfig(
            namespace=str(data.get("namespace", defaults.namespace)),
            chunk_size=int(chunk_size_raw) if isinstance(chunk_size_raw, (int, float)) else defaults.chunk_size,
            max_depth=int(max_depth_raw) if isinstance(max_depth_raw, (int, float)) else defaults.max_depth,
            log_level=str(data.get("log_level", defaults.log_level)).upper(),
            duplicate_policy=str(data.get("duplicate_policy", defaults.duplicate_policy)),
        )
