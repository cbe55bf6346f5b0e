"""
Configuration system for quota-ledger.

This module provides typed configuration classes with:
- Dataclass-based settings with validation
- Environment variable loading
- YAML/TOML file loading
- Sensible defaults with override capability
"""
from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

from dotenv import find_dotenv, load_dotenv

from .accounts import DEFAULT_QUOTA, U64_MAX
from .errors import InvalidConfigError
from .logging import LEVELS


# =============================================================================
# Ledger Configuration
# =============================================================================

@dataclass
class LedgerConfig:
    """Configuration for ledger stores."""

    # Capacity granted to a newly opened account (client quota or node ceiling)
    default_quota: int = DEFAULT_QUOTA

    # Open accounts on first write. When False, stores start with an empty
    # AllowList and only explicitly allowed identities get accounts.
    auto_grant: bool = True

    def __post_init__(self):
        if isinstance(self.default_quota, bool) or not isinstance(self.default_quota, int):
            raise InvalidConfigError("default_quota must be an integer")
        if self.default_quota < 0 or self.default_quota > U64_MAX:
            raise InvalidConfigError("default_quota must fit in an unsigned 64-bit integer")


# =============================================================================
# Logging Configuration
# =============================================================================

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["text", "json"]


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    name: str = "quota_ledger"
    level: LogLevel = "INFO"
    format: LogFormat = "json"

    def __post_init__(self):
        if not isinstance(self.level, str) or self.level.upper() not in LEVELS:
            raise InvalidConfigError(f"Unknown log level: {self.level}")
        self.level = self.level.upper()  # type: ignore
        if self.format not in ("text", "json"):
            raise InvalidConfigError(f"Unknown log format: {self.format}")


# =============================================================================
# Telemetry Configuration
# =============================================================================

@dataclass
class TelemetryConfig:
    """Configuration for ledger counters."""

    enabled: bool = True


# =============================================================================
# Master Configuration
# =============================================================================

@dataclass
class Settings:
    """
    Master configuration for quota-ledger.

    Aggregates all configuration sections into a single object that can be
    loaded from environment variables, files, or constructed programmatically.
    """

    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)

    @classmethod
    def from_env(cls, prefix: str = "QUOTA_LEDGER_") -> "Settings":
        """
        Load settings from environment variables.

        Example:
            QUOTA_LEDGER_DEFAULT_QUOTA=2147483648
            QUOTA_LEDGER_AUTO_GRANT=false
            QUOTA_LEDGER_LOG_LEVEL=DEBUG
        """
        settings = cls()

        # Ledger settings
        if quota := os.getenv(f"{prefix}DEFAULT_QUOTA"):
            try:
                settings.ledger = LedgerConfig(
                    default_quota=int(quota),
                    auto_grant=settings.ledger.auto_grant,
                )
            except ValueError as exc:
                raise InvalidConfigError(f"Invalid {prefix}DEFAULT_QUOTA: {quota!r}", cause=exc) from exc
        if auto_grant := os.getenv(f"{prefix}AUTO_GRANT"):
            settings.ledger.auto_grant = _parse_bool(auto_grant)

        # Logging settings
        level = os.getenv(f"{prefix}LOG_LEVEL")
        log_format = os.getenv(f"{prefix}LOG_FORMAT")
        if level or log_format:
            settings.logging = LoggingConfig(
                name=settings.logging.name,
                level=level or settings.logging.level,
                format=(log_format or settings.logging.format).lower(),  # type: ignore
            )

        # Telemetry settings
        if enabled := os.getenv(f"{prefix}TELEMETRY_ENABLED"):
            settings.telemetry.enabled = _parse_bool(enabled)

        return settings

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Settings":
        """
        Load settings from a YAML or TOML file.

        Args:
            path: Path to configuration file (.yaml, .yml, or .toml)

        Returns:
            Settings object with values from file
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            import yaml
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        elif suffix == ".toml":
            with open(path, "rb") as f:
                data = tomllib.load(f)
        else:
            raise InvalidConfigError(f"Unsupported config file format: {suffix}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Create Settings from a dictionary."""
        settings = cls()

        if "ledger" in data:
            ledger_data = {
                k: v for k, v in data["ledger"].items()
                if hasattr(LedgerConfig, k)
            }
            settings.ledger = LedgerConfig(**ledger_data)

        if "logging" in data:
            logging_data = {
                k: v for k, v in data["logging"].items()
                if hasattr(LoggingConfig, k)
            }
            settings.logging = LoggingConfig(**logging_data)

        if "telemetry" in data:
            for key, value in data["telemetry"].items():
                if hasattr(settings.telemetry, key):
                    setattr(settings.telemetry, key, value)

        return settings

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        import dataclasses

        return dataclasses.asdict(self)


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise InvalidConfigError(f"Invalid boolean value: {value!r}")


# =============================================================================
# Global Settings & Helpers
# =============================================================================

_global_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, creating with defaults if needed."""
    global _global_settings
    if _global_settings is None:
        _global_settings = Settings.from_env()
    return _global_settings


def configure(settings: Optional[Settings] = None, **kwargs) -> Settings:
    """
    Configure global settings.

    Args:
        settings: Settings object to use globally
        **kwargs: Override specific settings sections

    Returns:
        The configured Settings object
    """
    global _global_settings

    if settings is not None:
        _global_settings = settings
    elif _global_settings is None:
        _global_settings = Settings.from_env()

    for key, value in kwargs.items():
        if hasattr(_global_settings, key):
            setattr(_global_settings, key, value)

    return _global_settings


def reset_settings() -> None:
    """Drop the global settings so the next lookup reloads them."""
    global _global_settings
    _global_settings = None


def load_env(path: Optional[str] = None, *, override: bool = False) -> bool:
    """
    Load environment variables from a .env file.

    Args:
        path: Optional path to a .env file. If not provided, uses find_dotenv().
        override: Whether to override existing environment variables.

    Returns:
        True if a .env file was found and loaded, False otherwise.
    """
    env_path = path or find_dotenv(usecwd=True)
    if not env_path:
        return False
    return load_dotenv(env_path, override=override)


__all__ = [
    "LedgerConfig",
    "LoggingConfig",
    "TelemetryConfig",
    "Settings",
    "get_settings",
    "configure",
    "reset_settings",
    "load_env",
]
