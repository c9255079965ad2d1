"""Configuration management for deadloop.

Loads environment variables (optionally from a .env file) and provides
centralized config access.
"""
import os
from pathlib import Path
from typing import List, Optional
from dotenv import load_dotenv

__version__ = "1.0.0"

VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_path: Optional[Path] = None):
        """Initialize config by loading .env file.

        Args:
            env_path: Explicit .env file to load. Defaults to ./.env in the
                      current working directory.
        """
        load_dotenv(env_path if env_path is not None else Path.cwd() / ".env")

        self._validate()

    def _validate(self):
        """Validate environment values eagerly so bad settings fail at startup.

        Raises:
            ValueError: If DEADLOOP_LOG_LEVEL or DEADLOOP_EXHAUSTED_IS_UNUSED
                        holds an unrecognised value
        """
        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"DEADLOOP_LOG_LEVEL must be one of {sorted(VALID_LOG_LEVELS)}, "
                f"got {self.log_level!r}"
            )
        # Touch the property so a malformed boolean surfaces here
        self.exhausted_is_unused

    @property
    def log_level(self) -> str:
        """Get logging level name.

        Returns:
            Upper-cased level name, WARNING by default
        """
        return os.getenv("DEADLOOP_LOG_LEVEL", "WARNING").strip().upper()

    @property
    def exhausted_is_unused(self) -> bool:
        """Verdict returned when the cluster frontier runs out of its step budget.

        Defaults to "unused". Set DEADLOOP_EXHAUSTED_IS_UNUSED=false to
        report "used" instead.

        Returns:
            True if an exhausted frontier means the function is unused

        Raises:
            ValueError: If the variable is not a recognised boolean
        """
        raw = os.getenv("DEADLOOP_EXHAUSTED_IS_UNUSED", "true").strip().lower()
        if raw in _TRUTHY:
            return True
        if raw in _FALSY:
            return False
        raise ValueError(f"DEADLOOP_EXHAUSTED_IS_UNUSED is not a boolean: {raw!r}")

    @property
    def extra_excluded_dirs(self) -> List[str]:
        """Get additional directory names to skip during project discovery.

        Returns:
            List of directory names from DEADLOOP_EXCLUDE_DIRS (comma separated)
        """
        raw = os.getenv("DEADLOOP_EXCLUDE_DIRS", "")
        return [part.strip() for part in raw.split(",") if part.strip()]


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create singleton Config instance.

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config():
    """Drop the cached singleton so the next get_config() re-reads the environment."""
    global _config
    _config = None
