"""Configuration management for Forbidden Function.

Loads environment variables and provides centralized config access.
"""
import os
from pathlib import Path
from typing import List
from dotenv import load_dotenv

from .errors import ConfigurationError

__version__ = "1.0.0"

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_path: Path = None):
        """Initialize config by loading .env file.

        Args:
            env_path: Explicit .env location (defaults to ./.env)
        """
        load_dotenv(env_path or Path.cwd() / ".env")

        self._validate()

    def _validate(self):
        """Validate environment values that have a fixed domain.

        Raises:
            ConfigurationError: If the log level or job count is invalid
        """
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(
                f"FORBIDDEN_FUNCTION_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, "
                f"got {self.log_level!r}"
            )
        try:
            jobs = self.jobs
        except ValueError:
            raise ConfigurationError(
                f"FORBIDDEN_FUNCTION_JOBS must be an integer, "
                f"got {os.getenv('FORBIDDEN_FUNCTION_JOBS')!r}"
            ) from None
        if jobs < 1:
            raise ConfigurationError("FORBIDDEN_FUNCTION_JOBS must be at least 1")

    @property
    def funcs_files(self) -> List[Path]:
        """Get the default forbidden-name files.

        Returns:
            List of paths from FORBIDDEN_FUNCTION_FUNCS (os.pathsep separated)
        """
        raw = os.getenv("FORBIDDEN_FUNCTION_FUNCS", "")
        return [Path(p) for p in raw.split(os.pathsep) if p.strip()]

    @property
    def charset(self) -> str:
        """Get the charset used to read sources and name files."""
        return os.getenv("FORBIDDEN_FUNCTION_CHARSET", "UTF-8")

    @property
    def log_level(self) -> str:
        return os.getenv("FORBIDDEN_FUNCTION_LOG_LEVEL", "WARNING").upper()

    @property
    def jobs(self) -> int:
        """Get the default number of analysis workers."""
        return int(os.getenv("FORBIDDEN_FUNCTION_JOBS", "1"))


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
    """Drop the cached Config so the next get_config() rereads the environment."""
    global _config
    _config = None
