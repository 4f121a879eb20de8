"""
Configuration Module for the Invoice Tracker.

Prefix tables, sentinels, length bounds and forecast settings are all
read from ``settings.yaml`` rather than hard-coded at call sites. Numeric
and list settings are checked when the file is loaded, so a bad value
fails at startup instead of in the middle of a batch.
"""

import yaml
from pathlib import Path
from typing import Any, Dict, Optional

from invoice_tracker.utils.exceptions import ConfigurationError

# Integer settings and the smallest value each accepts
INTEGER_SETTINGS = {
    'extraction.due_days': 0,
    'extraction.client.max_length': 1,
    'extraction.services.max_length': 1,
    'forecast.retention_days': 0,
    'batch.max_workers': 1,
}

LIST_SETTINGS = ('dates.us_prefixes', 'dates.international_prefixes')

_MISSING = object()


class ConfigurationManager:
    """
    Singleton holding the loaded invoice tracker settings.

    Attributes:
        config_path (Path): Path to the configuration file.

    Example:
        >>> config = ConfigurationManager()
        >>> config.get("extraction.client.sentinel")
        'Unknown Client'
        >>> config.get_int("forecast.retention_days", 7)
        7
    """

    _instance: Optional['ConfigurationManager'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Load the settings once per process.

        Args:
            config_path: Optional path to a configuration file.
                Defaults to config/settings.yaml.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If a numeric or list setting is malformed.
        """
        if self._initialized:
            return

        self.config_path = (
            Path(config_path) if config_path else Path(__file__).parent / "settings.yaml"
        )
        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r', encoding='utf-8') as f:
            self._config = yaml.safe_load(f) or {}

        self._resolve_paths()
        self._validate()

    def _resolve_paths(self) -> None:
        """Make ``paths.*`` absolute, relative to the directory above the config file."""
        project_root = self.config_path.resolve().parent.parent

        for key, value in (self._config.get('paths') or {}).items():
            if value and not Path(value).is_absolute():
                self._config['paths'][key] = str(project_root / value)

    def _validate(self) -> None:
        for key, minimum in INTEGER_SETTINGS.items():
            value = self.get(key, _MISSING)
            if value is _MISSING:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
                raise ConfigurationError(key, f"expected an integer >= {minimum}, got {value!r}")

        for key in LIST_SETTINGS:
            value = self.get(key, _MISSING)
            if value is not _MISSING and not isinstance(value, list):
                raise ConfigurationError(key, f"expected a list, got {value!r}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Example:
            >>> config.get("extraction.services.max_length")
            500
            >>> config.get("nonexistent.key", "default_value")
            'default_value'
        """
        value = self._config
        try:
            for part in key.split('.'):
                value = value[part]
            return value
        except (KeyError, TypeError):
            return default

    def get_int(self, key: str, default: int) -> int:
        """Integer setting; the default is used when the key is absent."""
        return int(self.get(key, default))

    @classmethod
    def reset(cls) -> None:
        """Drop the loaded settings so the next access reads a file again."""
        cls._instance = None


def get_config(key: str, default: Any = None) -> Any:
    """Shortcut for ``ConfigurationManager().get``."""
    return ConfigurationManager().get(key, default)


def get_config_int(key: str, default: int) -> int:
    """Shortcut for ``ConfigurationManager().get_int``."""
    return ConfigurationManager().get_int(key, default)


__all__ = ['ConfigurationManager', 'get_config', 'get_config_int']
