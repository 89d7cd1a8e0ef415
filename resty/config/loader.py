"""Configuration loader for Resty.

This module loads the packaged defaults file and provides a singleton
config object used when a client is built without explicit settings.
"""

from pathlib import Path
from typing import Any, cast

import yaml

from ..logging_config import get_module_logger

logger = get_module_logger("config")

DEFAULTS_FILE = Path(__file__).resolve().parent / "defaults.yaml"


class Config:
    """Configuration manager with dot-notation access to nested settings."""

    def __init__(self, config_dict: dict[str, Any] | None = None, path: Path | None = None):
        """
        Initialize the configuration manager.

        Args:
            config_dict: Optional dictionary of config values for testing.
                        If provided, nothing is loaded from disk.
            path: YAML file to load instead of the packaged defaults
        """
        self._configs: dict[str, Any]
        self._path: Path | None

        if config_dict is not None:
            # Testing mode: use provided config
            self._configs = config_dict
            self._path = None
        else:
            self._configs = {}
            self._path = path or DEFAULTS_FILE
            self._load()

    def _load(self):
        """Load the YAML configuration file."""
        if self._path is None:
            return

        if not self._path.exists():
            raise FileNotFoundError(f"Config file not found at {self._path}")

        with open(self._path, encoding="utf-8") as f:
            loaded_config = yaml.safe_load(f)

        # Validate that loaded config is a dictionary
        if not isinstance(loaded_config, dict):
            logger.warning(
                f"Config file {self._path.name} must contain a dictionary, "
                f"got {type(loaded_config).__name__}. Using empty config."
            )
            self._configs = {}
        else:
            self._configs = loaded_config

    def get(self, path: str, default: Any = None) -> Any:
        """Get a configuration value using dot notation.

        Args:
            path: Dot-separated path to the config value (e.g., "client.timeout")
            default: Default value to return if path is not found

        Returns:
            The configuration value or default if not found

        Example:
            >>> config.get("client.timeout")
            240
        """
        parts = path.split(".")
        value = self._configs

        for part in parts:
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value

    @property
    def client(self) -> dict[str, Any]:
        """Get client configuration."""
        section = self._configs.get("client", {})
        return cast(dict[str, Any], section if isinstance(section, dict) else {})

    def reload(self):
        """Reload the configuration file."""
        self._configs.clear()
        self._load()


# Create a singleton instance
config = Config()
