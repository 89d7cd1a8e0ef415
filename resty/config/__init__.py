"""Configuration module for loading and accessing client settings."""

from ..exceptions import ConfigurationError
from .loader import Config, config
from .settings import DEFAULT_MAX_REDIRECTS, DEFAULT_TIMEOUT, VERSION, ClientConfig

__all__ = [
    "ClientConfig",
    "Config",
    "ConfigurationError",
    "DEFAULT_MAX_REDIRECTS",
    "DEFAULT_TIMEOUT",
    "VERSION",
    "config",
]
