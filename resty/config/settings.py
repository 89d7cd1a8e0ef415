"""Per-client settings."""

from dataclasses import dataclass

from ..exceptions import ConfigurationError
from .loader import Config, config

PRODUCT_NAME = "Resty"
VERSION = "0.6.1"

DEFAULT_TIMEOUT = 240
DEFAULT_MAX_REDIRECTS = 0


def check_timeout(value, key: str = "timeout"):
    """Reject anything but a positive number of seconds"""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigurationError(f"must be a positive number, got {value!r}", key)


def check_max_redirects(value, key: str = "max_redirects"):
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigurationError(f"must be a non-negative integer, got {value!r}", key)


@dataclass
class ClientConfig:
    """
    Settings owned by a single RestClient.

    Mutated only through the client's setter methods; never shared between
    client instances.
    """

    base_url: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    user_agent: str | None = None
    username: str | None = None
    password: str | None = None
    parse_body: bool = True
    supports_patch: bool = True
    json_as_map: bool = False
    raise_on_transport_failure: bool = False
    silence_transport_warning: bool = True
    verify_tls: bool = False
    debug: bool = False

    def __post_init__(self):
        check_timeout(self.timeout)
        check_max_redirects(self.max_redirects)

    def resolved_user_agent(self) -> str:
        """User agent, defaulted to "<product> <version>" on first use"""
        if not self.user_agent:
            self.user_agent = f"{PRODUCT_NAME} {VERSION}"
        return self.user_agent

    @property
    def has_credentials(self) -> bool:
        return self.username is not None and self.password is not None

    @classmethod
    def from_config(cls, config_obj: Config | None = None) -> "ClientConfig":
        """
        Build settings from the ``client`` section of a Config

        Args:
            config_obj: Config object (uses global config if None)

        Returns:
            New ClientConfig; missing keys fall back to the dataclass defaults
        """
        config_obj = config_obj or config

        def read(key, default):
            value = config_obj.get(f"client.{key}")
            return default if value is None else value

        return cls(
            base_url=config_obj.get("client.base_url"),
            timeout=read("timeout", DEFAULT_TIMEOUT),
            max_redirects=int(read("max_redirects", DEFAULT_MAX_REDIRECTS)),
            user_agent=config_obj.get("client.user_agent"),
            parse_body=bool(read("parse_body", True)),
            supports_patch=bool(read("supports_patch", True)),
            json_as_map=bool(read("json_as_map", False)),
            raise_on_transport_failure=bool(read("raise_on_transport_failure", False)),
            silence_transport_warning=bool(read("silence_transport_warning", True)),
            verify_tls=bool(read("verify_tls", False)),
            debug=bool(read("debug", False)),
        )
