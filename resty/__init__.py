"""Resty: a small client for RESTful HTTP endpoints."""

from .client import RestClient
from .config import VERSION, ClientConfig, Config
from .exceptions import (
    ConfigurationError,
    DecodeError,
    RequestBuildError,
    RestyError,
    TransportError,
    TransportOpenError,
)
from .models import (
    JsonBody,
    Link,
    RawBody,
    RequestSpec,
    Response,
    TransportOptions,
    TransportResult,
    XmlBody,
)
from .transport import RequestsTransport, Transport

__version__ = VERSION

__all__ = [
    "ClientConfig",
    "Config",
    "ConfigurationError",
    "DecodeError",
    "JsonBody",
    "Link",
    "RawBody",
    "RequestBuildError",
    "RequestSpec",
    "RequestsTransport",
    "Response",
    "RestClient",
    "RestyError",
    "Transport",
    "TransportError",
    "TransportOpenError",
    "TransportOptions",
    "TransportResult",
    "XmlBody",
    "__version__",
]
