"""
Custom exceptions for Resty
"""


class RestyError(Exception):
    """Base exception for all Resty errors"""

    pass


class TransportError(RestyError):
    """
    Raised when the transport could not open the exchange at all.

    This covers:
    - DNS or connection failures
    - Timeouts before a response arrived
    - Redirect chains longer than the allowed maximum

    Non-2xx HTTP statuses are never reported through this exception.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        elapsed: float | None = None,
        options: dict | None = None,
    ):
        self.url = url
        self.elapsed = elapsed
        self.options = options
        super().__init__(message)


class TransportOpenError(RestyError):
    """Raised by a transport when it could not complete the exchange at all"""

    pass


class DecodeError(RestyError):
    """
    Raised when a response body does not parse as its declared content type.

    The client never lets this escape a request call; it is recorded on the
    Response and the raw body is kept.
    """

    def __init__(self, message: str, content_type: str | None = None, raw_body: str | None = None):
        self.content_type = content_type
        self.raw_body = raw_body
        super().__init__(message)


class RequestBuildError(RestyError):
    """Request could not be assembled (unsupported method, unreadable upload file)"""

    pass


class ConfigurationError(RestyError):
    """
    Raised when configuration values are missing or invalid.
    """

    def __init__(self, message: str, config_key: str | None = None):
        self.config_key = config_key
        if config_key:
            super().__init__(f"Configuration error for '{config_key}': {message}")
        else:
            super().__init__(f"Configuration error: {message}")
