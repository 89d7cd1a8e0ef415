"""Transport abstraction for dependency injection and testability."""

from http.cookiejar import DefaultCookiePolicy
from typing import Protocol

import requests

from .exceptions import TransportOpenError
from .logging_config import get_module_logger
from .models import TransportOptions, TransportResult

logger = get_module_logger("transport")

_HTTP_VERSIONS = {9: "0.9", 10: "1.0", 11: "1.1", 20: "2", 30: "3"}


class Transport(Protocol):
    """
    Performs one network exchange.

    Implementations return every hop's status and header lines in order and
    report non-2xx statuses as ordinary results.
    """

    def execute(self, url: str, options: TransportOptions) -> TransportResult: ...


def parse_header_lines(lines: list[str]) -> dict[str, str]:
    """Turn ``Name: Value`` lines into a header dict for requests"""
    headers: dict[str, str] = {}
    for line in lines:
        if ":" not in line:
            continue
        name, value = line.split(":", 1)
        headers[name.strip()] = value.strip()
    return headers


def _status_line(response: requests.Response) -> str:
    raw_version = getattr(response.raw, "version", None)
    version = _HTTP_VERSIONS.get(raw_version, "1.1")
    return f"HTTP/{version} {response.status_code} {response.reason or ''}".rstrip()


def _header_pairs(response: requests.Response):
    # urllib3 keeps every occurrence of a repeated header; requests folds them
    raw_headers = getattr(response.raw, "headers", None)
    if raw_headers is not None and hasattr(raw_headers, "iteritems"):
        return list(raw_headers.iteritems())
    return list(response.headers.items())


def response_metadata(response: requests.Response) -> list[str]:
    """Status and header lines for every hop, redirects first"""
    lines: list[str] = []
    for hop in [*response.history, response]:
        lines.append(_status_line(hop))
        lines.extend(f"{name}: {value}" for name, value in _header_pairs(hop))
    return lines


class RequestsTransport:
    """
    Transport backed by a requests Session.

    Cookies set by responses are never stored, so no state carries over from
    one request to the next; send a Cookie header explicitly when needed.

    Redirects are followed only when ``max_redirects`` is positive. Any
    requests-level failure (connection, timeout, too many redirects) is
    reported as TransportOpenError.
    """

    def __init__(self, session: requests.Session | None = None):
        """
        Initialize transport

        Args:
            session: Session to send requests with (a new one if None)
        """
        self.session = session or requests.Session()
        self.session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))

    def execute(self, url: str, options: TransportOptions) -> TransportResult:
        """
        Send a request

        Args:
            url: Fully resolved URL, query string included
            options: Method, headers, body, timeout and redirect policy

        Returns:
            TransportResult with metadata lines and body bytes

        Raises:
            TransportOpenError: If no response could be obtained
        """
        headers = parse_header_lines(options.headers)
        headers["User-Agent"] = options.user_agent
        body = options.body.encode("utf-8") if isinstance(options.body, str) else options.body

        allow_redirects = options.max_redirects > 0
        if allow_redirects:
            self.session.max_redirects = options.max_redirects

        logger.debug(f"{options.method} {url}")
        try:
            response = self.session.request(
                options.method,
                url,
                headers=headers,
                data=body,
                timeout=options.timeout,
                allow_redirects=allow_redirects,
                verify=options.tls_verify,
            )
        except (requests.exceptions.RequestException, ValueError) as e:
            raise TransportOpenError(str(e)) from e

        if not options.ignore_http_error_status:
            try:
                response.raise_for_status()
            except requests.exceptions.HTTPError as e:
                raise TransportOpenError(str(e)) from e

        return TransportResult(metadata=response_metadata(response), body=response.content)

    def close(self):
        self.session.close()
