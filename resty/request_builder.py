"""
Request construction: merge per-call arguments with client settings and
serialize the payload.
"""

import base64
import json
from collections.abc import Mapping
from types import SimpleNamespace
from typing import Any
from urllib.parse import urlencode

from .config import ClientConfig
from .config.settings import check_max_redirects, check_timeout
from .exceptions import RequestBuildError
from .models import METHODS, RequestSpec, TransportOptions

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"
METHOD_OVERRIDE_HEADER = "X-HTTP-Method-Override"

# Methods whose payload travels in the query string
URL_CONTENT_METHODS = ("GET", "DELETE")


def has_header(headers: Mapping[str, Any], name: str) -> bool:
    lowered = name.lower()
    return any(key.lower() == lowered for key in headers)


def basic_auth_header(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
    return f"Basic {token}"


def _flatten(prefix: str, value: Any):
    """Yield (key, value) pairs with nested containers in ``a[b][0]`` form"""
    if isinstance(value, Mapping):
        for key, item in value.items():
            yield from _flatten(f"{prefix}[{key}]" if prefix else str(key), item)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            yield from _flatten(f"{prefix}[{index}]", item)
    elif value is None:
        return
    elif isinstance(value, bool):
        yield prefix, "1" if value else "0"
    else:
        yield prefix, str(value)


def _is_pair_sequence(data: Any) -> bool:
    return isinstance(data, (list, tuple)) and all(
        isinstance(item, tuple) and len(item) == 2 for item in data
    )


def encode_payload(data: Any) -> str | bytes | None:
    """
    Serialize a request payload

    Args:
        data: None, a string/bytes (passed through), a mapping, a sequence of
              (key, value) pairs, or a plain object whose attributes form the
              mapping

    Returns:
        Serialized payload, or None when there is nothing to send
    """
    if data is None:
        return None
    if isinstance(data, (str, bytes)):
        return data
    if _is_pair_sequence(data):
        pairs = [pair for key, value in data for pair in _flatten(str(key), value)]
    elif isinstance(data, Mapping):
        pairs = list(_flatten("", data))
    elif isinstance(data, SimpleNamespace) or hasattr(data, "__dict__"):
        pairs = list(_flatten("", vars(data)))
    else:
        raise RequestBuildError(f"Cannot encode payload of type {type(data).__name__}")
    return urlencode(pairs)


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, SimpleNamespace):
        return vars(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def json_payload(value: Any) -> str:
    """Serialize a structured value as a JSON request body"""
    return json.dumps(value, default=_to_jsonable)


def build_request(
    client_config: ClientConfig,
    method: str,
    url: str,
    data: Any = None,
    headers: Mapping[str, str] | None = None,
    options: Mapping[str, Any] | None = None,
) -> RequestSpec:
    """
    Resolve a request against the client settings

    Args:
        client_config: Settings of the calling client
        method: One of GET, POST, PUT, PATCH, DELETE
        url: Path appended to the base URL as-is (or a full URL without one)
        data: Query/body payload, see encode_payload()
        headers: Request headers; never mutated
        options: Per-call overrides, ``timeout`` and ``max_redirects``

    Returns:
        RequestSpec ready for the transport

    Raises:
        RequestBuildError: If the method is unsupported or the payload cannot be encoded
        ConfigurationError: If the timeout or max_redirects override is invalid
    """
    method = method.upper()
    if method not in METHODS:
        raise RequestBuildError(f"Unsupported HTTP method: {method}")

    if client_config.base_url:
        url = client_config.base_url + url

    headers = dict(headers or {})
    options = dict(options or {})

    if not has_header(headers, "Content-Type"):
        headers["Content-Type"] = FORM_CONTENT_TYPE
    if not has_header(headers, "Connection"):
        headers["Connection"] = "close"
    if client_config.has_credentials and not has_header(headers, "Authorization"):
        headers["Authorization"] = basic_auth_header(
            client_config.username, client_config.password
        )

    if method == "PATCH" and not client_config.supports_patch:
        headers[METHOD_OVERRIDE_HEADER] = method
        method = "POST"

    timeout = options.get("timeout")
    if timeout is None:
        timeout = client_config.timeout
    max_redirects = options.get("max_redirects")
    if max_redirects is None:
        max_redirects = client_config.max_redirects
    check_timeout(timeout, "options.timeout")
    check_max_redirects(max_redirects, "options.max_redirects")

    content = encode_payload(data)

    url_content = method in URL_CONTENT_METHODS
    if url_content and content is not None:
        if isinstance(content, bytes):
            try:
                content = content.decode("utf-8")
            except UnicodeDecodeError as e:
                raise RequestBuildError(
                    f"{method} query payload must be UTF-8 text or already percent-encoded: {e}"
                ) from e
        url = f"{url}?{content}"

    transport_options = TransportOptions(
        method=method,
        timeout=timeout,
        user_agent=client_config.resolved_user_agent(),
        headers=[f"{key}: {value}" for key, value in headers.items()],
        body=None if url_content else content,
        max_redirects=max_redirects,
        ignore_http_error_status=True,
        tls_verify=client_config.verify_tls,
    )

    return RequestSpec(
        url=url,
        method=method,
        querydata=data,
        headers=headers,
        options=options,
        transport_options=transport_options,
        content=content,
    )
