"""
RestClient: request/response pipeline for RESTful endpoints

Handles:
- Merging per-call arguments with client settings
- Sending the request through a Transport
- Status and header extraction from transport metadata
- Content-Type driven body decoding (JSON, XML)
- Debug tracing and request/response observer callbacks
"""

import json
import time
from collections.abc import Callable, Mapping
from typing import Any

from .config import ClientConfig, Config
from .exceptions import TransportError, TransportOpenError
from .logging_config import default_log_sink, get_module_logger
from .models import Link, RawBody, RequestSpec, Response, TransportResult
from .multipart import content_type_header, encode_binary, encode_files
from .request_builder import JSON_CONTENT_TYPE, build_request, json_payload
from .response_parser import (
    body_text,
    decode_body,
    extract_headers,
    extract_status,
    parse_link,
)
from .transport import RequestsTransport, Transport

logger = get_module_logger("client")

LogSink = Callable[[Any], Any]
Observer = Callable[[dict[str, Any]], Any]

_SECRET_HEADERS = ("authorization", "proxy-authorization")


def _without_header(headers: Mapping[str, str] | None, name: str) -> dict[str, str]:
    lowered = name.lower()
    return {key: value for key, value in (headers or {}).items() if key.lower() != lowered}


def _redact_header_lines(lines: list[str]) -> list[str]:
    redacted = []
    for line in lines:
        name = line.split(":", 1)[0].strip().lower()
        redacted.append(f"{line.split(':', 1)[0]}: ***" if name in _SECRET_HEADERS else line)
    return redacted


class RestClient:
    """
    Convenience client for RESTful endpoints

    Every request method returns a Response instead of raising; only an
    unsupported method, an unreadable upload file, or a transport failure
    with ``raise_on_transport_failure`` enabled raise.

    The most recent exchange is kept in ``last_request``/``last_response``.
    Those attributes are per instance and overwritten by every call, so an
    instance must not be shared between threads; use one client per thread
    or rely on the returned Response instead.
    """

    def __init__(
        self,
        client_config: ClientConfig | None = None,
        *,
        transport: Transport | None = None,
        on_request_log: Observer | None = None,
        on_response_log: Observer | None = None,
        log_sink: LogSink | None = None,
        config_obj: Config | None = None,
    ):
        """
        Initialize client

        Args:
            client_config: Settings for this client (built from config_obj if None)
            transport: Transport for the network exchange (a new RequestsTransport if None)
            on_request_log: Called with the request snapshot before sending
            on_response_log: Called with the response snapshot after interpretation
            log_sink: Receives debug trace messages (stderr if None)
            config_obj: Config object (uses global config if None)
        """
        self.config = client_config or ClientConfig.from_config(config_obj)
        self.transport = transport or RequestsTransport()
        self.callbacks: dict[str, Observer] = {}
        if callable(on_request_log):
            self.callbacks["on_request_log"] = on_request_log
        if callable(on_response_log):
            self.callbacks["on_response_log"] = on_response_log
        self.log_sink: LogSink | None = log_sink if callable(log_sink) else None

        self.last_request: RequestSpec | None = None
        self.last_response: Response | None = None

    def get_last_request(self, key: str | None = None) -> Any:
        """Snapshot of the last request, or one field of it (None if unknown)"""
        if self.last_request is None:
            return None
        snapshot = self.last_request.to_dict()
        return snapshot if key is None else snapshot.get(key)

    def get_last_response(self, key: str | None = None) -> Any:
        """Snapshot of the last response, or one field of it (None if unknown)"""
        if self.last_response is None:
            return None
        snapshot = self.last_response.to_dict()
        return snapshot if key is None else snapshot.get(key)

    def get_link(self, rel: str) -> Link:
        """
        Link with relation ``rel`` from the last response's Link header

        Returns an empty Link if there was no request yet or no entry matches.
        """
        headers = self.last_response.headers if self.last_response else None
        return parse_link(headers, rel)

    def get(self, url: str, data: Any = None, headers=None, options=None) -> Response:
        """GET; ``data`` is appended to the URL as a query string"""
        return self.send_request(url, "GET", data, headers, options)

    def post(self, url: str, data: Any = None, headers=None, options=None) -> Response:
        return self.send_request(url, "POST", data, headers, options)

    def put(self, url: str, data: Any = None, headers=None, options=None) -> Response:
        return self.send_request(url, "PUT", data, headers, options)

    def patch(self, url: str, data: Any = None, headers=None, options=None) -> Response:
        """PATCH; sent as POST with X-HTTP-Method-Override when PATCH is unsupported"""
        return self.send_request(url, "PATCH", data, headers, options)

    def delete(self, url: str, data: Any = None, headers=None, options=None) -> Response:
        """DELETE; ``data`` is appended to the URL as a query string"""
        return self.send_request(url, "DELETE", data, headers, options)

    def post_json(self, url: str, value: Any = None, headers=None, options=None) -> Response:
        """POST ``value`` serialized as JSON"""
        return self._send_json(url, "POST", value, headers, options)

    def put_json(self, url: str, value: Any = None, headers=None, options=None) -> Response:
        return self._send_json(url, "PUT", value, headers, options)

    def patch_json(self, url: str, value: Any = None, headers=None, options=None) -> Response:
        return self._send_json(url, "PATCH", value, headers, options)

    def _send_json(self, url, method, value, headers, options) -> Response:
        headers = _without_header(headers, "Content-Type")
        headers["Content-Type"] = JSON_CONTENT_TYPE
        return self.send_request(url, method, json_payload(value), headers, options)

    def post_files(
        self,
        url: str,
        files: Mapping[str, str],
        params: Mapping[str, Any] | None = None,
        headers=None,
        options=None,
    ) -> Response:
        """
        Upload files from disk as multipart/form-data

        Args:
            url: Request URL (relative to base URL if one is set)
            files: Form field name -> local file path
            params: Additional scalar form fields
            headers: Request headers; Content-Type is always replaced
            options: Per-call overrides (timeout, max_redirects)

        Returns:
            Response

        Raises:
            RequestBuildError: If a file cannot be read
        """
        body, boundary = encode_files(files, params)
        return self._post_multipart(url, body, boundary, headers, options)

    def post_binary(
        self,
        url: str,
        buffers: Mapping[str, bytes | str],
        params: Mapping[str, Any] | None = None,
        headers=None,
        options=None,
    ) -> Response:
        """Upload in-memory buffers as multipart/form-data octet-stream parts"""
        body, boundary = encode_binary(buffers, params)
        return self._post_multipart(url, body, boundary, headers, options)

    def _post_multipart(self, url, body, boundary, headers, options) -> Response:
        headers = _without_header(headers, "Content-Type")
        headers["Content-Type"] = content_type_header(boundary)
        return self.post(url, body, headers, options)

    def send_request(
        self,
        url: str,
        method: str = "GET",
        data: Any = None,
        headers: Mapping[str, str] | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> Response:
        """
        Build, send and interpret one request

        Args:
            url: Path appended to the base URL, or a full URL without one
            method: GET, POST, PUT, PATCH or DELETE
            data: String payload (sent as-is) or mapping (URL-encoded)
            headers: Request headers
            options: ``timeout`` (seconds) and ``max_redirects`` overrides

        Returns:
            Response; non-2xx statuses are ordinary responses

        Raises:
            RequestBuildError: If the method is unsupported
            ConfigurationError: If the timeout or max_redirects override is invalid
            TransportError: If the transport fails and raise_on_transport_failure is set
        """
        request = build_request(self.config, method, url, data, headers, options)

        self._log("URL =================")
        self._log(request.url)
        self._log("METHOD =================")
        self._log(request.method)
        self._log("QUERYDATA =================")
        self._log(request.querydata)
        self._log("HEADERS =================")
        self._log(request.headers)
        self._log("OPTIONS =================")
        self._log(request.options)
        self._log("OPTS =================")
        self._log(request.transport_options.to_dict())

        self.last_request = request
        if "on_request_log" in self.callbacks:
            self.callbacks["on_request_log"](request.to_dict())

        response = self._execute(request)

        self.last_response = response
        if "on_response_log" in self.callbacks:
            self.callbacks["on_response_log"](response.to_dict())

        return response

    def _execute(self, request: RequestSpec) -> Response:
        self._log("Sending...")
        start_time = time.perf_counter()
        try:
            result = self.transport.execute(request.url, request.transport_options)
        except TransportOpenError as e:
            return self._transport_failure(request, time.perf_counter() - start_time, e)

        if self.config.debug:
            self._log(
                f'Request time for "{request.method} {request.url}": '
                f"{time.perf_counter() - start_time:f}"
            )
        return self._interpret(result)

    def _transport_failure(
        self, request: RequestSpec, elapsed: float, error: TransportOpenError
    ) -> Response:
        opts = request.transport_options.to_dict()
        opts["headers"] = _redact_header_lines(opts["headers"])
        msg = (
            f"Transport open failed for '{request.url}'; req_time: {elapsed:f}; "
            f"opts: {json.dumps(opts, default=str)}; reason: {error}"
        )
        self._log(msg)
        if not self.config.silence_transport_warning:
            logger.warning(msg)

        if self.config.raise_on_transport_failure:
            raise TransportError(msg, url=request.url, elapsed=elapsed, options=opts) from error

        return Response(error=True, error_msg=msg)

    def _interpret(self, result: TransportResult) -> Response:
        metadata = list(result.metadata or [])
        content = result.body or b""
        headers = extract_headers(metadata)
        response = Response(
            status=extract_status(metadata),
            headers=headers,
            content=content,
            metadata=metadata,
        )
        self._log(response.to_dict())

        self._log("Processing response body...")
        if self.config.parse_body:
            body, error = decode_body(content, headers, self.config.json_as_map)
            response.body = body
            if error is not None:
                response.decode_error = str(error)
        else:
            response.body = RawBody(body_text(content, headers))

        if isinstance(response.body, RawBody):
            self._log("Response body not parsed")
        self._log(response.data)
        return response

    def debug(self, state: bool | None = None) -> bool:
        """Get, or set and return, the debug tracing flag"""
        if state is not None:
            self.config.debug = bool(state)
        return self.config.debug

    def enable_debugging(self, state: bool = True) -> bool:
        return self.debug(state)

    def set_logger(self, log_sink: LogSink | None) -> LogSink | None:
        """Route debug trace messages to ``log_sink`` (None restores stderr)"""
        self.log_sink = log_sink
        return self.log_sink

    def parse_body(self, state: bool | None = None) -> bool:
        if state is not None:
            self.config.parse_body = bool(state)
        return self.config.parse_body

    def supports_patch(self, state: bool | None = None) -> bool:
        if state is not None:
            self.config.supports_patch = bool(state)
        return self.config.supports_patch

    def json_as_map(self, state: bool | None = None) -> bool:
        """Decode JSON objects to dicts (True) or SimpleNamespace records (False)"""
        if state is not None:
            self.config.json_as_map = bool(state)
        return self.config.json_as_map

    def raise_on_transport_failure(self, state: bool | None = None) -> bool:
        if state is not None:
            self.config.raise_on_transport_failure = bool(state)
        return self.config.raise_on_transport_failure

    def silence_transport_warning(self, state: bool | None = None) -> bool:
        if state is not None:
            self.config.silence_transport_warning = bool(state)
        return self.config.silence_transport_warning

    def verify_tls(self, state: bool | None = None) -> bool:
        if state is not None:
            self.config.verify_tls = bool(state)
        return self.config.verify_tls

    def get_user_agent(self) -> str:
        return self.config.resolved_user_agent()

    def set_user_agent(self, user_agent: str | None) -> str:
        self.config.user_agent = user_agent
        return self.get_user_agent()

    def get_base_url(self) -> str | None:
        return self.config.base_url

    def set_base_url(self, base_url: str | None) -> str | None:
        self.config.base_url = base_url
        return self.config.base_url

    def set_credentials(self, username: str, password: str) -> None:
        self.config.username = username
        self.config.password = password

    def clear_credentials(self) -> None:
        self.config.username = None
        self.config.password = None

    def _log(self, msg: Any) -> None:
        if not self.config.debug:
            return
        sink = self.log_sink or default_log_sink
        sink(msg)
