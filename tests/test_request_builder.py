"""
Tests for request_builder.py - request construction

Tests cover:
- Payload placement for GET/DELETE vs body methods
- Header defaults (Content-Type, Connection, Authorization)
- PATCH downgrade when PATCH is not supported
- Timeout and redirect option merging
- Payload encoding of mappings, pairs, objects and strings
"""

from collections import OrderedDict
from types import SimpleNamespace
from urllib.parse import urlencode

import pytest

from resty.config import ClientConfig
from resty.exceptions import ConfigurationError, RequestBuildError
from resty.request_builder import (
    basic_auth_header,
    build_request,
    encode_payload,
    json_payload,
)


@pytest.fixture
def settings():
    return ClientConfig(base_url="https://api.example.com")


class TestPayloadPlacement:
    """Test where the serialized payload ends up"""

    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH"])
    def test_body_methods_send_form_body(self, settings, method):
        """Should URL-encode mappings into the body and leave the URL alone"""
        payload = {"name": "Ada Lovelace", "year": 1815}

        request = build_request(settings, method, "/people", payload)

        assert request.url == "https://api.example.com/people"
        assert request.transport_options.body == urlencode(payload)
        assert request.content == "name=Ada+Lovelace&year=1815"

    @pytest.mark.parametrize("method", ["GET", "DELETE"])
    def test_query_methods_append_to_url(self, settings, method):
        """Should append the encoded payload as a query string and send no body"""
        payload = {"page": 2, "q": "a&b"}

        request = build_request(settings, method, "/search", payload)

        assert request.url == "https://api.example.com/search?" + urlencode(payload)
        assert request.transport_options.body is None

    def test_get_without_payload_keeps_url(self, settings):
        """Should not add a question mark when there is no payload"""
        request = build_request(settings, "GET", "/items")

        assert request.url == "https://api.example.com/items"

    def test_string_payload_passes_through(self, settings):
        """Should send string payloads unchanged"""
        request = build_request(settings, "POST", "/raw", "already=encoded&x=1")

        assert request.transport_options.body == "already=encoded&x=1"

    def test_no_base_url(self):
        """Should use the URL as given when no base URL is configured"""
        request = build_request(ClientConfig(), "GET", "http://other.test/x")

        assert request.url == "http://other.test/x"

    def test_base_url_is_concatenated_without_normalization(self):
        """Should not fix up slashes between base URL and path"""
        request = build_request(ClientConfig(base_url="https://h.test/api/"), "GET", "/v1")

        assert request.url == "https://h.test/api//v1"

    def test_method_is_case_insensitive(self, settings):
        request = build_request(settings, "post", "/x")

        assert request.method == "POST"

    def test_unsupported_method_raises(self, settings):
        """Should reject methods outside GET/POST/PUT/PATCH/DELETE"""
        with pytest.raises(RequestBuildError, match="OPTIONS"):
            build_request(settings, "OPTIONS", "/x")

    @pytest.mark.parametrize("method", ["GET", "DELETE"])
    def test_non_utf8_query_bytes_rejected(self, settings, method):
        """Should refuse raw bytes that cannot form a query string"""
        with pytest.raises(RequestBuildError, match="UTF-8"):
            build_request(settings, method, "/x", b"q=\xff\xfe")

    def test_utf8_query_bytes_accepted(self, settings):
        request = build_request(settings, "GET", "/x", b"q=1")

        assert request.url == "https://api.example.com/x?q=1"


class TestHeaderDefaults:
    """Test header defaulting policy"""

    def test_defaults_added(self, settings):
        """Should add form Content-Type and Connection: close"""
        request = build_request(settings, "POST", "/x")

        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert request.headers["Connection"] == "close"
        assert "Authorization" not in request.headers

    def test_caller_headers_win(self, settings):
        """Should keep caller supplied Content-Type and Connection"""
        headers = {"Content-Type": "text/csv", "Connection": "keep-alive"}

        request = build_request(settings, "POST", "/x", "a,b", headers)

        assert request.headers["Content-Type"] == "text/csv"
        assert request.headers["Connection"] == "keep-alive"

    def test_header_presence_is_case_insensitive(self, settings):
        request = build_request(settings, "POST", "/x", headers={"content-type": "text/plain"})

        assert "Content-Type" not in request.headers
        assert request.headers["content-type"] == "text/plain"

    def test_caller_headers_not_mutated(self, settings):
        headers = {"Accept": "application/json"}

        build_request(settings, "GET", "/x", headers=headers)

        assert headers == {"Accept": "application/json"}

    def test_basic_auth_added_with_credentials(self, settings):
        """Should compute Basic auth from configured credentials"""
        settings.username = "user"
        settings.password = "pass"

        request = build_request(settings, "GET", "/x")

        assert request.headers["Authorization"] == "Basic dXNlcjpwYXNz"

    def test_explicit_authorization_kept(self, settings):
        settings.username = "user"
        settings.password = "pass"

        request = build_request(settings, "GET", "/x", headers={"Authorization": "Bearer t"})

        assert request.headers["Authorization"] == "Bearer t"

    def test_header_lines_for_transport(self, settings):
        """Should hand headers to the transport as 'Name: Value' lines"""
        request = build_request(settings, "GET", "/x", headers={"X-Trace": "abc"})

        assert "X-Trace: abc" in request.transport_options.headers
        assert "Connection: close" in request.transport_options.headers

    def test_basic_auth_header(self):
        assert basic_auth_header("Aladdin", "open sesame") == "Basic QWxhZGRpbjpvcGVuIHNlc2FtZQ=="


class TestPatchDowngrade:
    """Test PATCH handling when the server lacks PATCH support"""

    def test_patch_native(self, settings):
        request = build_request(settings, "PATCH", "/x", {"a": 1})

        assert request.method == "PATCH"
        assert "X-HTTP-Method-Override" not in request.headers

    def test_patch_rewritten_to_post(self, settings):
        """Should send POST with X-HTTP-Method-Override: PATCH"""
        settings.supports_patch = False

        request = build_request(settings, "PATCH", "/x", {"a": 1})

        assert request.method == "POST"
        assert request.transport_options.method == "POST"
        assert request.headers["X-HTTP-Method-Override"] == "PATCH"
        assert request.transport_options.body == "a=1"


class TestTransportOptions:
    """Test option merging"""

    def test_defaults(self, settings):
        options = build_request(settings, "GET", "/x").transport_options

        assert options.timeout == 240
        assert options.max_redirects == 0
        assert options.ignore_http_error_status is True
        assert options.tls_verify is False
        assert options.user_agent == "Resty 0.6.1"

    def test_per_call_overrides(self, settings):
        """Should prefer per-call timeout and max_redirects"""
        request = build_request(
            settings, "GET", "/x", options={"timeout": 5, "max_redirects": 3}
        )

        assert request.transport_options.timeout == 5
        assert request.transport_options.max_redirects == 3
        assert request.options == {"timeout": 5, "max_redirects": 3}

    @pytest.mark.parametrize("timeout", [0, 0.0, -1, "10", True])
    def test_invalid_timeout_override(self, settings, timeout):
        """Should reject timeouts the transport cannot honour"""
        with pytest.raises(ConfigurationError) as exc_info:
            build_request(settings, "GET", "/x", options={"timeout": timeout})

        assert exc_info.value.config_key == "options.timeout"

    @pytest.mark.parametrize("max_redirects", [-1, 1.5, "3"])
    def test_invalid_max_redirects_override(self, settings, max_redirects):
        with pytest.raises(ConfigurationError):
            build_request(settings, "GET", "/x", options={"max_redirects": max_redirects})

    def test_custom_user_agent(self, settings):
        settings.user_agent = "my-app/2.0"

        assert build_request(settings, "GET", "/x").transport_options.user_agent == "my-app/2.0"

    def test_snapshot(self, settings):
        """Should expose the resolved request as a plain dict"""
        request = build_request(settings, "POST", "/x", {"k": "v"}, options={"timeout": 1})

        snapshot = request.to_dict()

        assert snapshot["url"] == "https://api.example.com/x"
        assert snapshot["method"] == "POST"
        assert snapshot["querydata"] == {"k": "v"}
        assert snapshot["options"] == {"timeout": 1}
        assert snapshot["opts"]["body"] == "k=v"


class TestEncodePayload:
    """Test payload serialization"""

    def test_none(self):
        assert encode_payload(None) is None

    def test_key_order_preserved(self):
        payload = OrderedDict([("z", 1), ("a", 2), ("m", 3)])

        assert encode_payload(payload) == "z=1&a=2&m=3"

    def test_pairs(self):
        assert encode_payload([("b", 1), ("a", 2), ("b", 3)]) == "b=1&a=2&b=3"

    def test_object_attributes(self):
        """Should encode plain records via their attributes"""
        assert encode_payload(SimpleNamespace(id=7, tag="x")) == "id=7&tag=x"

    def test_nested_values(self):
        """Should use bracket notation for nested containers"""
        encoded = encode_payload({"filter": {"status": "open"}, "ids": [1, 2]})

        assert encoded == "filter%5Bstatus%5D=open&ids%5B0%5D=1&ids%5B1%5D=2"

    def test_booleans_and_none(self):
        assert encode_payload({"on": True, "off": False, "skip": None}) == "on=1&off=0"

    def test_bytes_pass_through(self):
        assert encode_payload(b"\x00\x01") == b"\x00\x01"

    def test_unencodable(self):
        with pytest.raises(RequestBuildError):
            encode_payload(42)


class TestJsonPayload:
    def test_structures(self):
        assert json_payload({"a": [1, 2], "b": None}) == '{"a": [1, 2], "b": null}'

    def test_records(self):
        assert json_payload(SimpleNamespace(a=SimpleNamespace(b=1))) == '{"a": {"b": 1}}'

    def test_null(self):
        assert json_payload(None) == "null"
