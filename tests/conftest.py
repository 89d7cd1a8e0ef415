"""
Pytest configuration and shared fixtures
"""

import pytest

from resty import ClientConfig, RestClient, TransportOpenError, TransportResult


class FakeTransport:
    """Transport double that records calls and replays canned results"""

    def __init__(self, result: TransportResult | None = None, error: Exception | None = None):
        self.result = result or TransportResult(
            metadata=["HTTP/1.1 200 OK", "Content-Type: text/plain"], body=b"ok"
        )
        self.error = error
        self.calls = []

    def execute(self, url, options):
        self.calls.append((url, options))
        if self.error is not None:
            raise self.error
        return self.result

    @property
    def last_url(self):
        return self.calls[-1][0]

    @property
    def last_options(self):
        return self.calls[-1][1]


@pytest.fixture
def fake_transport():
    """Transport answering 200 text/plain"""
    return FakeTransport()


@pytest.fixture
def failing_transport():
    """Transport that cannot open a connection"""
    return FakeTransport(error=TransportOpenError("Connection refused"))


@pytest.fixture
def client_config():
    """Client settings with a base URL"""
    return ClientConfig(base_url="https://api.example.com")


@pytest.fixture
def client(client_config, fake_transport):
    """Client wired to the fake transport"""
    return RestClient(client_config, transport=fake_transport)


@pytest.fixture
def json_result():
    """Factory for transport results carrying a typed body"""

    def make(body: bytes, content_type: str = "application/json", status: int = 200):
        return TransportResult(
            metadata=[f"HTTP/1.1 {status} OK", f"Content-Type: {content_type}"], body=body
        )

    return make
