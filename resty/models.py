"""Records passed through the request/response pipeline."""

from dataclasses import asdict, dataclass, field
from typing import Any
from xml.etree.ElementTree import Element

METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")

# Header value is a single string, or a list when the name repeated
HeaderValue = str | list[str]


@dataclass(frozen=True)
class RawBody:
    """Body left undecoded"""

    text: str


@dataclass(frozen=True)
class JsonBody:
    """Body decoded from a JSON media type"""

    value: Any
    raw: str


@dataclass(frozen=True)
class XmlBody:
    """Body parsed from an XML media type"""

    tree: Element
    raw: str


Body = RawBody | JsonBody | XmlBody


@dataclass(frozen=True)
class TransportOptions:
    """Options handed to the transport for a single exchange."""

    method: str
    timeout: float
    user_agent: str
    headers: list[str] = field(default_factory=list)
    body: str | bytes | None = None
    max_redirects: int = 0
    ignore_http_error_status: bool = True
    tls_verify: bool = False

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if isinstance(self.body, bytes):
            data["body"] = self.body.decode("utf-8", errors="replace")
        return data


@dataclass(frozen=True)
class TransportResult:
    """Raw outcome of a transport exchange."""

    metadata: list[str]
    body: bytes = b""


@dataclass(frozen=True)
class RequestSpec:
    """
    Fully resolved outgoing request.

    ``querydata`` is the payload as given by the caller; the serialized form
    lives in ``content`` and, for GET/DELETE, in the URL query string.
    """

    url: str
    method: str
    querydata: Any
    headers: dict[str, str]
    options: dict[str, Any]
    transport_options: TransportOptions
    content: str | bytes | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "method": self.method,
            "querydata": self.querydata,
            "headers": dict(self.headers),
            "options": dict(self.options),
            "opts": self.transport_options.to_dict(),
        }


@dataclass
class Response:
    """
    Interpreted response for one request call.

    ``status`` is 0 when no status line could be parsed, which is also the
    case for transport failures (``error`` set, ``error_msg`` filled in).
    """

    status: int = 0
    headers: dict[str, HeaderValue] = field(default_factory=dict)
    body: Body = field(default_factory=lambda: RawBody(""))
    content: bytes = b""
    metadata: list[str] = field(default_factory=list)
    error: bool = False
    error_msg: str | None = None
    decode_error: str | None = None

    @property
    def body_raw(self) -> str | None:
        """Undecoded body text, set only when the body was decoded"""
        if isinstance(self.body, (JsonBody, XmlBody)):
            return self.body.raw
        return None

    @property
    def text(self) -> str:
        if isinstance(self.body, RawBody):
            return self.body.text
        return self.body.raw

    @property
    def data(self) -> Any:
        """Decoded value (JSON value, XML root element) or the raw text"""
        if isinstance(self.body, JsonBody):
            return self.body.value
        if isinstance(self.body, XmlBody):
            return self.body.tree
        return self.body.text

    def header(self, name: str) -> HeaderValue | None:
        """Header lookup; exact name first, then case-insensitive"""
        if name in self.headers:
            return self.headers[name]
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "headers": dict(self.headers),
            "body": self.data,
            "body_raw": self.body_raw,
            "meta": list(self.metadata),
            "error": self.error,
            "error_msg": self.error_msg,
            "decode_error": self.decode_error,
        }


@dataclass(frozen=True)
class Link:
    """Target and media type taken from a ``Link`` header entry"""

    link: str = ""
    type: str = ""

    def __bool__(self) -> bool:
        return bool(self.link)
