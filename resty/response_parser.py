"""
Response interpretation: status line, headers, body decoding and Link
header lookup.
"""

import json
import re
from collections.abc import Mapping
from types import SimpleNamespace
from xml.etree.ElementTree import ParseError

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as DefusedET

from .exceptions import DecodeError
from .logging_config import get_module_logger
from .models import Body, HeaderValue, JsonBody, Link, RawBody, XmlBody

logger = get_module_logger("response_parser")

STATUS_LINE_PREFIX = "HTTP"

JSON_TYPES = (
    "application/json",
    "text/json",
    "text/x-json",
)

XML_TYPES = (
    "application/xml",
    "text/xml",
    "application/rss+xml",
    "application/xhtml+xml",
    "application/atom+xml",
    "application/xslt+xml",
    "application/mathml+xml",
)

_STATUS_RE = re.compile(r"\s(\d{3})(?:\s|$)")
_CHARSET_RE = re.compile(r"charset\s*=\s*\"?([\w.:-]+)", re.IGNORECASE)
_LINK_RE = re.compile(r"<([^>]*)>([^,]*)")
_LINK_PARAM_RE = re.compile(r';\s*([\w*.-]+)\s*=\s*"?([^";]*)"?')

_VALUE_STRIP = " \t\n\r\0\x0b\""


def extract_status(metadata: list[str] | None) -> int:
    """
    Status code of the final hop

    Metadata lines accumulate in hop order, so the last status line is the
    one that counts after redirects. Returns 0 if none can be parsed.
    """
    for line in reversed(metadata or []):
        if line.startswith(STATUS_LINE_PREFIX):
            match = _STATUS_RE.search(line)
            return int(match.group(1)) if match else 0
    return 0


def extract_headers(metadata: list[str] | None) -> dict[str, HeaderValue]:
    """
    Header mapping from raw metadata lines

    Status lines are skipped. A repeated name turns its value into a list
    holding every occurrence in order. Names are matched case-insensitively
    and stored under their first spelling, so hops that differ only in case
    share one entry.
    """
    headers: dict[str, HeaderValue] = {}
    spellings: dict[str, str] = {}
    for line in metadata or []:
        if line.startswith(STATUS_LINE_PREFIX) or ":" not in line:
            continue
        name, value = line.split(":", 1)
        name = name.strip()
        if not name:
            continue
        value = value.strip(_VALUE_STRIP)
        name = spellings.setdefault(name.lower(), name)

        if name not in headers:
            headers[name] = value
        elif isinstance(headers[name], list):
            headers[name].append(value)
        else:
            headers[name] = [headers[name], value]
    return headers


def find_header(headers: Mapping[str, HeaderValue], name: str) -> HeaderValue | None:
    if name in headers:
        return headers[name]
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def effective_content_type(headers: Mapping[str, HeaderValue]) -> str:
    """
    Media type without parameters; after redirects the last value is used
    """
    value = find_header(headers, "Content-Type")
    if isinstance(value, list):
        value = value[-1] if value else None
    if not value:
        return ""
    return re.split(r"[;\s]+", value.strip())[0].lower()


def is_json_type(media_type: str) -> bool:
    return media_type in JSON_TYPES or media_type.endswith("+json")


def is_xml_type(media_type: str) -> bool:
    return media_type in XML_TYPES or media_type.endswith("+xml")


def body_text(content: bytes, headers: Mapping[str, HeaderValue]) -> str:
    """Decode body bytes using the declared charset, falling back to UTF-8"""
    value = find_header(headers, "Content-Type")
    if isinstance(value, list):
        value = value[-1] if value else None
    encoding = "utf-8"
    if value:
        match = _CHARSET_RE.search(value)
        if match:
            encoding = match.group(1)
    try:
        return content.decode(encoding, errors="replace")
    except LookupError:
        return content.decode("utf-8", errors="replace")


def decode_json(text: str, as_map: bool = False):
    """Decode JSON into dicts, or into SimpleNamespace records when as_map is False"""
    if as_map:
        return json.loads(text)
    return json.loads(text, object_hook=lambda obj: SimpleNamespace(**obj))


def decode_body(
    content: bytes,
    headers: Mapping[str, HeaderValue],
    json_as_map: bool = False,
) -> tuple[Body, DecodeError | None]:
    """
    Decode a response body according to its Content-Type

    Args:
        content: Raw body bytes
        headers: Extracted response headers
        json_as_map: Decode JSON objects to dicts instead of records

    Returns:
        tuple of (body, error)
            - body: JsonBody/XmlBody when decoded, otherwise RawBody
            - error: DecodeError when the declared type did not parse, else None
    """
    text = body_text(content, headers)
    media_type = effective_content_type(headers)

    if is_json_type(media_type):
        if not text.strip():
            return JsonBody(None, text), None
        try:
            return JsonBody(decode_json(text, json_as_map), text), None
        except ValueError as e:
            logger.warning(f"Response body declared as {media_type} is not valid JSON: {e}")
            return RawBody(text), DecodeError(
                f"Invalid JSON body: {e}", content_type=media_type, raw_body=text
            )

    if is_xml_type(media_type):
        if not content.strip():
            return RawBody(text), None
        try:
            return XmlBody(DefusedET.fromstring(content), text), None
        except (ParseError, DefusedXmlException) as e:
            logger.warning(f"Response body declared as {media_type} is not valid XML: {e}")
            return RawBody(text), DecodeError(
                f"Invalid XML body: {e}", content_type=media_type, raw_body=text
            )

    return RawBody(text), None


def parse_link(headers: Mapping[str, HeaderValue] | None, rel: str) -> Link:
    """
    Find the Link header entry with the given relation

    Accepts entries shaped like ``<URL>; rel="name"; type="media/type"``,
    either one per header line or comma separated. The last matching entry
    wins. Returns an empty Link when nothing matches.
    """
    if not headers:
        return Link()
    value = find_header(headers, "Link")
    if not value:
        return Link()
    entries = value if isinstance(value, list) else [value]

    found = Link()
    for entry in entries:
        for target, raw_params in _LINK_RE.findall(entry):
            params = {key.lower(): val.strip() for key, val in _LINK_PARAM_RE.findall(raw_params)}
            if rel in params.get("rel", "").split():
                found = Link(link=target.strip(), type=params.get("type", ""))
    return found
