"""
multipart/form-data body assembly for file and in-memory uploads.
"""

import os
import random
from collections.abc import Mapping
from typing import Any

from .exceptions import RequestBuildError
from .mime_types import DEFAULT_MIME_TYPE, guess_mime_type

BOUNDARY_PREFIX = "-" * 21

# Filename sent for in-memory buffers
BINARY_FILENAME = "bdata"

CRLF = b"\r\n"


def generate_boundary() -> str:
    """
    Random part separator.

    Only needs to avoid colliding with part content; not security relevant.
    """
    return BOUNDARY_PREFIX + f"{random.getrandbits(40):010x}"


def content_type_header(boundary: str) -> str:
    return f"multipart/form-data; boundary={boundary}"


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    return str(value).encode("utf-8")


def _field_part(boundary: str, name: str, value: Any) -> bytes:
    return b"".join(
        [
            f"--{boundary}".encode(),
            CRLF,
            f'Content-Disposition: form-data; name="{name}"'.encode(),
            CRLF,
            CRLF,
            _to_bytes(value),
            CRLF,
        ]
    )


def _file_part(boundary: str, name: str, filename: str, content_type: str, data: bytes) -> bytes:
    return b"".join(
        [
            f"--{boundary}".encode(),
            CRLF,
            f'Content-Disposition: form-data; name="{name}"; filename="{filename}"'.encode(),
            CRLF,
            f"Content-Type: {content_type}".encode(),
            CRLF,
            b"Content-Transfer-Encoding: binary",
            CRLF,
            CRLF,
            data,
            CRLF,
        ]
    )


def _encode(
    boundary: str,
    params: Mapping[str, Any] | None,
    files: list[tuple[str, str, str, bytes]],
) -> bytes:
    parts = [_field_part(boundary, name, value) for name, value in (params or {}).items()]
    for name, filename, content_type, data in files:
        parts.append(_file_part(boundary, name, filename, content_type, data))
    parts.append(f"--{boundary}--".encode() + CRLF)
    return b"".join(parts)


def encode_files(
    files: Mapping[str, str | os.PathLike],
    params: Mapping[str, Any] | None = None,
    boundary: str | None = None,
) -> tuple[bytes, str]:
    """
    Build a multipart body from files on disk

    Args:
        files: Form field name -> local file path
        params: Scalar form fields, emitted before the files
        boundary: Separator to use (generated if None)

    Returns:
        tuple of (body bytes, boundary)

    Raises:
        RequestBuildError: If a file cannot be read
    """
    boundary = boundary or generate_boundary()
    entries = []
    for name, path in files.items():
        path = os.fspath(path)
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise RequestBuildError(f"Cannot read upload file '{path}': {e}") from e
        entries.append((name, os.path.basename(path), guess_mime_type(path), data))
    return _encode(boundary, params, entries), boundary


def encode_binary(
    buffers: Mapping[str, bytes | str],
    params: Mapping[str, Any] | None = None,
    boundary: str | None = None,
) -> tuple[bytes, str]:
    """Build a multipart body from in-memory buffers, sent as octet-stream"""
    boundary = boundary or generate_boundary()
    entries = [
        (name, BINARY_FILENAME, DEFAULT_MIME_TYPE, _to_bytes(data))
        for name, data in buffers.items()
    ]
    return _encode(boundary, params, entries), boundary
