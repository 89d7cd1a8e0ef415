"""
MIME type lookup for upload parts

Order of resolution:
1. Magic-number sniffing of the first bytes of the file
2. Known extension table
3. The platform ``mimetypes`` registry
4. ``application/octet-stream``
"""

import mimetypes
import os

DEFAULT_MIME_TYPE = "application/octet-stream"

SNIFF_BYTES = 512

EXTENSION_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "png": "image/png",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    "ico": "image/x-icon",
    "swf": "application/x-shockwave-flash",
    "pdf": "application/pdf",
    "zip": "application/zip",
    "gz": "application/x-gzip",
    "tar": "application/x-tar",
    "bz": "application/x-bzip",
    "bz2": "application/x-bzip2",
    "txt": "text/plain",
    "asc": "text/plain",
    "htm": "text/html",
    "html": "text/html",
    "css": "text/css",
    "js": "text/javascript",
    "json": "application/json",
    "xml": "text/xml",
    "xsl": "application/xsl+xml",
    "ogg": "application/ogg",
    "mp3": "audio/mpeg",
    "wav": "audio/x-wav",
    "avi": "video/x-msvideo",
    "mpg": "video/mpeg",
    "mpeg": "video/mpeg",
    "mov": "video/quicktime",
    "flv": "video/x-flv",
    "php": "text/x-php",
}


def sniff_mime_type(prefix: bytes) -> str | None:
    """Detect mime from common magic headers."""
    if prefix.startswith(b"%PDF-"):
        return "application/pdf"
    if prefix.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if prefix.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if prefix.startswith(b"GIF87a") or prefix.startswith(b"GIF89a"):
        return "image/gif"
    if prefix.startswith(b"PK\x03\x04"):
        return "application/zip"
    if prefix.startswith(b"\x1f\x8b"):
        return "application/x-gzip"
    if prefix.startswith(b"BZh"):
        return "application/x-bzip2"
    if prefix.startswith(b"II*\x00") or prefix.startswith(b"MM\x00*"):
        return "image/tiff"
    return None


def mime_type_for_extension(path: str) -> str | None:
    ext = os.path.splitext(path)[1].lower().lstrip(".")
    if ext in EXTENSION_TYPES:
        return EXTENSION_TYPES[ext]
    return mimetypes.guess_type(path)[0]


def guess_mime_type(path: str) -> str:
    """
    Resolve the Content-Type for a file about to be uploaded

    Args:
        path: Path to a local file

    Returns:
        MIME type string, never empty
    """
    try:
        with open(path, "rb") as f:
            head = f.read(SNIFF_BYTES)
    except OSError:
        # Unreadable here means the caller fails later; the name is all we have
        head = b""

    return sniff_mime_type(head) or mime_type_for_extension(path) or DEFAULT_MIME_TYPE
