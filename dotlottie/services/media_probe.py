"""Identify asset payloads from their bytes.

Magic-byte signatures cover the formats a container normally carries. Audio
that no signature recognizes is handed to mutagen, which understands the
container formats (MP4/AAC, Ogg variants) that lack a fixed prefix.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import re
from typing import Optional

from mutagen import File as MutagenFile
from mutagen import MutagenError

from dotlottie.errors import InvalidAssetData

logger = logging.getLogger(__name__)

_DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(?:;[\w.+-]+=[^;,]*)*)(?P<b64>;base64)?,", re.IGNORECASE)

# (mime, offset, signature)
_SIGNATURES: tuple[tuple[str, int, bytes], ...] = (
    ("image/png", 0, b"\x89PNG\r\n\x1a\n"),
    ("image/jpeg", 0, b"\xff\xd8\xff"),
    ("image/gif", 0, b"GIF87a"),
    ("image/gif", 0, b"GIF89a"),
    ("image/webp", 8, b"WEBP"),
    ("image/bmp", 0, b"BM"),
    ("audio/wav", 8, b"WAVE"),
    ("audio/mpeg", 0, b"ID3"),
    ("audio/ogg", 0, b"OggS"),
    ("audio/flac", 0, b"fLaC"),
    ("font/ttf", 0, b"\x00\x01\x00\x00"),
    ("font/ttf", 0, b"true"),
    ("font/otf", 0, b"OTTO"),
    ("font/woff", 0, b"wOFF"),
    ("font/woff2", 0, b"wOF2"),
    ("font/collection", 0, b"ttcf"),
)

_RIFF_FORMS = {"image/webp", "audio/wav"}

# MPEG audio frame sync without an ID3 header
_MPEG_FRAME_PREFIXES = (b"\xff\xfb", b"\xff\xf3", b"\xff\xf2")

MIME_EXTENSIONS: dict[str, str] = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/bmp": "bmp",
    "image/svg+xml": "svg",
    "audio/mpeg": "mp3",
    "audio/wav": "wav",
    "audio/ogg": "ogg",
    "audio/flac": "flac",
    "audio/mp4": "m4a",
    "audio/aac": "aac",
    "font/ttf": "ttf",
    "font/otf": "otf",
    "font/woff": "woff",
    "font/woff2": "woff2",
    "font/collection": "ttc",
}

_EXTENSION_MIMES: dict[str, str] = {ext: mime for mime, ext in MIME_EXTENSIONS.items()}
_EXTENSION_MIMES.update({"jpg": "image/jpeg", "svgz": "image/svg+xml", "mpeg": "audio/mpeg"})

_MUTAGEN_MIMES = {
    "MP3": "audio/mpeg",
    "MP4": "audio/mp4",
    "AAC": "audio/aac",
    "FLAC": "audio/flac",
    "WAVE": "audio/wav",
    "OggVorbis": "audio/ogg",
    "OggOpus": "audio/ogg",
    "OggFLAC": "audio/ogg",
    "OggSpeex": "audio/ogg",
}

_KIND_PREFIX = {
    "image": "image/",
    "audio": "audio/",
    "font": "font/",
}


def is_data_url(value: object) -> bool:
    return isinstance(value, str) and _DATA_URL_PATTERN.match(value) is not None


def parse_data_url(value: str) -> tuple[Optional[str], bytes]:
    """Split a data url into its declared mime type and decoded payload.

    Raises:
        InvalidAssetData: If the value is not a base64 data url.
    """
    match = _DATA_URL_PATTERN.match(value) if isinstance(value, str) else None
    if match is None or not match.group("b64"):
        raise InvalidAssetData("Expected a base64 data url payload")
    payload = value[match.end():]
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidAssetData(f"Invalid base64 payload: {exc}") from exc
    if not data:
        raise InvalidAssetData("Data url payload is empty")
    mime = match.group("mime")
    return (mime.lower() if mime else None), data


def to_data_url(data: bytes, mime: Optional[str] = None) -> str:
    if mime is None:
        mime = sniff_mime(data) or "application/octet-stream"
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def sniff_mime(data: bytes) -> Optional[str]:
    """Return the mime type recognized from magic bytes, or None."""
    if not data:
        return None
    head = bytes(data[:64])
    for mime, offset, signature in _SIGNATURES:
        if mime in _RIFF_FORMS and not head.startswith(b"RIFF"):
            continue
        if head[offset:offset + len(signature)] == signature:
            return mime
    if head.startswith(_MPEG_FRAME_PREFIXES):
        return "audio/mpeg"
    if _looks_like_svg(data):
        return "image/svg+xml"
    return None


def probe_audio_mime(data: bytes) -> Optional[str]:
    """Ask mutagen to identify an audio payload that has no known signature."""
    try:
        audio = MutagenFile(io.BytesIO(data))
    except MutagenError as exc:
        logger.debug("mutagen could not parse audio payload: %s", exc)
        return None
    if audio is None:
        return None
    return _MUTAGEN_MIMES.get(type(audio).__name__)


def detect_mime(data: bytes, kind: Optional[str] = None, *, declared: Optional[str] = None) -> Optional[str]:
    """Resolve the mime type of a payload.

    Args:
        data: Raw payload bytes
        kind: Expected asset kind, used to pick the fallback probes
        declared: Mime type declared by a data url header, if any

    Returns:
        Mime type string, or None when nothing recognizes the payload
    """
    mime = sniff_mime(data)
    if mime is None and kind == "audio":
        mime = probe_audio_mime(data)
    if mime is None and declared and declared in MIME_EXTENSIONS:
        logger.debug("Falling back to declared mime type %s", declared)
        mime = declared
    if mime is not None and kind is not None and not mime.startswith(_KIND_PREFIX[kind]):
        logger.debug("Payload sniffed as %s does not match expected kind %s", mime, kind)
    return mime


def extension_for(data: bytes, kind: Optional[str] = None, *, declared: Optional[str] = None) -> str:
    """Return the file extension for a payload.

    Raises:
        InvalidAssetData: If the payload format is not recognized.
    """
    mime = detect_mime(data, kind, declared=declared)
    if mime is None:
        label = kind if kind is not None else "asset"
        raise InvalidAssetData(f"Unrecognized {label} payload")
    return MIME_EXTENSIONS[mime]


def mime_for_extension(extension: str) -> Optional[str]:
    return _EXTENSION_MIMES.get(extension.lower().lstrip("."))


def _looks_like_svg(data: bytes) -> bool:
    head = bytes(data[:512]).lstrip()
    if head.startswith(b"\xef\xbb\xbf"):
        head = head[3:].lstrip()
    if head.startswith(b"<svg"):
        return True
    return head.startswith(b"<?xml") and b"<svg" in bytes(data[:2048])
