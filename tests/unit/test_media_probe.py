"""Unit tests for payload sniffing and data url handling."""

from __future__ import annotations

import base64

import pytest

from dotlottie.errors import InvalidAssetData
from dotlottie.services import media_probe
from dotlottie.services.media_probe import (
    detect_mime,
    extension_for,
    is_data_url,
    mime_for_extension,
    parse_data_url,
    sniff_mime,
    to_data_url,
)
from tests.helpers import block_image, mp3_bytes, ttf_bytes, wav_bytes


def test_sniffs_generated_images() -> None:
    assert sniff_mime(block_image(1)) == "image/png"
    assert sniff_mime(block_image(1, image_format="JPEG")) == "image/jpeg"
    assert sniff_mime(block_image(1, image_format="GIF")) == "image/gif"


def test_sniffs_audio_and_fonts() -> None:
    assert sniff_mime(mp3_bytes(1)) == "audio/mpeg"
    assert sniff_mime(b"\xff\xfb\x90\x00" + b"\x00" * 16) == "audio/mpeg"
    assert sniff_mime(wav_bytes(1)) == "audio/wav"
    assert sniff_mime(ttf_bytes(1)) == "font/ttf"
    assert sniff_mime(b"OTTO" + b"\x00" * 8) == "font/otf"
    assert sniff_mime(b"wOF2" + b"\x00" * 8) == "font/woff2"


def test_riff_container_needs_matching_form() -> None:
    assert sniff_mime(b"RIFF\x00\x00\x00\x00WEBPVP8 ") == "image/webp"
    assert sniff_mime(b"XXXX\x00\x00\x00\x00WEBPVP8 ") is None


def test_sniffs_svg_markup() -> None:
    assert sniff_mime(b'<svg xmlns="http://www.w3.org/2000/svg"/>') == "image/svg+xml"
    assert sniff_mime(b'<?xml version="1.0"?>\n<svg/>') == "image/svg+xml"


def test_unknown_payload() -> None:
    assert sniff_mime(b"") is None
    assert sniff_mime(b"plain text") is None
    with pytest.raises(InvalidAssetData, match="Unrecognized image payload"):
        extension_for(b"plain text", "image")


def test_declared_mime_is_a_fallback() -> None:
    assert detect_mime(b"\x00\x00\x00\x18ftypM4A ", "image", declared="audio/mp4") == "audio/mp4"
    assert detect_mime(block_image(2), "image", declared="image/gif") == "image/png"


def test_audio_falls_back_to_mutagen(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(media_probe, "probe_audio_mime", lambda data: "audio/mp4")
    assert detect_mime(b"\x00\x00\x00\x18ftypM4A ", "audio") == "audio/mp4"
    assert extension_for(b"\x00\x00\x00\x18ftypM4A ", "audio") == "m4a"


def test_mutagen_probe_returns_none_for_garbage() -> None:
    assert media_probe.probe_audio_mime(b"definitely not audio") is None


def test_extensions() -> None:
    assert extension_for(block_image(3, image_format="JPEG"), "image") == "jpeg"
    assert extension_for(mp3_bytes(3), "audio") == "mp3"
    assert extension_for(ttf_bytes(3), "font") == "ttf"
    assert mime_for_extension("JPG") == "image/jpeg"
    assert mime_for_extension(".woff2") == "font/woff2"
    assert mime_for_extension("xyz") is None


def test_data_url_round_trip() -> None:
    payload = block_image(4)
    url = to_data_url(payload)
    assert url.startswith("data:image/png;base64,")
    assert is_data_url(url)
    assert parse_data_url(url) == ("image/png", payload)


def test_data_url_without_mime() -> None:
    encoded = base64.b64encode(ttf_bytes(1)).decode("ascii")
    assert parse_data_url(f"data:;base64,{encoded}") == (None, ttf_bytes(1))
    assert to_data_url(b"??").startswith("data:application/octet-stream;base64,")


@pytest.mark.parametrize(
    "value",
    [
        "data:image/png,not-base64-flagged",
        "data:image/png;base64,@@@@",
        "data:image/png;base64,",
        "/images/image_0.png",
    ],
)
def test_parse_data_url_rejects(value: str) -> None:
    with pytest.raises(InvalidAssetData):
        parse_data_url(value)


def test_is_data_url() -> None:
    assert not is_data_url("images/image_0.png")
    assert not is_data_url(None)
    assert is_data_url("data:font/ttf;base64,AAEAAA==")
