"""Builders for small Lottie documents and asset payloads."""

from __future__ import annotations

import base64
import io
import random
from typing import Any, Iterable

from PIL import Image

# Block grid matching the 9x8 difference-hash reduction.
_CELLS_X, _CELLS_Y, _CELL_PX = 9, 8, 8
_LEVELS = tuple(range(16, 256, 32))
# Neighbouring cells differ enough that re-encoding never flips a hash bit.
_MIN_STEP = 96


def block_image(
    seed: int,
    *,
    image_format: str = "PNG",
    quality: int = 95,
    tint: tuple[float, float, float] = (1.0, 1.0, 1.0),
) -> bytes:
    """Deterministic blocky image; distinct seeds hash far apart.

    ``tint`` scales each channel, keeping the layout of the untinted image.
    """
    rng = random.Random(seed)
    image = Image.new("RGB", (_CELLS_X * _CELL_PX, _CELLS_Y * _CELL_PX))
    pixels = image.load()
    for cell_y in range(_CELLS_Y):
        previous = None
        for cell_x in range(_CELLS_X):
            level = rng.choice(
                [value for value in _LEVELS if previous is None or abs(value - previous) >= _MIN_STEP]
            )
            previous = level
            for y in range(cell_y * _CELL_PX, (cell_y + 1) * _CELL_PX):
                for x in range(cell_x * _CELL_PX, (cell_x + 1) * _CELL_PX):
                    pixels[x, y] = tuple(int(level * factor) for factor in tint)
    return _encode(image, image_format, quality)


def solid_image(colour: tuple[int, int, int], *, image_format: str = "PNG") -> bytes:
    return _encode(Image.new("RGB", (_CELLS_X * _CELL_PX, _CELLS_Y * _CELL_PX), colour), image_format, 95)


def _encode(image: Image.Image, image_format: str, quality: int) -> bytes:
    buffer = io.BytesIO()
    if image_format == "JPEG":
        image.save(buffer, format="JPEG", quality=quality)
    else:
        image.save(buffer, format=image_format)
    return buffer.getvalue()


def mp3_bytes(seed: int) -> bytes:
    """ID3-prefixed payload; enough for signature sniffing and exact hashing."""
    return b"ID3\x03\x00\x00\x00\x00\x00\x0a" + bytes([seed % 256]) * 10 + b"\xff\xfb\x90\x00" + b"\x00" * 32


def wav_bytes(seed: int) -> bytes:
    body = b"fmt " + b"\x10\x00\x00\x00" + b"\x01\x00\x01\x00" + bytes([seed % 256]) * 12
    return b"RIFF" + len(body).to_bytes(4, "little") + b"WAVE" + body


def ttf_bytes(seed: int) -> bytes:
    return b"\x00\x01\x00\x00\x00\x0a\x00\x80" + bytes([seed % 256]) * 24


def data_url(payload: bytes, mime: str) -> str:
    return f"data:{mime};base64,{base64.b64encode(payload).decode('ascii')}"


def image_entry(asset_id: str, payload: bytes, mime: str = "image/png") -> dict[str, Any]:
    return {"id": asset_id, "w": 72, "h": 64, "u": "", "p": data_url(payload, mime), "e": 1}


def audio_entry(asset_id: str, payload: bytes, mime: str = "audio/mpeg") -> dict[str, Any]:
    return {"id": asset_id, "u": "", "p": data_url(payload, mime), "e": 1}


def font_entry(name: str, payload: bytes) -> dict[str, Any]:
    return {
        "fName": name,
        "fFamily": name,
        "fStyle": "Regular",
        "ascent": 75,
        "origin": 3,
        "fPath": data_url(payload, "font/ttf"),
    }


def make_animation(
    *,
    images: Iterable[bytes] = (),
    audio: Iterable[bytes] = (),
    fonts: Iterable[bytes] = (),
    name: str = "test",
) -> dict[str, Any]:
    """Minimal valid Lottie document with the given embedded payloads."""
    assets: list[dict[str, Any]] = [
        image_entry(f"img_{index}", payload) for index, payload in enumerate(images)
    ]
    assets.extend(audio_entry(f"snd_{index}", payload) for index, payload in enumerate(audio))
    assets.append({"id": "comp_0", "layers": []})
    layers = [
        {"ty": 2, "ind": index + 1, "refId": asset["id"], "ip": 0, "op": 60, "st": 0}
        for index, asset in enumerate(assets)
        if "w" in asset
    ]
    document: dict[str, Any] = {
        "v": "5.12.0",
        "nm": name,
        "ip": 0,
        "op": 60,
        "fr": 30,
        "w": 100,
        "h": 100,
        "assets": assets,
        "layers": layers,
    }
    font_list = [font_entry(f"Font{index}", payload) for index, payload in enumerate(fonts)]
    if font_list:
        document["fonts"] = {"list": font_list}
    return document


def color_theme(rule_id: str = "bg", color: tuple[float, ...] = (1, 0, 0, 1)) -> dict[str, Any]:
    return {"rules": [{"id": rule_id, "type": "Color", "value": list(color)}]}


def image_theme(payload: bytes, rule_id: str = "logo") -> dict[str, Any]:
    return {
        "rules": [
            {
                "id": rule_id,
                "type": "Image",
                "value": {"width": 72, "height": 64, "url": data_url(payload, "image/png")},
            }
        ]
    }


def state_machine(animation_id: str = "a") -> dict[str, Any]:
    return {
        "initial": "idle",
        "states": [
            {
                "name": "idle",
                "type": "PlaybackState",
                "animation": animation_id,
                "transitions": [
                    {
                        "type": "Transition",
                        "toState": "playing",
                        "guards": [
                            {"type": "Boolean", "inputName": "go", "conditionType": "Equal", "compareTo": True}
                        ],
                    }
                ],
            },
            {"name": "playing", "type": "PlaybackState", "animation": animation_id, "autoplay": True},
        ],
        "interactions": [{"type": "Click", "actions": [{"type": "Toggle", "inputName": "go"}]}],
        "inputs": [{"type": "Boolean", "name": "go", "value": False}],
    }


def global_inputs(theme_id: str = "t", rule_id: str = "bg") -> dict[str, Any]:
    return {
        "dark": {
            "type": "Boolean",
            "value": False,
            "bindings": {"themes": [{"themeId": theme_id, "ruleId": rule_id, "path": "value"}]},
        },
        "accent": {"type": "Color", "value": [0.2, 0.4, 0.8, 1]},
        "fade": {
            "type": "Gradient",
            "value": [{"color": [1, 1, 1, 1], "offset": 0}, {"color": [0, 0, 0, 1], "offset": 1}],
        },
    }
