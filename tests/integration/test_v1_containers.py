"""Integration tests for generation 1 containers."""

from __future__ import annotations

import asyncio
import io
import json
import logging
import zipfile

import pytest

from dotlottie import DotLottie
from dotlottie.core import reader
from dotlottie.errors import AssetNotFound
from dotlottie.infrastructure.archive import ArchiveEntry, write_archive
from dotlottie.schemas.manifest import ManifestV1
from tests.helpers import block_image, color_theme, make_animation, state_machine

LEGACY_MANIFEST = {
    "version": "1.0",
    "generator": "@dotlottie/dotlottie-js@0.7.0",
    "author": "LottieFiles",
    "revision": 1,
    "activeAnimationId": "wave",
    "animations": [
        {
            "id": "wave",
            "loop": True,
            "autoplay": True,
            "speed": 1,
            "direction": 1,
            "playMode": "normal",
            "defaultTheme": "night",
        },
        {"id": "spin", "hover": True},
    ],
    "themes": [{"id": "night", "animations": ["wave"]}, {"id": "legacy", "animations": ["spin"]}],
    "states": ["toggle"],
}


def _wave() -> dict:
    document = make_animation(name="wave")
    document["assets"].insert(0, {"id": "img", "w": 72, "h": 64, "u": "/images/", "p": "img_1.png", "e": 0})
    return document


def _entry(path: str, document) -> ArchiveEntry:
    return ArchiveEntry(path, json.dumps(document).encode("utf-8"))


@pytest.fixture
def legacy_archive() -> bytes:
    return write_archive(
        [
            _entry("manifest.json", LEGACY_MANIFEST),
            _entry("animations/wave.json", _wave()),
            _entry("animations/spin.json", make_animation(name="spin")),
            ArchiveEntry("images/img_1.png", block_image(1)),
            _entry("themes/night.json", color_theme("bg", (0, 0, 0.2, 1))),
            ArchiveEntry("themes/legacy.lss", b"FillShape { fillColor: #000; }"),
            _entry("states/toggle.json", state_machine("wave")),
        ]
    )


def test_reads_v1_manifest(legacy_archive: bytes) -> None:
    manifest = reader.get_manifest(legacy_archive)
    assert isinstance(manifest, ManifestV1)
    assert manifest.author == "LottieFiles"
    assert manifest.states == ["toggle"]


def test_v1_layout_accessors(legacy_archive: bytes) -> None:
    assert reader.get_theme(legacy_archive, "legacy") == "FillShape { fillColor: #000; }"
    assert reader.get_theme(legacy_archive, "night") == color_theme("bg", (0, 0, 0.2, 1))
    assert reader.get_state_machine(legacy_archive, "toggle") == state_machine("wave")
    assert list(reader.get_state_machines(legacy_archive)) == ["toggle"]
    assert reader.get_image(legacy_archive, "img_1").to_bytes() == block_image(1)
    with pytest.raises(AssetNotFound):
        reader.get_global_inputs(legacy_archive, "gi")


def test_v1_inline(legacy_archive: bytes) -> None:
    document = reader.get_animation(legacy_archive, "wave", inline_assets=True)
    entry = document["assets"][0]
    assert entry["e"] == 1
    assert entry["u"] == ""
    assert entry["p"].startswith("data:image/png;base64,")


def test_from_bytes_maps_v1_fields(legacy_archive: bytes, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="dotlottie.core.reader"):
        container = reader.from_bytes(legacy_archive)

    assert "Skipping stylesheet theme legacy" in caplog.text
    assert container.version == "1"
    assert container.metadata == {"author": "LottieFiles", "revision": 1.0}
    assert container.initial_animation == "wave"
    assert [theme.id for theme in container.themes] == ["night"]

    wave = container.get_animation("wave")
    assert wave.playback == {"autoplay": True, "loop": True, "speed": 1.0, "direction": 1, "playMode": "normal"}
    assert wave.themes == ["night"]
    assert wave.initial_theme == "night"
    assert [image.file_name for image in wave.image_assets] == ["img_1.png"]

    spin = container.get_animation("spin")
    assert spin.playback == {"hover": True}
    assert spin.themes == []
    assert container.get_state_machine("toggle").animation_ids == ["wave", "wave"]


def test_rebuild_legacy_as_v1(legacy_archive: bytes) -> None:
    rebuilt = asyncio.run(reader.from_bytes(legacy_archive).build())

    with zipfile.ZipFile(io.BytesIO(rebuilt)) as handle:
        names = handle.namelist()
        manifest = json.loads(handle.read("manifest.json"))
    assert names == [
        "manifest.json",
        "animations/wave.json",
        "animations/spin.json",
        "themes/night.json",
        "states/toggle.json",
        "images/image_0.png",
    ]
    assert manifest == {
        "version": "1",
        "generator": "@dotlottie/dotlottie-js@0.7.0",
        "author": "LottieFiles",
        "revision": 1.0,
        "activeAnimationId": "wave",
        "animations": [
            {
                "id": "wave",
                "autoplay": True,
                "loop": True,
                "speed": 1.0,
                "direction": 1,
                "playMode": "normal",
                "defaultTheme": "night",
            },
            {"id": "spin", "hover": True},
        ],
        "themes": [{"id": "night", "animations": ["wave"]}],
        "states": ["toggle"],
    }
    assert reader.get_animation(rebuilt, "wave", inline_assets=True) == reader.get_animation(
        legacy_archive, "wave", inline_assets=True
    )


def test_v1_skips_invalid_documents_found_by_directory(caplog: pytest.LogCaptureFixture) -> None:
    data = write_archive(
        [
            _entry("manifest.json", {"animations": [{"id": "a"}]}),
            _entry("animations/a.json", make_animation()),
            _entry("themes/ok.json", color_theme()),
            _entry("themes/broken.json", {"colors": {"bg": "#fff"}}),
            _entry("states/bad.json", {"descriptor": {"id": "bad"}}),
        ]
    )
    with caplog.at_level(logging.WARNING, logger="dotlottie.core.reader"):
        container = reader.from_bytes(data)

    assert [theme.id for theme in container.themes] == ["ok"]
    assert container.state_machines == []
    assert "Skipping theme broken" in caplog.text
    assert "Skipping state machine bad" in caplog.text


def test_build_v1_from_scratch() -> None:
    container = (
        DotLottie(generator="tests", version="1", description="demo", keywords=["a", "b"])
        .add_theme("dark", data=color_theme())
        .add_animation("a", data=make_animation(images=[block_image(2)]), themes=["dark"], playback={"loop": 3})
        .add_state_machine("sm", data=state_machine("a"))
    )
    archive = asyncio.run(container.build())

    manifest = reader.get_manifest(archive)
    assert isinstance(manifest, ManifestV1)
    assert manifest.keywords == ["a", "b"]
    assert manifest.animations[0].loop == 3
    assert manifest.animations[0].default_theme == "dark"
    assert reader.get_state_machine(archive, "sm") == state_machine("a")
    assert reader.get_theme(archive, "dark") == color_theme()
