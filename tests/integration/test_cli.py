"""Integration tests for the dotlottie command line."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from dotlottie import cli
from dotlottie.core import reader
from dotlottie.errors import InvalidIdentifier
from tests.helpers import block_image, color_theme, make_animation, state_machine


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    (tmp_path / "a.json").write_text(json.dumps(make_animation(images=[block_image(1), block_image(2)])))
    (tmp_path / "b.json").write_text(json.dumps(make_animation(images=[block_image(2)])))
    (tmp_path / "dark.json").write_text(json.dumps(color_theme()))
    (tmp_path / "sm.json").write_text(json.dumps(state_machine("a")))
    return tmp_path


def _pack(*extra: str) -> int:
    return cli.main(
        [
            "pack",
            "out/demo.lottie",
            "--animation",
            "a=a.json",
            "--animation",
            "b=b.json",
            "--theme",
            "dark=dark.json",
            "--scope",
            "a=dark",
            "--state-machine",
            "sm=sm.json",
            "--initial-animation",
            "b",
            *extra,
        ]
    )


def _envelope(capsys: pytest.CaptureFixture[str]) -> dict:
    return json.loads(capsys.readouterr().out.strip().splitlines()[-1])


def test_pack_writes_container(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _pack("--json") == 0
    envelope = _envelope(capsys)

    assert envelope["schema"] == "dotlottie.cli/v1"
    assert envelope["ok"] is True
    assert envelope["command"] == "pack"
    assert envelope["data"]["animations"] == ["a", "b"]
    assert envelope["data"]["images"] == ["image_0.png", "image_1.png"]

    data = (workdir / "out" / "demo.lottie").read_bytes()
    manifest = reader.get_manifest(data)
    assert manifest.initial.animation == "b"
    assert manifest.animations[0].themes == ["dark"]
    assert manifest.generator == "dotlottie-py"


def test_pack_without_dedupe(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _pack("--json", "--no-dedupe", "--generator", "cli-test") == 0
    envelope = _envelope(capsys)
    assert envelope["data"]["images"] == ["image_0.png", "image_1.png", "image_2.png"]
    assert reader.get_manifest((workdir / "out" / "demo.lottie").read_bytes()).generator == "cli-test"


def test_pack_reads_dotenv(workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DOTLOTTIE_GENERATOR", "placeholder")
    monkeypatch.delenv("DOTLOTTIE_GENERATOR")
    (workdir / ".env").write_text("DOTLOTTIE_GENERATOR=from-dotenv\n")

    assert _pack() == 0
    assert reader.get_manifest((workdir / "out" / "demo.lottie").read_bytes()).generator == "from-dotenv"


def test_pack_v1(workdir: Path) -> None:
    assert _pack("--format-version", "1") == 0
    data = (workdir / "out" / "demo.lottie").read_bytes()
    assert reader.get_manifest(data).generation == "1"
    assert reader.get_state_machine(data, "sm") == state_machine("a")


def test_info_json(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _pack()
    capsys.readouterr()
    assert cli.main(["info", "out/demo.lottie", "--json"]) == 0
    data = _envelope(capsys)["data"]
    assert data["version"] == "2"
    assert data["animations"] == ["a", "b"]
    assert data["themes"] == ["dark"]
    assert data["state_machines"] == ["sm"]
    assert data["images"] == ["images/image_0.png", "images/image_1.png"]


def test_info_human(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _pack()
    capsys.readouterr()
    assert cli.main(["info", "out/demo.lottie"]) == 0
    out = capsys.readouterr().out
    assert "version 2" in out
    assert "animations: a, b" in out


def test_extract_theme_to_stdout(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _pack()
    capsys.readouterr()
    assert cli.main(["extract", "out/demo.lottie", "theme", "dark"]) == 0
    assert json.loads(capsys.readouterr().out) == color_theme()


def test_extract_inlined_animation_to_file(workdir: Path) -> None:
    _pack()
    assert cli.main(["extract", "out/demo.lottie", "animation", "a", "--inline", "-o", "a-out.json"]) == 0
    assert json.loads((workdir / "a-out.json").read_text()) == make_animation(images=[block_image(1), block_image(2)])


def test_extract_image(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _pack()
    capsys.readouterr()
    assert cli.main(["extract", "out/demo.lottie", "image", "image_1", "--json"]) == 0
    data = _envelope(capsys)["data"]
    assert data["file_name"] == "image_1.png"
    assert data["mime_type"] == "image/png"
    assert (workdir / "image_1.png").read_bytes() == block_image(2)


def test_extract_missing_entry_exit_code(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _pack()
    assert cli.main(["extract", "out/demo.lottie", "theme", "ghost"]) == 3
    assert "themes/ghost.*" in capsys.readouterr().err


def test_validate(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _pack()
    capsys.readouterr()
    assert cli.main(["validate", "out/demo.lottie"]) == 0
    assert "OK" in capsys.readouterr().out

    (workdir / "junk.lottie").write_bytes(b"not a zip")
    assert cli.main(["validate", "junk.lottie", "--json"]) == 2
    data = _envelope(capsys)["data"]
    assert data["valid"] is False


def test_exit_codes(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main([]) == 1
    assert cli.main(["info", "missing.lottie"]) == 3
    assert cli.main(["pack", "out.lottie", "--animation", "no-separator"]) == InvalidIdentifier.exit_code
    assert cli.main(["pack", "out.lottie", "--animation", "a=a.json", "--scope", "a=ghost"]) == 2
    assert cli.main(["pack", "out.lottie", "--animation", "a=a.json", "--animation", "a=b.json"]) == 2


def test_invalid_settings_exit_code(workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DOTLOTTIE_COMPRESSION_LEVEL", "42")
    assert _pack() == 2


def test_json_error_envelope(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _pack()
    capsys.readouterr()
    assert cli.main(["extract", "out/demo.lottie", "font", "font_0", "--json"]) == 3
    envelope = _envelope(capsys)
    assert envelope["ok"] is False
    assert envelope["command"] == "extract"
    assert envelope["error"]["type"] == "AssetNotFound"
    assert envelope["error"]["exit_code"] == 3
