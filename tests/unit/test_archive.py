"""Unit tests for the zip codec."""

from __future__ import annotations

import io
import zipfile

import pytest

from dotlottie.core.models import ZipOptions
from dotlottie.errors import AssetNotFound, InvalidContainer
from dotlottie.infrastructure.archive import MANIFEST_PATH, ArchiveEntry, ArchiveReader, write_archive


def _entries() -> list[ArchiveEntry]:
    return [
        ArchiveEntry(MANIFEST_PATH, b'{"version":"2"}'),
        ArchiveEntry("animations/a.json", b"{}" * 200),
        ArchiveEntry("images/image_0.png", b"\x89PNG" + b"\x00" * 64, ZipOptions(level=0)),
    ]


def test_write_preserves_order_and_options() -> None:
    data = write_archive(_entries(), default_level=9)
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        infos = archive.infolist()
    assert [info.filename for info in infos] == [MANIFEST_PATH, "animations/a.json", "images/image_0.png"]
    assert infos[1].compress_type == zipfile.ZIP_DEFLATED
    assert infos[2].compress_type == zipfile.ZIP_STORED
    assert all(info.date_time == (1980, 1, 1, 0, 0, 0) for info in infos)


def test_write_is_deterministic() -> None:
    assert write_archive(_entries()) == write_archive(_entries())


def test_write_rejects_duplicate_paths() -> None:
    with pytest.raises(ValueError, match="Duplicate archive entry"):
        write_archive([ArchiveEntry("a.json", b"1"), ArchiveEntry("a.json", b"2")])


def test_reader_by_name() -> None:
    with ArchiveReader(write_archive(_entries())) as archive:
        assert archive.names("images/") == ["images/image_0.png"]
        assert archive.has("animations/a.json")
        assert archive.read(MANIFEST_PATH) == b'{"version":"2"}'
        assert archive.accessed == [MANIFEST_PATH]
        with pytest.raises(AssetNotFound) as excinfo:
            archive.read("themes/dark.json")
        assert excinfo.value.path == "themes/dark.json"
        assert archive.accessed == [MANIFEST_PATH]


def test_reader_find_by_stem() -> None:
    entries = _entries() + [ArchiveEntry("themes/dark.lss", b"body {}")]
    with ArchiveReader(write_archive(entries)) as archive:
        assert archive.find("images", "image_0") == "images/image_0.png"
        assert archive.find("themes", "dark", ("json", "lss")) == "themes/dark.lss"
        assert archive.find("themes", "dark", ("json",)) is None
        assert archive.find("images", "image_9") is None


@pytest.mark.parametrize("data", [b"", b"definitely not a zip", "text"])
def test_reader_rejects_non_archives(data) -> None:
    with pytest.raises(InvalidContainer):
        ArchiveReader(data)
