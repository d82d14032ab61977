"""Zip archive codec for container bytes."""

from __future__ import annotations

from dataclasses import dataclass, field
import io
import logging
from pathlib import PurePosixPath
from typing import Iterable, Optional, Union
import zipfile

from dotlottie.core.models import ZipOptions
from dotlottie.errors import AssetNotFound, InvalidContainer

logger = logging.getLogger(__name__)

MANIFEST_PATH = "manifest.json"

# Fixed entry timestamp keeps archive bytes reproducible.
_ENTRY_TIMESTAMP = (1980, 1, 1, 0, 0, 0)
_ENTRY_MODE = 0o644 << 16

BytesLike = Union[bytes, bytearray, memoryview]


@dataclass(frozen=True)
class ArchiveEntry:
    path: str
    data: bytes
    options: ZipOptions = field(default_factory=ZipOptions)


def write_archive(entries: Iterable[ArchiveEntry], *, default_level: Optional[int] = None) -> bytes:
    """Serialize entries into zip bytes, in the given order.

    Args:
        entries: Entries to write; paths must be unique
        default_level: Deflate level for entries without an explicit level

    Returns:
        The archive bytes
    """
    buffer = io.BytesIO()
    seen: set[str] = set()
    with zipfile.ZipFile(buffer, "w") as archive:
        for entry in entries:
            if entry.path in seen:
                raise ValueError(f"Duplicate archive entry: {entry.path}")
            seen.add(entry.path)
            level = entry.options.level if entry.options.level is not None else default_level
            info = zipfile.ZipInfo(entry.path, date_time=_ENTRY_TIMESTAMP)
            info.external_attr = _ENTRY_MODE
            if level == 0:
                info.compress_type = zipfile.ZIP_STORED
                archive.writestr(info, entry.data)
            else:
                info.compress_type = zipfile.ZIP_DEFLATED
                archive.writestr(info, entry.data, compresslevel=level)
    data = buffer.getvalue()
    logger.debug("Wrote archive with %d entries (%d bytes)", len(seen), len(data))
    return data


class ArchiveReader:
    """By-name access to an in-memory archive.

    Opening parses only the central directory; entries are decompressed one
    at a time when read. Use as a context manager so the handle is released.
    """

    def __init__(self, data: BytesLike):
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise InvalidContainer(f"Expected archive bytes, got {type(data).__name__}")
        if len(data) == 0:
            raise InvalidContainer("Archive is empty")
        try:
            self._zip = zipfile.ZipFile(io.BytesIO(bytes(data)))
        except zipfile.BadZipFile as exc:
            raise InvalidContainer(f"Not a zip archive: {exc}") from exc
        self._names = [info.filename for info in self._zip.infolist() if not info.is_dir()]
        self._name_set = set(self._names)
        self._accessed: list[str] = []

    def __enter__(self) -> "ArchiveReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._zip.close()

    def names(self, prefix: str = "") -> list[str]:
        return [name for name in self._names if name.startswith(prefix)]

    @property
    def accessed(self) -> list[str]:
        """Entry paths decompressed so far, in read order."""
        return list(self._accessed)

    def has(self, path: str) -> bool:
        return path in self._name_set

    def read(self, path: str) -> bytes:
        if path not in self._name_set:
            raise AssetNotFound(path)
        self._accessed.append(path)
        try:
            return self._zip.read(path)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as exc:
            raise InvalidContainer(f"Corrupt archive entry {path}: {exc}") from exc

    def find(self, directory: str, stem: str, extensions: Iterable[str] = ()) -> Optional[str]:
        """Locate ``<directory>/<stem>.<ext>`` by stem, optionally limited to extensions."""
        allowed = {ext.lower().lstrip(".") for ext in extensions}
        prefix = f"{directory}/"
        exact = prefix + stem
        if exact in self._name_set and not allowed:
            return exact
        for name in self._names:
            if not name.startswith(prefix) or "/" in name[len(prefix):]:
                continue
            candidate = PurePosixPath(name)
            if candidate.stem != stem:
                continue
            if allowed and candidate.suffix.lower().lstrip(".") not in allowed:
                continue
            return name
        return None
