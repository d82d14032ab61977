"""Core data models for dotLottie containers."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, Callable, ClassVar, Iterable, Optional, Union

from dotlottie.core.validation import validate_id, validate_lottie_data, validate_url
from dotlottie.errors import InvalidAssetData, MissingSource, SchemaViolation
from dotlottie.schemas.base import validate_document
from dotlottie.schemas.global_inputs import validate_global_inputs_data
from dotlottie.schemas.manifest import ManifestAnimationV1, V1_PLAYBACK_FIELDS
from dotlottie.schemas.state_machine import validate_state_machine_data
from dotlottie.schemas.theme import validate_theme_data
from dotlottie.services.media_probe import (
    detect_mime,
    extension_for,
    is_data_url,
    mime_for_extension,
    parse_data_url,
    to_data_url,
)

Payload = Union[bytes, str]


class AssetKind(str, Enum):
    """Kind of binary asset carried by a container."""
    IMAGE = "image"
    AUDIO = "audio"
    FONT = "font"

    @property
    def directory(self) -> str:
        return _ASSET_DIRECTORIES[self]


_ASSET_DIRECTORIES = {
    AssetKind.IMAGE: "images",
    AssetKind.AUDIO: "audio",
    AssetKind.FONT: "fonts",
}


@dataclass(frozen=True, slots=True)
class ZipOptions:
    """Per-entry archive options.

    ``level`` 0 stores the entry, 1..9 deflates at that level. ``mem`` is the
    zlib memory level (1..12 accepted, 0 meaning default); it is recorded but
    the stdlib writer always uses zlib's default.
    """
    level: Optional[int] = None
    mem: Optional[int] = None

    def __post_init__(self) -> None:
        if self.level is not None and (isinstance(self.level, bool) or not 0 <= self.level <= 9):
            raise ValueError(f"Compression level must be within 0..9: {self.level!r}")
        if self.mem is not None and (isinstance(self.mem, bool) or not 0 <= self.mem <= 12):
            raise ValueError(f"Memory level must be within 0..12: {self.mem!r}")


class LottieAsset:
    """A binary asset (image, audio or font) stored once per container."""

    kind: ClassVar[AssetKind]

    def __init__(
        self,
        id: str,
        *,
        data: Payload,
        lottie_asset_id: Optional[str] = None,
        parent_animations: Iterable[str] = (),
        parent_themes: Iterable[str] = (),
        zip_options: Optional[ZipOptions] = None,
        file_name: Optional[str] = None,
    ) -> None:
        self._id = validate_id(id, f"{self.kind.value} asset")
        self._set_payload(data)
        if file_name:
            self._extension = PurePosixPath(file_name).suffix.lstrip(".") or self._sniff_extension()
        else:
            self._extension = self._sniff_extension()
        self.lottie_asset_id = lottie_asset_id
        self.zip_options = zip_options or ZipOptions()
        self._parent_animations: list[str] = []
        self._parent_themes: list[str] = []
        for animation_id in parent_animations:
            self.add_parent_animation(animation_id)
        for theme_id in parent_themes:
            self.add_parent_theme(theme_id)

    @classmethod
    def from_entry(cls, file_name: str, data: bytes, **kwargs: Any) -> "LottieAsset":
        """Rebuild an asset from an archive entry, keeping the stored name."""
        stem = PurePosixPath(file_name).stem or file_name
        return cls(stem, data=data, file_name=file_name, **kwargs)

    @property
    def id(self) -> str:
        return self._id

    @id.setter
    def id(self, value: str) -> None:
        self._id = validate_id(value, f"{self.kind.value} asset")

    @property
    def data(self) -> Payload:
        return self._data

    @data.setter
    def data(self, value: Payload) -> None:
        self._set_payload(value)
        self._extension = self._sniff_extension()

    @property
    def extension(self) -> str:
        return self._extension

    @property
    def file_name(self) -> str:
        return f"{self._id}.{self._extension}"

    @property
    def path(self) -> str:
        """Archive entry path, e.g. ``images/image_0.png``."""
        return f"{self.kind.directory}/{self.file_name}"

    @property
    def mime_type(self) -> str:
        mime = detect_mime(self._bytes, self.kind.value, declared=self._declared_mime)
        return mime or mime_for_extension(self._extension) or "application/octet-stream"

    @property
    def parent_animations(self) -> list[str]:
        return list(self._parent_animations)

    @property
    def parent_themes(self) -> list[str]:
        return list(self._parent_themes)

    @property
    def is_orphan(self) -> bool:
        return not self._parent_animations and not self._parent_themes

    def add_parent_animation(self, animation_id: str) -> None:
        if animation_id not in self._parent_animations:
            self._parent_animations.append(animation_id)

    def remove_parent_animation(self, animation_id: str) -> None:
        if animation_id in self._parent_animations:
            self._parent_animations.remove(animation_id)

    def add_parent_theme(self, theme_id: str) -> None:
        if theme_id not in self._parent_themes:
            self._parent_themes.append(theme_id)

    def to_bytes(self) -> bytes:
        return self._bytes

    def to_data_url(self) -> str:
        if isinstance(self._data, str):
            return self._data
        return to_data_url(self._bytes, self.mime_type)

    def _set_payload(self, data: Payload) -> None:
        if data is None or len(data) == 0:
            raise MissingSource(f"{self.kind.value.capitalize()} asset {self._id!r} requires data")
        if isinstance(data, str):
            if not is_data_url(data):
                raise InvalidAssetData(f"{self.kind.value.capitalize()} asset {self._id!r}: expected a data url")
            self._declared_mime, self._bytes = parse_data_url(data)
        elif isinstance(data, (bytes, bytearray, memoryview)):
            self._declared_mime = None
            self._bytes = bytes(data)
            data = self._bytes
        else:
            raise InvalidAssetData(f"Unsupported payload type: {type(data).__name__}")
        self._data = data

    def _sniff_extension(self) -> str:
        return extension_for(self._bytes, self.kind.value, declared=self._declared_mime)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id!r}, file_name={self.file_name!r})"


class ImageAsset(LottieAsset):
    kind = AssetKind.IMAGE


class AudioAsset(LottieAsset):
    kind = AssetKind.AUDIO


class FontAsset(LottieAsset):
    kind = AssetKind.FONT


ASSET_TYPES: dict[AssetKind, type[LottieAsset]] = {
    AssetKind.IMAGE: ImageAsset,
    AssetKind.AUDIO: AudioAsset,
    AssetKind.FONT: FontAsset,
}


def rename_asset(asset: LottieAsset, new_id: str) -> LottieAsset:
    """Return a copy of ``asset`` named ``new_id``, keeping its extension.

    Raises:
        InvalidIdentifier: If ``new_id`` is empty.
        InvalidAssetData: If the asset has no extension and its payload is unrecognized.
    """
    renamed = copy.copy(asset)
    renamed.id = new_id
    if not renamed.extension:
        renamed._extension = renamed._sniff_extension()
    renamed._parent_animations = list(asset._parent_animations)
    renamed._parent_themes = list(asset._parent_themes)
    return renamed


class Animation:
    """A Lottie animation document, inline or fetched from a url."""

    def __init__(
        self,
        id: str,
        *,
        data: Optional[dict] = None,
        url: Optional[str] = None,
        name: Optional[str] = None,
        initial_theme: Optional[str] = None,
        background: Optional[str] = None,
        themes: Iterable[str] = (),
        default_active: bool = False,
        playback: Optional[dict[str, Any]] = None,
        zip_options: Optional[ZipOptions] = None,
    ) -> None:
        self._id = validate_id(id, "animation")
        if data is None and url is None:
            raise MissingSource(f"Animation {id!r} requires data or url")
        if data is not None and url is not None:
            raise MissingSource(f"Animation {id!r} takes exactly one of data or url")
        self._data = validate_lottie_data(data) if data is not None else None
        self._url = validate_url(url) if url is not None else None
        self.name = name
        self.initial_theme = initial_theme
        self.background = background
        self.default_active = default_active
        self.playback = playback
        self.zip_options = zip_options or ZipOptions()
        self._themes: list[str] = []
        for theme_id in themes:
            self.scope_theme(theme_id)
        self._images: list[ImageAsset] = []
        self._audio: list[AudioAsset] = []
        self._fonts: list[FontAsset] = []

    @property
    def id(self) -> str:
        return self._id

    @id.setter
    def id(self, value: str) -> None:
        self._id = validate_id(value, "animation")

    @property
    def data(self) -> Optional[dict]:
        return self._data

    @data.setter
    def data(self, value: Optional[dict]) -> None:
        if value is None:
            if self._url is None:
                raise MissingSource(f"Animation {self._id!r} requires data or url")
            self._data = None
            return
        self._data = validate_lottie_data(value)
        self._url = None

    @property
    def url(self) -> Optional[str]:
        return self._url

    @url.setter
    def url(self, value: Optional[str]) -> None:
        if value is None:
            if self._data is None:
                raise MissingSource(f"Animation {self._id!r} requires data or url")
            self._url = None
            return
        self._url = validate_url(value)
        self._data = None

    @property
    def is_remote(self) -> bool:
        return self._data is None

    @property
    def playback(self) -> Optional[dict[str, Any]]:
        return self._playback

    @playback.setter
    def playback(self, value: Optional[dict[str, Any]]) -> None:
        if value:
            unknown = sorted(set(value) - set(V1_PLAYBACK_FIELDS))
            if unknown:
                raise SchemaViolation(f"Unknown playback settings: {', '.join(unknown)}")
            validate_document(ManifestAnimationV1, {"id": self._id, **value}, "playback settings")
        self._playback = dict(value) if value else None

    @property
    def themes(self) -> list[str]:
        return list(self._themes)

    def scope_theme(self, theme_id: str) -> None:
        validate_id(theme_id, "theme")
        if theme_id not in self._themes:
            self._themes.append(theme_id)

    def unscope_theme(self, theme_id: str) -> None:
        if theme_id in self._themes:
            self._themes.remove(theme_id)
        if self.initial_theme == theme_id:
            self.initial_theme = None

    @property
    def image_assets(self) -> list[ImageAsset]:
        return list(self._images)

    @property
    def audio_assets(self) -> list[AudioAsset]:
        return list(self._audio)

    @property
    def font_assets(self) -> list[FontAsset]:
        return list(self._fonts)

    def attach_assets(self, assets: Iterable[LottieAsset]) -> None:
        """Replace the extracted assets with ``assets``."""
        images: list[ImageAsset] = []
        audio: list[AudioAsset] = []
        fonts: list[FontAsset] = []
        buckets: dict[AssetKind, list] = {
            AssetKind.IMAGE: images,
            AssetKind.AUDIO: audio,
            AssetKind.FONT: fonts,
        }
        for asset in assets:
            bucket = buckets[asset.kind]
            if asset not in bucket:
                bucket.append(asset)
        self._images, self._audio, self._fonts = images, audio, fonts

    def __repr__(self) -> str:
        source = self._url if self._url is not None else "<inline>"
        return f"Animation(id={self._id!r}, source={source!r})"


class _JsonDocument:
    """A named JSON document validated against a schema on every assignment."""

    label: ClassVar[str]
    _validator: ClassVar[Callable[[Any], Any]]

    def __init__(
        self,
        id: str,
        *,
        data: Optional[dict] = None,
        name: Optional[str] = None,
        zip_options: Optional[ZipOptions] = None,
    ) -> None:
        self._id = validate_id(id, self.label)
        if data is None:
            raise MissingSource(f"{self.label.capitalize()} {id!r} requires data")
        self._parsed = type(self)._validator(data)
        self._data = data
        self.name = name
        self.zip_options = zip_options or ZipOptions()

    @property
    def id(self) -> str:
        return self._id

    @id.setter
    def id(self, value: str) -> None:
        self._id = validate_id(value, self.label)

    @property
    def data(self) -> dict:
        return self._data

    @data.setter
    def data(self, value: dict) -> None:
        if value is None:
            raise MissingSource(f"{self.label.capitalize()} {self._id!r} requires data")
        self._parsed = type(self)._validator(value)
        self._data = value

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id!r})"


class Theme(_JsonDocument):
    """Property overrides applied to the animations the theme is scoped to."""

    label = "theme"
    _validator = staticmethod(validate_theme_data)

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._images: list[ImageAsset] = []

    @property
    def rule_ids(self) -> list[str]:
        return [rule.id for rule in self._parsed.rules]

    @property
    def image_assets(self) -> list[ImageAsset]:
        return list(self._images)

    def attach_assets(self, assets: Iterable[ImageAsset]) -> None:
        images: list[ImageAsset] = []
        for asset in assets:
            if asset not in images:
                images.append(asset)
        self._images = images


class StateMachine(_JsonDocument):
    """Interactivity document, kept verbatim."""

    label = "state machine"
    _validator = staticmethod(validate_state_machine_data)

    @property
    def animation_ids(self) -> list[str]:
        return self._parsed.animation_ids()


class GlobalInputs(_JsonDocument):
    label = "global inputs"
    _validator = staticmethod(validate_global_inputs_data)

    @property
    def input_names(self) -> list[str]:
        return list(self._parsed.root)

    @property
    def bound_theme_ids(self) -> list[str]:
        return self._parsed.theme_ids()

    @property
    def bound_state_machine_ids(self) -> list[str]:
        return self._parsed.state_machine_ids()
