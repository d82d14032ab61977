"""Manifest schemas for both container generations.

Generation 2 is recognised by its major version and ignores keys it does not
declare. Generation 1 is lenient because many producers wrote it, but never
accepts a generation 2 version string.
"""

from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import Field, field_validator

from dotlottie.schemas.base import DocumentModel, StrictDocumentModel


class ManifestInitial(StrictDocumentModel):
    animation: Optional[str] = None
    state_machine: Optional[str] = Field(None, alias="stateMachine")
    global_inputs: Optional[str] = Field(None, alias="globalInputs")


class ManifestAnimationV2(StrictDocumentModel):
    id: str = Field(min_length=1)
    name: Optional[str] = None
    initial_theme: Optional[str] = Field(None, alias="initialTheme")
    background: Optional[str] = None
    themes: Optional[list[str]] = None


class ManifestEntry(StrictDocumentModel):
    id: str = Field(min_length=1)
    name: Optional[str] = None


class ManifestV2(StrictDocumentModel):
    version: str
    generator: str
    initial: Optional[ManifestInitial] = None
    animations: list[ManifestAnimationV2] = Field(min_length=1)
    themes: Optional[list[ManifestEntry]] = None
    state_machines: Optional[list[ManifestEntry]] = Field(None, alias="stateMachines")
    global_inputs: Optional[list[ManifestEntry]] = Field(None, alias="globalInputs")

    @field_validator("version")
    @classmethod
    def _generation_two(cls, value: str) -> str:
        if value.split(".", 1)[0] != "2":
            raise ValueError(f"unsupported manifest version {value!r}")
        return value

    @property
    def generation(self) -> str:
        return "2"


class ManifestAnimationV1(DocumentModel):
    id: str = Field(min_length=1)
    autoplay: Optional[bool] = None
    loop: Optional[Union[bool, int]] = None
    speed: Optional[float] = None
    direction: Optional[Literal[1, -1]] = None
    play_mode: Optional[Literal["bounce", "normal"]] = Field(None, alias="playMode")
    hover: Optional[bool] = None
    intermission: Optional[float] = None
    theme_color: Optional[str] = Field(None, alias="themeColor")
    default_theme: Optional[str] = Field(None, alias="defaultTheme")


class ManifestThemeV1(DocumentModel):
    id: str = Field(min_length=1)
    animations: list[str] = Field(default_factory=list)


class ManifestV1(DocumentModel):
    version: Optional[Union[str, float]] = None
    generator: Optional[str] = None
    author: Optional[str] = None
    description: Optional[str] = None
    keywords: Optional[Union[str, list[str]]] = None
    revision: Optional[float] = None
    active_animation_id: Optional[str] = Field(None, alias="activeAnimationId")
    custom: Optional[dict[str, Any]] = None
    animations: list[ManifestAnimationV1] = Field(min_length=1)
    themes: Optional[list[ManifestThemeV1]] = None
    states: Optional[list[str]] = None

    @field_validator("version")
    @classmethod
    def _not_generation_two(cls, value: Optional[Union[str, float]]) -> Optional[Union[str, float]]:
        if value is not None and str(value).split(".", 1)[0] == "2":
            raise ValueError(f"version {value!r} belongs to generation 2")
        return value

    @property
    def generation(self) -> str:
        return "1"


Manifest = Union[ManifestV2, ManifestV1]

# Playback settings a generation 1 animation entry may carry.
V1_PLAYBACK_FIELDS = (
    "autoplay",
    "loop",
    "speed",
    "direction",
    "playMode",
    "hover",
    "intermission",
    "themeColor",
)
