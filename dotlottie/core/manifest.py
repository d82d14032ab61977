"""Manifest projection and parsing for both container generations."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Union

from pydantic import ValidationError

from dotlottie.errors import SchemaViolation
from dotlottie.schemas.base import describe_errors
from dotlottie.schemas.manifest import (
    Manifest,
    ManifestAnimationV1,
    ManifestAnimationV2,
    ManifestEntry,
    ManifestInitial,
    ManifestThemeV1,
    ManifestV1,
    ManifestV2,
)

if TYPE_CHECKING:
    from dotlottie.core.builder import DotLottie

logger = logging.getLogger(__name__)


def _initial_animation_id(container: "DotLottie") -> str | None:
    if container.initial_animation is not None:
        return container.initial_animation
    for animation in container.animations:
        if animation.default_active:
            return animation.id
    return None


def project_manifest_v2(container: "DotLottie") -> ManifestV2:
    """Derive the generation 2 manifest from a container graph."""
    animations = [
        ManifestAnimationV2(
            id=animation.id,
            name=animation.name,
            initial_theme=animation.initial_theme,
            background=animation.background,
            themes=animation.themes or None,
        )
        for animation in container.animations
    ]
    initial = ManifestInitial(
        animation=_initial_animation_id(container),
        state_machine=container.initial_state_machine,
        global_inputs=container.initial_global_inputs,
    )
    has_initial = any(value is not None for value in initial.model_dump().values())
    return ManifestV2(
        version="2",
        generator=container.generator,
        initial=initial if has_initial else None,
        animations=animations,
        themes=[ManifestEntry(id=theme.id, name=theme.name) for theme in container.themes] or None,
        state_machines=[
            ManifestEntry(id=machine.id, name=machine.name) for machine in container.state_machines
        ]
        or None,
        global_inputs=[
            ManifestEntry(id=inputs.id, name=inputs.name) for inputs in container.global_inputs
        ]
        or None,
    )


def project_manifest_v1(container: "DotLottie") -> ManifestV1:
    """Derive the generation 1 manifest from a container graph."""
    animations = []
    for animation in container.animations:
        entry: dict[str, Any] = {"id": animation.id, **(animation.playback or {})}
        default_theme = animation.initial_theme or (animation.themes[0] if animation.themes else None)
        if default_theme is not None:
            entry["defaultTheme"] = default_theme
        animations.append(ManifestAnimationV1.model_validate(entry))

    themes = []
    for theme in container.themes:
        scoped = [animation.id for animation in container.animations if theme.id in animation.themes]
        themes.append(ManifestThemeV1(id=theme.id, animations=scoped))

    metadata = container.metadata
    return ManifestV1(
        version="1",
        generator=container.generator,
        author=metadata.get("author"),
        description=metadata.get("description"),
        keywords=metadata.get("keywords"),
        revision=metadata.get("revision"),
        custom=metadata.get("custom"),
        active_animation_id=_initial_animation_id(container),
        animations=animations,
        themes=themes or None,
        states=[machine.id for machine in container.state_machines] or None,
    )


def manifest_to_dict(manifest: Manifest) -> dict:
    return manifest.model_dump(by_alias=True, exclude_none=True, mode="json")


def manifest_to_bytes(manifest: Manifest) -> bytes:
    return json.dumps(manifest_to_dict(manifest), ensure_ascii=False).encode("utf-8")


def parse_manifest(raw: Union[bytes, str, dict]) -> Manifest:
    """Parse a manifest, trying generation 2 first and then generation 1.

    Raises:
        SchemaViolation: If the manifest is not JSON or matches neither schema.
    """
    if isinstance(raw, dict):
        data = raw
    else:
        try:
            data = json.loads(raw)
        except (UnicodeDecodeError, ValueError) as exc:
            raise SchemaViolation(f"Manifest is not valid JSON: {exc}") from exc

    try:
        return ManifestV2.model_validate(data)
    except ValidationError as v2_error:
        logger.debug("Manifest is not generation 2: %s", describe_errors(v2_error))
        try:
            return ManifestV1.model_validate(data)
        except ValidationError as v1_error:
            raise SchemaViolation(
                "Invalid manifest: "
                f"v2: {describe_errors(v2_error)}; v1: {describe_errors(v1_error)}"
            ) from v1_error
