"""Fluent container builder."""

from __future__ import annotations

import asyncio
import base64
from dataclasses import dataclass, field
import json
import logging
from typing import Any, Iterable, Optional, TypeVar

from dotlottie import __version__
from dotlottie.core.dedupe import DeduplicationEngine
from dotlottie.core.fingerprint import DEFAULT_SIMILARITY_THRESHOLD
from dotlottie.core.layout import layout_for
from dotlottie.core.manifest import (
    manifest_to_bytes,
    manifest_to_dict,
    project_manifest_v1,
    project_manifest_v2,
)
from dotlottie.core.models import (
    Animation,
    AssetKind,
    AudioAsset,
    FontAsset,
    GlobalInputs,
    ImageAsset,
    LottieAsset,
    StateMachine,
    Theme,
    ZipOptions,
)
from dotlottie.core.rewriter import externalize
from dotlottie.core.validation import validate_lottie_data
from dotlottie.errors import (
    BuildInProgress,
    InvalidIdentifier,
    MissingSource,
    SchemaViolation,
    UnresolvedSource,
)
from dotlottie.infrastructure.archive import MANIFEST_PATH, ArchiveEntry, write_archive
from dotlottie.infrastructure.fetch import Fetcher, fetch_async
from dotlottie.schemas.manifest import Manifest
from dotlottie.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_GENERATOR = f"dotlottie-py@{__version__}"
_V1_METADATA_FIELDS = ("author", "description", "keywords", "revision", "custom")

DocumentT = TypeVar("DocumentT")


def _json_bytes(document: Any) -> bytes:
    return json.dumps(document, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


@dataclass
class _BuildPlan:
    entries: list[ArchiveEntry] = field(default_factory=list)
    animation_assets: dict[str, list[LottieAsset]] = field(default_factory=dict)
    theme_assets: dict[str, list[LottieAsset]] = field(default_factory=dict)
    duplicates: int = 0


class DotLottie:
    """Mutable container graph that serializes to a .lottie archive.

    Mutators return ``self`` so calls chain. ``build()`` never mutates the
    graph until the archive has been produced, so a failed build leaves it
    exactly as it was.
    """

    def __init__(
        self,
        *,
        generator: Optional[str] = None,
        version: str = "2",
        enable_duplicate_image_optimization: bool = True,
        image_similarity_threshold: int = DEFAULT_SIMILARITY_THRESHOLD,
        compression_level: Optional[int] = None,
        fetcher: Optional[Fetcher] = None,
        **metadata: Any,
    ) -> None:
        self._layout = layout_for(str(version))
        unknown = sorted(set(metadata) - set(_V1_METADATA_FIELDS))
        if unknown:
            raise TypeError(f"Unexpected container options: {', '.join(unknown)}")
        self.generator = generator or DEFAULT_GENERATOR
        self.enable_duplicate_image_optimization = enable_duplicate_image_optimization
        self.image_similarity_threshold = image_similarity_threshold
        self.compression_level = ZipOptions(level=compression_level).level
        self.metadata: dict[str, Any] = {key: value for key, value in metadata.items() if value is not None}
        self._fetcher = fetcher
        self._animations: dict[str, Animation] = {}
        self._themes: dict[str, Theme] = {}
        self._state_machines: dict[str, StateMachine] = {}
        self._global_inputs: dict[str, GlobalInputs] = {}
        self.initial_animation: Optional[str] = None
        self.initial_state_machine: Optional[str] = None
        self.initial_global_inputs: Optional[str] = None
        self._building = False

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "DotLottie":
        options = {
            "generator": settings.generator,
            "enable_duplicate_image_optimization": settings.dedupe_images,
            "image_similarity_threshold": settings.image_similarity_threshold,
            "compression_level": settings.compression_level,
        }
        options.update(kwargs)
        return cls(**options)

    @property
    def version(self) -> str:
        return self._layout.generation

    @property
    def animations(self) -> list[Animation]:
        return list(self._animations.values())

    @property
    def themes(self) -> list[Theme]:
        return list(self._themes.values())

    @property
    def state_machines(self) -> list[StateMachine]:
        return list(self._state_machines.values())

    @property
    def global_inputs(self) -> list[GlobalInputs]:
        return list(self._global_inputs.values())

    @property
    def manifest(self) -> dict:
        """Manifest derived from the current graph."""
        return manifest_to_dict(self._project_manifest())

    # Animations

    def add_animation(
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
    ) -> "DotLottie":
        animation = Animation(
            id,
            data=data,
            url=url,
            name=name,
            initial_theme=initial_theme,
            background=background,
            themes=themes,
            default_active=default_active,
            playback=playback,
            zip_options=zip_options,
        )
        self._insert(self._animations, animation, "animation")
        return self

    def remove_animation(self, animation_id: str) -> "DotLottie":
        animation = self._require(self._animations, animation_id, "animation")
        del self._animations[animation_id]
        for asset in animation.image_assets + animation.audio_assets + animation.font_assets:
            asset.remove_parent_animation(animation_id)
        if self.initial_animation == animation_id:
            self.initial_animation = None
        return self

    def get_animation(self, animation_id: str) -> Animation:
        return self._require(self._animations, animation_id, "animation")

    # Themes

    def add_theme(
        self,
        id: str,
        *,
        data: dict,
        name: Optional[str] = None,
        zip_options: Optional[ZipOptions] = None,
    ) -> "DotLottie":
        self._insert(self._themes, Theme(id, data=data, name=name, zip_options=zip_options), "theme")
        return self

    def remove_theme(self, theme_id: str) -> "DotLottie":
        self._require(self._themes, theme_id, "theme")
        del self._themes[theme_id]
        for animation in self._animations.values():
            animation.unscope_theme(theme_id)
        return self

    def get_theme(self, theme_id: str) -> Theme:
        return self._require(self._themes, theme_id, "theme")

    def scope_theme(self, animation_id: str, theme_id: str) -> "DotLottie":
        """Associate an existing theme with an existing animation."""
        animation = self._require(self._animations, animation_id, "animation")
        self._require(self._themes, theme_id, "theme")
        animation.scope_theme(theme_id)
        return self

    def unscope_theme(self, animation_id: str, theme_id: str) -> "DotLottie":
        animation = self._require(self._animations, animation_id, "animation")
        animation.unscope_theme(theme_id)
        return self

    # State machines

    def add_state_machine(
        self,
        id: str,
        *,
        data: dict,
        name: Optional[str] = None,
        zip_options: Optional[ZipOptions] = None,
    ) -> "DotLottie":
        machine = StateMachine(id, data=data, name=name, zip_options=zip_options)
        self._insert(self._state_machines, machine, "state machine")
        return self

    def remove_state_machine(self, state_machine_id: str) -> "DotLottie":
        self._require(self._state_machines, state_machine_id, "state machine")
        del self._state_machines[state_machine_id]
        if self.initial_state_machine == state_machine_id:
            self.initial_state_machine = None
        return self

    def get_state_machine(self, state_machine_id: str) -> StateMachine:
        return self._require(self._state_machines, state_machine_id, "state machine")

    # Global inputs

    def add_global_inputs(
        self,
        id: str,
        *,
        data: dict,
        name: Optional[str] = None,
        zip_options: Optional[ZipOptions] = None,
    ) -> "DotLottie":
        inputs = GlobalInputs(id, data=data, name=name, zip_options=zip_options)
        self._insert(self._global_inputs, inputs, "global inputs")
        return self

    def remove_global_inputs(self, global_inputs_id: str) -> "DotLottie":
        self._require(self._global_inputs, global_inputs_id, "global inputs")
        del self._global_inputs[global_inputs_id]
        if self.initial_global_inputs == global_inputs_id:
            self.initial_global_inputs = None
        return self

    def get_global_inputs(self, global_inputs_id: str) -> GlobalInputs:
        return self._require(self._global_inputs, global_inputs_id, "global inputs")

    def set_initial(
        self,
        *,
        animation: Optional[str] = None,
        state_machine: Optional[str] = None,
        global_inputs: Optional[str] = None,
    ) -> "DotLottie":
        """Point the manifest's initial entries at existing documents; None clears."""
        if animation is not None:
            self._require(self._animations, animation, "animation")
        if state_machine is not None:
            self._require(self._state_machines, state_machine, "state machine")
        if global_inputs is not None:
            self._require(self._global_inputs, global_inputs, "global inputs")
        self.initial_animation = animation
        self.initial_state_machine = state_machine
        self.initial_global_inputs = global_inputs
        return self

    # Assets

    def get_images(self) -> list[ImageAsset]:
        return self._collect_assets(AssetKind.IMAGE)

    def get_audio(self) -> list[AudioAsset]:
        return self._collect_assets(AssetKind.AUDIO)

    def get_fonts(self) -> list[FontAsset]:
        return self._collect_assets(AssetKind.FONT)

    def _collect_assets(self, kind: AssetKind) -> list:
        """Assets attached by the last build, first-seen order."""
        groups: list[list[LottieAsset]] = []
        for animation in self._animations.values():
            groups.append(
                {
                    AssetKind.IMAGE: animation.image_assets,
                    AssetKind.AUDIO: animation.audio_assets,
                    AssetKind.FONT: animation.font_assets,
                }[kind]
            )
        if kind is AssetKind.IMAGE:
            groups.extend(theme.image_assets for theme in self._themes.values())
        collected: list[LottieAsset] = []
        for group in groups:
            for asset in group:
                if asset not in collected:
                    collected.append(asset)
        return collected

    # Composition

    def merge(self, *containers: "DotLottie") -> "DotLottie":
        """Return a new container holding this container's documents and those of ``containers``.

        Raises:
            InvalidIdentifier: If two containers share a document id.
        """
        merged = DotLottie(
            generator=self.generator,
            version=self.version,
            enable_duplicate_image_optimization=self.enable_duplicate_image_optimization,
            image_similarity_threshold=self.image_similarity_threshold,
            compression_level=self.compression_level,
            fetcher=self._fetcher,
            **self.metadata,
        )
        for container in (self, *containers):
            for animation in container.animations:
                merged.add_animation(
                    animation.id,
                    data=animation.data,
                    url=animation.url,
                    name=animation.name,
                    initial_theme=animation.initial_theme,
                    background=animation.background,
                    themes=animation.themes,
                    default_active=animation.default_active,
                    playback=animation.playback,
                    zip_options=animation.zip_options,
                )
            for theme in container.themes:
                merged.add_theme(theme.id, data=theme.data, name=theme.name, zip_options=theme.zip_options)
            for machine in container.state_machines:
                merged.add_state_machine(
                    machine.id, data=machine.data, name=machine.name, zip_options=machine.zip_options
                )
            for inputs in container.global_inputs:
                merged.add_global_inputs(
                    inputs.id, data=inputs.data, name=inputs.name, zip_options=inputs.zip_options
                )
            merged.initial_animation = merged.initial_animation or container.initial_animation
            merged.initial_state_machine = merged.initial_state_machine or container.initial_state_machine
            merged.initial_global_inputs = merged.initial_global_inputs or container.initial_global_inputs
        return merged

    # Serialization

    async def build(self) -> bytes:
        """Serialize the graph into archive bytes.

        Returns:
            The complete archive

        Raises:
            BuildInProgress: If another build of this container is running.
            UnresolvedSource: If a source or cross-reference cannot be resolved.
            FetchFailed: If fetching a url-backed animation fails.
            InvalidAssetData: If an embedded asset cannot be decoded.
        """
        if self._building:
            raise BuildInProgress("A build is already running for this container")
        self._building = True
        try:
            if not self._animations:
                raise MissingSource("Container has no animations")
            documents = await self._resolve_sources()
            self._check_references()
            plan = self._plan(documents)
            archive = write_archive(plan.entries, default_level=self.compression_level)
        finally:
            self._building = False

        for animation_id, assets in plan.animation_assets.items():
            self._animations[animation_id].attach_assets(assets)
        for theme_id, assets in plan.theme_assets.items():
            self._themes[theme_id].attach_assets(assets)
        logger.info(
            "Built container: %d animation(s), %d entries, %d duplicate asset(s) merged",
            len(self._animations),
            len(plan.entries),
            plan.duplicates,
        )
        return archive

    async def to_bytes(self) -> bytes:
        return await self.build()

    async def to_base64(self) -> str:
        return base64.b64encode(await self.build()).decode("ascii")

    async def _resolve_sources(self) -> dict[str, dict]:
        documents: dict[str, dict] = {}
        remote: list[Animation] = []
        for animation in self._animations.values():
            if animation.data is not None:
                documents[animation.id] = animation.data
            elif animation.url is not None:
                remote.append(animation)
            else:
                raise UnresolvedSource(f"Animation {animation.id!r} has neither data nor url")

        if remote:
            logger.debug("Fetching %d remote animation(s)", len(remote))
            responses = await asyncio.gather(
                *(fetch_async(animation.url, self._fetcher) for animation in remote)
            )
            for animation, response in zip(remote, responses):
                data = response.json()
                try:
                    documents[animation.id] = validate_lottie_data(data)
                except SchemaViolation as exc:
                    raise UnresolvedSource(
                        f"Animation {animation.id!r}: {animation.url} did not return a Lottie document: {exc}"
                    ) from exc

        return {animation_id: documents[animation_id] for animation_id in self._animations}

    def _check_references(self) -> None:
        for animation in self._animations.values():
            for theme_id in animation.themes:
                if theme_id not in self._themes:
                    raise UnresolvedSource(f"Animation {animation.id!r} references unknown theme {theme_id!r}")
            if animation.initial_theme is not None and animation.initial_theme not in self._themes:
                raise UnresolvedSource(
                    f"Animation {animation.id!r} has unknown initial theme {animation.initial_theme!r}"
                )

        pointers = (
            (self.initial_animation, self._animations, "animation"),
            (self.initial_state_machine, self._state_machines, "state machine"),
            (self.initial_global_inputs, self._global_inputs, "global inputs"),
        )
        for pointer, documents, label in pointers:
            if pointer is not None and pointer not in documents:
                raise UnresolvedSource(f"Initial {label} {pointer!r} does not exist")

        for machine in self._state_machines.values():
            for animation_id in machine.animation_ids:
                if animation_id not in self._animations:
                    raise UnresolvedSource(
                        f"State machine {machine.id!r} references unknown animation {animation_id!r}"
                    )

        for inputs in self._global_inputs.values():
            for theme_id in inputs.bound_theme_ids:
                if theme_id not in self._themes:
                    raise UnresolvedSource(f"Global inputs {inputs.id!r} bind unknown theme {theme_id!r}")
            for machine_id in inputs.bound_state_machine_ids:
                if machine_id not in self._state_machines:
                    raise UnresolvedSource(
                        f"Global inputs {inputs.id!r} bind unknown state machine {machine_id!r}"
                    )

        if self.version == "1":
            if self._global_inputs:
                raise SchemaViolation("Global inputs are not supported by container version 1")
            for animation in self._animations.values():
                if len(animation.themes) > 1:
                    raise SchemaViolation(
                        f"Animation {animation.id!r} has {len(animation.themes)} themes; version 1 allows one"
                    )

    def _plan(self, documents: dict[str, dict]) -> _BuildPlan:
        plan = _BuildPlan()
        engine = DeduplicationEngine(
            enabled=self.enable_duplicate_image_optimization,
            image_threshold=self.image_similarity_threshold,
        )

        stripped_animations: dict[str, dict] = {}
        for animation_id, document in documents.items():
            stripped, assets = externalize(document, registry=engine, animation_id=animation_id)
            stripped_animations[animation_id] = stripped
            plan.animation_assets[animation_id] = assets
            options = self._animations[animation_id].zip_options
            for asset in assets:
                if asset.parent_animations[0] == animation_id and asset.zip_options == ZipOptions():
                    asset.zip_options = options

        stripped_themes: dict[str, dict] = {}
        for theme in self._themes.values():
            stripped, assets = externalize(theme.data, registry=engine, theme_id=theme.id)
            stripped_themes[theme.id] = stripped
            plan.theme_assets[theme.id] = assets

        engine.prune_orphans()
        plan.duplicates = engine.duplicates

        layout = self._layout
        plan.entries.append(ArchiveEntry(MANIFEST_PATH, manifest_to_bytes(self._project_manifest())))
        for animation_id, stripped in stripped_animations.items():
            animation = self._animations[animation_id]
            plan.entries.append(
                ArchiveEntry(layout.animation_path(animation_id), _json_bytes(stripped), animation.zip_options)
            )
        for theme in self._themes.values():
            plan.entries.append(
                ArchiveEntry(layout.theme_path(theme.id), _json_bytes(stripped_themes[theme.id]), theme.zip_options)
            )
        for machine in self._state_machines.values():
            plan.entries.append(
                ArchiveEntry(layout.state_machine_path(machine.id), _json_bytes(machine.data), machine.zip_options)
            )
        for inputs in self._global_inputs.values():
            plan.entries.append(
                ArchiveEntry(layout.global_inputs_path(inputs.id), _json_bytes(inputs.data), inputs.zip_options)
            )
        for asset in engine.assets():
            plan.entries.append(ArchiveEntry(asset.path, asset.to_bytes(), asset.zip_options))
        return plan

    def _project_manifest(self) -> Manifest:
        if self.version == "1":
            return project_manifest_v1(self)
        return project_manifest_v2(self)

    @staticmethod
    def _insert(collection: dict[str, DocumentT], document: Any, label: str) -> None:
        if document.id in collection:
            raise InvalidIdentifier(f"Duplicate {label} id: {document.id!r}")
        collection[document.id] = document

    @staticmethod
    def _require(collection: dict[str, DocumentT], document_id: str, label: str) -> DocumentT:
        try:
            return collection[document_id]
        except KeyError:
            raise InvalidIdentifier(f"Unknown {label} id: {document_id!r}") from None

    def __repr__(self) -> str:
        return (
            f"DotLottie(version={self.version!r}, animations={len(self._animations)}, "
            f"themes={len(self._themes)}, state_machines={len(self._state_machines)})"
        )
