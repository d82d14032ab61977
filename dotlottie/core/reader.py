"""Read documents and assets out of container bytes by name.

Every function opens the archive for the duration of the call only and
decompresses just the entries it needs: the manifest plus the requested
document, and the referenced assets when inlining.
"""

from __future__ import annotations

import json
import logging
from pathlib import PurePosixPath
from typing import Any, Optional, Union

from dotlottie.core.builder import DotLottie
from dotlottie.core.layout import ANIMATIONS_DIR, ContainerLayout, layout_for
from dotlottie.core.manifest import parse_manifest
from dotlottie.core.models import ASSET_TYPES, AssetKind, AudioAsset, FontAsset, ImageAsset, LottieAsset
from dotlottie.core.rewriter import inline, iter_references
from dotlottie.errors import AssetNotFound, DotLottieError, InvalidContainer, SchemaViolation
from dotlottie.infrastructure.archive import MANIFEST_PATH, ArchiveReader, BytesLike
from dotlottie.infrastructure.fetch import Fetcher, fetch_async
from dotlottie.schemas.manifest import Manifest, ManifestV1, ManifestV2, V1_PLAYBACK_FIELDS
from dotlottie.schemas.theme import validate_theme_data

logger = logging.getLogger(__name__)

ZIP_MEDIA_TYPES = frozenset({"application/zip", "application/zip+dotlottie", "application/dotlottie"})


def _load_manifest(archive: ArchiveReader) -> Manifest:
    if not archive.has(MANIFEST_PATH):
        raise InvalidContainer(f"{MANIFEST_PATH} is missing from the container")
    return parse_manifest(archive.read(MANIFEST_PATH))


def _read_json(archive: ArchiveReader, path: str) -> Any:
    raw = archive.read(path)
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, ValueError) as exc:
        raise SchemaViolation(f"{path} is not valid JSON: {exc}") from exc


def _layout(manifest: Manifest) -> ContainerLayout:
    return layout_for(manifest.generation)


def _animation_ids(manifest: Manifest) -> list[str]:
    return [animation.id for animation in manifest.animations]


def _theme_ids(manifest: Manifest, archive: ArchiveReader, layout: ContainerLayout) -> list[str]:
    if manifest.themes:
        return [theme.id for theme in manifest.themes]
    # Some generation 1 producers only wrote the files.
    return [PurePosixPath(name).stem for name in archive.names(f"{layout.themes_dir}/")]


def _state_machine_ids(manifest: Manifest, archive: ArchiveReader, layout: ContainerLayout) -> list[str]:
    if isinstance(manifest, ManifestV2):
        return [machine.id for machine in manifest.state_machines or []]
    if manifest.states:
        return list(manifest.states)
    return [PurePosixPath(name).stem for name in archive.names(f"{layout.state_machines_dir}/")]


def get_manifest(data: BytesLike) -> Manifest:
    """Return the parsed manifest of a container.

    Raises:
        InvalidContainer: If the bytes are not a zip or the manifest is missing.
        SchemaViolation: If the manifest matches neither generation.
    """
    with ArchiveReader(data) as archive:
        return _load_manifest(archive)


def get_animation(data: BytesLike, animation_id: str, *, inline_assets: bool = False) -> dict:
    """Return one animation document, optionally with its assets embedded."""
    with ArchiveReader(data) as archive:
        _load_manifest(archive)
        document = _read_json(archive, f"{ANIMATIONS_DIR}/{animation_id}.json")
        if inline_assets:
            document = inline(document, archive.read)
        return document


def get_animations(data: BytesLike, *, inline_assets: bool = False) -> dict[str, dict]:
    with ArchiveReader(data) as archive:
        manifest = _load_manifest(archive)
        documents = {}
        for animation_id in _animation_ids(manifest):
            document = _read_json(archive, f"{ANIMATIONS_DIR}/{animation_id}.json")
            documents[animation_id] = inline(document, archive.read) if inline_assets else document
        return documents


def _read_theme(archive: ArchiveReader, layout: ContainerLayout, theme_id: str) -> Union[dict, str]:
    path = archive.find(layout.themes_dir, theme_id, layout.theme_extensions)
    if path is None:
        raise AssetNotFound(f"{layout.themes_dir}/{theme_id}.*")
    if path.endswith(".lss"):
        return archive.read(path).decode("utf-8")
    return _read_json(archive, path)


def get_theme(data: BytesLike, theme_id: str) -> Union[dict, str]:
    """Return a theme document; generation 1 ``.lss`` themes come back as text.

    Raises:
        AssetNotFound: Naming ``themes/<id>.*`` when no such theme exists.
    """
    with ArchiveReader(data) as archive:
        manifest = _load_manifest(archive)
        return _read_theme(archive, _layout(manifest), theme_id)


def get_themes(data: BytesLike) -> dict[str, Union[dict, str]]:
    with ArchiveReader(data) as archive:
        manifest = _load_manifest(archive)
        layout = _layout(manifest)
        return {theme_id: _read_theme(archive, layout, theme_id) for theme_id in _theme_ids(manifest, archive, layout)}


def get_state_machine(data: BytesLike, state_machine_id: str) -> dict:
    with ArchiveReader(data) as archive:
        manifest = _load_manifest(archive)
        return _read_json(archive, _layout(manifest).state_machine_path(state_machine_id))


def get_state_machines(data: BytesLike) -> dict[str, dict]:
    with ArchiveReader(data) as archive:
        manifest = _load_manifest(archive)
        layout = _layout(manifest)
        return {
            machine_id: _read_json(archive, layout.state_machine_path(machine_id))
            for machine_id in _state_machine_ids(manifest, archive, layout)
        }


def get_global_inputs(data: BytesLike, global_inputs_id: str) -> dict:
    with ArchiveReader(data) as archive:
        manifest = _load_manifest(archive)
        layout = _layout(manifest)
        if layout.global_inputs_dir is None:
            raise AssetNotFound(f"global_inputs/{global_inputs_id}.json")
        return _read_json(archive, layout.global_inputs_path(global_inputs_id))


def _read_asset(archive: ArchiveReader, kind: AssetKind, asset_id: str) -> LottieAsset:
    path = f"{kind.directory}/{asset_id}"
    if not archive.has(path):
        path = archive.find(kind.directory, asset_id)
        if path is None:
            raise AssetNotFound(f"{kind.directory}/{asset_id}.*")
    return ASSET_TYPES[kind].from_entry(PurePosixPath(path).name, archive.read(path))


def _read_assets(archive: ArchiveReader, kind: AssetKind) -> dict[str, LottieAsset]:
    assets = {}
    for path in archive.names(f"{kind.directory}/"):
        asset = ASSET_TYPES[kind].from_entry(PurePosixPath(path).name, archive.read(path))
        assets[asset.id] = asset
    return assets


def get_image(data: BytesLike, image_id: str) -> ImageAsset:
    """Return one image by id (``image_0``) or file name (``image_0.png``)."""
    with ArchiveReader(data) as archive:
        _load_manifest(archive)
        return _read_asset(archive, AssetKind.IMAGE, image_id)


def get_images(data: BytesLike) -> dict[str, ImageAsset]:
    with ArchiveReader(data) as archive:
        _load_manifest(archive)
        return _read_assets(archive, AssetKind.IMAGE)


def get_audio(data: BytesLike, audio_id: str) -> AudioAsset:
    with ArchiveReader(data) as archive:
        _load_manifest(archive)
        return _read_asset(archive, AssetKind.AUDIO, audio_id)


def get_all_audio(data: BytesLike) -> dict[str, AudioAsset]:
    with ArchiveReader(data) as archive:
        _load_manifest(archive)
        return _read_assets(archive, AssetKind.AUDIO)


def get_font(data: BytesLike, font_id: str) -> FontAsset:
    with ArchiveReader(data) as archive:
        _load_manifest(archive)
        return _read_asset(archive, AssetKind.FONT, font_id)


def get_fonts(data: BytesLike) -> dict[str, FontAsset]:
    with ArchiveReader(data) as archive:
        _load_manifest(archive)
        return _read_assets(archive, AssetKind.FONT)


def validate_container(data: BytesLike) -> tuple[bool, Optional[str]]:
    """Check that bytes form a readable container with a valid manifest."""
    try:
        with ArchiveReader(data) as archive:
            manifest = _load_manifest(archive)
            for animation_id in _animation_ids(manifest):
                path = f"{ANIMATIONS_DIR}/{animation_id}.json"
                if not archive.has(path):
                    return False, f"Missing animation entry: {path}"
    except DotLottieError as exc:
        return False, str(exc)
    return True, None


def from_bytes(data: BytesLike) -> DotLottie:
    """Reconstruct an independent container graph from archive bytes.

    Animations and themes come back with their assets embedded, and each
    animation is re-linked to the assets it references.
    """
    with ArchiveReader(data) as archive:
        manifest = _load_manifest(archive)
        layout = _layout(manifest)
        if isinstance(manifest, ManifestV2):
            container = DotLottie(generator=manifest.generator, version="2")
        else:
            container = DotLottie(
                generator=manifest.generator,
                version="1",
                author=manifest.author,
                description=manifest.description,
                keywords=manifest.keywords,
                revision=manifest.revision,
                custom=manifest.custom,
            )

        assets: dict[str, LottieAsset] = {}
        for kind in AssetKind:
            for asset in _read_assets(archive, kind).values():
                assets[asset.path] = asset

        _load_themes(container, archive, manifest, layout, assets)
        _load_animations(container, archive, manifest, layout, assets)

        machine_names = {}
        if isinstance(manifest, ManifestV2):
            machine_names = {entry.id: entry.name for entry in manifest.state_machines or []}
        for machine_id in _state_machine_ids(manifest, archive, layout):
            document = _read_json(archive, layout.state_machine_path(machine_id))
            try:
                container.add_state_machine(machine_id, data=document, name=machine_names.get(machine_id))
            except SchemaViolation as exc:
                if isinstance(manifest, ManifestV2):
                    raise
                logger.warning("Skipping state machine %s: %s", machine_id, exc)
        if isinstance(manifest, ManifestV2):
            for entry in manifest.global_inputs or []:
                container.add_global_inputs(
                    entry.id, data=_read_json(archive, layout.global_inputs_path(entry.id)), name=entry.name
                )

        _set_initial(container, manifest)

        orphans = [path for path, asset in assets.items() if asset.is_orphan]
        if orphans:
            logger.debug("Ignoring %d unreferenced asset(s): %s", len(orphans), ", ".join(orphans))
        return container


def _load_themes(
    container: DotLottie,
    archive: ArchiveReader,
    manifest: Manifest,
    layout: ContainerLayout,
    assets: dict[str, LottieAsset],
) -> None:
    names = {}
    if isinstance(manifest, ManifestV2):
        names = {entry.id: entry.name for entry in manifest.themes or []}
    for theme_id in _theme_ids(manifest, archive, layout):
        document = _read_theme(archive, layout, theme_id)
        if isinstance(document, str):
            logger.warning("Skipping stylesheet theme %s: only JSON themes are supported", theme_id)
            continue
        if isinstance(manifest, ManifestV1):
            try:
                validate_theme_data(document)
            except SchemaViolation as exc:
                logger.warning("Skipping theme %s: %s", theme_id, exc)
                continue
        references = iter_references(document)
        container.add_theme(theme_id, data=inline(document, archive.read), name=names.get(theme_id))
        theme = container.get_theme(theme_id)
        linked = [assets[path] for path in references if path in assets]
        for asset in linked:
            asset.add_parent_theme(theme_id)
        theme.attach_assets(linked)


def _load_animations(
    container: DotLottie,
    archive: ArchiveReader,
    manifest: Manifest,
    layout: ContainerLayout,
    assets: dict[str, LottieAsset],
) -> None:
    known_themes = {theme.id for theme in container.themes}
    for entry in manifest.animations:
        document = _read_json(archive, layout.animation_path(entry.id))
        references = iter_references(document)
        options: dict[str, Any] = {"data": inline(document, archive.read)}
        if isinstance(manifest, ManifestV2):
            options.update(
                name=entry.name,
                initial_theme=entry.initial_theme if entry.initial_theme in known_themes else None,
                background=entry.background,
                themes=[theme_id for theme_id in entry.themes or [] if theme_id in known_themes],
            )
        else:
            raw = entry.model_dump(by_alias=True, exclude_none=True)
            options["playback"] = {key: raw[key] for key in V1_PLAYBACK_FIELDS if key in raw} or None
            scoped = [
                theme.id
                for theme in manifest.themes or []
                if entry.id in theme.animations and theme.id in known_themes
            ]
            if entry.default_theme in known_themes and entry.default_theme not in scoped:
                scoped.insert(0, entry.default_theme)
            options["themes"] = scoped[:1]
            options["initial_theme"] = entry.default_theme if entry.default_theme in known_themes else None
        container.add_animation(entry.id, **options)

        linked = [assets[path] for path in references if path in assets]
        for asset in linked:
            asset.add_parent_animation(entry.id)
        container.get_animation(entry.id).attach_assets(linked)


def _set_initial(container: DotLottie, manifest: Manifest) -> None:
    if isinstance(manifest, ManifestV2):
        initial = manifest.initial
        if initial is None:
            return
        known_machines = {machine.id for machine in container.state_machines}
        known_inputs = {inputs.id for inputs in container.global_inputs}
        container.set_initial(
            animation=initial.animation if initial.animation in _animation_ids(manifest) else None,
            state_machine=initial.state_machine if initial.state_machine in known_machines else None,
            global_inputs=initial.global_inputs if initial.global_inputs in known_inputs else None,
        )
    elif manifest.active_animation_id in _animation_ids(manifest):
        container.set_initial(animation=manifest.active_animation_id)


async def from_url(url: str, *, fetcher: Optional[Fetcher] = None) -> DotLottie:
    """Fetch a container and reconstruct its graph.

    Raises:
        FetchFailed: If the request fails.
        InvalidContainer: If the response is not served as a zip archive.
    """
    response = await fetch_async(url, fetcher)
    if response.media_type not in ZIP_MEDIA_TYPES:
        raise InvalidContainer(f"Expected a zip archive from {url}, got content type {response.content_type!r}")
    return from_bytes(response.body)
