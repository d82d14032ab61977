"""Pack command - build a container from JSON documents on disk."""

from __future__ import annotations

from argparse import Namespace
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional

from dotlottie.commands.output import emit_output
from dotlottie.core.builder import DotLottie
from dotlottie.core.validation import is_valid_url
from dotlottie.errors import InvalidIdentifier, SchemaViolation
from dotlottie.infrastructure.fetch import UrllibFetcher
from dotlottie.settings import Settings

logger = logging.getLogger(__name__)


def parse_pair(value: str, option: str) -> tuple[str, str]:
    """Split an ``ID=VALUE`` command-line pair."""
    key, sep, rest = value.partition("=")
    if not sep or not key or not rest:
        raise InvalidIdentifier(f"{option} expects ID=VALUE, got {value!r}")
    return key, rest


def _load_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise SchemaViolation(f"{path} is not valid JSON: {exc}") from exc


def build_container(args: Namespace, settings: Settings) -> DotLottie:
    """Assemble a container graph from parsed pack arguments."""
    container = DotLottie.from_settings(
        settings,
        version=args.format_version,
        fetcher=UrllibFetcher(timeout=settings.fetch_timeout),
    )
    if args.generator:
        container.generator = args.generator
    if args.no_dedupe:
        container.enable_duplicate_image_optimization = False

    for pair in args.theme or []:
        theme_id, source = parse_pair(pair, "--theme")
        container.add_theme(theme_id, data=_load_json(Path(source)))

    for pair in args.animation:
        animation_id, source = parse_pair(pair, "--animation")
        if is_valid_url(source) and not source.startswith("file:"):
            container.add_animation(animation_id, url=source)
        else:
            container.add_animation(animation_id, data=_load_json(Path(source)))

    for pair in args.scope or []:
        animation_id, theme_id = parse_pair(pair, "--scope")
        container.scope_theme(animation_id, theme_id)

    for pair in args.state_machine or []:
        machine_id, source = parse_pair(pair, "--state-machine")
        container.add_state_machine(machine_id, data=_load_json(Path(source)))

    for pair in args.global_inputs or []:
        inputs_id, source = parse_pair(pair, "--global-inputs")
        container.add_global_inputs(inputs_id, data=_load_json(Path(source)))

    container.set_initial(
        animation=args.initial_animation,
        state_machine=args.initial_state_machine,
        global_inputs=args.initial_global_inputs,
    )
    return container


def run_pack(
    args: Namespace,
    *,
    settings: Optional[Settings] = None,
    output_sink=print,
) -> int:
    """Build a container and write it to ``args.output``."""
    settings = settings or Settings()
    container = build_container(args, settings)
    archive = asyncio.run(container.build())

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(archive)
    logger.debug("Wrote %s (%d bytes)", output, len(archive))

    images = [asset.file_name for asset in container.get_images()]
    audio = [asset.file_name for asset in container.get_audio()]
    fonts = [asset.file_name for asset in container.get_fonts()]
    emit_output(
        command="pack",
        payload={
            "output": str(output),
            "size_bytes": len(archive),
            "version": container.version,
            "animations": [animation.id for animation in container.animations],
            "images": images,
            "audio": audio,
            "fonts": fonts,
        },
        json_output=getattr(args, "json", False),
        output_sink=output_sink,
        human_lines=(
            f"pack: wrote {output} ({len(archive)} bytes)",
            f"  animations: {len(container.animations)}",
            f"  images: {len(images)}, audio: {len(audio)}, fonts: {len(fonts)}",
        ),
    )
    return 0
