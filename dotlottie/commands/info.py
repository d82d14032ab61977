"""Info command - summarize a container without decompressing assets."""

from __future__ import annotations

from argparse import Namespace
from pathlib import Path

from dotlottie.commands.output import emit_output
from dotlottie.core.manifest import manifest_to_dict
from dotlottie.core.reader import get_manifest
from dotlottie.infrastructure.archive import ArchiveReader
from dotlottie.schemas.manifest import ManifestV2


def _info_payload(data: bytes) -> dict:
    manifest = get_manifest(data)
    with ArchiveReader(data) as archive:
        entries = {
            "images": archive.names("images/"),
            "audio": archive.names("audio/"),
            "fonts": archive.names("fonts/"),
        }
    if isinstance(manifest, ManifestV2):
        themes = [theme.id for theme in manifest.themes or []]
        state_machines = [machine.id for machine in manifest.state_machines or []]
        global_inputs = [inputs.id for inputs in manifest.global_inputs or []]
    else:
        themes = [theme.id for theme in manifest.themes or []]
        state_machines = list(manifest.states or [])
        global_inputs = []
    return {
        "version": manifest.generation,
        "generator": manifest.generator,
        "animations": [animation.id for animation in manifest.animations],
        "themes": themes,
        "state_machines": state_machines,
        "global_inputs": global_inputs,
        **entries,
        "manifest": manifest_to_dict(manifest),
    }


def run_info(args: Namespace, *, output_sink=print) -> int:
    """Print the manifest summary of a container."""
    path = Path(args.archive)
    payload = _info_payload(path.read_bytes())
    human_lines = [
        f"info: {path} (version {payload['version']}, generator {payload['generator'] or 'unknown'})",
        f"  animations: {', '.join(payload['animations'])}",
    ]
    for key in ("themes", "state_machines", "global_inputs", "images", "audio", "fonts"):
        if payload[key]:
            label = key.replace("_", " ")
            human_lines.append(f"  {label}: {', '.join(payload[key])}")
    emit_output(
        command="info",
        payload=payload,
        json_output=getattr(args, "json", False),
        output_sink=output_sink,
        human_lines=human_lines,
    )
    return 0
