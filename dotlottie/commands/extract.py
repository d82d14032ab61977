"""Extract command - pull one entry out of a container by kind and id."""

from __future__ import annotations

from argparse import Namespace
import json
from pathlib import Path
from typing import Optional

from dotlottie.commands.output import emit_output
from dotlottie.core import reader

DOCUMENT_KINDS = ("animation", "theme", "state-machine", "global-inputs")
ASSET_KINDS = ("image", "audio", "font")


def _read_document(data: bytes, kind: str, entry_id: str, inline_assets: bool):
    if kind == "animation":
        return reader.get_animation(data, entry_id, inline_assets=inline_assets)
    if kind == "theme":
        return reader.get_theme(data, entry_id)
    if kind == "state-machine":
        return reader.get_state_machine(data, entry_id)
    return reader.get_global_inputs(data, entry_id)


def _read_asset(data: bytes, kind: str, entry_id: str):
    if kind == "image":
        return reader.get_image(data, entry_id)
    if kind == "audio":
        return reader.get_audio(data, entry_id)
    return reader.get_font(data, entry_id)


def run_extract(args: Namespace, *, output_sink=print) -> int:
    """Write the requested entry to ``--output`` or standard output."""
    data = Path(args.archive).read_bytes()
    output: Optional[Path] = Path(args.output) if args.output else None

    if args.kind in ASSET_KINDS:
        asset = _read_asset(data, args.kind, args.id)
        target = output or Path(asset.file_name)
        target.write_bytes(asset.to_bytes())
        emit_output(
            command="extract",
            payload={
                "kind": args.kind,
                "id": asset.id,
                "file_name": asset.file_name,
                "mime_type": asset.mime_type,
                "output": str(target),
                "size_bytes": len(asset.to_bytes()),
            },
            json_output=getattr(args, "json", False),
            output_sink=output_sink,
            human_lines=(f"extract: wrote {asset.file_name} to {target}",),
        )
        return 0

    document = _read_document(data, args.kind, args.id, getattr(args, "inline", False))
    text = document if isinstance(document, str) else json.dumps(document, ensure_ascii=False, indent=2)
    if output is None:
        if getattr(args, "json", False):
            emit_output(
                command="extract",
                payload={"kind": args.kind, "id": args.id, "document": document},
                json_output=True,
                output_sink=output_sink,
            )
        else:
            output_sink(text)
        return 0

    output.write_text(text, encoding="utf-8")
    emit_output(
        command="extract",
        payload={"kind": args.kind, "id": args.id, "output": str(output)},
        json_output=getattr(args, "json", False),
        output_sink=output_sink,
        human_lines=(f"extract: wrote {args.kind} {args.id} to {output}",),
    )
    return 0
