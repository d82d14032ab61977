"""Validate command - check that a file is a readable container."""

from __future__ import annotations

from argparse import Namespace
from pathlib import Path

from dotlottie.commands.output import emit_output
from dotlottie.core.reader import validate_container
from dotlottie.errors import InvalidContainer


def run_validate(args: Namespace, *, output_sink=print) -> int:
    path = Path(args.archive)
    ok, error = validate_container(path.read_bytes())
    emit_output(
        command="validate",
        payload={"path": str(path), "valid": ok, "error": error},
        json_output=getattr(args, "json", False),
        output_sink=output_sink,
        human_lines=(f"validate: {path} OK",) if ok else (f"validate: {path} INVALID: {error}",),
    )
    return 0 if ok else InvalidContainer.exit_code
