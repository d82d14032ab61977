"""Stable CLI output: human lines or a single JSON envelope per command."""

from __future__ import annotations

import json
import sys
from typing import Any, Callable, Iterable

from dotlottie import __version__
from dotlottie.errors import exit_code_for_exception

ENVELOPE_SCHEMA = "dotlottie.cli/v1"

OutputSink = Callable[[str], Any]


def _dump(envelope: dict) -> str:
    return json.dumps(envelope, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def emit_output(
    *,
    command: str,
    payload: dict,
    json_output: bool,
    output_sink: OutputSink = print,
    human_lines: Iterable[str] = (),
) -> None:
    """Write a command result.

    With ``json_output`` the payload is wrapped in an envelope carrying the
    schema tag, tool version and command name; keys are sorted so output is
    byte-stable across runs.
    """
    if not json_output:
        for line in human_lines:
            output_sink(line)
        return
    output_sink(
        _dump(
            {
                "schema": ENVELOPE_SCHEMA,
                "tool_version": __version__,
                "command": command,
                "ok": True,
                "data": payload,
            }
        )
    )


def emit_error(
    *,
    command: str,
    exc: BaseException,
    json_output: bool,
    output_sink: OutputSink = print,
) -> int:
    """Report a failed command and return its exit code."""
    code = exit_code_for_exception(exc)
    if json_output:
        output_sink(
            _dump(
                {
                    "schema": ENVELOPE_SCHEMA,
                    "tool_version": __version__,
                    "command": command,
                    "ok": False,
                    "error": {"type": type(exc).__name__, "message": str(exc), "exit_code": code},
                }
            )
        )
    else:
        print(f"{command}: {exc}", file=sys.stderr)
    return code
