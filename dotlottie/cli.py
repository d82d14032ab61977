"""Command-line interface for dotlottie."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from dotlottie import __version__
from dotlottie.settings import default_config_path, load_settings


def _load_dotenv_files() -> None:
    """Load ``.env`` from the working directory and the config directory."""
    for candidate in (Path.cwd() / ".env", default_config_path().parent / ".env"):
        if candidate.is_file():
            load_dotenv(candidate, override=False)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dotlottie",
        description="Build, inspect and extract dotLottie containers",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"dotlottie {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Settings JSON path (default: ~/.config/dotlottie/settings.json)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    pack_parser = subparsers.add_parser(
        "pack",
        help="Build a .lottie container from JSON documents",
    )
    pack_parser.add_argument(
        "output",
        type=Path,
        help="Destination .lottie path",
    )
    pack_parser.add_argument(
        "--animation",
        action="append",
        required=True,
        metavar="ID=PATH",
        help="Animation JSON path or URL (repeatable)",
    )
    pack_parser.add_argument(
        "--theme",
        action="append",
        metavar="ID=PATH",
        help="Theme JSON path (repeatable)",
    )
    pack_parser.add_argument(
        "--scope",
        action="append",
        metavar="ANIMATION=THEME",
        help="Scope a theme to an animation (repeatable)",
    )
    pack_parser.add_argument(
        "--state-machine",
        action="append",
        metavar="ID=PATH",
        help="State machine JSON path (repeatable)",
    )
    pack_parser.add_argument(
        "--global-inputs",
        action="append",
        metavar="ID=PATH",
        help="Global inputs JSON path (repeatable)",
    )
    pack_parser.add_argument("--initial-animation", help="Animation shown first")
    pack_parser.add_argument("--initial-state-machine", help="State machine started first")
    pack_parser.add_argument("--initial-global-inputs", help="Global inputs applied first")
    pack_parser.add_argument(
        "--format-version",
        choices=("1", "2"),
        default="2",
        help="Container layout version (default: 2)",
    )
    pack_parser.add_argument("--generator", help="Override the manifest generator")
    pack_parser.add_argument(
        "--no-dedupe",
        action="store_true",
        help="Store every embedded asset, even duplicates",
    )
    pack_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit machine-readable JSON output",
    )

    info_parser = subparsers.add_parser(
        "info",
        help="Summarize a container",
    )
    info_parser.add_argument("archive", type=Path, help="Container path")
    info_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit machine-readable JSON output",
    )

    extract_parser = subparsers.add_parser(
        "extract",
        help="Extract one entry from a container",
    )
    extract_parser.add_argument("archive", type=Path, help="Container path")
    extract_parser.add_argument(
        "kind",
        choices=("animation", "theme", "state-machine", "global-inputs", "image", "audio", "font"),
        help="Entry kind",
    )
    extract_parser.add_argument("id", help="Entry id")
    extract_parser.add_argument(
        "--inline",
        action="store_true",
        help="Embed referenced assets into an extracted animation",
    )
    extract_parser.add_argument("-o", "--output", type=Path, help="Destination path")
    extract_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit machine-readable JSON output",
    )

    validate_parser = subparsers.add_parser(
        "validate",
        help="Check that a file is a readable container",
    )
    validate_parser.add_argument("archive", type=Path, help="Container path")
    validate_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit machine-readable JSON output",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    _configure_logging(args.verbose)
    _load_dotenv_files()

    try:
        # Import here to avoid slow startup
        if args.command == "pack":
            from .commands.pack import run_pack
            settings = load_settings(args.config or default_config_path())
            return run_pack(args, settings=settings)
        elif args.command == "info":
            from .commands.info import run_info
            return run_info(args)
        elif args.command == "extract":
            from .commands.extract import run_extract
            return run_extract(args)
        elif args.command == "validate":
            from .commands.validate import run_validate
            return run_validate(args)
        else:
            parser.print_help()
            return 1
    except Exception as exc:
        from .commands.output import emit_error

        return emit_error(command=args.command, exc=exc, json_output=getattr(args, "json", False))


if __name__ == "__main__":
    sys.exit(main())
