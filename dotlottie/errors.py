"""Error taxonomy and exit code mapping for CLI."""

from __future__ import annotations


class DotLottieError(Exception):
    """Base error for deterministic CLI exit codes."""

    exit_code: int = 1


class InvalidIdentifier(DotLottieError):
    """Empty or malformed id, or a url that does not parse."""

    exit_code = 2


class MissingSource(DotLottieError):
    """Document constructed without data or url."""

    exit_code = 2


class UnresolvedSource(DotLottieError):
    """A source or reference could not be resolved at build time."""

    exit_code = 1


class FetchFailed(DotLottieError):
    """Network fetch of a remote resource failed."""

    exit_code = 3

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class InvalidAssetData(DotLottieError):
    """Asset payload could not be decoded or identified."""

    exit_code = 2


class AssetNotFound(DotLottieError):
    """Requested entry is not present in the container."""

    exit_code = 3

    def __init__(self, path: str, message: str | None = None) -> None:
        super().__init__(message or f"Entry not found in container: {path}")
        self.path = path


class InvalidContainer(DotLottieError):
    """Bytes are not a readable container."""

    exit_code = 2


class SchemaViolation(DotLottieError):
    """Document does not match its schema."""

    exit_code = 2


class BuildInProgress(DotLottieError):
    """A build is already running on this container."""

    exit_code = 1


def exit_code_for_exception(exc: BaseException) -> int:
    """Resolve a deterministic exit code for an exception."""
    if isinstance(exc, DotLottieError):
        return exc.exit_code
    if isinstance(exc, OSError):
        return 3
    if isinstance(exc, ValueError):
        return 2
    return 1
