"""Application settings with JSON config and environment overrides."""

from __future__ import annotations

from dataclasses import dataclass
import json
import os
from pathlib import Path
from typing import Any, Optional


_DEFAULT_GENERATOR = "dotlottie-py"
_DEFAULT_SIMILARITY_THRESHOLD = 5
_DEFAULT_FETCH_TIMEOUT = 30.0
_DEFAULT_COMPRESSION_LEVEL = 6
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    generator: str = _DEFAULT_GENERATOR
    dedupe_images: bool = True
    image_similarity_threshold: int = _DEFAULT_SIMILARITY_THRESHOLD
    fetch_timeout: float = _DEFAULT_FETCH_TIMEOUT
    compression_level: int = _DEFAULT_COMPRESSION_LEVEL


def load_settings(path: Optional[Path]) -> Settings:
    """Load settings from JSON config file, with environment variable overrides.

    Priority order:
    1. Environment variables
    2. JSON config file
    3. Defaults

    Args:
        path: Path to JSON config file, or None to use defaults only

    Returns:
        Settings object with resolved values
    """
    json_settings: dict[str, Any] = {}
    if path and path.exists():
        json_settings = json.loads(path.read_text())
        if not isinstance(json_settings, dict):
            raise ValueError(f"Settings file must contain a JSON object: {path}")

    generator = os.getenv("DOTLOTTIE_GENERATOR") or json_settings.get("generator", _DEFAULT_GENERATOR)
    if not isinstance(generator, str) or not generator.strip():
        raise ValueError("generator must be a non-empty string")

    dedupe_images = _parse_bool(
        os.getenv("DOTLOTTIE_DEDUPE_IMAGES"),
        json_settings.get("dedupe_images", True),
        name="dedupe_images",
    )

    threshold = _parse_int(
        os.getenv("DOTLOTTIE_IMAGE_SIMILARITY_THRESHOLD"),
        json_settings.get("image_similarity_threshold", _DEFAULT_SIMILARITY_THRESHOLD),
        name="image_similarity_threshold",
    )
    if not 0 <= threshold <= 64:
        raise ValueError(f"image_similarity_threshold must be within 0..64: {threshold}")

    timeout_raw = os.getenv("DOTLOTTIE_FETCH_TIMEOUT") or json_settings.get("fetch_timeout", _DEFAULT_FETCH_TIMEOUT)
    try:
        fetch_timeout = float(timeout_raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"fetch_timeout must be a number: {timeout_raw!r}") from exc
    if fetch_timeout <= 0:
        raise ValueError(f"fetch_timeout must be positive: {fetch_timeout}")

    compression_level = _parse_int(
        os.getenv("DOTLOTTIE_COMPRESSION_LEVEL"),
        json_settings.get("compression_level", _DEFAULT_COMPRESSION_LEVEL),
        name="compression_level",
    )
    if not 0 <= compression_level <= 9:
        raise ValueError(f"compression_level must be within 0..9: {compression_level}")

    return Settings(
        generator=generator.strip(),
        dedupe_images=dedupe_images,
        image_similarity_threshold=threshold,
        fetch_timeout=fetch_timeout,
        compression_level=compression_level,
    )


def default_config_path() -> Path:
    return Path.home() / ".config" / "dotlottie" / "settings.json"


def _parse_bool(env_value: Optional[str], config_value: Any, *, name: str) -> bool:
    if env_value is not None and env_value.strip():
        lowered = env_value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValueError(f"{name} must be a boolean: {env_value!r}")
    if isinstance(config_value, bool):
        return config_value
    raise ValueError(f"{name} must be a boolean: {config_value!r}")


def _parse_int(env_value: Optional[str], config_value: Any, *, name: str) -> int:
    raw = env_value if env_value is not None and env_value.strip() else config_value
    if isinstance(raw, bool):
        raise ValueError(f"{name} must be an integer: {raw!r}")
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be an integer: {raw!r}") from exc
