"""Build and read dotLottie containers."""

from __future__ import annotations

__version__ = "0.1.0"

from dotlottie.core.builder import DotLottie
from dotlottie.core.models import (
    Animation,
    AudioAsset,
    FontAsset,
    GlobalInputs,
    ImageAsset,
    StateMachine,
    Theme,
    ZipOptions,
    rename_asset,
)
from dotlottie.core.reader import (
    from_bytes,
    from_url,
    get_all_audio,
    get_animation,
    get_animations,
    get_audio,
    get_font,
    get_fonts,
    get_global_inputs,
    get_image,
    get_images,
    get_manifest,
    get_state_machine,
    get_state_machines,
    get_theme,
    get_themes,
    validate_container,
)
from dotlottie.errors import (
    AssetNotFound,
    BuildInProgress,
    DotLottieError,
    FetchFailed,
    InvalidAssetData,
    InvalidContainer,
    InvalidIdentifier,
    MissingSource,
    SchemaViolation,
    UnresolvedSource,
)

__all__ = [
    "Animation",
    "AssetNotFound",
    "AudioAsset",
    "BuildInProgress",
    "DotLottie",
    "DotLottieError",
    "FetchFailed",
    "FontAsset",
    "GlobalInputs",
    "ImageAsset",
    "InvalidAssetData",
    "InvalidContainer",
    "InvalidIdentifier",
    "MissingSource",
    "SchemaViolation",
    "StateMachine",
    "Theme",
    "UnresolvedSource",
    "ZipOptions",
    "__version__",
    "from_bytes",
    "from_url",
    "get_all_audio",
    "get_animation",
    "get_animations",
    "get_audio",
    "get_font",
    "get_fonts",
    "get_global_inputs",
    "get_image",
    "get_images",
    "get_manifest",
    "get_state_machine",
    "get_state_machines",
    "get_theme",
    "get_themes",
    "rename_asset",
    "validate_container",
]
