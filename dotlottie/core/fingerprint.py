"""Content fingerprints used to detect duplicate assets."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
import hashlib
import io
import logging
from typing import Hashable

from PIL import Image, UnidentifiedImageError

from dotlottie.errors import InvalidAssetData
from dotlottie.services.media_probe import sniff_mime

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 5
# Largest per-channel difference, 0..255, between colour thumbnails that still match.
DEFAULT_COLOUR_TOLERANCE = 32
_VECTOR_MIMES = {"image/svg+xml"}


def _decode_rgb(data: bytes) -> Image.Image:
    try:
        with Image.open(io.BytesIO(data)) as image:
            return image.convert("RGB")
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        raise InvalidAssetData(f"Unreadable image payload: {exc}") from exc


class Fingerprinter(ABC):
    """Strategy producing comparable keys for asset payloads."""

    name: str

    @abstractmethod
    def fingerprint(self, data: bytes) -> Hashable:
        """Compute a key for ``data``; raise InvalidAssetData if unreadable."""

    @abstractmethod
    def matches(self, left: Hashable, right: Hashable) -> bool:
        """Return True when two keys denote the same asset."""


class ExactFingerprinter(Fingerprinter):
    """Byte-identical matching via sha256."""

    name = "sha256"

    def fingerprint(self, data: bytes) -> str:
        return hashlib.sha256(data).hexdigest()

    def matches(self, left: Hashable, right: Hashable) -> bool:
        return left == right


class DifferenceHashFingerprinter(Fingerprinter):
    """Perceptual difference hash for raster images.

    The image is reduced to a (hash_size + 1) x hash_size grayscale grid and
    each bit records whether a pixel is brighter than its right neighbour.
    Two hashes match when their Hamming distance is below ``threshold``.
    """

    name = "dhash"

    def __init__(self, threshold: int = DEFAULT_SIMILARITY_THRESHOLD, hash_size: int = 8):
        if threshold < 0:
            raise ValueError(f"threshold must be non-negative: {threshold}")
        if hash_size < 2:
            raise ValueError(f"hash_size must be at least 2: {hash_size}")
        self.threshold = threshold
        self.hash_size = hash_size

    def fingerprint(self, data: bytes) -> int:
        return self.hash_image(_decode_rgb(data))

    def hash_image(self, image: Image.Image) -> int:
        width, height = self.hash_size + 1, self.hash_size
        pixels = image.convert("L").resize((width, height), Image.Resampling.LANCZOS).tobytes()
        value = 0
        for row in range(height):
            offset = row * width
            for col in range(self.hash_size):
                value = (value << 1) | int(pixels[offset + col] > pixels[offset + col + 1])
        return value

    def matches(self, left: Hashable, right: Hashable) -> bool:
        if left == right:
            return True
        return hamming_distance(left, right) < self.threshold


def hamming_distance(left: int, right: int) -> int:
    return bin(left ^ right).count("1")


@dataclass(frozen=True, slots=True)
class ImageSignature:
    dhash: int
    colours: bytes


class ImageFingerprinter(Fingerprinter):
    """Difference hash paired with a coarse RGB thumbnail.

    The hash only sees luminance gradients, so a recoloured copy of an image
    hashes the same. Both parts must agree for two images to match: the hash
    within the Hamming ``threshold`` and every thumbnail channel within
    ``colour_tolerance``.
    """

    name = "dhash-rgb"

    def __init__(
        self,
        threshold: int = DEFAULT_SIMILARITY_THRESHOLD,
        colour_tolerance: int = DEFAULT_COLOUR_TOLERANCE,
        grid: int = 4,
    ):
        if not 0 <= colour_tolerance <= 255:
            raise ValueError(f"colour_tolerance must be within 0..255: {colour_tolerance}")
        if grid < 1:
            raise ValueError(f"grid must be positive: {grid}")
        self.dhash = DifferenceHashFingerprinter(threshold=threshold)
        self.colour_tolerance = colour_tolerance
        self.grid = grid

    def fingerprint(self, data: bytes) -> ImageSignature:
        image = _decode_rgb(data)
        thumbnail = image.resize((self.grid, self.grid), Image.Resampling.BOX)
        return ImageSignature(self.dhash.hash_image(image), thumbnail.tobytes())

    def matches(self, left: Hashable, right: Hashable) -> bool:
        if left == right:
            return True
        return (
            self.dhash.matches(left.dhash, right.dhash)
            and colour_distance(left.colours, right.colours) <= self.colour_tolerance
        )


def colour_distance(left: bytes, right: bytes) -> int:
    """Largest per-channel difference between two equally sized thumbnails."""
    if len(left) != len(right):
        return 255
    return max((abs(a - b) for a, b in zip(left, right)), default=0)


@dataclass(frozen=True, slots=True)
class FingerprintKey:
    """Key produced by one strategy, plus the digest of the raw bytes."""
    strategy: str
    value: Hashable
    digest: str


class AssetFingerprinter:
    """Picks the strategy per asset kind and compares resulting keys.

    Raster images use the colour-aware perceptual key; vector images, audio
    and fonts use exact hashing.
    """

    def __init__(
        self,
        *,
        image_threshold: int = DEFAULT_SIMILARITY_THRESHOLD,
        colour_tolerance: int = DEFAULT_COLOUR_TOLERANCE,
        perceptual: Fingerprinter | None = None,
    ):
        self.exact = ExactFingerprinter()
        self.perceptual = perceptual or ImageFingerprinter(threshold=image_threshold, colour_tolerance=colour_tolerance)

    def key_for(self, kind: str, data: bytes) -> FingerprintKey:
        digest = self.exact.fingerprint(data)
        strategy = self._strategy_for(kind, data)
        if strategy is self.exact:
            return FingerprintKey(strategy.name, digest, digest)
        value = strategy.fingerprint(data)
        logger.debug("Computed %s fingerprint %s for %s payload", strategy.name, value, kind)
        return FingerprintKey(strategy.name, value, digest)

    def matches(self, left: FingerprintKey, right: FingerprintKey) -> bool:
        if left.digest == right.digest:
            return True
        if left.strategy != right.strategy:
            return False
        strategy = self.perceptual if left.strategy == self.perceptual.name else self.exact
        return strategy.matches(left.value, right.value)

    def _strategy_for(self, kind: str, data: bytes) -> Fingerprinter:
        if kind != "image":
            return self.exact
        mime = sniff_mime(data)
        if mime is None:
            raise InvalidAssetData("Unrecognized image payload")
        if mime in _VECTOR_MIMES or not mime.startswith("image/"):
            return self.exact
        return self.perceptual
