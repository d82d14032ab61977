"""Move asset payloads between Lottie documents and archive entries.

``externalize`` lifts embedded data urls out of a document into assets and
leaves reference paths behind. ``inline`` resolves reference paths back into
data urls. Paths use the archive grammar ``images/<file>``, ``audio/<file>``
and ``fonts/<file>``.

Within ``assets[]`` an image entry has ``w``, ``h`` and ``p`` and no ``xt``
(precomposition); an audio entry has ``id``, ``p``, ``e`` and ``u`` but no
dimensions. The Lottie asset ``id`` that layers point at is never touched.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Iterator, Optional

from dotlottie.core.dedupe import DeduplicationEngine
from dotlottie.core.models import AssetKind, LottieAsset
from dotlottie.errors import AssetNotFound
from dotlottie.services.media_probe import is_data_url, to_data_url

logger = logging.getLogger(__name__)

AssetResolver = Callable[[str], Optional[bytes]]

_REMOTE_PREFIXES = ("http://", "https://", "//")


def is_image_asset(entry: Any) -> bool:
    return isinstance(entry, dict) and "w" in entry and "h" in entry and "p" in entry and "xt" not in entry


def is_audio_asset(entry: Any) -> bool:
    return (
        isinstance(entry, dict)
        and "w" not in entry
        and "h" not in entry
        and all(key in entry for key in ("id", "p", "e", "u"))
    )


def _asset_kind(entry: Any) -> Optional[AssetKind]:
    if is_image_asset(entry):
        return AssetKind.IMAGE
    if is_audio_asset(entry):
        return AssetKind.AUDIO
    return None


def _is_archive_reference(value: Any) -> bool:
    return (
        isinstance(value, str)
        and bool(value)
        and not is_data_url(value)
        and not value.startswith(_REMOTE_PREFIXES)
    )


def _is_archive_entry(kind: AssetKind, entry: dict) -> bool:
    """True when an asset entry points into the archive rather than at a host."""
    if entry.get("e") == 1 or not _is_archive_reference(entry.get("p")):
        return False
    base = entry.get("u") or ""
    return isinstance(base, str) and base.strip("/") in ("", kind.directory)


def _is_prefixed_reference(kind: AssetKind, value: Any) -> bool:
    return _is_archive_reference(value) and value.lstrip("/").startswith(f"{kind.directory}/")


def _archive_path(kind: AssetKind, value: str) -> str:
    """Normalize a reference to ``<dir>/<file>``."""
    stripped = value.lstrip("/")
    prefix = f"{kind.directory}/"
    if stripped.startswith(prefix):
        return stripped
    return prefix + stripped.rsplit("/", 1)[-1]


def _theme_rule_values(document: dict) -> Iterator[tuple[dict, str, AssetKind]]:
    """Yield (holder, key, kind) for theme values that may hold an image."""
    rules = document.get("rules")
    if not isinstance(rules, list):
        return
    for rule in rules:
        if not isinstance(rule, dict):
            continue
        rule_type = rule.get("type")
        if rule_type not in ("Image", "Gradient"):
            continue
        holders = [rule]
        keyframes = rule.get("keyframes")
        if isinstance(keyframes, list):
            holders.extend(frame for frame in keyframes if isinstance(frame, dict))
        for holder in holders:
            value = holder.get("value")
            if rule_type == "Image" and isinstance(value, dict) and isinstance(value.get("url"), str):
                yield value, "url", AssetKind.IMAGE
            elif rule_type == "Gradient" and isinstance(value, str):
                yield holder, "value", AssetKind.IMAGE


def _font_entries(document: dict) -> Iterator[dict]:
    fonts = document.get("fonts")
    if not isinstance(fonts, dict) or not isinstance(fonts.get("list"), list):
        return
    for font in fonts["list"]:
        if isinstance(font, dict) and isinstance(font.get("fPath"), str):
            yield font


def externalize(
    document: dict,
    *,
    registry: Optional[DeduplicationEngine] = None,
    animation_id: Optional[str] = None,
    theme_id: Optional[str] = None,
) -> tuple[dict, list[LottieAsset]]:
    """Strip embedded payloads out of a document.

    Args:
        document: Lottie animation or theme document; left unmodified
        registry: Engine assigning canonical assets; a fresh one when omitted
        animation_id: Owner recorded on extracted assets
        theme_id: Owner recorded on assets extracted from theme rules

    Returns:
        The rewritten copy and the assets it references, in first-seen order

    Raises:
        InvalidAssetData: If an embedded payload cannot be decoded.
    """
    if registry is None:
        registry = DeduplicationEngine()
    stripped = copy.deepcopy(document)
    collected: list[LottieAsset] = []

    def _admit(kind: AssetKind, payload: str, lottie_asset_id: Optional[str]) -> LottieAsset:
        asset = registry.admit(
            kind,
            payload,
            animation_id=animation_id,
            theme_id=theme_id,
            lottie_asset_id=lottie_asset_id,
        )
        if asset not in collected:
            collected.append(asset)
        return asset

    entries = stripped.get("assets")
    if isinstance(entries, list):
        for entry in entries:
            kind = _asset_kind(entry)
            if kind is None or not is_data_url(entry.get("p")):
                continue
            asset = _admit(kind, entry["p"], entry.get("id"))
            entry["e"] = 0
            entry["u"] = f"/{kind.directory}/"
            entry["p"] = asset.file_name

    for font in _font_entries(stripped):
        if not is_data_url(font["fPath"]):
            continue
        asset = _admit(AssetKind.FONT, font["fPath"], font.get("fName"))
        font["fPath"] = f"/{asset.path}"

    for holder, key, kind in _theme_rule_values(stripped):
        if not is_data_url(holder[key]):
            continue
        asset = _admit(kind, holder[key], holder.get("id"))
        holder[key] = f"/{asset.path}"

    if collected:
        logger.debug(
            "Externalized %d asset(s) from %s",
            len(collected),
            animation_id or theme_id or "document",
        )
    return stripped, collected


def inline(document: dict, asset_resolver: AssetResolver) -> dict:
    """Embed every archive-referenced payload of a document as a data url.

    Raises:
        AssetNotFound: If the resolver cannot supply a referenced entry.
    """
    inlined = copy.deepcopy(document)

    entries = inlined.get("assets")
    if isinstance(entries, list):
        for entry in entries:
            kind = _asset_kind(entry)
            if kind is None or not _is_archive_entry(kind, entry):
                continue
            data = _resolve(asset_resolver, _archive_path(kind, entry["p"]))
            entry["e"] = 1
            entry["u"] = ""
            entry["p"] = to_data_url(data)

    for font in _font_entries(inlined):
        if _is_prefixed_reference(AssetKind.FONT, font["fPath"]):
            data = _resolve(asset_resolver, _archive_path(AssetKind.FONT, font["fPath"]))
            font["fPath"] = to_data_url(data)

    for holder, key, kind in _theme_rule_values(inlined):
        if _is_prefixed_reference(kind, holder[key]):
            data = _resolve(asset_resolver, _archive_path(kind, holder[key]))
            holder[key] = to_data_url(data)

    return inlined


def iter_references(document: dict) -> list[str]:
    """Archive paths referenced by a document, first-seen order, no repeats."""
    seen: dict[str, None] = {}
    entries = document.get("assets")
    if isinstance(entries, list):
        for entry in entries:
            kind = _asset_kind(entry)
            if kind is not None and _is_archive_entry(kind, entry):
                seen.setdefault(_archive_path(kind, entry["p"]), None)
    for font in _font_entries(document):
        if _is_prefixed_reference(AssetKind.FONT, font["fPath"]):
            seen.setdefault(_archive_path(AssetKind.FONT, font["fPath"]), None)
    for holder, key, kind in _theme_rule_values(document):
        if _is_prefixed_reference(kind, holder[key]):
            seen.setdefault(_archive_path(kind, holder[key]), None)
    return list(seen)


def _resolve(asset_resolver: AssetResolver, path: str) -> bytes:
    try:
        data = asset_resolver(path)
    except AssetNotFound:
        raise
    except (KeyError, FileNotFoundError) as exc:
        raise AssetNotFound(path) from exc
    if data is None:
        raise AssetNotFound(path)
    return data
