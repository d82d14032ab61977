"""Canonical asset assignment for a single build."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional

from dotlottie.core.fingerprint import DEFAULT_SIMILARITY_THRESHOLD, AssetFingerprinter, FingerprintKey
from dotlottie.core.models import ASSET_TYPES, AssetKind, LottieAsset, Payload

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Canonical:
    asset: LottieAsset
    key: Optional[FingerprintKey]


class DeduplicationEngine:
    """Collapse duplicate payloads onto one canonical asset per kind.

    Payloads are admitted in document order. The first admitted payload of a
    content class becomes canonical and later matches link their owner to it.
    Canonical assets are named ``<kind>_<n>`` in first-seen order.
    With ``enabled=False`` every admitted payload becomes its own asset.
    """

    def __init__(
        self,
        *,
        enabled: bool = True,
        image_threshold: int = DEFAULT_SIMILARITY_THRESHOLD,
        fingerprinter: Optional[AssetFingerprinter] = None,
    ) -> None:
        self.enabled = enabled
        self._fingerprinter = fingerprinter or AssetFingerprinter(image_threshold=image_threshold)
        self._canonical: dict[AssetKind, list[_Canonical]] = {kind: [] for kind in AssetKind}
        self.duplicates = 0

    def admit(
        self,
        kind: AssetKind,
        payload: Payload,
        *,
        animation_id: Optional[str] = None,
        theme_id: Optional[str] = None,
        lottie_asset_id: Optional[str] = None,
    ) -> LottieAsset:
        """Return the canonical asset for ``payload``, creating it if new.

        Raises:
            InvalidAssetData: If the payload cannot be decoded or identified.
        """
        entries = self._canonical[kind]
        candidate = ASSET_TYPES[kind](
            f"{kind.value}_{len(entries)}",
            data=payload,
            lottie_asset_id=lottie_asset_id,
        )

        key = None
        if self.enabled:
            key = self._fingerprinter.key_for(kind, candidate.to_bytes())
            for entry in entries:
                if entry.key is not None and self._fingerprinter.matches(entry.key, key):
                    logger.debug(
                        "Asset %s duplicates %s, reusing canonical entry",
                        lottie_asset_id or "<unnamed>",
                        entry.asset.id,
                    )
                    self.duplicates += 1
                    _link(entry.asset, animation_id, theme_id)
                    return entry.asset

        _link(candidate, animation_id, theme_id)
        entries.append(_Canonical(candidate, key))
        return candidate

    def assets(self, kind: Optional[AssetKind] = None) -> list[LottieAsset]:
        """Canonical assets in admission order, one kind or all kinds."""
        kinds = [kind] if kind is not None else list(AssetKind)
        return [entry.asset for k in kinds for entry in self._canonical[k]]

    def prune_orphans(self) -> list[LottieAsset]:
        """Drop canonical assets that no document references; return them."""
        pruned: list[LottieAsset] = []
        for kind, entries in self._canonical.items():
            kept = [entry for entry in entries if not entry.asset.is_orphan]
            pruned.extend(entry.asset for entry in entries if entry.asset.is_orphan)
            self._canonical[kind] = kept
        for asset in pruned:
            logger.debug("Pruning orphan asset %s", asset.id)
        return pruned


def _link(asset: LottieAsset, animation_id: Optional[str], theme_id: Optional[str]) -> None:
    if animation_id is not None:
        asset.add_parent_animation(animation_id)
    if theme_id is not None:
        asset.add_parent_theme(theme_id)
