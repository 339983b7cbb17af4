"""
Attachment classifier.

Downloads every attachment of a card once, in original order, optionally
probes image dimensions, and derives the views the mode selector and the
publisher work from:

  square_assets       1:1 images, ranked (2 = canonical 1080/1200 square,
                      1 = other exact square, 0 = name hint / unknown size)
  display_asset       best PNG/GIF for a 300×600 display creative
  non_display_images  images not named as 300×600, original order
  first_video         first video by original order
  first_attachment    first downloadable attachment of any type

A single bad attachment (download error, decoder error) is logged and
skipped; it never aborts classification.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Callable, Iterable, Optional

from adpiler_sync.assets.models import (
    CANONICAL_SQUARE_SIDES,
    AssetCandidate,
    Attachment,
    ClassifiedAssets,
    hints_display,
    hints_square,
)
from adpiler_sync.assets.probe import DimensionProbe

logger = logging.getLogger(__name__)

Downloader = Callable[[Attachment], bytes]

_DISPLAY_SIZES = {(300, 600), (600, 300)}


def square_rank(candidate: AssetCandidate) -> int:
    """Confidence score for a square candidate."""
    if candidate.is_square:
        return 2 if candidate.width in CANONICAL_SQUARE_SIDES else 1
    return 0


def square_sort_key(candidate: AssetCandidate) -> tuple[int, int, str]:
    return (-candidate.rank, -candidate.pixel_area, candidate.filename.lower())


def display_sort_key(candidate: AssetCandidate) -> tuple[bool, bool, bool, str]:
    exact = (candidate.width, candidate.height) in _DISPLAY_SIZES
    return (
        not exact,
        not hints_display(candidate.filename),
        not candidate.is_gif,
        candidate.filename.lower(),
    )


class AssetClassifier:
    """Turns a card's attachments into ranked upload candidates."""

    def __init__(
        self,
        probe: Optional[DimensionProbe] = None,
        *,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.probe = probe
        self._log = log or logger

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def classify(
        self, attachments: Iterable[Attachment], download: Downloader
    ) -> ClassifiedAssets:
        """Download, probe and classify *attachments* (the input is not mutated)."""
        result = ClassifiedAssets()
        loaded: list[tuple[Attachment, AssetCandidate]] = []

        for att in attachments:
            candidate = self._load(att, download)
            if candidate is None:
                result.skipped.append(att.name or att.id)
                continue
            loaded.append((att, candidate))

        squares: list[AssetCandidate] = []
        display_pool: list[AssetCandidate] = []

        for att, candidate in loaded:
            if result.first_attachment is None:
                result.first_attachment = candidate
            if att.is_video and result.first_video is None:
                result.first_video = candidate
            if not att.is_image:
                continue

            result.image_attachments.append(candidate)
            display_hint = hints_display(candidate.filename)
            if not display_hint:
                result.non_display_images.append(candidate)
            if att.is_display_format:
                display_pool.append(candidate)

            if candidate.is_square or hints_square(candidate.filename) or (
                not candidate.has_dimensions and not display_hint
            ):
                squares.append(dataclasses.replace(candidate, rank=square_rank(candidate)))

        result.square_assets = sorted(squares, key=square_sort_key)
        if display_pool:
            result.display_asset = sorted(display_pool, key=display_sort_key)[0]

        self._log.info(
            "Classified %d attachment(s): %d square, %d non-display image(s), "
            "display=%s, video=%s, skipped=%d",
            len(loaded),
            result.square_count,
            result.non_display_image_count,
            result.display_asset.filename if result.display_asset else None,
            result.first_video.filename if result.first_video else None,
            len(result.skipped),
        )
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _load(self, att: Attachment, download: Downloader) -> Optional[AssetCandidate]:
        name = att.name or f"asset-{att.id}"
        if not att.is_upload:
            self._log.warning("Skipping asset %s: link attachment, nothing to download", name)
            return None

        try:
            data = download(att)
        except Exception as exc:
            self._log.warning("Skipping asset %s: download failed: %s", name, exc)
            return None
        if not data:
            self._log.warning("Skipping asset %s: empty download", name)
            return None

        width = height = 0
        if att.is_image and self.probe is not None:
            try:
                dims = self.probe(data)
            except Exception as exc:
                self._log.warning("Skipping asset %s: decode failed: %s", name, exc)
                return None
            if dims:
                width, height = dims

        return AssetCandidate(
            buffer=data,
            filename=name,
            width=width,
            height=height,
            mime_type=att.mime_type.lower(),
        )
