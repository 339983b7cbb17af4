"""
Per-mode AdPiler publish protocols.

Flow (display):
  1. POST /campaigns/{cid}/ads  (name, 300×600, landing url, file) → ad id

Flow (post):
  1. POST /campaigns/{cid}/social-ads  (type=post, message, paid) → social ad id
  2. POST /social-ads/{id}/slides      (one media item + copy)

Flow (post-carousel):
  1. POST /campaigns/{cid}/social-ads  (type=post-carousel, message, paid)
  2. POST /social-ads/{id}/slides for each image, natural filename order,
     200 ms apart; a failed slide is logged and skipped
"""

from __future__ import annotations

import logging
import mimetypes
import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from adpiler_sync.assets.models import AssetCandidate, ClassifiedAssets
from adpiler_sync.content.meta import is_http_url
from adpiler_sync.content.models import AdMeta
from adpiler_sync.publish.client import AdPilerClient, AdPilerError
from adpiler_sync.publish.models import CreativeRecord, Mode

logger = logging.getLogger(__name__)

DISPLAY_WIDTH = 300
DISPLAY_HEIGHT = 600
_SLIDE_DELAY_MS = 200

_DIGITS_RE = re.compile(r"(\d+)")


class PublishError(Exception):
    """Raised when a mode cannot be published (no media, zero uploads, bad response)."""

    def __init__(self, message: str, *, mode: Mode, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.mode = mode
        self.body = body


def natural_key(name: str) -> list[Any]:
    """Sort key that orders ``img2`` before ``img10``."""
    # split() puts the captured digit runs at odd indexes
    return [int(part) if i % 2 else part.lower() for i, part in enumerate(_DIGITS_RE.split(name))]


def _mime_for(candidate: AssetCandidate) -> str:
    if candidate.mime_type:
        return candidate.mime_type
    guessed, _ = mimetypes.guess_type(candidate.filename)
    return guessed or "application/octet-stream"


def _file_part(candidate: AssetCandidate) -> dict[str, tuple[str, bytes, str]]:
    return {"file": (candidate.filename, candidate.buffer, _mime_for(candidate))}


def _entity_id(body: Any) -> Optional[str]:
    """Pull the created id out of ``{"id": …}`` or ``{"data": {"id": …}}``."""
    if not isinstance(body, dict):
        return None
    if body.get("id") is not None:
        return str(body["id"])
    data = body.get("data")
    if isinstance(data, dict) and data.get("id") is not None:
        return str(data["id"])
    return None


@dataclass
class PublishRequest:
    """Everything a mode strategy needs for one card."""

    title: str
    campaign_id: str
    assets: ClassifiedAssets
    meta: AdMeta
    paid: bool


class CreativePublisher:
    """Dispatches a publish request to the protocol for its mode."""

    def __init__(
        self,
        client: AdPilerClient,
        *,
        slide_delay_ms: int = _SLIDE_DELAY_MS,
        sleep: Callable[[float], None] = time.sleep,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.client = client
        self.slide_delay_ms = slide_delay_ms
        self._sleep = sleep
        self._log = log or logger
        self._strategies: dict[Mode, Callable[[PublishRequest], CreativeRecord]] = {
            Mode.DISPLAY: self._publish_display,
            Mode.POST: self._publish_post,
            Mode.POST_CAROUSEL: self._publish_carousel,
        }

    def publish(self, mode: Mode, request: PublishRequest) -> CreativeRecord:
        return self._strategies[mode](request)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def _publish_display(self, req: PublishRequest) -> CreativeRecord:
        asset = req.assets.display_asset
        if asset is None:
            raise PublishError(
                "Display mode needs a PNG or GIF attachment (300x600), none found",
                mode=Mode.DISPLAY,
            )

        body = self.client.post_multipart(
            f"/campaigns/{req.campaign_id}/ads",
            {
                "name": req.title,
                "width": DISPLAY_WIDTH,
                "height": DISPLAY_HEIGHT,
                "url": req.meta.url if is_http_url(req.meta.url) else None,
            },
            files=_file_part(asset),
        )
        ad_id = self._require_id(body, Mode.DISPLAY)
        self._log.info("Created display ad %s from %s", ad_id, asset.filename)
        return CreativeRecord(
            mode=Mode.DISPLAY,
            campaign_id=req.campaign_id,
            paid=req.paid,
            entity_id=ad_id,
            uploaded_count=1,
            uploaded_files=(asset.filename,),
        )

    # ------------------------------------------------------------------
    # Post
    # ------------------------------------------------------------------

    def _publish_post(self, req: PublishRequest) -> CreativeRecord:
        assets = req.assets
        media = (
            (assets.square_assets[0] if assets.square_assets else None)
            or assets.first_video
            or assets.first_attachment
        )
        if media is None:
            raise PublishError("No usable attachment for a post", mode=Mode.POST)

        social_id = self._create_social(req, Mode.POST)
        uploaded, last_error = self._upload_slides(social_id, [media], req.meta)
        if not uploaded:
            raise PublishError(
                f"Social ad {social_id} created but its slide upload failed: {last_error}",
                mode=Mode.POST,
                body=last_error.body if last_error else None,
            )
        return CreativeRecord(
            mode=Mode.POST,
            campaign_id=req.campaign_id,
            paid=req.paid,
            entity_id=social_id,
            uploaded_count=len(uploaded),
            uploaded_files=tuple(uploaded),
        )

    # ------------------------------------------------------------------
    # Carousel
    # ------------------------------------------------------------------

    def _publish_carousel(self, req: PublishRequest) -> CreativeRecord:
        assets = req.assets
        pool = assets.square_assets or assets.non_display_images or assets.image_attachments
        if not pool:
            raise PublishError("No usable images for a carousel", mode=Mode.POST_CAROUSEL)
        slides = sorted(pool, key=lambda c: natural_key(c.filename))

        social_id = self._create_social(req, Mode.POST_CAROUSEL)
        uploaded, last_error = self._upload_slides(social_id, slides, req.meta)
        if not uploaded:
            raise PublishError(
                f"Carousel {social_id} created but all {len(slides)} slide upload(s) failed",
                mode=Mode.POST_CAROUSEL,
                body=last_error.body if last_error else None,
            )
        self._log.info("Carousel %s: %d/%d slide(s) uploaded", social_id, len(uploaded), len(slides))
        return CreativeRecord(
            mode=Mode.POST_CAROUSEL,
            campaign_id=req.campaign_id,
            paid=req.paid,
            entity_id=social_id,
            uploaded_count=len(uploaded),
            uploaded_files=tuple(uploaded),
        )

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _create_social(self, req: PublishRequest, mode: Mode) -> str:
        body = self.client.post_multipart(
            f"/campaigns/{req.campaign_id}/social-ads",
            {
                "name": req.title,
                "type": mode.value,
                "message": req.meta.primary,
                "paid": req.paid,
            },
        )
        social_id = self._require_id(body, mode)
        self._log.info("Created %s social ad %s (paid=%s)", mode.value, social_id, req.paid)
        return social_id

    def _upload_slides(
        self, social_id: str, items: list[AssetCandidate], meta: AdMeta
    ) -> tuple[list[str], Optional[AdPilerError]]:
        """Upload *items* in order; returns the filenames that made it and the last failure."""
        fields = {
            "cta": meta.cta,
            "display_link": meta.display_link,
            "headline": meta.headline,
            "description": meta.description,
            "url": meta.url if is_http_url(meta.url) else None,
        }
        uploaded: list[str] = []
        last_error: Optional[AdPilerError] = None
        for i, item in enumerate(items):
            if i:
                self._sleep(self.slide_delay_ms / 1000)
            try:
                self.client.post_multipart(
                    f"/social-ads/{social_id}/slides", fields, files=_file_part(item)
                )
            except AdPilerError as exc:
                self._log.warning("Slide %s failed on %s: %s", item.filename, social_id, exc)
                last_error = exc
                continue
            uploaded.append(item.filename)
            self._log.info("Uploaded slide %d/%d: %s", i + 1, len(items), item.filename)
        return uploaded, last_error

    @staticmethod
    def _require_id(body: Any, mode: Mode) -> str:
        entity_id = _entity_id(body)
        if entity_id is None:
            raise PublishError(
                f"AdPiler response carried no id: {str(body)[:300]}",
                mode=mode,
                body=str(body),
            )
        return entity_id
