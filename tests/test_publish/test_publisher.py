"""
Tests for adpiler_sync/publish/publisher.py

The AdPiler API is an httpx.MockTransport; slide pauses are recorded.
"""

from __future__ import annotations

import logging
import random

import pytest

from adpiler_sync.assets.models import AssetCandidate, ClassifiedAssets
from adpiler_sync.content.models import AdMeta
from adpiler_sync.publish.client import AdPilerClient, AdPilerError
from adpiler_sync.publish.models import Mode, RetryPolicy
from adpiler_sync.publish.publisher import (
    CreativePublisher,
    PublishError,
    PublishRequest,
    natural_key,
)
from conftest import FakePlatform, RecordingSleep, form_field, uploaded_filename

_NO_RETRY = RetryPolicy(max_attempts=1, jitter_ms=0)


def _cand(name: str, w: int = 1200, h: int = 1200, rank: int = 2) -> AssetCandidate:
    return AssetCandidate(buffer=b"bytes-" + name.encode(), filename=name, width=w, height=h,
                          rank=rank, mime_type="image/png")


def _publisher(platform: FakePlatform, sleeper: RecordingSleep, policy=_NO_RETRY) -> CreativePublisher:
    client = AdPilerClient(
        "https://adpiler.example/api",
        "KEY",
        policy=policy,
        transport=platform.transport,
        sleep=sleeper,
        rng=random.Random(1),
    )
    return CreativePublisher(client, sleep=sleeper)


def _request(assets: ClassifiedAssets, meta: AdMeta | None = None, title: str = "Acme: Spring Sale",
             paid: bool = True) -> PublishRequest:
    return PublishRequest(
        title=title,
        campaign_id="45740",
        assets=assets,
        meta=meta or AdMeta(),
        paid=paid,
    )


# ---------------------------------------------------------------------------
# natural ordering
# ---------------------------------------------------------------------------


class TestNaturalKey:
    def test_numeric_aware(self) -> None:
        names = ["img2.png", "img10.png", "img1.png"]
        assert sorted(names, key=natural_key) == ["img1.png", "img2.png", "img10.png"]

    def test_case_insensitive(self) -> None:
        assert sorted(["B.png", "a.png"], key=natural_key) == ["a.png", "B.png"]

    def test_non_ascii_digits_stay_text(self) -> None:
        names = ["img1\u00b22.png", "img1.png"]
        assert sorted(names, key=natural_key) == ["img1.png", "img1\u00b22.png"]


# ---------------------------------------------------------------------------
# display
# ---------------------------------------------------------------------------


class TestDisplay:
    def test_creates_ad_with_fixed_size(self, sleeper: RecordingSleep) -> None:
        platform = FakePlatform({"POST /api/campaigns/45740/ads": [(201, {"id": 901})]})
        assets = ClassifiedAssets(display_asset=_cand("sky_300x600.gif", 300, 600, 0))
        meta = AdMeta(url="https://acme.example/spring")

        record = _publisher(platform, sleeper).publish(
            Mode.DISPLAY, _request(assets, meta, title="Acme Organic Display 300x600", paid=False)
        )

        assert record.entity_id == "901"
        assert record.mode is Mode.DISPLAY
        assert record.paid is False
        req = platform.requests[0]
        assert form_field(req, "name") == "Acme Organic Display 300x600"
        assert form_field(req, "width") == "300"
        assert form_field(req, "height") == "600"
        assert form_field(req, "url") == "https://acme.example/spring"
        assert uploaded_filename(req) == "sky_300x600.gif"

    def test_malformed_landing_url_left_out(self, sleeper: RecordingSleep) -> None:
        platform = FakePlatform({"POST /api/campaigns/45740/ads": [(201, {"id": 1})]})
        assets = ClassifiedAssets(display_asset=_cand("a.png", 300, 600))

        _publisher(platform, sleeper).publish(Mode.DISPLAY, _request(assets, AdMeta(url="acme dot com")))

        assert form_field(platform.requests[0], "url") is None

    def test_requires_display_asset(self, sleeper: RecordingSleep) -> None:
        platform = FakePlatform({})
        with pytest.raises(PublishError, match="PNG or GIF") as excinfo:
            _publisher(platform, sleeper).publish(Mode.DISPLAY, _request(ClassifiedAssets()))

        assert excinfo.value.mode is Mode.DISPLAY
        assert platform.requests == []

    def test_nested_id_response(self, sleeper: RecordingSleep) -> None:
        platform = FakePlatform({"POST /api/campaigns/45740/ads": [(200, {"data": {"id": "ad-7"}})]})
        assets = ClassifiedAssets(display_asset=_cand("a.png", 300, 600))

        record = _publisher(platform, sleeper).publish(Mode.DISPLAY, _request(assets))

        assert record.entity_id == "ad-7"

    def test_response_without_id_fails(self, sleeper: RecordingSleep) -> None:
        platform = FakePlatform({"POST /api/campaigns/45740/ads": [(200, "created")]})
        assets = ClassifiedAssets(display_asset=_cand("a.png", 300, 600))

        with pytest.raises(PublishError, match="no id"):
            _publisher(platform, sleeper).publish(Mode.DISPLAY, _request(assets))


# ---------------------------------------------------------------------------
# post
# ---------------------------------------------------------------------------


class TestPost:
    def _platform(self) -> FakePlatform:
        return FakePlatform(
            {
                "POST /api/campaigns/45740/social-ads": [(201, {"id": 55})],
                "POST /api/social-ads/55/slides": [(201, {"id": 1})],
            }
        )

    def test_create_then_one_slide(self, sleeper: RecordingSleep) -> None:
        platform = self._platform()
        assets = ClassifiedAssets(square_assets=[_cand("hero.png"), _cand("alt.png")])
        meta = AdMeta(primary="Spring is here", headline="20% off", cta="Shop Now",
                      description="All week", display_link="acme.example",
                      url="https://acme.example")

        record = _publisher(platform, sleeper).publish(Mode.POST, _request(assets, meta))

        assert platform.paths() == ["/api/campaigns/45740/social-ads", "/api/social-ads/55/slides"]
        create, slide = platform.requests
        assert form_field(create, "type") == "post"
        assert form_field(create, "message") == "Spring is here"
        assert form_field(create, "paid") == "1"
        assert uploaded_filename(slide) == "hero.png"
        assert form_field(slide, "headline") == "20% off"
        assert form_field(slide, "cta") == "Shop Now"
        assert form_field(slide, "display_link") == "acme.example"
        assert form_field(slide, "description") == "All week"
        assert form_field(slide, "url") == "https://acme.example"
        assert record.uploaded_count == 1
        assert sleeper.calls == []

    def test_falls_back_to_video_then_any_file(self, sleeper: RecordingSleep) -> None:
        platform = self._platform()
        video = AssetCandidate(buffer=b"mp4", filename="spot.mp4")
        assets = ClassifiedAssets(first_video=video, first_attachment=_cand("brief.pdf", 0, 0, 0))

        _publisher(platform, sleeper).publish(Mode.POST, _request(assets))

        assert uploaded_filename(platform.requests[1]) == "spot.mp4"

    def test_no_media_fails_before_creating(self, sleeper: RecordingSleep) -> None:
        platform = self._platform()

        with pytest.raises(PublishError, match="No usable attachment"):
            _publisher(platform, sleeper).publish(Mode.POST, _request(ClassifiedAssets()))

        assert platform.requests == []

    def test_failed_slide_fails_job(self, sleeper: RecordingSleep) -> None:
        platform = FakePlatform(
            {
                "POST /api/campaigns/45740/social-ads": [(201, {"id": 55})],
                "POST /api/social-ads/55/slides": [(422, '{"errors":{"file":["too large"]}}')],
            }
        )
        assets = ClassifiedAssets(square_assets=[_cand("hero.png")])

        with pytest.raises(PublishError) as excinfo:
            _publisher(platform, sleeper).publish(Mode.POST, _request(assets))

        assert "too large" in excinfo.value.body


# ---------------------------------------------------------------------------
# carousel
# ---------------------------------------------------------------------------


class TestCarousel:
    def _platform(self, slide_responses=None) -> FakePlatform:
        return FakePlatform(
            {
                "POST /api/campaigns/45740/social-ads": [(201, {"id": 77})],
                "POST /api/social-ads/77/slides": slide_responses or [(201, {"id": 1})],
            }
        )

    def test_slides_in_natural_order(self, sleeper: RecordingSleep) -> None:
        platform = self._platform()
        assets = ClassifiedAssets(
            square_assets=[_cand("img2.png"), _cand("img10.png"), _cand("img1.png")]
        )

        record = _publisher(platform, sleeper).publish(Mode.POST_CAROUSEL, _request(assets))

        slides = [r for r in platform.requests if r.url.path.endswith("/slides")]
        assert [uploaded_filename(r) for r in slides] == ["img1.png", "img2.png", "img10.png"]
        assert form_field(platform.requests[0], "type") == "post-carousel"
        assert record.uploaded_count == 3
        assert record.uploaded_files == ("img1.png", "img2.png", "img10.png")

    def test_pause_between_slides(self, sleeper: RecordingSleep) -> None:
        platform = self._platform()
        assets = ClassifiedAssets(square_assets=[_cand("a.png"), _cand("b.png"), _cand("c.png")])

        _publisher(platform, sleeper).publish(Mode.POST_CAROUSEL, _request(assets))

        assert sleeper.calls == [0.2, 0.2]

    def test_prefers_squares_over_non_display(self, sleeper: RecordingSleep) -> None:
        platform = self._platform()
        assets = ClassifiedAssets(
            square_assets=[_cand("sq1.png"), _cand("sq2.png")],
            non_display_images=[_cand("sq1.png"), _cand("sq2.png"), _cand("wide.png", 1200, 628, 0)],
        )

        record = _publisher(platform, sleeper).publish(Mode.POST_CAROUSEL, _request(assets))

        assert record.uploaded_files == ("sq1.png", "sq2.png")

    def test_uses_non_display_images_without_squares(self, sleeper: RecordingSleep) -> None:
        platform = self._platform()
        assets = ClassifiedAssets(
            non_display_images=[_cand("b.jpg", 1200, 628, 0), _cand("a.jpg", 1200, 628, 0)]
        )

        record = _publisher(platform, sleeper).publish(Mode.POST_CAROUSEL, _request(assets))

        assert record.uploaded_files == ("a.jpg", "b.jpg")

    def test_failed_slide_skipped(self, sleeper: RecordingSleep, caplog: pytest.LogCaptureFixture) -> None:
        platform = self._platform([(201, {"id": 1}), (400, "bad file"), (201, {"id": 3})])
        assets = ClassifiedAssets(square_assets=[_cand("s1.png"), _cand("s2.png"), _cand("s3.png")])

        with caplog.at_level(logging.WARNING):
            record = _publisher(platform, sleeper).publish(Mode.POST_CAROUSEL, _request(assets))

        assert record.uploaded_files == ("s1.png", "s3.png")
        assert record.uploaded_count == 2
        assert "s2.png" in caplog.text

    def test_all_slides_failing_raises(self, sleeper: RecordingSleep) -> None:
        platform = self._platform([(400, "bad file")])
        assets = ClassifiedAssets(square_assets=[_cand("s1.png"), _cand("s2.png")])

        with pytest.raises(PublishError, match="all 2 slide") as excinfo:
            _publisher(platform, sleeper).publish(Mode.POST_CAROUSEL, _request(assets))

        assert excinfo.value.mode is Mode.POST_CAROUSEL

    def test_no_images_raises(self, sleeper: RecordingSleep) -> None:
        with pytest.raises(PublishError, match="No usable images"):
            _publisher(FakePlatform({}), sleeper).publish(Mode.POST_CAROUSEL, _request(ClassifiedAssets()))

    def test_entity_create_4xx_propagates(self, sleeper: RecordingSleep) -> None:
        platform = FakePlatform({"POST /api/campaigns/45740/social-ads": [(403, "forbidden")]})
        assets = ClassifiedAssets(square_assets=[_cand("a.png"), _cand("b.png")])

        with pytest.raises(AdPilerError) as excinfo:
            _publisher(platform, sleeper).publish(Mode.POST_CAROUSEL, _request(assets))

        assert excinfo.value.status_code == 403
