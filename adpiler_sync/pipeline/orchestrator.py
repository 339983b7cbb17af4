"""
Card → AdPiler publish pipeline.

State machine (strictly sequential, one card per call):

  start → classified → mode_selected → published → preview_resolved → done
    └──────────┴──────────────┴────────────┴──→ error  (aborts the run)

Per-asset classification problems and per-slide upload failures are
handled inside their steps and never reach ``error``. A missing mapping,
a mode with no usable media, a 4xx, exhausted retries or zero uploaded
slides do, and surface as a single ``PublishJobError``, as does any
unexpected exception raised by an injected collaborator.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Optional

from adpiler_sync.assets.classifier import AssetClassifier, Downloader
from adpiler_sync.assets.models import Attachment, ClassifiedAssets
from adpiler_sync.assets.probe import DimensionProbe, pillow_probe
from adpiler_sync.content.meta import extract_ad_meta
from adpiler_sync.content.models import AdMeta
from adpiler_sync.pipeline.config import PublishConfig
from adpiler_sync.pipeline.summary import failure_comment, success_comment
from adpiler_sync.publish.client import AdPilerClient, AdPilerError
from adpiler_sync.publish.models import CreativeRecord, Mode
from adpiler_sync.publish.modes import resolve_paid, select_mode
from adpiler_sync.publish.preview import PreviewResolver
from adpiler_sync.publish.publisher import CreativePublisher, PublishError, PublishRequest
from adpiler_sync.sources.mapping import MappingNotFoundError
from adpiler_sync.sources.models import Card, ClientMapping

logger = logging.getLogger(__name__)

MappingLookup = Callable[[str], ClientMapping]
CommentSink = Callable[[str, str], None]


class JobState(str, Enum):
    START = "start"
    CLASSIFIED = "classified"
    MODE_SELECTED = "mode_selected"
    PUBLISHED = "published"
    PREVIEW_RESOLVED = "preview_resolved"
    DONE = "done"
    ERROR = "error"


class PublishJobError(Exception):
    """The one error a failed run raises to its caller."""

    def __init__(
        self,
        message: str,
        *,
        mode: Optional[Mode],
        state: JobState,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.mode = mode
        self.state = state
        self.body = body


@dataclass
class PublishPlan:
    """Classification and mode choice, before anything is sent."""

    assets: ClassifiedAssets
    mode: Mode
    paid: bool


@dataclass
class PublishResult:
    card_id: str
    record: CreativeRecord
    mapping: ClientMapping
    preview_urls: list[str] = field(default_factory=list)
    states: list[JobState] = field(default_factory=list)

    @property
    def mode(self) -> Mode:
        return self.record.mode


class Orchestrator:
    """
    Runs one card through classify → select mode → publish → preview → summarize.

    All collaborators are injected; the orchestrator keeps no per-job state
    on ``self``, so independent cards may be run concurrently.
    """

    def __init__(
        self,
        config: PublishConfig,
        *,
        download: Downloader,
        mapping_lookup: Optional[MappingLookup] = None,
        post_comment: Optional[CommentSink] = None,
        on_success: Optional[Callable[[Card], object]] = None,
        client: Optional[AdPilerClient] = None,
        probe: Optional[DimensionProbe] = pillow_probe,
        sleep: Callable[[float], None] = time.sleep,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self.download = download
        self.mapping_lookup = mapping_lookup
        self.post_comment = post_comment
        self.on_success = on_success
        self._log = log or logger
        self.client = client or AdPilerClient(
            config.api_base,
            config.api_key,
            policy=config.retry,
            timeout=config.http_timeout,
            sleep=sleep,
            log=log,
        )
        self.classifier = AssetClassifier(probe, log=log)
        self.publisher = CreativePublisher(
            self.client, slide_delay_ms=config.slide_delay_ms, sleep=sleep, log=log
        )
        self.previews = PreviewResolver(
            self.client,
            domain=config.preview_domain,
            code_override=config.campaign_code_override,
            log=log,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def plan(
        self, card: Card, attachments: Optional[Iterable[Attachment]] = None
    ) -> PublishPlan:
        """Classify and pick a mode without touching AdPiler."""
        assets = self.classifier.classify(
            card.attachments if attachments is None else attachments, self.download
        )
        return PublishPlan(
            assets=assets,
            mode=self._select(card.name, assets),
            paid=resolve_paid(card.name, self.config.paid_default),
        )

    def run(
        self,
        card: Card,
        attachments: Optional[Iterable[Attachment]] = None,
        meta: Optional[AdMeta] = None,
    ) -> PublishResult:
        states = [JobState.START]
        mode: Optional[Mode] = None
        self._log.info('Publishing card %s "%s"', card.id, card.name)

        try:
            mapping = self._resolve_mapping(card.name)
            campaign_id = mapping.campaign_id or self.config.default_campaign_id
            if not campaign_id:
                raise MappingNotFoundError(f'No campaign id for "{card.name}"')

            plan = self.plan(card, attachments)
            self._advance(states, JobState.CLASSIFIED)

            mode = plan.mode
            self._advance(states, JobState.MODE_SELECTED, mode.value)

            if meta is None:
                meta = extract_ad_meta(card.desc)
            if meta.is_empty:
                self._log.warning("Card %s has no ad copy in its description", card.id)

            record = self.publisher.publish(
                mode,
                PublishRequest(
                    title=card.name,
                    campaign_id=campaign_id,
                    assets=plan.assets,
                    meta=meta,
                    paid=plan.paid,
                ),
            )
            self._advance(states, JobState.PUBLISHED, record.entity_id)
        except (MappingNotFoundError, PublishError, AdPilerError) as exc:
            raise self._fail(card, mode, states, exc) from exc
        except Exception as exc:
            # injected collaborators may raise anything; the job still ends in error
            self._log.exception("Unexpected failure on card %s", card.id)
            raise self._fail(card, mode, states, exc) from exc

        preview_urls: list[str] = []
        if record.mode is not Mode.DISPLAY:
            preview_urls = self.previews.resolve(
                record.entity_id, record.campaign_id, mapping.campaign_code
            )
        self._advance(states, JobState.PREVIEW_RESOLVED, len(preview_urls))

        result = PublishResult(
            card_id=card.id,
            record=record,
            mapping=mapping,
            preview_urls=preview_urls,
            states=states,
        )
        self._notify(card.id, success_comment(result))
        if self.on_success is not None:
            try:
                self.on_success(card)
            except Exception as exc:
                self._log.warning("Post-publish hook failed for card %s: %s", card.id, exc)
        self._advance(states, JobState.DONE)
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _select(self, title: str, assets: ClassifiedAssets) -> Mode:
        return select_mode(
            title,
            assets.display_asset,
            assets.square_count,
            assets.non_display_image_count,
            self.config.forced_mode,
        )

    def _resolve_mapping(self, title: str) -> ClientMapping:
        defaults = ClientMapping(
            client_id=self.config.default_client_id or "",
            campaign_id=self.config.default_campaign_id,
        )
        if self.mapping_lookup is None:
            if self.config.has_default_mapping:
                return defaults
            raise MappingNotFoundError("No mapping lookup and no default campaign configured")
        try:
            return self.mapping_lookup(title)
        except MappingNotFoundError as exc:
            if not self.config.has_default_mapping:
                raise
            self._log.warning("%s; using default campaign %s", exc, self.config.default_campaign_id)
            return defaults

    def _advance(self, states: list[JobState], state: JobState, detail: object = "") -> None:
        self._log.info("%s → %s %s", states[-1].value, state.value, detail)
        states.append(state)

    def _fail(
        self, card: Card, mode: Optional[Mode], states: list[JobState], exc: Exception
    ) -> PublishJobError:
        """Enter the error state, report it on the card and build the job error."""
        states.append(JobState.ERROR)
        error = PublishJobError(
            self._describe(card, mode, exc),
            mode=mode,
            state=states[-2],
            body=getattr(exc, "body", None),
        )
        self._log.error("Card %s failed: %s", card.id, error)
        self._notify(card.id, failure_comment(error))
        return error

    def _notify(self, card_id: str, text: str) -> None:
        if self.post_comment is None:
            return
        try:
            self.post_comment(card_id, text)
        except Exception as exc:
            self._log.warning("Could not comment on card %s: %s", card_id, exc)

    @staticmethod
    def _describe(card: Card, mode: Optional[Mode], exc: Exception) -> str:
        label = mode.value if mode else "unselected"
        message = f'[{label}] "{card.name}": {exc}'
        body = getattr(exc, "body", None)
        if body and body[:200] not in message:
            message += f" | platform response: {body[:500]}"
        return message
