"""Shareable preview links for created social ads."""

from __future__ import annotations

import logging
from typing import Any, Optional

from adpiler_sync.publish.client import AdPilerClient

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_DOMAIN = "preview.adpiler.com"


def _campaign_code(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    for source in (body, body.get("data")):
        if isinstance(source, dict):
            code = source.get("code") or source.get("campaign_code")
            if code:
                return str(code)
    return None


class PreviewResolver:
    """
    Builds ``https://{domain}/{code}?ad={entity_id}``.

    Campaign code resolution order: the code from the client mapping,
    the configured override, then ``GET /campaigns/{id}``.
    Never raises; a failure yields no preview links.
    """

    def __init__(
        self,
        client: AdPilerClient,
        *,
        domain: str = DEFAULT_PREVIEW_DOMAIN,
        code_override: Optional[str] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.client = client
        self.domain = domain.strip().strip("/") or DEFAULT_PREVIEW_DOMAIN
        self.code_override = code_override
        self._log = log or logger

    def campaign_code(self, campaign_id: str, mapping_code: Optional[str] = None) -> Optional[str]:
        if mapping_code:
            return mapping_code
        if self.code_override:
            return self.code_override
        body = self.client.get_json(f"/campaigns/{campaign_id}")
        return _campaign_code(body)

    def resolve(
        self,
        entity_id: str,
        campaign_id: str,
        mapping_code: Optional[str] = None,
    ) -> list[str]:
        try:
            code = self.campaign_code(campaign_id, mapping_code)
        except Exception as exc:
            self._log.warning("Preview lookup failed for campaign %s: %s", campaign_id, exc)
            return []
        if not code:
            self._log.warning("No campaign code for campaign %s; skipping preview", campaign_id)
            return []
        return [f"https://{self.domain}/{code}?ad={entity_id}"]
