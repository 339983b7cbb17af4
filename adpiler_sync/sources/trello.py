"""
Trello REST client — the card source and comment sink.

Docs: https://developer.atlassian.com/cloud/trello/rest/

Endpoints used:
  GET  /cards/{id}?attachments=true   → card + attachments
  GET  {attachment.url}               → raw bytes (OAuth header required)
  POST /cards/{id}/actions/comments   → summary comment
  GET  /boards/{id}/labels            → board labels
  POST /cards/{id}/idLabels           → add a label to the card
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from adpiler_sync.assets.models import Attachment
from adpiler_sync.sources.models import Card, Label

logger = logging.getLogger(__name__)

_TRELLO_BASE = "https://api.trello.com/1"
_TIMEOUT = 30.0


class TrelloError(Exception):
    """Raised when a Trello call fails."""


class TrelloClient:
    """
    Key/token authenticated Trello client.

    Usage::

        trello = TrelloClient()
        card = trello.get_card("abc123")
        data = trello.download_attachment(card.attachments[0])
        trello.post_comment(card.id, "Published to AdPiler")
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        token: Optional[str] = None,
        *,
        base_url: str = _TRELLO_BASE,
        timeout: float = _TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        from config.settings import settings

        self.api_key = api_key or settings.trello_api_key
        self.token = token or settings.trello_token
        self._http = httpx.Client(
            base_url=base_url,
            params={"key": self.api_key, "token": self.token},
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = self._http.request(method, url, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise TrelloError(f"Trello {method} {url} failed: {exc}") from exc
        return resp

    # ------------------------------------------------------------------
    # Cards
    # ------------------------------------------------------------------

    def get_card(self, card_id: str) -> Card:
        resp = self._request(
            "GET",
            f"/cards/{card_id}",
            params={"attachments": "true", "fields": "name,desc,idBoard,labels"},
        )
        return Card.model_validate(resp.json())

    def download_attachment(self, attachment: Attachment) -> bytes:
        """Fetch the raw bytes of an uploaded attachment."""
        if not attachment.url:
            raise TrelloError(f"Attachment {attachment.id} has no URL")
        headers = {
            "Authorization": (
                f'OAuth oauth_consumer_key="{self.api_key}", oauth_token="{self.token}"'
            )
        }
        resp = self._request("GET", attachment.url, headers=headers)
        logger.debug("Downloaded %s (%d bytes)", attachment.name, len(resp.content))
        return resp.content

    # ------------------------------------------------------------------
    # Write-back
    # ------------------------------------------------------------------

    def post_comment(self, card_id: str, text: str) -> None:
        self._request("POST", f"/cards/{card_id}/actions/comments", params={"text": text})
        logger.info("Commented on card %s", card_id)

    def get_board_labels(self, board_id: str) -> list[Label]:
        resp = self._request("GET", f"/boards/{board_id}/labels")
        return [Label.model_validate(item) for item in resp.json()]

    def add_label(self, card: Card, label_name: str) -> bool:
        """Add the board label called *label_name* to *card*. False if the board has none."""
        if any(lbl.name.lower() == label_name.lower() for lbl in card.labels):
            return True
        if not card.board_id:
            logger.warning("Card %s has no board id; cannot label it", card.id)
            return False
        match = next(
            (lbl for lbl in self.get_board_labels(card.board_id) if lbl.name.lower() == label_name.lower()),
            None,
        )
        if match is None:
            logger.warning('No "%s" label on board %s', label_name, card.board_id)
            return False
        self._request("POST", f"/cards/{card.id}/idLabels", params={"value": match.id})
        logger.info('Added label "%s" to card %s', label_name, card.id)
        return True

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "TrelloClient":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
