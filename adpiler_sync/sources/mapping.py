"""
Client → AdPiler mapping sheet.

The sheet is a published Google Sheets CSV, one row per client::

    Trello Client Name,Adpiler Client ID,Campaign ID,Campaign Code
    Acme,69144,45740,ac3f9

A card belongs to the first row whose client name appears (case-insensitive)
in the card title.
"""

from __future__ import annotations

import csv
import io
import logging
from typing import Optional

import httpx

from adpiler_sync.sources.models import ClientMapping

logger = logging.getLogger(__name__)

_TIMEOUT = 30.0

_NAME_COLUMNS = ("Trello Client Name", "Client Name", "client")
_CLIENT_COLUMNS = ("Adpiler Client ID", "clientId", "Client ID")
_CAMPAIGN_COLUMNS = ("Campaign ID", "campaignId", "Adpiler Campaign ID")
_CODE_COLUMNS = ("Campaign Code", "campaignCode")


class MappingNotFoundError(LookupError):
    """Raised when no mapping row matches a card title."""


def _norm(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def _first(row: dict[str, str], columns: tuple[str, ...]) -> str:
    for col in columns:
        value = (row.get(col) or "").strip()
        if value:
            return value
    return ""


def parse_mapping_csv(text: str) -> list[dict[str, str]]:
    """Parse CSV text into row dicts, headers stripped."""
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    rows: list[dict[str, str]] = []
    for raw in reader:
        rows.append({(k or "").strip(): (v or "") for k, v in raw.items()})
    return rows


def match_mapping(rows: list[dict[str, str]], card_title: str) -> ClientMapping:
    title = _norm(card_title)
    for row in rows:
        name = _first(row, _NAME_COLUMNS)
        if not name or _norm(name) not in title:
            continue
        client_id = _first(row, _CLIENT_COLUMNS)
        if not client_id:
            raise MappingNotFoundError(f'Mapping row for "{name}" has no client id')
        return ClientMapping(
            client_id=client_id,
            campaign_id=_first(row, _CAMPAIGN_COLUMNS) or None,
            campaign_code=_first(row, _CODE_COLUMNS) or None,
            client_name=name,
        )
    raise MappingNotFoundError(f'No mapping found for "{card_title}"')


class ClientMappingSheet:
    """Fetches the mapping CSV once and answers lookups from memory."""

    def __init__(
        self,
        csv_url: Optional[str] = None,
        *,
        timeout: float = _TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        from config.settings import settings

        self.csv_url = csv_url or settings.client_csv_url
        self._http = httpx.Client(timeout=timeout, follow_redirects=True, transport=transport)
        self._rows: Optional[list[dict[str, str]]] = None

    def rows(self) -> list[dict[str, str]]:
        if self._rows is None:
            if not self.csv_url:
                raise MappingNotFoundError("CLIENT_CSV_URL not set")
            try:
                resp = self._http.get(self.csv_url)
                resp.raise_for_status()
            except httpx.HTTPError as exc:
                raise MappingNotFoundError(f"Mapping CSV fetch failed: {exc}") from exc
            self._rows = parse_mapping_csv(resp.text)
            logger.info("Loaded %d client mapping row(s)", len(self._rows))
        return self._rows

    def lookup(self, card_title: str) -> ClientMapping:
        return match_mapping(self.rows(), card_title)

    def close(self) -> None:
        self._http.close()
