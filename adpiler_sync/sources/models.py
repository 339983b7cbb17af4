"""Source-task (Trello) and client-mapping models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from adpiler_sync.assets.models import Attachment


class Label(BaseModel):
    id: str
    name: str = ""
    color: Optional[str] = None


class Card(BaseModel):
    """The subset of a Trello card the publisher needs."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    desc: str = ""
    board_id: Optional[str] = Field(default=None, alias="idBoard")
    labels: list[Label] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)


class ClientMapping(BaseModel):
    """Which AdPiler client/campaign a card belongs to."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    campaign_id: Optional[str] = None
    campaign_code: Optional[str] = None
    client_name: str = ""
