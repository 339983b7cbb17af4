"""Presentation copy attached to a creative."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AdMeta(BaseModel):
    """Copy fields pulled from the card description. All optional."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    primary: Optional[str] = None
    headline: Optional[str] = None
    description: Optional[str] = None
    cta: Optional[str] = None
    url: Optional[str] = None
    display_link: Optional[str] = Field(default=None, alias="displayLink")

    @property
    def is_empty(self) -> bool:
        return not any(self.model_dump().values())
