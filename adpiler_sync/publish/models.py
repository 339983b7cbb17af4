"""
Publishing data models — modes, retry policy, creative records.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Mode(str, Enum):
    DISPLAY = "display"               # 300×600 display ad
    POST = "post"                     # single-slide social ad
    POST_CAROUSEL = "post-carousel"   # multi-slide social ad

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Mode"]:
        """Parse a config/CLI string (``None``/blank → ``None``)."""
        if value is None or not str(value).strip():
            return None
        key = str(value).strip().lower().replace("_", "-")
        if key == "carousel":
            key = cls.POST_CAROUSEL.value
        return cls(key)


class RetryPolicy(BaseModel):
    """Bounded exponential backoff for platform calls."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=4, ge=1)
    base_delay_ms: int = Field(default=400, ge=0)
    jitter_ms: int = Field(default=200, ge=0)

    def min_delay_ms(self, attempt: int) -> int:
        """Delay floor before *attempt* (1-based; the first attempt has none)."""
        if attempt < 2:
            return 0
        return self.base_delay_ms * 2 ** (attempt - 2)


class CreativeRecord(BaseModel):
    """Outcome of one successful publish run."""

    model_config = ConfigDict(frozen=True)

    mode: Mode
    campaign_id: str
    paid: bool
    entity_id: str
    uploaded_count: int = 0
    uploaded_files: tuple[str, ...] = ()
