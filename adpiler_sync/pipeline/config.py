"""Explicit pipeline configuration, built once at the application edge."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from adpiler_sync.publish.models import Mode, RetryPolicy
from adpiler_sync.publish.preview import DEFAULT_PREVIEW_DOMAIN


class ConfigError(ValueError):
    """Raised when the publish configuration is incomplete or invalid."""


class PublishConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_base: str
    api_key: str
    preview_domain: str = DEFAULT_PREVIEW_DOMAIN
    paid_default: bool = True
    forced_mode: Optional[Mode] = None
    campaign_code_override: Optional[str] = None
    default_client_id: Optional[str] = None
    default_campaign_id: Optional[str] = None
    retry: RetryPolicy = RetryPolicy()
    slide_delay_ms: int = 200
    http_timeout: float = 60.0

    @field_validator("api_base", "api_key")
    @classmethod
    def required(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("forced_mode", mode="before")
    @classmethod
    def parse_mode(cls, v: object) -> Optional[Mode]:
        if v is None or isinstance(v, Mode):
            return v
        return Mode.parse(str(v))

    @field_validator("campaign_code_override", "default_client_id", "default_campaign_id")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v and v.strip() else None

    @property
    def has_default_mapping(self) -> bool:
        return self.default_campaign_id is not None

    @classmethod
    def from_settings(cls, settings: object, **overrides: object) -> "PublishConfig":
        """Build from a ``config.settings.Settings`` instance; raises ConfigError."""
        values = {
            "api_base": getattr(settings, "adpiler_api_base", ""),
            "api_key": getattr(settings, "adpiler_api_key", ""),
            "preview_domain": getattr(settings, "preview_domain", DEFAULT_PREVIEW_DOMAIN),
            "paid_default": getattr(settings, "paid_default", True),
            "forced_mode": getattr(settings, "forced_mode", None),
            "campaign_code_override": getattr(settings, "campaign_code_override", None),
            "default_client_id": getattr(settings, "default_client_id", None),
            "default_campaign_id": getattr(settings, "default_campaign_id", None),
            "retry": RetryPolicy(
                max_attempts=getattr(settings, "retry_max_attempts", 4),
                base_delay_ms=getattr(settings, "retry_base_delay_ms", 400),
                jitter_ms=getattr(settings, "retry_jitter_ms", 200),
            ),
            "slide_delay_ms": getattr(settings, "slide_delay_ms", 200),
            "http_timeout": getattr(settings, "http_timeout", 60.0),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigError(f"Invalid publish configuration: {exc}") from exc
