from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── AdPiler ────────────────────────────────────────────────
    adpiler_api_base: str = ""
    adpiler_api_key: str = ""
    preview_domain: str = "preview.adpiler.com"
    paid_default: bool = True
    forced_mode: Optional[str] = None           # display | post | post-carousel
    campaign_code_override: Optional[str] = None
    default_client_id: Optional[str] = None
    default_campaign_id: Optional[str] = None

    # ── Retry / pacing ─────────────────────────────────────────
    retry_max_attempts: int = 4
    retry_base_delay_ms: int = 400
    retry_jitter_ms: int = 200
    slide_delay_ms: int = 200
    http_timeout: float = 60.0

    # ── Trello ─────────────────────────────────────────────────
    trello_api_key: str = ""
    trello_token: str = ""
    client_csv_url: str = ""
    uploaded_label_name: str = "Uploaded"

    # ── App ────────────────────────────────────────────────────
    log_level: str = "INFO"


settings = Settings()
