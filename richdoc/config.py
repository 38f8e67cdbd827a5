"""Runtime settings for the rich document pipeline."""
from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RICHDOC_", extra="ignore")

    autosave_delay_s: float = 1.0
    history_limit: int = 100
    max_heading_level: int = 6
    content_field: str = "long_description"
    log_level: str = "INFO"


settings = Settings()
