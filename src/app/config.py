from __future__ import annotations

import logging
import sys
from pathlib import Path

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    SUPABASE_URL: AnyUrl | None = None
    SUPABASE_ANON_KEY: str = ""
    APP_ENV: str = "local"
    LOG_LEVEL: str = "INFO"

    IMAGE_CACHE_DIR: Path = Field(
        default_factory=lambda: Path.home() / ".cache" / "recipe-data" / "images",
    )
    IMAGE_DOWNLOAD_TIMEOUT_SECONDS: float = 15.0
    RECORD_CACHE_TTL_DAYS: int = 7
    RECIPES_PAGE_SIZE: int = 20

    def validate_supabase(self) -> list[str]:
        errors: list[str] = []

        if not self.SUPABASE_URL:
            errors.append("SUPABASE_URL is required")

        if not self.SUPABASE_ANON_KEY:
            errors.append("SUPABASE_ANON_KEY is required")

        return errors


def configure_logging(level: str | int = "INFO") -> None:
    # no-op when the host application already configured the root logger
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )


settings = Settings()
