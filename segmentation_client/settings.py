from __future__ import annotations
import logging
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    api_base_url: str = "http://localhost:8000"
    api_token: Optional[str] = None

    poll_interval_seconds: float = 3.0
    request_timeout_seconds: float = 60.0

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

settings = Settings()

def configure_logging(level: Optional[str] = None) -> None:
    # only for apps; the library never installs handlers
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
