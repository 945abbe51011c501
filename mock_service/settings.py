from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    database_url: str = "sqlite:///./mock_service.db"

    # status polls answered with "processing" before a job completes
    polls_until_complete: int = 2

    api_token: Optional[str] = None

    model_config = SettingsConfigDict(env_prefix="MOCK_SERVICE_", env_file=".env", extra="ignore")

settings = Settings()
