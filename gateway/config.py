import json
from typing import Annotated, List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

class Settings(BaseSettings):
    # App
    APP_NAME: str = "Origin Gateway"
    APP_ENV: str = "dev"
    APP_PORT: int = 18789

    # Extra trusted browser origins (JSON list or comma-separated string in .env)
    ALLOW_ORIGINS: Annotated[List[str], NoDecode] = Field(default_factory=list)

    # Require loopback origins to be on APP_PORT
    ENFORCE_LOOPBACK_PORT: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"

    # Security / Limits
    RATE_ORIGIN_CHECK_PER_MIN: int = 60
    TRUSTED_HOSTS: list[str] = ["127.0.0.1", "localhost"]

    # Meta
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @field_validator("ALLOW_ORIGINS", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            value = value.strip()
            if value.startswith("["):
                return json.loads(value)
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @property
    def gateway_port(self) -> Optional[int]:
        return self.APP_PORT if self.ENFORCE_LOOPBACK_PORT else None

settings = Settings()
