"""Application settings and configuration helpers."""
from functools import lru_cache
import os
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()

DEFAULT_SECRET_KEY = "change-me"


class Settings(BaseModel):
    """Runtime configuration loaded from environment variables."""

    database_url: str = Field(
        default="sqlite+aiosqlite:///./cinestream.db", alias="DATABASE_URL"
    )
    secret_key: str = Field(default=DEFAULT_SECRET_KEY, alias="SECRET_KEY")
    access_token_expires_days: int = Field(
        default=30, ge=1, alias="ACCESS_TOKEN_EXPIRES_DAYS"
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
        "frozen": True,
    }

    @property
    def uses_default_secret(self) -> bool:
        return self.secret_key == DEFAULT_SECRET_KEY


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    defaults = Settings.model_fields
    return Settings(
        database_url=os.getenv("DATABASE_URL", defaults["database_url"].default),
        secret_key=os.getenv("SECRET_KEY", defaults["secret_key"].default),
        access_token_expires_days=int(
            os.getenv(
                "ACCESS_TOKEN_EXPIRES_DAYS",
                defaults["access_token_expires_days"].default,
            )
        ),
        log_level=os.getenv("LOG_LEVEL", defaults["log_level"].default).upper(),
    )
