from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MongoSettings(BaseSettings):
    """
    MongoDB connection settings.

    Env support:
      MONGO_URL, MONGO_DB, MONGO_SERVER_SELECTION_TIMEOUT_MS
    """

    url: Optional[str] = Field(default=None)
    db: Optional[str] = Field(default=None)
    server_selection_timeout_ms: int = Field(default=5000)

    model_config = SettingsConfigDict(
        env_prefix="MONGO_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def resolved_url(self) -> str:
        if not self.url:
            raise ValueError("MONGO_URL must be set for MongoDB connectivity")
        return self.url


@lru_cache
def get_mongo_settings(**kwargs) -> MongoSettings:
    # Only include kwargs that are not None, so defaults in MongoSettings are used
    filtered = {k: v for k, v in kwargs.items() if v is not None}
    return MongoSettings(**filtered)
