from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class S3Settings(BaseSettings):
    """
    S3-compatible object storage settings (AWS, DigitalOcean Spaces, MinIO).

    Env support:
      S3_ENDPOINT, S3_SPACES_KEY, S3_SPACES_SECRET, S3_BUCKET_NAME, S3_REGION
    """

    endpoint: Optional[str] = Field(default=None)
    spaces_key: Optional[str] = Field(default=None)
    spaces_secret: Optional[str] = Field(default=None)
    bucket_name: Optional[str] = Field(default=None)
    region: str = Field(default="us-east-1")

    model_config = SettingsConfigDict(
        env_prefix="S3_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def missing(self) -> list[str]:
        required = {
            "S3_ENDPOINT": self.endpoint,
            "S3_SPACES_KEY": self.spaces_key,
            "S3_SPACES_SECRET": self.spaces_secret,
            "S3_BUCKET_NAME": self.bucket_name,
        }
        return [name for name, value in required.items() if not value]

    @property
    def is_configured(self) -> bool:
        return not self.missing


@lru_cache
def get_s3_settings() -> S3Settings:
    return S3Settings()
