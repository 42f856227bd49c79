from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from controller_sets.exceptions import StorageError, StorageNotConfiguredError

from ..settings import S3Settings, get_s3_settings

logger = logging.getLogger(__name__)


class S3Backend:
    """S3-compatible storage using path-style addressing.

    Objects are written with a ``public-read`` ACL and ``put`` returns
    ``<endpoint>/<bucket>/<key>``.
    """

    def __init__(
        self,
        bucket: str,
        *,
        endpoint: Optional[str] = None,
        region: str = "us-east-1",
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        acl: Optional[str] = "public-read",
    ):
        self.bucket = bucket
        self.endpoint = endpoint
        self.region = region
        self.acl = acl
        self._session = aioboto3.Session(
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
        )
        self._config = Config(s3={"addressing_style": "path"})

    @classmethod
    def from_settings(cls, settings: S3Settings | None = None) -> "S3Backend":
        settings = settings or get_s3_settings()
        if not settings.is_configured:
            raise StorageNotConfiguredError(
                f"Missing required S3 environment variables: {', '.join(settings.missing)}"
            )
        return cls(
            bucket=settings.bucket_name,  # type: ignore[arg-type]
            endpoint=settings.endpoint,
            region=settings.region,
            access_key=settings.spaces_key,
            secret_key=settings.spaces_secret,
        )

    def _client(self):
        return self._session.client("s3", endpoint_url=self.endpoint, config=self._config)

    def location(self, key: str) -> str:
        base = (self.endpoint or f"https://s3.{self.region}.amazonaws.com").rstrip("/")
        return f"{base}/{self.bucket}/{quote(key)}"

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        metadata: Optional[dict[str, str]] = None,
    ) -> str:
        params: dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": data,
            "ContentType": content_type,
        }
        if self.acl:
            params["ACL"] = self.acl
        if metadata:
            params["Metadata"] = metadata
        try:
            async with self._client() as s3:
                await s3.put_object(**params)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to upload {key}: {exc}") from exc
        logger.debug("Stored s3://%s/%s (%d bytes)", self.bucket, key, len(data))
        return self.location(key)

    async def delete(self, key: str) -> None:
        try:
            async with self._client() as s3:
                await s3.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to delete {key}: {exc}") from exc
        logger.debug("Deleted s3://%s/%s", self.bucket, key)
