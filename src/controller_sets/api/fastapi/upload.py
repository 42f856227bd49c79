"""Multipart upload step that runs ahead of create/update.

Files are written to object storage and the request body is rewritten so
each declared field holds its stored location(s)::

    UploadField("avatar", 1)  -> body["avatar"] == "https://.../avatars/1700000000000-42.png"
    UploadField("photos", 5)  -> body["photos"] == ["https://...", "https://..."]

The onward handler then persists the body as-is.
"""

from __future__ import annotations

import logging
import mimetypes
import posixpath
import secrets
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Union

from starlette.datastructures import UploadFile
from starlette.requests import Request
from starlette.responses import Response

from controller_sets.api.fastapi.body import is_multipart, read_json_body
from controller_sets.api.fastapi.responses import error_response
from controller_sets.exceptions import ConfigurationError, StorageError, UploadError
from controller_sets.storage.backends.s3 import S3Backend
from controller_sets.storage.base import StorageBackend
from controller_sets.storage.settings import S3Settings, get_s3_settings

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_PATH = "files/"
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024

CallNext = Callable[[dict[str, Any]], Awaitable[Response]]


@dataclass(frozen=True)
class UploadField:
    name: str
    max_count: int = 1

    @classmethod
    def coerce(cls, value: Union["UploadField", Mapping[str, Any], tuple]) -> "UploadField":
        if isinstance(value, UploadField):
            return value
        if isinstance(value, Mapping):
            max_count = value.get("max_count", value.get("maxCount", 1))
            return cls(name=str(value["name"]), max_count=int(max_count))
        name, max_count = value
        return cls(name=str(name), max_count=int(max_count))


DEFAULT_FIELDS: tuple[UploadField, ...] = (UploadField("file", 1),)


def normalize_fields(fields: Iterable[Any]) -> tuple[UploadField, ...]:
    normalized = tuple(UploadField.coerce(f) for f in fields)
    if not normalized:
        raise ConfigurationError("At least one upload field is required.")
    names = [f.name for f in normalized]
    if len(set(names)) != len(names):
        raise ConfigurationError(f"Duplicate upload field names: {names}")
    for f in normalized:
        if f.max_count < 1:
            raise ConfigurationError(f"max_count for upload field '{f.name}' must be >= 1")
    return normalized


def object_key(prefix: str, filename: Optional[str]) -> str:
    extension = posixpath.splitext(filename or "")[1]
    unique_id = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
    return posixpath.join(prefix, f"{unique_id}{extension}")


def _content_type(upload: UploadFile) -> str:
    if upload.content_type:
        return upload.content_type
    guessed, _ = mimetypes.guess_type(upload.filename or "")
    return guessed or "application/octet-stream"


def storage_from_settings(settings: S3Settings | None = None) -> Optional[StorageBackend]:
    settings = settings or get_s3_settings()
    if not settings.is_configured:
        logger.warning(
            "[FileUpload] Missing required S3 environment variables: %s. "
            "Uploads will be rejected with 503 until these are configured.",
            ", ".join(settings.missing),
            extra={"component": "FileUpload"},
        )
        return None
    return S3Backend.from_settings(settings)


class FileUploadMiddleware:
    """Store uploaded files, rewrite the body, then call onward exactly once.

    Args:
        path: key prefix for stored objects (e.g. "products/images/").
        fields: ordered upload field descriptors.
        storage: explicit backend; when omitted it is built once from S3_* settings.
        max_file_size: per-file limit in bytes.
    """

    def __init__(
        self,
        path: str = DEFAULT_UPLOAD_PATH,
        fields: Iterable[Any] = DEFAULT_FIELDS,
        storage: Optional[StorageBackend] = None,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    ):
        self.path = path
        self.fields = normalize_fields(fields)
        self.max_file_size = max_file_size
        self.storage = storage if storage is not None else storage_from_settings()
        self._by_name = {f.name: f for f in self.fields}

    async def __call__(self, request: Request, call_next: CallNext) -> Response:
        if self.storage is None:
            return error_response(503, "S3 service is not properly configured on the server.")

        if not is_multipart(request):
            return await call_next(await read_json_body(request))

        try:
            body = await self._store_files(request)
        except Exception as exc:
            logger.error(
                "[FileUpload] Upload Error: %s",
                exc,
                extra={"component": "FileUpload"},
            )
            return error_response(500, str(exc) or "Failed to process S3 upload.")

        return await call_next(body)

    async def _store_files(self, request: Request) -> dict[str, Any]:
        form = await request.form()
        try:
            body: dict[str, Any] = {}
            files: dict[str, list[UploadFile]] = {}
            for key, value in form.multi_items():
                if not isinstance(value, UploadFile):
                    body[key] = value
                    continue
                if not value.filename:
                    continue
                spec = self._by_name.get(key)
                if spec is None:
                    raise UploadError(f"Unexpected field: {key}")
                bucket = files.setdefault(key, [])
                bucket.append(value)
                if len(bucket) > spec.max_count:
                    raise UploadError(f"Too many files for field: {key}")
                if await _size(value) > self.max_file_size:
                    raise UploadError(f"File too large: {value.filename}")

            # nothing is written until every part has passed the checks above
            stored: list[str] = []
            try:
                for spec in self.fields:
                    uploads = files.get(spec.name)
                    if not uploads:
                        continue
                    locations = []
                    for upload in uploads:
                        key = object_key(self.path, upload.filename)
                        locations.append(await self._put(key, upload))
                        stored.append(key)
                    body[spec.name] = locations[0] if spec.max_count == 1 else locations
            except Exception:
                await self._discard(stored)
                raise
            return body
        finally:
            await form.close()

    async def _put(self, key: str, upload: UploadFile) -> str:
        data = await upload.read()
        location = await self.storage.put(key, data, content_type=_content_type(upload))  # type: ignore[union-attr]
        logger.debug("Stored upload %s as %s", upload.filename, key)
        return location

    async def _discard(self, keys: list[str]) -> None:
        for key in keys:
            try:
                await self.storage.delete(key)  # type: ignore[union-attr]
            except StorageError as exc:
                logger.warning(
                    "[FileUpload] Could not remove %s after a failed upload: %s",
                    key,
                    exc,
                    extra={"component": "FileUpload"},
                )
            else:
                logger.debug("Removed %s after a failed upload", key)


async def _size(upload: UploadFile) -> int:
    if upload.size is not None:
        return upload.size
    size = len(await upload.read())
    await upload.seek(0)
    return size


__all__ = [
    "FileUploadMiddleware",
    "UploadField",
    "DEFAULT_FIELDS",
    "normalize_fields",
    "object_key",
    "storage_from_settings",
]
