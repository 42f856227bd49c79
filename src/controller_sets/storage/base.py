from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from controller_sets.exceptions import StorageError, StorageNotConfiguredError


@runtime_checkable
class StorageBackend(Protocol):
    """Object storage used by the upload adapter.

    ``put`` returns the public location of the stored object. ``delete``
    removes an object written earlier in a request that later failed.
    """

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        metadata: Optional[dict[str, str]] = None,
    ) -> str: ...

    async def delete(self, key: str) -> None: ...


__all__ = [
    "StorageBackend",
    "StorageError",
    "StorageNotConfiguredError",
]
