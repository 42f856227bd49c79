from __future__ import annotations

from typing import Optional


class MemoryBackend:
    """In-process storage for tests and local development."""

    def __init__(self) -> None:
        self._objects: dict[str, bytes] = {}

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        metadata: Optional[dict[str, str]] = None,
    ) -> str:
        self._objects[key] = data
        return f"memory://{key}"

    async def delete(self, key: str) -> None:
        self._objects.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._objects)
