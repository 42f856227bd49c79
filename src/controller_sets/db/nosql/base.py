from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence, runtime_checkable

Document = dict[str, Any]


@runtime_checkable
class ModelProtocol(Protocol):
    """Shape a model must have to be served by a ControllerSet.

    Two optional attributes are honored when present: ``is_valid_id(value)``
    for identifier format checks and ``field_names`` for validating the
    controller's filter allow-list at configuration time.
    """

    async def find(
        self,
        filters: Mapping[str, Any],
        *,
        sort: Optional[Mapping[str, int]] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[Document]: ...

    async def find_by_id(self, id: str) -> Optional[Document]: ...

    async def count_documents(self, filters: Mapping[str, Any]) -> int: ...

    async def create(self, data: Mapping[str, Any]) -> Document: ...

    async def update_by_id(self, id: str, changes: Mapping[str, Any]) -> Optional[Document]: ...

    async def delete_by_id(self, id: str) -> int: ...
