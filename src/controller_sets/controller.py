"""CRUD request handling for one document model.

A ``ControllerSet`` turns already-parsed HTTP input (query params, path id,
JSON body) into model calls and answers with the uniform envelope::

    {"success": true, "data": ...}
    {"success": false, "error": "..."}
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Union

from starlette.responses import JSONResponse

from controller_sets.api.fastapi.responses import error_response, success_response
from controller_sets.db.nosql.base import Document, ModelProtocol
from controller_sets.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

AfterCreate = Callable[[Document], Union[Awaitable[Any], Any]]

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100

_OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def _optional(value: Any) -> Any:
    # "none" is accepted as an alias for "not configured"
    if value is None or (isinstance(value, str) and value.strip().lower() in ("", "none")):
        return None
    return value


def _parse_int(value: Optional[str]) -> Optional[int]:
    """Leading-integer parse: "12abc" -> 12, "abc" -> None."""
    if value is None:
        return None
    m = _LEADING_INT_RE.match(str(value))
    return int(m.group(1)) if m else None


@dataclass(frozen=True)
class ControllerConfig:
    order_by: Optional[str] = None
    query: tuple[str, ...] = ()
    search: Optional[str] = None
    run_after_create: Optional[AfterCreate] = None

    @classmethod
    def build(
        cls,
        *,
        order_by: Optional[str] = None,
        query: Iterable[str] = (),
        search: Optional[str] = None,
        run_after_create: Optional[AfterCreate] | str = None,
        allowed_fields: Optional[Iterable[str]] = None,
    ) -> "ControllerConfig":
        order_by = _optional(order_by)
        search = _optional(search)
        run_after_create = _optional(run_after_create)
        if isinstance(query, str):
            query = [query]
        fields = tuple(dict.fromkeys(query or ()))

        if run_after_create is not None and not callable(run_after_create):
            raise ConfigurationError("run_after_create must be callable.")

        if allowed_fields is not None:
            allowed = set(allowed_fields)
            referenced = list(fields)
            if search:
                referenced.append(search)
            if order_by:
                referenced.append(order_by.lstrip("-"))
            unknown = [f for f in referenced if f not in allowed]
            if unknown:
                raise ConfigurationError(f"Unknown field(s) for this model: {', '.join(unknown)}")

        return cls(order_by=order_by, query=fields, search=search, run_after_create=run_after_create)

    @property
    def sort(self) -> dict[str, int]:
        if not self.order_by:
            return {}
        if self.order_by.startswith("-"):
            return {self.order_by[1:]: -1}
        return {self.order_by: 1}

    def filters(self, params: Mapping[str, Any]) -> dict[str, Any]:
        filters = {key: params[key] for key in self.query if params.get(key) is not None}
        if self.search and params.get(self.search):
            filters[self.search] = {
                "$regex": re.escape(str(params[self.search])),
                "$options": "i",
            }
        return filters


class LookupStatus(Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    ERROR = "error"


@dataclass(frozen=True)
class Lookup:
    status: LookupStatus
    document: Optional[Document] = field(default=None)

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND

    def error_response(self) -> JSONResponse:
        if self.status is LookupStatus.INVALID:
            return error_response(400, "Invalid ID format.")
        if self.status is LookupStatus.NOT_FOUND:
            return error_response(404, "Entry not found.")
        return error_response(500, "Database lookup failed.")


class ControllerSet:
    """List/get/create/update/delete handlers bound to one model."""

    def __init__(
        self,
        model: ModelProtocol,
        order_by: Optional[str] = None,
        query: Iterable[str] = (),
        search: Optional[str] = None,
        run_after_create: Optional[AfterCreate] | str = None,
    ):
        if model is None:
            raise ConfigurationError("ControllerSet: a model is required.")
        self.model = model
        self.config = ControllerConfig.build(
            order_by=order_by,
            query=query,
            search=search,
            run_after_create=run_after_create,
            allowed_fields=getattr(model, "field_names", None),
        )

    def _log_failure(self, operation: str, exc: BaseException, *, with_trace: bool = True) -> None:
        logger.error(
            "[ControllerSet] Error in %s: %s",
            operation,
            exc,
            exc_info=with_trace,
            extra={"component": "ControllerSet", "operation": operation},
        )

    def is_valid_id(self, id: Any) -> bool:
        validator = getattr(self.model, "is_valid_id", None)
        if callable(validator):
            return bool(validator(id))
        return isinstance(id, str) and bool(_OBJECT_ID_RE.match(id))

    async def resolve(self, id: str) -> Lookup:
        if not self.is_valid_id(id):
            return Lookup(LookupStatus.INVALID)
        try:
            document = await self.model.find_by_id(id)
        except Exception as exc:
            self._log_failure("lookup", exc)
            return Lookup(LookupStatus.ERROR)
        if document is None:
            return Lookup(LookupStatus.NOT_FOUND)
        return Lookup(LookupStatus.FOUND, document)

    async def get_all(self, params: Mapping[str, Any]) -> JSONResponse:
        try:
            filters = self.config.filters(params)
            sort = self.config.sort
            if params.get("page"):
                return await self._get_page(params, filters, sort)
            result = await self.model.find(filters, sort=sort or None)
            return success_response(list(result))
        except Exception as exc:
            self._log_failure("get_all", exc)
            return error_response(500, "Failed to retrieve entries.")

    async def _get_page(
        self, params: Mapping[str, Any], filters: dict[str, Any], sort: dict[str, int]
    ) -> JSONResponse:
        page = max(1, _parse_int(params.get("page")) or 1)
        page_size = min(MAX_PAGE_SIZE, max(1, _parse_int(params.get("pageSize")) or DEFAULT_PAGE_SIZE))
        skip = (page - 1) * page_size

        try:
            # count and page are independent reads; no shared snapshot
            total, result = await asyncio.gather(
                self.model.count_documents(filters),
                self.model.find(filters, sort=sort or None, skip=skip, limit=page_size),
            )
        except Exception as exc:
            self._log_failure("pagination", exc)
            return error_response(500, "Pagination error.")

        return success_response(
            list(result),
            pagination={
                "currentPage": page,
                "pageSize": page_size,
                "totalPages": math.ceil(total / page_size),
                "totalRecords": total,
            },
        )

    async def get_by_id(self, id: str) -> JSONResponse:
        lookup = await self.resolve(id)
        if not lookup.found:
            return lookup.error_response()
        return success_response(lookup.document)

    async def create(self, body: Mapping[str, Any]) -> JSONResponse:
        try:
            result = await self.model.create(body)
        except Exception as exc:
            self._log_failure("create", exc, with_trace=False)
            return error_response(400, str(exc) or "Failed to create entry.")

        callback = self.config.run_after_create
        if callback is not None:
            try:
                outcome = callback(result)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as exc:
                # the record is already stored; the response stays 201
                self._log_failure("run_after_create", exc)

        return success_response(result, status_code=201)

    async def update(self, id: str, body: Mapping[str, Any]) -> JSONResponse:
        lookup = await self.resolve(id)
        if not lookup.found:
            return lookup.error_response()

        try:
            updated = await self.model.update_by_id(id, body)
        except Exception as exc:
            self._log_failure("update", exc, with_trace=False)
            return error_response(400, "Update failed. Check your data.")
        if updated is None:
            return error_response(404, "Entry not found.")
        return success_response(updated)

    async def delete(self, id: str) -> JSONResponse:
        lookup = await self.resolve(id)
        if not lookup.found:
            return lookup.error_response()

        try:
            await self.model.delete_by_id(id)
        except Exception as exc:
            self._log_failure("delete", exc)
            return error_response(500, "Deletion failed.")
        return success_response(message="Item successfully deleted.")


__all__ = ["ControllerSet", "ControllerConfig", "Lookup", "LookupStatus"]
