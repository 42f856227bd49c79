from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable, Iterable, Optional, Sequence

from fastapi import APIRouter, Depends, params
from starlette.requests import Request
from starlette.responses import Response

from controller_sets.api.fastapi.body import read_json_body
from controller_sets.api.fastapi.middleware.errors.handlers import default_error_handler
from controller_sets.api.fastapi.upload import (
    DEFAULT_FIELDS,
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_UPLOAD_PATH,
    FileUploadMiddleware,
)
from controller_sets.controller import AfterCreate, ControllerSet
from controller_sets.db.nosql.base import ModelProtocol
from controller_sets.storage.base import StorageBackend

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[Optional[Request], Exception], Awaitable[Response]]


def forward_errors(endpoint: Callable[..., Awaitable[Response]], on_error: ErrorHandler):
    """Wrap an endpoint so any exception it raises goes to ``on_error``.

    The wrapper keeps the endpoint's signature for FastAPI's dependency
    resolution.
    """

    @functools.wraps(endpoint)
    async def wrapper(*args: Any, **kwargs: Any) -> Response:
        try:
            return await endpoint(*args, **kwargs)
        except Exception as exc:
            request = kwargs.get("request")
            if request is None:
                request = next((a for a in args if isinstance(a, Request)), None)
            path = request.url.path if request is not None else "?"
            logger.error(
                "%s on %s: %s",
                type(exc).__name__,
                path,
                exc,
                exc_info=True,
                extra={"component": "Router"},
            )
            return await on_error(request, exc)

    return wrapper


def _as_dependencies(middlewares: Iterable[Any]) -> list[params.Depends]:
    return [m if isinstance(m, params.Depends) else Depends(m) for m in middlewares]


def _build_router(
    controller: ControllerSet,
    *,
    upload: Optional[FileUploadMiddleware],
    middlewares: Iterable[Any],
    prefix: str,
    tags: Optional[Sequence[str]],
    on_error: Optional[ErrorHandler],
) -> APIRouter:
    on_error = on_error or default_error_handler
    router = APIRouter(
        prefix=prefix,
        tags=list(tags) if tags else None,
        dependencies=_as_dependencies(middlewares),
    )
    # an empty path is only allowed under a prefix
    root = "" if prefix else "/"

    async def list_records(request: Request) -> Response:
        return await controller.get_all(request.query_params)

    async def get_record(request: Request, id: str) -> Response:
        return await controller.get_by_id(id)

    async def create_record(request: Request) -> Response:
        if upload is not None:
            return await upload(request, controller.create)
        return await controller.create(await read_json_body(request))

    async def update_record(request: Request, id: str) -> Response:
        if upload is not None:
            return await upload(request, functools.partial(controller.update, id))
        return await controller.update(id, await read_json_body(request))

    async def delete_record(request: Request, id: str) -> Response:
        return await controller.delete(id)

    router.add_api_route(root, forward_errors(list_records, on_error), methods=["GET"])
    router.add_api_route(root, forward_errors(create_record, on_error), methods=["POST"], status_code=201)
    router.add_api_route("/{id}", forward_errors(get_record, on_error), methods=["GET"])
    router.add_api_route("/{id}", forward_errors(update_record, on_error), methods=["PATCH"])
    router.add_api_route("/{id}", forward_errors(delete_record, on_error), methods=["DELETE"])
    return router


def create_router(
    model: ModelProtocol,
    *,
    order_by: Optional[str] = None,
    query: Iterable[str] = (),
    search: Optional[str] = None,
    run_after_create: Optional[AfterCreate] = None,
    middlewares: Iterable[Any] = (),
    prefix: str = "",
    tags: Optional[Sequence[str]] = None,
    on_error: Optional[ErrorHandler] = None,
) -> APIRouter:
    """
    Build a CRUD router for ``model``.

    Routes (relative to ``prefix``):
        GET /        list (filters, search, ?page=&pageSize=)
        POST /       create
        GET /{id}    read
        PATCH /{id}  partial update
        DELETE /{id} delete

    Args:
        order_by: sort field, "-field" for descending.
        query: allow-listed filter fields taken from the query string.
        search: field matched case-insensitively by its query param.
        run_after_create: called with each created document; failures are logged only.
        middlewares: FastAPI dependencies applied to every route.
        on_error: centralized handler for exceptions escaping a route.
    """
    controller = ControllerSet(model, order_by, query, search, run_after_create)
    return _build_router(
        controller,
        upload=None,
        middlewares=middlewares,
        prefix=prefix,
        tags=tags,
        on_error=on_error,
    )


def create_router_s3_upload(
    model: ModelProtocol,
    *,
    order_by: Optional[str] = None,
    query: Iterable[str] = (),
    search: Optional[str] = None,
    run_after_create: Optional[AfterCreate] = None,
    middlewares: Iterable[Any] = (),
    prefix: str = "",
    tags: Optional[Sequence[str]] = None,
    on_error: Optional[ErrorHandler] = None,
    path: str = DEFAULT_UPLOAD_PATH,
    fields: Iterable[Any] = DEFAULT_FIELDS,
    storage: Optional[StorageBackend] = None,
    max_file_size: int = DEFAULT_MAX_FILE_SIZE,
) -> APIRouter:
    """Same routes as ``create_router``; POST and PATCH first store multipart
    files under ``path`` and put their locations into the body."""
    controller = ControllerSet(model, order_by, query, search, run_after_create)
    upload = FileUploadMiddleware(path=path, fields=fields, storage=storage, max_file_size=max_file_size)
    return _build_router(
        controller,
        upload=upload,
        middlewares=middlewares,
        prefix=prefix,
        tags=tags,
        on_error=on_error,
    )


__all__ = ["create_router", "create_router_s3_upload", "forward_errors"]
