from __future__ import annotations

import logging

from fastapi import FastAPI
from starlette.requests import Request
from starlette.responses import JSONResponse

from controller_sets.api.fastapi.responses import error_response
from controller_sets.exceptions import ControllerSetsError

from .catchall import CatchAllExceptionMiddleware

logger = logging.getLogger(__name__)


async def default_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Centralized error path for exceptions escaping a CRUD handler."""
    if isinstance(exc, ControllerSetsError):
        return error_response(exc.status_code, exc.message or type(exc).__name__)
    return error_response(500, "Internal server error.")


def add_error_handling(app: FastAPI) -> None:
    """Install the envelope error handler and the catch-all middleware on an app."""
    app.add_middleware(CatchAllExceptionMiddleware)
    app.add_exception_handler(ControllerSetsError, default_error_handler)
