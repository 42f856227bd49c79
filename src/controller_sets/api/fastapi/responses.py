from __future__ import annotations

from typing import Any

from bson import ObjectId
from fastapi.encoders import jsonable_encoder
from starlette.responses import JSONResponse

_ENCODERS = {ObjectId: str}


def envelope(status_code: int = 200, **content: Any) -> JSONResponse:
    """Build a ``{"success": ...}`` JSON response; ObjectIds render as hex strings."""
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(content, custom_encoder=_ENCODERS),
    )


def success_response(data: Any = None, status_code: int = 200, **extra: Any) -> JSONResponse:
    if data is not None:
        extra = {"data": data, **extra}
    return envelope(status_code, success=True, **extra)


def error_response(status_code: int, message: str) -> JSONResponse:
    return envelope(status_code, success=False, error=message)


__all__ = ["envelope", "success_response", "error_response"]
