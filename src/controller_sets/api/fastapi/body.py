from __future__ import annotations

import json
from typing import Any

from starlette.requests import Request

from controller_sets.exceptions import RequestBodyError


async def read_json_body(request: Request) -> dict[str, Any]:
    """Return the request's JSON object body; an empty body reads as ``{}``."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise RequestBodyError(f"Malformed JSON body: {exc}") from exc
    if not isinstance(payload, dict):
        raise RequestBodyError("Request body must be a JSON object.")
    return payload


def is_multipart(request: Request) -> bool:
    return request.headers.get("content-type", "").lower().startswith("multipart/form-data")
