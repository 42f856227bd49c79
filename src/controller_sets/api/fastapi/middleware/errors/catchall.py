import logging

from starlette.middleware.base import BaseHTTPMiddleware

from controller_sets.api.fastapi.responses import error_response

logger = logging.getLogger(__name__)


class CatchAllExceptionMiddleware(BaseHTTPMiddleware):
    """Last line of defence: anything still escaping becomes a 500 envelope."""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(f"{type(exc).__name__} on {request.url.path} (500): {exc}", exc_info=True)
            return error_response(500, "Internal server error.")
