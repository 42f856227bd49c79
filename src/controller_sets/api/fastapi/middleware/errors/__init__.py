from .catchall import CatchAllExceptionMiddleware
from .handlers import add_error_handling, default_error_handler

__all__ = ["CatchAllExceptionMiddleware", "add_error_handling", "default_error_handler"]
