"""Exception hierarchy for controller-sets.

Every error carries the HTTP status it maps to, so the centralized error
path can turn it into a ``{"success": false, "error": ...}`` envelope.
"""

from __future__ import annotations


class ControllerSetsError(Exception):
    status_code: int = 500

    def __init__(self, message: str = "", *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(ControllerSetsError):
    """Raised while building a controller or router from invalid options."""


class RequestBodyError(ControllerSetsError):
    status_code = 400


class StorageError(ControllerSetsError):
    pass


class UploadError(ControllerSetsError):
    pass


class StorageNotConfiguredError(StorageError):
    status_code = 503


__all__ = [
    "ControllerSetsError",
    "ConfigurationError",
    "RequestBodyError",
    "StorageError",
    "UploadError",
    "StorageNotConfiguredError",
]
