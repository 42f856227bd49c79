"""Object storage used by the upload adapter.

- ``S3Backend``: S3-compatible storage configured from S3_* env vars
- ``MemoryBackend``: in-process storage for tests and local development
"""

from .backends import MemoryBackend, S3Backend
from .base import StorageBackend, StorageError, StorageNotConfiguredError
from .settings import S3Settings, get_s3_settings

__all__ = [
    "StorageBackend",
    "MemoryBackend",
    "S3Backend",
    "S3Settings",
    "get_s3_settings",
    "StorageError",
    "StorageNotConfiguredError",
]
