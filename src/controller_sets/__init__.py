"""Generated REST CRUD routers for MongoDB collections, with optional S3 uploads."""

from . import api, app

from .api.fastapi.db import add_mongo
from .api.fastapi.middleware.errors import add_error_handling
from .api.fastapi.router import create_router, create_router_s3_upload
from .api.fastapi.upload import FileUploadMiddleware, UploadField
from .controller import ControllerConfig, ControllerSet
from .db.nosql.mongo import MongoModel
from .exceptions import ControllerSetsError

__all__ = [
    # Modules
    "app",
    "api",
    # Routers
    "create_router",
    "create_router_s3_upload",
    # Building blocks
    "ControllerSet",
    "ControllerConfig",
    "FileUploadMiddleware",
    "UploadField",
    "MongoModel",
    # App wiring
    "add_mongo",
    "add_error_handling",
    # Base exception
    "ControllerSetsError",
]
