from __future__ import annotations

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from .settings import get_mongo_settings

logger = logging.getLogger(__name__)

_client: AsyncIOMotorClient | None = None
_db: AsyncIOMotorDatabase | None = None


async def initialize_mongo(url: Optional[str] = None, db_name: Optional[str] = None) -> AsyncIOMotorDatabase:
    """Create the process-wide motor client and select the database.

    The database name falls back to MONGO_DB, then to the default database
    encoded in the connection string.
    """
    global _client, _db
    if _db is not None:
        return _db

    settings = get_mongo_settings()
    url = url or settings.resolved_url
    _client = AsyncIOMotorClient(url, serverSelectionTimeoutMS=settings.server_selection_timeout_ms)
    name = db_name or settings.db
    _db = _client[name] if name else _client.get_default_database()
    logger.info("MongoDB client initialized (db=%s)", _db.name)
    return _db


async def dispose_mongo() -> None:
    global _client, _db
    if _client is not None:
        _client.close()
        logger.info("MongoDB client closed")
    _client = None
    _db = None


def get_mongo_db() -> AsyncIOMotorDatabase:
    if _db is None:
        raise RuntimeError("MongoDB not initialized. Call add_mongo(app) or initialize_mongo() first.")
    return _db


__all__ = ["initialize_mongo", "dispose_mongo", "get_mongo_db"]
