from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from controller_sets.db.nosql.mongo.session import dispose_mongo, initialize_mongo


def add_mongo(app: FastAPI, *, url: Optional[str] = None, db_name: Optional[str] = None) -> None:
    """Open the shared motor client on startup and close it on shutdown.

    ``url``/``db_name`` default to MONGO_URL/MONGO_DB. An existing lifespan
    on the app keeps running inside the Mongo one.
    """
    previous = app.router.lifespan_context

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        await initialize_mongo(url, db_name)
        try:
            async with previous(_app) as state:
                yield state
        finally:
            await dispose_mongo()

    app.router.lifespan_context = lifespan
