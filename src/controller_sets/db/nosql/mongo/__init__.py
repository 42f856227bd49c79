from .model import MongoModel
from .session import dispose_mongo, get_mongo_db, initialize_mongo
from .settings import MongoSettings, get_mongo_settings

__all__ = [
    "MongoModel",
    "MongoSettings",
    "get_mongo_settings",
    "initialize_mongo",
    "dispose_mongo",
    "get_mongo_db",
]
