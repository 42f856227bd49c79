from .nosql import add_mongo

__all__ = ["add_mongo"]
