from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence, Type

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pydantic import BaseModel
from pymongo import ReturnDocument

from controller_sets.db.nosql.base import Document

from .session import get_mongo_db


class MongoModel:
    """A motor collection plus an optional pydantic schema.

    - Without a schema documents are stored as given.
    - With a schema, ``create`` validates the body and stores the dumped model
      (defaults applied, unknown keys dropped). ``update_by_id`` validates the
      merged document and ``$set``s only the keys the caller sent.
    """

    def __init__(
        self,
        collection_name: str,
        schema: Optional[Type[BaseModel]] = None,
        *,
        database: AsyncIOMotorDatabase | None = None,
    ):
        self.collection_name = collection_name
        self.schema = schema
        self._database = database

    def __repr__(self) -> str:
        return f"MongoModel({self.collection_name!r})"

    @property
    def collection(self) -> AsyncIOMotorCollection:
        db = self._database if self._database is not None else get_mongo_db()
        return db[self.collection_name]

    @property
    def field_names(self) -> Optional[frozenset[str]]:
        if self.schema is None:
            return None
        names = {"_id"}
        for name, field in self.schema.model_fields.items():
            names.add(field.alias or name)
        return frozenset(names)

    @staticmethod
    def is_valid_id(value: Any) -> bool:
        return isinstance(value, str) and ObjectId.is_valid(value)

    def _validate(self, data: Mapping[str, Any]) -> Document:
        if self.schema is None:
            return dict(data)
        return self.schema.model_validate(dict(data)).model_dump(by_alias=True)

    async def find(
        self,
        filters: Mapping[str, Any],
        *,
        sort: Optional[Mapping[str, int]] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[Document]:
        cursor = self.collection.find(dict(filters))
        if sort:
            cursor = cursor.sort(list(sort.items()))
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return await cursor.to_list(length=None)

    async def find_by_id(self, id: str) -> Optional[Document]:
        return await self.collection.find_one({"_id": ObjectId(id)})

    async def count_documents(self, filters: Mapping[str, Any]) -> int:
        return await self.collection.count_documents(dict(filters))

    async def create(self, data: Mapping[str, Any]) -> Document:
        doc = self._validate(data)
        result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    async def update_by_id(self, id: str, changes: Mapping[str, Any]) -> Optional[Document]:
        oid = ObjectId(id)
        changes = dict(changes)
        if self.schema is not None:
            current = await self.collection.find_one({"_id": oid})
            if current is None:
                return None
            merged = {k: v for k, v in current.items() if k != "_id"}
            merged.update(changes)
            validated = self._validate(merged)
            changes = {k: validated[k] for k in changes if k in validated}
        if not changes:
            # $set with an empty document is rejected by the server
            return await self.collection.find_one({"_id": oid})
        return await self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )

    async def delete_by_id(self, id: str) -> int:
        result = await self.collection.delete_one({"_id": ObjectId(id)})
        return int(result.deleted_count)
