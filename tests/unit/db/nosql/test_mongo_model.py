"""
Tests for MongoModel against a mocked motor collection.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
from bson import ObjectId
from pydantic import BaseModel, Field, ValidationError
from pymongo import ReturnDocument

from controller_sets.controller import ControllerSet
from controller_sets.db.nosql.mongo.model import MongoModel
from controller_sets.exceptions import ConfigurationError


class ProductSchema(BaseModel):
    name: str
    price: float = Field(ge=0)
    category: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), alias="createdAt")

    model_config = {"populate_by_name": True}


@pytest.fixture
def cursor():
    cur = MagicMock()
    cur.sort.return_value = cur
    cur.skip.return_value = cur
    cur.limit.return_value = cur
    cur.to_list = AsyncMock(return_value=[{"_id": ObjectId(), "name": "Laptop"}])
    return cur


@pytest.fixture
def collection(cursor):
    col = Mock()
    col.find = Mock(return_value=cursor)
    col.find_one = AsyncMock(return_value=None)
    col.find_one_and_update = AsyncMock()
    col.insert_one = AsyncMock()
    col.delete_one = AsyncMock(return_value=Mock(deleted_count=1))
    col.count_documents = AsyncMock(return_value=7)
    return col


@pytest.fixture
def model(collection):
    return MongoModel("products", ProductSchema, database={"products": collection})


@pytest.fixture
def raw_model(collection):
    return MongoModel("products", database={"products": collection})


@pytest.mark.nosql
@pytest.mark.asyncio
class TestMongoModel:
    async def test_find_applies_sort_skip_limit(self, model, collection, cursor):
        rows = await model.find({"category": "home"}, sort={"createdAt": -1}, skip=20, limit=10)

        collection.find.assert_called_once_with({"category": "home"})
        cursor.sort.assert_called_once_with([("createdAt", -1)])
        cursor.skip.assert_called_once_with(20)
        cursor.limit.assert_called_once_with(10)
        assert rows[0]["name"] == "Laptop"

    async def test_find_without_options(self, model, cursor):
        await model.find({})

        cursor.sort.assert_not_called()
        cursor.skip.assert_not_called()
        cursor.limit.assert_not_called()
        cursor.to_list.assert_awaited_once_with(length=None)

    async def test_count_documents(self, model, collection):
        assert await model.count_documents({"category": "home"}) == 7
        collection.count_documents.assert_awaited_once_with({"category": "home"})

    async def test_find_by_id_converts_to_object_id(self, model, collection):
        oid = ObjectId()

        await model.find_by_id(str(oid))

        collection.find_one.assert_awaited_once_with({"_id": oid})

    async def test_create_validates_and_applies_defaults(self, model, collection):
        oid = ObjectId()
        collection.insert_one.return_value = Mock(inserted_id=oid)

        doc = await model.create({"name": "Chair", "price": "49.5", "unknown": "dropped"})

        stored = collection.insert_one.await_args.args[0]
        assert stored["name"] == "Chair"
        assert stored["price"] == 49.5
        assert "createdAt" in stored
        assert "unknown" not in stored
        assert doc["_id"] == oid

    async def test_create_rejects_invalid_body(self, model, collection):
        with pytest.raises(ValidationError):
            await model.create({"price": -1})

        collection.insert_one.assert_not_awaited()

    async def test_create_without_schema_stores_as_given(self, raw_model, collection):
        collection.insert_one.return_value = Mock(inserted_id=ObjectId())

        doc = await raw_model.create({"anything": [1, 2]})

        assert doc["anything"] == [1, 2]

    async def test_update_sets_only_sent_keys(self, model, collection):
        oid = ObjectId()
        collection.find_one.return_value = {
            "_id": oid,
            "name": "Chair",
            "price": 10.0,
            "createdAt": datetime(2024, 1, 1, tzinfo=timezone.utc),
        }
        collection.find_one_and_update.return_value = {"_id": oid, "name": "Chair", "price": 12.0}

        result = await model.update_by_id(str(oid), {"price": "12"})

        collection.find_one_and_update.assert_awaited_once_with(
            {"_id": oid},
            {"$set": {"price": 12.0}},
            return_document=ReturnDocument.AFTER,
        )
        assert result["price"] == 12.0

    async def test_update_validates_merged_document(self, model, collection):
        oid = ObjectId()
        collection.find_one.return_value = {"_id": oid, "name": "Chair", "price": 10.0}

        with pytest.raises(ValidationError):
            await model.update_by_id(str(oid), {"price": -5})

        collection.find_one_and_update.assert_not_awaited()

    async def test_update_missing_document(self, model, collection):
        collection.find_one.return_value = None

        assert await model.update_by_id(str(ObjectId()), {"price": 1}) is None

    async def test_update_with_no_known_keys_returns_current(self, model, collection):
        oid = ObjectId()
        current = {"_id": oid, "name": "Chair", "price": 10.0}
        collection.find_one.return_value = current

        result = await model.update_by_id(str(oid), {"colour": "red"})

        assert result == current
        collection.find_one_and_update.assert_not_awaited()

    async def test_delete(self, model, collection):
        oid = ObjectId()

        assert await model.delete_by_id(str(oid)) == 1
        collection.delete_one.assert_awaited_once_with({"_id": oid})


@pytest.mark.nosql
def test_id_validation():
    assert MongoModel.is_valid_id(str(ObjectId()))
    assert not MongoModel.is_valid_id("0123456789")
    assert not MongoModel.is_valid_id("z" * 24)
    assert not MongoModel.is_valid_id(None)


@pytest.mark.nosql
def test_field_names_follow_schema_aliases(model, raw_model):
    assert model.field_names == frozenset({"_id", "name", "price", "category", "createdAt"})
    assert raw_model.field_names is None


@pytest.mark.nosql
def test_controller_rejects_fields_outside_schema(model):
    ControllerSet(model, order_by="-createdAt", query=["category"], search="name")

    with pytest.raises(ConfigurationError):
        ControllerSet(model, query=["brand"])


@pytest.mark.nosql
def test_collection_requires_initialized_client():
    with pytest.raises(RuntimeError, match="not initialized"):
        MongoModel("products").collection
