"""
Root conftest.py for controller-sets tests.

- registers custom markers
- isolates tests from S3_*/MONGO_* variables of the host environment
- shared model and storage fixtures
"""

from __future__ import annotations

import pytest

from controller_sets.db.nosql.mongo.settings import get_mongo_settings
from controller_sets.storage.backends.memory import MemoryBackend
from controller_sets.storage.settings import get_s3_settings
from tests.unit.utils.fakes import FakeModel

_S3_ENV = ("S3_ENDPOINT", "S3_SPACES_KEY", "S3_SPACES_SECRET", "S3_BUCKET_NAME", "S3_REGION")


def pytest_configure(config):
    for name, desc in [
        ("storage", "Object storage and upload tests"),
        ("nosql", "MongoDB model tests"),
    ]:
        config.addinivalue_line("markers", f"{name}: {desc}")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    # Settings read an optional .env from the cwd
    monkeypatch.chdir(tmp_path)
    for name in _S3_ENV + ("MONGO_URL", "MONGO_DB", "LOG_LEVEL", "LOG_FORMAT", "APP_ENV"):
        monkeypatch.delenv(name, raising=False)
    get_s3_settings.cache_clear()
    get_mongo_settings.cache_clear()
    yield
    get_s3_settings.cache_clear()
    get_mongo_settings.cache_clear()


@pytest.fixture
def s3_env(monkeypatch):
    values = {
        "S3_ENDPOINT": "https://nyc3.digitaloceanspaces.com",
        "S3_SPACES_KEY": "test-key",
        "S3_SPACES_SECRET": "test-secret",
        "S3_BUCKET_NAME": "test-bucket",
    }
    for k, v in values.items():
        monkeypatch.setenv(k, v)
    get_s3_settings.cache_clear()
    return values


@pytest.fixture
def memory_storage() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def products() -> list[dict]:
    return [
        {"name": "Laptop", "category": "electronics", "price": 999, "createdAt": "2024-01-03"},
        {"name": "Mouse", "category": "electronics", "price": 29, "createdAt": "2024-01-01"},
        {"name": "Desk Lamp", "category": "home", "price": 45, "createdAt": "2024-01-02"},
    ]


@pytest.fixture
def product_model(products) -> FakeModel:
    return FakeModel(products, required=("name",))
