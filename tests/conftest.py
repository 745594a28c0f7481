# tests/conftest.py
import mongomock
import pytest
from fastapi.testclient import TestClient

from storefront.config import Settings
from storefront.database import MemoryStore, MongoStore
from storefront.main import create_app


@pytest.fixture(params=["memory", "mongo"])
def store(request):
    if request.param == "memory":
        return MemoryStore()
    return MongoStore(mongomock.MongoClient()["storefront_test"])


@pytest.fixture
def client(store):
    app = create_app(Settings(), store)
    # entering the context runs the lifespan, which seeds the catalog
    with TestClient(app) as c:
        yield c


@pytest.fixture
def products(client):
    return {p["name"]: p for p in client.get("/api/products").json()}


@pytest.fixture
def headphones(products):
    return products["Wireless Headphones"]
