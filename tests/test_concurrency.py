# tests/test_concurrency.py
import asyncio

import httpx
import mongomock
from pymongo.errors import DuplicateKeyError

from storefront.config import Settings
from storefront.database import MemoryStore, MongoStore
from storefront.logic import seed_products_logic
from storefront.main import create_app


async def _add_task(ac, product_id):
    return await ac.post("/api/cart", json={"productId": product_id, "qty": 1})


async def _hammer_cart(store, n, existing_line=False):
    # ASGITransport does not run the lifespan, so seed by hand
    await seed_products_logic(store)
    app = create_app(Settings(), store)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        pid = (await ac.get("/api/products")).json()[0]["id"]
        if existing_line:
            await _add_task(ac, pid)
        results = await asyncio.gather(*[_add_task(ac, pid) for _ in range(n)])
        cart = (await ac.get("/api/cart")).json()
    return results, cart


def test_concurrent_adds_do_not_lose_updates():
    results, cart = asyncio.run(_hammer_cart(MemoryStore(), 25))
    assert all(r.status_code == 201 for r in results)
    assert len(cart["items"]) == 1
    assert cart["items"][0]["qty"] == 25


def test_concurrent_adds_mongo():
    store = MongoStore(mongomock.MongoClient()["storefront_concurrency"])
    # every request lands on the same line, so each one is a concurrent $inc
    results, cart = asyncio.run(_hammer_cart(store, 20, existing_line=True))
    assert all(r.status_code == 201 for r in results)
    assert len(cart["items"]) == 1
    assert cart["items"][0]["qty"] == 21


def test_mongo_upsert_race_retries_as_increment(monkeypatch):
    store = MongoStore(mongomock.MongoClient()["storefront_upsert_race"])
    [product] = asyncio.run(store.insert_products([{"name": "Desk Lamp", "price": 39.99}]))

    # another writer inserted the line between our lookup and our insert
    store.db["cartitem"].insert_one({
        "productId": product.id, "name": product.name, "price": product.price, "qty": 3,
    })
    real_upsert = store._upsert_cart_line
    calls = []

    def losing_upsert(p, qty):
        calls.append(qty)
        if len(calls) == 1:
            raise DuplicateKeyError("E11000 duplicate key error collection: cartitem")
        return real_upsert(p, qty)

    monkeypatch.setattr(store, "_upsert_cart_line", losing_upsert)

    item = asyncio.run(store.add_cart_item(product, 2))
    assert calls == [2, 2]
    assert item.qty == 5
    assert store.db["cartitem"].count_documents({}) == 1
