# storefront/database.py
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi.concurrency import run_in_threadpool
from pymongo import MongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError

from .core import new_id
from .errors import DuplicateOrderError
from .models import CartItem, Order, Product

logger = logging.getLogger(__name__)

# The cart is a single shared resource: every client sees and mutates the
# same lines. There is no per-user or per-session partitioning.


class Store:
    """Interface implemented by the storage backends."""

    name = "abstract"

    async def ping(self) -> bool:
        raise NotImplementedError

    # catalog
    async def count_products(self) -> int:
        raise NotImplementedError

    async def insert_products(self, docs: Iterable[Dict[str, Any]]) -> List[Product]:
        raise NotImplementedError

    async def list_products(self) -> List[Product]:
        raise NotImplementedError

    async def get_product(self, product_id: str) -> Optional[Product]:
        raise NotImplementedError

    # cart
    async def list_cart_items(self) -> List[CartItem]:
        raise NotImplementedError

    async def get_cart_item(self, item_id: str) -> Optional[CartItem]:
        raise NotImplementedError

    async def add_cart_item(self, product: Product, qty: int) -> CartItem:
        """Increment the line for ``product`` by ``qty`` or create it."""
        raise NotImplementedError

    async def update_cart_item_qty(self, item_id: str, qty: int) -> Optional[CartItem]:
        raise NotImplementedError

    async def delete_cart_item(self, item_id: str) -> Optional[CartItem]:
        raise NotImplementedError

    async def clear_cart(self) -> int:
        raise NotImplementedError

    # orders
    async def place_order(self, order: Order) -> Order:
        """Persist ``order`` and empty the cart."""
        raise NotImplementedError

    async def list_orders(self) -> List[Order]:
        raise NotImplementedError


class MemoryStore(Store):
    """Process-local store. Holds everything in dicts, guarded by per-key locks."""

    name = "memory"

    def __init__(self):
        self.products: Dict[str, Product] = {}
        self.cart: Dict[str, CartItem] = {}
        self.orders: Dict[str, Order] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _get_lock(self, key: str) -> asyncio.Lock:
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    async def ping(self) -> bool:
        return True

    async def count_products(self) -> int:
        return len(self.products)

    async def insert_products(self, docs):
        out = []
        for doc in docs:
            pid = new_id()
            self.products[pid] = Product(id=pid, **doc)
            out.append(self.products[pid])
        return out

    async def list_products(self):
        return list(self.products.values())

    async def get_product(self, product_id):
        return self.products.get(product_id)

    async def list_cart_items(self):
        return [it.model_copy() for it in self.cart.values()]

    async def get_cart_item(self, item_id):
        it = self.cart.get(item_id)
        return it.model_copy() if it else None

    async def add_cart_item(self, product, qty):
        async with self._get_lock("cart"):
            for it in self.cart.values():
                if it.product_id == product.id:
                    it.qty += qty
                    return it.model_copy()
            item = CartItem(
                id=new_id(),
                product_id=product.id,
                name=product.name,
                price=product.price,
                qty=qty,
            )
            self.cart[item.id] = item
            return item.model_copy()

    async def update_cart_item_qty(self, item_id, qty):
        async with self._get_lock("cart"):
            it = self.cart.get(item_id)
            if it is None:
                return None
            it.qty = qty
            return it.model_copy()

    async def delete_cart_item(self, item_id):
        async with self._get_lock("cart"):
            return self.cart.pop(item_id, None)

    async def clear_cart(self):
        async with self._get_lock("cart"):
            n = len(self.cart)
            self.cart.clear()
            return n

    async def place_order(self, order):
        # order insert and cart clear happen under one lock
        async with self._get_lock("cart"):
            if order.order_id in self.orders:
                raise DuplicateOrderError(f"duplicate orderId {order.order_id}")
            self.orders[order.order_id] = order
            self.cart.clear()
            return order

    async def list_orders(self):
        # append-only, so reverse insertion order is newest first
        return list(reversed(list(self.orders.values())))


def _oid(value: str) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _from_doc(model, doc: Optional[Dict[str, Any]]):
    if doc is None:
        return None
    data = dict(doc)
    data["id"] = str(data.pop("_id"))
    return model.model_validate(data)


class MongoStore(Store):
    """MongoDB backed store.

    Collections: ``product``, ``cartitem`` and ``order``. pymongo is blocking,
    so every call is pushed to the threadpool.

    ``place_order`` is two separate writes (insert order, clear cart). If the
    process dies between them the order is kept and the cart stays full.
    """

    name = "mongo"

    def __init__(self, db):
        self.db = db
        self.db["order"].create_index("orderId", unique=True)
        self.db["cartitem"].create_index("productId", unique=True)

    @classmethod
    def from_uri(cls, uri: str, db_name: str) -> "MongoStore":
        client = MongoClient(uri, tz_aware=True, serverSelectionTimeoutMS=5000)
        logger.info("Using MongoDB database %r", db_name)
        return cls(client[db_name])

    async def ping(self):
        await run_in_threadpool(self.db.command, "ping")
        return True

    async def count_products(self):
        return await run_in_threadpool(self.db["product"].count_documents, {})

    async def insert_products(self, docs):
        docs = [dict(d, _id=ObjectId()) for d in docs]
        await run_in_threadpool(self.db["product"].insert_many, docs)
        return [_from_doc(Product, d) for d in docs]

    async def list_products(self):
        docs = await run_in_threadpool(lambda: list(self.db["product"].find()))
        return [_from_doc(Product, d) for d in docs]

    async def get_product(self, product_id):
        oid = _oid(product_id)
        if oid is None:
            return None
        doc = await run_in_threadpool(self.db["product"].find_one, {"_id": oid})
        return _from_doc(Product, doc)

    async def list_cart_items(self):
        docs = await run_in_threadpool(lambda: list(self.db["cartitem"].find().sort("_id", 1)))
        return [_from_doc(CartItem, d) for d in docs]

    async def get_cart_item(self, item_id):
        oid = _oid(item_id)
        if oid is None:
            return None
        doc = await run_in_threadpool(self.db["cartitem"].find_one, {"_id": oid})
        return _from_doc(CartItem, doc)

    def _upsert_cart_line(self, product: Product, qty: int):
        return self.db["cartitem"].find_one_and_update(
            {"productId": product.id},
            {
                "$inc": {"qty": qty},
                "$setOnInsert": {
                    "name": product.name,
                    "price": product.price,
                    "createdAt": datetime.now(timezone.utc),
                },
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )

    async def add_cart_item(self, product, qty):
        try:
            doc = await run_in_threadpool(self._upsert_cart_line, product, qty)
        except DuplicateKeyError:
            # two upserts raced on insert; the line exists now, so $inc it
            doc = await run_in_threadpool(self._upsert_cart_line, product, qty)
        return _from_doc(CartItem, doc)

    async def update_cart_item_qty(self, item_id, qty):
        oid = _oid(item_id)
        if oid is None:
            return None
        doc = await run_in_threadpool(
            self.db["cartitem"].find_one_and_update,
            {"_id": oid},
            {"$set": {"qty": qty}},
            return_document=ReturnDocument.AFTER,
        )
        return _from_doc(CartItem, doc)

    async def delete_cart_item(self, item_id):
        oid = _oid(item_id)
        if oid is None:
            return None
        doc = await run_in_threadpool(self.db["cartitem"].find_one_and_delete, {"_id": oid})
        return _from_doc(CartItem, doc)

    async def clear_cart(self):
        res = await run_in_threadpool(self.db["cartitem"].delete_many, {})
        return res.deleted_count

    async def place_order(self, order):
        doc = order.model_dump(by_alias=True, exclude={"id"})
        try:
            res = await run_in_threadpool(self.db["order"].insert_one, doc)
        except DuplicateKeyError:
            raise DuplicateOrderError(f"duplicate orderId {order.order_id}")
        await self.clear_cart()
        return order.model_copy(update={"id": str(res.inserted_id)})

    async def list_orders(self):
        docs = await run_in_threadpool(
            lambda: list(self.db["order"].find().sort([("timestamp", -1), ("_id", -1)]))
        )
        return [_from_doc(Order, d) for d in docs]


def make_store(settings) -> Store:
    if settings.mongo_uri:
        return MongoStore.from_uri(settings.mongo_uri, settings.mongo_db)
    logger.info("MONGO_URI not set, using in-memory store")
    return MemoryStore()
