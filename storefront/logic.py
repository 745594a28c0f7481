# storefront/logic.py
import logging
import math
from typing import List

from .core import (
    AddToCartIn, UpdateCartIn, CheckoutIn, DEFAULT_PRODUCTS, MAX_QTY,
    compute_total, new_id, new_order_id
)
from .database import Store
from .errors import DuplicateOrderError, NotFoundError, ValidationError
from .models import (
    CartItem, CartLine, CartView, Order, OrderItem, Product, Receipt, RemovedItem
)

# This file contains the core logic for all API endpoints.

logger = logging.getLogger(__name__)

ORDER_ID_ATTEMPTS = 3


# Catalog
async def seed_products_logic(store: Store) -> int:
    if await store.count_products() > 0:
        return 0
    seeded = await store.insert_products(DEFAULT_PRODUCTS)
    logger.info("Seeded %d products", len(seeded))
    return len(seeded)


async def list_products_logic(store: Store) -> List[Product]:
    return await store.list_products()


async def get_product_logic(store: Store, product_id: str) -> Product:
    p = await store.get_product(product_id)
    if not p:
        raise NotFoundError("Product not found")
    return p


# Cart
async def cart_add_logic(store: Store, payload: AddToCartIn) -> CartItem:
    if not payload.product_id or payload.qty is None:
        raise ValidationError("productId and qty are required")
    if payload.qty < 1 or payload.qty > MAX_QTY:
        raise ValidationError("Valid quantity required")
    product = await store.get_product(payload.product_id)
    if not product:
        raise NotFoundError("Product not found")
    item = await store.add_cart_item(product, payload.qty)
    logger.info("Cart: %s x%d (line qty now %d)", product.name, payload.qty, item.qty)
    return item


async def view_cart_logic(store: Store) -> CartView:
    items = await store.list_cart_items()
    lines = []
    for it in items:
        product = await store.get_product(it.product_id)
        lines.append(CartLine(**it.model_dump(), product=product))
    return CartView(items=lines, total=compute_total(items))


async def cart_update_logic(store: Store, item_id: str, payload: UpdateCartIn) -> CartItem:
    if payload.qty is None or payload.qty < 1 or payload.qty > MAX_QTY:
        raise ValidationError("Valid quantity required")
    item = await store.update_cart_item_qty(item_id, payload.qty)
    if not item:
        raise NotFoundError("Cart item not found")
    return item


async def cart_remove_logic(store: Store, item_id: str) -> RemovedItem:
    item = await store.delete_cart_item(item_id)
    if not item:
        raise NotFoundError("Cart item not found")
    logger.info("Cart: removed %s", item.name)
    return RemovedItem(message="Item removed from cart", item=item)


# Checkout
async def checkout_logic(store: Store, payload: CheckoutIn) -> Receipt:
    if not payload.cart_items:
        raise ValidationError("Cart is empty")
    name = (payload.customer_name or "").strip()
    email = (payload.customer_email or "").strip()
    if not name or not email:
        raise ValidationError("Customer name and email required")
    for it in payload.cart_items:
        if not 1 <= it.qty <= MAX_QTY or not math.isfinite(it.price) or it.price < 0:
            raise ValidationError("Invalid cart item")

    # The total is taken from the items the client sent, not from the
    # stored cart.
    items = [
        OrderItem(product_id=it.product_id, name=it.name, price=it.price, qty=it.qty)
        for it in payload.cart_items
    ]
    total = compute_total(items)

    for attempt in range(ORDER_ID_ATTEMPTS):
        order = Order(
            id=new_id(),
            order_id=new_order_id(),
            customer_name=name,
            customer_email=email,
            items=items,
            total=total,
        )
        try:
            order = await store.place_order(order)
            break
        except DuplicateOrderError:
            logger.warning("orderId collision on %s, regenerating", order.order_id)
            if attempt == ORDER_ID_ATTEMPTS - 1:
                raise

    logger.info("Order %s placed by %s: %d items, total %.2f",
                order.order_id, email, len(items), total)
    return Receipt.from_order(order)


async def list_orders_logic(store: Store) -> List[Order]:
    return await store.list_orders()
