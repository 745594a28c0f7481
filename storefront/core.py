# storefront/core.py
import time
import uuid
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RequestBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AddToCartIn(RequestBody):
    product_id: Optional[str] = None
    qty: Optional[int] = None


class UpdateCartIn(RequestBody):
    qty: Optional[int] = None


class CheckoutItemIn(RequestBody):
    # extra keys sent back from the cart view (id, createdAt, product) are ignored
    product_id: Optional[str] = None
    name: Optional[str] = None
    price: float
    qty: int


class CheckoutIn(RequestBody):
    cart_items: Optional[List[CheckoutItemIn]] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None


# Seeded into an empty catalog at startup
DEFAULT_PRODUCTS: List[Dict[str, Any]] = [
    {"name": "Wireless Headphones", "price": 79.99, "description": "Premium sound quality", "image": "🎧", "stock": 50},
    {"name": "Smart Watch", "price": 199.99, "description": "Track your fitness", "image": "⌚", "stock": 30},
    {"name": "Laptop Stand", "price": 49.99, "description": "Ergonomic design", "image": "💻", "stock": 100},
    {"name": "USB-C Cable", "price": 12.99, "description": "Fast charging", "image": "🔌", "stock": 200},
    {"name": "Wireless Mouse", "price": 29.99, "description": "Smooth scrolling", "image": "🖱️", "stock": 75},
    {"name": "Mechanical Keyboard", "price": 89.99, "description": "RGB backlight", "image": "⌨️", "stock": 40},
    {"name": "Desk Lamp", "price": 39.99, "description": "Adjustable brightness", "image": "💡", "stock": 60},
    {"name": "Phone Case", "price": 19.99, "description": "Protective & stylish", "image": "📱", "stock": 150},
]

ORDER_ID_PATTERN = r"^ORD-\d{13}-[0-9A-F]{9}$"

# Largest quantity accepted for a single cart line or order line
MAX_QTY = 10_000

_CENT = Decimal("0.01")


def new_id() -> str:
    return uuid.uuid4().hex


def new_order_id(now_ms: Optional[int] = None) -> str:
    """Human readable order reference: ``ORD-<epoch ms>-<random token>``.

    The random token keeps ids unique when two checkouts land in the same
    millisecond.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    token = uuid.uuid4().hex[:9].upper()
    return f"ORD-{now_ms}-{token}"


def compute_total(items: Iterable[Any]) -> float:
    """Sum of price * qty over anything with ``price`` and ``qty`` attributes,
    rounded half-up to cents."""
    with localcontext() as ctx:
        ctx.prec = 60
        total = Decimal("0")
        for it in items:
            total += Decimal(str(it.price)) * it.qty
        return float(total.quantize(_CENT, rounding=ROUND_HALF_UP))
