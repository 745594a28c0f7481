# storefront/models.py
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Record(BaseModel):
    # snake_case in Python, camelCase on the wire
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Product(Record):
    id: str
    name: str
    price: float = Field(..., ge=0)
    description: Optional[str] = None
    image: Optional[str] = None
    stock: int = 100


class CartItem(Record):
    id: str
    product_id: str
    name: str
    price: float = Field(..., ge=0)
    qty: int = Field(1, ge=1)
    created_at: datetime = Field(default_factory=_utcnow)


class CartLine(CartItem):
    """A cart item as shown in the cart view, with the live product attached."""
    product: Optional[Product] = None


class CartView(Record):
    items: List[CartLine] = Field(default_factory=list)
    total: float = 0


class OrderItem(Record):
    product_id: Optional[str] = None
    name: Optional[str] = None
    price: float
    qty: int


class Order(Record):
    id: str
    order_id: str
    customer_name: str
    customer_email: str
    items: List[OrderItem]
    total: float
    timestamp: datetime = Field(default_factory=_utcnow)


class Receipt(Record):
    order_id: str
    customer_name: str
    customer_email: str
    items: List[OrderItem]
    total: float
    timestamp: datetime

    @classmethod
    def from_order(cls, order: Order) -> "Receipt":
        return cls(
            order_id=order.order_id,
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            items=order.items,
            total=order.total,
            timestamp=order.timestamp,
        )


class RemovedItem(Record):
    message: str
    item: CartItem
