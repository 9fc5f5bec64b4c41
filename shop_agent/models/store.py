"""
Data models for the shop's business data.

Products, orders and policies are held in memory and handed to the tool
registry as a single ``StoreSnapshot``. Snapshots are replaced whole,
never edited in place.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Optional


class OrderStatus(Enum):
    """Fulfilment state of an order."""

    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    RETURNED = "Returned"


@dataclass(frozen=True)
class Product:
    """A catalog entry."""

    id: str
    name: str
    price: float
    category: str
    description: str
    stock: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "category": self.category,
            "description": self.description,
            "stock": self.stock,
        }


@dataclass(frozen=True)
class Order:
    """A customer order. ``items`` holds product ids."""

    id: str
    customer_name: str
    items: tuple[str, ...]
    status: OrderStatus
    estimated_delivery: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys the model sees."""
        data: dict[str, Any] = {
            "id": self.id,
            "customerName": self.customer_name,
            "items": list(self.items),
            "status": self.status.value,
        }
        if self.estimated_delivery is not None:
            data["estimatedDelivery"] = self.estimated_delivery
        return data


@dataclass(frozen=True)
class Policy:
    """A knowledge-base entry: a topic and its policy text."""

    topic: str
    content: str

    def to_dict(self) -> dict[str, Any]:
        return {"topic": self.topic, "content": self.content}


@dataclass(frozen=True)
class StoreSnapshot:
    """Read-only view of policies, products and orders at one point in time."""

    policies: tuple[Policy, ...] = field(default_factory=tuple)
    products: tuple[Product, ...] = field(default_factory=tuple)
    orders: tuple[Order, ...] = field(default_factory=tuple)

    @classmethod
    def build(
        cls,
        policies: Iterable[Policy] = (),
        products: Iterable[Product] = (),
        orders: Iterable[Order] = (),
    ) -> "StoreSnapshot":
        return cls(
            policies=tuple(policies),
            products=tuple(products),
            orders=tuple(orders),
        )

    @property
    def policy_topics(self) -> list[str]:
        return [p.topic for p in self.policies]

    def with_policies(self, policies: Iterable[Policy]) -> "StoreSnapshot":
        """Return a new snapshot with the policy set replaced."""
        return replace(self, policies=tuple(policies))

    def with_products(self, products: Iterable[Product]) -> "StoreSnapshot":
        """Return a new snapshot with the product catalog replaced."""
        return replace(self, products=tuple(products))

    def with_orders(self, orders: Iterable[Order]) -> "StoreSnapshot":
        """Return a new snapshot with the order book replaced."""
        return replace(self, orders=tuple(orders))
