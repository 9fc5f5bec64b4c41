"""
Data models for Shop Agent.
"""

from .store import (
    OrderStatus,
    Product,
    Order,
    Policy,
    StoreSnapshot,
)
from .seed import (
    MOCK_PRODUCTS,
    MOCK_ORDERS,
    KNOWLEDGE_BASE,
    demo_snapshot,
)

__all__ = [
    # Store records
    "OrderStatus",
    "Product",
    "Order",
    "Policy",
    "StoreSnapshot",
    # Demo data
    "MOCK_PRODUCTS",
    "MOCK_ORDERS",
    "KNOWLEDGE_BASE",
    "demo_snapshot",
]
