"""
Shop Agent Tools Package

Available tools:
- searchProducts: Product search by name or category
- getOrderStatus: Order lookup by id
- getStorePolicy: Store policy lookup by topic
"""

from .registry import DEFAULT_DISPLAY_NAME, ToolDefinition, ToolRegistry
from .products import search_products, NO_PRODUCTS_FOUND
from .orders import get_order
from .policies import find_policy

__all__ = [
    "DEFAULT_DISPLAY_NAME",
    "ToolDefinition",
    "ToolRegistry",
    "search_products",
    "NO_PRODUCTS_FOUND",
    "get_order",
    "find_policy",
]
