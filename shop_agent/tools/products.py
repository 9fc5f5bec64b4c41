"""
Product search tool.

Matches a query against product names and categories.
"""

import json
import logging

from ..models import Product, StoreSnapshot

logger = logging.getLogger(__name__)

NO_PRODUCTS_FOUND = "未找到匹配该查询的商品。"


def search_products(query: str, products: tuple[Product, ...]) -> list[Product]:
    """
    Case-insensitive substring search over product name and category.

    Args:
        query: Product name or category fragment
        products: Catalog to search

    Returns:
        Matching products in catalog order
    """
    needle = query.lower()
    return [
        p
        for p in products
        if needle in p.name.lower() or needle in p.category.lower()
    ]


def format_result_for_llm(results: list[Product]) -> str:
    """Serialize matches as JSON, or the no-results sentinel."""
    if not results:
        return NO_PRODUCTS_FOUND
    return json.dumps([p.to_dict() for p in results], ensure_ascii=False)


def _handle_search_products(params: dict, snapshot: StoreSnapshot) -> str:
    query = str(params.get("query") or "")
    results = search_products(query, snapshot.products)
    logger.debug("Product search for %r: %d results", query, len(results))
    return format_result_for_llm(results)


# Register tool with the registry
def _register():
    from .registry import ToolRegistry

    ToolRegistry.register(
        name="searchProducts",
        description="Find products available in the store.",
        parameters={"query": "The product name or category to search for."},
        handler=_handle_search_products,
        display_name="正在搜索商品库",
    )


_register()
