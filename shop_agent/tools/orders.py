"""
Order status lookup tool.
"""

import json
import logging
from typing import Optional

from ..models import Order, StoreSnapshot

logger = logging.getLogger(__name__)


def get_order(order_id: str, orders: tuple[Order, ...]) -> Optional[Order]:
    """Find an order by exact id."""
    return next((o for o in orders if o.id == order_id), None)


def format_result_for_llm(order_id: str, order: Optional[Order]) -> str:
    """Serialize the order record, or a not-found message naming the id."""
    if order is None:
        return f"未找到订单 {order_id}。请检查订单号是否正确。"
    return json.dumps(order.to_dict(), ensure_ascii=False)


def _handle_get_order_status(params: dict, snapshot: StoreSnapshot) -> str:
    order_id = str(params.get("orderId") or "")
    order = get_order(order_id, snapshot.orders)
    logger.debug("Order lookup %s: %s", order_id, "found" if order else "missing")
    return format_result_for_llm(order_id, order)


def _register():
    from .registry import ToolRegistry

    ToolRegistry.register(
        name="getOrderStatus",
        description="Retrieve the status and details of an order using its ID.",
        parameters={"orderId": "The order ID (e.g., ORD-1001)."},
        handler=_handle_get_order_status,
        display_name="正在查询订单状态",
    )


_register()
