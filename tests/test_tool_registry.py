"""
Tests for the Tool Registry.

Tests cover tool registration, retrieval, display labels and execution.
"""

import pytest

from shop_agent.errors import UnknownToolError
from shop_agent.tools import DEFAULT_DISPLAY_NAME, ToolRegistry


class TestToolRegistry:
    """Tests for the ToolRegistry class."""

    def test_registry_has_store_tools(self):
        """Store tools are registered on import."""
        tools = ToolRegistry.all_tools()

        assert "searchProducts" in tools
        assert "getOrderStatus" in tools
        assert "getStorePolicy" in tools

    def test_get_existing_tool(self):
        tool = ToolRegistry.get("getOrderStatus")

        assert tool is not None
        assert tool.name == "getOrderStatus"
        assert "orderId" in tool.parameters

    def test_get_nonexistent_tool(self):
        assert ToolRegistry.get("nonexistent_tool") is None

    def test_all_tools_returns_copy(self):
        """all_tools returns a copy, not the registry's own dict."""
        tools = ToolRegistry.all_tools()
        tools["injected"] = None

        assert "injected" not in ToolRegistry.all_tools()

    def test_display_names(self):
        assert ToolRegistry.display_name("searchProducts") == "正在搜索商品库"
        assert ToolRegistry.display_name("getOrderStatus") == "正在查询订单状态"
        assert ToolRegistry.display_name("getStorePolicy") == "正在检索服务政策"

    def test_display_name_fallback(self):
        """Unregistered names get the generic label."""
        assert ToolRegistry.display_name("deleteAllOrders") == DEFAULT_DISPLAY_NAME
        assert DEFAULT_DISPLAY_NAME == "正在处理请求"

    def test_execute_runs_handler(self, snapshot):
        result = ToolRegistry.execute("getOrderStatus", {"orderId": "ORD-1002"}, snapshot)

        assert "ORD-1002" in result
        assert "李四" in result

    def test_execute_unknown_tool_raises(self, snapshot):
        with pytest.raises(UnknownToolError) as exc_info:
            ToolRegistry.execute("deleteAllOrders", {}, snapshot)

        assert exc_info.value.name == "deleteAllOrders"
        assert "未知函数" in str(exc_info.value)
