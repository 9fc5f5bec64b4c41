"""Tests for session, turn and store endpoints."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from shop_agent.api.main import app
from shop_agent.api.sessions import SessionManager, get_session_manager
from shop_agent.config import config
from shop_agent.errors import ProviderTransportError
from shop_agent.models import demo_snapshot
from shop_agent.orchestration.history import ToolCall
from shop_agent.providers import ProviderKind

from conftest import ScriptedAdapter, final_result, tool_result

client = TestClient(app)


@pytest.fixture(autouse=True)
def session_manager():
    """Fresh session manager per test."""
    manager = SessionManager(store=demo_snapshot())
    app.dependency_overrides[get_session_manager] = lambda: manager
    yield manager
    app.dependency_overrides.clear()


@pytest.fixture
def no_tool_delay(monkeypatch):
    monkeypatch.setattr(config.agent, "tool_delay", 0)


def create_session_with(adapter: ScriptedAdapter, provider: str = "deepseek") -> str:
    with patch("shop_agent.agent.create_adapter", return_value=adapter):
        response = client.post("/v1/sessions", json={"provider": provider, "api_key": "k"})
    assert response.status_code == 201
    return response.json()["session_id"]


class TestCreateSession:
    """Tests for POST /v1/sessions."""

    def test_create_without_key(self):
        response = client.post("/v1/sessions", json={"provider": "gemini"})

        assert response.status_code == 201
        data = response.json()
        assert data["session_id"].startswith("sess-")
        assert data["provider"] == "gemini"
        assert data["has_credential"] is False

    def test_create_with_key(self):
        session_id = create_session_with(ScriptedAdapter([]))

        data = client.get(f"/v1/sessions/{session_id}").json()
        assert data["has_credential"] is True
        assert data["provider"] == "deepseek"

    def test_unknown_provider_rejected(self):
        response = client.post("/v1/sessions", json={"provider": "claude"})

        assert response.status_code == 400

    def test_get_unknown_session(self):
        assert client.get("/v1/sessions/sess-missing").status_code == 404


class TestTurns:
    """Tests for POST /v1/sessions/{id}/turns."""

    def test_missing_key_returns_config_message(self):
        session_id = client.post("/v1/sessions", json={"provider": "deepseek"}).json()["session_id"]

        response = client.post(f"/v1/sessions/{session_id}/turns", json={"message": "你好"})

        assert response.status_code == 200
        data = response.json()
        assert data["reply"].startswith("配置错误")
        assert data["dispatches"] == 0

    def test_turn_with_tools(self, no_tool_delay):
        adapter = ScriptedAdapter(
            [
                tool_result(
                    ToolCall(name="getOrderStatus", raw_arguments='{"orderId": "ORD-1001"}', id="c1")
                ),
                final_result("您的订单已发货。"),
            ]
        )
        session_id = create_session_with(adapter)

        response = client.post(
            f"/v1/sessions/{session_id}/turns", json={"message": "ORD-1001 到哪了？"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["reply"] == "您的订单已发货。"
        assert data["statuses"] == ["正在查询订单状态..."]
        assert data["dispatches"] == 2
        assert data["tools_used"] == ["getOrderStatus"]
        assert data["budget_exhausted"] is False

    def test_gemini_session_turn(self, no_tool_delay):
        adapter = ScriptedAdapter(
            [final_result("Hello!")], kind=ProviderKind.GEMINI, matches_by_position=True
        )
        session_id = create_session_with(adapter, provider="gemini")

        response = client.post(f"/v1/sessions/{session_id}/turns", json={"message": "hi"})

        assert response.json()["reply"] == "Hello!"

    def test_transport_error_returns_502(self):
        adapter = ScriptedAdapter([])

        async def failing_dispatch(history, policies, tracing=None):
            raise ProviderTransportError("DeepSeek", "Insufficient Balance", 402)

        adapter.dispatch = failing_dispatch
        session_id = create_session_with(adapter)

        response = client.post(f"/v1/sessions/{session_id}/turns", json={"message": "hi"})

        assert response.status_code == 502
        assert "402" in response.json()["detail"]

    def test_unexpected_error_closes_trace(self):
        adapter = ScriptedAdapter([])

        async def broken_dispatch(history, policies, tracing=None):
            raise RuntimeError("boom")

        adapter.dispatch = broken_dispatch
        session_id = create_session_with(adapter)

        with patch("shop_agent.api.routes.sessions.TracingContext") as mock_context_cls:
            with pytest.raises(RuntimeError, match="boom"):
                client.post(f"/v1/sessions/{session_id}/turns", json={"message": "hi"})

        mock_context_cls.return_value.end_trace.assert_called_once_with(
            output="boom", status="error"
        )

    def test_empty_message_rejected(self):
        session_id = client.post("/v1/sessions", json={}).json()["session_id"]

        response = client.post(f"/v1/sessions/{session_id}/turns", json={"message": ""})

        assert response.status_code == 400

    def test_unknown_session(self):
        response = client.post("/v1/sessions/sess-missing/turns", json={"message": "hi"})

        assert response.status_code == 404


class TestPolicies:
    """Tests for the policy endpoints."""

    def test_replace_policies_used_next_turn(self, no_tool_delay):
        adapter = ScriptedAdapter([final_result("ok")])
        session_id = create_session_with(adapter)

        response = client.put(
            f"/v1/sessions/{session_id}/policies",
            json={"policies": [{"topic": "会员积分", "content": "每100积分抵1元。"}]},
        )
        assert response.status_code == 200
        assert response.json()["policies"] == [{"topic": "会员积分", "content": "每100积分抵1元。"}]

        client.post(f"/v1/sessions/{session_id}/turns", json={"message": "积分？"})

        assert adapter.calls[0]["topics"] == ["会员积分"]

    def test_get_policies(self):
        session_id = client.post("/v1/sessions", json={}).json()["session_id"]

        data = client.get(f"/v1/sessions/{session_id}/policies").json()

        assert [p["topic"] for p in data["policies"]] == ["退货政策", "物流配送", "保修服务"]


class TestDeleteSession:
    """Tests for DELETE /v1/sessions/{id}."""

    def test_delete_closes_agent(self, session_manager):
        adapter = ScriptedAdapter([])
        session_id = create_session_with(adapter)

        assert client.delete(f"/v1/sessions/{session_id}").status_code == 204
        assert adapter.closed is True
        assert len(session_manager) == 0
        assert client.delete(f"/v1/sessions/{session_id}").status_code == 404


class TestStoreEndpoints:
    """Tests for /v1/store/*."""

    def test_list_products(self):
        data = client.get("/v1/store/products").json()

        assert [p["id"] for p in data["products"]] == ["p1", "p2", "p3", "p4"]

    def test_list_orders(self):
        orders = client.get("/v1/store/orders").json()["orders"]

        assert orders[0]["customer_name"] == "张三"
        assert orders[0]["status"] == "Shipped"
        assert orders[1]["estimated_delivery"] is None

    def test_list_policies(self):
        policies = client.get("/v1/store/policies").json()["policies"]

        assert len(policies) == 3
