"""Tests for the OpenAI-style (DeepSeek) adapter."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from openai import APIConnectionError, APIResponseValidationError, APIStatusError

from shop_agent.errors import ProviderResponseError, ProviderTransportError
from shop_agent.orchestration.history import ConversationHistory, ToolCall
from shop_agent.providers.openai_style import OpenAIStyleAdapter


def make_response(content=None, tool_calls=None, usage=True):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(
        choices=[SimpleNamespace(message=message)],
        usage=(
            SimpleNamespace(prompt_tokens=12, completion_tokens=3, total_tokens=15)
            if usage
            else None
        ),
    )


def make_tool_call(call_id, name, arguments):
    return SimpleNamespace(
        id=call_id,
        type="function",
        function=SimpleNamespace(name=name, arguments=arguments),
    )


@pytest.fixture
def mock_client():
    client = Mock()
    client.chat.completions.create = AsyncMock()
    client.close = AsyncMock()
    return client


@pytest.fixture
def adapter(mock_client):
    return OpenAIStyleAdapter(
        api_key="sk-test", base_url="https://api.deepseek.com", model="deepseek-chat",
        client=mock_client,
    )


class TestBuildMessages:
    """Tests for history to chat-completions translation."""

    def test_full_round_trip_shape(self):
        history = ConversationHistory(system_instruction="你是客服")
        call = ToolCall(name="getOrderStatus", raw_arguments='{"orderId":"ORD-1001"}', id="call_1")
        history.append_user("ORD-1001 到哪了？")
        history.append_model("", [call])
        history.append_tool_result(call, '{"status": "Shipped"}')
        history.append_model("已发货")

        messages = OpenAIStyleAdapter.build_messages(history)

        assert messages == [
            {"role": "system", "content": "你是客服"},
            {"role": "user", "content": "ORD-1001 到哪了？"},
            {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {
                        "id": "call_1",
                        "type": "function",
                        "function": {
                            "name": "getOrderStatus",
                            "arguments": '{"orderId":"ORD-1001"}',
                        },
                    }
                ],
            },
            {"role": "tool", "tool_call_id": "call_1", "content": '{"status": "Shipped"}'},
            {"role": "assistant", "content": "已发货"},
        ]

    def test_empty_assistant_turn_has_empty_content(self):
        history = ConversationHistory()
        history.append_user("hi")
        history.append_model("")

        messages = OpenAIStyleAdapter.build_messages(history)

        assert messages[-1] == {"role": "assistant", "content": ""}

    def test_no_system_message_without_instruction(self):
        history = ConversationHistory()
        history.append_user("hi")

        assert OpenAIStyleAdapter.build_messages(history)[0]["role"] == "user"


class TestDispatch:
    """Tests for OpenAIStyleAdapter.dispatch."""

    @pytest.mark.asyncio
    async def test_request_shape(self, adapter, mock_client, snapshot):
        mock_client.chat.completions.create.return_value = make_response(content="你好")
        history = ConversationHistory(system_instruction="sys")
        history.append_user("hi")

        await adapter.dispatch(history, snapshot.policies)

        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "deepseek-chat"
        assert kwargs["stream"] is False
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}
        assert adapter.supports_system_role is True
        names = [t["function"]["name"] for t in kwargs["tools"]]
        assert "getStorePolicy" in names

    @pytest.mark.asyncio
    async def test_final_text(self, adapter, mock_client, snapshot):
        mock_client.chat.completions.create.return_value = make_response(content="您好")
        history = ConversationHistory()
        history.append_user("hi")

        result = await adapter.dispatch(history, snapshot.policies)

        assert result.text == "您好"
        assert result.has_tool_calls is False
        assert result.usage.total_tokens == 15

    @pytest.mark.asyncio
    async def test_tool_calls_parsed_in_order(self, adapter, mock_client, snapshot):
        mock_client.chat.completions.create.return_value = make_response(
            content=None,
            tool_calls=[
                make_tool_call("a", "searchProducts", json.dumps({"query": "耳机"})),
                make_tool_call("b", "getOrderStatus", '{"orderId": "ORD-1001"}'),
            ],
            usage=False,
        )
        history = ConversationHistory()
        history.append_user("hi")

        result = await adapter.dispatch(history, snapshot.policies)

        assert result.text == ""
        assert [c.name for c in result.tool_calls] == ["searchProducts", "getOrderStatus"]
        assert [c.id for c in result.tool_calls] == ["a", "b"]
        assert result.tool_calls[0].parse_arguments() == {"query": "耳机"}
        assert result.usage is None

    @pytest.mark.asyncio
    async def test_status_error_maps_to_transport_error(self, adapter, mock_client, snapshot):
        request = httpx.Request("POST", "https://api.deepseek.com/chat/completions")
        mock_client.chat.completions.create.side_effect = APIStatusError(
            "Authentication Fails",
            response=httpx.Response(401, request=request),
            body=None,
        )
        history = ConversationHistory()
        history.append_user("hi")

        with pytest.raises(ProviderTransportError) as exc_info:
            await adapter.dispatch(history, snapshot.policies)

        assert exc_info.value.status_code == 401
        assert str(exc_info.value) == "DeepSeek API Error: 401 - Authentication Fails"

    @pytest.mark.asyncio
    async def test_connection_error_maps_to_transport_error(self, adapter, mock_client, snapshot):
        request = httpx.Request("POST", "https://api.deepseek.com/chat/completions")
        mock_client.chat.completions.create.side_effect = APIConnectionError(request=request)
        history = ConversationHistory()
        history.append_user("hi")

        with pytest.raises(ProviderTransportError) as exc_info:
            await adapter.dispatch(history, snapshot.policies)

        assert exc_info.value.status_code is None
        assert "网络连接失败" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_invalid_response_body_maps_to_transport_error(self, adapter, mock_client, snapshot):
        request = httpx.Request("POST", "https://api.deepseek.com/chat/completions")
        mock_client.chat.completions.create.side_effect = APIResponseValidationError(
            response=httpx.Response(200, request=request),
            body=None,
        )
        history = ConversationHistory()
        history.append_user("hi")

        with pytest.raises(ProviderTransportError) as exc_info:
            await adapter.dispatch(history, snapshot.policies)

        assert exc_info.value.status_code is None
        assert str(exc_info.value).startswith("DeepSeek API Error:")

    @pytest.mark.asyncio
    async def test_no_choices_is_response_error(self, adapter, mock_client, snapshot):
        mock_client.chat.completions.create.return_value = SimpleNamespace(choices=[], usage=None)
        history = ConversationHistory()
        history.append_user("hi")

        with pytest.raises(ProviderResponseError):
            await adapter.dispatch(history, snapshot.policies)

    @pytest.mark.asyncio
    async def test_close(self, adapter, mock_client):
        await adapter.close()

        mock_client.close.assert_awaited_once()
