"""
OpenAI-style chat-completions adapter (DeepSeek and compatible endpoints).

History is rendered as a ``messages`` list: the system instruction first,
then ``user`` / ``assistant`` (with ``tool_calls``) / ``tool`` messages.
Tool results are paired with calls by ``tool_call_id``.
"""

import logging
import time
from typing import Iterable, Optional

from openai import APIConnectionError, APIError, APIStatusError, AsyncOpenAI

from ..config import config
from ..errors import ProviderResponseError, ProviderTransportError
from ..models import Policy
from ..orchestration.history import (
    ConversationHistory,
    ModelTurn,
    ToolCall,
    ToolResultTurn,
    UserTurn,
)
from ..orchestration.tool_defs import build_tool_definitions
from ..tracing import TracingContext
from .base import DispatchResult, ProviderKind, TokenUsage, TracingParent

logger = logging.getLogger(__name__)


class OpenAIStyleAdapter:
    """Adapter for OpenAI-compatible ``/chat/completions`` endpoints."""

    kind = ProviderKind.DEEPSEEK
    matches_by_position = False
    supports_system_role = True

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.base_url = base_url or config.deepseek.base_url
        self.model = model or config.deepseek.model
        self._client = client or AsyncOpenAI(api_key=api_key, base_url=self.base_url)
        logger.info("%s adapter ready. Endpoint: %s", self.kind.display_name, self.base_url)

    def declare_tools(self, policies: Iterable[Policy]) -> list[dict]:
        return build_tool_definitions(policies)

    @staticmethod
    def build_messages(history: ConversationHistory) -> list[dict]:
        """Translate the neutral history into chat-completions messages."""
        messages: list[dict] = []
        if history.system_instruction:
            messages.append({"role": "system", "content": history.system_instruction})

        for entry in history:
            if isinstance(entry, UserTurn):
                messages.append({"role": "user", "content": entry.text})
            elif isinstance(entry, ModelTurn):
                message: dict = {"role": "assistant", "content": entry.text or None}
                if entry.tool_calls:
                    message["tool_calls"] = [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {
                                "name": call.name,
                                "arguments": call.arguments_json(),
                            },
                        }
                        for call in entry.tool_calls
                    ]
                elif message["content"] is None:
                    message["content"] = ""
                messages.append(message)
            elif isinstance(entry, ToolResultTurn):
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": entry.tool_call_id,
                        "content": entry.result_text,
                    }
                )
        return messages

    async def dispatch(
        self,
        history: ConversationHistory,
        policies: Iterable[Policy],
        tracing: Optional[TracingParent] = None,
    ) -> DispatchResult:
        """Send one chat-completions request and parse the first choice."""
        provider = self.kind.display_name
        tracing = tracing or TracingContext(execution_id="dispatch")
        messages = self.build_messages(history)
        request = {
            "model": self.model,
            "messages": messages,
            "tools": self.declare_tools(policies),
            "stream": False,
        }
        logger.info(
            "Sending %s request. History: [%s]",
            provider,
            " -> ".join(m["role"] for m in messages),
        )

        with tracing.generation(
            name=f"{self.kind.value}_dispatch",
            model=self.model,
            input=messages,
        ) as gen:
            start = time.time()
            try:
                response = await self._client.chat.completions.create(**request)
            except APIStatusError as e:
                gen.set_status("error")
                logger.error("%s API error response: %s %s", provider, e.status_code, e.message)
                raise ProviderTransportError(provider, e.message, e.status_code) from e
            except APIConnectionError as e:
                gen.set_status("error")
                logger.error("%s network request failed: %s", provider, e)
                raise ProviderTransportError(provider, f"网络连接失败: {e}") from e
            except APIError as e:
                gen.set_status("error")
                logger.error("%s API error: %s", provider, e.message)
                raise ProviderTransportError(provider, e.message) from e

            duration_ms = (time.time() - start) * 1000
            logger.info("%s response received in %.0fms", provider, duration_ms)

            if not response.choices:
                gen.set_status("error")
                raise ProviderResponseError(provider, "AI 未返回有效响应。")

            message = response.choices[0].message
            tool_calls = [
                ToolCall(
                    name=tc.function.name,
                    raw_arguments=tc.function.arguments,
                    id=tc.id,
                )
                for tc in (message.tool_calls or [])
                if getattr(tc, "function", None) is not None
            ]
            text = message.content or ""

            usage = None
            if response.usage:
                usage = TokenUsage(
                    prompt_tokens=response.usage.prompt_tokens,
                    completion_tokens=response.usage.completion_tokens,
                    total_tokens=response.usage.total_tokens,
                )
                logger.info(
                    "%s token usage: prompt=%s, completion=%s, total=%s",
                    provider,
                    usage.prompt_tokens,
                    usage.completion_tokens,
                    usage.total_tokens,
                )
                gen.set_usage(
                    prompt_tokens=usage.prompt_tokens,
                    completion_tokens=usage.completion_tokens,
                    total_tokens=usage.total_tokens,
                )

            if tool_calls:
                gen.set_output(", ".join(call.name for call in tool_calls))
            else:
                gen.set_output(text[:2000])

            return DispatchResult(text=text, tool_calls=tool_calls, usage=usage)

    async def close(self) -> None:
        """Close the underlying OpenAI client."""
        try:
            await self._client.close()
        except Exception as e:
            logger.debug("Error closing OpenAI client: %s", e)
