"""
Gemini-style content-parts adapter.

History is rendered as ``contents`` of ``user`` / ``model`` roles. The
system instruction and tool declarations travel in ``config`` on every
call. Tool results for one model turn are batched into a single ``user``
content of ``function_response`` parts, in call order; the protocol pairs
them with calls by position.
"""

import logging
import time
from typing import Iterable, Optional

import httpx
from google import genai
from google.genai import errors, types

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
from ..orchestration.tool_defs import build_function_schemas
from ..tracing import TracingContext
from .base import DispatchResult, ProviderKind, TokenUsage, TracingParent

logger = logging.getLogger(__name__)


def _to_declaration(schema: dict) -> types.FunctionDeclaration:
    params = schema["parameters"]
    return types.FunctionDeclaration(
        name=schema["name"],
        description=schema["description"],
        parameters=types.Schema(
            type=types.Type.OBJECT,
            properties={
                name: types.Schema(type=types.Type.STRING, description=prop["description"])
                for name, prop in params["properties"].items()
            },
            required=list(params["required"]),
        ),
    )


class GeminiStyleAdapter:
    """Adapter for the Gemini ``generateContent`` API."""

    kind = ProviderKind.GEMINI
    matches_by_position = True
    supports_system_role = False

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        client: Optional[genai.Client] = None,
    ):
        self.model = model or config.gemini.model
        self._client = client or genai.Client(api_key=api_key)
        logger.info("Gemini adapter ready. Model: %s", self.model)

    def declare_tools(self, policies: Iterable[Policy]) -> list[types.Tool]:
        declarations = [_to_declaration(s) for s in build_function_schemas(policies)]
        return [types.Tool(function_declarations=declarations)]

    @staticmethod
    def _model_content(entry: ModelTurn) -> Optional[types.Content]:
        # Replay the original content when we have it so that opaque fields
        # such as thought signatures survive the round trip.
        payload = entry.provider_payload
        if isinstance(payload, types.Content) and payload.parts:
            return payload

        parts: list[types.Part] = []
        if entry.text:
            parts.append(types.Part.from_text(text=entry.text))
        for call in entry.tool_calls:
            parts.append(
                types.Part(
                    function_call=types.FunctionCall(
                        id=call.id,
                        name=call.name,
                        args=call.parse_arguments(),
                    )
                )
            )
        if not parts:
            return None
        return types.Content(role="model", parts=parts)

    @classmethod
    def build_contents(cls, history: ConversationHistory) -> list[types.Content]:
        """Translate the neutral history into Gemini contents."""
        contents: list[types.Content] = []
        responses: list[types.Part] = []

        for entry in history:
            if isinstance(entry, ToolResultTurn):
                responses.append(
                    types.Part(
                        function_response=types.FunctionResponse(
                            id=entry.tool_call_id,
                            name=entry.name,
                            response={"result": entry.result_text},
                        )
                    )
                )
                continue

            if responses:
                contents.append(types.Content(role="user", parts=responses))
                responses = []

            if isinstance(entry, UserTurn):
                contents.append(
                    types.Content(role="user", parts=[types.Part.from_text(text=entry.text)])
                )
            elif isinstance(entry, ModelTurn):
                content = cls._model_content(entry)
                if content is not None:
                    contents.append(content)

        if responses:
            contents.append(types.Content(role="user", parts=responses))
        return contents

    async def dispatch(
        self,
        history: ConversationHistory,
        policies: Iterable[Policy],
        tracing: Optional[TracingParent] = None,
    ) -> DispatchResult:
        """Send one generateContent request and parse the first candidate."""
        tracing = tracing or TracingContext(execution_id="dispatch")
        contents = self.build_contents(history)
        generate_config = types.GenerateContentConfig(
            system_instruction=history.system_instruction,
            tools=self.declare_tools(policies),
        )
        logger.info("Sending Gemini request with %d contents", len(contents))

        with tracing.generation(
            name="gemini_dispatch",
            model=self.model,
            input=[c.model_dump(exclude_none=True) for c in contents],
        ) as gen:
            start = time.time()
            try:
                response = await self._client.aio.models.generate_content(
                    model=self.model,
                    contents=contents,
                    config=generate_config,
                )
            except errors.APIError as e:
                gen.set_status("error")
                logger.error("Gemini API error response: %s %s", e.code, e.message)
                raise ProviderTransportError("Gemini", e.message or str(e), e.code) from e
            except httpx.HTTPError as e:
                gen.set_status("error")
                logger.error("Gemini network request failed: %s", e)
                raise ProviderTransportError("Gemini", f"网络连接失败: {e}") from e

            duration_ms = (time.time() - start) * 1000
            logger.info("Gemini response received in %.0fms", duration_ms)

            candidate = response.candidates[0] if response.candidates else None
            if candidate is None or candidate.content is None:
                gen.set_status("error")
                raise ProviderResponseError("Gemini", "AI 未返回有效响应。")

            parts = candidate.content.parts or []
            tool_calls = [
                ToolCall(
                    name=part.function_call.name or "",
                    raw_arguments=part.function_call.args,
                    id=part.function_call.id,
                )
                for part in parts
                if part.function_call is not None
            ]
            text = "".join(part.text for part in parts if part.text and not part.thought)

            usage = None
            if response.usage_metadata:
                meta = response.usage_metadata
                usage = TokenUsage(
                    prompt_tokens=meta.prompt_token_count,
                    completion_tokens=meta.candidates_token_count,
                    total_tokens=meta.total_token_count,
                )
                logger.info(
                    "Gemini token usage: prompt=%s, completion=%s, total=%s",
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
                logger.info("Gemini requested %d tool calls", len(tool_calls))
                gen.set_output(", ".join(call.name for call in tool_calls))
            else:
                gen.set_output(text[:2000])

            return DispatchResult(
                text=text,
                tool_calls=tool_calls,
                provider_payload=candidate.content,
                usage=usage,
            )

    async def close(self) -> None:
        """Close the underlying genai client."""
        try:
            await self._client.aio.aclose()
        except Exception as e:
            logger.debug("Error closing genai client: %s", e)
