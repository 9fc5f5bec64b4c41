"""
Provider adapter contract.

A provider adapter is the only component that knows a backend's wire
format. It turns the neutral ``ConversationHistory`` into a request,
performs the call and turns the response into a ``DispatchResult``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Protocol, Union, runtime_checkable

from ..models import Policy
from ..orchestration.history import ConversationHistory, ToolCall
from ..tracing import SpanContext, TracingContext

TracingParent = Union[TracingContext, SpanContext]


class ProviderKind(Enum):
    """Supported model backends."""

    DEEPSEEK = "deepseek"  # OpenAI-style chat completions
    GEMINI = "gemini"  # Gemini-style content parts

    @property
    def display_name(self) -> str:
        return {"deepseek": "DeepSeek", "gemini": "Gemini"}[self.value]

    @property
    def env_var(self) -> str:
        """Provider-specific environment variable holding the API key."""
        return {"deepseek": "DEEPSEEK_API_KEY", "gemini": "GEMINI_API_KEY"}[self.value]


@dataclass
class TokenUsage:
    """Token counts reported by a provider for one dispatch."""

    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


@dataclass
class DispatchResult:
    """Outcome of one dispatch: tool calls to run, or final text."""

    text: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    provider_payload: Any = None
    usage: Optional[TokenUsage] = None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


@runtime_checkable
class ProviderAdapter(Protocol):
    """Capability shared by every backend.

    ``matches_by_position`` is True for protocols that pair tool results
    with calls by order rather than by id; the loop may then run a batch of
    tool calls concurrently. ``supports_system_role`` is True when the system
    instruction is rendered once as a history message, False when it must
    be sent as a request parameter on every call.
    """

    kind: ProviderKind
    model: str
    matches_by_position: bool
    supports_system_role: bool

    def declare_tools(self, policies: Iterable[Policy]) -> Any:
        """Provider-native tool declarations for the given policy set."""
        ...

    async def dispatch(
        self,
        history: ConversationHistory,
        policies: Iterable[Policy],
        tracing: Optional[TracingParent] = None,
    ) -> DispatchResult:
        """Send the full history and return the model's answer."""
        ...
