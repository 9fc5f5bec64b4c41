"""
Provider-neutral conversation history.

The history is an append-only list of three entry kinds: user turns, model
turns (optionally carrying tool calls) and tool results. Provider adapters
translate it into their own wire format on every dispatch.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation requested by the model.

    ``id`` is assigned by providers that pair results by id and is ``None``
    for providers that pair results by position. ``raw_arguments`` is either
    the JSON string sent by the provider or an already-decoded mapping.
    """

    name: str
    raw_arguments: Union[str, Mapping, None] = None
    id: Optional[str] = None

    def parse_arguments(self) -> dict:
        """Decode the arguments, degrading to an empty dict on any malformed input."""
        raw = self.raw_arguments
        if raw is None or raw == "":
            return {}
        if isinstance(raw, Mapping):
            return dict(raw)
        try:
            parsed = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.error("Failed to parse arguments for %s: %s", self.name, e)
            return {}
        if not isinstance(parsed, dict):
            logger.error("Arguments for %s are not an object: %r", self.name, parsed)
            return {}
        return parsed

    def arguments_json(self) -> str:
        """Arguments as a JSON string, for protocols that echo them back verbatim."""
        if isinstance(self.raw_arguments, str):
            return self.raw_arguments
        return json.dumps(dict(self.raw_arguments or {}), ensure_ascii=False)


@dataclass(frozen=True)
class UserTurn:
    text: str


@dataclass(frozen=True)
class ModelTurn:
    """A model response.

    ``provider_payload`` is an opaque, provider-native copy of the response
    content that the originating adapter may replay instead of rebuilding it.
    """

    text: str = ""
    tool_calls: tuple[ToolCall, ...] = ()
    provider_payload: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class ToolResultTurn:
    tool_call_id: Optional[str]
    name: str
    result_text: str


HistoryEntry = Union[UserTurn, ModelTurn, ToolResultTurn]


class ConversationHistory:
    """Ordered, append-only conversation record owned by a single agent."""

    def __init__(self, system_instruction: Optional[str] = None):
        self.system_instruction = system_instruction
        self._entries: list[HistoryEntry] = []

    def append_user(self, text: str) -> UserTurn:
        entry = UserTurn(text=text)
        self._entries.append(entry)
        return entry

    def append_model(
        self,
        text: str = "",
        tool_calls: Optional[list[ToolCall]] = None,
        provider_payload: Any = None,
    ) -> ModelTurn:
        entry = ModelTurn(
            text=text,
            tool_calls=tuple(tool_calls or ()),
            provider_payload=provider_payload,
        )
        self._entries.append(entry)
        return entry

    def append_tool_result(self, call: ToolCall, result_text: str) -> ToolResultTurn:
        entry = ToolResultTurn(tool_call_id=call.id, name=call.name, result_text=result_text)
        self._entries.append(entry)
        return entry

    @property
    def entries(self) -> list[HistoryEntry]:
        """A copy of the entries; the history itself is only grown via append_*."""
        return list(self._entries)

    def roles(self) -> list[str]:
        """Compact role sequence for logging, e.g. ['user', 'model', 'tool']."""
        names = {UserTurn: "user", ModelTurn: "model", ToolResultTurn: "tool"}
        return [names[type(e)] for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(list(self._entries))
