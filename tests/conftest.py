"""
Pytest configuration and fixtures for Shop Agent tests.
"""

from typing import Optional

import pytest

from shop_agent.models import demo_snapshot
from shop_agent.orchestration.history import ConversationHistory, ModelTurn, ToolCall
from shop_agent.providers import DispatchResult, ProviderKind


class ScriptedAdapter:
    """Provider adapter that replays canned dispatch results.

    Records the policy topics and history roles seen on every dispatch.
    """

    model = "scripted-model"
    supports_system_role = True

    def __init__(
        self,
        results: list[DispatchResult],
        kind: ProviderKind = ProviderKind.DEEPSEEK,
        matches_by_position: bool = False,
        repeat_last: bool = False,
    ):
        self.kind = kind
        self.matches_by_position = matches_by_position
        self._results = list(results)
        self._repeat_last = repeat_last
        self.calls: list[dict] = []
        self.closed = False

    def declare_tools(self, policies):
        return [p.topic for p in policies]

    async def dispatch(self, history: ConversationHistory, policies, tracing=None):
        self.calls.append(
            {
                "roles": history.roles(),
                "topics": [p.topic for p in policies],
                "entries": history.entries,
            }
        )
        if len(self._results) == 1 and self._repeat_last:
            return self._results[0]
        return self._results.pop(0)

    async def close(self):
        self.closed = True


def tool_result(*calls: ToolCall, text: str = "") -> DispatchResult:
    return DispatchResult(text=text, tool_calls=list(calls))


def final_result(text: str) -> DispatchResult:
    return DispatchResult(text=text)


def tool_results_after(entries, model_turn_index: int) -> list:
    """Tool result entries that directly follow the given model turn."""
    results = []
    for entry in entries[model_turn_index + 1:]:
        if isinstance(entry, ModelTurn):
            break
        results.append(entry)
    return results


@pytest.fixture(autouse=True)
def clean_api_key_env(monkeypatch):
    """Keep real API keys in the environment from leaking into tests."""
    for var in ("DEEPSEEK_API_KEY", "GEMINI_API_KEY", "API_KEY"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def snapshot():
    return demo_snapshot()


@pytest.fixture
def make_agent(snapshot):
    """Build a ShopAgent around a ScriptedAdapter with no tool delay."""
    from shop_agent.agent import ShopAgent

    def _make(
        results: list[DispatchResult],
        kind: ProviderKind = ProviderKind.DEEPSEEK,
        matches_by_position: Optional[bool] = None,
        repeat_last: bool = False,
        max_loops: int = 5,
        **kwargs,
    ):
        adapter = ScriptedAdapter(
            results,
            kind=kind,
            matches_by_position=(
                kind is ProviderKind.GEMINI if matches_by_position is None else matches_by_position
            ),
            repeat_last=repeat_last,
        )
        agent = ShopAgent(
            credential="test-key",
            store=snapshot,
            adapter=adapter,
            max_loops=max_loops,
            tool_delay=0,
            **kwargs,
        )
        return agent, adapter

    return _make
