"""
Shop Agent conversation loop.

Drives one user turn from input to final text:

    AWAITING_USER -> DISPATCHING -> (TOOL_PENDING -> DISPATCHING)* -> DONE
                  \\-> ABORTED (no API key)

The loop only understands the neutral history and the dispatch outcome
(tool calls or final text); everything wire-specific lives in the
provider adapter. Each turn is capped at ``max_loops`` dispatches.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Optional, Union

from .config import config
from .errors import UnknownToolError
from .models import Order, Policy, Product, StoreSnapshot
from .orchestration.history import ConversationHistory, ToolCall
from .providers import (
    ProviderAdapter,
    ProviderKind,
    create_adapter,
    credential_sources,
    resolve_credential,
)
from .providers.base import TracingParent
from .store_loader import load_store_snapshot
from .tools.registry import ToolRegistry
from .tracing import TracingContext

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]

SYSTEM_PROMPT = """
你是 "Gemini Shop" 的高级AI客服助手。Gemini Shop 是一家高端电商平台。
你的目标是帮助用户处理关于产品、订单查询和店面政策的问题。

核心规则：
1. 语言：默认使用中文回复用户。如果用户使用英文提问，请使用英文回复。
2. 多轮对话：利用对话历史提供个性化且相关的回答。
3. 工具使用：当需要查询订单、产品或政策时，必须调用相应的函数/工具。
4. 专业性：保持礼貌、简洁且专业。
5. 订单查询：必须提供订单ID（格式为 ORD-XXXX）。

可用工具：
- searchProducts: 通过名称或类别搜索商品。
- getOrderStatus: 使用订单ID查询订单状态和详情。
- getStorePolicy: 获取关于退货、配送或保修的政策详情。
"""

# Returned when the model finishes without any text.
NO_REPLY_TEXT = "无法生成回复"


class TurnState(Enum):
    """States of the per-turn state machine."""

    AWAITING_USER = "awaiting_user"
    DISPATCHING = "dispatching"
    TOOL_PENDING = "tool_pending"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class TurnTrace:
    """What happened during one call to ``handle_turn``."""

    execution_id: str
    state: TurnState = TurnState.AWAITING_USER
    dispatches: int = 0
    tools_used: list[str] = field(default_factory=list)
    budget_exhausted: bool = False
    final_text: str = ""


class ShopAgent:
    """
    Customer-service agent bound to one provider and one conversation.

    The history is owned by this instance and carries provider-specific
    payloads, so switching provider means building a new agent.
    ``handle_turn`` must not be called again before the previous call
    has finished.
    """

    def __init__(
        self,
        initial_policies: Optional[Iterable[Policy]] = None,
        credential: Optional[str] = None,
        provider: Union[ProviderKind, str, None] = None,
        store: Optional[StoreSnapshot] = None,
        adapter: Optional[ProviderAdapter] = None,
        max_loops: Optional[int] = None,
        tool_delay: Optional[float] = None,
        system_prompt: str = SYSTEM_PROMPT,
        tracing_context: Optional[TracingContext] = None,
    ):
        """
        Initialize the agent.

        Args:
            initial_policies: Policy set; defaults to the store's policies
            credential: API key; falls back to the provider env var, then API_KEY
            provider: Backend to talk to (default from SHOP_AGENT_PROVIDER)
            store: Products/orders/policies snapshot (default from STORE_DATA_PATH)
            adapter: Pre-built provider adapter, bypassing ``create_adapter``
            max_loops: Dispatch budget per turn
            tool_delay: Simulated processing delay before each tool, in seconds
            system_prompt: Fixed system instruction seeded into the history
            tracing_context: Optional tracing context for Langfuse observability
        """
        self.provider = ProviderKind(
            adapter.kind if adapter is not None else (provider or config.provider.default)
        )
        self.max_loops = max_loops if max_loops is not None else config.agent.max_loops
        if self.max_loops < 1:
            raise ValueError("max_loops must be a positive integer")
        self.tool_delay = tool_delay if tool_delay is not None else config.agent.tool_delay
        self.tracing_context = tracing_context

        snapshot = store if store is not None else load_store_snapshot()
        if initial_policies is not None:
            snapshot = snapshot.with_policies(initial_policies)
        self._snapshot = snapshot

        self._credential = resolve_credential(credential_sources(self.provider, credential))
        self._adapter = adapter
        if self._adapter is None and self._credential:
            self._adapter = create_adapter(self.provider, self._credential.value)

        self.history = ConversationHistory(system_instruction=system_prompt)
        self.last_turn: Optional[TurnTrace] = None

        logger.info(
            "%s agent initialized. API key: %s",
            self.provider.display_name,
            f"configured via {self._credential.source}" if self._credential else "missing",
        )

    @property
    def snapshot(self) -> StoreSnapshot:
        return self._snapshot

    @property
    def has_credential(self) -> bool:
        return bool(self._credential)

    @property
    def missing_credential_message(self) -> str:
        return (
            "配置错误：未找到 API Key。请在系统配置中输入 API Key，"
            f"或在环境变量中配置 {self.provider.env_var}。"
        )

    def update_policies(self, new_policies: Iterable[Policy]) -> None:
        """Replace the policy set used from the next turn on."""
        self._snapshot = self._snapshot.with_policies(new_policies)
        logger.info("Policies updated: %d entries", len(self._snapshot.policies))

    def update_store(
        self,
        products: Optional[Iterable[Product]] = None,
        orders: Optional[Iterable[Order]] = None,
    ) -> None:
        """Replace the product catalog and/or order book used from the next turn on."""
        if products is not None:
            self._snapshot = self._snapshot.with_products(products)
        if orders is not None:
            self._snapshot = self._snapshot.with_orders(orders)
        logger.info(
            "Store updated: %d products, %d orders",
            len(self._snapshot.products),
            len(self._snapshot.orders),
        )

    async def handle_turn(
        self,
        user_text: str,
        on_status: Optional[StatusCallback] = None,
    ) -> str:
        """
        Process one user message and return the final reply.

        Args:
            user_text: The user's message
            on_status: Optional progress callback, called as each tool starts

        Returns:
            The reply text; a configuration-error message when no API key
            is available.

        Raises:
            ProviderTransportError: If a provider call fails.
        """
        trace = TurnTrace(execution_id=f"turn-{uuid.uuid4().hex[:8]}")
        self.last_turn = trace
        logger.info("[%s] New turn. Input length: %d", trace.execution_id, len(user_text))

        self.history.append_user(user_text)

        if not self.has_credential or self._adapter is None:
            logger.error("[%s] Missing API key for %s", trace.execution_id, self.provider.value)
            trace.state = TurnState.ABORTED
            trace.final_text = self.missing_credential_message
            return trace.final_text

        tracing = self.tracing_context or TracingContext(execution_id=trace.execution_id)
        with tracing.span(
            name="turn",
            input={"message": user_text[:500]},
            metadata={"provider": self.provider.value, "max_loops": self.max_loops},
        ) as span:
            try:
                text = await self._run_loop(trace, self._snapshot, on_status, span)
            except Exception:
                span.set_status("error")
                raise
            span.set_output(
                {
                    "dispatches": trace.dispatches,
                    "tools_used": trace.tools_used,
                    "budget_exhausted": trace.budget_exhausted,
                    "final_text": text[:500],
                }
            )
        return text

    async def _run_loop(
        self,
        trace: TurnTrace,
        snapshot: StoreSnapshot,
        on_status: Optional[StatusCallback],
        tracing: TracingParent,
    ) -> str:
        """Dispatch until the model answers or the budget runs out."""
        latest_text = ""

        while trace.dispatches < self.max_loops:
            trace.state = TurnState.DISPATCHING
            trace.dispatches += 1
            logger.info(
                "[%s] Dispatch %d/%d. History: [%s]",
                trace.execution_id,
                trace.dispatches,
                self.max_loops,
                " -> ".join(self.history.roles()),
            )

            result = await self._adapter.dispatch(self.history, snapshot.policies, tracing)
            if result.text:
                latest_text = result.text

            self.history.append_model(result.text, result.tool_calls, result.provider_payload)

            if not result.has_tool_calls:
                trace.state = TurnState.DONE
                trace.final_text = result.text or NO_REPLY_TEXT
                logger.info("[%s] Final reply received", trace.execution_id)
                return trace.final_text

            logger.info(
                "[%s] Model requested %d tool calls: %s",
                trace.execution_id,
                len(result.tool_calls),
                ", ".join(call.name for call in result.tool_calls),
            )
            trace.state = TurnState.TOOL_PENDING
            await self._resolve_tool_calls(result.tool_calls, snapshot, on_status, tracing, trace)

        logger.warning(
            "[%s] Loop budget of %d dispatches reached, ending turn",
            trace.execution_id,
            self.max_loops,
        )
        trace.state = TurnState.DONE
        trace.budget_exhausted = True
        trace.final_text = latest_text
        return latest_text

    async def _resolve_tool_calls(
        self,
        calls: list[ToolCall],
        snapshot: StoreSnapshot,
        on_status: Optional[StatusCallback],
        tracing: TracingParent,
        trace: TurnTrace,
    ) -> None:
        """Run every call of one dispatch and append results in call order."""
        if self._adapter.matches_by_position:
            results = await asyncio.gather(
                *(self._run_tool(call, snapshot, on_status, tracing) for call in calls)
            )
        else:
            results = [await self._run_tool(call, snapshot, on_status, tracing) for call in calls]

        for call, result in zip(calls, results):
            self.history.append_tool_result(call, result)
            if call.name not in trace.tools_used:
                trace.tools_used.append(call.name)

    async def _run_tool(
        self,
        call: ToolCall,
        snapshot: StoreSnapshot,
        on_status: Optional[StatusCallback],
        tracing: TracingParent,
    ) -> str:
        """Execute one tool call; failures become error text for the model."""
        if on_status is not None:
            try:
                on_status(f"{ToolRegistry.display_name(call.name)}...")
            except Exception as e:
                logger.warning("Status callback failed: %s", e)

        await asyncio.sleep(self.tool_delay)

        args = call.parse_arguments()
        with tracing.span(name=f"tool:{call.name}", input=args) as span:
            try:
                result = ToolRegistry.execute(call.name, args, snapshot)
            except UnknownToolError as e:
                logger.warning("Unknown tool requested: %s", call.name)
                span.set_status("error")
                return f"Error executing tool: {e}"
            except Exception as e:
                logger.error("Tool '%s' execution failed: %s", call.name, e)
                span.set_status("error")
                error_msg = str(e)
                if len(error_msg) > 500:
                    error_msg = error_msg[:500] + "..."
                return f"Error executing tool: {error_msg}"

            logger.debug("Tool %s returned %d characters", call.name, len(result))
            span.set_output({"result": result[:500]})
            return result

    async def close(self) -> None:
        """Release the provider client."""
        close = getattr(self._adapter, "close", None)
        if close is not None:
            await close()
