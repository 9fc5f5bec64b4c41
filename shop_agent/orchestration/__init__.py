"""
Provider-neutral conversation building blocks.

The conversation history model and the tool declarations shared by every
provider adapter. The loop that drives them lives in ``shop_agent.agent``.
"""

from .history import (
    ConversationHistory,
    HistoryEntry,
    ModelTurn,
    ToolCall,
    ToolResultTurn,
    UserTurn,
)
from .tool_defs import build_function_schemas, build_tool_definitions

__all__ = [
    "ConversationHistory",
    "HistoryEntry",
    "ModelTurn",
    "ToolCall",
    "ToolResultTurn",
    "UserTurn",
    "build_function_schemas",
    "build_tool_definitions",
]
