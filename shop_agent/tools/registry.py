"""
Tool Registry - Single source of truth for tool definitions.

Provides a central registry for all tools with their metadata,
handlers and in-progress display labels. Handlers are pure functions of
(arguments, store snapshot); the snapshot is supplied at call time.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ..errors import UnknownToolError
from ..models import StoreSnapshot

logger = logging.getLogger(__name__)

# Status label for tools without a registered display name.
DEFAULT_DISPLAY_NAME = "正在处理请求"


@dataclass
class ToolDefinition:
    """Metadata for a tool - defined once, used everywhere.

    ``description`` and parameter descriptions may contain a
    ``{policy_topics}`` placeholder, filled from the live policy set
    whenever declarations are built.
    """

    name: str
    description: str
    parameters: dict[str, str]  # param_name -> description
    handler: Callable[[dict, StoreSnapshot], str]
    display_name: str = DEFAULT_DISPLAY_NAME


class ToolRegistry:
    """Central registry for all tools."""

    _tools: dict[str, ToolDefinition] = {}

    @classmethod
    def register(
        cls,
        name: str,
        description: str,
        parameters: dict[str, str],
        handler: Callable[[dict, StoreSnapshot], str],
        display_name: str = DEFAULT_DISPLAY_NAME,
    ) -> None:
        """Register a tool with its metadata."""
        cls._tools[name] = ToolDefinition(
            name=name,
            description=description,
            parameters=parameters,
            handler=handler,
            display_name=display_name,
        )

    @classmethod
    def get(cls, name: str) -> Optional[ToolDefinition]:
        """Get a tool by name."""
        return cls._tools.get(name)

    @classmethod
    def all_tools(cls) -> dict[str, ToolDefinition]:
        """Get a copy of all registered tools."""
        return cls._tools.copy()

    @classmethod
    def display_name(cls, name: str) -> str:
        """Human-readable in-progress label for a tool."""
        tool = cls._tools.get(name)
        return tool.display_name if tool else DEFAULT_DISPLAY_NAME

    @classmethod
    def execute(cls, name: str, arguments: dict, snapshot: StoreSnapshot) -> str:
        """
        Run a tool against a store snapshot.

        Raises:
            UnknownToolError: If no tool is registered under ``name``.
        """
        tool = cls._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        logger.debug("Executing tool %s with %s", name, arguments)
        return tool.handler(arguments, snapshot)

    @classmethod
    def clear(cls) -> None:
        """Clear all registered tools (mainly for testing)."""
        cls._tools.clear()
