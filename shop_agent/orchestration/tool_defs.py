"""
Tool definitions for the conversation loop.

Converts ToolRegistry entries into JSON-schema function declarations.
Declarations are rebuilt from the current policy set on every dispatch so
the ``getStorePolicy`` description always lists the topics that exist now.
"""

import logging
from typing import Iterable

from ..models import Policy
from ..tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def _fill(template: str, policy_topics: str) -> str:
    return template.replace("{policy_topics}", policy_topics)


def build_function_schemas(policies: Iterable[Policy]) -> list[dict]:
    """
    Build provider-neutral function declarations from the registry.

    Every registry parameter is a required string.

    Args:
        policies: Current policy set, used to fill ``{policy_topics}``.

    Returns:
        List of ``{"name", "description", "parameters"}`` dicts.
    """
    policy_topics = ", ".join(p.topic for p in policies)
    schemas: list[dict] = []

    for name, tool_def in ToolRegistry.all_tools().items():
        properties: dict = {}
        required: list[str] = []
        for param_name, param_desc in tool_def.parameters.items():
            properties[param_name] = {
                "type": "string",
                "description": _fill(param_desc, policy_topics),
            }
            required.append(param_name)

        schemas.append(
            {
                "name": name,
                "description": _fill(tool_def.description, policy_topics),
                "parameters": {
                    "type": "object",
                    "properties": properties,
                    "required": required,
                },
            }
        )

    logger.debug("Built %d tool declarations (policy topics: %s)", len(schemas), policy_topics)
    return schemas


def build_tool_definitions(policies: Iterable[Policy]) -> list[dict]:
    """
    Build OpenAI function-calling tool definitions from the registry.

    Returns:
        List of ``{"type": "function", "function": {...}}`` definitions.
    """
    return [
        {"type": "function", "function": schema}
        for schema in build_function_schemas(policies)
    ]
