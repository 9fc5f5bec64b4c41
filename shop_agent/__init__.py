"""
Shop Agent - multi-provider customer-service agent with tool calling

This package provides:
- A provider-neutral conversation loop with a bounded dispatch budget
- Provider adapters for OpenAI-style (DeepSeek) and Gemini-style APIs
- Store tools: product search, order status, store policies
- FastAPI server and interactive CLI
"""

from .agent import ShopAgent, TurnState, TurnTrace
from .providers import ProviderKind

__all__ = [
    "ShopAgent",
    "TurnState",
    "TurnTrace",
    "ProviderKind",
]

__version__ = "0.1.0"
