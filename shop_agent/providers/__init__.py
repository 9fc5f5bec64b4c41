"""
Model provider adapters.

One adapter per wire protocol, selected by ``ProviderKind``:
- deepseek: OpenAI-style chat completions (``OpenAIStyleAdapter``)
- gemini: Gemini-style content parts (``GeminiStyleAdapter``)
"""

from typing import Union

from .base import DispatchResult, ProviderAdapter, ProviderKind, TokenUsage
from .credentials import (
    CredentialSource,
    ResolvedCredential,
    credential_sources,
    resolve_credential,
)
from .gemini_style import GeminiStyleAdapter
from .openai_style import OpenAIStyleAdapter


def create_adapter(kind: Union[ProviderKind, str], api_key: str) -> ProviderAdapter:
    """Build the adapter for a provider kind."""
    kind = ProviderKind(kind)
    if kind is ProviderKind.GEMINI:
        return GeminiStyleAdapter(api_key=api_key)
    return OpenAIStyleAdapter(api_key=api_key)


__all__ = [
    "DispatchResult",
    "ProviderAdapter",
    "ProviderKind",
    "TokenUsage",
    "CredentialSource",
    "ResolvedCredential",
    "credential_sources",
    "resolve_credential",
    "GeminiStyleAdapter",
    "OpenAIStyleAdapter",
    "create_adapter",
]
