"""
Langfuse tracing integration for Shop Agent.

Provides observability for provider calls, tool executions and turn lifecycle.
"""

from .client import (
    TracingClient,
    init_tracing_client,
    get_tracing_client,
    shutdown_tracing,
)
from .context import (
    TracingContext,
    SpanContext,
    GenerationContext,
)

__all__ = [
    "TracingClient",
    "init_tracing_client",
    "get_tracing_client",
    "shutdown_tracing",
    "TracingContext",
    "SpanContext",
    "GenerationContext",
]
