"""
Turn-scoped tracing context using Langfuse SDK v3.

Uses explicit trace_context propagation to ensure proper parent-child
linking: each span passes its trace_id and span_id to the spans and
generations created beneath it.

Every context manager here degrades to a no-op when tracing is disabled.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Generator, Optional

from langfuse.types import TraceContext

from .client import get_tracing_client

logger = logging.getLogger(__name__)


def _start_observation(trace_context: Optional[TraceContext], **kwargs) -> tuple[Any, Any]:
    """Open a Langfuse observation; returns (context manager, observation)."""
    client = get_tracing_client()
    if not client or not client.client:
        return None, None
    manager = client.client.start_as_current_observation(trace_context=trace_context, **kwargs)
    return manager, manager.__enter__()


@dataclass
class TracingContext:
    """
    Request-scoped tracing context.

    Owns the root span of one trace; spans and generations opened from it
    become its children.
    """

    execution_id: str
    session_id: Optional[str] = None
    _context_manager: Any = field(default=None, repr=False)
    _root_span: Any = field(default=None, repr=False)
    _enabled: bool = field(default=False, repr=False)
    _start_time: float = field(default_factory=time.time, repr=False)
    _trace_id: Optional[str] = field(default=None, repr=False)
    _root_span_id: Optional[str] = field(default=None, repr=False)

    def __post_init__(self):
        client = get_tracing_client()
        self._enabled = client is not None and client.enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def start_trace(
        self,
        name: str = "conversation_turn",
        query: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> None:
        """Start a new trace by opening its root span."""
        if not self._enabled:
            return

        try:
            trace_metadata = {"execution_id": self.execution_id, **(metadata or {})}
            self._context_manager, self._root_span = _start_observation(
                None,
                as_type="span",
                name=name,
                input={"query": query} if query else None,
                metadata=trace_metadata,
            )
            if self._root_span is None:
                return

            self._trace_id = getattr(self._root_span, "trace_id", None)
            self._root_span_id = getattr(self._root_span, "id", None)
            self._root_span.update_trace(session_id=self.session_id)
            self._start_time = time.time()
            logger.debug("[%s] Trace started: trace_id=%s", self.execution_id, self._trace_id)
        except Exception as e:
            logger.warning("[%s] Failed to start trace: %s", self.execution_id, e)
            self._root_span = None

    def get_trace_context(self) -> Optional[TraceContext]:
        """TraceContext that makes new observations children of the root span."""
        if not self._trace_id or not self._root_span_id:
            return None
        return TraceContext(trace_id=self._trace_id, parent_span_id=self._root_span_id)

    def end_trace(
        self,
        output: Optional[str] = None,
        status: str = "success",
        metadata: Optional[dict] = None,
    ) -> None:
        """End the current trace."""
        if not self._enabled or not self._root_span:
            return

        try:
            duration_ms = (time.time() - self._start_time) * 1000
            self._root_span.update(
                output=output,
                metadata={
                    "status": status,
                    "duration_ms": round(duration_ms, 2),
                    **(metadata or {}),
                },
            )
            if self._context_manager:
                self._context_manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning("[%s] Failed to end trace: %s", self.execution_id, e)

    @contextmanager
    def span(
        self,
        name: str,
        metadata: Optional[dict] = None,
        input: Optional[dict] = None,
    ) -> Generator["SpanContext", None, None]:
        """Create a span context manager."""
        span_ctx = SpanContext(
            name=name,
            enabled=self._enabled,
            metadata=metadata,
            input=input,
            _trace_context=self.get_trace_context(),
        )
        try:
            span_ctx.start()
            yield span_ctx
        finally:
            span_ctx.end()

    @contextmanager
    def generation(
        self,
        name: str,
        model: str,
        input: Optional[Any] = None,
        metadata: Optional[dict] = None,
    ) -> Generator["GenerationContext", None, None]:
        """Create a generation context manager for a provider call."""
        gen_ctx = GenerationContext(
            name=name,
            model=model,
            enabled=self._enabled,
            input=input,
            metadata=metadata,
            _trace_context=self.get_trace_context(),
        )
        try:
            gen_ctx.start()
            yield gen_ctx
        finally:
            gen_ctx.end()


@dataclass
class SpanContext:
    """A tracing span; may parent further spans and generations."""

    name: str
    enabled: bool = False
    metadata: Optional[dict] = None
    input: Optional[dict] = None
    _context_manager: Any = field(default=None, repr=False)
    _span: Any = field(default=None, repr=False)
    _start_time: float = field(default=0.0, repr=False)
    _output: Optional[dict] = field(default=None, repr=False)
    _status: str = field(default="success", repr=False)
    _trace_context: Optional[TraceContext] = field(default=None, repr=False)
    _span_id: Optional[str] = field(default=None, repr=False)

    def start(self) -> None:
        if not self.enabled:
            return

        try:
            self._start_time = time.time()
            self._context_manager, self._span = _start_observation(
                self._trace_context,
                as_type="span",
                name=self.name,
                metadata=self.metadata,
                input=self.input,
            )
            self._span_id = getattr(self._span, "id", None)
        except Exception as e:
            logger.warning("Failed to start span '%s': %s", self.name, e)
            self._span = None

    def end(self) -> None:
        if not self.enabled or not self._span:
            return

        try:
            duration_ms = (time.time() - self._start_time) * 1000
            update_kwargs: dict[str, Any] = {
                "metadata": {"status": self._status, "duration_ms": round(duration_ms, 2)}
            }
            if self._output:
                update_kwargs["output"] = self._output

            self._span.update(**update_kwargs)
            if self._context_manager:
                self._context_manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning("Failed to end span '%s': %s", self.name, e)

    def set_output(self, output: dict) -> None:
        self._output = output

    def set_status(self, status: str) -> None:
        self._status = status

    def _child_trace_context(self) -> Optional[TraceContext]:
        """This span as parent; falls back to our own parent when unavailable."""
        if not self._trace_context or not self._span_id:
            return self._trace_context
        trace_id = self._trace_context.get("trace_id")
        if not trace_id:
            return self._trace_context
        return TraceContext(trace_id=trace_id, parent_span_id=self._span_id)

    @contextmanager
    def span(
        self,
        name: str,
        metadata: Optional[dict] = None,
        input: Optional[dict] = None,
    ) -> Generator["SpanContext", None, None]:
        """Create a child span with this span as parent."""
        child = SpanContext(
            name=name,
            enabled=self.enabled,
            metadata=metadata,
            input=input,
            _trace_context=self._child_trace_context(),
        )
        try:
            child.start()
            yield child
        finally:
            child.end()

    @contextmanager
    def generation(
        self,
        name: str,
        model: str,
        input: Optional[Any] = None,
        metadata: Optional[dict] = None,
    ) -> Generator["GenerationContext", None, None]:
        """Create a generation within this span."""
        gen_ctx = GenerationContext(
            name=name,
            model=model,
            enabled=self.enabled,
            input=input,
            metadata=metadata,
            _trace_context=self._child_trace_context(),
        )
        try:
            gen_ctx.start()
            yield gen_ctx
        finally:
            gen_ctx.end()


@dataclass
class GenerationContext:
    """Tracks one provider call: input, output, token usage and status."""

    name: str
    model: str
    enabled: bool = False
    input: Optional[Any] = None
    metadata: Optional[dict] = None
    _context_manager: Any = field(default=None, repr=False)
    _generation: Any = field(default=None, repr=False)
    _start_time: float = field(default=0.0, repr=False)
    _output: Optional[str] = field(default=None, repr=False)
    _usage: Optional[dict] = field(default=None, repr=False)
    _status: str = field(default="success", repr=False)
    _trace_context: Optional[TraceContext] = field(default=None, repr=False)

    def start(self) -> None:
        if not self.enabled:
            return

        try:
            self._start_time = time.time()
            self._context_manager, self._generation = _start_observation(
                self._trace_context,
                as_type="generation",
                name=self.name,
                model=self.model,
                input=self.input,
                metadata=self.metadata,
            )
        except Exception as e:
            logger.warning("Failed to start generation '%s': %s", self.name, e)
            self._generation = None

    def end(self) -> None:
        if not self.enabled or not self._generation:
            return

        try:
            duration_ms = (time.time() - self._start_time) * 1000
            update_kwargs: dict[str, Any] = {
                "metadata": {"status": self._status, "duration_ms": round(duration_ms, 2)}
            }
            if self._output is not None:
                update_kwargs["output"] = self._output
            if self._usage:
                update_kwargs["usage_details"] = self._usage

            self._generation.update(**update_kwargs)
            if self._context_manager:
                self._context_manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning("Failed to end generation '%s': %s", self.name, e)

    def set_output(self, output: str) -> None:
        self._output = output

    def set_usage(
        self,
        prompt_tokens: Optional[int] = None,
        completion_tokens: Optional[int] = None,
        total_tokens: Optional[int] = None,
    ) -> None:
        """Record token usage for the generation."""
        self._usage = {}
        if prompt_tokens is not None:
            self._usage["input"] = prompt_tokens
        if completion_tokens is not None:
            self._usage["output"] = completion_tokens
        if total_tokens is not None:
            self._usage["total"] = total_tokens

    def set_status(self, status: str) -> None:
        self._status = status
