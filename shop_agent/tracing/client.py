"""
Langfuse tracing client wrapper with graceful degradation.

Uses Langfuse SDK v3 (OpenTelemetry-based) API.

Provides a singleton client that handles:
- Missing credentials
- Connection failures

All operations are no-ops when tracing is disabled, so conversations
never depend on the observability backend being reachable.
"""

import logging
from typing import Any, Optional

from langfuse import Langfuse

logger = logging.getLogger(__name__)


class TracingClient:
    """
    Langfuse client wrapper with graceful degradation.

    Handles missing credentials or connection failures without affecting
    the conversation loop.
    """

    def __init__(
        self,
        public_key: str = "",
        secret_key: str = "",
        host: str = "",
        debug: bool = False,
    ):
        """
        Initialize the tracing client.

        Args:
            public_key: Langfuse public key
            secret_key: Langfuse secret key
            host: Langfuse host URL (optional)
            debug: Enable debug logging in langfuse
        """
        self._client: Optional[Langfuse] = None
        self._enabled = False
        self._error: Optional[str] = None

        if not public_key or not secret_key:
            self._error = "Langfuse credentials not configured"
            logger.debug("Tracing disabled: %s", self._error)
            return

        if host and not host.startswith(("http://", "https://")):
            logger.warning(
                "LANGFUSE_HOST '%s' may be malformed. "
                "Expected format: http://hostname:port or https://hostname:port.",
                host,
            )

        try:
            kwargs: dict[str, Any] = {
                "public_key": public_key,
                "secret_key": secret_key,
                "debug": debug,
            }
            if host:
                kwargs["host"] = host

            self._client = Langfuse(**kwargs)

            if not self._validate_connectivity():
                return

            self._enabled = True
            logger.info("Langfuse tracing enabled (host: %s)", host or "default")
        except Exception as e:
            self._error = f"Failed to initialize Langfuse client: {e}"
            logger.warning("Tracing disabled: %s", self._error)

    def _validate_connectivity(self) -> bool:
        """
        Check the endpoint and credentials with auth_check().

        Disables tracing and logs a warning on failure.
        """
        if not self._client:
            return False

        try:
            if not self._client.auth_check():
                self._error = (
                    "Langfuse auth_check() failed - endpoint may be unreachable or "
                    "credentials may be invalid."
                )
                logger.warning("Tracing disabled: %s", self._error)
                self._client = None
                return False
            return True
        except Exception as e:
            self._error = f"Langfuse connectivity check failed: {e}"
            logger.warning("Tracing disabled: %s", self._error)
            self._client = None
            return False

    @property
    def enabled(self) -> bool:
        """Check if tracing is enabled."""
        return self._enabled

    @property
    def error(self) -> Optional[str]:
        """Get error message if tracing is disabled."""
        return self._error

    @property
    def client(self) -> Optional[Langfuse]:
        """Get the underlying Langfuse client (None if disabled)."""
        return self._client

    def flush(self) -> None:
        """Flush any pending events to Langfuse."""
        if not self._enabled or not self._client:
            return

        try:
            self._client.flush()
        except Exception as e:
            logger.warning("Failed to flush tracing events: %s", e)

    def shutdown(self) -> None:
        """Shutdown the tracing client, flushing any remaining events."""
        if not self._enabled or not self._client:
            return

        try:
            self._client.shutdown()
            logger.info("Langfuse tracing client shutdown complete")
        except Exception as e:
            logger.warning("Error during tracing client shutdown: %s", e)


# Global singleton instance
_tracing_client: Optional[TracingClient] = None


def init_tracing_client(
    public_key: str = "",
    secret_key: str = "",
    host: str = "",
    debug: bool = False,
) -> TracingClient:
    """Initialize the global tracing client singleton."""
    global _tracing_client
    _tracing_client = TracingClient(
        public_key=public_key,
        secret_key=secret_key,
        host=host,
        debug=debug,
    )
    return _tracing_client


def get_tracing_client() -> Optional[TracingClient]:
    """Get the global tracing client instance."""
    return _tracing_client


def shutdown_tracing() -> None:
    """Shutdown the global tracing client."""
    global _tracing_client
    if _tracing_client:
        _tracing_client.shutdown()
        _tracing_client = None
