"""
Exception types raised by Shop Agent.

Tool-level failures (unknown tool, malformed arguments) are absorbed by the
conversation loop; transport failures propagate to the caller of
``handle_turn``.
"""

from typing import Optional


class ShopAgentError(Exception):
    """Base class for all Shop Agent errors."""


class UnknownToolError(ShopAgentError):
    """The model requested a tool that is not registered."""

    def __init__(self, name: str):
        super().__init__(f"未知函数: {name}")
        self.name = name


class ProviderTransportError(ShopAgentError):
    """A provider call failed at the network or HTTP level."""

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: Optional[int] = None,
    ):
        detail = f"{status_code} - {message}" if status_code else message
        super().__init__(f"{provider} API Error: {detail}")
        self.provider = provider
        self.message = message
        self.status_code = status_code


class ProviderResponseError(ProviderTransportError):
    """A provider answered, but without a usable response body."""


class StoreDataError(ShopAgentError):
    """A store data file could not be parsed into products, orders and policies."""
