"""
API key resolution.

A credential is resolved once, when an agent is built, by walking an
ordered list of sources: the explicit argument, the provider's own
environment variable, then the generic ``API_KEY``.
"""

import logging
import os
from dataclasses import dataclass
from typing import Callable, Optional

from .base import ProviderKind

logger = logging.getLogger(__name__)

GENERIC_ENV_VAR = "API_KEY"


@dataclass(frozen=True)
class CredentialSource:
    """A named place an API key may come from."""

    name: str
    lookup: Callable[[], Optional[str]]


@dataclass(frozen=True)
class ResolvedCredential:
    value: str
    source: Optional[str] = None

    def __bool__(self) -> bool:
        return bool(self.value)


def explicit_source(value: Optional[str]) -> CredentialSource:
    return CredentialSource(name="argument", lookup=lambda: value)


def env_source(var_name: str) -> CredentialSource:
    return CredentialSource(name=var_name, lookup=lambda: os.environ.get(var_name))


def credential_sources(
    kind: ProviderKind, explicit: Optional[str] = None
) -> list[CredentialSource]:
    """Ordered sources for a provider, highest priority first."""
    return [
        explicit_source(explicit),
        env_source(kind.env_var),
        env_source(GENERIC_ENV_VAR),
    ]


def resolve_credential(sources: list[CredentialSource]) -> ResolvedCredential:
    """Return the first non-empty credential, or an empty one."""
    for source in sources:
        value = source.lookup()
        if value:
            logger.debug("API key resolved from %s (length %d)", source.name, len(value))
            return ResolvedCredential(value=value, source=source.name)
    logger.debug("No API key found in: %s", ", ".join(s.name for s in sources))
    return ResolvedCredential(value="")
