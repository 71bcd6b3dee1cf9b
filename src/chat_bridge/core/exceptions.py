"""core.exceptions

Centralised exception hierarchy for *chat_bridge*.

Two families live here:

* **Construction-time** errors (`ConfigurationError`) propagate to whoever
  builds a configuration.
* **Invocation-time** errors (`ProviderError` subclasses) are raised by
  transports and caught at the plugin boundary. Each carries a `log_level`
  so operators can tell a throttled provider from a broken credential,
  while the end user always sees the same apology.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from collections.abc import Iterable


class ChatBridgeError(Exception):
    """Base class for all *chat_bridge* domain errors."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__class__.__name__)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldViolation:
    """One violated constraint. `field` is empty for cross-field checks."""

    field: str
    message: str

    def __str__(self) -> str:
        return f'{self.field}: {self.message}' if self.field else self.message


class ConfigurationError(ChatBridgeError, ValueError):
    """Raised when a configuration cannot be constructed."""

    def __init__(self, violations: Iterable[FieldViolation]) -> None:
        self.violations: tuple[FieldViolation, ...] = tuple(violations)
        super().__init__('; '.join(str(v) for v in self.violations) or 'invalid configuration')

    @property
    def fields(self) -> list[str]:
        """Names of the offending fields, in reporting order."""
        return [v.field for v in self.violations if v.field]


class ProviderNotFoundError(ChatBridgeError):
    """Raised when `ProviderRegistry` cannot find a requested provider key."""


# ---------------------------------------------------------------------------
# Provider (invocation-time) errors
# ---------------------------------------------------------------------------


class ProviderError(ChatBridgeError):
    """Base class for failures talking to a remote provider."""

    #: Level used by the plugin when logging this failure.
    log_level: ClassVar[int] = logging.ERROR


class LLMClientError(ProviderError):
    """Generic upstream provider error (e.g., unexpected 5xx)."""


class ModelNotFoundError(ProviderError):
    """Raised when a model is unknown for a valid provider."""


class ProviderAuthenticationError(ProviderError):
    """Credentials were missing, rejected, or lacked access to the model."""


class MalformedResponseError(ProviderError):
    """The provider answered, but the body could not be interpreted."""


class RateLimitExceededError(ProviderError):
    """Raised when provider rate limits persist beyond retry strategy."""

    log_level: ClassVar[int] = logging.WARNING


class GenerationTimeoutError(ProviderError):
    """Raised when retry attempts exceed maximum backoff window."""

    log_level: ClassVar[int] = logging.WARNING


class ProviderConnectionError(ProviderError, ConnectionError):
    """The provider could not be reached at all."""

    log_level: ClassVar[int] = logging.WARNING
