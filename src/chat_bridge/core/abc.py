"""core.abc

Abstract base classes for the two seams of *chat_bridge*.

Design goals
============
1. **Plugins are total** - `AbstractLLMPlugin.handle()` turns a conversation
    thread into exactly one reply message and never raises.
2. **Transports are swappable** - a plugin only sees `AbstractLLMTransport`,
    so a provider SDK can be replaced by a stub in tests without touching
    the network.
3. **Built-in retry** - `complete()` is wrapped in the `with_retry()`
    decorator so every transport inherits back-off behaviour by default.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from chat_bridge.core.retry import RetryStrategy, with_retry

if TYPE_CHECKING:
    from chat_bridge.core.types import CompletionRequest, ConversationThread, Message


class AbstractLLMTransport(ABC):
    """Provider-independent request/response transport."""

    # ---------------------------------------------------------------------
    # Construction
    # ---------------------------------------------------------------------

    def __init__(self, *, retry_strategy: RetryStrategy | None = None) -> None:
        self._retry_strategy: RetryStrategy = retry_strategy or RetryStrategy(
            max_attempts=3,
            base_backoff_sec=1.0,
            max_backoff_sec=30.0,
            jitter=True,
        )

    # ------------------------------------------------------------------
    # Public synchronous API
    # ------------------------------------------------------------------

    def complete(self, request: CompletionRequest) -> str:
        """Send *request* and return the raw generated text.

        Subclasses **must not** override this - override `_invoke()` instead.
        Failures surface as `ProviderError` subclasses.
        """

        @with_retry(self._retry_strategy)
        def _call() -> str:  # inner closure captures args
            return self._invoke(request)  # type: ignore[return-value]

        return _call()

    # ------------------------------------------------------------------
    # Methods to implement in concrete transports
    # ------------------------------------------------------------------

    @abstractmethod
    def _invoke(self, request: CompletionRequest) -> str | None:
        """Provider-specific **blocking** implementation (to be overridden)."""

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f'<{self.__class__.__name__}>'


class AbstractLLMPlugin(ABC):
    """A provider-specific implementation of ``handle(thread) -> message``."""

    @abstractmethod
    def handle(self, thread: ConversationThread) -> Message:
        """Return the bot's reply to *thread*. Never raises."""
