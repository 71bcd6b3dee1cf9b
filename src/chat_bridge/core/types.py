"""core.types

Shared DTOs and enums used throughout *chat_bridge*.

These models live in the **core** layer so that *adapters*, *providers*,
*registry*, and higher application layers can depend on them without causing
circular imports.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Chat roles (OpenAI-style for broad compatibility)
# ---------------------------------------------------------------------------


class Role(StrEnum):
    system = 'system'
    user = 'user'
    assistant = 'assistant'


# ---------------------------------------------------------------------------
# Conversation messages and threads
# ---------------------------------------------------------------------------


class Message(BaseModel):
    """Single message in a conversation thread."""

    role: Role
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Immutable value-object
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)


@runtime_checkable
class ConversationThread(Protocol):
    """What a plugin needs from the caller's conversation store."""

    @property
    def messages(self) -> Sequence[Message]: ...

    def new_message_from_bot(self, timestamp: datetime, text: str) -> Message: ...


class ThreadState(BaseModel):
    """In-memory, append-only conversation thread.

    Appending returns a new thread; the original is never modified.
    """

    thread_id: str | None = None
    messages: tuple[Message, ...] = ()

    model_config = ConfigDict(frozen=True)

    def new_message_from_bot(self, timestamp: datetime, text: str) -> Message:
        return Message(role=Role.assistant, content=text, timestamp=timestamp)

    def new_message_from_user(self, timestamp: datetime, text: str) -> Message:
        return Message(role=Role.user, content=text, timestamp=timestamp)

    def with_message(self, message: Message) -> ThreadState:
        """Return a copy of this thread with *message* appended."""
        return self.model_copy(update={'messages': (*self.messages, message)})

    @property
    def tail(self) -> Message | None:
        return self.messages[-1] if self.messages else None


# ---------------------------------------------------------------------------
# Provider requests
# ---------------------------------------------------------------------------


class ChatTurn(BaseModel):
    """Role/content pair sent to chat-style providers."""

    role: Role
    content: str

    model_config = ConfigDict(frozen=True)


class CompletionRequest(BaseModel):
    """Logical request handed to a transport.

    `prompt` is raw text for completion-style models, or a list of turns for
    chat-style models. `parameters` only holds values that were explicitly
    configured.
    """

    model: str
    prompt: str | list[ChatTurn]
    parameters: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)
