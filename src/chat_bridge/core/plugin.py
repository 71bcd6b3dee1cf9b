"""core.plugin

`GenerativePlugin` turns a conversation thread into one bot reply.

Per call it assembles a prompt within the configured input budget, shapes a
provider request, calls the transport once, and interprets the result. Every
failure resolves to one of two fixed apologies; the cause is only logged.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Generic, TypeVar

from chat_bridge.core.abc import AbstractLLMPlugin
from chat_bridge.core.exceptions import ProviderError

if TYPE_CHECKING:
    from chat_bridge.core.abc import AbstractLLMTransport
    from chat_bridge.core.config import LLMConfig
    from chat_bridge.core.prompt import PromptAssembler
    from chat_bridge.core.types import CompletionRequest, ConversationThread, Message

logger = logging.getLogger(__name__)

TOO_LONG_REPLY = "I'm sorry but that request was too long for me."
PROVIDER_FAILURE_REPLY = 'Sorry, I had an issue generating a response to your message.'

PromptT = TypeVar('PromptT')
ConfigT = TypeVar('ConfigT', bound='LLMConfig')

#: Builds the provider payload from the configuration and an assembled prompt.
RequestShaper = Callable[[ConfigT, PromptT], 'CompletionRequest']


def strip_echoed_prompt(generated: str, prompt: str) -> str:
    """Remove *prompt* when a raw completion model repeats it before its answer."""
    text = generated.strip()
    echoed = prompt.strip()
    if echoed and text.startswith(echoed):
        text = text[len(echoed) :].strip()
    return text


class GenerativePlugin(AbstractLLMPlugin, Generic[ConfigT, PromptT]):
    """Orchestrates assembler, request shaper and transport for one backend."""

    def __init__(
        self,
        config: ConfigT,
        transport: AbstractLLMTransport,
        assembler: PromptAssembler[PromptT],
        shape_request: RequestShaper[ConfigT, PromptT],
    ) -> None:
        self._config = config
        self._transport = transport
        self._assembler = assembler
        self._shape_request = shape_request

    @property
    def config(self) -> ConfigT:
        return self._config

    def handle(self, thread: ConversationThread) -> Message:
        timestamp = datetime.now(UTC)
        try:
            prompt = self._assembler.assemble(
                self._config.system_message,
                thread.messages,
                self._config.max_input_tokens,
            )
            if prompt is None:
                logger.debug(
                    '[%s] conversation does not fit %d input tokens',
                    self._config.name,
                    self._config.max_input_tokens,
                )
                return thread.new_message_from_bot(timestamp, TOO_LONG_REPLY)

            request = self._shape_request(self._config, prompt)
            timestamp = datetime.now(UTC)
            generated = self._transport.complete(request)
            reply = strip_echoed_prompt(generated, prompt) if isinstance(prompt, str) else generated.strip()
        except ProviderError as exc:
            logger.log(
                exc.log_level,
                '[%s] %s from provider: %s',
                self._config.name,
                type(exc).__name__,
                exc,
                exc_info=exc.__cause__ is not None,
            )
            reply = PROVIDER_FAILURE_REPLY
        except Exception:
            logger.exception('[%s] unexpected failure while generating a reply', self._config.name)
            reply = PROVIDER_FAILURE_REPLY
        else:
            logger.info('[%s] response from %s: %s', self._config.name, self._config.model, generated)

        return thread.new_message_from_bot(timestamp, reply)

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f'<{self.__class__.__name__} name={self._config.name!r} model={self._config.model!r}>'
