"""providers.openai_chat

Chat models reached through the OpenAI Chat Completions API.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from pydantic import Field

from chat_bridge.adapters.openai_adapter import ChatCompletionsTransport
from chat_bridge.core.config import LLMConfig, NonBlankStr
from chat_bridge.core.plugin import GenerativePlugin
from chat_bridge.core.prompt import ChatPromptAssembler
from chat_bridge.core.types import ChatTurn, CompletionRequest
from chat_bridge.registry.provider_registry import provider_registry

if TYPE_CHECKING:
    from chat_bridge.core.abc import AbstractLLMTransport
    from chat_bridge.core.tokens import TokenCounter


@provider_registry.register
class OpenAIConfig(LLMConfig):
    """Configuration for an OpenAI chat model.

    `api_key` may be left out, in which case `OPENAI_API_KEY` is used.
    """

    type: Literal['openai'] = 'openai'
    api_key: NonBlankStr | None = Field(default=None, repr=False)
    base_url: NonBlankStr | None = None

    def to_plugin(
        self,
        *,
        transport: AbstractLLMTransport | None = None,
        token_counter: TokenCounter | None = None,
    ) -> GenerativePlugin[OpenAIConfig, list[ChatTurn]]:
        return GenerativePlugin(
            self,
            transport or ChatCompletionsTransport(api_key=self.api_key, base_url=self.base_url),
            ChatPromptAssembler(token_counter),
            shape_chat_request,
        )


def shape_chat_request(config: LLMConfig, prompt: list[ChatTurn]) -> CompletionRequest:
    """Chat Completions arguments for every knob that was configured."""
    parameters: dict[str, Any] = {}
    if config.temperature is not None:
        parameters['temperature'] = config.temperature
    if config.top_p is not None:
        parameters['top_p'] = config.top_p
    if config.max_output_tokens is not None:
        parameters['max_tokens'] = config.max_output_tokens
    if config.presence_penalty is not None:
        parameters['presence_penalty'] = config.presence_penalty
    if config.frequency_penalty is not None:
        parameters['frequency_penalty'] = config.frequency_penalty
    if config.logit_bias:
        # the API keys logit_bias by token id as a string
        parameters['logit_bias'] = {str(token): bias for token, bias in config.logit_bias.items()}
    return CompletionRequest(model=config.model, prompt=prompt, parameters=parameters)
