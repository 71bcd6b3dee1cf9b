"""providers.hugging_face

Models deployed on a Hugging Face inference endpoint. Text-generation-inference
speaks the Chat Completions protocol, so the OpenAI transport is reused with
the endpoint as its base URL.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from pydantic import Field

from chat_bridge.adapters.openai_adapter import ChatCompletionsTransport
from chat_bridge.core.config import LLMConfig, NonBlankStr
from chat_bridge.core.plugin import GenerativePlugin
from chat_bridge.core.prompt import ChatPromptAssembler
from chat_bridge.providers.openai_chat import shape_chat_request
from chat_bridge.registry.provider_registry import provider_registry

if TYPE_CHECKING:
    from chat_bridge.core.abc import AbstractLLMTransport
    from chat_bridge.core.tokens import TokenCounter
    from chat_bridge.core.types import ChatTurn


@provider_registry.register
class HuggingFaceConfig(LLMConfig):
    """Configuration for a text-generation-inference endpoint.

    TGI serves a single model and ignores the model name, hence the default.
    """

    type: Literal['hugging_face'] = 'hugging_face'
    model: NonBlankStr = 'tgi'
    endpoint: NonBlankStr
    api_key: NonBlankStr = Field(..., repr=False)

    def to_plugin(
        self,
        *,
        transport: AbstractLLMTransport | None = None,
        token_counter: TokenCounter | None = None,
    ) -> GenerativePlugin[HuggingFaceConfig, list[ChatTurn]]:
        return GenerativePlugin(
            self,
            transport or ChatCompletionsTransport(api_key=self.api_key, base_url=self._base_url()),
            ChatPromptAssembler(token_counter),
            shape_chat_request,
        )

    def _base_url(self) -> str:
        base = self.endpoint.rstrip('/')
        if not base.startswith(('http://', 'https://')):
            base = f'https://{base}'
        return base if base.endswith('/v1') else f'{base}/v1'
