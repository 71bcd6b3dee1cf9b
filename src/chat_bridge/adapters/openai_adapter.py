"""adapters.openai_adapter

Concrete transport that bridges :class:`chat_bridge.core.abc.AbstractLLMTransport`
with the **OpenAI Chat Completions** HTTP API.

This implementation targets *openai==1.x* (the new "unified" client). Any
server speaking the same protocol (e.g. a Hugging Face text-generation-inference
endpoint) can be reached by passing ``base_url``.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

import openai
from dotenv import load_dotenv

from chat_bridge.core.abc import AbstractLLMTransport
from chat_bridge.core.exceptions import (
    GenerationTimeoutError,
    LLMClientError,
    MalformedResponseError,
    ModelNotFoundError,
    ProviderAuthenticationError,
    ProviderConnectionError,
    RateLimitExceededError,
)

if TYPE_CHECKING:
    from chat_bridge.core.retry import RetryStrategy
    from chat_bridge.core.types import CompletionRequest

load_dotenv()

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Transport implementation
# ---------------------------------------------------------------------------


class ChatCompletionsTransport(AbstractLLMTransport):
    """Transport for chat-completion endpoints."""

    # NOTE: without an explicit key the client falls back to `OPENAI_API_KEY`.

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        client: openai.OpenAI | None = None,
        retry_strategy: RetryStrategy | None = None,
    ) -> None:
        super().__init__(retry_strategy=retry_strategy)
        # the client's own retry loop would multiply with ours
        self._client = client or openai.OpenAI(
            api_key=api_key or os.getenv('OPENAI_API_KEY'),
            base_url=base_url,
            max_retries=0,
        )

    # ------------------------------------------------------------------
    # Synchronous path
    # ------------------------------------------------------------------

    def _invoke(self, request: CompletionRequest) -> str:
        if isinstance(request.prompt, str):
            raise TypeError('ChatCompletionsTransport expects chat turns')
        logger.debug('Requesting chat completion from %s', request.model)
        try:
            response = self._client.chat.completions.create(
                model=request.model,
                messages=[{'role': turn.role.value, 'content': turn.content} for turn in request.prompt],  # type: ignore[misc]
                **request.parameters,
            )
        except openai.RateLimitError as exc:
            raise RateLimitExceededError('Rate limit exceeded') from exc
        except openai.NotFoundError as exc:
            raise ModelNotFoundError('Unknown model for provider') from exc
        except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
            raise ProviderAuthenticationError('Provider rejected the credentials') from exc
        except openai.APITimeoutError as exc:
            raise GenerationTimeoutError('Provider did not answer in time') from exc
        except openai.APIConnectionError as exc:
            raise ProviderConnectionError('Could not reach provider') from exc
        except openai.OpenAIError as exc:  # generic fallback
            raise LLMClientError('Upstream provider error') from exc

        if not response.choices or response.choices[0].message.content is None:
            raise MalformedResponseError('Completion has no message content')
        return response.choices[0].message.content
