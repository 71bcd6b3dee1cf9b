"""adapters.bedrock_adapter

Concrete transport that bridges :class:`chat_bridge.core.abc.AbstractLLMTransport`
with **Amazon Bedrock** ``InvokeModel`` for text-completion models (Llama).

Credentials come from boto3's default provider chain (environment, shared
config, instance role, ...); nothing here handles secrets.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

import boto3
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    ReadTimeoutError,
)

from chat_bridge.core.abc import AbstractLLMTransport
from chat_bridge.core.exceptions import (
    GenerationTimeoutError,
    LLMClientError,
    MalformedResponseError,
    ModelNotFoundError,
    ProviderAuthenticationError,
    ProviderConnectionError,
    ProviderError,
    RateLimitExceededError,
)

if TYPE_CHECKING:
    from chat_bridge.core.retry import RetryStrategy
    from chat_bridge.core.types import CompletionRequest

logger = logging.getLogger(__name__)

_CLIENT_ERROR_MAP: dict[str, type[ProviderError]] = {
    'ThrottlingException': RateLimitExceededError,
    'ServiceQuotaExceededException': RateLimitExceededError,
    'ModelTimeoutException': GenerationTimeoutError,
    'ResourceNotFoundException': ModelNotFoundError,
    'AccessDeniedException': ProviderAuthenticationError,
    'UnrecognizedClientException': ProviderAuthenticationError,
    'ExpiredTokenException': ProviderAuthenticationError,
}


def _translate_client_error(exc: ClientError) -> ProviderError:
    code = exc.response.get('Error', {}).get('Code', '')
    error_cls = _CLIENT_ERROR_MAP.get(code, LLMClientError)
    return error_cls(f'Bedrock rejected the request ({code or "unknown error"})')


class BedrockTransport(AbstractLLMTransport):
    """Transport for Bedrock models that take a single ``prompt`` string."""

    def __init__(
        self,
        region: str,
        *,
        client: Any | None = None,
        retry_strategy: RetryStrategy | None = None,
    ) -> None:
        super().__init__(retry_strategy=retry_strategy)
        self._region = region
        self._client = client or boto3.client(service_name='bedrock-runtime', region_name=region)

    # ------------------------------------------------------------------
    # Synchronous path
    # ------------------------------------------------------------------

    def _invoke(self, request: CompletionRequest) -> str:
        if not isinstance(request.prompt, str):
            raise TypeError('BedrockTransport expects a text prompt')
        body = json.dumps({**request.parameters, 'prompt': request.prompt})
        logger.debug('Invoking Bedrock model %s in %s', request.model, self._region)
        try:
            response = self._client.invoke_model(
                modelId=request.model,
                body=body,
                contentType='application/json',
                accept='application/json',
            )
        except ClientError as exc:
            raise _translate_client_error(exc) from exc
        except (ConnectTimeoutError, ReadTimeoutError) as exc:
            raise GenerationTimeoutError('Bedrock did not answer in time') from exc
        except EndpointConnectionError as exc:
            raise ProviderConnectionError('Could not reach Bedrock') from exc
        except NoCredentialsError as exc:
            raise ProviderAuthenticationError('No AWS credentials available') from exc
        except BotoCoreError as exc:  # generic fallback
            raise LLMClientError('Upstream provider error') from exc

        try:
            payload = json.loads(response['body'].read())
            generation = payload['generation']
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedResponseError('Bedrock response has no generation') from exc
        if not isinstance(generation, str):
            raise MalformedResponseError('Bedrock generation is not text')
        return generation

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f'<{self.__class__.__name__} region={self._region!r}>'
