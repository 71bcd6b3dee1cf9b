from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import httpx
import openai
import pytest

from chat_bridge.adapters.openai_adapter import ChatCompletionsTransport
from chat_bridge.core.exceptions import (
    GenerationTimeoutError,
    LLMClientError,
    MalformedResponseError,
    ModelNotFoundError,
    ProviderAuthenticationError,
    ProviderConnectionError,
    RateLimitExceededError,
)
from chat_bridge.core.retry import NO_RETRY
from chat_bridge.core.types import ChatTurn, CompletionRequest, Role

_HTTP_REQUEST = httpx.Request('POST', 'https://api.example.com/v1/chat/completions')


class FakeCompletions:
    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def _transport(completions: FakeCompletions) -> ChatCompletionsTransport:
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return ChatCompletionsTransport(client=client, retry_strategy=NO_RETRY)  # type: ignore[arg-type]


def _response(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _status_error(error_cls: type[openai.APIStatusError], status: int) -> openai.APIStatusError:
    return error_cls('error', response=httpx.Response(status, request=_HTTP_REQUEST), body=None)


REQUEST = CompletionRequest(
    model='gpt-4o-mini',
    prompt=[ChatTurn(role=Role.system, content='sys'), ChatTurn(role=Role.user, content='hi')],
    parameters={'max_tokens': 16},
)


def test_invoke_maps_turns_and_parameters() -> None:
    completions = FakeCompletions(_response('hello'))

    assert _transport(completions).complete(REQUEST) == 'hello'
    assert completions.calls == [
        {
            'model': 'gpt-4o-mini',
            'messages': [{'role': 'system', 'content': 'sys'}, {'role': 'user', 'content': 'hi'}],
            'max_tokens': 16,
        }
    ]


@pytest.mark.parametrize(
    ('error', 'expected'),
    [
        (_status_error(openai.RateLimitError, 429), RateLimitExceededError),
        (_status_error(openai.NotFoundError, 404), ModelNotFoundError),
        (_status_error(openai.AuthenticationError, 401), ProviderAuthenticationError),
        (_status_error(openai.InternalServerError, 500), LLMClientError),
        (openai.APITimeoutError(request=_HTTP_REQUEST), GenerationTimeoutError),
        (openai.APIConnectionError(request=_HTTP_REQUEST), ProviderConnectionError),
    ],
)
def test_sdk_errors_are_translated(error: Exception, expected: type[Exception]) -> None:
    with pytest.raises(expected):
        _transport(FakeCompletions(error=error)).complete(REQUEST)


@pytest.mark.parametrize('response', [SimpleNamespace(choices=[]), _response(None)])
def test_missing_content_is_malformed(response: Any) -> None:
    with pytest.raises(MalformedResponseError):
        _transport(FakeCompletions(response)).complete(REQUEST)
