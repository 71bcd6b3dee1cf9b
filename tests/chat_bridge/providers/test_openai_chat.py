from __future__ import annotations

from chat_bridge.core.abc import AbstractLLMTransport
from chat_bridge.core.plugin import PROVIDER_FAILURE_REPLY
from chat_bridge.core.retry import NO_RETRY
from chat_bridge.core.types import ChatTurn, CompletionRequest, Message, Role, ThreadState
from chat_bridge.providers.openai_chat import OpenAIConfig, shape_chat_request

MINIMAL = {'model': 'gpt-4o-mini', 'token_limit': 128_000, 'max_output_tokens': 1024}


class RecordingTransport(AbstractLLMTransport):
    def __init__(self, reply: str | None) -> None:
        super().__init__(retry_strategy=NO_RETRY)
        self.reply = reply
        self.requests: list[CompletionRequest] = []

    def _invoke(self, request: CompletionRequest) -> str | None:
        self.requests.append(request)
        return self.reply


def test_all_configured_knobs_are_forwarded() -> None:
    config = OpenAIConfig.from_mapping(
        {
            **MINIMAL,
            'temperature': 0.7,
            'top_p': 0.95,
            'presence_penalty': -1.0,
            'frequency_penalty': 0.5,
            'logit_bias': {'50256': -100},
        }
    )
    request = shape_chat_request(config, [ChatTurn(role=Role.user, content='hi')])
    assert request.parameters == {
        'temperature': 0.7,
        'top_p': 0.95,
        'max_tokens': 1024,
        'presence_penalty': -1.0,
        'frequency_penalty': 0.5,
        'logit_bias': {'50256': -100.0},
    }


def test_absent_knobs_are_omitted() -> None:
    config = OpenAIConfig.from_mapping({'model': 'gpt-4o-mini', 'token_limit': 8000})
    assert shape_chat_request(config, []).parameters == {}


def test_plugin_sends_chat_turns() -> None:
    transport = RecordingTransport(' Hi! ')
    plugin = OpenAIConfig.from_mapping(MINIMAL).to_plugin(transport=transport, token_counter=len)
    thread = ThreadState(messages=(Message(role=Role.user, content='hello'),))

    reply = plugin.handle(thread)

    assert reply.content == 'Hi!'
    assert transport.requests[0].prompt == [
        ChatTurn(role=Role.system, content="You're a helpful assistant."),
        ChatTurn(role=Role.user, content='hello'),
    ]


def test_empty_provider_answer_is_a_failure() -> None:
    transport = RecordingTransport(None)
    plugin = OpenAIConfig.from_mapping(MINIMAL).to_plugin(transport=transport, token_counter=len)
    thread = ThreadState(messages=(Message(role=Role.user, content='hello'),))
    assert plugin.handle(thread).content == PROVIDER_FAILURE_REPLY
