from __future__ import annotations

import pytest

from chat_bridge.core.prompt import ChatPromptAssembler, LlamaPromptAssembler
from chat_bridge.core.types import ChatTurn, Message, Role


def word_count(text: str) -> int:
    return len(text.split())


def user(text: str) -> Message:
    return Message(role=Role.user, content=text)


def bot(text: str) -> Message:
    return Message(role=Role.assistant, content=text)


HISTORY = [
    user('first question about apples'),
    bot('first answer about apples'),
    user('second question about pears'),
    bot('second answer about pears'),
    user('third question about plums'),
]


@pytest.fixture
def llama() -> LlamaPromptAssembler:
    return LlamaPromptAssembler(word_count)


# ---------------------------------------------------------------------------
# Llama template
# ---------------------------------------------------------------------------


def test_llama_single_turn(llama: LlamaPromptAssembler) -> None:
    assert llama.render('be nice', [user('hi')]) == '<s>[INST] <<SYS>>\nbe nice\n<</SYS>>\n\nhi [/INST]'


def test_llama_multi_turn(llama: LlamaPromptAssembler) -> None:
    prompt = llama.render('be nice', [user('hi'), bot('hello'), user('how are you?')])
    assert prompt == (
        '<s>[INST] <<SYS>>\nbe nice\n<</SYS>>\n\nhi [/INST] hello </s><s>[INST] how are you? [/INST]'
    )


def test_llama_merges_consecutive_turns(llama: LlamaPromptAssembler) -> None:
    prompt = llama.render('sys', [user('one'), user('two')])
    assert prompt.endswith('one\ntwo [/INST]')
    assert prompt.count('[/INST]') == 1


def test_llama_without_history_closes_instruction(llama: LlamaPromptAssembler) -> None:
    assert llama.render('sys', []) == '<s>[INST] <<SYS>>\nsys\n<</SYS>>\n\n [/INST]'


# ---------------------------------------------------------------------------
# Windowing
# ---------------------------------------------------------------------------


def test_whole_history_kept_when_it_fits(llama: LlamaPromptAssembler) -> None:
    assert llama.assemble('sys', HISTORY, 10_000) == llama.render('sys', HISTORY)


def test_oldest_turns_dropped_first(llama: LlamaPromptAssembler) -> None:
    budget = word_count(llama.render('sys', HISTORY[2:]))
    prompt = llama.assemble('sys', HISTORY, budget)
    assert prompt == llama.render('sys', HISTORY[2:])
    assert 'apples' not in prompt
    assert 'plums' in prompt


def test_window_never_starts_on_bot_turn(llama: LlamaPromptAssembler) -> None:
    # one token short of keeping the second question
    budget = word_count(llama.render('sys', HISTORY[2:])) - 1
    assert llama.assemble('sys', HISTORY, budget) == llama.render('sys', HISTORY[4:])


def test_none_when_system_message_alone_is_too_long(llama: LlamaPromptAssembler) -> None:
    assert llama.assemble('a very long system message indeed', HISTORY, 3) is None


def test_none_when_newest_turn_does_not_fit(llama: LlamaPromptAssembler) -> None:
    budget = word_count(llama.render('sys', HISTORY[4:])) - 1
    assert llama.assemble('sys', HISTORY, budget) is None


def test_assembly_is_deterministic(llama: LlamaPromptAssembler) -> None:
    budget = word_count(llama.render('sys', HISTORY[2:]))
    assert llama.assemble('sys', HISTORY, budget) == llama.assemble('sys', HISTORY, budget)


def test_empty_history_renders_system_message(llama: LlamaPromptAssembler) -> None:
    assert llama.assemble('sys', [], 100) == llama.render('sys', [])


# ---------------------------------------------------------------------------
# Chat turns
# ---------------------------------------------------------------------------


def test_chat_prompt_starts_with_system_turn() -> None:
    prompt = ChatPromptAssembler(word_count).assemble('sys', HISTORY[:2], 100)
    assert prompt == [
        ChatTurn(role=Role.system, content='sys'),
        ChatTurn(role=Role.user, content='first question about apples'),
        ChatTurn(role=Role.assistant, content='first answer about apples'),
    ]


def test_chat_prompt_counts_role_prefixed_lines() -> None:
    assembler = ChatPromptAssembler(word_count)
    # "system: sys" + "user: third question about plums"
    assert assembler.assemble('sys', HISTORY, 7) == [
        ChatTurn(role=Role.system, content='sys'),
        ChatTurn(role=Role.user, content='third question about plums'),
    ]
    assert assembler.assemble('sys', HISTORY, 6) is None
