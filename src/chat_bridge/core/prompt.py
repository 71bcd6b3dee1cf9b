"""core.prompt

Turn a system message and an ordered conversation history into a prompt that
fits a token budget.

The windowing policy is shared: render the longest suffix of the history that
starts on a user turn and still fits, dropping the oldest turns first. If not
even the newest user turn fits next to the system message, there is no prompt.
Concrete assemblers only decide how a window is rendered.

Assemblers are pure; they hold nothing but their token counter and may be
shared across threads.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Generic, TypeVar

from chat_bridge.core.tokens import count_tokens
from chat_bridge.core.types import ChatTurn, Message, Role

if TYPE_CHECKING:
    from collections.abc import Sequence

    from chat_bridge.core.tokens import TokenCounter

logger = logging.getLogger(__name__)

PromptT = TypeVar('PromptT')


class PromptAssembler(ABC, Generic[PromptT]):
    """Base class implementing recency-first history trimming."""

    def __init__(self, token_counter: TokenCounter | None = None) -> None:
        self._count_tokens: TokenCounter = token_counter or count_tokens

    def assemble(
        self,
        system_message: str,
        history: Sequence[Message],
        max_input_tokens: int,
    ) -> PromptT | None:
        """Return the largest prompt that fits *max_input_tokens*, or None."""
        for start in self._window_starts(history):
            prompt = self.render(system_message, history[start:])
            tokens = self._count_tokens(self.text_of(prompt))
            if tokens <= max_input_tokens:
                if start:
                    logger.debug('Dropped %d oldest message(s) to fit %d tokens', start, max_input_tokens)
                return prompt
        logger.debug('No prompt fits within %d tokens', max_input_tokens)
        return None

    @staticmethod
    def _window_starts(history: Sequence[Message]) -> list[int]:
        starts = [i for i, message in enumerate(history) if message.role is not Role.assistant]
        return starts or [0]

    @abstractmethod
    def render(self, system_message: str, turns: Sequence[Message]) -> PromptT:
        """Render *turns* after *system_message* in the provider's layout."""

    @abstractmethod
    def text_of(self, prompt: PromptT) -> str:
        """Text whose token count is charged against the budget."""


def _merge_consecutive(turns: Sequence[Message]) -> list[tuple[bool, str]]:
    """Collapse runs of same-side turns into (is_assistant, text) blocks."""
    blocks: list[tuple[bool, str]] = []
    for turn in turns:
        is_assistant = turn.role is Role.assistant
        if blocks and blocks[-1][0] == is_assistant:
            blocks[-1] = (is_assistant, f'{blocks[-1][1]}\n{turn.content}')
        else:
            blocks.append((is_assistant, turn.content))
    return blocks


class LlamaPromptAssembler(PromptAssembler[str]):
    """Llama 2 chat template.

    ``<s>[INST] <<SYS>>\\n{system}\\n<</SYS>>\\n\\n{user} [/INST] {answer} </s><s>[INST] {user} [/INST]``
    """

    BOS = '<s>'
    EOS = '</s>'
    B_INST, E_INST = '[INST]', '[/INST]'
    B_SYS, E_SYS = '<<SYS>>\n', '\n<</SYS>>\n\n'

    def render(self, system_message: str, turns: Sequence[Message]) -> str:
        prompt = f'{self.BOS}{self.B_INST} {self.B_SYS}{system_message}{self.E_SYS}'
        instruction_open = True
        for is_assistant, text in _merge_consecutive(turns):
            if is_assistant:
                if instruction_open:
                    prompt += f' {self.E_INST}'
                    instruction_open = False
                prompt += f' {text} {self.EOS}'
            else:
                if not instruction_open:
                    prompt += f'{self.BOS}{self.B_INST} '
                prompt += f'{text} {self.E_INST}'
                instruction_open = False
        if instruction_open:
            prompt += f' {self.E_INST}'
        return prompt

    def text_of(self, prompt: str) -> str:
        return prompt


class ChatPromptAssembler(PromptAssembler[list[ChatTurn]]):
    """Role-tagged turns for chat-completion style APIs."""

    def render(self, system_message: str, turns: Sequence[Message]) -> list[ChatTurn]:
        return [
            ChatTurn(role=Role.system, content=system_message),
            *(ChatTurn(role=turn.role, content=turn.content) for turn in turns),
        ]

    def text_of(self, prompt: list[ChatTurn]) -> str:
        return '\n'.join(f'{turn.role}: {turn.content}' for turn in prompt)
