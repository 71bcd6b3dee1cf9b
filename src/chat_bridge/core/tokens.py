"""core.tokens

Token counting used for prompt budgeting.

The real tokenizer of a hosted model is rarely available locally, so the
default counter uses tiktoken's ``cl100k_base`` encoding as a close enough
estimate. Anything with the `TokenCounter` shape can be injected instead.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable

import tiktoken

logger = logging.getLogger(__name__)

TokenCounter = Callable[[str], int]

DEFAULT_ENCODING = 'cl100k_base'


@functools.cache
def _encoder(encoding_name: str) -> tiktoken.Encoding:
    logger.debug('Loading tiktoken encoding %s', encoding_name)
    return tiktoken.get_encoding(encoding_name)


def count_tokens(text: str) -> int:
    """Return the number of tokens in *text* using the default encoding."""
    if not text:
        return 0
    return len(_encoder(DEFAULT_ENCODING).encode(text, disallowed_special=()))
