"""registry.plugin_factory

Factory responsible for converting a declarative configuration (a mapping,
usually decoded from a file) into a validated LLMConfig and from there into a
ready plugin (subclass of AbstractLLMPlugin).
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, overload

# Importing the provider modules registers them with provider_registry
import chat_bridge.providers.bedrock_llama  # noqa: F401
import chat_bridge.providers.hugging_face  # noqa: F401
import chat_bridge.providers.openai_chat  # noqa: F401
from chat_bridge.core.config import LLMConfig
from chat_bridge.core.exceptions import ConfigurationError, FieldViolation
from chat_bridge.registry.provider_registry import provider_registry

if TYPE_CHECKING:
    from chat_bridge.core.abc import AbstractLLMPlugin, AbstractLLMTransport
    from chat_bridge.core.tokens import TokenCounter


class LLMPluginFactory:
    """Factory for creating provider-specific configurations and plugins.

    This class is stateless; all information resides in provider_registry.
    """

    @staticmethod
    def load_config(source: Mapping[str, Any]) -> LLMConfig:
        """Validate *source* with the config class named by its ``type`` key (case-insensitive).

        Raises
        ------
        ConfigurationError
            If ``type`` is missing or any field is invalid.
        ProviderNotFoundError
            If ``type`` names an unregistered provider.

        """
        return provider_registry.load(source)

    @staticmethod
    def load_config_json(text: str | bytes) -> LLMConfig:
        """Parse a JSON object and hand it to `load_config`."""
        try:
            source = json.loads(text)
        except ValueError as exc:
            raise ConfigurationError([FieldViolation('', f'configuration is not valid JSON: {exc}')]) from exc
        if not isinstance(source, dict):
            raise ConfigurationError([FieldViolation('', 'configuration must be a JSON object')])
        return LLMPluginFactory.load_config(source)

    @staticmethod
    @overload
    def initialize_plugin(
        config: LLMConfig,
        *,
        transport: AbstractLLMTransport | None = ...,
        token_counter: TokenCounter | None = ...,
    ) -> AbstractLLMPlugin: ...

    @staticmethod
    @overload
    def initialize_plugin(
        config: Mapping[str, Any],
        *,
        transport: AbstractLLMTransport | None = ...,
        token_counter: TokenCounter | None = ...,
    ) -> AbstractLLMPlugin: ...

    @staticmethod
    def initialize_plugin(
        config: LLMConfig | Mapping[str, Any],
        *,
        transport: AbstractLLMTransport | None = None,
        token_counter: TokenCounter | None = None,
    ) -> AbstractLLMPlugin:
        """Return a plugin for *config*.

        Parameters
        ----------
        config
            Either a validated LLMConfig or a raw mapping with a ``type`` key.
        transport
            Replaces the provider's default transport (e.g. a stub in tests).
        token_counter
            Replaces the default tiktoken-based counter.

        """
        # Normalize input: validate a raw mapping first
        resolved = config if isinstance(config, LLMConfig) else LLMPluginFactory.load_config(config)
        return resolved.to_plugin(transport=transport, token_counter=token_counter)
