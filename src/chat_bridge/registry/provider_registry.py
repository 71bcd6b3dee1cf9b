"""registry.provider_registry

Dispatch from the ``type`` slug of a declarative configuration (e.g.
"amazon_bedrock_llama") to the config class that validates it.

Each config class declares its slug as the default of a ``type: Literal[...]``
field, and registers by decorating itself:

```python
@provider_registry.register
class OpenAIConfig(LLMConfig):
    type: Literal['openai'] = 'openai'
```

Only domain modules are imported here, so provider modules can import the
registry without pulling in any SDK.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any, TypeVar

from chat_bridge.core.config import LLMConfig
from chat_bridge.core.exceptions import ConfigurationError, FieldViolation, ProviderNotFoundError

if TYPE_CHECKING:
    from collections.abc import Mapping

ConfigT = TypeVar('ConfigT', bound=type[LLMConfig])


def normalise_slug(raw: str) -> str:
    """Canonical form of a ``type`` value: trimmed and lower-cased."""
    return raw.strip().lower()


def slug_of(config_cls: type[LLMConfig]) -> str:
    """Return the slug *config_cls* declares through its ``type`` field.

    Raises
    ------
    TypeError
        If *config_cls* is not an LLMConfig subclass or has no string
        ``type`` default.

    """
    if not isinstance(config_cls, type) or not issubclass(config_cls, LLMConfig):
        raise TypeError('config_cls must subclass LLMConfig')
    field = config_cls.model_fields.get('type')
    if field is None or not isinstance(field.default, str):
        raise TypeError(f'{config_cls.__name__} must declare a type slug as the default of its `type` field')
    return normalise_slug(field.default)


class ProviderRegistry:
    """Slug → config class table shared by the provider modules."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._config_classes: dict[str, type[LLMConfig]] = {}

    def register(self, config_cls: ConfigT) -> ConfigT:
        """Register *config_cls* under its own slug; usable as a class decorator.

        Re-registering a slug replaces the previous class.
        """
        slug = slug_of(config_cls)
        with self._lock:
            self._config_classes[slug] = config_cls
        return config_cls

    def config_cls_for(self, slug: str) -> type[LLMConfig]:
        """Return the config class for *slug* (any case, surrounding blanks ignored).

        Raises
        ------
        ProviderNotFoundError
            If no config class claims *slug*.

        """
        try:
            return self._config_classes[normalise_slug(slug)]
        except KeyError as exc:
            raise ProviderNotFoundError(f'Unsupported provider: {slug}') from exc

    def load(self, source: Mapping[str, Any]) -> LLMConfig:
        """Validate *source* with the config class its ``type`` key names.

        The slug is normalised before validation, so ``"OpenAI"`` is accepted
        wherever ``"openai"`` is.

        Raises
        ------
        ConfigurationError
            If ``type`` is missing, blank or not a string, or any field is invalid.
        ProviderNotFoundError
            If ``type`` names an unregistered provider.

        """
        raw = source.get('type')
        if not isinstance(raw, str) or not raw.strip():
            raise ConfigurationError([FieldViolation('type', 'type is a required parameter')])
        config_cls = self.config_cls_for(raw)
        return config_cls.from_mapping({**source, 'type': normalise_slug(raw)})

    def available_providers(self) -> list[str]:
        return sorted(self._config_classes)


provider_registry = ProviderRegistry()
