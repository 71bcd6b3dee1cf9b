"""core.config

Validated, immutable generation parameters for one configured backend.

A configuration can be produced two ways, both ending in the same pydantic
validation pass:

* `LLMConfig.from_mapping()` - validating factory over a plain key/value
  mapping (typically decoded from a file). Every violated field is reported
  at once through `ConfigurationError.violations`.
* `LLMConfig.builder()` - an immutable staged builder whose setters validate
  their own field immediately, so the offending value surfaces at the call
  site rather than at `build()`.

The input/output token split is derived here: when `max_input_tokens` is not
given it defaults to half the context window, or to whatever the output
reservation leaves over (possibly nothing). An explicit `max_input_tokens` must
be positive. Derived values are left out of the declarative form.
"""

from __future__ import annotations

import functools
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Annotated, Any, Generic, Self, TypeVar

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic_core import PydanticCustomError

from chat_bridge.core.exceptions import ConfigurationError, FieldViolation

if TYPE_CHECKING:
    from collections.abc import Callable

    from chat_bridge.core.abc import AbstractLLMPlugin, AbstractLLMTransport
    from chat_bridge.core.tokens import TokenCounter

DEFAULT_SYSTEM_MESSAGE = "You're a helpful assistant."
MAX_OUTPUT_TOKENS_CEILING = 2048

# ---------------------------------------------------------------------------
# Constrained field types
# ---------------------------------------------------------------------------


def _require_non_blank(value: str) -> str:
    if not value.strip():
        raise ValueError('cannot be blank')
    return value


NonBlankStr = Annotated[str, AfterValidator(_require_non_blank)]
Temperature = Annotated[float, Field(ge=0.0, le=2.0)]
TopP = Annotated[float, Field(gt=0.0, le=1.0)]
Penalty = Annotated[float, Field(ge=-2.0, le=2.0)]
LogitBias = Annotated[float, Field(ge=-100.0, le=100.0)]
TokenCount = Annotated[int, Field(gt=0)]
OutputTokenCount = Annotated[int, Field(gt=0, le=MAX_OUTPUT_TOKENS_CEILING)]

def _violations_from(exc: ValidationError) -> list[FieldViolation]:
    violations = []
    for error in exc.errors():
        field = '.'.join(str(part) for part in error['loc'])
        if not field:
            # cross-field errors carry the field they blame in their context
            field = str(error.get('ctx', {}).get('field', ''))
        violations.append(FieldViolation(field, error['msg']))
    return violations


# ---------------------------------------------------------------------------
# Configuration model
# ---------------------------------------------------------------------------


class LLMConfig(BaseModel, ABC):
    """Provider-independent generation parameters.

    Optional parameters are `None` when absent; absent parameters are never
    sent to a provider. Subclasses add a `type` slug and the fields needed
    to locate and authenticate against their provider.
    """

    # Readability of the name is not important unless it comes from a config file
    name: NonBlankStr = Field(default_factory=lambda: str(uuid.uuid4()))
    model: NonBlankStr
    temperature: Temperature | None = None
    top_p: TopP | None = None
    token_limit: TokenCount = Field(..., description='total context window of the model')
    max_output_tokens: OutputTokenCount | None = None
    presence_penalty: Penalty | None = None
    frequency_penalty: Penalty | None = None
    logit_bias: dict[int, LogitBias] = Field(default_factory=lambda: MappingProxyType({}))
    system_message: NonBlankStr = DEFAULT_SYSTEM_MESSAGE
    # 0 until derived from token_limit and max_output_tokens when omitted
    max_input_tokens: TokenCount = 0

    model_config = ConfigDict(frozen=True, extra='forbid')

    # --------------------------- Validators ---------------------------

    @field_validator('*', mode='before')
    @classmethod
    def _reject_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError('cannot be null, omit the key to leave it unset')
        return v

    @field_validator('logit_bias')
    @classmethod
    def _freeze_logit_bias(cls, v: dict[int, float]) -> Mapping[int, float]:
        return MappingProxyType(dict(v))

    @model_validator(mode='after')
    def _check_token_budget(self) -> Self:
        if self.max_output_tokens is not None and self.max_output_tokens > self.token_limit:
            raise PydanticCustomError(
                'token_budget',
                f'max_output_tokens must be <= {self.token_limit}',
                {'field': 'max_output_tokens'},
            )
        if 'max_input_tokens' not in self.model_fields_set:
            if self.max_output_tokens is None:
                # leave half of the context window for the output
                derived = self.token_limit // 2
            else:
                derived = self.token_limit - self.max_output_tokens
            object.__setattr__(self, 'max_input_tokens', derived)
        elif self.max_input_tokens + (self.max_output_tokens or 0) > self.token_limit:
            raise PydanticCustomError(
                'token_budget',
                'max_input_tokens + max_output_tokens must total to be less than or equal to '
                f'{self.token_limit}, the total context tokens allowed by this model',
                {'field': 'max_input_tokens'},
            )
        return self

    # --------------------------- Serializers --------------------------

    @field_serializer('logit_bias')
    def _dump_logit_bias(self, v: Mapping[int, float]) -> dict[int, float]:
        return dict(v)

    # --------------------------- Constructors -------------------------

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> Self:
        """Validate *mapping* in one pass and return the immutable config.

        Raises
        ------
        ConfigurationError
            Listing every field that failed validation.

        """
        try:
            return cls.model_validate(dict(mapping))
        except ValidationError as exc:
            raise ConfigurationError(_violations_from(exc)) from exc

    @classmethod
    def builder(cls) -> ConfigBuilder[Self]:
        return ConfigBuilder(cls)

    def to_mapping(self) -> dict[str, Any]:
        """Declarative (JSON-compatible) form accepted back by `from_mapping`.

        Absent optionals are left out rather than written as null, and a
        derived max_input_tokens is left for `from_mapping` to derive again.
        """
        exclude = None if 'max_input_tokens' in self.model_fields_set else {'max_input_tokens'}
        return self.model_dump(mode='json', exclude_none=True, exclude=exclude)

    # --------------------------- Plugin wiring ------------------------

    @abstractmethod
    def to_plugin(
        self,
        *,
        transport: AbstractLLMTransport | None = None,
        token_counter: TokenCounter | None = None,
    ) -> AbstractLLMPlugin:
        """Return a plugin bound to this configuration."""


ConfigT = TypeVar('ConfigT', bound=LLMConfig)


@functools.cache
def _field_adapter(config_cls: type[LLMConfig], field_name: str) -> TypeAdapter[Any]:
    field = config_cls.model_fields[field_name]
    annotation = Annotated[(field.annotation, *field.metadata)] if field.metadata else field.annotation
    return TypeAdapter(annotation)


class ConfigBuilder(Generic[ConfigT]):
    """Immutable staged builder.

    Every declared field has a setter of the same name::

        config = (
            BedrockLlamaConfig.builder()
            .region('us-east-1')
            .model('meta.llama2-13b-chat-v1')
            .token_limit(4096)
            .build()
        )

    Setters validate their value straight away and return a new builder.
    """

    __slots__ = ('_config_cls', '_values')

    def __init__(self, config_cls: type[ConfigT], values: Mapping[str, Any] | None = None) -> None:
        self._config_cls = config_cls
        self._values: Mapping[str, Any] = MappingProxyType(dict(values or {}))

    def __getattr__(self, name: str) -> Callable[[Any], ConfigBuilder[ConfigT]]:
        if name.startswith('_') or name not in self._config_cls.model_fields:
            raise AttributeError(f'{type(self).__name__} has no setter {name!r}')
        return functools.partial(self.set, name)

    def set(self, field: str, value: Any) -> ConfigBuilder[ConfigT]:
        """Validate *value* for *field* and return a builder that includes it."""
        if field not in self._config_cls.model_fields:
            raise ConfigurationError([FieldViolation(field, 'unknown field')])
        if value is None:
            raise ConfigurationError([FieldViolation(field, 'cannot be None')])
        try:
            validated = _field_adapter(self._config_cls, field).validate_python(value)
        except ValidationError as exc:
            raise ConfigurationError(
                FieldViolation('.'.join([field, *(str(p) for p in error['loc'])]), error['msg'])
                for error in exc.errors()
            ) from exc
        return ConfigBuilder(self._config_cls, {**self._values, field: validated})

    @property
    def values(self) -> Mapping[str, Any]:
        return self._values

    def build(self) -> ConfigT:
        """Run required-field and cross-field validation and return the config."""
        return self._config_cls.from_mapping(self._values)
