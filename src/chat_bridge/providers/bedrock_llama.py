"""providers.bedrock_llama

Llama chat models hosted on Amazon Bedrock.

Llama on Bedrock is a raw completion model: it receives one templated prompt
string and may repeat that prompt before its answer, which the plugin strips.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any, Literal

from chat_bridge.adapters.bedrock_adapter import BedrockTransport
from chat_bridge.core.config import LLMConfig
from chat_bridge.core.plugin import GenerativePlugin
from chat_bridge.core.prompt import LlamaPromptAssembler
from chat_bridge.core.types import CompletionRequest
from chat_bridge.registry.provider_registry import provider_registry

if TYPE_CHECKING:
    from chat_bridge.core.abc import AbstractLLMTransport
    from chat_bridge.core.tokens import TokenCounter


class BedrockRegion(StrEnum):
    """AWS regions serving the Bedrock runtime API."""

    us_east_1 = 'us-east-1'
    us_east_2 = 'us-east-2'
    us_west_2 = 'us-west-2'
    us_gov_east_1 = 'us-gov-east-1'
    us_gov_west_1 = 'us-gov-west-1'
    ca_central_1 = 'ca-central-1'
    sa_east_1 = 'sa-east-1'
    eu_central_1 = 'eu-central-1'
    eu_central_2 = 'eu-central-2'
    eu_north_1 = 'eu-north-1'
    eu_south_1 = 'eu-south-1'
    eu_south_2 = 'eu-south-2'
    eu_west_1 = 'eu-west-1'
    eu_west_2 = 'eu-west-2'
    eu_west_3 = 'eu-west-3'
    ap_northeast_1 = 'ap-northeast-1'
    ap_northeast_2 = 'ap-northeast-2'
    ap_northeast_3 = 'ap-northeast-3'
    ap_south_1 = 'ap-south-1'
    ap_south_2 = 'ap-south-2'
    ap_southeast_1 = 'ap-southeast-1'
    ap_southeast_2 = 'ap-southeast-2'


@provider_registry.register
class BedrockLlamaConfig(LLMConfig):
    """Configuration for a Llama model served by Bedrock."""

    type: Literal['amazon_bedrock_llama'] = 'amazon_bedrock_llama'
    region: BedrockRegion

    def to_plugin(
        self,
        *,
        transport: AbstractLLMTransport | None = None,
        token_counter: TokenCounter | None = None,
    ) -> GenerativePlugin[BedrockLlamaConfig, str]:
        return GenerativePlugin(
            self,
            transport or BedrockTransport(self.region.value),
            LlamaPromptAssembler(token_counter),
            shape_llama_request,
        )


def shape_llama_request(config: BedrockLlamaConfig, prompt: str) -> CompletionRequest:
    """Bedrock Llama body: only the sampling knobs that were configured."""
    parameters: dict[str, Any] = {}
    if config.top_p is not None:
        parameters['top_p'] = config.top_p
    if config.temperature is not None:
        parameters['temperature'] = config.temperature
    if config.max_output_tokens is not None:
        parameters['max_gen_len'] = config.max_output_tokens
    return CompletionRequest(model=config.model, prompt=prompt, parameters=parameters)
