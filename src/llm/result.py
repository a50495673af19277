# src/llm/result.py - v1
"""Immutable result objects returned to callers."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from inferlink.llm.models import (
    CapabilityResponse,
    EmbeddingUsage,
    GeneratedText,
    LanguageModelUsage,
    ResponseInfo,
)
from inferlink.prompt.models import ProviderMetadata, ToolCallPart

R = TypeVar("R", bound="InvocationResult")


class InvocationResult(BaseModel):
    """Outcome of one successful invocation.

    Frozen: assignment raises, and no setters are exposed.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: Any
    payload: Any
    usage: Any = None
    provider_metadata: ProviderMetadata | None = None
    response: ResponseInfo | None = None


class EmbedResult(InvocationResult):
    """Result of embed(): one value, one embedding."""

    payload: list[float]
    usage: EmbeddingUsage = Field(default_factory=EmbeddingUsage)

    @property
    def embedding(self) -> list[float]:
        return self.payload


class EmbedManyResult(InvocationResult):
    """Result of embed_many(): embeddings in the same order as the values."""

    value: list[Any]
    payload: list[list[float]]
    usage: EmbeddingUsage = Field(default_factory=EmbeddingUsage)

    @property
    def values(self) -> list[Any]:
        return self.value

    @property
    def embeddings(self) -> list[list[float]]:
        return self.payload


class GenerateTextResult(InvocationResult):
    """Result of generate_text(); ``value`` is the standardized conversation."""

    payload: GeneratedText
    usage: LanguageModelUsage = Field(default_factory=LanguageModelUsage)

    @property
    def text(self) -> str:
        return self.payload.text

    @property
    def tool_calls(self) -> tuple[ToolCallPart, ...]:
        return self.payload.tool_calls

    @property
    def finish_reason(self) -> str:
        return self.payload.finish_reason


def assemble_result(
    value: Any,
    response: CapabilityResponse,
    result_cls: type[R] = InvocationResult,  # type: ignore[assignment]
) -> R:
    """Package a capability response with the caller's input value.

    A missing usage falls back to the result class default (NaN counts).
    """
    fields: dict[str, Any] = {
        "value": value,
        "payload": response.payload,
        "provider_metadata": response.provider_metadata,
        "response": response.response,
    }
    if response.usage is not None:
        fields["usage"] = response.usage
    return result_cls(**fields)
