# src/llm/models.py - v1
"""LLM-specific types: usage counters, response info, capability responses, payloads."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from inferlink.prompt.models import ProviderMetadata, ToolCallPart

NOT_A_NUMBER = math.nan


class EmbeddingUsage(BaseModel):
    """Tokens consumed by an embedding call. Unknown counts are NaN, not zero."""

    model_config = ConfigDict(frozen=True)

    tokens: float = NOT_A_NUMBER

    def __add__(self, other: EmbeddingUsage) -> EmbeddingUsage:
        return EmbeddingUsage(tokens=self.tokens + other.tokens)


class LanguageModelUsage(BaseModel):
    """Tokens consumed by a generation call. Unknown counts are NaN, not zero."""

    model_config = ConfigDict(frozen=True)

    prompt_tokens: float = NOT_A_NUMBER
    completion_tokens: float = NOT_A_NUMBER

    @property
    def total_tokens(self) -> float:
        return self.prompt_tokens + self.completion_tokens


class ResponseInfo(BaseModel):
    """Raw response details reported by the capability."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    timestamp: datetime | None = None
    model_id: str | None = None
    headers: dict[str, str] | None = None
    body: Any = None


class GeneratedText(BaseModel):
    """Payload of a text generation call."""

    model_config = ConfigDict(frozen=True)

    text: str = ""
    tool_calls: tuple[ToolCallPart, ...] = ()
    finish_reason: str = "unknown"


class CapabilityResponse(BaseModel):
    """What a capability returns from one round-trip."""

    model_config = ConfigDict(frozen=True)

    payload: Any
    usage: Any = None
    provider_metadata: ProviderMetadata | None = None
    response: ResponseInfo | None = None
