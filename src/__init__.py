# src/__init__.py - v1
"""inferlink: provider-agnostic invocation of embedding and text generation models.

Usage:
    from inferlink import embed, generate_text
    result = await generate_text(model, prompt="Hello")
"""

from __future__ import annotations

from inferlink.api.embed import embed, embed_many
from inferlink.api.generate import generate_text
from inferlink.core.errors import (
    ContractViolationError,
    InferlinkError,
    InvalidArgumentError,
    InvalidPromptError,
    InvocationCancelledError,
    ProviderCallError,
    UnsupportedContentError,
    UnsupportedModelVersionError,
)
from inferlink.llm.cancellation import CancellationToken
from inferlink.llm.capability import (
    SPECIFICATION_VERSION,
    BaseEmbeddingModel,
    BaseLanguageModel,
    CapabilityRequest,
)
from inferlink.llm.models import CapabilityResponse, EmbeddingUsage, LanguageModelUsage
from inferlink.llm.result import EmbedManyResult, EmbedResult, GenerateTextResult
from inferlink.prompt.normalizer import normalize
from inferlink.telemetry.settings import TelemetrySettings

__all__ = [
    "SPECIFICATION_VERSION",
    "BaseEmbeddingModel",
    "BaseLanguageModel",
    "CancellationToken",
    "CapabilityRequest",
    "CapabilityResponse",
    "ContractViolationError",
    "EmbedManyResult",
    "EmbedResult",
    "EmbeddingUsage",
    "GenerateTextResult",
    "InferlinkError",
    "InvalidArgumentError",
    "InvalidPromptError",
    "InvocationCancelledError",
    "LanguageModelUsage",
    "ProviderCallError",
    "TelemetrySettings",
    "UnsupportedContentError",
    "UnsupportedModelVersionError",
    "embed",
    "embed_many",
    "generate_text",
    "normalize",
]
