# src/llm/capability.py - v1
"""Abstract capability interface: the invocable unit behind every pipeline.

A capability exposes a specification version, a provider identifier, a
model identifier and one async ``invoke`` operation. Pipelines reject any
capability whose version differs from SPECIFICATION_VERSION before doing
any network-bound work.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from inferlink.core.errors import UnsupportedModelVersionError
from inferlink.llm.cancellation import CancellationToken
from inferlink.llm.models import CapabilityResponse

SPECIFICATION_VERSION = "v2"


class CapabilityRequest(BaseModel):
    """Input to one capability round-trip."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    input: Any
    cancellation: CancellationToken | None = None
    headers: dict[str, str] | None = None
    provider_options: dict[str, dict[str, Any]] | None = None
    call_settings: dict[str, Any] = Field(default_factory=dict)

    def options_for(self, namespace: str) -> dict[str, Any]:
        """Copy of the provider options addressed to ``namespace``."""
        return dict((self.provider_options or {}).get(namespace) or {})


class BaseCapability(ABC):
    """Unified interface for all invocable models."""

    specification_version: str = SPECIFICATION_VERSION

    @property
    @abstractmethod
    def provider(self) -> str:
        """Provider identifier (e.g. openai-compatible)."""

    @property
    @abstractmethod
    def model_id(self) -> str:
        """Provider-specific model identifier."""

    @abstractmethod
    async def invoke(self, request: CapabilityRequest) -> CapabilityResponse:
        """Perform exactly one provider round-trip."""


class BaseEmbeddingModel(BaseCapability):
    """Capability turning values into embedding vectors.

    ``invoke`` receives a list of values as ``request.input`` and returns
    one embedding per value, in order, as the payload.
    """

    # None = no limit on values per call
    max_embeddings_per_call: int | None = None


class BaseLanguageModel(BaseCapability):
    """Capability generating text from OpenAI-compatible wire messages.

    ``invoke`` receives the normalized wire messages as ``request.input``
    and returns a GeneratedText payload.
    """

    # Provider metadata namespace merged into the wire messages.
    wire_namespace: str = "openaiCompatible"


def check_specification_version(model: BaseCapability) -> None:
    """Reject capabilities implementing a different contract version.

    Raises:
        UnsupportedModelVersionError: Version tag mismatch.
    """
    version = getattr(model, "specification_version", None)
    if version != SPECIFICATION_VERSION:
        raise UnsupportedModelVersionError(
            version=str(version),
            provider=str(getattr(model, "provider", "unknown")),
            model_id=str(getattr(model, "model_id", "unknown")),
        )
