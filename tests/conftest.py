# tests/conftest.py - v1
"""Shared test fixtures for all unit and integration tests.

Provides fake capabilities, a recording tracer and fast-retry settings.
No external dependencies: no network, no telemetry backend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import pytest

from inferlink.config.settings import Settings
from inferlink.core.errors import ProviderCallError
from inferlink.llm.capability import BaseEmbeddingModel, BaseLanguageModel, CapabilityRequest
from inferlink.llm.models import (
    CapabilityResponse,
    EmbeddingUsage,
    GeneratedText,
    LanguageModelUsage,
    ResponseInfo,
)
from inferlink.logging.context import clear_context
from inferlink.telemetry.settings import TelemetrySettings


# === Fakes ===


class FakeEmbeddingModel(BaseEmbeddingModel):
    """Embeds each value as [len(str(value)), position-in-call]."""

    def __init__(
        self,
        failures: list[BaseException] | None = None,
        max_embeddings_per_call: int | None = None,
        report_usage: bool = True,
        model_id: str = "fake-embed",
    ) -> None:
        self.calls: list[CapabilityRequest] = []
        self.failures = list(failures or [])
        self.max_embeddings_per_call = max_embeddings_per_call
        self.report_usage = report_usage
        self._model_id = model_id

    @property
    def provider(self) -> str:
        return "fake"

    @property
    def model_id(self) -> str:
        return self._model_id

    async def invoke(self, request: CapabilityRequest) -> CapabilityResponse:
        self.calls.append(request)
        if self.failures:
            raise self.failures.pop(0)
        values = list(request.input)
        return CapabilityResponse(
            payload=[[float(len(str(v))), float(i)] for i, v in enumerate(values)],
            usage=EmbeddingUsage(tokens=2 * len(values)) if self.report_usage else None,
            provider_metadata={"fake": {"calls": len(self.calls)}},
            response=ResponseInfo(id=f"resp-{len(self.calls)}"),
        )


class FakeLanguageModel(BaseLanguageModel):
    """Answers every request with a fixed text; records the wire messages it saw."""

    def __init__(
        self,
        text: str = "Hello back!",
        failures: list[BaseException] | None = None,
        report_usage: bool = True,
        wire_namespace: str = "openaiCompatible",
    ) -> None:
        self.calls: list[CapabilityRequest] = []
        self.failures = list(failures or [])
        self.text = text
        self.report_usage = report_usage
        self.wire_namespace = wire_namespace

    @property
    def provider(self) -> str:
        return "fake"

    @property
    def model_id(self) -> str:
        return "fake-chat"

    async def invoke(self, request: CapabilityRequest) -> CapabilityResponse:
        self.calls.append(request)
        if self.failures:
            raise self.failures.pop(0)
        usage = LanguageModelUsage(prompt_tokens=12, completion_tokens=4)
        return CapabilityResponse(
            payload=GeneratedText(text=self.text, finish_reason="stop"),
            usage=usage if self.report_usage else None,
            response=ResponseInfo(id="chatcmpl-1", model_id="fake-chat"),
        )


@dataclass
class RecordedSpan:
    name: str
    attributes: dict[str, Any]
    parent: RecordedSpan | None
    ended: bool = False
    errors: list[BaseException] = field(default_factory=list)

    def set_attributes(self, attributes: Mapping[str, Any]) -> None:
        self.attributes.update(attributes)

    def record_error(self, error: BaseException) -> None:
        self.errors.append(error)

    def end(self) -> None:
        self.ended = True


class RecordingTracer:
    """Tracer that keeps every span in start order."""

    def __init__(self) -> None:
        self.spans: list[RecordedSpan] = []

    def start_span(self, name, attributes=None, parent=None) -> RecordedSpan:
        span = RecordedSpan(name=name, attributes=dict(attributes or {}), parent=parent)
        self.spans.append(span)
        return span

    def named(self, name: str) -> list[RecordedSpan]:
        return [s for s in self.spans if s.name == name]


def transient(message: str = "503 service unavailable") -> ProviderCallError:
    return ProviderCallError(message, status_code=503)


# === FIXTURES ===


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()


@pytest.fixture
def settings() -> Settings:
    """Settings with zero backoff so retry tests run instantly."""
    return Settings(_env_file=None, retry_base_delay_s=0.0, retry_jitter=False)


@pytest.fixture
def embedding_model() -> FakeEmbeddingModel:
    return FakeEmbeddingModel()


@pytest.fixture
def language_model() -> FakeLanguageModel:
    return FakeLanguageModel()


@pytest.fixture
def make_embedding_model():
    return FakeEmbeddingModel


@pytest.fixture
def make_language_model():
    return FakeLanguageModel


@pytest.fixture
def make_transient():
    return transient


@pytest.fixture
def tracer() -> RecordingTracer:
    return RecordingTracer()


@pytest.fixture
def telemetry(tracer: RecordingTracer) -> TelemetrySettings:
    return TelemetrySettings(is_enabled=True, tracer=tracer, function_id="test-fn")
