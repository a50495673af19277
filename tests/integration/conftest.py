# tests/integration/conftest.py - v1
"""Shared fixtures for integration tests.

OpenTelemetry SDK wiring: each test gets its own TracerProvider with an
in-memory exporter, so finished spans can be inspected without a collector.
"""

from __future__ import annotations

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from inferlink.telemetry.settings import TelemetrySettings
from inferlink.telemetry.tracer import OpenTelemetryTracer


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def otel_telemetry(span_exporter: InMemorySpanExporter) -> TelemetrySettings:
    """Telemetry routed to a private SDK provider."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    yield TelemetrySettings(
        is_enabled=True,
        function_id="integration",
        tracer=OpenTelemetryTracer(provider.get_tracer("inferlink-tests")),
    )
    provider.shutdown()
