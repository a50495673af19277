# src/telemetry/tracer.py - v1
"""Tracer abstraction with no-op and OpenTelemetry implementations.

Spans are parented explicitly: the executor passes the outer span handle
when it starts the inner one, instead of relying on ambient context.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Protocol, runtime_checkable

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

if TYPE_CHECKING:
    from inferlink.telemetry.settings import TelemetrySettings

DEFAULT_TRACER_NAME = "inferlink"


@runtime_checkable
class Span(Protocol):
    """Handle for one started span."""

    def set_attributes(self, attributes: Mapping[str, Any]) -> None: ...

    def record_error(self, error: BaseException) -> None: ...

    def end(self) -> None: ...


@runtime_checkable
class Tracer(Protocol):
    """Emits spans. Shared across invocations, so it must be concurrency-safe."""

    def start_span(
        self,
        name: str,
        attributes: Mapping[str, Any] | None = None,
        parent: Span | None = None,
    ) -> Span: ...


class NoopSpan:
    """Span that records nothing."""

    def set_attributes(self, attributes: Mapping[str, Any]) -> None:
        pass

    def record_error(self, error: BaseException) -> None:
        pass

    def end(self) -> None:
        pass


class NoopTracer:
    """Tracer used when telemetry is disabled."""

    _span = NoopSpan()

    def start_span(
        self,
        name: str,
        attributes: Mapping[str, Any] | None = None,
        parent: Span | None = None,
    ) -> Span:
        return self._span


NOOP_TRACER = NoopTracer()


class OpenTelemetrySpan:
    """Wraps an OpenTelemetry span."""

    def __init__(self, span: trace.Span) -> None:
        self.otel_span = span

    def set_attributes(self, attributes: Mapping[str, Any]) -> None:
        self.otel_span.set_attributes(_clean(attributes))

    def record_error(self, error: BaseException) -> None:
        self.otel_span.record_exception(error)
        self.otel_span.set_status(Status(StatusCode.ERROR, str(error)))

    def end(self) -> None:
        self.otel_span.end()


class OpenTelemetryTracer:
    """Adapts an OpenTelemetry tracer to the Tracer protocol."""

    def __init__(self, tracer: trace.Tracer | None = None, name: str = DEFAULT_TRACER_NAME) -> None:
        self._tracer = tracer or trace.get_tracer(name)

    def start_span(
        self,
        name: str,
        attributes: Mapping[str, Any] | None = None,
        parent: Span | None = None,
    ) -> Span:
        context = None
        if isinstance(parent, OpenTelemetrySpan):
            context = trace.set_span_in_context(parent.otel_span)
        span = self._tracer.start_span(
            name, context=context, attributes=_clean(attributes or {})
        )
        return OpenTelemetrySpan(span)


def get_tracer(telemetry: TelemetrySettings | None, name: str = DEFAULT_TRACER_NAME) -> Tracer:
    """Resolve the tracer for one invocation."""
    if telemetry is None or not telemetry.is_enabled:
        return NOOP_TRACER
    if telemetry.tracer is not None:
        return telemetry.tracer
    return OpenTelemetryTracer(name=name)


def _clean(attributes: Mapping[str, Any]) -> dict[str, Any]:
    # OpenTelemetry rejects None attribute values.
    return {k: v for k, v in attributes.items() if v is not None}
