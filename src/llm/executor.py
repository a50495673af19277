# src/llm/executor.py - v1
"""Instrumented retry executor.

Wraps one operation in an outer span and every provider round-trip in an
inner span parented on it, retrying transient failures in between:

    outer span (e.g. ai.embed)
      inner span (ai.embed.doEmbed)   attempt 1, failed
      inner span (ai.embed.doEmbed)   attempt 2, succeeded

Attribute mappings may contain lazy thunks (see telemetry.attributes); they
are resolved only at the moment a span is started or updated, and not at
all when telemetry is disabled.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterator, TypeVar

from inferlink.llm.retry import RetryConfig, with_retry
from inferlink.telemetry.attributes import AttributeSpec, select_telemetry_attributes
from inferlink.telemetry.tracer import Span, Tracer, get_tracer

if TYPE_CHECKING:
    from inferlink.llm.cancellation import CancellationToken
    from inferlink.telemetry.settings import TelemetrySettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

Body = Callable[[Span], Awaitable[T]]


class InstrumentedExecutor:
    """Run provider calls with retries, cancellation and nested spans.

    Args:
        tracer: Tracer to emit spans to. Resolved from ``telemetry`` if None.
        telemetry: Telemetry switches; None or disabled means no attribute
            is ever computed.
        retry_config: Retry policy for each provider round-trip.
    """

    def __init__(
        self,
        tracer: Tracer | None = None,
        telemetry: TelemetrySettings | None = None,
        retry_config: RetryConfig | None = None,
    ) -> None:
        self._telemetry = telemetry
        self._tracer = tracer if tracer is not None else get_tracer(telemetry)
        self._retry_config = retry_config or RetryConfig()

    @property
    def retry_config(self) -> RetryConfig:
        return self._retry_config

    def select(self, attributes: AttributeSpec) -> dict[str, Any]:
        return select_telemetry_attributes(self._telemetry, attributes)

    def set_attributes(self, span: Span, attributes: AttributeSpec) -> None:
        """Resolve ``attributes`` and record them on ``span``."""
        selected = self.select(attributes)
        if selected:
            span.set_attributes(selected)

    @contextmanager
    def span(
        self, name: str, attributes: AttributeSpec, parent: Span | None = None
    ) -> Iterator[Span]:
        """Scoped span: errors are recorded on it and it always ends."""
        span = self._tracer.start_span(name, self.select(attributes), parent)
        try:
            yield span
        except BaseException as e:
            logger.debug("Span '%s' ended with %s", name, type(e).__name__)
            span.record_error(e)
            raise
        finally:
            span.end()

    async def call(
        self,
        parent: Span,
        name: str,
        attributes: AttributeSpec,
        cancellation: CancellationToken | None,
        body: Body[T],
    ) -> T:
        """One retried provider round-trip; each attempt gets its own inner span."""

        async def attempt() -> T:
            with self.span(name, attributes, parent=parent) as inner:
                return await body(inner)

        return await with_retry(
            attempt,
            config=self._retry_config,
            cancellation=cancellation,
            operation=name,
        )

    async def execute(
        self,
        operation_name: str,
        attributes: AttributeSpec,
        cancellation: CancellationToken | None,
        body: Body[T],
        *,
        call_name: str | None = None,
        call_attributes: AttributeSpec | None = None,
        outcome_attributes: Callable[[T], AttributeSpec] | None = None,
    ) -> T:
        """Execute ``body`` (exactly one provider round-trip) under the full envelope.

        Args:
            operation_name: Outer span name.
            attributes: Outer span attributes.
            cancellation: Optional token; checked before anything starts.
            body: Receives the inner span and performs the round-trip.
            call_name: Inner span name. Defaults to ``<operation_name>.call``.
            call_attributes: Inner span attributes. Defaults to ``attributes``.
            outcome_attributes: Builds outer attributes from the result.

        Raises:
            InvocationCancelledError: Cancelled before or during execution.
            Exception: The body's last error, unchanged.
        """
        if cancellation is not None:
            cancellation.raise_if_cancelled()

        with self.span(operation_name, attributes) as outer:
            result = await self.call(
                outer,
                call_name or f"{operation_name}.call",
                attributes if call_attributes is None else call_attributes,
                cancellation,
                body,
            )
            if outcome_attributes is not None:
                self.set_attributes(outer, outcome_attributes(result))
            return result
