# src/telemetry/settings.py - v1
"""Per-call telemetry switches."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from inferlink.config.settings import Settings
    from inferlink.telemetry.tracer import Tracer


@dataclass(frozen=True)
class TelemetrySettings:
    """Telemetry configuration for one invocation.

    Attributes:
        is_enabled: Emit spans at all. When False no attribute thunk runs.
        record_inputs: Evaluate input attributes (prompts, values).
        record_outputs: Evaluate output attributes (texts, embeddings).
        function_id: Caller-chosen identifier grouping related calls.
        metadata: Extra attributes, recorded as ``ai.telemetry.metadata.<key>``.
        tracer: Tracer to emit to. Defaults to the global OpenTelemetry tracer.
    """

    is_enabled: bool = False
    record_inputs: bool = True
    record_outputs: bool = True
    function_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    tracer: Tracer | None = None

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> TelemetrySettings:
        """Build telemetry switches from application settings."""
        base = cls(
            is_enabled=settings.telemetry_enabled,
            record_inputs=settings.telemetry_record_inputs,
            record_outputs=settings.telemetry_record_outputs,
        )
        return replace(base, **overrides)
