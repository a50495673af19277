# src/telemetry/attributes.py - v1
"""Span attribute helpers.

Expensive attributes (serialized prompts, embeddings, generated text) are
declared as thunks and only evaluated by ``select_telemetry_attributes``
when telemetry is enabled and the matching input/output recording switch
is on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Literal, Mapping

if TYPE_CHECKING:
    from inferlink.telemetry.settings import TelemetrySettings


@dataclass(frozen=True)
class LazyAttribute:
    """Deferred attribute value."""

    kind: Literal["input", "output"]
    compute: Callable[[], Any]


def input_attribute(compute: Callable[[], Any]) -> LazyAttribute:
    return LazyAttribute("input", compute)


def output_attribute(compute: Callable[[], Any]) -> LazyAttribute:
    return LazyAttribute("output", compute)


AttributeSpec = Mapping[str, Any]


def select_telemetry_attributes(
    telemetry: TelemetrySettings | None, attributes: AttributeSpec
) -> dict[str, Any]:
    """Resolve an attribute mapping into concrete span attributes.

    Returns an empty dict without evaluating anything when telemetry is
    disabled. ``None`` values are dropped.
    """
    if telemetry is None or not telemetry.is_enabled:
        return {}

    selected: dict[str, Any] = {}
    for key, value in attributes.items():
        if value is None:
            continue
        if isinstance(value, LazyAttribute):
            if value.kind == "input" and not telemetry.record_inputs:
                continue
            if value.kind == "output" and not telemetry.record_outputs:
                continue
            value = value.compute()
            if value is None:
                continue
        selected[key] = value
    return selected


def assemble_operation_name(
    operation_id: str, telemetry: TelemetrySettings | None
) -> dict[str, Any]:
    """Standard operation naming attributes."""
    function_id = telemetry.function_id if telemetry else None
    return {
        "operation.name": f"{operation_id} {function_id}" if function_id else operation_id,
        "resource.name": function_id,
        "ai.operationId": operation_id,
        "ai.telemetry.functionId": function_id,
    }


def get_base_telemetry_attributes(
    provider: str,
    model_id: str,
    settings: Mapping[str, Any],
    telemetry: TelemetrySettings | None,
    headers: Mapping[str, str | None] | None = None,
) -> dict[str, Any]:
    """Attributes shared by the outer and inner spans of one invocation."""
    attributes: dict[str, Any] = {
        "ai.model.provider": provider,
        "ai.model.id": model_id,
    }
    for key, value in settings.items():
        attributes[f"ai.settings.{key}"] = value
    if telemetry is not None:
        for key, value in telemetry.metadata.items():
            attributes[f"ai.telemetry.metadata.{key}"] = value
    for key, value in (headers or {}).items():
        if value is not None:
            attributes[f"ai.request.headers.{key}"] = value
    return attributes
