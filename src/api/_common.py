# src/api/_common.py - v1
"""Per-invocation setup shared by the public pipelines."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from inferlink.config.settings import Settings
from inferlink.llm.capability import BaseCapability, check_specification_version
from inferlink.llm.executor import InstrumentedExecutor
from inferlink.llm.retry import RetryConfig, prepare_retry_config
from inferlink.telemetry.attributes import get_base_telemetry_attributes
from inferlink.telemetry.settings import TelemetrySettings
from inferlink.telemetry.tracer import get_tracer


@dataclass(frozen=True)
class Invocation:
    """Everything one pipeline call needs before it touches the network."""

    call_id: str
    retry_config: RetryConfig
    telemetry: TelemetrySettings
    executor: InstrumentedExecutor
    base_attributes: dict[str, Any]


def prepare_invocation(
    model: BaseCapability,
    *,
    max_retries: int | None,
    headers: dict[str, str] | None,
    telemetry: TelemetrySettings | None,
    settings: Settings | None,
    call_settings: dict[str, Any] | None = None,
) -> Invocation:
    """Validate the capability and options, then build the executor.

    Raises:
        UnsupportedModelVersionError: Capability version mismatch.
        InvalidArgumentError: Invalid ``max_retries``.
    """
    check_specification_version(model)

    settings = settings or Settings()
    retry_config = prepare_retry_config(max_retries, settings)
    if telemetry is None:
        telemetry = TelemetrySettings.from_settings(settings)

    executor = InstrumentedExecutor(
        tracer=get_tracer(telemetry, settings.telemetry_tracer_name),
        telemetry=telemetry,
        retry_config=retry_config,
    )
    base_attributes = get_base_telemetry_attributes(
        provider=model.provider,
        model_id=model.model_id,
        settings={"maxRetries": retry_config.max_retries, **(call_settings or {})},
        telemetry=telemetry,
        headers=headers,
    )
    return Invocation(
        call_id=str(uuid.uuid4()),
        retry_config=retry_config,
        telemetry=telemetry,
        executor=executor,
        base_attributes=base_attributes,
    )
