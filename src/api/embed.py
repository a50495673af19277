# src/api/embed.py - v1
"""Embedding pipelines: embed one value, or many values in provider-sized chunks.

Usage:
    from inferlink.api.embed import embed
    result = await embed(model, "sunny day at the beach")
    result.embedding
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from inferlink.api._common import prepare_invocation
from inferlink.config.settings import Settings
from inferlink.core.serialization import to_json
from inferlink.llm.cancellation import CancellationToken
from inferlink.llm.capability import BaseEmbeddingModel, CapabilityRequest
from inferlink.llm.models import CapabilityResponse, EmbeddingUsage
from inferlink.llm.result import EmbedManyResult, EmbedResult, assemble_result
from inferlink.logging.context import invocation_context
from inferlink.telemetry.attributes import (
    assemble_operation_name,
    input_attribute,
    output_attribute,
)
from inferlink.telemetry.settings import TelemetrySettings
from inferlink.telemetry.tracer import Span

logger = logging.getLogger(__name__)


async def embed(
    model: BaseEmbeddingModel,
    value: Any,
    *,
    max_retries: int | None = None,
    cancellation: CancellationToken | None = None,
    headers: dict[str, str] | None = None,
    provider_options: dict[str, dict[str, Any]] | None = None,
    telemetry: TelemetrySettings | None = None,
    settings: Settings | None = None,
) -> EmbedResult:
    """Embed a single value.

    Args:
        model: Embedding capability.
        value: Value to embed (type defined by the model).
        max_retries: Retries per provider call; 0 disables. Default from settings (2).
        cancellation: Token that aborts the call, including in-flight attempts.
        headers: Extra transport headers, passed through untouched.
        provider_options: Provider-specific options keyed by namespace.
        telemetry: Telemetry switches. Default from settings.
        settings: Application settings. Loaded from .env if None.

    Returns:
        EmbedResult with the value, its embedding and token usage.

    Raises:
        UnsupportedModelVersionError: Capability version mismatch.
        InvocationCancelledError: ``cancellation`` fired.
        Exception: The provider's last error once retries are exhausted.
    """
    inv = prepare_invocation(
        model, max_retries=max_retries, headers=headers, telemetry=telemetry, settings=settings
    )
    executor = inv.executor
    request = CapabilityRequest(
        input=[value],
        cancellation=cancellation,
        headers=headers,
        provider_options=provider_options,
    )

    async def do_embed(span: Span) -> CapabilityResponse:
        response = await model.invoke(request)
        usage = response.usage or EmbeddingUsage()
        executor.set_attributes(
            span,
            {
                "ai.embeddings": output_attribute(
                    lambda: [to_json(e) for e in response.payload]
                ),
                "ai.usage.tokens": usage.tokens,
            },
        )
        return response.model_copy(update={"usage": usage})

    with invocation_context("ai.embed", inv.call_id, model.provider, model.model_id):
        response = await executor.execute(
            "ai.embed",
            {
                **assemble_operation_name("ai.embed", inv.telemetry),
                **inv.base_attributes,
                "ai.value": input_attribute(lambda: to_json(value)),
            },
            cancellation,
            do_embed,
            call_name="ai.embed.doEmbed",
            call_attributes={
                **assemble_operation_name("ai.embed.doEmbed", inv.telemetry),
                **inv.base_attributes,
                "ai.values": input_attribute(lambda: [to_json(value)]),
            },
            outcome_attributes=lambda r: {
                "ai.embedding": output_attribute(lambda: to_json(r.payload[0])),
                "ai.usage.tokens": r.usage.tokens,
            },
        )

    return assemble_result(
        value, response.model_copy(update={"payload": response.payload[0]}), EmbedResult
    )


async def embed_many(
    model: BaseEmbeddingModel,
    values: Sequence[Any],
    *,
    max_retries: int | None = None,
    cancellation: CancellationToken | None = None,
    headers: dict[str, str] | None = None,
    provider_options: dict[str, dict[str, Any]] | None = None,
    telemetry: TelemetrySettings | None = None,
    settings: Settings | None = None,
) -> EmbedManyResult:
    """Embed several values, splitting into chunks of ``model.max_embeddings_per_call``.

    Each chunk is a separately retried provider call under one outer span.
    Embeddings come back in the order of ``values``; token usage is summed
    (an unknown count in any chunk makes the total NaN). Provider metadata
    and response info are kept only when a single call was made.

    Raises:
        UnsupportedModelVersionError: Capability version mismatch.
        InvocationCancelledError: ``cancellation`` fired.
        Exception: The provider's last error once retries are exhausted.
    """
    inv = prepare_invocation(
        model, max_retries=max_retries, headers=headers, telemetry=telemetry, settings=settings
    )
    executor = inv.executor
    values = list(values)
    chunks = _split(values, model.max_embeddings_per_call)

    def do_embed(chunk: list[Any]):
        request = CapabilityRequest(
            input=chunk,
            cancellation=cancellation,
            headers=headers,
            provider_options=provider_options,
        )

        async def body(span: Span) -> CapabilityResponse:
            response = await model.invoke(request)
            usage = response.usage or EmbeddingUsage()
            executor.set_attributes(
                span,
                {
                    "ai.embeddings": output_attribute(
                        lambda: [to_json(e) for e in response.payload]
                    ),
                    "ai.usage.tokens": usage.tokens,
                },
            )
            return response.model_copy(update={"usage": usage})

        return body

    if cancellation is not None:
        cancellation.raise_if_cancelled()

    embeddings: list[list[float]] = []
    usage = EmbeddingUsage(tokens=0)
    responses: list[CapabilityResponse] = []

    with invocation_context("ai.embedMany", inv.call_id, model.provider, model.model_id):
        with executor.span(
            "ai.embedMany",
            {
                **assemble_operation_name("ai.embedMany", inv.telemetry),
                **inv.base_attributes,
                "ai.values": input_attribute(lambda: [to_json(v) for v in values]),
            },
        ) as outer:
            for chunk in chunks:
                response = await executor.call(
                    outer,
                    "ai.embedMany.doEmbed",
                    {
                        **assemble_operation_name("ai.embedMany.doEmbed", inv.telemetry),
                        **inv.base_attributes,
                        "ai.values": input_attribute(lambda c=chunk: [to_json(v) for v in c]),
                    },
                    cancellation,
                    do_embed(chunk),
                )
                embeddings.extend(response.payload)
                usage = usage + response.usage
                responses.append(response)

            executor.set_attributes(
                outer,
                {
                    "ai.embeddings": output_attribute(
                        lambda: [to_json(e) for e in embeddings]
                    ),
                    "ai.usage.tokens": usage.tokens,
                },
            )

    logger.debug("Embedded %d value(s) in %d call(s)", len(values), len(responses))
    single = responses[0] if len(responses) == 1 else None
    combined = CapabilityResponse(
        payload=embeddings,
        usage=usage,
        provider_metadata=single.provider_metadata if single else None,
        response=single.response if single else None,
    )
    return assemble_result(values, combined, EmbedManyResult)


def _split(values: list[Any], size: int | None) -> list[list[Any]]:
    if not values:
        return []
    if size is None:
        return [values]
    return [values[i : i + size] for i in range(0, len(values), size)]
