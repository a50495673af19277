# src/api/generate.py - v1
"""Text generation pipeline over OpenAI-compatible wire messages.

Usage:
    from inferlink.api.generate import generate_text
    result = await generate_text(model, system="Be brief.", prompt="Hi")
    result.text

The prompt is standardized and normalized to wire messages before any
span starts, so a prompt the wire format cannot carry fails fast and no
span ever records the doomed call.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from inferlink.api._common import prepare_invocation
from inferlink.config.settings import Settings
from inferlink.core.serialization import to_json
from inferlink.llm.cancellation import CancellationToken
from inferlink.llm.capability import BaseLanguageModel, CapabilityRequest
from inferlink.llm.models import CapabilityResponse, LanguageModelUsage
from inferlink.llm.result import GenerateTextResult, assemble_result
from inferlink.logging.context import invocation_context
from inferlink.prompt.models import Message
from inferlink.prompt.normalizer import normalize
from inferlink.prompt.standardize import standardize_prompt
from inferlink.telemetry.attributes import (
    assemble_operation_name,
    input_attribute,
    output_attribute,
)
from inferlink.telemetry.settings import TelemetrySettings
from inferlink.telemetry.tracer import Span

logger = logging.getLogger(__name__)


async def generate_text(
    model: BaseLanguageModel,
    *,
    system: str | None = None,
    prompt: str | None = None,
    messages: Sequence[Message | dict[str, Any]] | None = None,
    max_tokens: int | None = None,
    temperature: float | None = None,
    top_p: float | None = None,
    stop: list[str] | None = None,
    seed: int | None = None,
    max_retries: int | None = None,
    cancellation: CancellationToken | None = None,
    headers: dict[str, str] | None = None,
    provider_options: dict[str, dict[str, Any]] | None = None,
    telemetry: TelemetrySettings | None = None,
    settings: Settings | None = None,
) -> GenerateTextResult:
    """Generate text for a prompt or conversation.

    Args:
        model: Language model capability.
        system: Optional system instruction.
        prompt: Plain text prompt (exclusive with ``messages``).
        messages: Conversation as message models or dicts.
        max_tokens: Maximum tokens to generate.
        temperature: Sampling temperature.
        top_p: Nucleus sampling mass.
        stop: Stop sequences.
        seed: Sampling seed.
        max_retries: Retries per provider call; 0 disables. Default from settings (2).
        cancellation: Token that aborts the call, including in-flight attempts.
        headers: Extra transport headers, passed through untouched.
        provider_options: Provider-specific options keyed by namespace.
        telemetry: Telemetry switches. Default from settings.
        settings: Application settings. Loaded from .env if None.

    Returns:
        GenerateTextResult whose ``value`` is the standardized conversation.

    Raises:
        UnsupportedModelVersionError: Capability version mismatch.
        InvalidPromptError: Prompt arguments are missing or malformed.
        UnsupportedContentError: Conversation has content the wire format lacks.
        InvocationCancelledError: ``cancellation`` fired.
        Exception: The provider's last error once retries are exhausted.
    """
    call_settings = {
        "max_tokens": max_tokens,
        "temperature": temperature,
        "top_p": top_p,
        "stop": stop,
        "seed": seed,
    }
    inv = prepare_invocation(
        model,
        max_retries=max_retries,
        headers=headers,
        telemetry=telemetry,
        settings=settings,
        call_settings={
            "maxTokens": max_tokens,
            "temperature": temperature,
            "topP": top_p,
            "stopSequences": stop,
            "seed": seed,
        },
    )
    conversation = standardize_prompt(system=system, prompt=prompt, messages=messages)
    wire_messages = normalize(conversation, model.wire_namespace)

    executor = inv.executor
    request = CapabilityRequest(
        input=wire_messages,
        cancellation=cancellation,
        headers=headers,
        provider_options=provider_options,
        call_settings={k: v for k, v in call_settings.items() if v is not None},
    )

    async def do_generate(span: Span) -> CapabilityResponse:
        response = await model.invoke(request)
        usage = response.usage or LanguageModelUsage()
        executor.set_attributes(
            span,
            {
                "ai.response.text": output_attribute(lambda: response.payload.text),
                "ai.response.toolCalls": output_attribute(
                    lambda: to_json(response.payload.tool_calls)
                    if response.payload.tool_calls
                    else None
                ),
                "ai.response.finishReason": response.payload.finish_reason,
                "ai.usage.promptTokens": usage.prompt_tokens,
                "ai.usage.completionTokens": usage.completion_tokens,
            },
        )
        return response.model_copy(update={"usage": usage})

    with invocation_context("ai.generateText", inv.call_id, model.provider, model.model_id):
        response = await executor.execute(
            "ai.generateText",
            {
                **assemble_operation_name("ai.generateText", inv.telemetry),
                **inv.base_attributes,
                "ai.prompt": input_attribute(lambda: to_json(wire_messages)),
            },
            cancellation,
            do_generate,
            call_name="ai.generateText.doGenerate",
            call_attributes={
                **assemble_operation_name("ai.generateText.doGenerate", inv.telemetry),
                **inv.base_attributes,
                "ai.prompt.format": "messages",
                "ai.prompt.messages": input_attribute(lambda: to_json(wire_messages)),
            },
            outcome_attributes=lambda r: {
                "ai.response.text": output_attribute(lambda: r.payload.text),
                "ai.response.finishReason": r.payload.finish_reason,
                "ai.usage.promptTokens": r.usage.prompt_tokens,
                "ai.usage.completionTokens": r.usage.completion_tokens,
            },
        )

    logger.debug("Generated %d characters", len(response.payload.text))
    return assemble_result(conversation, response, GenerateTextResult)
