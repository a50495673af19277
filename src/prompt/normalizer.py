# src/prompt/normalizer.py - v1
"""Translate a unified conversation into OpenAI-compatible chat messages.

Pure and stateless: no I/O, and the caller's conversation is never
mutated. Every wire dict is built fresh and overlay bags are deep-copied,
so the output can be edited freely without reaching back into the input.

Overlay resolution (most to least specific): content-part overlay, message
overlay, none. Overlays are shallow merges applied after the structural
fields, so overlay keys win on collision. Overlays for namespaces other
than the target are carried through unchanged under ``provider_metadata``.
"""

from __future__ import annotations

import base64
import copy
import logging
from typing import Any, Sequence

from inferlink.core.errors import ContractViolationError, UnsupportedContentError
from inferlink.core.serialization import to_json
from inferlink.prompt.models import (
    AssistantMessage,
    FilePart,
    ImagePart,
    Message,
    ProviderMetadata,
    SystemMessage,
    TextPart,
    ToolCallPart,
    ToolMessage,
    UserMessage,
)

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "openaiCompatible"
DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"
PASSTHROUGH_KEY = "provider_metadata"

WireMessage = dict[str, Any]


def normalize(
    conversation: Sequence[Message], namespace: str = DEFAULT_NAMESPACE
) -> list[WireMessage]:
    """Convert a conversation into an OpenAI-compatible message array.

    Args:
        conversation: Ordered messages (validated models, see
            ``inferlink.prompt.standardize`` for dict input).
        namespace: Provider metadata namespace whose overlays are merged
            into the wire output.

    Returns:
        New list of wire message dicts. Tool messages fan out to one wire
        message per result part, so the output can be longer than the input.

    Raises:
        UnsupportedContentError: A part has no wire representation (file parts).
        ContractViolationError: A message or part is not a known variant.
    """
    messages: list[WireMessage] = []
    for message in conversation:
        messages.extend(_convert_message(message, namespace))
    logger.debug(
        "Normalized %d message(s) into %d wire message(s) for namespace %s",
        len(conversation), len(messages), namespace,
    )
    return messages


def _convert_message(message: Any, namespace: str) -> list[WireMessage]:
    if isinstance(message, SystemMessage):
        return [_convert_system(message, namespace)]
    if isinstance(message, UserMessage):
        return [_convert_user(message, namespace)]
    if isinstance(message, AssistantMessage):
        return [_convert_assistant(message, namespace)]
    if isinstance(message, ToolMessage):
        return _convert_tool(message, namespace)
    role = getattr(message, "role", type(message).__name__)
    raise ContractViolationError(f"Unsupported role: {role!r}")


# --- Per-role conversion ---


def _convert_system(message: SystemMessage, namespace: str) -> WireMessage:
    wire = {"role": "system", "content": message.content}
    return _apply_overlays(wire, namespace, message.provider_metadata)


def _convert_user(message: UserMessage, namespace: str) -> WireMessage:
    content = message.content
    if len(content) == 1 and isinstance(content[0], TextPart):
        part = content[0]
        wire = {"role": "user", "content": part.text}
        return _apply_overlays(
            wire, namespace, message.provider_metadata, part.provider_metadata
        )

    wire = {
        "role": "user",
        "content": [_convert_user_part(part, namespace) for part in content],
    }
    return _apply_overlays(wire, namespace, message.provider_metadata)


def _convert_user_part(part: Any, namespace: str) -> dict[str, Any]:
    if isinstance(part, TextPart):
        wire: dict[str, Any] = {"type": "text", "text": part.text}
    elif isinstance(part, ImagePart):
        wire = {"type": "image_url", "image_url": {"url": image_url(part)}}
    elif isinstance(part, FilePart):
        raise UnsupportedContentError("File content parts in user messages")
    else:
        raise ContractViolationError(f"Unsupported user content part: {_tag(part)!r}")
    return _apply_overlays(wire, namespace, part.provider_metadata)


def _convert_assistant(message: AssistantMessage, namespace: str) -> WireMessage:
    text = ""
    tool_calls: list[dict[str, Any]] = []

    for part in message.content:
        if isinstance(part, TextPart):
            # Text-part overlays have no target field once texts are
            # concatenated; they are discarded.
            text += part.text
        elif isinstance(part, ToolCallPart):
            call = {
                "id": part.tool_call_id,
                "type": "function",
                "function": {"name": part.tool_name, "arguments": to_json(part.args)},
            }
            tool_calls.append(_apply_overlays(call, namespace, part.provider_metadata))
        else:
            raise ContractViolationError(
                f"Unsupported assistant content part: {_tag(part)!r}"
            )

    wire: WireMessage = {"role": "assistant", "content": text}
    if tool_calls:
        wire["tool_calls"] = tool_calls
    return _apply_overlays(wire, namespace, message.provider_metadata)


def _convert_tool(message: ToolMessage, namespace: str) -> list[WireMessage]:
    wires: list[WireMessage] = []
    for part in message.content:
        wire = {
            "role": "tool",
            "tool_call_id": part.tool_call_id,
            "content": to_json(part.result),
        }
        wires.append(
            _apply_overlays(
                wire, namespace, message.provider_metadata, part.provider_metadata
            )
        )
    return wires


# --- Helpers ---


def image_url(part: ImagePart) -> str:
    """Literal URL for referenced images, base64 data URI for raw bytes."""
    if part.url is not None:
        return part.url
    mime_type = part.mime_type or DEFAULT_IMAGE_MIME_TYPE
    encoded = base64.b64encode(part.data or b"").decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def split_overlay(
    provider_metadata: ProviderMetadata | None, namespace: str
) -> tuple[dict[str, Any], ProviderMetadata]:
    """Split provider metadata into (target overlay, other namespaces).

    Both halves are deep copies.
    """
    if not provider_metadata:
        return {}, {}
    target = copy.deepcopy(provider_metadata.get(namespace) or {})
    others = {
        key: copy.deepcopy(bag)
        for key, bag in provider_metadata.items()
        if key != namespace
    }
    return target, others


def _apply_overlays(
    wire: dict[str, Any], namespace: str, *scopes: ProviderMetadata | None
) -> dict[str, Any]:
    # Scopes are ordered least to most specific; later updates win.
    passthrough: ProviderMetadata = {}
    for provider_metadata in scopes:
        target, others = split_overlay(provider_metadata, namespace)
        wire.update(target)
        for key, bag in others.items():
            # Merge per namespace so less specific keys survive.
            if isinstance(bag, dict) and isinstance(passthrough.get(key), dict):
                passthrough[key].update(bag)
            else:
                passthrough[key] = bag
    if passthrough:
        wire[PASSTHROUGH_KEY] = passthrough
    return wire


def _tag(part: Any) -> str:
    return getattr(part, "type", type(part).__name__)

