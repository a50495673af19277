# src/prompt/standardize.py - v1
"""Build a validated conversation from the caller's prompt arguments.

Accepts either a plain string prompt or a list of messages (models or
dicts), plus an optional system instruction. Dicts are validated into new
frozen models; the caller's dicts and lists are not modified.
"""

from __future__ import annotations

from typing import Any, Sequence

from pydantic import ValidationError

from inferlink.core.errors import InvalidPromptError
from inferlink.prompt.models import (
    CONVERSATION_ADAPTER,
    Message,
    SystemMessage,
    TextPart,
    UserMessage,
)


def standardize_prompt(
    system: str | None = None,
    prompt: str | None = None,
    messages: Sequence[Message | dict[str, Any]] | None = None,
) -> list[Message]:
    """Return the conversation described by the prompt arguments.

    Args:
        system: Optional system instruction, prepended as a system message.
        prompt: Plain text prompt, sent as a single user text part.
        messages: Full conversation. Dicts are validated into message models.

    Raises:
        InvalidPromptError: Neither or both of ``prompt`` and ``messages``
            were given, the message list is empty, or validation failed.
    """
    if prompt is None and messages is None:
        raise InvalidPromptError("prompt or messages must be defined")
    if prompt is not None and messages is not None:
        raise InvalidPromptError("prompt and messages cannot be defined at the same time")

    conversation: list[Message] = []
    if system is not None:
        conversation.append(SystemMessage(content=system))

    if prompt is not None:
        conversation.append(UserMessage(content=(TextPart(text=prompt),)))
        return conversation

    if not messages:
        raise InvalidPromptError("messages must not be empty")

    try:
        validated = CONVERSATION_ADAPTER.validate_python(list(messages))
    except ValidationError as e:
        raise InvalidPromptError(f"messages do not match the conversation schema: {e}") from e

    conversation.extend(validated)
    return conversation

