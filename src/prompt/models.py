# src/prompt/models.py - v1
"""Unified conversation model: messages, content parts and provider metadata overlays.

All models are frozen. Variant membership is declared once, in the
discriminated unions at the bottom of this module; dispatch code iterates
these unions, so adding a role or part kind without handling it fails the
completeness tests.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union, get_args

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    model_validator,
)

# namespace -> key/value bag merged into that provider's wire representation
ProviderMetadata = dict[str, dict[str, Any]]


class _Content(BaseModel):
    """Base for parts and messages; carries the optional metadata overlay."""

    model_config = ConfigDict(frozen=True)

    provider_metadata: ProviderMetadata | None = None


# --- Content parts ---


class TextPart(_Content):
    """Plain text content."""

    type: Literal["text"] = "text"
    text: str


class ImagePart(_Content):
    """Image content, supplied either by reference (url) or as raw bytes (data)."""

    type: Literal["image"] = "image"
    data: bytes | None = None
    url: str | None = None
    mime_type: str | None = None

    @model_validator(mode="after")
    def _exactly_one_source(self) -> ImagePart:
        if (self.data is None) == (self.url is None):
            raise ValueError("ImagePart requires exactly one of 'data' or 'url'")
        return self

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> ImagePart:
        return cls(url=url, **kwargs)

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str | None = None, **kwargs: Any) -> ImagePart:
        return cls(data=data, mime_type=mime_type, **kwargs)


class FilePart(_Content):
    """File content (PDF, audio, ...)."""

    type: Literal["file"] = "file"
    data: bytes | None = None
    url: str | None = None
    mime_type: str
    filename: str | None = None

    @model_validator(mode="after")
    def _exactly_one_source(self) -> FilePart:
        if (self.data is None) == (self.url is None):
            raise ValueError("FilePart requires exactly one of 'data' or 'url'")
        return self


class ToolCallPart(_Content):
    """A tool invocation requested by the assistant."""

    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str
    tool_name: str
    args: Any = None


class ToolResultPart(_Content):
    """The result of a tool invocation, keyed by the originating call id."""

    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str
    tool_name: str
    result: Any = None


UserContentPart = Annotated[
    Union[TextPart, ImagePart, FilePart], Field(discriminator="type")
]
AssistantContentPart = Annotated[
    Union[TextPart, ToolCallPart], Field(discriminator="type")
]


def _coerce_text(value: Any) -> Any:
    # Plain string content is shorthand for a single text part.
    if isinstance(value, str):
        return [{"type": "text", "text": value}]
    return value


# --- Messages ---


class SystemMessage(_Content):
    role: Literal["system"] = "system"
    content: str


class UserMessage(_Content):
    role: Literal["user"] = "user"
    content: Annotated[tuple[UserContentPart, ...], BeforeValidator(_coerce_text)]


class AssistantMessage(_Content):
    role: Literal["assistant"] = "assistant"
    content: Annotated[tuple[AssistantContentPart, ...], BeforeValidator(_coerce_text)]


class ToolMessage(_Content):
    role: Literal["tool"] = "tool"
    content: tuple[ToolResultPart, ...]


Message = Annotated[
    Union[SystemMessage, UserMessage, AssistantMessage, ToolMessage],
    Field(discriminator="role"),
]

Conversation = list[Message]

CONVERSATION_ADAPTER: TypeAdapter[list[Message]] = TypeAdapter(Conversation)


def variants(union: Any) -> tuple[type[BaseModel], ...]:
    """Return the concrete model classes of a discriminated union alias."""
    inner = get_args(union)[0]
    return get_args(inner)


MESSAGE_TYPES = variants(Message)
USER_PART_TYPES = variants(UserContentPart)
ASSISTANT_PART_TYPES = variants(AssistantContentPart)
