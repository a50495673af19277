# src/core/errors.py - v1
"""Error taxonomy for the invocation pipeline.

Four families, distinguished so callers can react differently:
  - ContractViolationError: programming-contract breaches (wrong capability
    version, unknown role or part kind, invalid arguments). Never retried.
  - UnsupportedContentError: content the target wire format cannot
    represent. Never retried.
  - ProviderCallError: a provider round-trip failed. Retried when
    ``is_retryable`` is set.
  - InvocationCancelledError: the caller cancelled the invocation.
"""

from __future__ import annotations

from typing import Any


class InferlinkError(Exception):
    """Base class for all errors raised by inferlink."""

    retryable: bool = False


# --- Contract violations ---


class ContractViolationError(InferlinkError):
    """A caller or capability broke the pipeline contract."""


class UnsupportedModelVersionError(ContractViolationError):
    """Capability implements a specification version this pipeline does not."""

    def __init__(self, version: str, provider: str, model_id: str) -> None:
        self.version = version
        self.provider = provider
        self.model_id = model_id
        super().__init__(
            f"Unsupported model version {version!r} for provider {provider!r} "
            f"and model {model_id!r}. Only the current specification version "
            f"is supported."
        )


class InvalidArgumentError(ContractViolationError):
    """An invocation option has an invalid value."""

    def __init__(self, parameter: str, value: Any, message: str) -> None:
        self.parameter = parameter
        self.value = value
        super().__init__(f"Invalid argument for parameter {parameter!r}: {message}")


class InvalidPromptError(ContractViolationError):
    """The prompt could not be turned into a conversation."""


# --- Content ---


class UnsupportedContentError(InferlinkError):
    """Content has no representation in the target wire format."""

    def __init__(self, functionality: str) -> None:
        self.functionality = functionality
        super().__init__(f"'{functionality}' functionality not supported.")


# --- Provider calls ---


class ProviderCallError(InferlinkError):
    """A single provider round-trip failed."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        is_retryable: bool | None = None,
        url: str | None = None,
        response_body: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.url = url
        self.response_body = response_body
        if is_retryable is None:
            is_retryable = status_code is not None and _is_retryable_status(status_code)
        self.is_retryable = is_retryable
        super().__init__(message)

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.is_retryable


def _is_retryable_status(status_code: int) -> bool:
    return status_code in (408, 409, 429) or status_code >= 500


# --- Cancellation ---


class InvocationCancelledError(InferlinkError):
    """The caller cancelled the invocation before it completed."""

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        super().__init__(f"Invocation cancelled: {reason}" if reason else "Invocation cancelled")
