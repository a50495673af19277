# src/logging/context.py - v1
"""Contextual logging support: attach operation, call_id, provider and model to log records.

Context variables are task-local, so concurrent invocations never see each
other's values.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)
_call_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "call_id", default=None
)
_provider: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "provider", default=None
)
_model_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "model_id", default=None
)
_attempt: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "attempt", default=None
)


@dataclass(frozen=True)
class LogContext:
    """Immutable snapshot of current logging context."""

    operation: str | None = None
    call_id: str | None = None
    provider: str | None = None
    model_id: str | None = None
    attempt: int | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        operation=_operation.get(),
        call_id=_call_id.get(),
        provider=_provider.get(),
        model_id=_model_id.get(),
        attempt=_attempt.get(),
    )


def set_invocation_context(
    operation: str, call_id: str, provider: str | None = None, model_id: str | None = None
) -> None:
    """Set invocation-level context (called once per pipeline call)."""
    _operation.set(operation)
    _call_id.set(call_id)
    _provider.set(provider)
    _model_id.set(model_id)


def set_attempt(attempt: int | None) -> None:
    """Set the current retry attempt number (1-based)."""
    _attempt.set(attempt)


@contextmanager
def invocation_context(
    operation: str, call_id: str, provider: str | None = None, model_id: str | None = None
) -> Iterator[LogContext]:
    """Scope the invocation context to a block, restoring the previous values."""
    tokens = [
        (_operation, _operation.set(operation)),
        (_call_id, _call_id.set(call_id)),
        (_provider, _provider.set(provider)),
        (_model_id, _model_id.set(model_id)),
        (_attempt, _attempt.set(None)),
    ]
    try:
        yield get_context()
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def clear_context() -> None:
    """Reset all context variables."""
    _operation.set(None)
    _call_id.set(None)
    _provider.set(None)
    _model_id.set(None)
    _attempt.set(None)
