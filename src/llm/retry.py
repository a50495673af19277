# src/llm/retry.py - v2
"""Bounded retry with exponential backoff for single provider round-trips.

Only transient failures (provider errors flagged retryable, timeouts,
connection failures, rate limits, 5xx) are retried. Everything else,
including contract violations, unsupported content and cancellation,
propagates on the first occurrence. When retries are exhausted the last
error is re-raised unchanged.
"""

from __future__ import annotations

import asyncio
import logging
import random
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from inferlink.core.errors import InferlinkError, InvalidArgumentError
from inferlink.logging.context import set_attempt

if TYPE_CHECKING:
    from inferlink.config.settings import Settings
    from inferlink.llm.cancellation import CancellationToken

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 2

TRANSIENT_ERROR_TYPES = frozenset({"rate_limit", "timeout", "server_error", "connection"})


@dataclass(frozen=True)
class RetryConfig:
    """Retry configuration for one invocation."""

    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay_s: float = 2.0
    backoff_factor: float = 2.0
    jitter: bool = True

    @classmethod
    def from_settings(cls, settings: Settings, max_retries: int | None = None) -> RetryConfig:
        return cls(
            max_retries=settings.max_retries if max_retries is None else max_retries,
            base_delay_s=settings.retry_base_delay_s,
            backoff_factor=settings.retry_backoff_factor,
            jitter=settings.retry_jitter,
        )


def prepare_retry_config(
    max_retries: Any = None, settings: Settings | None = None
) -> RetryConfig:
    """Validate the caller's ``max_retries`` and build the retry config.

    Raises:
        InvalidArgumentError: ``max_retries`` is not a non-negative integer.
    """
    if max_retries is not None:
        if isinstance(max_retries, bool) or not isinstance(max_retries, int):
            raise InvalidArgumentError("max_retries", max_retries, "must be an integer")
        if max_retries < 0:
            raise InvalidArgumentError("max_retries", max_retries, "must be >= 0")

    if settings is None:
        return RetryConfig(
            max_retries=DEFAULT_MAX_RETRIES if max_retries is None else max_retries
        )
    return RetryConfig.from_settings(settings, max_retries)


_RATE_LIMIT_RE = re.compile(r"\b429\b|\brate[ _-]?limit|\btoo many requests\b")
_SERVER_ERROR_RE = re.compile(
    r"\b50[0234]\b|\bserver error\b|\bservice unavailable\b|\bbad gateway\b"
)
_CONNECTION_RE = re.compile(r"\bconnection\b")


def classify_error(error: BaseException) -> str:
    """Classify an exception into a retry error type.

    Messages match on whole words and status codes only, so ordinary text
    such as "generate" or "5000 tokens" stays ``unknown``.
    """
    msg = str(error).lower()
    name = type(error).__name__.lower()

    if _RATE_LIMIT_RE.search(msg):
        return "rate_limit"
    if isinstance(error, (asyncio.TimeoutError, TimeoutError)) or "timeout" in name or "timed out" in msg:
        return "timeout"
    if isinstance(error, ConnectionError) or "connection" in name or _CONNECTION_RE.search(msg):
        return "connection"
    if _SERVER_ERROR_RE.search(msg):
        return "server_error"
    if "token" in msg and ("limit" in msg or "exceed" in msg):
        return "token_limit"
    return "unknown"


def is_retryable(error: BaseException) -> bool:
    """Whether ``error`` is a transient failure worth another attempt."""
    if isinstance(error, InferlinkError):
        return error.retryable
    return classify_error(error) in TRANSIENT_ERROR_TYPES


def _compute_delay(config: RetryConfig, attempt: int) -> float:
    """Compute delay for a given attempt (0-based)."""
    delay = config.base_delay_s * (config.backoff_factor ** attempt)
    if config.jitter:
        delay *= 0.5 + random.random()  # noqa: S311
    return delay


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    config: RetryConfig | None = None,
    cancellation: CancellationToken | None = None,
    operation: str = "unknown",
    **kwargs: Any,
) -> Any:
    """Execute an async function with retry logic.

    The function runs at most ``config.max_retries + 1`` times. With a
    cancellation token, each attempt runs as a task that is cancelled when
    the token fires, and backoff sleeps end early.

    Raises:
        InvocationCancelledError: The token fired before or during an attempt.
        Exception: The last error, unchanged, once it is non-retryable or
            retries are exhausted.
    """
    config = config or RetryConfig()
    attempt = 0

    while True:
        if cancellation is not None:
            cancellation.raise_if_cancelled()
        attempt += 1
        set_attempt(attempt)
        try:
            if cancellation is None:
                return await fn(*args, **kwargs)
            return await cancellation.run(lambda: fn(*args, **kwargs))
        except Exception as e:
            if not is_retryable(e):
                raise
            if attempt > config.max_retries:
                if config.max_retries > 0:
                    logger.warning(
                        "'%s' failed after %d attempts (%s): %s",
                        operation, attempt, classify_error(e), e,
                    )
                raise

            delay = _compute_delay(config, attempt - 1)
            logger.warning(
                "'%s' %s (attempt %d/%d), retrying in %.1fs",
                operation, classify_error(e), attempt, config.max_retries + 1, delay,
            )
            if cancellation is not None:
                await cancellation.sleep(delay)
            else:
                await asyncio.sleep(delay)
