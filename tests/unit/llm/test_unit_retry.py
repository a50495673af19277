# tests/unit/llm/test_unit_retry.py - v1
"""Tests for llm/retry.py - bounded retry, error classification, config validation."""

from __future__ import annotations

import asyncio

import pytest

from inferlink.core.errors import (
    ContractViolationError,
    InvalidArgumentError,
    InvocationCancelledError,
    ProviderCallError,
    UnsupportedContentError,
)
from inferlink.llm.cancellation import CancellationToken
from inferlink.llm.retry import (
    DEFAULT_MAX_RETRIES,
    RetryConfig,
    _compute_delay,
    classify_error,
    is_retryable,
    prepare_retry_config,
    with_retry,
)
from inferlink.logging.context import get_context

FAST = RetryConfig(max_retries=2, base_delay_s=0.0, jitter=False)


class Flaky:
    """Fails with the queued errors, then returns 'ok'."""

    def __init__(self, *errors: BaseException) -> None:
        self.errors = list(errors)
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "ok"


def _transient(n: int = 0) -> ProviderCallError:
    return ProviderCallError(f"503 unavailable #{n}", status_code=503)


# =====================================================================
#  BOUNDED RETRY
# =====================================================================


class TestWithRetry:
    @pytest.mark.asyncio
    async def test_success_first_try(self):
        fn = Flaky()
        assert await with_retry(fn, config=FAST) == "ok"
        assert fn.calls == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("k", [1, 2, 3])
    async def test_k_failures_within_budget_succeed(self, k):
        fn = Flaky(*[_transient(i) for i in range(k)])
        config = RetryConfig(max_retries=k, base_delay_s=0.0, jitter=False)
        assert await with_retry(fn, config=config) == "ok"
        assert fn.calls == k + 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("k", [1, 2, 3])
    async def test_k_failures_beyond_budget_propagate_last_error(self, k):
        errors = [_transient(i) for i in range(k)]
        fn = Flaky(*errors)
        config = RetryConfig(max_retries=k - 1, base_delay_s=0.0, jitter=False)
        with pytest.raises(ProviderCallError) as exc_info:
            await with_retry(fn, config=config)
        assert exc_info.value is errors[-1]
        assert fn.calls == k

    @pytest.mark.asyncio
    async def test_zero_retries_single_attempt(self):
        error = _transient()
        fn = Flaky(error, _transient(1))
        with pytest.raises(ProviderCallError) as exc_info:
            await with_retry(fn, config=RetryConfig(max_retries=0))
        assert exc_info.value is error
        assert fn.calls == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            ContractViolationError("bad"),
            UnsupportedContentError("x"),
            ProviderCallError("bad request", status_code=400),
            ValueError("boom"),
            ValueError("could not generate request payload"),
            KeyError("separate"),
        ],
    )
    async def test_non_retryable_not_retried(self, error):
        fn = Flaky(error)
        with pytest.raises(type(error)) as exc_info:
            await with_retry(fn, config=FAST)
        assert exc_info.value is error
        assert fn.calls == 1

    @pytest.mark.asyncio
    async def test_args_forwarded(self):
        async def add(a, b, *, c):
            return a + b + c

        assert await with_retry(add, 1, 2, c=3, config=FAST) == 6

    @pytest.mark.asyncio
    async def test_attempt_recorded_in_log_context(self):
        seen: list[int | None] = []

        async def fn():
            seen.append(get_context().attempt)
            if len(seen) < 3:
                raise _transient()
            return "ok"

        await with_retry(fn, config=FAST)
        assert seen == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_retry_warning_logged(self, caplog):
        fn = Flaky(_transient())
        with caplog.at_level("WARNING", logger="inferlink.llm.retry"):
            await with_retry(fn, config=FAST, operation="ai.embed.doEmbed")
        assert "ai.embed.doEmbed" in caplog.text
        assert "retrying" in caplog.text

    @pytest.mark.asyncio
    async def test_default_config(self, monkeypatch):
        monkeypatch.setattr("inferlink.llm.retry._compute_delay", lambda config, attempt: 0.0)
        fn = Flaky(_transient(), _transient())
        assert await with_retry(fn) == "ok"
        assert fn.calls == DEFAULT_MAX_RETRIES + 1


class TestWithRetryCancellation:
    @pytest.mark.asyncio
    async def test_pre_cancelled_never_calls(self):
        token = CancellationToken()
        token.cancel("stop")
        fn = Flaky()
        with pytest.raises(InvocationCancelledError):
            await with_retry(fn, config=FAST, cancellation=token)
        assert fn.calls == 0

    @pytest.mark.asyncio
    async def test_cancel_during_backoff(self):
        token = CancellationToken()
        fn = Flaky(_transient(), _transient())
        config = RetryConfig(max_retries=5, base_delay_s=30.0, jitter=False)

        task = asyncio.ensure_future(with_retry(fn, config=config, cancellation=token))
        await asyncio.sleep(0.01)
        token.cancel("user abort")

        with pytest.raises(InvocationCancelledError, match="user abort"):
            await asyncio.wait_for(task, timeout=2)
        assert fn.calls == 1

    @pytest.mark.asyncio
    async def test_cancel_in_flight(self):
        token = CancellationToken()
        started = asyncio.Event()
        interrupted = []

        async def slow():
            started.set()
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                interrupted.append(True)
                raise
            return "late"

        task = asyncio.ensure_future(with_retry(slow, config=FAST, cancellation=token))
        await started.wait()
        token.cancel()

        with pytest.raises(InvocationCancelledError):
            await asyncio.wait_for(task, timeout=2)
        assert interrupted == [True]


# =====================================================================
#  CLASSIFICATION
# =====================================================================


class TestClassifyError:
    @pytest.mark.parametrize(
        "error, expected",
        [
            (Exception("HTTP 429 Too Many Requests"), "rate_limit"),
            (Exception("rate limited"), "rate_limit"),
            (asyncio.TimeoutError(), "timeout"),
            (Exception("request timed out"), "timeout"),
            (ConnectionError("reset"), "connection"),
            (Exception("503 Service Unavailable"), "server_error"),
            (Exception("maximum token limit exceeded"), "token_limit"),
            (Exception("something odd"), "unknown"),
            (ValueError("could not generate request payload"), "unknown"),
            (Exception("separate accurate moderate"), "unknown"),
            (Exception("prompt is 5000 tokens long"), "unknown"),
            (Exception("observer error in callback"), "unknown"),
            (Exception("502 Bad Gateway"), "server_error"),
            (Exception("Internal Server Error"), "server_error"),
            (Exception("rate_limit_exceeded"), "rate_limit"),
        ],
    )
    def test_classification(self, error, expected):
        assert classify_error(error) == expected


class TestIsRetryable:
    def test_provider_error_flag(self):
        assert is_retryable(ProviderCallError("x", is_retryable=True))
        assert not is_retryable(ProviderCallError("x", is_retryable=False))

    def test_flag_beats_message(self):
        assert not is_retryable(ProviderCallError("503 but final", is_retryable=False))

    def test_contract_violation_never(self):
        assert not is_retryable(ContractViolationError("429 rate"))

    def test_cancellation_never(self):
        assert not is_retryable(InvocationCancelledError())

    def test_foreign_transient(self):
        assert is_retryable(ConnectionError("connection refused"))
        assert is_retryable(TimeoutError())

    def test_foreign_unknown(self):
        assert not is_retryable(KeyError("x"))


# =====================================================================
#  CONFIG
# =====================================================================


class TestPrepareRetryConfig:
    def test_default(self):
        assert prepare_retry_config().max_retries == DEFAULT_MAX_RETRIES

    def test_explicit(self):
        assert prepare_retry_config(5).max_retries == 5

    def test_zero_allowed(self):
        assert prepare_retry_config(0).max_retries == 0

    @pytest.mark.parametrize("value", [-1, 1.5, "2", True])
    def test_invalid(self, value):
        with pytest.raises(InvalidArgumentError) as exc_info:
            prepare_retry_config(value)
        assert exc_info.value.parameter == "max_retries"
        assert exc_info.value.value == value

    def test_from_settings(self, settings):
        config = prepare_retry_config(None, settings)
        assert config.max_retries == settings.max_retries
        assert config.base_delay_s == 0.0
        assert config.jitter is False

    def test_explicit_beats_settings(self, settings):
        assert prepare_retry_config(7, settings).max_retries == 7


class TestComputeDelay:
    def test_exponential(self):
        config = RetryConfig(base_delay_s=1.0, backoff_factor=2.0, jitter=False)
        assert [_compute_delay(config, a) for a in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_jitter_bounds(self):
        config = RetryConfig(base_delay_s=1.0, backoff_factor=2.0, jitter=True)
        for _ in range(50):
            assert 0.5 <= _compute_delay(config, 0) <= 1.5
