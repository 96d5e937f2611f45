"""
Tests unitarios para RetryingExecutor.

El sleep se inyecta, así que el calendario de backoff se verifica sin esperar.
"""
from __future__ import annotations

from typing import List

import pytest

from storesync.application.services.retrying_executor import RetryingExecutor, is_transient
from storesync.shared.exceptions.sync import (
    PermanentStoreError,
    RetryExhaustedError,
    StoreErrorKind,
    TransientStoreError,
    UpstreamError,
)


class _Flaky:
    """Operación que falla `failures` veces con `error` y luego retorna 'ok'."""

    def __init__(self, failures: int, error: Exception):
        self.failures = failures
        self.error = error
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "ok"


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def retrying(sleeps: List[float]) -> RetryingExecutor:
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return RetryingExecutor(max_retries=3, base_delay=0.5, sleep=_sleep)


@pytest.mark.asyncio
async def test_success_first_try_does_not_sleep(retrying, sleeps) -> None:
    operation = _Flaky(0, TransientStoreError("x"))

    assert await retrying.execute(operation, "op") == "ok"
    assert operation.calls == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_transient_failures_back_off_exponentially(retrying, sleeps) -> None:
    operation = _Flaky(2, TransientStoreError("pool", StoreErrorKind.POOL_EXHAUSTED))

    assert await retrying.execute(operation, "op") == "ok"
    assert operation.calls == 3
    assert sleeps == [0.5, 1.0]


@pytest.mark.asyncio
async def test_exhaustion_raises_retry_exhausted_after_max_retries(retrying, sleeps) -> None:
    last = TransientStoreError("conexión perdida")
    operation = _Flaky(10, last)

    with pytest.raises(RetryExhaustedError) as exc_info:
        await retrying.execute(operation, "upsert customer 1")

    error = exc_info.value
    assert error.attempts == 4
    assert error.label == "upsert customer 1"
    assert error.last_error is last
    assert error.__cause__ is last
    assert operation.calls == 4
    assert sleeps == [0.5, 1.0, 2.0]


@pytest.mark.asyncio
async def test_permanent_error_propagates_without_delay(retrying, sleeps) -> None:
    operation = _Flaky(1, PermanentStoreError("unique violada"))

    with pytest.raises(PermanentStoreError):
        await retrying.execute(operation, "op")

    assert operation.calls == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_plain_exception_is_not_retried(retrying, sleeps) -> None:
    operation = _Flaky(1, ValueError("bug"))

    with pytest.raises(ValueError):
        await retrying.execute(operation, "op")

    assert sleeps == []


@pytest.mark.asyncio
async def test_per_call_overrides(retrying, sleeps) -> None:
    operation = _Flaky(10, TransientStoreError("x"))

    with pytest.raises(RetryExhaustedError) as exc_info:
        await retrying.execute(operation, "op", max_retries=1, base_delay=2.0)

    assert exc_info.value.attempts == 2
    assert sleeps == [2.0]


@pytest.mark.asyncio
async def test_zero_retries_fails_on_first_transient_error(sleeps) -> None:
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    retrying = RetryingExecutor(max_retries=0, sleep=_sleep)

    with pytest.raises(RetryExhaustedError) as exc_info:
        await retrying.execute(_Flaky(1, TransientStoreError("x")), "op")

    assert exc_info.value.attempts == 1
    assert sleeps == []


def test_delay_schedule() -> None:
    retrying = RetryingExecutor(base_delay=0.25)
    assert [retrying.delay_for(n) for n in (1, 2, 3, 4)] == [0.25, 0.5, 1.0, 2.0]


def test_is_transient_reads_structured_flag() -> None:
    assert is_transient(TransientStoreError("x", StoreErrorKind.TIMEOUT))
    assert not is_transient(PermanentStoreError("x", StoreErrorKind.CONSTRAINT))
    assert is_transient(UpstreamError("x", status_code=503))
    assert not is_transient(UpstreamError("x", status_code=404))
    # El texto del mensaje no cuenta
    assert not is_transient(RuntimeError("connection timeout pool exhausted"))


def test_negative_retries_rejected() -> None:
    with pytest.raises(ValueError):
        RetryingExecutor(max_retries=-1)
