import pytest

from app.services.circuit_breaker import CircuitBreaker, CircuitState, build_producer_breaker


async def failing_func():
    raise ValueError("Failed")


async def success_func():
    return "Success"


@pytest.mark.asyncio
async def test_circuit_breaker_lifecycle(clock):
    cb = CircuitBreaker(failure_threshold=2, recovery_timeout_seconds=1, name="test_cb", clock=clock)

    # 1. Start closed
    assert cb.state == CircuitState.CLOSED

    # 2. First failure
    assert await cb.acall(failing_func) is None
    assert cb.failure_count == 1
    assert cb.state == CircuitState.CLOSED

    # 3. Second failure -> Opens
    assert await cb.acall(failing_func) is None
    assert cb.failure_count == 2
    assert cb.state == CircuitState.OPEN

    # 4. While open, returns None without calling func
    assert await cb.acall(success_func) is None

    # 5. After the recovery timeout a trial call goes through
    clock.advance(1.1)
    assert await cb.acall(success_func) == "Success"
    assert cb.state == CircuitState.CLOSED
    assert cb.failure_count == 0


@pytest.mark.asyncio
async def test_half_open_failure_reopens(clock):
    cb = CircuitBreaker(failure_threshold=3, recovery_timeout_seconds=5, clock=clock)
    for _ in range(3):
        await cb.acall(failing_func)
    assert cb.state == CircuitState.OPEN

    clock.advance(6)
    assert await cb.acall(failing_func) is None

    assert cb.state == CircuitState.OPEN


def test_producer_breaker_uses_settings():
    from app.core.config import settings

    cb = build_producer_breaker()

    assert cb.name == "candidate_producer"
    assert cb.failure_threshold == settings.PRODUCER_FAILURE_THRESHOLD
    assert cb.recovery_timeout_seconds == settings.PRODUCER_RECOVERY_TIMEOUT_SECONDS
