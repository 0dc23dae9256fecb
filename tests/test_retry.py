import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from cafe_api.app.domain.errors import PromoNotFound
from cafe_api.app.utils.retry import RetryPolicy, is_transient, retry_async


@pytest.fixture
def anyio_backend():
    return "asyncio"


def test_is_transient():
    assert is_transient(ConnectionError())
    assert is_transient(asyncio.TimeoutError())
    assert is_transient(OperationalError("SELECT 1", {}, Exception("gone")))
    assert not is_transient(ValueError())
    assert not is_transient(PromoNotFound())


@pytest.mark.anyio
async def test_transient_failures_are_retried():
    calls = []

    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise ConnectionError("reset")
        return "ok"

    assert await retry_async(flaky, attempts=3, base_delay=0) == "ok"
    assert len(calls) == 3


@pytest.mark.anyio
async def test_gives_up_after_attempts():
    calls = []

    async def down():
        calls.append(1)
        raise ConnectionError("down")

    with pytest.raises(ConnectionError):
        await RetryPolicy(attempts=2, base_delay=0).run(down, op="storage")
    assert len(calls) == 2


@pytest.mark.anyio
async def test_validation_errors_not_retried():
    calls = []

    async def invalid():
        calls.append(1)
        raise PromoNotFound(code="X")

    with pytest.raises(PromoNotFound):
        await retry_async(invalid, attempts=5, base_delay=0)
    assert len(calls) == 1


@pytest.mark.anyio
async def test_attempt_timeout():
    async def slow():
        await asyncio.sleep(1)

    with pytest.raises(asyncio.TimeoutError):
        await retry_async(slow, attempts=2, base_delay=0, timeout=0.01)


def test_policy_from_settings():
    class S:
        retry_attempts = 4
        retry_base_delay = 0.5
        storage_timeout_secs = 2.0

    assert RetryPolicy.from_settings(S) == RetryPolicy(4, 0.5, 2.0)
