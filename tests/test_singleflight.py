"""SingleFlight 테스트: 같은 키 합류, 실패 공유 후 제거, 대기자 취소 격리."""

import asyncio

import pytest

from debrief.core.singleflight import SingleFlight


@pytest.mark.asyncio
async def test_same_key_runs_factory_once():
    flight: SingleFlight[str, int] = SingleFlight()
    calls = 0
    release = asyncio.Event()

    async def work() -> int:
        nonlocal calls
        calls += 1
        await release.wait()
        return 42

    waiters = [asyncio.create_task(flight.run("k", work)) for _ in range(3)]
    await asyncio.sleep(0)
    assert "k" in flight
    release.set()

    assert await asyncio.gather(*waiters) == [42, 42, 42]
    assert calls == 1
    assert len(flight) == 0


@pytest.mark.asyncio
async def test_different_keys_run_independently():
    flight: SingleFlight[str, str] = SingleFlight()

    async def echo(value: str) -> str:
        await asyncio.sleep(0)
        return value

    results = await asyncio.gather(
        flight.run("a", lambda: echo("a")),
        flight.run("b", lambda: echo("b")),
    )

    assert results == ["a", "b"]


@pytest.mark.asyncio
async def test_failure_propagates_and_entry_is_removed():
    flight: SingleFlight[str, int] = SingleFlight()

    async def boom() -> int:
        await asyncio.sleep(0)
        raise ValueError("boom")

    results = await asyncio.gather(
        flight.run("k", boom), flight.run("k", boom), return_exceptions=True
    )

    assert all(isinstance(r, ValueError) for r in results)
    assert "k" not in flight

    async def ok() -> int:
        return 1

    assert await flight.run("k", ok) == 1


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_shared_task():
    flight: SingleFlight[str, int] = SingleFlight()
    release = asyncio.Event()

    async def work() -> int:
        await release.wait()
        return 7

    first = asyncio.create_task(flight.run("k", work))
    second = asyncio.create_task(flight.run("k", work))
    await asyncio.sleep(0)

    first.cancel()
    with pytest.raises(asyncio.CancelledError):
        await first
    release.set()

    assert await second == 7
