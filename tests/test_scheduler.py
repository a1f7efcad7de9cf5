import asyncio
import math

import pytest

from airbox_monitor.core.errors import FeedUnavailable, InvalidArgument
from airbox_monitor.services.scheduler import FetchScheduler

from .fakes import FakeTimer, RecordingEvaluator, RecordingPipeline


def _make(interval: float = 1, error: Exception | None = None):
    calls: list[str] = []
    timer = FakeTimer()
    pipeline = RecordingPipeline(calls, error=error)
    sched = FetchScheduler(pipeline, RecordingEvaluator(calls), interval, timer=timer)
    return sched, timer, pipeline, calls


@pytest.mark.parametrize(
    "minutes, expected",
    [(1, 60), (5, 300), (2.5, 150), (0.25, 60), (0.999, 60), (120, 7200)],
)
def test_set_interval_arms_with_one_minute_floor(minutes, expected) -> None:
    sched, timer, _, _ = _make()

    sched.set_interval(minutes)

    assert sched.interval_minutes == minutes
    assert [h.delay for h in timer.pending] == [expected]


@pytest.mark.parametrize("bad", [0, -1, -0.5, "5", None, True, math.nan, math.inf])
def test_set_interval_rejects_non_positive_or_non_numeric(bad) -> None:
    sched, timer, _, _ = _make(interval=3)

    with pytest.raises(InvalidArgument):
        sched.set_interval(bad)

    assert sched.interval_minutes == 3
    assert timer.pending == []


def test_constructor_rejects_bad_interval() -> None:
    with pytest.raises(InvalidArgument):
        _make(interval=0)


def test_set_interval_discards_previous_timer() -> None:
    sched, timer, _, _ = _make()

    sched.set_interval(2)
    sched.set_interval(10)

    assert len(timer.handles) == 2
    assert timer.handles[0].cancelled
    assert [h.delay for h in timer.pending] == [600]


def test_fire_while_in_flight_skips_work_and_rearms() -> None:
    sched, timer, _, calls = _make(interval=4)
    sched.state.in_flight = True

    sched.fire()

    assert calls == []
    assert sched.state.in_flight is True
    assert [h.delay for h in timer.pending] == [240]


def test_start_runs_one_cycle_then_arms() -> None:
    async def scenario():
        sched, timer, _, calls = _make(interval=2)

        task = sched.start()
        assert sched.state.in_flight is True
        await task

        assert calls == ["fetch", "evaluate"]
        assert sched.state.in_flight is False
        assert [h.delay for h in timer.pending] == [120]

    asyncio.run(scenario())


def test_timer_fire_runs_next_cycle() -> None:
    async def scenario():
        sched, timer, _, calls = _make()
        await sched.start()

        timer.fire()
        assert sched.state.in_flight is True
        await sched._task

        assert calls == ["fetch", "evaluate", "fetch", "evaluate"]
        assert len(timer.pending) == 1

    asyncio.run(scenario())


def test_failed_fetch_skips_evaluation_but_still_rearms() -> None:
    async def scenario():
        sched, timer, _, calls = _make(error=FeedUnavailable("down"))

        await sched.start()

        assert calls == ["fetch"]
        assert sched.state.in_flight is False
        assert [h.delay for h in timer.pending] == [60]

    asyncio.run(scenario())


def test_slow_cycle_is_never_overlapped() -> None:
    async def scenario():
        sched, timer, pipeline, calls = _make()
        pipeline.gate = asyncio.Event()

        task = sched.start()
        await asyncio.sleep(0)
        assert calls == ["fetch"]

        # interval change while running arms a timer that fires mid-cycle
        sched.set_interval(3)
        timer.fire()
        await asyncio.sleep(0)
        assert calls == ["fetch"]
        assert [h.delay for h in timer.pending] == [180]

        pipeline.gate.set()
        await task

        assert calls == ["fetch", "evaluate"]
        assert [h.delay for h in timer.pending] == [180]

    asyncio.run(scenario())


def test_stop_cancels_pending_timer_and_is_idempotent() -> None:
    sched, timer, _, _ = _make()
    sched.stop()

    sched.set_interval(1)
    sched.stop()
    sched.stop()

    assert timer.pending == []
    assert sched.status()["armed"] is False


def test_shutdown_waits_for_running_cycle_without_rearming() -> None:
    async def scenario():
        sched, timer, pipeline, calls = _make()
        pipeline.gate = asyncio.Event()
        sched.start()
        await asyncio.sleep(0)

        closing = asyncio.create_task(sched.shutdown())
        await asyncio.sleep(0)
        assert not closing.done()

        pipeline.gate.set()
        await closing

        assert calls == ["fetch", "evaluate"]
        assert timer.pending == []
        assert sched.state.in_flight is False

    asyncio.run(scenario())


def test_out_of_range_interval_is_rejected() -> None:
    sched, timer, _, _ = _make(interval=3)

    with pytest.raises(InvalidArgument):
        sched.set_interval(10**400)

    assert sched.interval_minutes == 3
    assert timer.pending == []
