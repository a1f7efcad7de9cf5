from __future__ import annotations
import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..core.errors import InvalidArgument
from ..domain.interfaces import Timer, TimerHandle
from .evaluator import ThresholdEvaluator
from .ingestion import IngestionPipeline


logger = logging.getLogger(__name__)


class LoopTimer:
    """One-shot timers on the running asyncio loop."""

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay_seconds, callback)


def check_interval(minutes: Any) -> float:
    value = None
    if not isinstance(minutes, bool) and isinstance(minutes, (int, float)):
        try:
            value = float(minutes)
        except OverflowError:
            value = None
    if value is None or not math.isfinite(value) or value <= 0:
        raise InvalidArgument(
            "Invalid intervalMinutes value",
            ["intervalMinutes must be a positive number"],
        )
    return value


@dataclass
class SchedulerState:
    interval_minutes: float
    timer: Optional[TimerHandle] = None
    in_flight: bool = False
    closed: bool = False


class FetchScheduler:
    """Runs fetch + threshold check on a recurring one-shot timer.

    At most one cycle runs at a time. A timer that fires while a cycle is
    still in flight does no work and simply re-arms. Every cycle re-arms
    when it ends, whether it succeeded or failed.
    """

    def __init__(
        self,
        pipeline: IngestionPipeline,
        evaluator: ThresholdEvaluator,
        interval_minutes: float,
        timer: Optional[Timer] = None,
    ) -> None:
        self._pipeline = pipeline
        self._evaluator = evaluator
        self._timer = timer or LoopTimer()
        self._task: Optional[asyncio.Task] = None
        self.state = SchedulerState(interval_minutes=check_interval(interval_minutes))

    @property
    def interval_minutes(self) -> float:
        return self.state.interval_minutes

    def next_delay_seconds(self) -> float:
        # Never poll more often than once a minute
        return max(1.0, self.state.interval_minutes) * 60

    def start(self) -> asyncio.Task:
        """Run one cycle right away; it arms the recurring timer when done.

        Must not be called while a timer is already armed.
        """
        logger.info(
            "Running initial fetch at scheduler startup (interval=%s min)",
            self.state.interval_minutes,
        )
        return self._launch()

    def set_interval(self, minutes: Any) -> None:
        value = check_interval(minutes)
        self.state.interval_minutes = value
        logger.info("Fetch interval updated to %s minutes", value)
        self._arm()

    def stop(self) -> None:
        if self.state.timer is not None:
            self.state.timer.cancel()
            self.state.timer = None

    async def shutdown(self) -> None:
        """Cancel the pending timer and let a running cycle finish."""
        self.state.closed = True
        self.stop()
        task = self._task
        if task is not None and not task.done():
            logger.info("Waiting for the running fetch cycle to finish")
            await task
        logger.info("Scheduler stopped")

    def fire(self) -> None:
        self.stop()
        if self.state.in_flight:
            logger.info("Previous fetch still running, skipping this cycle and rescheduling.")
            self._arm()
            return
        self._launch()

    def status(self) -> dict:
        return {
            "intervalMinutes": self.state.interval_minutes,
            "nextDelaySeconds": self.next_delay_seconds(),
            "armed": self.state.timer is not None,
            "inFlight": self.state.in_flight,
        }

    def _launch(self) -> asyncio.Task:
        # Flag goes up before the cycle's first suspension point
        self.state.in_flight = True
        self._task = asyncio.get_running_loop().create_task(self._cycle(), name="fetch_cycle")
        return self._task

    async def _cycle(self) -> None:
        try:
            await self._pipeline.run()
            await self._evaluator.evaluate()
        except Exception as e:
            logger.exception("Error during scheduled data fetch: %s", e)
        finally:
            self.state.in_flight = False
            self._arm()

    def _arm(self) -> None:
        self.stop()
        if self.state.closed:
            return
        delay = self.next_delay_seconds()
        self.state.timer = self._timer.call_later(delay, self.fire)
        logger.debug("Next fetch in %.0f s", delay)
