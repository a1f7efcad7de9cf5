from __future__ import annotations
from typing import Any, Callable, Protocol, Sequence, runtime_checkable
from .models import Alert, Reading


@runtime_checkable
class ReadingStore(Protocol):
    async def find_all(self) -> list[Reading]:
        ...

    async def create(self, reading: Reading) -> Reading:
        ...


@runtime_checkable
class SensorFeed(Protocol):
    async def fetch(self) -> Any:
        ...


@runtime_checkable
class AlertDispatcher(Protocol):
    async def send(self, recipient: str, alerts: Sequence[Alert]) -> None:
        ...


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Timer(Protocol):
    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        ...
