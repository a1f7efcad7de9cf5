from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional

from .models import Alert, Reading


@dataclass
class NotificationThresholds:
    humidity: Optional[float] = None
    temperature: Optional[float] = None
    pm25: Optional[float] = None
    email: Optional[str] = None

    def update(
        self,
        humidity: Optional[float] = None,
        temperature: Optional[float] = None,
        pm25: Optional[float] = None,
        email: Optional[str] = None,
    ) -> "NotificationThresholds":
        # Merge: only provided fields overwrite
        if humidity is not None:
            self.humidity = humidity
        if temperature is not None:
            self.temperature = temperature
        if pm25 is not None:
            self.pm25 = pm25
        if email is not None:
            self.email = email
        return self

    def as_dict(self) -> dict:
        return {k: v for k, v in self.__dict__.items() if v is not None}


def latest_by_device(readings: Iterable[Reading]) -> dict[str, Reading]:
    """Keep the reading with the latest timestamp for each device.

    Comparison is strictly greater-than, so on equal timestamps the reading
    seen first wins.
    """
    latest: dict[str, Reading] = {}
    for r in readings:
        if r.time is None:
            continue
        cur = latest.get(r.mac)
        if cur is None or r.time > cur.time:
            latest[r.mac] = r
    return latest


def check_reading(reading: Reading, thr: NotificationThresholds) -> list[Alert]:
    checks = (
        ("Humidity", thr.humidity, reading.h),
        ("Temperature", thr.temperature, reading.t),
        ("PM2.5", thr.pm25, reading.pm25),
    )
    alerts = []
    for label, limit, actual in checks:
        if limit is not None and actual > limit:
            alerts.append(
                Alert(
                    sensor_name=reading.name or "Unknown",
                    mac=reading.mac,
                    threshold_type=label,
                    threshold_value=limit,
                    actual_value=actual,
                    time=reading.time,
                )
            )
    return alerts
