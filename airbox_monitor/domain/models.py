from __future__ import annotations
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional, List

from ..core.timeutil import format_timestamp


@dataclass(frozen=True)
class Reading:
    mac: str
    time: Optional[datetime]

    lat: float = 0.0
    lon: float = 0.0

    # Measurements
    h: float = 0.0       # humidity
    t: float = 0.0       # temperature
    pm1: float = 0.0
    pm10: float = 0.0
    pm25: float = 0.0
    co: float = 0.0
    co2: float = 0.0
    hcho: float = 0.0    # formaldehyde
    tvoc: float = 0.0

    # Device metadata
    name: str = ""
    fw_ver: str = ""
    model: str = ""
    odm: str = ""        # manufacturer
    area: str = ""
    type: str = "airbox"

    status: str = "offline"  # "online" | "offline"
    adf_status: int = 0      # 0 = OK

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["time"] = format_timestamp(self.time) if self.time else None
        return out


@dataclass(frozen=True)
class Alert:
    sensor_name: str
    mac: str
    threshold_type: str  # "Humidity" | "Temperature" | "PM2.5"
    threshold_value: float
    actual_value: float
    time: datetime


@dataclass
class IngestionReport:
    received: int = 0
    valid: int = 0
    saved: int = 0
    failures: List[str] = field(default_factory=list)
