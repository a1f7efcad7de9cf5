from __future__ import annotations
import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


def _require_number(v: Any, name: str) -> Any:
    # bools are ints in Python but not numbers on the wire
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise ValueError(f"{name} must be a number")
    try:
        f = float(v)
    except OverflowError:
        raise ValueError(f"{name} is out of range") from None
    if math.isnan(f):
        raise ValueError(f"{name} must be a number")
    return v


class IntervalRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    interval_minutes: float = Field(alias="intervalMinutes")

    @field_validator("interval_minutes", mode="before")
    @classmethod
    def _number(cls, v: Any) -> Any:
        return _require_number(v, "intervalMinutes")


class ThresholdUpdateRequest(BaseModel):
    humidity: Optional[float] = None
    temperature: Optional[float] = None
    pm25: Optional[float] = None
    email: Optional[str] = None

    @field_validator("humidity", "temperature", "pm25", mode="before")
    @classmethod
    def _number(cls, v: Any, info: ValidationInfo) -> Any:
        return _require_number(v, info.field_name)

    @field_validator("email", mode="before")
    @classmethod
    def _string(cls, v: Any) -> Any:
        if not isinstance(v, str):
            raise ValueError("email must be a string")
        return v
