from __future__ import annotations

from typing import Sequence


class AirboxError(Exception):
    """Base class for every error raised by the monitor."""


class ConfigurationMissing(AirboxError):
    def __init__(self, keys: Sequence[str]) -> None:
        self.keys = list(keys)
        super().__init__(f"Missing required configuration: {', '.join(self.keys)}")


class FeedUnavailable(AirboxError):
    """The remote sensor feed could not be reached or answered with an error."""


class ShapeMismatch(AirboxError):
    """The feed answered, but not with the expected payload."""


class ValidationFailure(AirboxError):
    """A single feed entry lacks a device id or a usable timestamp."""


class PersistenceFailure(AirboxError):
    def __init__(self, index: int, mac: str, reason: BaseException) -> None:
        self.index = index
        self.mac = mac
        self.reason = reason
        super().__init__(f"entry #{index} ({mac}) failed to save: {reason!r}")


class DispatchFailure(AirboxError):
    """The alert email could not be sent."""


class InvalidArgument(AirboxError, ValueError):
    def __init__(self, message: str, details: Sequence[str] | None = None) -> None:
        self.message = message
        self.details = list(details) if details else []
        super().__init__(message)
