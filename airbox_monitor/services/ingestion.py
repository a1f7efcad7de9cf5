from __future__ import annotations
import asyncio
import logging
import math
from typing import Any, Mapping

from ..core.errors import PersistenceFailure, ShapeMismatch, ValidationFailure
from ..core.timeutil import parse_timestamp
from ..domain.interfaces import ReadingStore, SensorFeed
from ..domain.models import IngestionReport, Reading


logger = logging.getLogger(__name__)


_NUMBER_FIELDS = ("lat", "lon", "h", "t", "pm1", "pm10", "pm25", "co", "co2", "hcho", "tvoc")
_STRING_FIELDS = ("name", "fw_ver", "model", "odm", "area")


def _as_float(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        f = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return f if math.isfinite(f) else 0.0


def _as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def normalize_entry(raw: Any) -> Reading:
    """Map one raw feed entry onto a Reading.

    Missing or unusable numbers become 0, missing strings become "".
    ``time`` is None when the entry carries no parseable timestamp.
    """
    e: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    fields: dict[str, Any] = {k: _as_float(e.get(k)) for k in _NUMBER_FIELDS}
    fields.update({k: _as_str(e.get(k)) for k in _STRING_FIELDS})
    return Reading(
        mac=_as_str(e.get("mac")),
        time=parse_timestamp(e.get("time")),
        type=_as_str(e.get("type"), "airbox") or "airbox",
        status=_as_str(e.get("status"), "offline") or "offline",
        adf_status=int(_as_float(e.get("adf_status"))),
        **fields,
    )


def check_entry(reading: Reading) -> None:
    if not reading.mac:
        raise ValidationFailure("missing device id (mac)")
    if reading.time is None:
        raise ValidationFailure(f"missing or invalid time for {reading.mac}")


class IngestionPipeline:
    def __init__(self, feed: SensorFeed, store: ReadingStore) -> None:
        self._feed = feed
        self._store = store

    async def run(self) -> IngestionReport:
        """Fetch one snapshot, keep the valid entries and save each of them.

        FeedUnavailable propagates; everything else is logged here.
        """
        report = IngestionReport()

        try:
            payload = await self._feed.fetch()
        except ShapeMismatch as e:
            logger.warning("Unexpected airbox response: %s", e)
            return report

        entries = payload.get("entries") if isinstance(payload, Mapping) else None
        if not isinstance(entries, list):
            logger.warning("Unexpected airbox response shape: %.200r", payload)
            return report
        report.received = len(entries)

        valid: list[Reading] = []
        for i, raw in enumerate(entries):
            try:
                reading = normalize_entry(raw)
            except Exception as e:
                logger.warning("Skipping entry #%d: could not normalize: %r", i, e)
                continue
            try:
                check_entry(reading)
            except ValidationFailure as e:
                logger.warning("Skipping entry #%d: %s", i, e)
                continue
            valid.append(reading)
        report.valid = len(valid)

        if not valid:
            logger.warning("No valid airbox entries to save.")
            return report

        # Save all entries concurrently; one failure must not abort the others
        results = await asyncio.gather(
            *(self._store.create(r) for r in valid), return_exceptions=True
        )

        failures = [
            PersistenceFailure(i, valid[i].mac, res)
            for i, res in enumerate(results)
            if isinstance(res, BaseException)
        ]
        report.saved = len(valid) - len(failures)
        report.failures = [str(f) for f in failures]

        if failures:
            logger.error(
                "%d of %d entries failed to save: %s",
                len(failures), len(valid), "; ".join(report.failures),
            )
        else:
            logger.info("Successfully fetched and saved %d airbox entries", report.saved)
        return report
