from __future__ import annotations
import logging

from ..domain.interfaces import AlertDispatcher, ReadingStore
from ..domain.models import Alert
from ..domain.thresholds import NotificationThresholds, check_reading, latest_by_device


logger = logging.getLogger(__name__)


class ThresholdEvaluator:
    def __init__(
        self,
        store: ReadingStore,
        thresholds: NotificationThresholds,
        dispatcher: AlertDispatcher,
    ) -> None:
        self._store = store
        self._thresholds = thresholds
        self._dispatcher = dispatcher

    async def evaluate(self) -> list[Alert]:
        thr = self._thresholds
        recipient = thr.email
        if not recipient:
            return []

        try:
            readings = await self._store.find_all()
        except Exception as e:
            logger.exception("Error checking thresholds: %s", e)
            return []

        alerts: list[Alert] = []
        for reading in latest_by_device(readings).values():
            alerts.extend(check_reading(reading, thr))

        if not alerts:
            logger.debug("No threshold violations across %d reading(s)", len(readings))
            return alerts

        try:
            await self._dispatcher.send(recipient, alerts)
        except Exception as e:
            logger.exception("Failed to send alert email: %s", e)
        return alerts
