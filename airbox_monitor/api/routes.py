from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..domain.interfaces import ReadingStore
from ..domain.thresholds import NotificationThresholds
from ..services.ingestion import IngestionPipeline
from ..services.scheduler import FetchScheduler
from .schemas import IntervalRequest, ThresholdUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependency getters ---
# main.py points these at the real singletons via app.dependency_overrides.
def get_scheduler() -> FetchScheduler:  # overridden in main
    raise RuntimeError("Scheduler dependency not configured")

def get_pipeline() -> IngestionPipeline:  # overridden in main
    raise RuntimeError("Pipeline dependency not configured")

def get_store() -> ReadingStore:  # overridden in main
    raise RuntimeError("Store dependency not configured")

def get_thresholds() -> NotificationThresholds:  # overridden in main
    raise RuntimeError("Thresholds dependency not configured")


@router.get("/get-data")
async def get_data(store: ReadingStore = Depends(get_store)):
    try:
        readings = await store.find_all()
    except Exception as e:
        logger.exception("Error fetching data: %s", e)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch data"})
    return [r.to_dict() for r in readings]


@router.get("/fetch-data")
async def fetch_data(
    pipeline: IngestionPipeline = Depends(get_pipeline),
    scheduler: FetchScheduler = Depends(get_scheduler),
):
    try:
        report = await pipeline.run()
    except Exception as e:
        logger.exception("Ad-hoc fetch failed: %s", e)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch and save data"})
    return {
        "message": "Data fetched and saved successfully",
        "intervalMinutes": scheduler.interval_minutes,
        "received": report.received,
        "valid": report.valid,
        "saved": report.saved,
        "failed": report.failures,
    }


# --- Polling interval ---
@router.get("/interval")
async def get_interval(scheduler: FetchScheduler = Depends(get_scheduler)):
    return scheduler.status()


@router.post("/interval:set")
async def set_interval(req: IntervalRequest, scheduler: FetchScheduler = Depends(get_scheduler)):
    # InvalidArgument is turned into a 400 by the app's exception handler
    scheduler.set_interval(req.interval_minutes)
    minutes = scheduler.interval_minutes
    return {
        "message": f"Fetch interval updated to {minutes:g} minutes",
        "intervalMinutes": minutes,
    }


# --- Notification thresholds ---
@router.get("/set-notification-values")
async def get_notification_values(thr: NotificationThresholds = Depends(get_thresholds)):
    return {"thresholds": thr.as_dict()}


@router.post("/set-notification-values")
async def set_notification_values(
    req: ThresholdUpdateRequest,
    thr: NotificationThresholds = Depends(get_thresholds),
):
    thr.update(**req.model_dump(exclude_unset=True))
    logger.info("Notification thresholds updated: %s", thr.as_dict())
    return {"message": "Notification thresholds updated", "thresholds": thr.as_dict()}
