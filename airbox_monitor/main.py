from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from .core.config import settings, validate_settings
from .core.log import configure_logging

from .api.handlers import install_error_handlers
from .api.routes import router as api_router
from .api import routes as routes_module

from .domain.thresholds import NotificationThresholds
from .drivers.airbox_feed import AirboxFeedClient
from .drivers.resend_mailer import ResendMailer
from .services.evaluator import ThresholdEvaluator
from .services.ingestion import IngestionPipeline
from .services.scheduler import FetchScheduler
from .storage.sqlite_repo import SQLiteReadingStore


logger = logging.getLogger(__name__)


# --- Singletons ---
store = SQLiteReadingStore(settings.database_path)
thresholds = NotificationThresholds()

feed = AirboxFeedClient(
    base_url=settings.airbox_url,
    token=settings.airbox_token,
    timeout=settings.feed_timeout_seconds,
)
mailer = ResendMailer(
    api_key=settings.resend_api_key,
    from_email=settings.resend_from_email,
    api_url=settings.resend_api_url,
    timeout=settings.mail_timeout_seconds,
)

pipeline = IngestionPipeline(feed=feed, store=store)
evaluator = ThresholdEvaluator(store=store, thresholds=thresholds, dispatcher=mailer)
scheduler: FetchScheduler | None = None


def get_scheduler() -> FetchScheduler:
    assert scheduler is not None
    return scheduler


def get_pipeline() -> IngestionPipeline:
    return pipeline


def get_store() -> SQLiteReadingStore:
    return store


def get_thresholds() -> NotificationThresholds:
    return thresholds


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    validate_settings(settings)
    logger.info(
        "Starting %s (db=%s interval=%s min)",
        settings.app_name, settings.database_path, settings.fetch_interval_minutes,
    )

    await store.init()

    global scheduler
    scheduler = FetchScheduler(
        pipeline=pipeline,
        evaluator=evaluator,
        interval_minutes=settings.fetch_interval_minutes,
    )
    scheduler.start()

    try:
        yield
    finally:
        # uvicorn turns SIGINT/SIGTERM into a lifespan shutdown
        if scheduler:
            await scheduler.shutdown()

        logger.info("Shutdown complete")


app = FastAPI(title=settings.app_name, lifespan=lifespan)
install_error_handlers(app)

# Make the dependency functions in routes resolve to the real ones
app.dependency_overrides[routes_module.get_scheduler] = get_scheduler
app.dependency_overrides[routes_module.get_pipeline] = get_pipeline
app.dependency_overrides[routes_module.get_store] = get_store
app.dependency_overrides[routes_module.get_thresholds] = get_thresholds

app.include_router(api_router)


def run() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port)
