import asyncio
import logging
import time

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.config import settings
from app.metrics import SCHEDULER_LAST_RUN, SCRAPE_RUNS_TOTAL
from app.services.pipeline import ResultsPipeline
from app.services.publisher import ResultsPublisher

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()

# Scheduled scrapes currently executing, so shutdown can cancel them.
_running_jobs: set[asyncio.Task] = set()


def start_scheduler(pipeline: ResultsPipeline, publisher: ResultsPublisher):
    """Start the periodic scrape: an interval if configured, else daily cron."""
    job_options = dict(
        args=[pipeline, publisher],
        id="scheduled_scrape",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    if settings.scrape_interval_minutes > 0:
        scheduler.add_job(
            run_scrape_job,
            "interval",
            minutes=settings.scrape_interval_minutes,
            **job_options,
        )
        logger.info("Scheduler started: scrape every %d minutes", settings.scrape_interval_minutes)
    else:
        hour, minute = settings.scrape_schedule.split(":")
        scheduler.add_job(
            run_scrape_job,
            "cron",
            hour=int(hour),
            minute=int(minute),
            **job_options,
        )
        logger.info("Scheduler started: daily scrape at %s", settings.scrape_schedule)
    scheduler.start()


async def stop_scheduler():
    """Shut down the scheduler and cancel any scrape still in flight.

    AsyncIOScheduler does not wait for running coroutine jobs, so they are
    cancelled and awaited here before the shared HTTP client is closed.
    """
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
    tasks = list(_running_jobs)
    for task in tasks:
        task.cancel()
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Cancelled %d running scheduled scrape(s)", len(tasks))


async def run_scrape_job(pipeline: ResultsPipeline, publisher: ResultsPublisher):
    """Scheduled scrape: run the pipeline and forward the results.

    Every failure is logged here so the next tick still fires.
    """
    task = asyncio.current_task()
    _running_jobs.add(task)
    try:
        await _scrape_and_publish(pipeline, publisher)
    finally:
        _running_jobs.discard(task)


async def _scrape_and_publish(pipeline: ResultsPipeline, publisher: ResultsPublisher):
    logger.info("Scheduled scrape starting")
    SCHEDULER_LAST_RUN.set(time.time())
    try:
        records = await pipeline.scrape()
    except Exception:
        logger.exception("Scheduled scrape failed")
        SCRAPE_RUNS_TOTAL.labels(trigger="schedule", status="failed").inc()
        return

    if not records:
        SCRAPE_RUNS_TOTAL.labels(trigger="schedule", status="empty").inc()
        logger.info("Scheduled scrape found no results")
        return

    try:
        stored = await publisher.publish(records)
    except Exception:
        logger.exception("Publishing scheduled scrape results failed")
        SCRAPE_RUNS_TOTAL.labels(trigger="schedule", status="failed").inc()
        return
    SCRAPE_RUNS_TOTAL.labels(trigger="schedule", status="completed").inc()
    logger.info("Scheduled scrape complete: %d parsed, %d stored", len(records), stored)
