from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.errors import MarkupParseError, TransientFetchFailure
from app.schemas import CompetitorEventResult
from app.services import scheduler as scheduler_module
from app.services.scheduler import run_scrape_job


def _collaborators(records=None, error=None):
    pipeline = MagicMock()
    pipeline.scrape = AsyncMock(side_effect=error) if error else AsyncMock(return_value=records or [])
    publisher = MagicMock()
    publisher.publish = AsyncMock(return_value=len(records or []))
    return pipeline, publisher


@pytest.mark.asyncio
async def test_job_publishes_results():
    records = [CompetitorEventResult(event_name="100m", result="10.5 s", position=1)]
    pipeline, publisher = _collaborators(records=records)

    await run_scrape_job(pipeline, publisher)

    publisher.publish.assert_awaited_once_with(records)


@pytest.mark.asyncio
async def test_job_skips_publish_when_empty():
    pipeline, publisher = _collaborators(records=[])

    await run_scrape_job(pipeline, publisher)

    publisher.publish.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [TransientFetchFailure("reset"), MarkupParseError("junk"), RuntimeError("bug")])
async def test_job_swallows_escalations(error):
    pipeline, publisher = _collaborators(error=error)

    await run_scrape_job(pipeline, publisher)

    publisher.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_job_survives_publisher_failure():
    records = [CompetitorEventResult(event_name="100m")]
    pipeline, publisher = _collaborators(records=records)
    publisher.publish = AsyncMock(side_effect=RuntimeError("storage down"))

    await run_scrape_job(pipeline, publisher)


def test_start_scheduler_uses_daily_cron():
    pipeline, publisher = _collaborators()
    fake = MagicMock()

    with (
        patch.object(scheduler_module, "scheduler", fake),
        patch.object(scheduler_module.settings, "scrape_interval_minutes", 0),
        patch.object(scheduler_module.settings, "scrape_schedule", "07:30"),
    ):
        scheduler_module.start_scheduler(pipeline, publisher)

    args, kwargs = fake.add_job.call_args
    assert args == (run_scrape_job, "cron")
    assert kwargs["hour"] == 7
    assert kwargs["minute"] == 30
    assert kwargs["args"] == [pipeline, publisher]
    assert kwargs["max_instances"] == 1
    fake.start.assert_called_once()


def test_start_scheduler_uses_interval_when_configured():
    pipeline, publisher = _collaborators()
    fake = MagicMock()

    with (
        patch.object(scheduler_module, "scheduler", fake),
        patch.object(scheduler_module.settings, "scrape_interval_minutes", 15),
    ):
        scheduler_module.start_scheduler(pipeline, publisher)

    args, kwargs = fake.add_job.call_args
    assert args == (run_scrape_job, "interval")
    assert kwargs["minutes"] == 15


@pytest.mark.asyncio
async def test_stop_scheduler_cancels_running_job():
    started = asyncio.Event()

    async def slow_scrape():
        started.set()
        await asyncio.sleep(3600)

    pipeline, publisher = _collaborators()
    pipeline.scrape = AsyncMock(side_effect=slow_scrape)
    job = asyncio.create_task(run_scrape_job(pipeline, publisher))
    await started.wait()

    with patch.object(scheduler_module, "scheduler", MagicMock(running=False)):
        await scheduler_module.stop_scheduler()

    assert job.cancelled()
    publisher.publish.assert_not_awaited()
    assert not scheduler_module._running_jobs
