from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from app.auth import require_api_key
from app.errors import ScrapeError
from app.metrics import SCRAPE_RUNS_TOTAL
from app.schemas import ScrapeRunOut
from app.services.pipeline import ResultsPipeline
from app.services.publisher import ResultsPublisher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/scrape", tags=["scrape"])


def get_pipeline(request: Request) -> ResultsPipeline:
    return request.app.state.pipeline


def get_publisher(request: Request) -> ResultsPublisher:
    return request.app.state.publisher


@router.post("", response_model=ScrapeRunOut, dependencies=[Depends(require_api_key)])
async def trigger_scrape(
    pipeline: ResultsPipeline = Depends(get_pipeline),
    publisher: ResultsPublisher = Depends(get_publisher),
):
    """Scrape the results page now and forward every record to storage."""
    try:
        records = await pipeline.scrape()
    except ScrapeError as e:
        logger.error("Triggered scrape failed: %s", e)
        SCRAPE_RUNS_TOTAL.labels(trigger="api", status="failed").inc()
        raise HTTPException(502, f"Scrape failed: {e}")

    stored = await publisher.publish(records)
    status = "completed" if records else "empty"
    SCRAPE_RUNS_TOTAL.labels(trigger="api", status=status).inc()
    return ScrapeRunOut(records=records, stored=stored)
