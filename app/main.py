import logging
import sys
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator
from pythonjsonlogger import jsonlogger

from app.config import settings
from app.parsers.results_table import ResultsTableParser
from app.routers import health, scrape
from app.services.fetcher import FetchRetrier
from app.services.pipeline import ResultsPipeline
from app.services.publisher import ResultsPublisher
from app.services.scheduler import start_scheduler, stop_scheduler
from app.services.token_cache import TokenCache

# Configure JSON structured logging for Loki
handler = logging.StreamHandler(sys.stdout)
formatter = jsonlogger.JsonFormatter(
    fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
    rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
)
handler.setFormatter(formatter)
logging.root.handlers = [handler]
logging.root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

# Suppress verbose logs from external libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("apscheduler").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting results scraper")
    async with httpx.AsyncClient(
        follow_redirects=True, timeout=settings.scrape_timeout_seconds
    ) as client:
        token_cache = TokenCache.from_settings(client)
        pipeline = ResultsPipeline(
            settings.scrape_target_url,
            token_cache,
            FetchRetrier.from_settings(client),
            ResultsTableParser.from_settings(),
        )
        publisher = ResultsPublisher.from_settings(client)

        app.state.token_cache = token_cache
        app.state.pipeline = pipeline
        app.state.publisher = publisher

        start_scheduler(pipeline, publisher)
        yield
        await stop_scheduler()
    logger.info("Shutting down results scraper")


app = FastAPI(title="Results Scraper", lifespan=lifespan)

# Add Prometheus metrics instrumentation
Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    excluded_handlers=["/health", "/metrics"],
).instrument(app).expose(app, endpoint="/metrics")

app.include_router(health.router)
app.include_router(scrape.router)
