"""Forward parsed results to the storage service, one POST per record."""

from __future__ import annotations

import logging

import httpx

from app.config import settings
from app.metrics import STORAGE_POSTS_TOTAL
from app.schemas import CompetitorEventResult

logger = logging.getLogger(__name__)


class ResultsPublisher:
    def __init__(self, client: httpx.AsyncClient, storage_url: str):
        self._client = client
        self.results_url = f"{storage_url.rstrip('/')}/results"

    @classmethod
    def from_settings(cls, client: httpx.AsyncClient) -> ResultsPublisher:
        return cls(client, settings.storage_url)

    async def publish(self, records: list[CompetitorEventResult]) -> int:
        """POST each record and return how many the storage API accepted.

        A failed record is logged and skipped; the rest of the batch is
        still sent.
        """
        stored = 0
        for record in records:
            payload = record.model_dump(mode="json", by_alias=True)
            try:
                resp = await self._client.post(self.results_url, json=payload)
            except httpx.HTTPError as e:
                STORAGE_POSTS_TOTAL.labels(status="failed").inc()
                logger.warning("Storage POST failed for %s: %s", record.event_name, e)
                continue
            if not resp.is_success:
                STORAGE_POSTS_TOTAL.labels(status="failed").inc()
                logger.warning(
                    "Storage rejected result for %s: HTTP %d", record.event_name, resp.status_code
                )
                continue
            STORAGE_POSTS_TOTAL.labels(status="stored").inc()
            stored += 1

        if records:
            logger.info("Stored %d/%d results at %s", stored, len(records), self.results_url)
        return stored
