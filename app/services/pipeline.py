from __future__ import annotations

import logging

from app.metrics import RECORDS_PARSED, SCRAPE_DURATION_SECONDS
from app.parsers.results_table import ResultsTableParser
from app.schemas import CompetitorEventResult
from app.services.fetcher import FetchRetrier
from app.services.token_cache import TokenCache

logger = logging.getLogger(__name__)


class ResultsPipeline:
    """Fetch the results page and parse it: token → fetch → parse."""

    def __init__(
        self,
        target_url: str,
        token_cache: TokenCache,
        fetcher: FetchRetrier,
        parser: ResultsTableParser,
    ):
        self.target_url = target_url
        self.token_cache = token_cache
        self.fetcher = fetcher
        self.parser = parser

    async def scrape(self) -> list[CompetitorEventResult]:
        """Run one scrape.

        An empty list is the normal "nothing to report" outcome. Errors that
        escape are the fatal ones: AuthExchangeError, TransientFetchFailure
        and MarkupParseError.
        """
        logger.info("Starting scrape of %s", self.target_url)
        with SCRAPE_DURATION_SECONDS.time():
            markup = await self.fetcher.fetch(self.target_url, self.token_cache)
            if not markup:
                logger.info("No markup retrieved from %s, nothing to parse", self.target_url)
                RECORDS_PARSED.set(0)
                return []
            results = self.parser.parse(markup)

        RECORDS_PARSED.set(len(results))
        logger.info("Scraping completed. Parsed %d results from the page.", len(results))
        return results
