from __future__ import annotations

import logging

from bs4 import BeautifulSoup, Tag

from app.config import settings
from app.errors import MarkupParseError, RowParseSkip
from app.metrics import ROWS_SKIPPED_TOTAL
from app.parsers.base import BaseLayout
from app.parsers.registry import get_layout
from app.parsers.utils import cell_text
from app.schemas import CompetitorEventResult

logger = logging.getLogger(__name__)

# The first row of the results table is always the column header.
HEADER_ROWS = 1

# A header at least this wide selects the competitor layout under "auto".
COMPETITOR_HEADER_CELLS = 6


class ResultsTableParser:
    """Parser for the competition results table.

    Finds the table by id first, then by class, treats the first row as the
    header and maps each following row through a layout. Malformed rows are
    logged and dropped; they never stop the rest of the table being read.
    """

    def __init__(
        self,
        table_id: str = "results",
        table_class: str = "results",
        layout: str = "auto",
    ):
        self.table_id = table_id
        self.table_class = table_class
        self.layout = layout

    @classmethod
    def from_settings(cls) -> ResultsTableParser:
        return cls(
            table_id=settings.scrape_table_id,
            table_class=settings.scrape_table_class,
            layout=settings.scrape_layout,
        )

    def parse(self, markup: str | bytes) -> list[CompetitorEventResult]:
        try:
            soup = BeautifulSoup(markup, "html.parser")
        except Exception as e:
            raise MarkupParseError(f"Could not parse page markup: {e}") from e

        table = self._find_table(soup)
        if table is None:
            logger.warning(
                "No results table found (id=%r, class=%r)", self.table_id, self.table_class
            )
            return []

        rows = table.find_all("tr")
        if len(rows) <= HEADER_ROWS:
            logger.info("Results table has no data rows")
            return []

        layout = self._resolve_layout(rows[0])
        results: list[CompetitorEventResult] = []
        for index, row in enumerate(rows[HEADER_ROWS:], start=HEADER_ROWS + 1):
            record = self._parse_row(layout, row, index)
            if record is not None:
                results.append(record)

        logger.info("Parsed %d results from %d data rows", len(results), len(rows) - HEADER_ROWS)
        return results

    def _find_table(self, soup: BeautifulSoup) -> Tag | None:
        if self.table_id:
            table = soup.find("table", id=self.table_id)
            if table is not None:
                return table
        if self.table_class:
            return soup.find("table", class_=self.table_class)
        return None

    def _resolve_layout(self, header: Tag) -> BaseLayout:
        if self.layout != "auto":
            return get_layout(self.layout)
        width = len(header.find_all(["th", "td"]))
        key = "competitor" if width >= COMPETITOR_HEADER_CELLS else "event"
        logger.debug("Header has %d cells, using %s layout", width, key)
        return get_layout(key)

    def _parse_row(self, layout: BaseLayout, row: Tag, index: int) -> CompetitorEventResult | None:
        cells = [cell_text(td) for td in row.find_all("td")]
        if len(cells) < layout.min_cells:
            ROWS_SKIPPED_TOTAL.labels(reason="short_row").inc()
            logger.debug(
                "Skipping row %d: %d cells, need %d (%s)",
                index, len(cells), layout.min_cells, row.get_text(" ", strip=True),
            )
            return None
        try:
            return layout.build(cells)
        except RowParseSkip as e:
            ROWS_SKIPPED_TOTAL.labels(reason=e.reason).inc()
            logger.warning("Skipping row %d: %s", index, e)
        except Exception as e:
            ROWS_SKIPPED_TOTAL.labels(reason="error").inc()
            logger.error("Failed to parse row %d: %s. Error: %s", index, row.get_text(" ", strip=True), e)
        return None
