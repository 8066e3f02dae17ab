from __future__ import annotations

from abc import ABC, abstractmethod

from app.schemas import CompetitorEventResult


class BaseLayout(ABC):
    """Column mapping for one shape of results table.

    Layouts are purely positional: they receive the stripped text of each
    cell in column order and either build a record or raise RowParseSkip.
    """

    #: Fewest cells a data row needs for this layout.
    min_cells: int

    @abstractmethod
    def build(self, cells: list[str]) -> CompetitorEventResult:
        """Turn one row's cell texts into a record.

        Raises RowParseSkip when the row cannot yield a usable record.
        """
        ...
