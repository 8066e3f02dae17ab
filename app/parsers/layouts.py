from __future__ import annotations

from app.errors import RowParseSkip
from app.parsers.base import BaseLayout
from app.parsers.registry import register_layout
from app.parsers.utils import parse_event_date, parse_position
from app.schemas import CompetitorEventResult


@register_layout("event")
class EventLayout(BaseLayout):
    """Three columns: Event | Performance | Place.

    The page carries no competitor names, so only event_name, result and
    position are filled. A non-numeric place becomes position 0.
    """

    min_cells = 3

    def build(self, cells: list[str]) -> CompetitorEventResult:
        event_name, performance, place = cells[0], cells[1], cells[2]
        if not event_name:
            raise RowParseSkip("empty", "row has no event name")
        return CompetitorEventResult(
            event_name=event_name,
            result=performance,
            position=parse_position(place),
        )


@register_layout("competitor")
class CompetitorLayout(BaseLayout):
    """Six columns: First | Last | List | Event | Date | Result.

    The date is required when the cell has text; an unparsable date drops
    the row. An optional seventh column holds the place.
    """

    min_cells = 6

    def build(self, cells: list[str]) -> CompetitorEventResult:
        first, last, list_name, event_name, date_text, result = cells[:6]
        if not (first or last) and not event_name:
            raise RowParseSkip("empty", "row has neither a competitor nor an event")
        try:
            event_date = parse_event_date(date_text)
        except ValueError as e:
            raise RowParseSkip("bad_date", str(e)) from e
        position = parse_position(cells[6]) if len(cells) > 6 else 0
        return CompetitorEventResult(
            first_name=first,
            last_name=last,
            list=list_name,
            event_name=event_name,
            event_date=event_date,
            result=result,
            position=position,
        )
