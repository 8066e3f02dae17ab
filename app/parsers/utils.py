"""Shared cell-level helpers for table layouts."""

from __future__ import annotations

import re
from datetime import datetime

from bs4 import Tag

# Leading integer in a place cell: "1", "2nd", "=3", " 4 "
_POSITION_RE = re.compile(r"^\s*=?\s*(\d+)")

# Tried in order after ISO 8601
_DATE_FORMATS = (
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y",
    "%d.%m.%Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
)


def cell_text(cell: Tag) -> str:
    """Whitespace-collapsed text of a table cell."""
    return " ".join(cell.get_text(separator=" ", strip=True).split())


def parse_position(text: str) -> int:
    """Finishing place as an int, 0 when the cell holds no leading number."""
    m = _POSITION_RE.match(text)
    if not m:
        return 0
    return int(m.group(1))


def parse_event_date(text: str) -> datetime | None:
    """Parse an event date cell.

    Returns None for an empty cell. Raises ValueError when the cell has text
    that matches none of the known formats.
    """
    text = text.strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValueError(f"Unrecognised date '{text}'")
