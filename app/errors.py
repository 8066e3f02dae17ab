"""Error hierarchy for a scrape run.

Only the errors below escape their own layer. Row-level skips and
per-attempt failures are absorbed where they happen.
"""

from __future__ import annotations


class ScrapeError(Exception):
    """Base exception for every failure that escalates out of a run."""


class AuthExchangeError(ScrapeError):
    """The token endpoint refused or garbled the credential exchange.

    ``status`` is the HTTP status of the token response, or None when the
    request never got a response.
    """

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class NoRefreshTokenError(ScrapeError):
    """refresh() was called with no refresh token cached."""


class TransientFetchFailure(ScrapeError):
    """The transport failed on the final attempt against the target page."""


class MarkupParseError(ScrapeError):
    """The page body could not be turned into a document tree at all."""


class RowParseSkip(Exception):
    """A single table row could not be turned into a record.

    Never escapes the parser: the row is logged and dropped.
    """

    def __init__(self, reason: str, detail: str = ""):
        super().__init__(detail or reason)
        self.reason = reason
