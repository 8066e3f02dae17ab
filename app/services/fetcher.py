from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

import httpx

from app.config import settings
from app.errors import TransientFetchFailure
from app.metrics import FETCH_ATTEMPTS_TOTAL

if TYPE_CHECKING:
    from app.services.token_cache import TokenCache

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 2.0


@dataclass(frozen=True)
class Success:
    body: bytes


@dataclass(frozen=True)
class AuthRejected:
    status: int = 401


@dataclass(frozen=True)
class TransientFailure:
    cause: str
    status: int | None = None
    error: httpx.RequestError | None = None


FetchOutcome = Union[Success, AuthRejected, TransientFailure]


def classify_response(resp: httpx.Response) -> FetchOutcome:
    """Map one target-page response onto an attempt outcome."""
    if resp.status_code == 401:
        return AuthRejected(status=resp.status_code)
    if resp.is_success and resp.content:
        return Success(body=resp.content)
    if resp.is_success:
        return TransientFailure(cause="empty body", status=resp.status_code)
    return TransientFailure(cause=f"HTTP {resp.status_code}", status=resp.status_code)


class FetchRetrier:
    """GETs one URL with a bearer token under a bounded retry policy.

    A 401 invalidates the token and retries straight away with a fresh one.
    Any other failure sleeps ``backoff_seconds`` and retries with the same
    token. When attempts run out on status codes the result is ``b""``; when
    the last attempt raised an httpx request error (connection, timeout,
    redirect loop, bad encoding), TransientFetchFailure is raised.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
    ):
        self._client = client
        self._max_attempts = max_attempts
        self._backoff = backoff_seconds

    @classmethod
    def from_settings(cls, client: httpx.AsyncClient) -> FetchRetrier:
        return cls(
            client,
            max_attempts=settings.scrape_max_attempts,
            backoff_seconds=settings.scrape_backoff_seconds,
        )

    async def _attempt(self, url: str, access_token: str) -> FetchOutcome:
        try:
            resp = await self._client.get(
                url, headers={"Authorization": f"Bearer {access_token}"}
            )
        except httpx.RequestError as e:
            return TransientFailure(cause=type(e).__name__, error=e)
        return classify_response(resp)

    async def fetch(self, url: str, token_cache: TokenCache) -> bytes:
        token = await token_cache.get_token()

        for attempt in range(1, self._max_attempts + 1):
            outcome = await self._attempt(url, token.access_token)

            if isinstance(outcome, Success):
                FETCH_ATTEMPTS_TOTAL.labels(outcome="success").inc()
                logger.debug("Fetched %s on attempt %d/%d", url, attempt, self._max_attempts)
                return outcome.body

            if isinstance(outcome, AuthRejected):
                FETCH_ATTEMPTS_TOTAL.labels(outcome="auth_rejected").inc()
                logger.warning(
                    "Attempt %d/%d: 401 Unauthorized from %s, refreshing token",
                    attempt, self._max_attempts, url,
                )
                await token_cache.invalidate(token)
                token = await token_cache.get_token()
                continue

            FETCH_ATTEMPTS_TOTAL.labels(outcome="transient").inc()
            logger.warning(
                "Attempt %d/%d: fetch of %s failed (%s)",
                attempt, self._max_attempts, url, outcome.cause,
            )
            if attempt == self._max_attempts:
                if outcome.error is not None:
                    raise TransientFetchFailure(
                        f"Fetching {url} failed after {attempt} attempts: {outcome.cause}"
                    ) from outcome.error
                break
            await asyncio.sleep(self._backoff)

        logger.error("Failed to retrieve data from %s after %d attempts", url, self._max_attempts)
        return b""
