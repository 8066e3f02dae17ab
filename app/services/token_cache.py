"""OAuth2 token lifecycle: cache, exchange, refresh, revoke."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Callable

import httpx
from pydantic import ValidationError

from app.config import settings
from app.errors import AuthExchangeError, NoRefreshTokenError
from app.metrics import TOKEN_EXCHANGES_TOTAL
from app.schemas import Token, TokenResponse, TokenStatus

logger = logging.getLogger(__name__)

DEFAULT_SKEW_SECONDS = 60


class TokenCache:
    """Holds the current bearer token and renews it when it nears expiry.

    One instance is shared by every pipeline run in the process. get_token,
    refresh and invalidate all take the same lock, so at most one exchange
    is in flight and callers never see a half-replaced token.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        token_url: str,
        client_id: str,
        client_secret: str,
        username: str = "",
        password: str = "",
        revoke_url: str = "",
        skew_seconds: int = DEFAULT_SKEW_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._client = client
        self._token_url = token_url
        self._revoke_url = revoke_url
        self._auth = httpx.BasicAuth(client_id, client_secret)
        self._username = username
        self._password = password
        self._skew = skew_seconds
        self._clock = clock
        self._lock = asyncio.Lock()
        self._token: Token | None = None

    @classmethod
    def from_settings(cls, client: httpx.AsyncClient) -> TokenCache:
        return cls(
            client,
            token_url=settings.auth_token_url,
            client_id=settings.auth_client_id,
            client_secret=settings.auth_client_secret,
            username=settings.auth_username,
            password=settings.auth_password,
            revoke_url=settings.auth_revoke_url,
            skew_seconds=settings.auth_token_skew_seconds,
        )

    def _is_fresh(self) -> bool:
        if self._token is None:
            return False
        return self._clock() < self._token.expires_at - self._skew

    def _grant_form(self) -> dict[str, str]:
        if self._username and self._password:
            return {
                "grant_type": "password",
                "username": self._username,
                "password": self._password,
            }
        return {"grant_type": "client_credentials"}

    async def get_token(self) -> Token:
        """Return the cached token, exchanging for a new one if it is stale."""
        async with self._lock:
            if self._is_fresh():
                return self._token
            logger.info("No valid token cached, requesting a new one from %s", self._token_url)
            self._token = await self._exchange(self._grant_form())
            return self._token

    async def refresh(self) -> Token:
        """Swap the cached refresh token for a new token."""
        async with self._lock:
            if self._token is None or not self._token.refresh_token:
                raise NoRefreshTokenError("No refresh token cached")
            self._token = await self._exchange(
                {"grant_type": "refresh_token", "refresh_token": self._token.refresh_token}
            )
            return self._token

    async def invalidate(self, rejected: Token | None = None) -> None:
        """Drop the cached token and revoke it remotely if a revoke URL is set.

        When ``rejected`` is given, only that token is dropped: if another
        caller has already replaced it, the newer token is left alone.
        """
        async with self._lock:
            if rejected is not None and (
                self._token is None or self._token.access_token != rejected.access_token
            ):
                logger.debug("Rejected token already replaced, keeping the cached one")
                return
            token, self._token = self._token, None
            logger.info("Cached token invalidated")
            if token is not None and self._revoke_url:
                await self._revoke(token)

    def status(self) -> TokenStatus:
        if self._token is None:
            return TokenStatus(has_token=False, is_expired=True)
        remaining = int(self._token.expires_at - self._clock())
        return TokenStatus(
            has_token=True,
            is_expired=not self._is_fresh(),
            expires_at=datetime.fromtimestamp(self._token.expires_at, tz=timezone.utc),
            seconds_remaining=max(remaining, 0),
        )

    async def _exchange(self, form: dict[str, str]) -> Token:
        grant = form["grant_type"]
        issued_at = self._clock()
        try:
            resp = await self._client.post(self._token_url, data=form, auth=self._auth)
        except httpx.HTTPError as e:
            TOKEN_EXCHANGES_TOTAL.labels(grant_type=grant, status="error").inc()
            logger.error("Token request (%s) failed: %s", grant, e)
            raise AuthExchangeError(f"Token request failed: {e}") from e

        if not resp.is_success:
            TOKEN_EXCHANGES_TOTAL.labels(grant_type=grant, status="error").inc()
            logger.error("Token endpoint rejected %s grant. HTTP status: %d", grant, resp.status_code)
            raise AuthExchangeError(
                f"Token exchange failed with status {resp.status_code}",
                status=resp.status_code,
            )

        try:
            data = TokenResponse.model_validate_json(resp.content)
        except ValidationError as e:
            TOKEN_EXCHANGES_TOTAL.labels(grant_type=grant, status="error").inc()
            logger.error("Unparsable token response (HTTP %d): %s", resp.status_code, e)
            raise AuthExchangeError(
                "Token endpoint returned an unparsable body", status=resp.status_code
            ) from e

        TOKEN_EXCHANGES_TOTAL.labels(grant_type=grant, status="ok").inc()
        logger.info("Obtained new access token via %s grant (expires in %d seconds)", grant, data.expires_in)
        return Token.from_response(data, issued_at=issued_at)

    async def _revoke(self, token: Token) -> None:
        if token.refresh_token:
            form = {"token": token.refresh_token, "token_type_hint": "refresh_token"}
        else:
            form = {"token": token.access_token, "token_type_hint": "access_token"}
        try:
            resp = await self._client.post(self._revoke_url, data=form, auth=self._auth)
            logger.info("Revoke request (%s) returned HTTP %d", form["token_type_hint"], resp.status_code)
        except Exception as e:
            logger.warning("Token revoke failed, continuing: %s", e)
