from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


# --- Auth ---
class TokenResponse(BaseModel):
    """Body of a 2xx response from the OAuth2 token endpoint."""
    access_token: str = Field(min_length=1)
    refresh_token: str | None = None
    token_type: str = "bearer"
    expires_in: int = Field(ge=0)


class Token(BaseModel):
    """A bearer credential held by TokenCache.

    Never mutated: every exchange builds a new Token.
    """
    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"
    expires_in: int = 0
    issued_at: float

    model_config = {"frozen": True}

    @property
    def expires_at(self) -> float:
        return self.issued_at + self.expires_in

    @classmethod
    def from_response(cls, data: TokenResponse, issued_at: float) -> Token:
        return cls(
            access_token=data.access_token,
            refresh_token=data.refresh_token,
            token_type=data.token_type,
            expires_in=data.expires_in,
            issued_at=issued_at,
        )


class TokenStatus(BaseModel):
    """Current state of the cached access token."""
    has_token: bool
    is_expired: bool
    expires_at: datetime | None = None
    seconds_remaining: int | None = None


# --- Results ---
class CompetitorEventResult(BaseModel):
    """One row of the results table.

    Field aliases are the storage service's camelCase wire names; dump with
    ``by_alias=True`` when posting.
    """
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    email_id: str = Field(default="", alias="emailId")
    list: str = ""
    event_name: str = Field(default="", alias="eventName")
    event_date: datetime | None = Field(default=None, alias="date")
    result: str = ""
    position: int = Field(default=0, ge=0)

    model_config = {"frozen": True, "populate_by_name": True}


# --- Trigger ---
class ScrapeRunOut(BaseModel):
    records: list[CompetitorEventResult]
    stored: int


class HealthOut(BaseModel):
    status: str = "ok"
    token: TokenStatus
