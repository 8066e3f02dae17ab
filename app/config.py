from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    auth_token_url: str = "http://localhost:9000/oauth/token"
    auth_revoke_url: str = ""
    auth_client_id: str = ""
    auth_client_secret: str = ""
    auth_username: str = ""
    auth_password: str = ""
    auth_token_skew_seconds: int = 60

    scrape_target_url: str = "https://example.com/competition/results"
    scrape_max_attempts: int = 3
    scrape_backoff_seconds: float = 2.0
    scrape_timeout_seconds: float = 30.0
    scrape_table_id: str = "results"
    scrape_table_class: str = "results"
    scrape_layout: str = "auto"
    scrape_schedule: str = "06:00"
    scrape_interval_minutes: int = 0

    storage_url: str = "http://localhost:8080/api"
    api_key: str = ""
    log_level: str = "INFO"

    @field_validator("scrape_schedule", mode="before")
    @classmethod
    def default_empty_schedule(cls, v: str) -> str:
        if not v or not v.strip():
            return "06:00"
        return v

    @field_validator("scrape_layout")
    @classmethod
    def known_layout(cls, v: str) -> str:
        from app.parsers.registry import list_layout_keys

        allowed = ["auto", *list_layout_keys()]
        v = v.strip().lower()
        if v not in allowed:
            raise ValueError(f"scrape_layout must be one of {', '.join(allowed)}")
        return v

    @field_validator("scrape_max_attempts")
    @classmethod
    def at_least_one_attempt(cls, v: int) -> int:
        if v < 1:
            raise ValueError("scrape_max_attempts must be at least 1")
        return v

    model_config = {"env_prefix": "", "case_sensitive": False}


settings = Settings()
