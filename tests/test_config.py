from unittest.mock import patch

import pytest
from pydantic import ValidationError

from app.config import Settings
from app.parsers.registry import LAYOUT_REGISTRY


def test_defaults():
    s = Settings()
    assert s.scrape_max_attempts == 3
    assert s.scrape_backoff_seconds == 2.0
    assert s.auth_token_skew_seconds == 60
    assert s.scrape_layout == "auto"


def test_blank_schedule_falls_back_to_default():
    assert Settings(scrape_schedule="  ").scrape_schedule == "06:00"


def test_layout_is_normalised():
    assert Settings(scrape_layout=" Competitor ").scrape_layout == "competitor"


def test_unknown_layout_rejected():
    with pytest.raises(ValidationError):
        Settings(scrape_layout="wide")


def test_zero_attempts_rejected():
    with pytest.raises(ValidationError):
        Settings(scrape_max_attempts=0)


def test_registered_layout_is_accepted():
    with patch.dict(LAYOUT_REGISTRY, {"relay": object}):
        assert Settings(scrape_layout="relay").scrape_layout == "relay"
