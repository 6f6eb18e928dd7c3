from __future__ import annotations

import pytest
from pydantic import ValidationError

from archivebot.settings import Settings


def test_settings_invalid_env():
    """Verify that an invalid ENV value raises a validation error."""
    with pytest.raises(ValidationError):
        Settings(env="invalid")


def test_log_level_is_normalised():
    assert Settings(log_level="debug").log_level == "DEBUG"
    with pytest.raises(ValidationError):
        Settings(log_level="chatty")


@pytest.mark.parametrize("field", ["max_concurrent_archives", "pending_poll_attempts"])
def test_counts_must_be_positive(field):
    with pytest.raises(ValidationError):
        Settings(**{field: 0})


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("ARCHIVE_COOKIE", "logged-in-sig=abc")
    monkeypatch.setenv("ADMINISTRATOR_IDS", '["1", "2"]')
    monkeypatch.setenv("RETRY_DELAY", "2.5")

    loaded = Settings()

    assert loaded.archive_cookie == "logged-in-sig=abc"
    assert loaded.administrator_ids == ["1", "2"]
    assert loaded.retry_delay == 2.5
    assert loaded.archive_api == "https://wwwb-api.archive.org"
