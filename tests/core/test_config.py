"""Unit tests for src/core/config.py"""

import pytest
from pydantic import ValidationError

from src.core.config import Settings


def test_defaults() -> None:
    settings = Settings()
    assert settings.store_backend == "sql"
    assert settings.poll_interval == 1.0
    assert settings.join_retries == 3


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORE_BACKEND", "file")
    monkeypatch.setenv("POLL_INTERVAL", "0.25")
    settings = Settings()
    assert settings.store_backend == "file"
    assert settings.poll_interval == 0.25


def test_log_level_is_normalized() -> None:
    assert Settings(log_level="debug").log_level == "DEBUG"


@pytest.mark.parametrize(
    "field, value",
    [("log_level", "chatty"), ("store_backend", "excel"), ("poll_interval", 0)],
)
def test_invalid_values(field: str, value: object) -> None:
    with pytest.raises(ValidationError):
        Settings(**{field: value})
