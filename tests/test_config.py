"""Tests for configuration loading."""

import logging
from pathlib import Path

import pytest

from opsgate.config import (
    AppConfig,
    configure_logging,
    get_env_bool,
    get_env_int,
    load_config_from_env,
)

ENV_VARS = [
    "DATABASE_PATH",
    "LOGGING_LEVEL",
    "ROOT_PATH",
    "SECRET_KEY",
    "ALGORITHM",
    "ACCESS_TOKEN_EXPIRE_MINUTES",
    "SESSION_MAX_AGE",
    "SURFACE_LOOKUP_ERRORS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start every test without configuration variables.

    Setting each variable first makes monkeypatch remove values that
    load_dotenv writes during the test.
    """
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_defaults() -> None:
    """Test the configuration with nothing set."""
    config = load_config_from_env(None)

    assert config.database_path == "./opsgate_sqlite.db"
    assert config.algorithm == "HS512"
    assert config.access_token_expire_minutes == 60 * 24
    assert not config.surface_lookup_errors
    assert config.security_manager.expire_minutes == 60 * 24


def test_env_file(tmp_path: Path) -> None:
    """Test loading values from a .env file."""
    env_file = tmp_path / ".env"
    env_file.write_text(
        "DATABASE_PATH=/tmp/gate.db\n"
        "ALGORITHM=HS256\n"
        "SURFACE_LOOKUP_ERRORS=yes\n"
        "SESSION_MAX_AGE=60\n",
    )

    config = load_config_from_env(env_file)

    assert config.database_path == "/tmp/gate.db"  # noqa: S108
    assert config.algorithm == "HS256"
    assert config.surface_lookup_errors
    assert config.session_max_age == 60


def test_invalid_values(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that invalid variables raise ValueError naming the variable."""
    monkeypatch.setenv("ALGORITHM", "ROT13")
    with pytest.raises(ValueError, match="ALGORITHM"):
        load_config_from_env(None)

    monkeypatch.setenv("ALGORITHM", "HS256")
    monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MINUTES", "soon")
    with pytest.raises(ValueError, match="ACCESS_TOKEN_EXPIRE_MINUTES"):
        load_config_from_env(None)


def test_env_helpers(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test the integer and boolean helpers."""
    monkeypatch.setenv("SOME_INT", "0")
    with pytest.raises(ValueError, match="invalid value"):
        get_env_int("SOME_INT", 5, lambda value: value > 0)
    assert get_env_int("UNSET_INT", 5) == 5

    monkeypatch.setenv("SOME_BOOL", "Off")
    assert get_env_bool("SOME_BOOL", default=True) is False
    monkeypatch.setenv("SOME_BOOL", "maybe")
    with pytest.raises(ValueError, match="SOME_BOOL"):
        get_env_bool("SOME_BOOL", default=False)


def test_configure_logging_falls_back_to_info() -> None:
    """Test that an unknown level configures INFO."""
    config = AppConfig(
        database_path="db",
        logging_level="chatty",
        root_path="",
        secret_key="k" * 64,
        algorithm="HS256",
        access_token_expire_minutes=5,
        session_max_age=60,
    )
    configure_logging(config)
    assert logging.getLogger().level == logging.INFO
