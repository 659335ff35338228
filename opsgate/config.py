"""Configuration management for the access gateway.

This module provides utilities for loading and validating configuration
from environment variables.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from jwt.algorithms import get_default_algorithms

from opsgate.auth import SecurityManager

LOGGER = logging.getLogger(__name__)

_MINUTES_IN_DAY = 60 * 24
_TWO_WEEKS_IN_SECONDS = 60 * 60 * 24 * 14
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def configure_logging(app_config: AppConfig) -> None:
    """Configure logging based on the application configuration.

    :param app_config: The application configuration instance
    """
    if not app_config.logging_level:
        logging.basicConfig(level=logging.INFO, force=True)
        return

    numeric_level = getattr(logging, app_config.logging_level.upper(), None)
    if not isinstance(numeric_level, int):
        LOGGER.warning("Invalid log level: %s, using INFO", app_config.logging_level)
        numeric_level = logging.INFO
    logging.basicConfig(level=numeric_level, force=True)


@dataclass
class AppConfig:
    """Holds application configuration loaded from environment variables."""

    database_path: str
    logging_level: str | None
    root_path: str

    secret_key: str
    algorithm: str
    access_token_expire_minutes: int
    session_max_age: int

    surface_lookup_errors: bool = False

    def __post_init__(self) -> None:
        """Initialize derived configuration attributes."""
        self.security_manager = SecurityManager(
            secret_key=self.secret_key,
            algorithm=self.algorithm,
            expire_minutes=self.access_token_expire_minutes,
        )


def get_env_str(
    var_name: str,
    default: str | None,
    value_checker: Callable[[str], bool] | None = None,
) -> str:
    """Get an environment variable as a string with optional constraints.

    :param var_name: Name of the environment variable
    :param default: Default value if the variable is not set
    :param value_checker: Optional function to validate the value
    :return: The environment variable value
    :raises ValueError: If the value does not meet the constraints
    """
    value = os.getenv(var_name, default)
    if value is None:
        msg = f"Environment variable {var_name} is required"
        raise ValueError(msg)

    if value_checker and not value_checker(value):
        msg = f"Environment variable {var_name} has invalid value: {value}"
        raise ValueError(msg)

    return value


def get_env_int(
    var_name: str,
    default: int,
    value_checker: Callable[[int], bool] | None = None,
) -> int:
    """Get an environment variable as an integer with optional constraints.

    :param var_name: Name of the environment variable
    :param default: Default value if the variable is not set
    :param value_checker: Optional function to validate the value
    :return: The environment variable value as an integer
    :raises ValueError: If the value does not meet the constraints or is not an integer
    """
    value_str = os.getenv(var_name)
    if value_str is None or value_str == "":
        return default

    if not value_str.isnumeric():
        msg = f"Environment variable {var_name} must be an integer, got: {value_str}"
        raise ValueError(msg)

    value = int(value_str)

    if value_checker and not value_checker(value):
        msg = f"Environment variable {var_name} has invalid value: {value}"
        raise ValueError(msg)

    return value


def get_env_bool(var_name: str, *, default: bool) -> bool:
    """Get an environment variable as a boolean.

    :param var_name: Name of the environment variable
    :param default: Default value if the variable is not set
    :return: The environment variable value as a boolean
    :raises ValueError: If the value is not a recognised boolean
    """
    value_str = os.getenv(var_name)
    if value_str is None or value_str == "":
        return default

    value_str = value_str.strip().lower()
    if value_str in _TRUE_VALUES:
        return True
    if value_str in _FALSE_VALUES:
        return False

    msg = f"Environment variable {var_name} must be a boolean, got: {value_str}"
    raise ValueError(msg)


def load_config_from_env(env_file: str | Path | None) -> AppConfig:
    """Load application configuration from environment variables.

    :param env_file: Optional .env file loaded before reading the environment
    :return: An AppConfig instance populated with environment variable values
    """
    if env_file and Path(env_file).exists():
        LOGGER.info("Loading environment variables from %s", env_file)
        load_dotenv(dotenv_path=env_file)

    return AppConfig(
        database_path=get_env_str("DATABASE_PATH", "./opsgate_sqlite.db"),
        logging_level=get_env_str("LOGGING_LEVEL", "INFO"),
        root_path=get_env_str("ROOT_PATH", ""),
        secret_key=get_env_str("SECRET_KEY", os.urandom(32).hex()),
        algorithm=get_env_str(
            "ALGORITHM",
            SecurityManager.DEFAULT_JWT_ALGORITHM,
            lambda algorithm: algorithm in get_default_algorithms(),
        ),
        access_token_expire_minutes=get_env_int(
            "ACCESS_TOKEN_EXPIRE_MINUTES",
            _MINUTES_IN_DAY,  # default 1 day
            lambda minutes: minutes > 0,
        ),
        session_max_age=get_env_int(
            "SESSION_MAX_AGE",
            _TWO_WEEKS_IN_SECONDS,
            lambda seconds: seconds > 0,
        ),
        surface_lookup_errors=get_env_bool("SURFACE_LOOKUP_ERRORS", default=False),
    )
