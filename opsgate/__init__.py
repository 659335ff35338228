"""Access gating and role dashboard routing for the operations dashboard."""

from .app import configure_fastapi_app, create_app
from .config import AppConfig, load_config_from_env

__all__ = ["AppConfig", "configure_fastapi_app", "create_app", "load_config_from_env"]
