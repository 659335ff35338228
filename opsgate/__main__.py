"""Run the access gateway with uvicorn."""

import argparse
import logging
import os

import uvicorn

from opsgate.app import configure_fastapi_app
from opsgate.config import configure_logging, load_config_from_env


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="python -m opsgate",
        description="Run the operations dashboard access gateway.",
    )
    parser.add_argument(
        "--env-file",
        default=os.environ.get("ENV_FILE", ".env"),
        help="Environment file to load (default: $ENV_FILE or .env).",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind.")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Load the configuration and serve the application.

    Uvicorn logs at the level configured by LOGGING_LEVEL.
    """
    args = build_parser().parse_args(argv)

    config = load_config_from_env(args.env_file)
    configure_logging(config)
    log_level = logging.getLevelName(logging.getLogger().getEffectiveLevel())

    uvicorn.run(
        configure_fastapi_app(config),
        host=args.host,
        port=args.port,
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    main()
