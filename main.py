#!/usr/bin/env python3
"""
cloudbuild-gcp - Cloud SQL connection pool service.

Main entry point for the application. Takes no command-line arguments;
everything is read from the environment.
"""

import sys

import uvicorn
from loguru import logger

from cloudbuild_gcp.core.config.settings import get_settings
from cloudbuild_gcp.core.exceptions import ConfigurationError
from cloudbuild_gcp.core.logger import setup_structured_logging
from web.app import create_app


def main() -> None:
    """Main entry point."""
    try:
        settings = get_settings()
    except ConfigurationError as e:
        # Logging is not configured yet; loguru's default sink writes to stderr
        logger.critical(f"Configuration error: {e.message}")
        sys.exit(1)

    setup_structured_logging(
        level=settings.log_level, json_format=settings.log_json, log_dir=settings.log_dir
    )

    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
