"""
Backend runner for Spendora.

This module handles configuration loading, the one-time legacy import and
command server startup.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from spendora import config
from spendora.api import CommandRouter, serve
from spendora.db import FinanceRepository, Store, migrate_legacy_file

logger = logging.getLogger(__name__)


def configure_logging():
    """Log to a file and to stderr; stdout carries the command protocol."""
    config.ensure_directories()
    logging.basicConfig(
        level=config.get_log_level(),
        format=config.LOG_FORMAT,
        handlers=[
            logging.FileHandler(config.get_log_dir() / config.LOG_FILE),
            logging.StreamHandler(sys.stderr),
        ],
    )


def load_environment(env_path: Optional[Path] = None):
    """Load the .env file next to the project, if there is one."""
    if env_path is None:
        env_path = Path(config.PROJECT_ROOT) / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        return env_path
    return None


def run():
    """Run the command server with comprehensive error handling."""
    env_path = load_environment()
    configure_logging()

    if env_path:
        logger.info(f"Loaded environment from {env_path}")
    else:
        logger.debug(".env file not found, using defaults")

    store = None
    try:
        db_path = config.get_db_path()
        logger.info(f"Starting Spendora backend v{config.VERSION} on {db_path}")

        try:
            store = Store(db_path).open()
        except Exception as e:
            logger.critical(f"Failed to open database {db_path}: {e}", exc_info=True)
            sys.exit(1)

        result = migrate_legacy_file(store, config.get_legacy_file())
        if result is not None:
            logger.info(f"Legacy data imported: {result.to_dict()}")

        router = CommandRouter(FinanceRepository(store))

        try:
            serve(router, sys.stdin, sys.stdout)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt, shutting down...")
    except Exception as e:
        logger.critical(f"Critical error in run(): {e}", exc_info=True)
        sys.exit(1)
    finally:
        if store is not None:
            store.close()


if __name__ == "__main__":
    run()
