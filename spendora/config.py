"""
Configuration module for Spendora.

Contains constants, settings, and configuration values used throughout the application.
Paths and the log level can be overridden through environment variables, which the
runner loads from a .env file before anything else reads them.
"""

import os
from pathlib import Path

# Version
VERSION = "0.1.0"

# Application paths
PROJECT_ROOT = Path(__file__).parent.parent
DEFAULT_DATA_DIR = PROJECT_ROOT / "data"
DEFAULT_LOG_DIR = PROJECT_ROOT / "logs"

# Database configuration
DB_FILENAME = "spendora.db"
DB_TIMEOUT = 10.0  # seconds

# Legacy flat-file store, imported once at startup when present
LEGACY_FILENAME = "spendora-data.json"
LEGACY_ARCHIVE_SUFFIX = ".migrated"

# Budget utilization thresholds (fraction of the monthly limit)
BUDGET_WARNING_THRESHOLD = 0.8
BUDGET_EXCEEDED_THRESHOLD = 1.0

# Loan helpers
PAID_OFF_TOLERANCE = 0.01  # remaining principal at or below this counts as repaid

# Net worth health
EMERGENCY_FUND_TARGET_MONTHS = 6
DEFAULT_MONTHLY_OUTFLOW = 50000.0
LIABILITY_OUTFLOW_RATIO = 0.05  # monthly outflow estimate as a share of debt
NET_WORTH_TREND_POINTS = 12

# Chart generation
CHART_DPI = 150
CHART_FORMAT = "png"
CHART_WIDTH = 12
CHART_HEIGHT = 8

# Logging configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "spendora.log"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Error messages
ERROR_MESSAGES = {
    "constraint": "Invalid input. Please check your values and try again.",
    "internal_error": "An internal error occurred. Please try again.",
    "unknown_command": "Unknown command: {command}",
}


def get_data_dir() -> Path:
    """Data directory, honouring SPENDORA_DATA_DIR."""
    return Path(os.getenv("SPENDORA_DATA_DIR", DEFAULT_DATA_DIR))


def get_log_dir() -> Path:
    """Log directory, honouring SPENDORA_LOG_DIR."""
    return Path(os.getenv("SPENDORA_LOG_DIR", DEFAULT_LOG_DIR))


def ensure_directories():
    """Ensure required directories exist."""
    get_data_dir().mkdir(parents=True, exist_ok=True)
    get_log_dir().mkdir(parents=True, exist_ok=True)


def get_db_path() -> Path:
    """Database path, honouring SPENDORA_DB_PATH."""
    return Path(os.getenv("SPENDORA_DB_PATH", get_data_dir() / DB_FILENAME))


def get_legacy_file() -> Path:
    """Legacy JSON data file, honouring SPENDORA_LEGACY_FILE."""
    return Path(os.getenv("SPENDORA_LEGACY_FILE", get_data_dir() / LEGACY_FILENAME))


def get_log_level():
    """Get the configured log level."""
    import logging

    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get(os.getenv("LOG_LEVEL", LOG_LEVEL).upper(), logging.INFO)
