"""Application factory: logging setup and reconciler wiring."""

import logging
import logging.config
from pathlib import Path

from . import __version__
from .config import get_sauce_config, get_value
from .services.reconciliation_engine import ReconciliationEngine
from .services.sauce_rest_client import SauceRestClient


def setup_logging(config: dict, app_root: Path) -> None:
    """Configure structured logging to console and file."""
    log_level = get_value(config, "logging", "level", default="INFO")
    log_file = get_value(config, "logging", "file", default="logs/sauce-reconcile.log")
    max_bytes = get_value(config, "logging", "max_bytes", default=10_000_000)  # 10MB
    backup_count = get_value(config, "logging", "backup_count", default=5)

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": log_level,
            "formatter": "standard",
            "stream": "ext://sys.stderr",
        },
    }
    if log_file:
        # Ensure logs directory exists
        log_path = app_root / log_file
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": log_level,
            "formatter": "standard",
            "filename": str(log_path),
            "maxBytes": max_bytes,
            "backupCount": backup_count,
        }

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S%z",
            },
        },
        "handlers": handlers,
        "root": {
            "level": log_level,
            "handlers": list(handlers),
        },
    }

    logging.config.dictConfig(logging_config)


def create_engine(config: dict) -> ReconciliationEngine:
    """
    Create a reconciliation engine talking to Sauce over REST.

    Args:
        config: Loaded configuration (see ``config.load_config``)

    Returns:
        ReconciliationEngine bound to a SauceRestClient
    """
    logger = logging.getLogger(__name__)
    client = SauceRestClient(get_sauce_config(config))
    if client.is_configured:
        logger.info(f"sauce-reconcile v{__version__} using {client.base_url}")
    else:
        # Every lookup and update will fail and be logged; the pass still runs
        logger.warning("Sauce credentials not configured; remote updates will be skipped")
    return ReconciliationEngine(client)
