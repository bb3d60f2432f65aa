"""Logging Utilities for Recetario
=================================

Centralized logging configuration and utilities.

Usage:
    from tools.logging_utils import get_logger

    logger = get_logger(__name__)
    logger.info("Operation completed successfully")
    logger.error("Operation failed")

Standards:
    - Backend/operational code: MUST use logger
    - Log levels: CRITICAL, ERROR, WARNING, INFO, DEBUG
    - Configuration: config.LOGGING_CONFIG
    - Location: data/logs/recetario.log (10MB rotation, 5 backups)
"""

import logging
import logging.config
import threading

from config import DATA_DIR, LOGGING_CONFIG

_setup_lock = threading.Lock()
_configured = False


def setup_logging():
    """
    Initialize logging configuration once.

    Thread-safe and idempotent - safe to call multiple times.
    """
    global _configured
    with _setup_lock:
        if _configured:
            return
        try:
            (DATA_DIR / "logs").mkdir(parents=True, exist_ok=True)
            logging.config.dictConfig(LOGGING_CONFIG)
        except (OSError, ValueError) as e:
            # Read-only data dir: keep console logging so the app still boots
            logging.basicConfig(level=logging.INFO)
            logging.getLogger(__name__).warning(f"Logging setup failed: {e}")
        _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get logger for module.

    Args:
        name: Module name (use __name__)

    Returns:
        Configured logger instance

    Example:
        logger = get_logger(__name__)
        logger.info("Starting process")
    """
    setup_logging()
    return logging.getLogger(name)
