"""
Logging configuration for utxo_vsize.

Library modules only call `logging.getLogger(__name__)`. Applications that
want output call `setup_logging()` (or `get_logger()`, which reads the
settings from `utxo_vsize.config`).
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from utxo_vsize.config import get_config

ROOT_LOGGER_NAME = "utxo_vsize"

HUMAN_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s %(funcName)s:%(lineno)d - %(message)s"
HUMAN_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JSONFormatter(logging.Formatter):
    """One JSON object per record (production)."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "location": f"{record.funcName}:{record.lineno}",
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class HumanReadableFormatter(logging.Formatter):
    """Single-line records for consoles and log files (development)."""

    def __init__(self):
        super().__init__(HUMAN_FORMAT, HUMAN_DATE_FORMAT)


def _formatter(mode: str) -> logging.Formatter:
    return JSONFormatter() if mode == "production" else HumanReadableFormatter()


def setup_logging(
    name: str = ROOT_LOGGER_NAME,
    level: str = "INFO",
    mode: str = "development",
    log_dir: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """
    Attach console (and optionally rotating file) handlers to a logger.

    Args:
        name: Logger name
        level: Logging level name
        mode: "development" for human-readable lines, "production" for JSON
        log_dir: Directory for `<name>.log`, None for console only
        max_bytes: Log file size before rotation
        backup_count: Rotated files to keep

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Calling again replaces the handlers instead of duplicating them
    logger.handlers.clear()

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                log_path / f"{name}.log", maxBytes=max_bytes, backupCount=backup_count
            )
        )

    for handler in handlers:
        handler.setFormatter(_formatter(mode))
        logger.addHandler(handler)

    logger.debug(f"logging to {len(handlers)} handler(s): mode={mode}, level={level}, log_dir={log_dir}")
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get or create a configured logger

    Args:
        name: Logger name (default: utxo_vsize)

    Returns:
        Logger instance
    """
    name = name or ROOT_LOGGER_NAME

    logger = logging.getLogger(name)
    if any(not isinstance(handler, logging.NullHandler) for handler in logger.handlers):
        return logger

    config = get_config()
    return setup_logging(name=name, level=config.log_level, mode=config.log_mode, log_dir=config.log_dir)
