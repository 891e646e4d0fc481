import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Any, MutableMapping, Tuple

from app.platform.config import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _log_file_path() -> str:
    log_dir = os.path.join(os.getcwd(), settings.LOG_DIR)
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)
    return os.path.join(log_dir, "site_forensics.log")


def get_logger(name: str):
    """
    Creates a logger instance that writes to console AND a file.
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logger.setLevel(level)
    logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT)

    if settings.LOG_TO_FILE:
        file_handler = RotatingFileHandler(_log_file_path(), maxBytes=10_000_000, backupCount=5)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    return logger


class AnalysisLogger(logging.LoggerAdapter):
    """
    Logger adapter that tags every record with the analysis job id,
    so interleaved runs can be told apart in a shared log file.
    """

    def __init__(self, correlation_id: str, logger: logging.Logger = None):
        super().__init__(logger or get_logger("app.analysis"), {"correlation_id": correlation_id})
        self.correlation_id = correlation_id

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        return f"[{self.correlation_id}] {msg}", kwargs


def create_logger(job_id: str) -> AnalysisLogger:
    """Create a logger correlated to an analysis job."""
    return AnalysisLogger(job_id)
