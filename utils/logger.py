"""
Logging configuration with file rotation and automatic cleanup.
Rotates daily and keeps Config.LOG_RETENTION_DAYS days of logs.
"""
import os
import logging
from logging.handlers import TimedRotatingFileHandler
from datetime import datetime, timedelta
from pathlib import Path

from config import Config


LOGS_DIR = Config.LOGS_DIR
os.makedirs(LOGS_DIR, exist_ok=True)

LOG_FILE = os.path.join(LOGS_DIR, "app.log")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _rotated_file_date(log_file: Path) -> datetime:
    """Date of a rotated log file, from its suffix or its mtime."""
    try:
        return datetime.strptime(log_file.name.replace("app.log.", ""), "%Y-%m-%d")
    except ValueError:
        return datetime.fromtimestamp(log_file.stat().st_mtime)


def cleanup_old_logs(directory: str, retention_days: int = Config.LOG_RETENTION_DAYS) -> int:
    """Remove rotated log files older than retention_days. Returns the number deleted."""
    log_dir = Path(directory)
    if not log_dir.exists():
        return 0

    cutoff = datetime.now() - timedelta(days=retention_days)
    deleted_count = 0
    for log_file in log_dir.glob("app.log.*"):
        if not log_file.is_file():
            continue
        try:
            if _rotated_file_date(log_file) < cutoff:
                log_file.unlink()
                deleted_count += 1
        except OSError as e:
            logging.error(f"Failed to delete log file {log_file.name}: {e}")

    if deleted_count > 0:
        logging.info(f"Cleaned up {deleted_count} old log file(s)")
    return deleted_count


def setup_logger(name: str = "app", level: int = logging.INFO) -> logging.Logger:
    """
    Set up logger with file rotation and console output.

    Args:
        name: Logger name
        level: Logging level (default: INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    logger.setLevel(level)

    file_handler = TimedRotatingFileHandler(
        LOG_FILE,
        when="midnight",
        interval=1,
        backupCount=Config.LOG_RETENTION_DAYS,
        encoding="utf-8",
        utc=True
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(levelname)s - %(message)s", "%H:%M:%S")
    )

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    cleanup_old_logs(LOGS_DIR, Config.LOG_RETENTION_DAYS)

    return logger


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance under the application namespace.

    Args:
        name: Logger name (if None, returns the root app logger)
    """
    if name is None:
        return logging.getLogger("app")
    return logging.getLogger(f"app.{name}")


app_logger = setup_logger("app", getattr(logging, Config.LOG_LEVEL, logging.INFO))

app_logger.info("=" * 80)
app_logger.info("Application logger initialized")
app_logger.info(f"Log file: {LOG_FILE} (retention: {Config.LOG_RETENTION_DAYS} days)")
app_logger.info("=" * 80)
